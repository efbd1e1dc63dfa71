"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements, so the
order workflow never depends on a specific provider SDK.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Normalized webhook event types
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
CHARGE_REFUNDED = "charge.refunded"


@dataclass(frozen=True)
class PaymentIntent:
    """Result of asking the gateway to start a payment."""

    success: bool
    intent_id: str | None = None
    client_secret: str | None = None
    status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A verified gateway notification in provider-neutral form."""

    type: str
    payment_reference: str | None = None
    amount: float | None = None
    failure_reason: str | None = None
    data: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str

    @abstractmethod
    def create_payment(
        self,
        amount: float,
        currency: str,
        customer_ref: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        """Create a payment intent for ``amount`` in ``currency``."""
        ...

    @abstractmethod
    def refund(self, payment_ref: str, amount: float, reason: str | None = None) -> RefundResult:
        """Refund a captured payment."""
        ...

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: bytes | str,
        signature: str | None,
        headers: dict | None = None,
    ) -> WebhookEvent:
        """Authenticate a webhook payload and normalize it.

        Raises WebhookSignatureError when the payload cannot be trusted.
        """
        ...
