"""Configurable fake payment gateway for development and testing.

No external calls are made. Outcomes can be switched at runtime, every
call is recorded, and webhook payloads are signed with HMAC-SHA256 over the
raw body using a shared secret, mirroring how hosted gateways sign.
"""

import hashlib
import hmac
import json
from uuid import uuid4

from storefront.exceptions import WebhookSignatureError
from storefront.payments.gateway.port import (
    CHARGE_REFUNDED,
    PaymentGateway,
    PaymentIntent,
    RefundResult,
    WebhookEvent,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, name: str = "stripe", webhook_secret: str = "whsec_test") -> None:
        self.name = name
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment(self, amount, currency, customer_ref, metadata=None) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment",
                "amount": amount,
                "currency": currency,
                "customer_ref": customer_ref,
                "metadata": metadata or {},
            }
        )

        if self.should_succeed:
            intent_id = f"pi_fake_{uuid4().hex[:16]}"
            return PaymentIntent(
                success=True,
                intent_id=intent_id,
                client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
                status="requires_payment_method",
            )
        return PaymentIntent(success=False, status="failed", failure_reason=self.failure_reason)

    def refund(self, payment_ref, amount, reason=None) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "payment_ref": payment_ref,
                "amount": amount,
                "reason": reason,
            }
        )

        if self.should_succeed:
            return RefundResult(success=True, refund_id=f"re_fake_{uuid4().hex[:12]}", status="succeeded")
        return RefundResult(success=False, status="failed", failure_reason=self.failure_reason)

    def sign(self, payload: bytes | str) -> str:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        return hmac.new(self.webhook_secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()

    def verify_webhook_signature(self, payload, signature, headers=None) -> WebhookEvent:
        if not signature or not hmac.compare_digest(signature, self.sign(payload)):
            raise WebhookSignatureError("Invalid webhook signature")

        try:
            body = json.loads(payload)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            raise WebhookSignatureError("Webhook payload is not valid JSON") from None

        obj = body.get("data", {}).get("object", {})
        reference = obj.get("payment_intent") if body.get("type") == CHARGE_REFUNDED else obj.get("id")
        amount = obj.get("amount_refunded", obj.get("amount"))
        error = obj.get("last_payment_error") or {}

        return WebhookEvent(
            type=body.get("type", ""),
            payment_reference=reference or obj.get("id"),
            amount=amount / 100 if amount is not None else None,
            failure_reason=error.get("message"),
            data=body,
        )
