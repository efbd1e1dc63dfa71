"""Stripe payment gateway adapter.

Uses the stripe-python SDK to create PaymentIntents, issue refunds and
verify webhook signatures with the endpoint's signing secret. Amounts are
sent in the smallest currency unit (cents).
"""

from decimal import ROUND_HALF_UP, Decimal

import stripe
import structlog

from storefront.exceptions import WebhookSignatureError
from storefront.payments.gateway.port import (
    CHARGE_REFUNDED,
    PaymentGateway,
    PaymentIntent,
    RefundResult,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)


def to_minor_units(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway(PaymentGateway):
    name = "stripe"

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_payment(self, amount, currency, customer_ref, metadata=None) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                metadata={"customer_id": customer_ref, **(metadata or {})},
                automatic_payment_methods={"enabled": True},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe payment intent failed", customer_id=customer_ref, error=str(exc))
            return PaymentIntent(success=False, status="failed", failure_reason=exc.user_message or str(exc))

        return PaymentIntent(
            success=True,
            intent_id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
        )

    def refund(self, payment_ref, amount, reason=None) -> RefundResult:
        try:
            refund = stripe.Refund.create(
                payment_intent=payment_ref,
                amount=to_minor_units(amount),
                reason="requested_by_customer",
                metadata={"reason": reason or ""},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe refund failed", payment_ref=payment_ref, error=str(exc))
            return RefundResult(success=False, status="failed", failure_reason=exc.user_message or str(exc))

        return RefundResult(success=refund.status != "failed", refund_id=refund.id, status=refund.status)

    def verify_webhook_signature(self, payload, signature, headers=None) -> WebhookEvent:
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as exc:
            raise WebhookSignatureError(f"Invalid payload: {exc}") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookSignatureError(f"Invalid signature: {exc}") from exc

        obj = event["data"]["object"]
        if event["type"] == CHARGE_REFUNDED:
            reference = obj.get("payment_intent")
            amount = obj.get("amount_refunded")
        else:
            reference = obj.get("id")
            amount = obj.get("amount")
        error = obj.get("last_payment_error") or {}

        return WebhookEvent(
            type=event["type"],
            payment_reference=reference,
            amount=amount / 100 if amount is not None else None,
            failure_reason=error.get("message"),
            data=event.to_dict(),
        )
