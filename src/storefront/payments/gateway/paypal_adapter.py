"""PayPal payment gateway adapter (REST API v1 via paypalrestsdk).

PayPal notifications are translated to the same normalized event types the
Stripe adapter produces, so webhook processing stays provider-neutral.
"""

import json

import paypalrestsdk
import structlog
from paypalrestsdk import notifications

from storefront.exceptions import WebhookSignatureError
from storefront.payments.gateway.port import (
    CHARGE_REFUNDED,
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    PaymentGateway,
    PaymentIntent,
    RefundResult,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)

EVENT_TYPES = {
    "PAYMENT.SALE.COMPLETED": PAYMENT_SUCCEEDED,
    "PAYMENT.CAPTURE.COMPLETED": PAYMENT_SUCCEEDED,
    "PAYMENT.SALE.DENIED": PAYMENT_FAILED,
    "PAYMENT.CAPTURE.DENIED": PAYMENT_FAILED,
    "PAYMENT.SALE.REFUNDED": CHARGE_REFUNDED,
    "PAYMENT.CAPTURE.REFUNDED": CHARGE_REFUNDED,
}


class PayPalGateway(PaymentGateway):
    name = "paypal"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: str = "sandbox",
        webhook_id: str | None = None,
        return_url: str = "http://localhost:8000/payments/paypal/return",
        cancel_url: str = "http://localhost:8000/payments/paypal/cancel",
    ) -> None:
        self.api = paypalrestsdk.Api({"mode": mode, "client_id": client_id, "client_secret": client_secret})
        self.webhook_id = webhook_id
        self.return_url = return_url
        self.cancel_url = cancel_url

    def create_payment(self, amount, currency, customer_ref, metadata=None) -> PaymentIntent:
        metadata = metadata or {}
        payment = paypalrestsdk.Payment(
            {
                "intent": "sale",
                "payer": {"payment_method": "paypal"},
                "redirect_urls": {"return_url": self.return_url, "cancel_url": self.cancel_url},
                "transactions": [
                    {
                        "amount": {"total": f"{amount:.2f}", "currency": currency.upper()},
                        "description": metadata.get("order_number", ""),
                        "custom": json.dumps({"customer_id": customer_ref, **metadata}),
                    }
                ],
            },
            api=self.api,
        )

        if not payment.create():
            logger.error("PayPal payment creation failed", customer_id=customer_ref, error=payment.error)
            return PaymentIntent(success=False, status="failed", failure_reason=str(payment.error))

        approval_url = next((link.href for link in payment.links if link.rel == "approval_url"), None)
        return PaymentIntent(success=True, intent_id=payment.id, client_secret=approval_url, status=payment.state)

    def _sale_id(self, payment_ref):
        payment = paypalrestsdk.Payment.find(payment_ref, api=self.api)
        for transaction in payment.transactions:
            for resource in transaction.related_resources:
                if "sale" in resource:
                    return resource.sale.id
        return None

    def refund(self, payment_ref, amount, reason=None) -> RefundResult:
        try:
            sale_id = self._sale_id(payment_ref)
            if sale_id is None:
                return RefundResult(success=False, status="failed", failure_reason="No completed sale to refund")

            sale = paypalrestsdk.Sale.find(sale_id, api=self.api)
            refund = sale.refund({"amount": {"total": f"{amount:.2f}", "currency": sale.amount.currency}})
        except paypalrestsdk.ResourceNotFound as exc:
            return RefundResult(success=False, status="failed", failure_reason=str(exc))

        if not refund.success():
            logger.error("PayPal refund failed", payment_ref=payment_ref, error=refund.error)
            return RefundResult(success=False, status="failed", failure_reason=str(refund.error))
        return RefundResult(success=True, refund_id=refund.id, status=refund.state)

    def verify_webhook_signature(self, payload, signature, headers=None) -> WebhookEvent:
        headers = {k.lower(): v for k, v in (headers or {}).items()}
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload

        verified = notifications.WebhookEvent.verify(
            headers.get("paypal-transmission-id"),
            headers.get("paypal-transmission-time"),
            self.webhook_id,
            body,
            headers.get("paypal-cert-url"),
            signature or headers.get("paypal-transmission-sig"),
            headers.get("paypal-auth-algo", "sha256"),
        )
        if not verified:
            raise WebhookSignatureError("Invalid PayPal webhook signature")

        event = json.loads(body)
        resource = event.get("resource", {})
        amount = resource.get("amount", {}).get("total")

        return WebhookEvent(
            type=EVENT_TYPES.get(event.get("event_type"), event.get("event_type", "")),
            payment_reference=resource.get("parent_payment") or resource.get("id"),
            amount=float(amount) if amount is not None else None,
            failure_reason=resource.get("reason_code"),
            data=event,
        )
