"""Gateway adapters and the gateway registry."""

import json
from types import SimpleNamespace

import pytest

from storefront.exceptions import WebhookSignatureError
from storefront.payments.gateway import (
    GatewayName,
    gateway_for_method,
    get_gateway,
    reset_gateways,
    set_gateway,
)
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import CHARGE_REFUNDED, PAYMENT_FAILED, PAYMENT_SUCCEEDED
from storefront.payments.gateway.stripe_adapter import StripeGateway, to_minor_units


class TestRegistry:
    def test_fake_gateways_by_default(self):
        gateway = get_gateway("stripe")
        assert isinstance(gateway, FakeGateway)
        assert gateway.name == "stripe"
        assert get_gateway(GatewayName.STRIPE) is gateway

    def test_set_gateway_overrides(self):
        custom = FakeGateway(name="paypal", webhook_secret="other")
        set_gateway("paypal", custom)
        assert get_gateway(GatewayName.PAYPAL) is custom

        reset_gateways()
        assert get_gateway(GatewayName.PAYPAL) is not custom

    def test_unknown_gateway(self):
        with pytest.raises(ValueError):
            get_gateway("bitcoin")

    @pytest.mark.parametrize(
        "method,expected",
        [
            ("credit_card", GatewayName.STRIPE),
            ("debit_card", GatewayName.STRIPE),
            ("wallet", GatewayName.STRIPE),
            ("paypal", GatewayName.PAYPAL),
            ("cod", None),
            ("bank_transfer", None),
        ],
    )
    def test_method_routing(self, method, expected):
        assert gateway_for_method(method) == expected


class TestFakeGateway:
    def test_records_calls(self):
        gateway = FakeGateway()
        intent = gateway.create_payment(10.0, "USD", "cust-1", {"order_id": "o-1"})

        assert intent.success is True
        assert intent.client_secret.startswith(intent.intent_id)
        assert gateway.calls == [
            {
                "method": "create_payment",
                "amount": 10.0,
                "currency": "USD",
                "customer_ref": "cust-1",
                "metadata": {"order_id": "o-1"},
            }
        ]

    def test_configured_failure(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")

        intent = gateway.create_payment(10.0, "USD", "cust-1")
        refund = gateway.refund("pi_1", 10.0)

        assert (intent.success, intent.failure_reason) == (False, "Insufficient funds")
        assert refund.success is False

    def test_verifies_signed_payload(self):
        gateway = FakeGateway()
        payload = json.dumps({"type": PAYMENT_SUCCEEDED, "data": {"object": {"id": "pi_1", "amount": 1999}}})

        event = gateway.verify_webhook_signature(payload, gateway.sign(payload))

        assert event.type == PAYMENT_SUCCEEDED
        assert event.payment_reference == "pi_1"
        assert event.amount == 19.99

    def test_refund_event_references_the_intent(self):
        gateway = FakeGateway()
        payload = json.dumps(
            {"type": CHARGE_REFUNDED, "data": {"object": {"id": "ch_1", "payment_intent": "pi_1", "amount_refunded": 500}}}
        )

        event = gateway.verify_webhook_signature(payload, gateway.sign(payload))
        assert (event.payment_reference, event.amount) == ("pi_1", 5.0)

    def test_failure_reason_is_extracted(self):
        gateway = FakeGateway()
        payload = json.dumps(
            {"type": PAYMENT_FAILED, "data": {"object": {"id": "pi_1", "last_payment_error": {"message": "Declined"}}}}
        )
        assert gateway.verify_webhook_signature(payload, gateway.sign(payload)).failure_reason == "Declined"

    @pytest.mark.parametrize("signature", [None, "", "deadbeef"])
    def test_rejects_bad_signatures(self, signature):
        with pytest.raises(WebhookSignatureError):
            FakeGateway().verify_webhook_signature('{"type": "x"}', signature)

    def test_rejects_payload_signed_with_another_secret(self):
        payload = '{"type": "x"}'
        other = FakeGateway(webhook_secret="whsec_other")
        with pytest.raises(WebhookSignatureError):
            FakeGateway().verify_webhook_signature(payload, other.sign(payload))


class TestStripeGateway:
    def test_minor_units_round_half_up(self):
        assert to_minor_units(19.99) == 1999
        assert to_minor_units(0.125) == 13
        assert to_minor_units(172.8) == 17280

    def test_create_payment_sends_cents(self, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return SimpleNamespace(id="pi_123", client_secret="pi_123_secret", status="requires_payment_method")

        monkeypatch.setattr("stripe.PaymentIntent.create", fake_create)

        intent = StripeGateway(api_key="sk_test", webhook_secret="whsec").create_payment(
            172.8, "USD", "cust-1", {"order_id": "o-1"}
        )

        assert intent.success is True
        assert intent.intent_id == "pi_123"
        assert captured["amount"] == 17280
        assert captured["currency"] == "usd"
        assert captured["metadata"] == {"customer_id": "cust-1", "order_id": "o-1"}
        assert captured["api_key"] == "sk_test"

    def test_stripe_errors_become_failed_intents(self, monkeypatch):
        import stripe

        def failing_create(**kwargs):
            raise stripe.CardError("Your card was declined.", None, "card_declined")

        monkeypatch.setattr("stripe.PaymentIntent.create", failing_create)

        intent = StripeGateway(api_key="sk_test", webhook_secret="whsec").create_payment(10, "USD", "cust-1")
        assert intent.success is False
        assert "declined" in intent.failure_reason

    def test_invalid_signature_is_rejected(self, monkeypatch):
        import stripe

        def reject(payload, signature, secret):
            raise stripe.SignatureVerificationError("No signatures found", signature)

        monkeypatch.setattr("stripe.Webhook.construct_event", reject)

        with pytest.raises(WebhookSignatureError):
            StripeGateway(api_key="sk_test", webhook_secret="whsec").verify_webhook_signature(b"{}", "t=1,v1=bad")
