"""Payment gateway registry.

Provides get_gateway() / set_gateway() to swap implementations per
gateway name:
- FakeGateway for development and testing (the default)
- StripeGateway and PayPalGateway when PAYMENT_GATEWAY_ADAPTER=live
"""

from enum import Enum

from storefront.config import GatewaySettings
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway


class GatewayName(Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


# Payment methods settled online, and the gateway that settles them.
# Anything absent (cod, bank_transfer) is collected offline.
METHOD_GATEWAYS = {
    "credit_card": GatewayName.STRIPE,
    "debit_card": GatewayName.STRIPE,
    "wallet": GatewayName.STRIPE,
    "paypal": GatewayName.PAYPAL,
}

_gateways: dict[GatewayName, PaymentGateway] = {}


def gateway_for_method(payment_method: str) -> GatewayName | None:
    return METHOD_GATEWAYS.get(payment_method)


def _build(name: GatewayName) -> PaymentGateway:
    settings = GatewaySettings.from_env()
    if settings.adapter != "live":
        return FakeGateway(name=name.value, webhook_secret=settings.fake_webhook_secret)

    if name == GatewayName.STRIPE:
        from storefront.payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=settings.stripe_secret_key, webhook_secret=settings.stripe_webhook_secret)

    from storefront.payments.gateway.paypal_adapter import PayPalGateway

    return PayPalGateway(
        client_id=settings.paypal_client_id,
        client_secret=settings.paypal_client_secret,
        mode=settings.paypal_mode,
        webhook_id=settings.paypal_webhook_id,
    )


def get_gateway(name: GatewayName | str) -> PaymentGateway:
    """Return the gateway registered under ``name``, building it on first use."""
    name = GatewayName(name)
    if name not in _gateways:
        _gateways[name] = _build(name)
    return _gateways[name]


def set_gateway(name: GatewayName | str, gateway: PaymentGateway) -> None:
    """Override the gateway for ``name`` (useful for tests)."""
    _gateways[GatewayName(name)] = gateway


def reset_gateways() -> None:
    _gateways.clear()
