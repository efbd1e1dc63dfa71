"""Runtime settings read from the environment.

Pricing and loyalty parameters are captured in immutable policy objects so
that the calculators receive them explicitly instead of reading globals.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def is_production() -> bool:
    return current_env() == "production"


@dataclass(frozen=True)
class PricingPolicy:
    """Flat tax and shipping rules applied to every cart and order."""

    tax_rate: Decimal = Decimal("0.08")
    free_shipping_threshold: Decimal = Decimal("50")
    flat_shipping_fee: Decimal = Decimal("5.99")
    currency: str = "USD"

    @classmethod
    def from_env(cls) -> "PricingPolicy":
        return cls(
            tax_rate=Decimal(os.getenv("STOREFRONT_TAX_RATE", "0.08")),
            free_shipping_threshold=Decimal(os.getenv("STOREFRONT_FREE_SHIPPING_THRESHOLD", "50")),
            flat_shipping_fee=Decimal(os.getenv("STOREFRONT_FLAT_SHIPPING_FEE", "5.99")),
            currency=os.getenv("STOREFRONT_CURRENCY", "USD"),
        )


@dataclass(frozen=True)
class LoyaltyPolicy:
    points_per_unit: Decimal = Decimal("1")

    @classmethod
    def from_env(cls) -> "LoyaltyPolicy":
        return cls(points_per_unit=Decimal(os.getenv("STOREFRONT_LOYALTY_POINTS_PER_UNIT", "1")))

    def points_for(self, amount: float) -> int:
        """Whole points earned for a purchase amount (fractions are dropped)."""
        return int(Decimal(str(amount)) * self.points_per_unit)


@dataclass(frozen=True)
class GatewaySettings:
    adapter: str = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_mode: str = "sandbox"
    paypal_webhook_id: str | None = None
    fake_webhook_secret: str = "whsec_test"

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            adapter=os.getenv("PAYMENT_GATEWAY_ADAPTER", "fake"),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            paypal_client_id=os.getenv("PAYPAL_CLIENT_ID"),
            paypal_client_secret=os.getenv("PAYPAL_CLIENT_SECRET"),
            paypal_mode=os.getenv("PAYPAL_MODE", "sandbox"),
            paypal_webhook_id=os.getenv("PAYPAL_WEBHOOK_ID"),
            fake_webhook_secret=os.getenv("FAKE_GATEWAY_WEBHOOK_SECRET", "whsec_test"),
        )
