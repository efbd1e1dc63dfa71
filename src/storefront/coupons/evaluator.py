"""Coupon validation and discount computation.

``evaluate`` is pure: it reads a coupon and returns the discount it grants
for a given subtotal, shipping charge and customer. Usage is recorded
separately, when an order applying the coupon is placed.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.coupons.coupon import Coupon, DiscountType

SUBTOTAL = "subtotal"
SHIPPING = "shipping"


@dataclass(frozen=True)
class CouponDiscount:
    code: str
    amount: Decimal
    applies_to: str  # SUBTOTAL or SHIPPING


def _reject(reason):
    raise ValidationError({"coupon_code": [reason]})


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def find_coupon(code):
    """Load a coupon by its code, case-insensitively."""
    if not code or not code.strip():
        _reject("Coupon code is required")

    repo = current_domain.repository_for(Coupon)
    matches = repo._dao.query.filter(code=code.strip().upper()).all().items
    if not matches:
        _reject(f"Coupon {code} is invalid")
    return matches[0]


def validate(coupon, subtotal, customer_id=None, at=None):
    at = _aware(at or datetime.now(UTC))

    if not coupon.is_active:
        _reject(f"Coupon {coupon.code} is no longer active")
    if coupon.starts_at and at < _aware(coupon.starts_at):
        _reject(f"Coupon {coupon.code} is not valid yet")
    if coupon.ends_at and at > _aware(coupon.ends_at):
        _reject(f"Coupon {coupon.code} has expired")
    if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
        _reject(f"Coupon {coupon.code} has reached its usage limit")
    if (
        customer_id is not None
        and coupon.user_usage_limit is not None
        and coupon.usage_count_for(customer_id) >= coupon.user_usage_limit
    ):
        _reject(f"You have already used coupon {coupon.code} the maximum number of times")

    minimum = Decimal(str(coupon.minimum_purchase or 0))
    if subtotal < minimum:
        _reject(f"Coupon {coupon.code} requires a minimum purchase of {minimum:.2f}")


def _capped(amount, coupon):
    if coupon.max_discount_amount is not None:
        return min(amount, Decimal(str(coupon.max_discount_amount)))
    return amount


def evaluate(coupon, subtotal, shipping=Decimal("0"), customer_id=None, at=None):
    """Validate ``coupon`` and return the discount it grants.

    ``subtotal`` and ``shipping`` are Decimals. Raises ValidationError on
    ``coupon_code`` when the coupon cannot be applied.
    """
    validate(coupon, subtotal, customer_id=customer_id, at=at)

    value = Decimal(str(coupon.value))
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        amount = _capped(subtotal * value / Decimal("100"), coupon)
        return CouponDiscount(coupon.code, min(amount, subtotal), SUBTOTAL)

    if coupon.discount_type == DiscountType.FIXED.value:
        return CouponDiscount(coupon.code, min(value, subtotal), SUBTOTAL)

    # Shipping coupons take a percentage of the shipping charge
    amount = _capped(shipping * value / Decimal("100"), coupon)
    return CouponDiscount(coupon.code, min(amount, shipping), SHIPPING)
