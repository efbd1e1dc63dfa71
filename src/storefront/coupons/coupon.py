"""Coupon aggregate with its usage records."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from storefront.coupons.events import CouponCreated, CouponDeactivated, CouponRedeemed
from storefront.domain import storefront


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    SHIPPING = "shipping"


@storefront.entity(part_of="Coupon")
class CouponUsage:
    customer_id: Identifier(required=True)
    order_id: Identifier(required=True)
    discount_amount: Float(required=True, min_value=0.0)
    used_at: DateTime()


@storefront.aggregate
class Coupon:
    code: String(required=True, max_length=50)
    description: String(max_length=255)
    discount_type: String(required=True, choices=DiscountType)
    value: Float(required=True, min_value=0.0)
    minimum_purchase: Float(default=0.0, min_value=0.0)
    max_discount_amount: Float(min_value=0.0)
    usage_limit: Integer(min_value=1)
    user_usage_limit: Integer(min_value=1)
    starts_at: DateTime()
    ends_at: DateTime()
    is_active: Boolean(default=True)
    used_count: Integer(default=0, min_value=0)
    usages: HasMany(CouponUsage)
    created_at: DateTime()

    @invariant.post
    def percentage_cannot_exceed_100(self):
        if self.discount_type in (DiscountType.PERCENTAGE.value, DiscountType.SHIPPING.value) and self.value > 100:
            raise ValidationError({"value": ["Percentage discounts cannot exceed 100"]})

    @invariant.post
    def used_count_within_limit(self):
        if self.usage_limit is not None and self.used_count > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon usage limit exceeded"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        value,
        description=None,
        minimum_purchase=0.0,
        max_discount_amount=None,
        usage_limit=None,
        user_usage_limit=None,
        starts_at=None,
        ends_at=None,
    ):
        if starts_at and ends_at and ends_at < starts_at:
            raise ValidationError({"ends_at": ["Coupon cannot end before it starts"]})

        coupon = cls(
            code=code.strip().upper(),
            description=description,
            discount_type=discount_type,
            value=value,
            minimum_purchase=minimum_purchase or 0.0,
            max_discount_amount=max_discount_amount,
            usage_limit=usage_limit,
            user_usage_limit=user_usage_limit,
            starts_at=starts_at,
            ends_at=ends_at,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                value=value,
            )
        )
        return coupon

    def deactivate(self):
        self.is_active = False
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code))

    def usage_count_for(self, customer_id):
        return sum(1 for usage in self.usages if str(usage.customer_id) == str(customer_id))

    def record_usage(self, customer_id, order_id, amount):
        now = datetime.now(UTC)
        self.add_usages(
            CouponUsage(
                customer_id=customer_id,
                order_id=order_id,
                discount_amount=amount,
                used_at=now,
            )
        )
        self.used_count = (self.used_count or 0) + 1

        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                customer_id=str(customer_id),
                order_id=str(order_id),
                discount_amount=amount,
                used_count=self.used_count,
                redeemed_at=now,
            )
        )
