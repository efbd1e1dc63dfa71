"""Coupon management: commands, handler and preview query."""

from decimal import Decimal

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.config import PricingPolicy
from storefront.coupons.coupon import Coupon
from storefront.coupons.evaluator import evaluate, find_coupon
from storefront.domain import storefront
from storefront.ordering.pricing import shipping_for, to_money


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code: String(required=True, max_length=50)
    description: String(max_length=255)
    discount_type: String(required=True, max_length=20)
    value: Float(required=True, min_value=0.0)
    minimum_purchase: Float(default=0.0, min_value=0.0)
    max_discount_amount: Float(min_value=0.0)
    usage_limit: Integer(min_value=1)
    user_usage_limit: Integer(min_value=1)
    starts_at: DateTime()
    ends_at: DateTime()


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id: Identifier(required=True)


@storefront.command_handler(part_of=Coupon)
class ManageCouponsHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = command.code.strip().upper()
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": [f"Coupon {code} already exists"]})

        coupon = Coupon.create(
            code=code,
            description=command.description,
            discount_type=command.discount_type,
            value=command.value,
            minimum_purchase=command.minimum_purchase,
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            user_usage_limit=command.user_usage_limit,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)


def preview_coupon(code, subtotal, customer_id=None, policy=None):
    """What ``code`` would take off an order with this subtotal."""
    policy = policy or PricingPolicy.from_env()
    subtotal = Decimal(str(subtotal))
    discount = evaluate(
        find_coupon(code),
        subtotal,
        shipping=shipping_for(subtotal, policy),
        customer_id=customer_id,
    )
    return {
        "code": discount.code,
        "discount": float(to_money(discount.amount)),
        "applies_to": discount.applies_to,
    }
