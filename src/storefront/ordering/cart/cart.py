"""Shopping Cart aggregate (CQRS), one per customer.

Unit prices are captured when an item is first added. The cart is removed
once it is emptied or turned into an order.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.ordering.cart.events import (
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    coupon_code = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def find_item(self, product_id, variant_sku=None):
        return next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id) and (i.variant_sku or None) == (variant_sku or None)
            ),
            None,
        )

    def item(self, item_id):
        """Return the line with ``item_id``, or raise a field error."""
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def add_item(self, product_id, variant_sku, quantity, unit_price):
        """Add an item, or increase the quantity of the matching line."""
        existing = self.find_item(product_id, variant_sku)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                variant_sku=variant_sku,
                quantity=quantity,
                unit_price=unit_price,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                variant_sku=variant_sku,
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        item = self.item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        self.remove_items(self.item(item_id))
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def is_empty(self):
        return not self.items

    def apply_coupon(self, coupon_code):
        self.coupon_code = coupon_code
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCouponApplied(cart_id=str(self.id), coupon_code=coupon_code))

    def remove_coupon(self):
        if not self.coupon_code:
            raise ValidationError({"coupon_code": ["No coupon applied to cart"]})
        code = self.coupon_code
        self.coupon_code = None
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCouponRemoved(cart_id=str(self.id), coupon_code=code))
