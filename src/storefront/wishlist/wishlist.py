"""Wishlist aggregate, one per customer."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String

from storefront.domain import storefront


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)
    added_at = DateTime()


@storefront.aggregate
class Wishlist:
    customer_id = Identifier(required=True)
    items = HasMany(WishlistItem)
    created_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        return cls(customer_id=customer_id, created_at=datetime.now(UTC))

    def find_item(self, product_id, variant_sku=None):
        return next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id) and (i.variant_sku or None) == (variant_sku or None)
            ),
            None,
        )

    def add_item(self, product_id, variant_sku=None):
        if self.find_item(product_id, variant_sku):
            raise ValidationError({"product_id": ["Product is already in your wishlist"]})
        item = WishlistItem(product_id=product_id, variant_sku=variant_sku, added_at=datetime.now(UTC))
        self.add_items(item)
        return item

    def remove_item(self, product_id, variant_sku=None):
        item = self.find_item(product_id, variant_sku)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in your wishlist"]})
        self.remove_items(item)
