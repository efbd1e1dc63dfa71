"""Wishlist management: commands, handler and view."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.ordering.cart.items import add_item_to_cart
from storefront.ordering.pricing import to_money
from storefront.wishlist.wishlist import Wishlist


@storefront.command(part_of="Wishlist")
class AddToWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)


@storefront.command(part_of="Wishlist")
class MoveWishlistItemToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)
    quantity = Integer(default=1, min_value=1)


def find_wishlist(customer_id):
    matches = current_domain.repository_for(Wishlist)._dao.query.filter(customer_id=str(customer_id)).all().items
    return matches[0] if matches else None


def _require_wishlist(customer_id):
    wishlist = find_wishlist(customer_id)
    if wishlist is None:
        raise ValidationError({"product_id": ["Product is not in your wishlist"]})
    return wishlist


@storefront.command_handler(part_of=Wishlist)
class WishlistHandler:
    @handle(AddToWishlist)
    def add(self, command):
        try:
            product = current_domain.repository_for(Product).get(command.product_id)
        except ObjectNotFoundError:
            raise ValidationError({"product_id": [f"Product {command.product_id} not found"]}) from None
        if command.variant_sku:
            product.find_variant(command.variant_sku)

        wishlist = find_wishlist(command.customer_id) or Wishlist.create(command.customer_id)
        wishlist.add_item(command.product_id, command.variant_sku or None)
        current_domain.repository_for(Wishlist).add(wishlist)

    @handle(RemoveFromWishlist)
    def remove(self, command):
        wishlist = _require_wishlist(command.customer_id)
        wishlist.remove_item(command.product_id, command.variant_sku or None)
        current_domain.repository_for(Wishlist).add(wishlist)

    @handle(MoveWishlistItemToCart)
    def move_to_cart(self, command):
        wishlist = _require_wishlist(command.customer_id)
        if wishlist.find_item(command.product_id, command.variant_sku or None) is None:
            raise ValidationError({"product_id": ["Product is not in your wishlist"]})

        item_id = add_item_to_cart(command.customer_id, command.product_id, command.variant_sku, command.quantity)
        wishlist.remove_item(command.product_id, command.variant_sku or None)
        current_domain.repository_for(Wishlist).add(wishlist)
        return item_id


def wishlist_view(customer_id):
    wishlist = find_wishlist(customer_id)
    if wishlist is None:
        return {"id": None, "items": []}

    products = current_domain.repository_for(Product)
    items = []
    for item in sorted(wishlist.items, key=lambda i: i.added_at, reverse=True):
        try:
            product = products.get(item.product_id)
        except ObjectNotFoundError:
            continue
        items.append(
            {
                "product_id": str(item.product_id),
                "variant_sku": item.variant_sku,
                "name": product.name,
                "price": float(to_money(product.unit_price(item.variant_sku))),
                "status": product.status,
                "added_at": item.added_at.isoformat() if item.added_at else None,
            }
        )
    return {"id": str(wishlist.id), "items": items}
