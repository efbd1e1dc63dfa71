"""Cart management: commands, handler and the cart view."""

from decimal import Decimal

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.config import PricingPolicy
from storefront.coupons.evaluator import SHIPPING, evaluate, find_coupon
from storefront.domain import storefront
from storefront.exceptions import InsufficientStock
from storefront.ordering.cart.cart import Cart
from storefront.ordering.pricing import PricedLine, calculate_totals, shipping_for, to_decimal

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ApplyCouponToCart:
    customer_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@storefront.command(part_of="Cart")
class RemoveCouponFromCart:
    customer_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    customer_id = Identifier(required=True)


def find_cart(customer_id):
    """The customer's cart, or None when they have none."""
    carts = current_domain.repository_for(Cart)._dao.query.filter(customer_id=str(customer_id)).all().items
    return carts[0] if carts else None


def get_cart(customer_id):
    cart = find_cart(customer_id)
    if cart is None:
        raise ObjectNotFoundError(f"Cart for customer `{customer_id}` does not exist")
    return cart


def delete_cart(cart):
    current_domain.repository_for(Cart)._dao.delete(cart)


def _ensure_supply(product, variant_sku, quantity):
    record = product.stock_record(variant_sku)
    if not record.can_supply(quantity):
        raise InsufficientStock(
            {"quantity": [f"Only {record.available()} units of {variant_sku or product.sku} available"]}
        )


def add_item_to_cart(customer_id, product_id, variant_sku, quantity):
    """Add a product to the customer's cart, creating the cart on first use."""
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_purchasable():
        raise ValidationError({"product_id": [f"Product {product.name} is not available for purchase"]})

    variant_sku = variant_sku or None
    unit_price = product.unit_price(variant_sku)

    cart = find_cart(customer_id) or Cart.create(customer_id)
    existing = cart.find_item(product.id, variant_sku)
    _ensure_supply(product, variant_sku, quantity + (existing.quantity if existing else 0))

    item_id = cart.add_item(
        product_id=product.id,
        variant_sku=variant_sku,
        quantity=quantity,
        unit_price=float(unit_price),
    )
    current_domain.repository_for(Cart).add(cart)
    return item_id


def _cart_lines(cart):
    return [PricedLine(unit_price=to_decimal(item.unit_price), quantity=item.quantity) for item in cart.items]


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        return add_item_to_cart(command.customer_id, command.product_id, command.variant_sku, command.quantity)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = get_cart(command.customer_id)
        item = cart.item(command.item_id)

        product = current_domain.repository_for(Product).get(item.product_id)
        _ensure_supply(product, item.variant_sku, command.quantity)

        cart.update_item_quantity(command.item_id, command.quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = get_cart(command.customer_id)
        cart.remove_item(command.item_id)
        if cart.is_empty():
            delete_cart(cart)
        else:
            current_domain.repository_for(Cart).add(cart)

    @handle(ApplyCouponToCart)
    def apply_coupon(self, command):
        cart = get_cart(command.customer_id)
        if cart.is_empty():
            raise ValidationError({"cart": ["Cart is empty"]})

        policy = PricingPolicy.from_env()
        subtotal = calculate_totals(_cart_lines(cart), policy).subtotal
        coupon = find_coupon(command.coupon_code)
        evaluate(coupon, subtotal, shipping=shipping_for(subtotal, policy), customer_id=command.customer_id)

        cart.apply_coupon(coupon.code)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveCouponFromCart)
    def remove_coupon(self, command):
        cart = get_cart(command.customer_id)
        cart.remove_coupon()
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = find_cart(command.customer_id)
        if cart is not None:
            delete_cart(cart)


def cart_view(customer_id, policy=None):
    """Cart contents with totals; an empty cart for customers without one."""
    policy = policy or PricingPolicy.from_env()
    cart = find_cart(customer_id)
    if cart is None:
        return {
            "id": None,
            "items": [],
            "coupon_code": None,
            "coupon_error": None,
            "totals": calculate_totals([], policy).as_dict(),
        }

    lines = _cart_lines(cart)
    subtotal = calculate_totals(lines, policy).subtotal

    discount = shipping_discount = Decimal("0")
    coupon_error = None
    if cart.coupon_code:
        try:
            granted = evaluate(
                find_coupon(cart.coupon_code),
                subtotal,
                shipping=shipping_for(subtotal, policy),
                customer_id=customer_id,
            )
        except ValidationError as exc:
            coupon_error = exc.messages.get("coupon_code", ["Coupon no longer applies"])[0]
            logger.info("Cart coupon no longer applies", cart_id=str(cart.id), coupon_code=cart.coupon_code)
        else:
            if granted.applies_to == SHIPPING:
                shipping_discount = granted.amount
            else:
                discount = granted.amount

    totals = calculate_totals(lines, policy, discount=discount, shipping_discount=shipping_discount)
    return {
        "id": str(cart.id),
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "variant_sku": item.variant_sku,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": float(allocation.line_total),
            }
            for item, allocation in zip(cart.items, totals.lines, strict=True)
        ],
        "coupon_code": cart.coupon_code,
        "coupon_error": coupon_error,
        "totals": totals.as_dict(),
    }
