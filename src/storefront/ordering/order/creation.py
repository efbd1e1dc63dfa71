"""Order placement: command and handler.

Placing an order validates and prices every line from the catalogue,
applies the coupon, reserves stock (all lines or none), persists the order
snapshot, clears the customer's cart, records coupon usage and finally
starts the online payment when the payment method needs one.
"""

import json
from decimal import Decimal

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.config import PricingPolicy
from storefront.coupons.coupon import Coupon
from storefront.coupons.evaluator import SHIPPING, evaluate, find_coupon
from storefront.domain import storefront
from storefront.exceptions import InsufficientStock
from storefront.notifications.notify import ORDER_CONFIRMATION, notify
from storefront.ordering.cart.items import delete_cart, find_cart
from storefront.ordering.order.order import (
    Address,
    AppliedDiscount,
    Order,
    OrderItem,
    OrderPricing,
)
from storefront.ordering.order.settlement import stock_ledger
from storefront.ordering.pricing import PricedLine, calculate_totals, shipping_for
from storefront.payments.gateway import gateway_for_method, get_gateway

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text()  # JSON: [{"product_id", "variant_sku", "quantity"}]; the cart when absent
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    shipping_method = String(max_length=50, default="standard")
    payment_method = String(required=True, max_length=20)
    coupon_code = String(max_length=50)
    notes = Text()


def _load_json(value, field):
    if value is None or not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        raise ValidationError({field: [f"{field} must be valid JSON"]}) from None


_ADDRESS_FIELDS = ("name", "street", "city", "state", "postal_code", "country", "phone")


def _address(value, field):
    data = _load_json(value, field)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError({field: [f"{field} must be an object"]})
    return Address(**{key: data.get(key) for key in _ADDRESS_FIELDS})


def _requested_items(command, cart):
    items = _load_json(command.items, "items")
    if items is None and cart is not None:
        items = [
            {"product_id": str(i.product_id), "variant_sku": i.variant_sku, "quantity": i.quantity}
            for i in cart.items
        ]
    if not items:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    for item in items:
        quantity = item.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": ["Each item needs a positive whole quantity"]})
        if not item.get("product_id"):
            raise ValidationError({"items": ["Each item needs a product_id"]})
    return items


def _price_items(items):
    """Validate each requested line against the catalogue and price it."""
    repo = current_domain.repository_for(Product)
    priced = []
    for item in items:
        try:
            product = repo.get(item["product_id"])
        except ObjectNotFoundError:
            raise ValidationError({"items": [f"Product {item['product_id']} not found"]}) from None

        if not product.is_purchasable():
            raise ValidationError({"items": [f"Product {product.name} is not available for purchase"]})

        variant_sku = item.get("variant_sku") or None
        variant = product.find_variant(variant_sku) if variant_sku else None
        record = product.stock_record(variant_sku)
        if not record.can_supply(item["quantity"]):
            raise InsufficientStock(
                {"items": [f"Insufficient stock for {product.name}: {record.available()} available"]}
            )

        priced.append(
            {
                "product": product,
                "variant_sku": variant_sku,
                "sku": variant.sku if variant else product.sku,
                "name": f"{product.name} ({variant.name})" if variant and variant.name else product.name,
                "quantity": item["quantity"],
                "unit_price": product.unit_price(variant_sku),
                "original_price": product.original_price(variant_sku),
            }
        )
    return priced


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        policy = PricingPolicy.from_env()
        cart = find_cart(command.customer_id)
        priced = _price_items(_requested_items(command, cart))

        lines = [PricedLine(unit_price=p["unit_price"], quantity=p["quantity"]) for p in priced]
        subtotal = calculate_totals(lines, policy).subtotal

        coupon = None
        granted = None
        coupon_code = command.coupon_code or (cart.coupon_code if cart else None)
        if coupon_code:
            coupon = find_coupon(coupon_code)
            granted = evaluate(
                coupon,
                subtotal,
                shipping=shipping_for(subtotal, policy),
                customer_id=command.customer_id,
            )

        discount = shipping_discount = Decimal("0")
        if granted is not None:
            if granted.applies_to == SHIPPING:
                shipping_discount = granted.amount
            else:
                discount = granted.amount
        totals = calculate_totals(lines, policy, discount=discount, shipping_discount=shipping_discount)

        order_items = [
            OrderItem(
                product_id=str(p["product"].id),
                variant_sku=p["variant_sku"],
                sku=p["sku"],
                name=p["name"],
                quantity=p["quantity"],
                unit_price=float(p["unit_price"]),
                original_price=float(p["original_price"]),
                line_total=float(allocation.line_total),
                discount=float(allocation.discount),
                tax=float(allocation.tax),
            )
            for p, allocation in zip(priced, totals.lines, strict=True)
        ]

        discounts = []
        if granted is not None:
            discounts.append(
                AppliedDiscount(
                    code=granted.code,
                    discount_type=coupon.discount_type,
                    applies_to=granted.applies_to,
                    amount=float(totals.shipping_discount if granted.applies_to == SHIPPING else totals.discount),
                )
            )

        order = Order.place(
            customer_id=command.customer_id,
            items=order_items,
            discounts=discounts,
            shipping_address=_address(command.shipping_address, "shipping_address"),
            billing_address=_address(command.billing_address, "billing_address"),
            shipping_method=command.shipping_method,
            payment_method=command.payment_method,
            pricing=OrderPricing(
                subtotal=float(totals.subtotal),
                shipping=float(totals.shipping),
                tax=float(totals.tax),
                discount=float(totals.discount),
                grand_total=float(totals.grand_total),
                currency=policy.currency,
            ),
            notes=command.notes,
        )

        stock_ledger().reserve_all(order.stock_lines())

        repo = current_domain.repository_for(Order)
        repo.add(order)

        if cart is not None:
            delete_cart(cart)

        if coupon is not None:
            coupon.record_usage(command.customer_id, str(order.id), discounts[0].amount)
            current_domain.repository_for(Coupon).add(coupon)

        payment_intent = self._start_payment(order)
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            grand_total=order.pricing.grand_total,
            payment_status=order.payment.status,
        )
        notify(ORDER_CONFIRMATION, order)

        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "total": order.pricing.grand_total,
            "payment_status": order.payment.status,
            "payment_intent": payment_intent,
        }

    @staticmethod
    def _start_payment(order):
        gateway_name = gateway_for_method(order.payment.method)
        if gateway_name is None:
            return None

        gateway = get_gateway(gateway_name)
        intent = gateway.create_payment(
            amount=order.pricing.grand_total,
            currency=order.pricing.currency,
            customer_ref=str(order.customer_id),
            metadata={"order_id": str(order.id), "order_number": order.order_number},
        )
        if not intent.success:
            logger.warning(
                "Payment initiation failed",
                order_id=str(order.id),
                gateway=gateway_name.value,
                reason=intent.failure_reason,
            )
            order.mark_payment_failed(intent.failure_reason)
            return None

        order.attach_payment_intent(gateway_name.value, intent.intent_id, intent.client_secret)
        return {"id": intent.intent_id, "client_secret": intent.client_secret}
