"""Read-side helpers for orders: customer history, detail and tracking."""

from protean.utils.globals import current_domain

from storefront.exceptions import PermissionDenied
from storefront.ordering.order.order import Order


def _iso(value):
    return value.isoformat() if value else None


def _address_view(address):
    return address.to_dict() if address else None


def order_view(order):
    payment = order.payment
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_id": str(order.customer_id),
        "status": order.status,
        "items": [
            {
                "product_id": str(item.product_id),
                "variant_sku": item.variant_sku,
                "sku": item.sku,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "original_price": item.original_price,
                "line_total": item.line_total,
                "discount": item.discount,
                "tax": item.tax,
            }
            for item in order.items
        ],
        "discounts": [
            {"code": d.code, "discount_type": d.discount_type, "applies_to": d.applies_to, "amount": d.amount}
            for d in order.discounts
        ],
        "shipping_address": _address_view(order.shipping_address),
        "billing_address": _address_view(order.billing_address),
        "shipping_method": order.shipping_method,
        "pricing": {
            "subtotal": order.pricing.subtotal,
            "shipping": order.pricing.shipping,
            "tax": order.pricing.tax,
            "discount": order.pricing.discount,
            "grand_total": order.pricing.grand_total,
            "currency": order.pricing.currency,
        },
        "payment": {
            "method": payment.method,
            "status": payment.status,
            "gateway": payment.gateway,
            "transaction_id": payment.transaction_id,
            "amount": payment.amount,
            "paid_at": _iso(payment.paid_at),
            "refund_id": payment.refund_id,
        },
        "carrier": order.carrier,
        "tracking_number": order.tracking_number,
        "notes": order.notes,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def tracking_view(order):
    return {
        "order_number": order.order_number,
        "status": order.status,
        "carrier": order.carrier,
        "tracking_number": order.tracking_number,
        "shipped_at": _iso(order.shipped_at),
        "delivered_at": _iso(order.delivered_at),
    }


def get_order_for(order_id, customer_id, is_admin=False):
    """Load an order the caller may see: their own, or any for an admin."""
    order = current_domain.repository_for(Order).get(order_id)
    if not is_admin and str(order.customer_id) != str(customer_id):
        raise PermissionDenied({"order_id": ["You can only view your own orders"]})
    return order


def list_customer_orders(customer_id, status=None, page=1, limit=10):
    filters = {"customer_id": str(customer_id)}
    if status:
        filters["status"] = status

    result = (
        current_domain.repository_for(Order)
        ._dao.query.filter(**filters)
        .order_by("-created_at")
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": [order_view(o) for o in result.items],
        "total": result.total,
        "page": page,
        "limit": limit,
    }


def find_by_payment_reference(reference):
    if not reference:
        return None
    matches = current_domain.repository_for(Order)._dao.query.filter(payment_reference=reference).all().items
    return matches[0] if matches else None
