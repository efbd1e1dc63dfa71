"""Pydantic request schemas and the response envelope for the storefront API.

Bodies travel as camelCase JSON; the models accept either spelling.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def camelize(value):
    """Recursively rename dict keys from snake_case to camelCase."""
    if isinstance(value, dict):
        return {to_camel(key) if isinstance(key, str) else key: camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


def ok(data=None, message: str | None = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = camelize(data)
    if message:
        body["message"] = message
    return body


def failure(error, message: str | None = None) -> dict:
    body = {"success": False, "error": error}
    if message:
        body["message"] = message
    return body


# --- Catalogue ---


class CreateProductRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "sku": "TSHIRT-001",
                    "name": "Classic T-Shirt",
                    "category": "apparel",
                    "basePrice": 25.0,
                    "quantity": 100,
                    "activate": True,
                }
            ]
        },
    )

    sku: str = Field(..., max_length=50)
    name: str = Field(..., max_length=200)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    base_price: float = Field(..., ge=0)
    currency: str = Field("USD", max_length=3)
    inventory_type: str = Field("finite", max_length=10)
    quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(5, ge=0)
    allow_backorders: bool = False
    activate: bool = False


class AddVariantRequest(CamelModel):
    sku: str = Field(..., max_length=50)
    name: str | None = Field(None, max_length=200)
    attributes: dict | None = None
    price_adjustment: float = 0.0
    quantity: int = Field(0, ge=0)
    allow_backorders: bool | None = None


class ProductSaleRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"examples": [{"saleType": "percentage", "saleValue": 20}]},
    )

    sale_type: str = Field(..., max_length=10)
    sale_value: float = Field(..., ge=0)
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class ProductStatusRequest(CamelModel):
    status: str = Field(..., max_length=20)


class ReceiveStockRequest(CamelModel):
    variant_sku: str | None = Field(None, max_length=50)
    quantity: int = Field(..., ge=1)


# --- Cart ---


class AddToCartRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"examples": [{"productId": "prod-001", "variantSku": "TSHIRT-001-M", "quantity": 2}]},
    )

    product_id: str
    variant_sku: str | None = Field(None, max_length=50)
    quantity: int = Field(1, ge=1)


class UpdateCartItemRequest(CamelModel):
    quantity: int = Field(..., ge=1)


class CouponCodeRequest(CamelModel):
    coupon_code: str = Field(..., max_length=50)


# --- Orders ---


class AddressSchema(CamelModel):
    name: str | None = Field(None, max_length=100)
    street: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str = Field(..., max_length=20)
    country: str = Field(..., max_length=100)
    phone: str | None = Field(None, max_length=30)


class OrderLineRequest(CamelModel):
    product_id: str
    variant_sku: str | None = Field(None, max_length=50)
    quantity: int = Field(..., ge=1)


class PlaceOrderRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "items": [{"productId": "prod-001", "quantity": 2}],
                    "shippingAddress": {
                        "name": "Jane Doe",
                        "street": "123 Elm Street",
                        "city": "Springfield",
                        "state": "IL",
                        "postalCode": "62701",
                        "country": "US",
                    },
                    "paymentMethod": "credit_card",
                    "couponCode": "SAVE20",
                }
            ]
        },
    )

    items: list[OrderLineRequest] | None = None
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    shipping_method: str = Field("standard", max_length=50)
    payment_method: str = Field(..., max_length=20)
    coupon_code: str | None = Field(None, max_length=50)
    notes: str | None = None


class CancelOrderRequest(CamelModel):
    reason: str | None = Field(None, max_length=500)


class ShipOrderRequest(CamelModel):
    carrier: str | None = Field(None, max_length=100)
    tracking_number: str | None = Field(None, max_length=100)


class RefundOrderRequest(CamelModel):
    reason: str | None = Field(None, max_length=500)


# --- Coupons ---


class CreateCouponRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"code": "SAVE20", "discountType": "fixed", "value": 20, "minimumPurchase": 100, "userUsageLimit": 1}
            ]
        },
    )

    code: str = Field(..., max_length=50)
    description: str | None = Field(None, max_length=255)
    discount_type: str = Field(..., max_length=20)
    value: float = Field(..., ge=0)
    minimum_purchase: float = Field(0.0, ge=0)
    max_discount_amount: float | None = Field(None, ge=0)
    usage_limit: int | None = Field(None, ge=1)
    user_usage_limit: int | None = Field(None, ge=1)
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class ValidateCouponRequest(CamelModel):
    code: str = Field(..., max_length=50)
    subtotal: float = Field(..., ge=0)


# --- Reviews ---


class SubmitReviewRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [{"productId": "prod-001", "rating": 5, "title": "Great fit", "text": "Soft and true to size."}]
        },
    )

    product_id: str
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., max_length=200)
    text: str
    images: list[str] = Field(default_factory=list, max_length=5)


class VoteRequest(CamelModel):
    vote_type: str = Field(..., max_length=10)


class ModerateReviewRequest(CamelModel):
    action: str = Field(..., max_length=10)
    notes: str | None = None


# --- Wishlist ---


class WishlistItemRequest(CamelModel):
    product_id: str
    variant_sku: str | None = Field(None, max_length=50)


class MoveToCartRequest(CamelModel):
    product_id: str
    variant_sku: str | None = Field(None, max_length=50)
    quantity: int = Field(1, ge=1)


# --- Customers ---


class RegisterCustomerRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [{"email": "jane.doe@example.com", "firstName": "Jane", "lastName": "Doe"}]
        },
    )

    email: str = Field(..., max_length=254)
    first_name: str = Field(..., max_length=100)
    last_name: str | None = Field(None, max_length=100)


class RedeemPointsRequest(CamelModel):
    points: int = Field(..., ge=1)
    reason: str | None = Field(None, max_length=255)


# --- Payments ---


class ConfigureGatewayRequest(CamelModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
