"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue in Draft status."""

    __version__ = 1

    product_id: Identifier(required=True)
    sku: String(required=True)
    name: String(required=True)
    base_price: Float(required=True)
    quantity: Integer()
    created_at: DateTime(required=True)


@storefront.event(part_of="Product")
class VariantAdded:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String(required=True)
    price_adjustment: Float()
    quantity: Integer()


@storefront.event(part_of="Product")
class ProductSaleScheduled:
    """A percentage or fixed-amount sale was put on a product."""

    __version__ = 1

    product_id: Identifier(required=True)
    sale_type: String(required=True)
    sale_value: Float(required=True)
    starts_at: DateTime()
    ends_at: DateTime()


@storefront.event(part_of="Product")
class ProductSaleCleared:
    __version__ = 1

    product_id: Identifier(required=True)


@storefront.event(part_of="Product")
class ProductStatusChanged:
    __version__ = 1

    product_id: Identifier(required=True)
    previous_status: String()
    new_status: String(required=True)


# Stock movements


@storefront.event(part_of="Product")
class StockReceived:
    """New units arrived at the store."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    quantity: Integer(required=True)
    new_quantity: Integer(required=True)


@storefront.event(part_of="Product")
class StockReserved:
    """Units were held for an order."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    quantity: Integer(required=True)
    reserved: Integer(required=True)
    available: Integer()


@storefront.event(part_of="Product")
class StockSold:
    """Reserved units were finalized as sold."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    quantity: Integer(required=True)
    new_quantity: Integer()
    total_sold: Integer(required=True)


@storefront.event(part_of="Product")
class StockReleased:
    """A reservation was dropped without selling."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    quantity: Integer(required=True)
    reserved: Integer(required=True)


@storefront.event(part_of="Product")
class StockRestocked:
    """Sold units came back to the shelf."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    quantity: Integer(required=True)
    new_quantity: Integer()


@storefront.event(part_of="Product")
class LowStockDetected:
    """Available stock fell to or below the record's threshold."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_sku: String()
    available: Integer(required=True)
    threshold: Integer(required=True)
    detected_at: DateTime(required=True)


@storefront.event(part_of="Product")
class ProductRatingUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    average: Float(required=True)
    count: Integer(required=True)
