"""Product aggregate root with Variant entity and pricing/stock value objects.

Stock Model (per record: the product itself and each variant):
    quantity:  Units the store holds (negative only while backordered)
    reserved:  Units held for orders that have not been delivered yet
    sold:      Units that have left the store
    available: quantity - reserved (what can still be promised)

Stock moves through reserve -> sell (delivery) or reserve -> release
(cancellation). Infinite inventory never runs out; it still counts
reservations and sales.
"""

import json
import re
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.catalogue.product.events import (
    LowStockDetected,
    ProductCreated,
    ProductRatingUpdated,
    ProductSaleCleared,
    ProductSaleScheduled,
    ProductStatusChanged,
    StockReceived,
    StockReleased,
    StockReserved,
    StockRestocked,
    StockSold,
    VariantAdded,
)
from storefront.domain import storefront
from storefront.exceptions import InsufficientStock


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class SaleType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class InventoryType(Enum):
    INFINITE = "infinite"
    FINITE = "finite"


def _aware(value):
    """Treat naive datetimes as UTC so comparisons never mix kinds."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def slugify(text):
    slug = re.sub(r"[^\w\s-]", "", text.lower()).strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Product")
class Price:
    """Base price with an optional, time-bounded sale."""

    base: Float(required=True, min_value=0.0)
    currency: String(max_length=3, default="USD")
    sale_type: String(choices=SaleType)
    sale_value: Float(min_value=0.0)
    sale_starts_at: DateTime()
    sale_ends_at: DateTime()

    @invariant.post
    def sale_must_be_complete(self):
        if self.sale_type and self.sale_value is None:
            raise ValidationError({"sale_value": ["A sale needs a value"]})

    @invariant.post
    def percentage_sale_cannot_exceed_100(self):
        if self.sale_type == SaleType.PERCENTAGE.value and (self.sale_value or 0) > 100:
            raise ValidationError({"sale_value": ["Percentage sale cannot exceed 100"]})

    @invariant.post
    def sale_window_must_be_ordered(self):
        if self.sale_starts_at and self.sale_ends_at and _aware(self.sale_ends_at) < _aware(self.sale_starts_at):
            raise ValidationError({"sale_ends_at": ["Sale cannot end before it starts"]})

    def sale_active(self, at=None):
        if not self.sale_type:
            return False
        at = _aware(at or datetime.now(UTC))
        if self.sale_starts_at and at < _aware(self.sale_starts_at):
            return False
        if self.sale_ends_at and at > _aware(self.sale_ends_at):
            return False
        return True

    def apply_sale(self, amount, at=None):
        """Return ``amount`` (a Decimal) reduced by the sale active at ``at``."""
        if not self.sale_active(at):
            return amount
        value = Decimal(str(self.sale_value))
        if self.sale_type == SaleType.PERCENTAGE.value:
            return amount * (Decimal("1") - value / Decimal("100"))
        return max(Decimal("0"), amount - value)


@storefront.value_object(part_of="Product")
class Inventory:
    """Stock counters for one sellable record (a product or a variant)."""

    inventory_type: String(choices=InventoryType, default=InventoryType.FINITE.value)
    quantity: Integer(default=0)
    reserved: Integer(default=0, min_value=0)
    sold: Integer(default=0, min_value=0)
    low_stock_threshold: Integer(default=5, min_value=0)
    allow_backorders: Boolean(default=False)

    @invariant.post
    def reserved_cannot_exceed_quantity(self):
        if self.is_infinite() or self.allow_backorders:
            return
        if (self.reserved or 0) > (self.quantity or 0):
            raise ValidationError({"reserved": ["Reserved stock cannot exceed quantity"]})

    def is_infinite(self):
        return self.inventory_type == InventoryType.INFINITE.value

    def available(self):
        """Units still promisable, or None when the record never runs out."""
        if self.is_infinite():
            return None
        return (self.quantity or 0) - (self.reserved or 0)

    def can_supply(self, quantity):
        if self.is_infinite() or self.allow_backorders:
            return True
        return quantity <= self.available()

    def replace(self, **changes):
        return Inventory(**{**self.to_dict(), **changes})


@storefront.value_object(part_of="Product")
class ProductRating:
    """Rating summary derived from approved reviews."""

    average: Float(default=0.0)
    count: Integer(default=0)
    distribution: Text()  # JSON: {"1": 0, ..., "5": 0}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Product")
class Variant:
    """A sellable variant with its own SKU and stock record."""

    sku: String(required=True, max_length=50)
    name: String(max_length=200)
    attributes: Text()  # JSON: {"color": ..., "size": ...}
    price_adjustment: Float(default=0.0)
    inventory: ValueObject(Inventory)
    is_active: Boolean(default=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Product:
    sku: String(required=True, max_length=50)
    slug: String(required=True, max_length=200)
    name: String(required=True, max_length=200)
    description: Text()
    category: String(max_length=100)
    status: String(choices=ProductStatus, default=ProductStatus.DRAFT.value)
    price: ValueObject(Price, required=True)
    inventory: ValueObject(Inventory)
    variants: HasMany(Variant)
    rating: ValueObject(ProductRating)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def variant_skus_must_be_unique(self):
        skus = [v.sku for v in self.variants]
        if len(skus) != len(set(skus)):
            raise ValidationError({"variants": ["Variant SKUs must be unique within a product"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        sku,
        name,
        base_price,
        currency="USD",
        slug=None,
        description=None,
        category=None,
        inventory_type=InventoryType.FINITE.value,
        quantity=0,
        low_stock_threshold=5,
        allow_backorders=False,
    ):
        now = datetime.now(UTC)
        product = cls(
            sku=sku,
            slug=slug or slugify(name),
            name=name,
            description=description,
            category=category,
            price=Price(base=base_price, currency=currency),
            inventory=Inventory(
                inventory_type=inventory_type,
                quantity=quantity,
                low_stock_threshold=low_stock_threshold,
                allow_backorders=allow_backorders,
            ),
            rating=ProductRating(average=0.0, count=0, distribution=empty_distribution()),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                sku=sku,
                name=name,
                base_price=base_price,
                quantity=quantity,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Catalogue management
    # -------------------------------------------------------------------
    def add_variant(
        self,
        sku,
        name=None,
        price_adjustment=0.0,
        quantity=0,
        attributes=None,
        allow_backorders=None,
        inventory_type=None,
    ):
        variant = Variant(
            sku=sku,
            name=name,
            attributes=json.dumps(attributes) if attributes else None,
            price_adjustment=price_adjustment,
            inventory=Inventory(
                inventory_type=inventory_type or self.inventory.inventory_type,
                quantity=quantity,
                low_stock_threshold=self.inventory.low_stock_threshold,
                allow_backorders=(self.inventory.allow_backorders if allow_backorders is None else allow_backorders),
            ),
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantAdded(
                product_id=str(self.id),
                variant_sku=sku,
                price_adjustment=price_adjustment,
                quantity=quantity,
            )
        )
        return variant

    def schedule_sale(self, sale_type, value, starts_at=None, ends_at=None):
        self.price = Price(
            base=self.price.base,
            currency=self.price.currency,
            sale_type=sale_type,
            sale_value=value,
            sale_starts_at=starts_at,
            sale_ends_at=ends_at,
        )
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductSaleScheduled(
                product_id=str(self.id),
                sale_type=self.price.sale_type,
                sale_value=value,
                starts_at=starts_at,
                ends_at=ends_at,
            )
        )

    def clear_sale(self):
        self.price = Price(base=self.price.base, currency=self.price.currency)
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductSaleCleared(product_id=str(self.id)))

    def change_status(self, status):
        previous = self.status
        self.status = status
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductStatusChanged(
                product_id=str(self.id),
                previous_status=previous,
                new_status=self.status,
            )
        )

    def is_purchasable(self):
        return self.status == ProductStatus.ACTIVE.value

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def find_variant(self, variant_sku):
        variant = next((v for v in self.variants if v.sku == variant_sku), None)
        if variant is None or not variant.is_active:
            raise ValidationError({"variant_sku": [f"Variant {variant_sku} not found"]})
        return variant

    def original_price(self, variant_sku=None):
        """List price before any sale, including the variant adjustment."""
        amount = Decimal(str(self.price.base))
        if variant_sku:
            amount += Decimal(str(self.find_variant(variant_sku).price_adjustment or 0))
        return max(Decimal("0"), amount)

    def unit_price(self, variant_sku=None, at=None):
        """Price charged for one unit right now (or at ``at``)."""
        return self.price.apply_sale(self.original_price(variant_sku), at)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def stock_record(self, variant_sku=None):
        if variant_sku:
            return self.find_variant(variant_sku).inventory
        return self.inventory

    def available_stock(self, variant_sku=None):
        """Available units for one record, or for the whole product.

        At product level the base record and every variant are summed.
        Returns None when any counted record is infinite.
        """
        if variant_sku:
            return self.stock_record(variant_sku).available()

        records = [self.inventory] + [v.inventory for v in self.variants if v.is_active]
        if any(r.is_infinite() for r in records):
            return None
        return sum(r.available() for r in records)

    def _set_stock_record(self, variant_sku, inventory):
        if variant_sku:
            self.find_variant(variant_sku).inventory = inventory
        else:
            self.inventory = inventory
        self.updated_at = datetime.now(UTC)

    @staticmethod
    def _check_quantity(quantity):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

    def _check_low_stock(self, variant_sku, record):
        available = record.available()
        if available is not None and available <= record.low_stock_threshold:
            self.raise_(
                LowStockDetected(
                    product_id=str(self.id),
                    variant_sku=variant_sku,
                    available=available,
                    threshold=record.low_stock_threshold,
                    detected_at=datetime.now(UTC),
                )
            )

    def receive_stock(self, quantity, variant_sku=None):
        self._check_quantity(quantity)
        record = self.stock_record(variant_sku)
        updated = record.replace(quantity=record.quantity + quantity)
        self._set_stock_record(variant_sku, updated)

        self.raise_(
            StockReceived(
                product_id=str(self.id),
                variant_sku=variant_sku,
                quantity=quantity,
                new_quantity=updated.quantity,
            )
        )

    def reserve(self, quantity, variant_sku=None):
        """Hold stock for an order.

        Fails with InsufficientStock when the request exceeds what is
        available, unless the record allows backorders.
        """
        self._check_quantity(quantity)
        record = self.stock_record(variant_sku)
        if not record.can_supply(quantity):
            raise InsufficientStock(
                {
                    "quantity": [
                        f"Insufficient stock for {variant_sku or self.sku}: "
                        f"{record.available()} available, {quantity} requested"
                    ]
                }
            )

        updated = record.replace(reserved=record.reserved + quantity)
        self._set_stock_record(variant_sku, updated)

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                variant_sku=variant_sku,
                quantity=quantity,
                reserved=updated.reserved,
                available=updated.available(),
            )
        )
        self._check_low_stock(variant_sku, updated)

    def sell(self, quantity, variant_sku=None):
        """Finalize a reservation: the units leave the store."""
        self._check_quantity(quantity)
        record = self.stock_record(variant_sku)
        if quantity > record.reserved:
            raise ValidationError(
                {"quantity": [f"Cannot sell {quantity} units of {variant_sku or self.sku}: only {record.reserved} reserved"]}
            )

        new_quantity = record.quantity if record.is_infinite() else record.quantity - quantity
        updated = record.replace(
            quantity=new_quantity,
            reserved=record.reserved - quantity,
            sold=record.sold + quantity,
        )
        self._set_stock_record(variant_sku, updated)

        self.raise_(
            StockSold(
                product_id=str(self.id),
                variant_sku=variant_sku,
                quantity=quantity,
                new_quantity=updated.quantity,
                total_sold=updated.sold,
            )
        )

    def release(self, quantity, variant_sku=None):
        """Drop a reservation without touching the quantity on hand."""
        self._check_quantity(quantity)
        record = self.stock_record(variant_sku)
        if quantity > record.reserved:
            raise ValidationError(
                {
                    "quantity": [
                        f"Cannot release {quantity} units of {variant_sku or self.sku}: only {record.reserved} reserved"
                    ]
                }
            )

        updated = record.replace(reserved=record.reserved - quantity)
        self._set_stock_record(variant_sku, updated)

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                variant_sku=variant_sku,
                quantity=quantity,
                reserved=updated.reserved,
            )
        )

    def restock(self, quantity, variant_sku=None):
        """Reverse a sale, returning the units to the shelf."""
        self._check_quantity(quantity)
        record = self.stock_record(variant_sku)
        if quantity > record.sold:
            raise ValidationError(
                {"quantity": [f"Cannot restock {quantity} units of {variant_sku or self.sku}: only {record.sold} sold"]}
            )

        new_quantity = record.quantity if record.is_infinite() else record.quantity + quantity
        updated = record.replace(quantity=new_quantity, sold=record.sold - quantity)
        self._set_stock_record(variant_sku, updated)

        self.raise_(
            StockRestocked(
                product_id=str(self.id),
                variant_sku=variant_sku,
                quantity=quantity,
                new_quantity=updated.quantity,
            )
        )

    # -------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------
    def update_rating(self, average, count, distribution):
        self.rating = ProductRating(
            average=average,
            count=count,
            distribution=json.dumps(distribution),
        )
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductRatingUpdated(
                product_id=str(self.id),
                average=average,
                count=count,
            )
        )


def empty_distribution():
    return json.dumps({str(star): 0 for star in range(1, 6)})
