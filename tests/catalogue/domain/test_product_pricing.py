"""Unit prices, sales and variant adjustments on the Product aggregate."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.product.events import ProductCreated
from storefront.catalogue.product.product import Price, Product, ProductStatus, slugify


def _product(**overrides):
    defaults = {"sku": "TSHIRT-001", "name": "Classic T-Shirt", "base_price": 100.0, "quantity": 10}
    defaults.update(overrides)
    return Product.create(**defaults)


class TestProductCreation:
    def test_new_product_is_draft(self):
        product = _product()
        assert product.status == ProductStatus.DRAFT.value
        assert product.is_purchasable() is False

    def test_slug_is_derived_from_name(self):
        assert _product(name="Classic T-Shirt, Blue!").slug == "classic-t-shirt-blue"

    def test_explicit_slug_is_kept(self):
        assert _product(slug="tee").slug == "tee"

    def test_rating_starts_empty(self):
        product = _product()
        assert product.rating.average == 0.0
        assert product.rating.count == 0

    def test_product_created_event(self):
        product = _product()
        assert isinstance(product._events[-1], ProductCreated)

    def test_unknown_status_is_rejected(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.change_status("archived")

    def test_slugify_collapses_separators(self):
        assert slugify("  Hello   World__Again ") == "hello-world-again"


class TestUnitPrice:
    def test_base_price_without_sale(self):
        assert _product().unit_price() == Decimal("100")

    def test_percentage_sale(self):
        product = _product()
        product.schedule_sale("percentage", 20)
        assert product.unit_price() == Decimal("80")
        assert product.original_price() == Decimal("100")

    def test_fixed_sale_never_goes_negative(self):
        product = _product(base_price=15.0)
        product.schedule_sale("fixed", 20)
        assert product.unit_price() == Decimal("0")

    def test_sale_outside_window_is_ignored(self):
        product = _product()
        starts = datetime.now(UTC) + timedelta(days=1)
        product.schedule_sale("percentage", 50, starts_at=starts, ends_at=starts + timedelta(days=2))

        assert product.unit_price() == Decimal("100")
        assert product.unit_price(at=starts + timedelta(hours=1)) == Decimal("50")

    def test_expired_sale_is_ignored(self):
        product = _product()
        ends = datetime.now(UTC) - timedelta(minutes=1)
        product.schedule_sale("fixed", 10, starts_at=ends - timedelta(days=1), ends_at=ends)
        assert product.unit_price() == Decimal("100")

    def test_clear_sale(self):
        product = _product()
        product.schedule_sale("percentage", 20)
        product.clear_sale()
        assert product.unit_price() == Decimal("100")
        assert product.price.sale_type is None

    def test_variant_adjustment_applies_before_sale(self):
        product = _product()
        product.add_variant(sku="TSHIRT-001-XL", name="XL", price_adjustment=20.0, quantity=3)
        product.schedule_sale("percentage", 50)

        assert product.original_price("TSHIRT-001-XL") == Decimal("120")
        assert product.unit_price("TSHIRT-001-XL") == Decimal("60")

    def test_unknown_variant_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _product().unit_price("NOPE")
        assert "variant_sku" in exc.value.messages


class TestPriceInvariants:
    def test_percentage_over_100_is_rejected(self):
        with pytest.raises(ValidationError):
            Price(base=10.0, sale_type="percentage", sale_value=120)

    def test_sale_needs_a_value(self):
        with pytest.raises(ValidationError):
            Price(base=10.0, sale_type="fixed")

    def test_sale_window_must_be_ordered(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            Price(
                base=10.0,
                sale_type="fixed",
                sale_value=1,
                sale_starts_at=now,
                sale_ends_at=now - timedelta(days=1),
            )

    def test_unknown_sale_type_is_rejected(self):
        with pytest.raises(ValidationError):
            _product().schedule_sale("bogo", 10)


class TestVariants:
    def test_duplicate_variant_sku_is_rejected(self):
        product = _product()
        product.add_variant(sku="V-1", quantity=1)
        with pytest.raises(ValidationError):
            product.add_variant(sku="V-1", quantity=1)

    def test_variant_inherits_backorder_policy(self):
        product = _product(allow_backorders=True)
        variant = product.add_variant(sku="V-1", quantity=1)
        assert variant.inventory.allow_backorders is True
