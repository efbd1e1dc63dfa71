"""Stock counters on products and variants: reserve, sell, release, restock."""

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.product.events import LowStockDetected
from storefront.catalogue.product.product import Product
from storefront.exceptions import InsufficientStock


def _product(**overrides):
    defaults = {"sku": "MUG-001", "name": "Mug", "base_price": 12.0, "quantity": 3, "low_stock_threshold": 0}
    defaults.update(overrides)
    return Product.create(**defaults)


class TestReserve:
    def test_reserve_within_stock(self):
        product = _product()
        product.reserve(2)
        assert product.inventory.reserved == 2
        assert product.available_stock() == 1

    def test_reserve_beyond_stock_without_backorders(self):
        product = _product()
        with pytest.raises(InsufficientStock):
            product.reserve(5)
        assert product.inventory.reserved == 0

    def test_insufficient_stock_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            _product().reserve(4)

    def test_reserve_beyond_stock_with_backorders(self):
        product = _product(allow_backorders=True)
        product.reserve(5)
        assert product.inventory.reserved == 5
        assert product.available_stock() == -2

    def test_infinite_inventory_never_runs_out(self):
        product = _product(inventory_type="infinite", quantity=0)
        product.reserve(1000)
        assert product.inventory.reserved == 1000
        assert product.available_stock() is None

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError):
            _product().reserve(quantity)

    def test_low_stock_event(self):
        product = _product(quantity=10, low_stock_threshold=5)
        product.reserve(6)
        assert any(isinstance(e, LowStockDetected) for e in product._events)

    def test_no_low_stock_event_above_threshold(self):
        product = _product(quantity=10, low_stock_threshold=5)
        product.reserve(2)
        assert not any(isinstance(e, LowStockDetected) for e in product._events)


class TestSellReleaseRestock:
    def test_sell_moves_reserved_to_sold(self):
        product = _product()
        product.reserve(2)
        product.sell(2)
        assert product.inventory.quantity == 1
        assert product.inventory.reserved == 0
        assert product.inventory.sold == 2

    def test_cannot_sell_more_than_reserved(self):
        product = _product()
        product.reserve(1)
        with pytest.raises(ValidationError):
            product.sell(2)

    def test_release_keeps_quantity(self):
        product = _product()
        product.reserve(2)
        product.release(2)
        assert product.inventory.quantity == 3
        assert product.inventory.reserved == 0

    def test_cannot_release_more_than_reserved(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.release(1)

    def test_restock_reverses_a_sale(self):
        product = _product()
        product.reserve(2)
        product.sell(2)
        product.restock(2)
        assert product.inventory.quantity == 3
        assert product.inventory.sold == 0

    def test_cannot_restock_more_than_sold(self):
        with pytest.raises(ValidationError):
            _product().restock(1)

    def test_sell_on_infinite_inventory_keeps_quantity(self):
        product = _product(inventory_type="infinite", quantity=0)
        product.reserve(4)
        product.sell(4)
        assert product.inventory.quantity == 0
        assert product.inventory.sold == 4

    def test_counters_stay_consistent(self):
        product = _product(quantity=10)
        product.reserve(4)
        product.sell(1)
        product.release(2)
        product.reserve(5)

        inventory = product.inventory
        assert 0 <= inventory.reserved <= inventory.quantity
        assert inventory.quantity == 9
        assert inventory.reserved == 6


class TestVariantStock:
    def test_variant_records_are_independent(self):
        product = _product(quantity=1)
        product.add_variant(sku="MUG-001-RED", quantity=4)

        product.reserve(3, variant_sku="MUG-001-RED")

        assert product.available_stock("MUG-001-RED") == 1
        assert product.inventory.reserved == 0

    def test_product_level_availability_sums_variants(self):
        product = _product(quantity=1)
        product.add_variant(sku="MUG-001-RED", quantity=4)
        product.add_variant(sku="MUG-001-BLUE", quantity=2)
        assert product.available_stock() == 7

    def test_receive_stock_on_variant(self):
        product = _product()
        product.add_variant(sku="MUG-001-RED", quantity=0)
        product.receive_stock(5, variant_sku="MUG-001-RED")
        assert product.available_stock("MUG-001-RED") == 5

    def test_unknown_variant(self):
        with pytest.raises(ValidationError):
            _product().reserve(1, variant_sku="MISSING")
