"""Coupon validation and discount computation."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.coupons.coupon import Coupon
from storefront.coupons.evaluator import SHIPPING, SUBTOTAL, evaluate, validate


def _coupon(**overrides):
    defaults = {"code": "save20", "discount_type": "fixed", "value": 20.0}
    defaults.update(overrides)
    return Coupon.create(**defaults)


class TestCouponAggregate:
    def test_code_is_upper_cased(self):
        assert _coupon().code == "SAVE20"

    def test_percentage_over_100_rejected(self):
        with pytest.raises(ValidationError):
            _coupon(discount_type="percentage", value=150)

    def test_window_must_be_ordered(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            _coupon(starts_at=now, ends_at=now - timedelta(days=1))

    def test_record_usage(self):
        coupon = _coupon()
        coupon.record_usage("cust-1", "order-1", 20.0)
        assert coupon.used_count == 1
        assert coupon.usage_count_for("cust-1") == 1
        assert coupon.usage_count_for("cust-2") == 0


class TestValidation:
    def test_minimum_purchase_not_met(self):
        coupon = _coupon(minimum_purchase=100)
        with pytest.raises(ValidationError) as exc:
            evaluate(coupon, Decimal("90"))
        assert "coupon_code" in exc.value.messages

    def test_minimum_purchase_met(self):
        coupon = _coupon(minimum_purchase=100)
        assert evaluate(coupon, Decimal("100")).amount == Decimal("20")

    def test_inactive(self):
        coupon = _coupon()
        coupon.deactivate()
        with pytest.raises(ValidationError):
            validate(coupon, Decimal("50"))

    def test_not_started(self):
        coupon = _coupon(starts_at=datetime.now(UTC) + timedelta(days=1))
        with pytest.raises(ValidationError):
            validate(coupon, Decimal("50"))

    def test_expired(self):
        coupon = _coupon(ends_at=datetime.now(UTC) - timedelta(seconds=1))
        with pytest.raises(ValidationError):
            validate(coupon, Decimal("50"))

    def test_global_usage_limit(self):
        coupon = _coupon(usage_limit=1)
        coupon.record_usage("cust-1", "order-1", 20.0)
        with pytest.raises(ValidationError):
            validate(coupon, Decimal("50"), customer_id="cust-2")

    def test_per_customer_limit(self):
        coupon = _coupon(user_usage_limit=1)
        coupon.record_usage("cust-1", "order-1", 20.0)

        with pytest.raises(ValidationError):
            validate(coupon, Decimal("50"), customer_id="cust-1")
        validate(coupon, Decimal("50"), customer_id="cust-2")

    def test_evaluate_never_mutates(self):
        coupon = _coupon()
        evaluate(coupon, Decimal("50"), customer_id="cust-1")
        assert coupon.used_count == 0


class TestDiscountAmounts:
    def test_percentage(self):
        discount = evaluate(_coupon(discount_type="percentage", value=10), Decimal("80"))
        assert discount.amount == Decimal("8")
        assert discount.applies_to == SUBTOTAL

    def test_percentage_capped(self):
        coupon = _coupon(discount_type="percentage", value=50, max_discount_amount=15)
        assert evaluate(coupon, Decimal("100")).amount == Decimal("15")

    def test_fixed_capped_at_subtotal(self):
        assert evaluate(_coupon(value=50), Decimal("30")).amount == Decimal("30")

    def test_free_shipping(self):
        discount = evaluate(_coupon(discount_type="shipping", value=100), Decimal("20"), shipping=Decimal("5.99"))
        assert discount.amount == Decimal("5.99")
        assert discount.applies_to == SHIPPING

    def test_shipping_coupon_without_shipping_charge(self):
        discount = evaluate(_coupon(discount_type="shipping", value=100), Decimal("80"), shipping=Decimal("0"))
        assert discount.amount == Decimal("0")
