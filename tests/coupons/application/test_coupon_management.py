"""Coupon commands and the preview query."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.coupons.coupon import Coupon
from storefront.coupons.management import DeactivateCoupon, preview_coupon


class TestCreateCoupon:
    def test_create(self, create_coupon):
        coupon_id = create_coupon(code="welcome10", discount_type="percentage", value=10)
        coupon = current_domain.repository_for(Coupon).get(coupon_id)
        assert coupon.code == "WELCOME10"
        assert coupon.is_active is True

    def test_duplicate_code_any_case(self, create_coupon):
        create_coupon(code="SAVE20")
        with pytest.raises(ValidationError) as exc:
            create_coupon(code="save20")
        assert "code" in exc.value.messages

    def test_unknown_discount_type(self, create_coupon):
        with pytest.raises(ValidationError):
            create_coupon(discount_type="bogo")


class TestDeactivateCoupon:
    def test_deactivated_coupon_no_longer_previews(self, create_coupon):
        coupon_id = create_coupon()
        current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)

        with pytest.raises(ValidationError):
            preview_coupon("SAVE20", 100)


class TestPreviewCoupon:
    def test_preview_fixed(self, create_coupon):
        create_coupon(minimum_purchase=100)
        assert preview_coupon("save20", 120) == {"code": "SAVE20", "discount": 20.0, "applies_to": "subtotal"}

    def test_preview_below_minimum(self, create_coupon):
        create_coupon(minimum_purchase=100)
        with pytest.raises(ValidationError):
            preview_coupon("SAVE20", 90)

    def test_preview_unknown_code(self):
        with pytest.raises(ValidationError) as exc:
            preview_coupon("NOPE", 90)
        assert "coupon_code" in exc.value.messages

    def test_preview_shipping_coupon(self, create_coupon):
        create_coupon(code="FREESHIP", discount_type="shipping", value=100)
        assert preview_coupon("FREESHIP", 20)["discount"] == 5.99
