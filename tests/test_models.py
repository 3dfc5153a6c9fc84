from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from coupons.choices import DiscountType, ServiceCategory, service_category


@pytest.mark.parametrize(
    "service_type, expected",
    [
        ("homestay", ServiceCategory.HOMESTAYS),
        ("eatery", ServiceCategory.RESTAURANTS),
        ("restaurant", ServiceCategory.RESTAURANTS),
        ("driver", ServiceCategory.TRANSPORT),
        ("Transport", ServiceCategory.TRANSPORT),
        (" creator ", ServiceCategory.CREATORS),
        ("events", ServiceCategory.EVENTS),
        ("spa", ServiceCategory.ALL),
        ("", ServiceCategory.ALL),
        (None, ServiceCategory.ALL),
    ],
)
def test_service_category_mapping(service_type, expected):
    assert service_category(service_type) == expected


@pytest.mark.django_db
class TestCoupon:
    def test_code_is_stored_uppercase(self, make_coupon):
        coupon = make_coupon(code="  welcome100 ")
        coupon.refresh_from_db()
        assert coupon.code == "WELCOME100"

    def test_percentage_discount_respects_cap(self, stayhome40):
        assert stayhome40.calculate_discount(Decimal("5000")) == Decimal("1000.00")
        assert stayhome40.calculate_discount(Decimal("2000")) == Decimal("800.00")

    def test_fixed_discount_never_exceeds_order(self, make_coupon):
        coupon = make_coupon(discount_value=Decimal("150"))
        assert coupon.calculate_discount(Decimal("100")) == Decimal("100.00")

    def test_discount_rounds_half_up(self, make_coupon):
        coupon = make_coupon(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"))
        assert coupon.calculate_discount(Decimal("0.05")) == Decimal("0.01")

        coupon.discount_value = Decimal("12.5")
        assert coupon.calculate_discount(Decimal("99.99")) == Decimal("12.50")

    def test_availability_details(self, make_coupon, now):
        coupon = make_coupon(usage_limit=1)
        assert coupon.availability(now) == (True, "valid")
        assert coupon.availability(now - timedelta(days=2)) == (False, "not_started")
        assert coupon.availability(now + timedelta(days=31)) == (False, "expired")

        coupon.current_usage = 1
        assert coupon.availability(now) == (False, "exhausted")

        coupon.is_active = False
        assert coupon.availability(now) == (False, "inactive")
        assert not coupon.is_redeemable_now(now)

    def test_clean_rejects_inverted_window(self, make_coupon, now):
        coupon = make_coupon()
        coupon.valid_until = now - timedelta(days=5)
        with pytest.raises(ValidationError) as exc:
            coupon.clean()
        assert "valid_until" in exc.value.message_dict

    def test_clean_rejects_non_positive_value(self, make_coupon):
        coupon = make_coupon()
        coupon.discount_value = Decimal("0")
        with pytest.raises(ValidationError):
            coupon.clean()

    def test_discount_label(self, welcome100, stayhome40):
        assert welcome100.discount_label == "₹100 OFF"
        assert stayhome40.discount_label == "40% OFF"
        assert str(stayhome40) == "STAYHOME40 - 40% OFF"
