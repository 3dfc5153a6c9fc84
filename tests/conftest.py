from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from coupons.choices import DiscountType, ServiceCategory
from coupons.models import Coupon
from coupons.services import CouponEngine


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def engine():
    return CouponEngine()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="asha", password="pass12345")


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username="ravi", password="pass12345")


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(username="ops", password="pass12345", is_staff=True)


@pytest.fixture
def make_coupon(db, now):
    """Factory for coupons valid from yesterday for a month."""
    def _make(**overrides):
        fields = {
            "code": "TEST10",
            "title": "Test coupon",
            "discount_type": DiscountType.AMOUNT,
            "discount_value": Decimal("10"),
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
        }
        fields.update(overrides)
        return Coupon.objects.create(**fields)
    return _make


@pytest.fixture
def welcome100(make_coupon):
    return make_coupon(
        code="WELCOME100",
        title="Welcome Back!",
        discount_type=DiscountType.AMOUNT,
        discount_value=Decimal("100"),
        min_order_amount=Decimal("499"),
        usage_per_user=1,
        usage_limit=1000,
        is_popular=True,
    )


@pytest.fixture
def stayhome40(make_coupon):
    return make_coupon(
        code="STAYHOME40",
        title="Homestay Special",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("40"),
        min_order_amount=Decimal("2000"),
        max_discount_amount=Decimal("1000"),
        category=ServiceCategory.HOMESTAYS,
        usage_limit=500,
        usage_per_user=2,
        is_limited_time=True,
    )
