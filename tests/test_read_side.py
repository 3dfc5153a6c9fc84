from datetime import timedelta
from decimal import Decimal

import pytest

from bookings.models import Booking
from coupons.choices import ServiceCategory
from coupons.services import (
    active_coupons,
    coupon_analytics,
    create_coupon,
    overall_analytics,
    personalized_coupons,
    popular_coupons,
    recent_usage,
    toggle_coupon,
    user_usage_count,
)

pytestmark = pytest.mark.django_db


def use(engine, code, user, amount, service_type=None):
    result = engine.validate(code, Decimal(amount), user=user, service_type=service_type)
    return engine.apply(
        result.coupon.pk, user,
        discount_amount=result.discount_amount,
        order_amount=result.order_amount,
        final_amount=result.final_amount,
        service_type=service_type,
    )


@pytest.fixture
def ride50(make_coupon):
    return make_coupon(
        code="RIDE50", title="Ride Anywhere", discount_value=Decimal("50"),
        category=ServiceCategory.TRANSPORT, usage_per_user=3,
    )


class TestActiveCoupons:
    def test_hides_inactive_expired_and_exhausted(self, make_coupon, welcome100, now):
        make_coupon(code="OFF", is_active=False)
        make_coupon(code="OLD", valid_from=now - timedelta(days=10), valid_until=now - timedelta(days=1))
        make_coupon(code="GONE", usage_limit=3, current_usage=3)

        assert [c.code for c in active_coupons(now=now)] == ["WELCOME100"]

    def test_ordering(self, make_coupon, welcome100, stayhome40, ride50):
        # popular first, then limited time, then larger discount value
        assert [c.code for c in active_coupons()] == ["WELCOME100", "STAYHOME40", "RIDE50"]

    def test_hides_coupons_the_user_used_up(self, engine, welcome100, ride50, user, other_user):
        use(engine, "WELCOME100", user, "600")

        assert [c.code for c in active_coupons(user=user)] == ["RIDE50"]
        assert {c.code for c in active_coupons(user=other_user)} == {"WELCOME100", "RIDE50"}
        assert user_usage_count(welcome100, user) == 1


class TestPersonalized:
    def test_without_history_returns_everything(self, welcome100, stayhome40, ride50, user):
        coupons, personalized = personalized_coupons(user)
        assert not personalized
        assert coupons.count() == 3

    def test_filters_by_booked_categories(self, welcome100, stayhome40, ride50, user):
        Booking.objects.create(
            user=user, service_type="homestay", item_name="Lake view cottage",
            total_amount=Decimal("3000"), final_amount=Decimal("3000"),
        )

        coupons, personalized = personalized_coupons(user)
        assert personalized
        assert {c.code for c in coupons} == {"WELCOME100", "STAYHOME40"}


class TestAnalytics:
    def test_popular_coupons_by_usage(self, engine, make_coupon, ride50, user, other_user):
        make_coupon(code="QUIET", discount_value=Decimal("500"))
        use(engine, "RIDE50", user, "300", "driver")
        use(engine, "RIDE50", other_user, "300", "driver")

        coupons = list(popular_coupons(limit=2))
        assert coupons[0].code == "RIDE50"
        assert coupons[0].total_usage == 2
        assert len(coupons) == 2

    def test_coupon_analytics(self, engine, ride50, user, other_user):
        use(engine, "RIDE50", user, "300", "driver")
        use(engine, "RIDE50", user, "400", "driver")
        use(engine, "RIDE50", other_user, "500", "driver")

        stats = coupon_analytics(ride50)
        assert stats["total_uses"] == 3
        assert stats["unique_users"] == 2
        assert stats["total_discount_given"] == Decimal("150.00")
        assert stats["avg_discount"] == Decimal("50.00")
        assert stats["first_used"] <= stats["last_used"]

    def test_coupon_analytics_without_usage(self, welcome100):
        stats = coupon_analytics(welcome100)
        assert stats["total_uses"] == 0
        assert stats["total_discount_given"] == Decimal("0")
        assert stats["first_used"] is None

    def test_overall_analytics(self, engine, welcome100, ride50, make_coupon, user, other_user):
        make_coupon(code="OFF", is_active=False)
        use(engine, "WELCOME100", user, "600")
        use(engine, "RIDE50", user, "300", "driver")
        use(engine, "RIDE50", other_user, "300", "transport")

        data = overall_analytics()
        assert data["total_coupons"] == 3
        assert data["active_coupons"] == 2
        assert data["total_usage"] == 3
        assert data["total_discount_given"] == Decimal("200.00")
        assert data["avg_discount"] == Decimal("66.67")
        assert data["popular_coupons"][0]["code"] == "RIDE50"
        assert data["popular_coupons"][0]["usage_count"] == 2
        assert data["category_breakdown"] == {"Transport": 2, "unknown": 1}

    def test_recent_usage(self, engine, welcome100, ride50, user):
        use(engine, "WELCOME100", user, "600")
        use(engine, "RIDE50", user, "300")

        rows = list(recent_usage(limit=1))
        assert len(rows) == 1


class TestAdminOperations:
    def test_create_coupon(self, staff_user, now):
        coupon, errors = create_coupon(
            {
                "code": "newyear25",
                "title": "New Year",
                "discount_type": "percentage",
                "discount_value": "25",
                "max_discount_amount": "300",
                "valid_from": now.isoformat(),
                "valid_until": (now + timedelta(days=7)).isoformat(),
            },
            created_by=staff_user,
        )

        assert errors is None
        assert coupon.code == "NEWYEAR25"
        assert coupon.category == ServiceCategory.ALL
        assert coupon.usage_per_user == 1
        assert coupon.is_active
        assert coupon.created_by == staff_user

    def test_create_coupon_rejects_duplicate_code(self, welcome100, now):
        coupon, errors = create_coupon({
            "code": "Welcome100",
            "title": "Copy",
            "discount_type": "amount",
            "discount_value": "50",
            "valid_from": now.isoformat(),
            "valid_until": (now + timedelta(days=7)).isoformat(),
        })
        assert coupon is None
        assert "code" in errors

    def test_create_coupon_rejects_inverted_window(self, now):
        coupon, errors = create_coupon({
            "code": "BACKWARDS",
            "title": "Backwards",
            "discount_type": "amount",
            "discount_value": "50",
            "valid_from": now.isoformat(),
            "valid_until": (now - timedelta(days=7)).isoformat(),
        })
        assert coupon is None
        assert "valid_until" in errors

    def test_toggle_coupon(self, welcome100):
        assert not toggle_coupon(welcome100).is_active
        welcome100.refresh_from_db()
        assert not welcome100.is_active
        assert toggle_coupon(welcome100).is_active
