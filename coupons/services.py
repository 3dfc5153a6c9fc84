# coupons/services.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Avg, Count, F, Max, Min, Q, Sum
from django.utils import timezone

from .choices import CouponFailure, ServiceCategory, service_category
from .exceptions import CouponPersistenceError
from .models import Coupon, CouponUsage, quantize_amount

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def _money(value):
    return f"{settings.COUPON_CURRENCY_SYMBOL}{Decimal(value).normalize():f}"


def _user_id(user):
    """Accept a user instance or a raw primary key."""
    if user is None:
        return None
    return getattr(user, 'pk', user)


@dataclass(frozen=True)
class CouponValidation:
    """Outcome of CouponEngine.validate. Advisory only, nothing is reserved."""
    is_valid: bool
    reason: Optional[str] = None
    message: str = ''
    coupon: Optional[Coupon] = None
    order_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    final_amount: Optional[Decimal] = None

    def as_dict(self):
        if not self.is_valid:
            return {'reason': self.reason, 'message': self.message}
        return {
            'couponId': self.coupon.pk,
            'code': self.coupon.code,
            'title': self.coupon.title,
            'discountAmount': str(self.discount_amount),
            'originalAmount': str(self.order_amount),
            'finalAmount': str(self.final_amount),
            'savings': str(self.discount_amount),
        }


@dataclass(frozen=True)
class CouponRedemption:
    """Outcome of CouponEngine.apply"""
    success: bool
    reason: Optional[str] = None
    message: str = ''
    usage: Optional[CouponUsage] = None


class CouponEngine:
    """
    Validates coupon codes against an order and records redemptions.

    validate() is a pure read. apply() re-checks both usage limits inside the
    same transaction that inserts the usage row and bumps the counter, so two
    requests that both passed validate() cannot both redeem a single-use coupon.
    """

    def validate(self, code, order_amount, user=None, service_type=None, now=None):
        order_amount = quantize_amount(order_amount)
        if order_amount <= 0:
            raise ValueError("Order amount must be greater than zero")

        now = now or timezone.now()
        code = (code or '').strip().upper()

        coupon = Coupon.objects.filter(code=code).first() if code else None
        if coupon is None:
            return self._reject(CouponFailure.NOT_FOUND, code, detail='missing')

        available, detail = coupon.availability(now)
        if not available:
            if detail == 'exhausted':
                return self._reject(CouponFailure.GLOBAL_LIMIT_EXCEEDED, code, detail=detail)
            return self._reject(CouponFailure.NOT_FOUND, code, detail=detail)

        if coupon.min_order_amount is not None and order_amount < coupon.min_order_amount:
            return self._reject(
                CouponFailure.BELOW_MINIMUM, code,
                message=f"Minimum order amount of {_money(coupon.min_order_amount)} required",
            )

        user_id = _user_id(user)
        if user_id is not None:
            used = user_usage_count(coupon, user_id)
            if used >= coupon.usage_per_user:
                return self._reject(CouponFailure.PER_USER_LIMIT_EXCEEDED, code, detail=f"used {used}")

        if coupon.category != ServiceCategory.ALL and service_type:
            if service_category(service_type) != coupon.category:
                return self._reject(
                    CouponFailure.CATEGORY_MISMATCH, code,
                    message=f"This coupon is only valid for {coupon.category}",
                    detail=f"service_type={service_type}",
                )

        discount_amount = coupon.calculate_discount(order_amount)
        final_amount = max(ZERO, order_amount - discount_amount)

        return CouponValidation(
            is_valid=True,
            message="Coupon is valid",
            coupon=coupon,
            order_amount=order_amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )

    def apply(self, coupon_id, user, discount_amount, order_amount, final_amount,
              booking=None, service_type=None):
        """
        Record one redemption. Inserts the usage row and increments
        current_usage in a single transaction, after re-checking both limits
        against the locked coupon row.

        Raises CouponPersistenceError when the database rejects the write.
        """
        user_id = _user_id(user)

        try:
            with transaction.atomic():
                coupon = Coupon.objects.select_for_update().filter(pk=coupon_id).first()
                if coupon is None:
                    return self._refuse(CouponFailure.NOT_FOUND, coupon_id, user_id)

                used = CouponUsage.objects.filter(coupon=coupon, user_id=user_id).count()
                if used >= coupon.usage_per_user:
                    return self._refuse(CouponFailure.PER_USER_LIMIT_EXCEEDED, coupon_id, user_id)

                # Compare-and-increment: no row matches once the limit is reached
                updated = Coupon.objects.filter(
                    Q(usage_limit__isnull=True) | Q(current_usage__lt=F('usage_limit')),
                    pk=coupon.pk,
                ).update(current_usage=F('current_usage') + 1, updated_at=timezone.now())
                if not updated:
                    return self._refuse(CouponFailure.GLOBAL_LIMIT_EXCEEDED, coupon_id, user_id)

                usage = CouponUsage.objects.create(
                    coupon=coupon,
                    user_id=user_id,
                    booking=booking,
                    service_category=service_category(service_type) if service_type else '',
                    discount_amount=quantize_amount(discount_amount),
                    original_amount=quantize_amount(order_amount),
                    final_amount=quantize_amount(final_amount),
                )
        except DatabaseError as exc:
            logger.exception("Coupon %s redemption failed for user %s", coupon_id, user_id)
            raise CouponPersistenceError(f"Could not record usage of coupon {coupon_id}") from exc

        logger.info(
            "Coupon %s redeemed by user %s (discount %s on %s)",
            coupon.code, user_id, usage.discount_amount, usage.original_amount,
        )
        return CouponRedemption(success=True, message="Coupon applied successfully", usage=usage)

    # ---------------------------
    # Helpers
    # ---------------------------

    def _reject(self, reason, code, message=None, detail=None):
        logger.info("Coupon %r rejected: %s (%s)", code, reason, detail or '-')
        return CouponValidation(is_valid=False, reason=reason, message=message or reason.label)

    def _refuse(self, reason, coupon_id, user_id):
        logger.warning("Redemption of coupon %s by user %s refused: %s", coupon_id, user_id, reason)
        return CouponRedemption(success=False, reason=reason, message=reason.label)


# ============================================
# READ SIDE
# ============================================

def user_usage_count(coupon, user):
    return CouponUsage.objects.filter(coupon=coupon, user_id=_user_id(user)).count()


def active_coupons(user=None, now=None):
    """
    Coupons redeemable right now. With a user, coupons they have
    already used up are filtered out.
    """
    now = now or timezone.now()

    coupons = Coupon.objects.filter(
        is_active=True,
        valid_from__lte=now,
        valid_until__gte=now,
    ).filter(
        Q(usage_limit__isnull=True) | Q(current_usage__lt=F('usage_limit'))
    )

    user_id = _user_id(user)
    if user_id is not None:
        coupons = coupons.annotate(
            user_usage_count=Count('usage_records', filter=Q(usage_records__user_id=user_id))
        ).filter(user_usage_count__lt=F('usage_per_user'))

    return coupons.order_by('-is_popular', '-is_limited_time', '-discount_value')


def personalized_coupons(user, now=None):
    """
    Active coupons for the categories this user has booked before.
    Returns (coupons, personalized) where personalized is False when
    the user has no booking history and every active coupon is returned.
    """
    from bookings.models import Booking

    categories = set(
        Booking.objects.filter(user=user)
        .exclude(service_category='')
        .values_list('service_category', flat=True)
    )
    categories.discard(ServiceCategory.ALL)

    coupons = active_coupons(user=user, now=now)
    if not categories:
        return coupons, False

    return coupons.filter(category__in=[*categories, ServiceCategory.ALL]), True


def popular_coupons(limit=None, now=None):
    now = now or timezone.now()
    limit = limit or settings.COUPON_POPULAR_LIMIT

    return (
        Coupon.objects.filter(is_active=True, valid_from__lte=now, valid_until__gte=now)
        .annotate(total_usage=Count('usage_records'))
        .order_by('-is_popular', '-total_usage', '-discount_value')[:limit]
    )


def coupon_analytics(coupon):
    stats = CouponUsage.objects.filter(coupon=coupon).aggregate(
        total_uses=Count('id'),
        total_discount_given=Sum('discount_amount'),
        avg_discount=Avg('discount_amount'),
        unique_users=Count('user', distinct=True),
        first_used=Min('used_at'),
        last_used=Max('used_at'),
    )
    stats['total_discount_given'] = stats['total_discount_given'] or ZERO
    stats['avg_discount'] = quantize_amount(stats['avg_discount'] or ZERO)
    return stats


def overall_analytics(now=None):
    now = now or timezone.now()

    usage = CouponUsage.objects.aggregate(
        total_usage=Count('id'),
        total_discount_given=Sum('discount_amount'),
        avg_discount=Avg('discount_amount'),
    )

    popular = (
        Coupon.objects.filter(is_active=True)
        .annotate(
            usage_count=Count('usage_records'),
            total_discount=Sum('usage_records__discount_amount'),
        )
        .order_by('-usage_count', 'code')
        .values('code', 'title', 'usage_count', 'total_discount')[:5]
    )

    breakdown = {}
    for row in CouponUsage.objects.values('service_category').annotate(usage_count=Count('id')).order_by():
        breakdown[row['service_category'] or 'unknown'] = row['usage_count']

    return {
        'total_coupons': Coupon.objects.count(),
        'active_coupons': Coupon.objects.filter(
            is_active=True, valid_from__lte=now, valid_until__gte=now
        ).count(),
        'total_usage': usage['total_usage'],
        'total_discount_given': usage['total_discount_given'] or ZERO,
        'avg_discount': quantize_amount(usage['avg_discount'] or ZERO),
        'popular_coupons': list(popular),
        'category_breakdown': breakdown,
    }


def recent_usage(limit=None):
    limit = limit or settings.COUPON_RECENT_USAGE_LIMIT
    return CouponUsage.objects.select_related('coupon', 'user')[:limit]


def create_coupon(data, created_by=None):
    """
    Admin: create a coupon from submitted data.
    Returns (coupon, None) on success or (None, errors).
    """
    from .forms import CouponForm

    form = CouponForm(data)
    if not form.is_valid():
        return None, form.errors

    coupon = form.save(commit=False)
    coupon.created_by = created_by
    coupon.save()

    logger.info("Coupon %s created by %s", coupon.code, created_by)
    return coupon, None


def toggle_coupon(coupon):
    coupon.is_active = not coupon.is_active
    coupon.save(update_fields=['is_active', 'updated_at'])
    logger.info("Coupon %s %s", coupon.code, "activated" if coupon.is_active else "deactivated")
    return coupon
