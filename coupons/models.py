# coupons/models.py
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from .choices import DiscountType, ServiceCategory

CENT = Decimal('0.01')


def quantize_amount(value):
    """Round a money value to 2 decimal places, half-up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Coupon(models.Model):
    code = models.CharField(max_length=32, unique=True)
    title = models.CharField(max_length=100)
    subtitle = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=12, choices=DiscountType.choices)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)

    # Order limits
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    max_discount_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        help_text="Max discount amount (for percentage coupons)"
    )

    # Validity window, both ends inclusive
    valid_from = models.DateTimeField(default=timezone.now)
    valid_until = models.DateTimeField()
    category = models.CharField(max_length=20, choices=ServiceCategory.choices, default=ServiceCategory.ALL)

    # Usage limits
    usage_limit = models.PositiveIntegerField(null=True, blank=True, help_text="Total usage limit (all users), empty = unlimited")
    usage_per_user = models.PositiveIntegerField(default=1, help_text="How many times each user can use")
    current_usage = models.PositiveIntegerField(default=0, editable=False, help_text="Number of times used globally")

    # Display
    is_active = models.BooleanField(default=True)
    is_popular = models.BooleanField(default=False)
    is_limited_time = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-is_popular', '-is_limited_time', '-discount_value']
        constraints = [
            models.CheckConstraint(condition=Q(discount_value__gt=0), name='coupon_discount_value_positive'),
            models.CheckConstraint(condition=Q(valid_from__lte=F('valid_until')), name='coupon_valid_window'),
            models.CheckConstraint(condition=Q(usage_per_user__gte=1), name='coupon_usage_per_user_min'),
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(current_usage__lte=F('usage_limit')),
                name='coupon_usage_within_limit',
            ),
        ]

    def __str__(self):
        return f"{self.code} - {self.discount_label}"

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    def clean(self):
        errors = {}
        if self.discount_value is not None and self.discount_value <= 0:
            errors['discount_value'] = "Discount value must be greater than zero"
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value and self.discount_value > 100:
            errors['discount_value'] = "Percentage discount cannot exceed 100"
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            errors['valid_until'] = "Valid until must not be before valid from"
        if errors:
            raise ValidationError(errors)

    @property
    def discount_label(self):
        if self.discount_type == DiscountType.PERCENTAGE:
            return f"{self.discount_value.normalize():f}% OFF"
        return f"{settings.COUPON_CURRENCY_SYMBOL}{self.discount_value.normalize():f} OFF"

    def availability(self, now=None):
        """
        Basic checks that don't depend on the user or the order.
        Returns (ok, detail) where detail is one of
        'inactive', 'not_started', 'expired', 'exhausted' or 'valid'.
        """
        now = now or timezone.now()

        if not self.is_active:
            return False, 'inactive'
        if now < self.valid_from:
            return False, 'not_started'
        if now > self.valid_until:
            return False, 'expired'
        if self.usage_limit is not None and self.current_usage >= self.usage_limit:
            return False, 'exhausted'
        return True, 'valid'

    def is_redeemable_now(self, now=None):
        return self.availability(now)[0]

    def calculate_discount(self, order_amount):
        """Discount for an order, never more than the order itself."""
        order_amount = Decimal(order_amount)

        if self.discount_type == DiscountType.PERCENTAGE:
            discount = (order_amount * self.discount_value) / 100
            if self.max_discount_amount is not None:
                discount = min(discount, self.max_discount_amount)
        else:
            discount = self.discount_value

        discount = max(Decimal('0'), min(discount, order_amount))
        return quantize_amount(discount)


class CouponUsage(models.Model):
    """One row per successful redemption"""
    coupon = models.ForeignKey('Coupon', on_delete=models.PROTECT, related_name='usage_records')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='coupon_usages')
    booking = models.ForeignKey(
        'bookings.Booking', on_delete=models.SET_NULL, null=True, blank=True, related_name='coupon_usages'
    )
    service_category = models.CharField(max_length=20, choices=ServiceCategory.choices, blank=True)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    original_amount = models.DecimalField(max_digits=10, decimal_places=2)
    final_amount = models.DecimalField(max_digits=10, decimal_places=2)
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-used_at']
        indexes = [
            models.Index(fields=['coupon', 'user'], name='coupon_usage_coupon_user_idx'),
        ]

    def __str__(self):
        return f"{self.user} used {self.coupon.code}"
