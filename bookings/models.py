# bookings/models.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from coupons.choices import ServiceCategory, service_category


def _gen_booking_number():
    return 'BK' + timezone.now().strftime('%y%m%d%H%M') + '-' + uuid.uuid4().hex[:6].upper()


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='bookings')
    booking_number = models.CharField(max_length=24, unique=True, default=_gen_booking_number, editable=False)

    # What was booked: a homestay, an eatery table, a driver, an event, a creator
    service_type = models.CharField(max_length=20)
    service_category = models.CharField(max_length=20, choices=ServiceCategory.choices, blank=True)
    item_name = models.CharField(max_length=200)

    # Amounts
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    final_amount = models.DecimalField(max_digits=10, decimal_places=2)

    coupon = models.ForeignKey(
        'coupons.Coupon', on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings'
    )
    coupon_code = models.CharField(max_length=32, blank=True)

    status = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.booking_number} ({self.item_name})"

    def save(self, *args, **kwargs):
        if self.service_type and not self.service_category:
            self.service_category = service_category(self.service_type)
        super().save(*args, **kwargs)
