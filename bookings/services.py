# bookings/services.py
import logging
from decimal import Decimal

from django.db import transaction

from coupons.models import quantize_amount
from coupons.services import CouponEngine

from .exceptions import BookingError
from .models import Booking

logger = logging.getLogger(__name__)


def create_booking(user, service_type, item_name, amount, coupon_code=None, now=None):
    """
    Create a booking and redeem its coupon in one transaction.

    Raises BookingError when the coupon is rejected at validation or at
    redemption; the booking row is rolled back with it. A failed coupon
    write surfaces as CouponPersistenceError, also with nothing saved.
    """
    amount = quantize_amount(amount)
    if amount <= 0:
        raise BookingError("Booking amount must be greater than zero")

    engine = CouponEngine()

    with transaction.atomic():
        validation = None
        discount_amount = Decimal('0')
        final_amount = amount

        if coupon_code:
            validation = engine.validate(
                coupon_code, amount, user=user, service_type=service_type, now=now
            )
            if not validation.is_valid:
                raise BookingError(validation.message, reason=validation.reason)
            discount_amount = validation.discount_amount
            final_amount = validation.final_amount

        booking = Booking.objects.create(
            user=user,
            service_type=service_type,
            item_name=item_name,
            total_amount=amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
            coupon=validation.coupon if validation else None,
            coupon_code=validation.coupon.code if validation else '',
        )

        if validation:
            redemption = engine.apply(
                validation.coupon.pk,
                user,
                discount_amount=discount_amount,
                order_amount=amount,
                final_amount=final_amount,
                booking=booking,
                service_type=service_type,
            )
            if not redemption.success:
                raise BookingError(redemption.message, reason=redemption.reason)

    logger.info(
        "Booking %s created for user %s: %s - %s = %s",
        booking.booking_number, user.pk, amount, discount_amount, final_amount,
    )
    return booking
