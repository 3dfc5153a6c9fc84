# bookings/views.py
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from coupons.exceptions import CouponPersistenceError
from coupons.views import _amount, _error, _payload

from .exceptions import BookingError
from .services import create_booking


@require_POST
def create_booking_view(request):
    """Create a booking, optionally with a coupon code"""
    if not request.user.is_authenticated:
        return _error('Please login to book', status=401)

    data = _payload(request)
    if data is None:
        return _error('Invalid request body')

    service_type = (data.get('serviceType') or '').strip()
    item_name = (data.get('itemName') or '').strip()
    amount = _amount(data.get('amount'))

    if not service_type or not item_name or amount is None:
        return _error('Service type, item name and amount are required')

    try:
        booking = create_booking(
            request.user,
            service_type,
            item_name,
            amount,
            coupon_code=(data.get('couponCode') or '').strip() or None,
        )
    except BookingError as exc:
        return _error(exc.message, reason=exc.reason)
    except CouponPersistenceError:
        return _error('Could not complete the booking, please try again', status=503)

    return JsonResponse({
        'success': True,
        'message': 'Booking created successfully',
        'data': {
            'bookingId': booking.id,
            'bookingNumber': booking.booking_number,
            'totalAmount': booking.total_amount,
            'discountAmount': booking.discount_amount,
            'finalAmount': booking.final_amount,
            'couponCode': booking.coupon_code,
            'status': booking.status,
        },
    })
