# coupons/views.py
import json
from decimal import Decimal, InvalidOperation

from django.contrib.admin.views.decorators import staff_member_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from .exceptions import CouponPersistenceError
from .models import Coupon, CouponUsage, quantize_amount
from .reports import usage_workbook_response
from .services import (
    CouponEngine,
    active_coupons,
    coupon_analytics,
    create_coupon,
    overall_analytics,
    personalized_coupons,
    popular_coupons,
    recent_usage,
    toggle_coupon,
)


# ============================================
# HELPERS
# ============================================

def _payload(request):
    """Form data or a JSON body, whichever the client sent."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def _amount(value):
    """Parse a positive money amount, None when missing or invalid."""
    if value in (None, ''):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    amount = quantize_amount(amount)
    return amount if amount > 0 else None


def _error(message, status=400, **extra):
    return JsonResponse({'success': False, 'message': message, **extra}, status=status)


def _coupon_payload(coupon):
    return {
        'id': coupon.id,
        'code': coupon.code,
        'title': coupon.title,
        'subtitle': coupon.subtitle,
        'description': coupon.description,
        'discount': coupon.discount_label,
        'type': coupon.discount_type,
        'discountValue': coupon.discount_value,
        'minOrder': coupon.min_order_amount,
        'maxDiscount': coupon.max_discount_amount,
        'validFrom': coupon.valid_from,
        'validUntil': coupon.valid_until,
        'category': coupon.category,
        'popular': coupon.is_popular,
        'limitedTime': coupon.is_limited_time,
        'usageLimit': coupon.usage_limit,
        'currentUsage': coupon.current_usage,
        'usagePerUser': coupon.usage_per_user,
    }


# ============================================
# PUBLIC / USER-FACING VIEWS
# ============================================

@require_GET
def coupon_list(request):
    """All coupons redeemable right now"""
    coupons = [_coupon_payload(c) for c in active_coupons()]
    return JsonResponse({'success': True, 'data': coupons, 'total': len(coupons)})


@require_GET
def popular_offers(request):
    coupons = []
    for coupon in popular_coupons():
        item = _coupon_payload(coupon)
        item['totalUsage'] = coupon.total_usage
        coupons.append(item)
    return JsonResponse({'success': True, 'data': coupons, 'total': len(coupons)})


@require_GET
def personalized_offers(request):
    """Offers matched to the categories the user has booked before"""
    if not request.user.is_authenticated:
        return _error('Please login to see your offers', status=401)

    coupons, personalized = personalized_coupons(request.user)
    data = [_coupon_payload(c) for c in coupons]
    return JsonResponse({
        'success': True,
        'data': data,
        'total': len(data),
        'personalized': personalized,
    })


@require_POST
def validate_coupon(request):
    """
    Preview a coupon against an order amount.
    Anonymous users get a preview without the per-user check.
    """
    data = _payload(request)
    if data is None:
        return _error('Invalid request body')

    code = (data.get('code') or '').strip()
    order_amount = _amount(data.get('orderAmount'))
    if not code or order_amount is None:
        return _error('Coupon code and order amount are required')

    user = request.user if request.user.is_authenticated else None
    result = CouponEngine().validate(
        code, order_amount, user=user, service_type=data.get('serviceType') or None
    )

    if not result.is_valid:
        return _error(result.message, reason=result.reason)

    return JsonResponse({'success': True, 'message': result.message, 'data': result.as_dict()})


@require_POST
def apply_coupon(request):
    """Record a redemption for a booking that has already been created"""
    if not request.user.is_authenticated:
        return _error('Please login to use coupons', status=401)

    from bookings.models import Booking

    data = _payload(request)
    if data is None:
        return _error('Invalid request body')

    discount_amount = _amount(data.get('discountAmount'))
    original_amount = _amount(data.get('originalAmount'))

    try:
        coupon_id = int(data.get('couponId'))
    except (TypeError, ValueError):
        coupon_id = None

    try:
        final_amount = Decimal(str(data.get('finalAmount')))
    except (InvalidOperation, ValueError):
        final_amount = None
    if final_amount is not None:
        final_amount = quantize_amount(final_amount) if final_amount.is_finite() else None
    if final_amount is not None and final_amount < 0:
        final_amount = None

    if not coupon_id or discount_amount is None or original_amount is None or final_amount is None:
        return _error('Missing required fields for coupon application')

    # Client-supplied amounts must agree with the coupon
    coupon = Coupon.objects.filter(pk=coupon_id).first()
    if coupon is not None:
        expected = coupon.calculate_discount(original_amount)
        if discount_amount != expected or final_amount != original_amount - discount_amount:
            return _error('Coupon amounts do not match the order')

    booking = None
    if data.get('bookingId'):
        booking_id = str(data['bookingId'])
        if booking_id.isdigit():
            booking = Booking.objects.filter(pk=booking_id, user=request.user).first()
        if booking is None:
            return _error('Booking not found', status=404)

    try:
        redemption = CouponEngine().apply(
            coupon_id,
            request.user,
            discount_amount=discount_amount,
            order_amount=original_amount,
            final_amount=final_amount,
            booking=booking,
            service_type=data.get('serviceType') or (booking.service_type if booking else None),
        )
    except CouponPersistenceError:
        return _error('Failed to apply coupon, please try again', status=503)

    if not redemption.success:
        return _error(redemption.message, reason=redemption.reason)

    usage = redemption.usage
    return JsonResponse({
        'success': True,
        'message': redemption.message,
        'data': {
            'usageId': usage.id,
            'discountAmount': usage.discount_amount,
            'finalAmount': usage.final_amount,
            'savings': usage.discount_amount,
        },
    })


# ============================================
# ADMIN VIEWS
# ============================================

@staff_member_required
@require_GET
def analytics(request):
    return JsonResponse({'success': True, 'data': overall_analytics()})


@staff_member_required
@require_GET
def coupon_detail_analytics(request, coupon_id):
    coupon = get_object_or_404(Coupon, id=coupon_id)
    data = coupon_analytics(coupon)
    data['code'] = coupon.code
    data['currentUsage'] = coupon.current_usage
    return JsonResponse({'success': True, 'data': data})


@staff_member_required
@require_GET
def recent_usage_list(request):
    try:
        limit = int(request.GET.get('limit', 0))
    except ValueError:
        limit = 0
    if limit <= 0:
        limit = None

    data = [
        {
            'id': usage.id,
            'code': usage.coupon.code,
            'userName': usage.user.get_full_name() or usage.user.get_username(),
            'discountAmount': usage.discount_amount,
            'originalAmount': usage.original_amount,
            'finalAmount': usage.final_amount,
            'usedAt': usage.used_at,
            'category': usage.service_category,
        }
        for usage in recent_usage(limit)
    ]
    return JsonResponse({'success': True, 'data': data})


@staff_member_required
@require_GET
def export_usage(request):
    """Download every redemption as an Excel sheet"""
    usages = CouponUsage.objects.select_related('coupon', 'user', 'booking')

    code = request.GET.get('code', '').strip()
    if code:
        usages = usages.filter(coupon__code=code.upper())

    return usage_workbook_response(usages)


@staff_member_required
@require_POST
def admin_create_coupon(request):
    data = _payload(request)
    if data is None:
        return _error('Invalid request body')

    coupon, errors = create_coupon(data, created_by=request.user)
    if errors:
        errors = errors.get_json_data()
        first_error = next(iter(errors.values()))[0]['message']
        return _error(first_error, errors=errors)

    return JsonResponse({
        'success': True,
        'message': 'Coupon created successfully',
        'data': {'id': coupon.id, 'code': coupon.code},
    })


@staff_member_required
@require_POST
def toggle_coupon_status(request, coupon_id):
    """Toggle coupon active/inactive status"""
    coupon = toggle_coupon(get_object_or_404(Coupon, id=coupon_id))
    return JsonResponse({
        'success': True,
        'is_active': coupon.is_active,
        'message': f'Coupon {"activated" if coupon.is_active else "deactivated"} successfully'
    })
