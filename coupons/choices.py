# coupons/choices.py
from django.db import models


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    AMOUNT = 'amount', 'Flat amount'


class ServiceCategory(models.TextChoices):
    ALL = 'All Services', 'All Services'
    HOMESTAYS = 'Homestays', 'Homestays'
    RESTAURANTS = 'Restaurants', 'Restaurants'
    TRANSPORT = 'Transport', 'Transport'
    CREATORS = 'Creators', 'Creators'
    EVENTS = 'Events', 'Events'


class CouponFailure(models.TextChoices):
    NOT_FOUND = 'not_found', 'Invalid or expired coupon code'
    GLOBAL_LIMIT_EXCEEDED = 'global_limit_exceeded', 'Coupon usage limit exceeded'
    BELOW_MINIMUM = 'below_minimum', 'Minimum order amount not met'
    PER_USER_LIMIT_EXCEEDED = 'per_user_limit_exceeded', 'You have already used this coupon'
    CATEGORY_MISMATCH = 'category_mismatch', 'Coupon not valid for this service'


# Service type (as sent by the booking pages) -> coupon category
SERVICE_TYPE_CATEGORIES = {
    'homestay': ServiceCategory.HOMESTAYS,
    'homestays': ServiceCategory.HOMESTAYS,
    'restaurant': ServiceCategory.RESTAURANTS,
    'restaurants': ServiceCategory.RESTAURANTS,
    'eatery': ServiceCategory.RESTAURANTS,
    'eateries': ServiceCategory.RESTAURANTS,
    'driver': ServiceCategory.TRANSPORT,
    'drivers': ServiceCategory.TRANSPORT,
    'transport': ServiceCategory.TRANSPORT,
    'creator': ServiceCategory.CREATORS,
    'creators': ServiceCategory.CREATORS,
    'event': ServiceCategory.EVENTS,
    'events': ServiceCategory.EVENTS,
}


def service_category(service_type):
    """
    Map a service type to its coupon category.
    Unknown or empty types fall back to ALL, which only matches unrestricted coupons.
    """
    if not service_type:
        return ServiceCategory.ALL
    return SERVICE_TYPE_CATEGORIES.get(str(service_type).strip().lower(), ServiceCategory.ALL)
