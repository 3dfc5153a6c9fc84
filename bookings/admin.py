from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('booking_number', 'user', 'service_category', 'item_name', 'total_amount',
                    'discount_amount', 'final_amount', 'coupon_code', 'status', 'created_at')
    list_filter = ('status', 'service_category')
    search_fields = ('booking_number', 'user__username', 'coupon_code')
    readonly_fields = ('booking_number', 'coupon', 'coupon_code', 'discount_amount', 'final_amount', 'created_at')
