from django.contrib import admin

from .models import Coupon, CouponUsage
from .reports import usage_workbook_response


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'title', 'discount_type', 'discount_value', 'min_order_amount', 'category',
                    'valid_until', 'current_usage', 'usage_limit', 'is_active']
    list_filter = ['is_active', 'discount_type', 'category', 'is_popular']
    search_fields = ['code', 'title']
    readonly_fields = ['current_usage', 'created_by', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Info', {
            'fields': ('code', 'title', 'subtitle', 'description')
        }),
        ('Discount', {
            'fields': ('discount_type', 'discount_value', 'max_discount_amount', 'min_order_amount')
        }),
        ('Validity', {
            'fields': ('valid_from', 'valid_until', 'category', 'is_active')
        }),
        ('Usage', {
            'fields': ('usage_limit', 'usage_per_user', 'current_usage')
        }),
        ('Display', {
            'fields': ('is_popular', 'is_limited_time')
        }),
        ('Metadata', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['activate', 'deactivate', 'export_usage']

    def has_delete_permission(self, request, obj=None):
        # Coupons are deactivated, never deleted
        return False

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def activate(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f'{updated} coupon(s) activated.')
    activate.short_description = "Activate selected coupons"

    def deactivate(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} coupon(s) deactivated.')
    deactivate.short_description = "Deactivate selected coupons"

    def export_usage(self, request, queryset):
        usages = CouponUsage.objects.filter(coupon__in=queryset).select_related('coupon', 'user')
        return usage_workbook_response(usages)
    export_usage.short_description = "Export usage of selected coupons (Excel)"


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ['coupon', 'user', 'booking', 'service_category', 'original_amount',
                    'discount_amount', 'final_amount', 'used_at']
    list_filter = ['service_category', 'used_at']
    search_fields = ['coupon__code', 'user__username']
    ordering = ['-used_at']

    # Usage rows are written only by redemption
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
