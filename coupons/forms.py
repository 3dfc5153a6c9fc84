# coupons/forms.py
from django import forms

from .choices import ServiceCategory
from .models import Coupon


class CouponForm(forms.ModelForm):
    class Meta:
        model = Coupon
        fields = [
            'code',
            'title',
            'subtitle',
            'description',
            'discount_type',
            'discount_value',
            'min_order_amount',
            'max_discount_amount',
            'valid_from',
            'valid_until',
            'category',
            'usage_limit',
            'usage_per_user',
            'is_popular',
            'is_limited_time',
        ]

        widgets = {
            'code': forms.TextInput(attrs={
                'class': 'form-control',
                'placeholder': 'e.g., WELCOME100',
                'style': 'text-transform: uppercase;'
            }),
            'valid_from': forms.DateTimeInput(attrs={
                'type': 'datetime-local',
                'class': 'form-control'
            }),
            'valid_until': forms.DateTimeInput(attrs={
                'type': 'datetime-local',
                'class': 'form-control'
            }),
            'description': forms.Textarea(attrs={
                'class': 'form-control',
                'rows': 3,
                'placeholder': 'Coupon description...'
            }),
            'discount_value': forms.NumberInput(attrs={
                'class': 'form-control',
                'placeholder': '40 (for 40%) or 100 (for ₹100)',
                'step': '0.01'
            }),
        }

        labels = {
            'code': 'Coupon Code',
            'discount_value': 'Discount Value',
            'discount_type': 'Discount Type',
            'min_order_amount': 'Minimum Order Amount (₹)',
            'max_discount_amount': 'Maximum Discount Cap (₹)',
            'usage_limit': 'Total Usage Limit (All Users)',
            'usage_per_user': 'Per-User Usage Limit',
        }

        help_texts = {
            'code': 'Unique coupon code, stored in uppercase',
            'max_discount_amount': 'Only used by percentage coupons (empty = no cap)',
            'usage_limit': 'Leave empty for unlimited use across all users',
            'category': 'Service vertical this coupon is restricted to',
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category'].required = False
        self.fields['usage_per_user'].required = False

    def clean_code(self):
        code = (self.cleaned_data.get('code') or '').strip().upper()
        if not code:
            raise forms.ValidationError("Coupon code is required")

        existing = Coupon.objects.filter(code=code)
        if self.instance.pk:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise forms.ValidationError("Coupon code already exists")
        return code

    def clean_category(self):
        return self.cleaned_data.get('category') or ServiceCategory.ALL

    def clean_usage_per_user(self):
        return self.cleaned_data.get('usage_per_user') or 1
