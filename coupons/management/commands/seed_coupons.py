from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from coupons.choices import DiscountType, ServiceCategory
from coupons.models import Coupon, CouponUsage

LAUNCH_COUPONS = [
    {
        'code': 'WELCOME100',
        'title': 'Welcome Back!',
        'subtitle': 'FLAT ₹100 OFF',
        'description': 'On orders above ₹499',
        'discount_type': DiscountType.AMOUNT,
        'discount_value': Decimal('100'),
        'min_order_amount': Decimal('499'),
        'category': ServiceCategory.ALL,
        'usage_limit': 1000,
        'usage_per_user': 1,
        'is_popular': True,
    },
    {
        'code': 'STAYHOME40',
        'title': 'Homestay Special',
        'subtitle': '40% OFF',
        'description': 'On weekend bookings',
        'discount_type': DiscountType.PERCENTAGE,
        'discount_value': Decimal('40'),
        'min_order_amount': Decimal('2000'),
        'max_discount_amount': Decimal('1000'),
        'category': ServiceCategory.HOMESTAYS,
        'usage_limit': 500,
        'usage_per_user': 2,
        'is_limited_time': True,
    },
    {
        'code': 'DINE25',
        'title': 'Restaurant Dining',
        'subtitle': '25% OFF',
        'description': 'On dining bookings',
        'discount_type': DiscountType.PERCENTAGE,
        'discount_value': Decimal('25'),
        'min_order_amount': Decimal('300'),
        'max_discount_amount': Decimal('500'),
        'category': ServiceCategory.RESTAURANTS,
        'usage_limit': 300,
        'usage_per_user': 1,
    },
    {
        'code': 'RIDE50',
        'title': 'Ride Anywhere',
        'subtitle': '₹50 OFF',
        'description': 'On rides above ₹200',
        'discount_type': DiscountType.AMOUNT,
        'discount_value': Decimal('50'),
        'min_order_amount': Decimal('200'),
        'category': ServiceCategory.TRANSPORT,
        'usage_limit': 1000,
        'usage_per_user': 3,
    },
    {
        'code': 'CAPTURE30',
        'title': 'Photography',
        'subtitle': '30% OFF',
        'description': 'Professional shoots',
        'discount_type': DiscountType.PERCENTAGE,
        'discount_value': Decimal('30'),
        'min_order_amount': Decimal('1500'),
        'max_discount_amount': Decimal('800'),
        'category': ServiceCategory.CREATORS,
        'usage_limit': 200,
        'usage_per_user': 1,
    },
    {
        'code': 'EVENT200',
        'title': 'Event Special',
        'subtitle': '₹200 OFF',
        'description': 'On event bookings',
        'discount_type': DiscountType.AMOUNT,
        'discount_value': Decimal('200'),
        'min_order_amount': Decimal('1000'),
        'category': ServiceCategory.EVENTS,
        'usage_limit': 150,
        'usage_per_user': 1,
        'is_popular': True,
    },
    {
        'code': 'FIRSTRIDE',
        'title': 'First Ride Free',
        'subtitle': '100% OFF',
        'description': 'Up to ₹150 on first booking',
        'discount_type': DiscountType.AMOUNT,
        'discount_value': Decimal('150'),
        'min_order_amount': Decimal('100'),
        'category': ServiceCategory.TRANSPORT,
        'usage_per_user': 1,
        'is_limited_time': True,
    },
]


class Command(BaseCommand):
    help = "Load the launch coupons, valid from now for one year"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing coupons and their usage history first',
        )

    def handle(self, *args, **options):
        now = timezone.now()
        valid_until = now + timedelta(days=365)

        with transaction.atomic():
            if options['clear']:
                CouponUsage.objects.all().delete()
                deleted, _ = Coupon.objects.all().delete()
                self.stdout.write(self.style.WARNING(f"Removed {deleted} existing record(s)"))

            created = 0
            for row in LAUNCH_COUPONS:
                defaults = dict(row, valid_from=now, valid_until=valid_until)
                code = defaults.pop('code')
                _, was_created = Coupon.objects.update_or_create(code=code, defaults=defaults)
                created += was_created

        self.stdout.write(
            self.style.SUCCESS(f"{len(LAUNCH_COUPONS)} coupons seeded ({created} new)")
        )
