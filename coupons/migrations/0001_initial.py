import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Coupon',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=32, unique=True)),
                ('title', models.CharField(max_length=100)),
                ('subtitle', models.CharField(blank=True, max_length=100)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('discount_type', models.CharField(choices=[('percentage', 'Percentage'), ('amount', 'Flat amount')], max_length=12)),
                ('discount_value', models.DecimalField(decimal_places=2, max_digits=10)),
                ('min_order_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('max_discount_amount', models.DecimalField(blank=True, decimal_places=2, help_text='Max discount amount (for percentage coupons)', max_digits=10, null=True)),
                ('valid_from', models.DateTimeField(default=django.utils.timezone.now)),
                ('valid_until', models.DateTimeField()),
                ('category', models.CharField(choices=[('All Services', 'All Services'), ('Homestays', 'Homestays'), ('Restaurants', 'Restaurants'), ('Transport', 'Transport'), ('Creators', 'Creators'), ('Events', 'Events')], default='All Services', max_length=20)),
                ('usage_limit', models.PositiveIntegerField(blank=True, help_text='Total usage limit (all users), empty = unlimited', null=True)),
                ('usage_per_user', models.PositiveIntegerField(default=1, help_text='How many times each user can use')),
                ('current_usage', models.PositiveIntegerField(default=0, editable=False, help_text='Number of times used globally')),
                ('is_active', models.BooleanField(default=True)),
                ('is_popular', models.BooleanField(default=False)),
                ('is_limited_time', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-is_popular', '-is_limited_time', '-discount_value'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('discount_value__gt', 0)), name='coupon_discount_value_positive'),
                    models.CheckConstraint(condition=models.Q(('valid_from__lte', models.F('valid_until'))), name='coupon_valid_window'),
                    models.CheckConstraint(condition=models.Q(('usage_per_user__gte', 1)), name='coupon_usage_per_user_min'),
                    models.CheckConstraint(condition=models.Q(('usage_limit__isnull', True), ('current_usage__lte', models.F('usage_limit')), _connector='OR'), name='coupon_usage_within_limit'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CouponUsage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('service_category', models.CharField(blank=True, choices=[('All Services', 'All Services'), ('Homestays', 'Homestays'), ('Restaurants', 'Restaurants'), ('Transport', 'Transport'), ('Creators', 'Creators'), ('Events', 'Events')], max_length=20)),
                ('discount_amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('original_amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('final_amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('used_at', models.DateTimeField(auto_now_add=True)),
                ('coupon', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='usage_records', to='coupons.coupon')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='coupon_usages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-used_at'],
                'indexes': [models.Index(fields=['coupon', 'user'], name='coupon_usage_coupon_user_idx')],
            },
        ),
    ]
