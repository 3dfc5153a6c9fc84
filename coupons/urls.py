from django.urls import path
from . import views

urlpatterns = [
    path('', views.coupon_list, name='coupon_list'),
    path('popular/', views.popular_offers, name='popular_offers'),
    path('personalized/', views.personalized_offers, name='personalized_offers'),
    path('validate/', views.validate_coupon, name='validate_coupon'),
    path('apply/', views.apply_coupon, name='apply_coupon'),

    path('analytics/', views.analytics, name='coupon_analytics'),
    path('<int:coupon_id>/analytics/', views.coupon_detail_analytics, name='coupon_detail_analytics'),
    path('usage/recent/', views.recent_usage_list, name='coupon_recent_usage'),
    path('usage/export/', views.export_usage, name='coupon_usage_export'),
    path('admin/create/', views.admin_create_coupon, name='admin_create_coupon'),
    path('toggle/<int:coupon_id>/', views.toggle_coupon_status, name='toggle_coupon_status'),
]
