"""
URL configuration for the marketplace project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('adminn/', admin.site.urls),
    path('coupons/', include('coupons.urls')),
    path('bookings/', include('bookings.urls')),
]
