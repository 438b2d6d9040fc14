from django.contrib import admin

from .models import Subscription, UserAccess


@admin.register(UserAccess)
class UserAccessAdmin(admin.ModelAdmin):
    list_display = ['access_id', 'user', 'product', 'product_type', 'is_active', 'access_expires_at', 'granted_by']
    list_filter = ['product_type', 'is_active', 'granted_by']
    search_fields = ['user__email', 'user__username', 'product__name']
    readonly_fields = ['access_id', 'order', 'created_at', 'updated_at']
    ordering = ['-access_granted_at']


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['subscription_id', 'user', 'plan', 'status', 'current_period_end', 'cancel_at_period_end']
    list_filter = ['status', 'cancel_at_period_end']
    search_fields = ['user__email', 'user__username', 'plan__name']
    readonly_fields = ['subscription_id', 'created_at', 'updated_at']
    ordering = ['-current_period_end']
