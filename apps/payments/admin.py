from django.contrib import admin

from .models import Order, Payment, ProviderWebhookEvent


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ['provider', 'provider_payment_id', 'amount', 'currency', 'status', 'created_at']
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'user', 'product', 'amount', 'currency', 'status', 'payment_method', 'created_at']
    list_filter = ['status', 'payment_method', 'product_type', 'created_at']
    search_fields = ['order_id', 'user__email', 'user__username', 'product__name']
    # Status is owned by reconciliation; edit through the provider, not here.
    readonly_fields = ['order_id', 'status', 'created_at', 'updated_at']
    inlines = [PaymentInline]
    ordering = ['-created_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['payment_id', 'provider', 'provider_payment_id', 'user', 'amount', 'currency', 'status', 'created_at']
    list_filter = ['provider', 'status', 'created_at']
    search_fields = ['payment_id', 'provider_payment_id', 'user__email', 'order__order_id']
    readonly_fields = ['payment_id', 'status', 'metadata', 'created_at', 'updated_at']
    ordering = ['-created_at']


@admin.register(ProviderWebhookEvent)
class ProviderWebhookEventAdmin(admin.ModelAdmin):
    list_display = ['event_id', 'provider', 'event_type', 'processed', 'received_at']
    list_filter = ['provider', 'processed', 'event_type', 'received_at']
    search_fields = ['event_id', 'process_error']
    readonly_fields = ['provider', 'event_id', 'event_type', 'payload', 'received_at', 'processed', 'process_error']
    ordering = ['-received_at']
