import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import models

from apps.catalog.models import Product, ProductType

User = get_user_model()


class PaymentProviderName(models.TextChoices):
    STRIPE = 'stripe', 'Stripe'
    MTN_MOMO = 'mtn_momo', 'MTN Mobile Money'


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PROCESSING = 'processing', 'Processing'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'


class Order(models.Model):
    """
    Purchase of one product by one user. Status moves only through reconciliation.
    """
    order_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='orders',
        db_comment="Buyer"
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name='orders',
    )
    product_type = models.CharField(
        max_length=10,
        choices=ProductType.choices,
        db_comment="Copy of product.type at purchase time"
    )
    amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    currency = models.CharField(max_length=10, default='USD')
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_comment="pending | processing | completed | failed"
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentProviderName.choices,
        db_comment="Provider chosen at checkout"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        db_table_comment = "Orders are never deleted; reconciliation is the only writer of status."
        indexes = [
            models.Index(fields=['user'], name='idx_orders_user'),
            models.Index(fields=['status'], name='idx_orders_status'),
            models.Index(fields=['created_at'], name='idx_orders_created'),
        ]

    def __str__(self):
        return f"Order {self.order_id} - {self.status} - {self.amount} {self.currency}"


class Payment(models.Model):
    """
    Provider-side payment attempt for an order.
    (provider, provider_payment_id) is the idempotency key of every webhook and poll.
    """
    payment_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    currency = models.CharField(max_length=10)
    provider = models.CharField(max_length=20, choices=PaymentProviderName.choices)
    provider_payment_id = models.CharField(
        max_length=255,
        db_comment="Stripe PaymentIntent id or MoMo X-Reference-Id"
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        db_comment="Transaction id, verification timestamps, phone number"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payments"
        db_table_comment = "Payment attempts, one row per provider reference."
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'provider_payment_id'],
                name='uniq_payments_provider_reference',
            ),
        ]
        indexes = [
            models.Index(fields=['order'], name='idx_payments_order'),
            models.Index(fields=['status', 'created_at'], name='idx_payments_status_created'),
        ]

    def __str__(self):
        return f"Payment {self.provider}:{self.provider_payment_id} - {self.status}"


class ProviderWebhookEvent(models.Model):
    """Inbox of every verified provider notification."""
    id = models.BigAutoField(primary_key=True)
    provider = models.CharField(max_length=20, choices=PaymentProviderName.choices)
    event_id = models.CharField(max_length=255)
    event_type = models.CharField(max_length=100, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    received_at = models.DateTimeField(auto_now_add=True)
    processed = models.BooleanField(default=False)
    process_error = models.TextField(blank=True)

    class Meta:
        db_table = "provider_webhook_events"
        db_table_comment = "Audit inbox of provider webhooks and callbacks."
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'event_id'],
                name='uniq_webhook_events_provider_event',
            ),
        ]
        indexes = [
            models.Index(fields=['received_at'], name='idx_webhook_events_received'),
        ]

    def __str__(self):
        return f"{self.provider}:{self.event_id} ({self.event_type})"
