import uuid

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.catalog.models import Product, ProductType

User = get_user_model()


class GrantSource(models.TextChoices):
    PAYMENT = 'payment', 'Payment'
    MANUAL = 'manual', 'Manual'
    SUBSCRIPTION = 'subscription', 'Subscription'


class SubscriptionStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    CANCELED = 'canceled', 'Canceled'
    EXPIRED = 'expired', 'Expired'


class UserAccessQuerySet(models.QuerySet):
    def live(self, now=None):
        now = now or timezone.now()
        return self.filter(is_active=True).filter(
            Q(access_expires_at__isnull=True) | Q(access_expires_at__gt=now)
        )


class UserAccess(models.Model):
    """
    Right of a user to consume a product. One row per (user, product); grants upsert it.
    """
    access_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='product_access',
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='access_grants',
    )
    product_type = models.CharField(max_length=10, choices=ProductType.choices)
    is_active = models.BooleanField(default=True)
    access_granted_at = models.DateTimeField(default=timezone.now)
    access_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        db_comment="NULL = lifetime access"
    )
    granted_by = models.CharField(
        max_length=20,
        choices=GrantSource.choices,
        default=GrantSource.PAYMENT,
    )
    order = models.ForeignKey(
        'payments.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='access_grants',
        db_comment="Order that produced the latest grant"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserAccessQuerySet.as_manager()

    class Meta:
        db_table = "user_access"
        db_table_comment = "Entitlements. Expired or inactive rows grant nothing."
        constraints = [
            models.UniqueConstraint(fields=['user', 'product'], name='uniq_user_access_user_product'),
        ]
        indexes = [
            models.Index(fields=['user', 'is_active'], name='idx_user_access_user_active'),
            models.Index(fields=['access_expires_at'], name='idx_user_access_expires'),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.product_id} ({'active' if self.is_active else 'inactive'})"

    @property
    def is_lifetime(self) -> bool:
        return self.access_expires_at is None


class Subscription(models.Model):
    subscription_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='subscriptions',
    )
    plan = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='subscriptions',
        limit_choices_to={'type': ProductType.SIGNAL},
    )
    status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
    )
    current_period_start = models.DateTimeField()
    current_period_end = models.DateTimeField()
    cancel_at_period_end = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "subscriptions"
        db_table_comment = "Signal plan periods. Each renewal replaces the period."
        constraints = [
            models.UniqueConstraint(fields=['user', 'plan'], name='uniq_subscriptions_user_plan'),
        ]
        indexes = [
            models.Index(fields=['status', 'current_period_end'], name='idx_subscriptions_status_end'),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.plan_id} [{self.status}] until {self.current_period_end}"
