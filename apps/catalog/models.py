import uuid
from decimal import Decimal

from django.db import models


class ProductType(models.TextChoices):
    COURSE = 'course', 'Course'
    SIGNAL = 'signal', 'Signal Subscription'
    BOT = 'bot', 'Trading Bot'


class BillingInterval(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    MONTHLY = 'monthly', 'Monthly'


class Product(models.Model):
    """
    Sellable product. Owned by the catalog admin; the payment core only reads it.
    """
    product_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    type = models.CharField(
        max_length=10,
        choices=ProductType.choices,
        db_comment="course | signal | bot"
    )
    price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        db_comment="List price in `currency`"
    )
    currency = models.CharField(max_length=10, default='USD')
    is_active = models.BooleanField(default=True, db_comment="Inactive products cannot be purchased")
    metadata = models.JSONField(
        default=dict,
        blank=True,
        db_comment="Provider-agnostic attributes (interval for signals, thumbnails, ...)"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        db_table_comment = "Sellable digital products: courses, signal plans and bots."
        indexes = [
            models.Index(fields=['type'], name='idx_products_type'),
            models.Index(fields=['is_active'], name='idx_products_active'),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    @property
    def billing_interval(self) -> str | None:
        """Interval of a signal plan; the plan row wins over product metadata."""
        plan = getattr(self, 'signal_plan', None) if self.type == ProductType.SIGNAL else None
        if plan is not None:
            return plan.interval
        return (self.metadata or {}).get('interval')


class SignalPlan(models.Model):
    product = models.OneToOneField(
        Product,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='signal_plan',
    )
    interval = models.CharField(max_length=10, choices=BillingInterval.choices)
    features = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "signal_plans"
        db_table_comment = "Billing interval and feature list of signal products."

    def __str__(self):
        return f"{self.product.name} - {self.interval}"


class CourseLesson(models.Model):
    lesson_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='lessons',
        limit_choices_to={'type': ProductType.COURSE},
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    storage_public_id = models.CharField(
        max_length=255,
        db_comment="Identifier of the video in the media store; signed into streaming URLs"
    )
    duration = models.CharField(max_length=20, blank=True)
    order_index = models.PositiveIntegerField(default=0)
    is_preview = models.BooleanField(default=False, db_comment="Preview lessons stream without a purchase")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "course_lessons"
        ordering = ['course', 'order_index']
        indexes = [
            models.Index(fields=['course', 'order_index'], name='idx_lessons_course_order'),
        ]

    def __str__(self):
        return f"{self.course_id} #{self.order_index} {self.title}"


class TradingBot(models.Model):
    product = models.OneToOneField(
        Product,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='bot',
    )
    download_url = models.TextField(blank=True)
    version = models.CharField(max_length=50, blank=True)
    setup_instructions = models.TextField(blank=True)
    requirements = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "trading_bots"
        db_table_comment = "Download details of bot products."

    def __str__(self):
        return f"{self.product.name} v{self.version}"
