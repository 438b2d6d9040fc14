from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.contrib.auth import get_user_model
from django.db import IntegrityError

from apps.catalog.models import Product
from apps.payments.models import (
    Order,
    OrderStatus,
    Payment,
    PaymentStatus,
    ProviderWebhookEvent,
)

User = get_user_model()


class PaymentRepository:
    """Repository layer for orders, payments and the webhook inbox"""

    @staticmethod
    def get_active_product(product_id) -> Optional[Product]:
        try:
            return Product.objects.select_related('signal_plan').get(product_id=product_id, is_active=True)
        except (Product.DoesNotExist, ValueError, ValidationError):
            return None

    @staticmethod
    def create_order(user: User, product: Product, amount: Decimal, currency: str, payment_method: str) -> Order:
        return Order.objects.create(
            user=user,
            product=product,
            product_type=product.type,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            status=OrderStatus.PENDING,
        )

    @staticmethod
    def create_payment(order: Order, provider: str, provider_payment_id: str, metadata: Optional[dict] = None) -> Payment:
        return Payment.objects.create(
            order=order,
            user=order.user,
            amount=order.amount,
            currency=order.currency,
            provider=provider,
            provider_payment_id=provider_payment_id,
            status=PaymentStatus.PENDING,
            metadata=metadata or {},
        )

    @staticmethod
    def get_order_for_user(order_id, user: User) -> Optional[Order]:
        try:
            return Order.objects.select_related('product').get(order_id=order_id, user=user)
        except (Order.DoesNotExist, ValueError, ValidationError):
            return None

    @staticmethod
    def get_payment(provider: str, provider_payment_id: str) -> Optional[Payment]:
        return Payment.objects.filter(provider=provider, provider_payment_id=provider_payment_id).first()

    @staticmethod
    def get_payment_for_order(order: Order, provider_payment_id: str) -> Optional[Payment]:
        return Payment.objects.filter(order=order, provider_payment_id=provider_payment_id).first()

    @staticmethod
    def lock_payment(provider: str, provider_payment_id: str) -> Optional[Payment]:
        """Row-locked read; caller must hold a transaction."""
        return (
            Payment.objects.select_for_update()
            .filter(provider=provider, provider_payment_id=provider_payment_id)
            .first()
        )

    @staticmethod
    def compare_and_set_payment(payment: Payment, new_status: str, allowed_prior: Iterable[str], metadata: dict, now: datetime) -> bool:
        updated = Payment.objects.filter(
            pk=payment.pk,
            status__in=list(allowed_prior),
        ).update(status=new_status, metadata=metadata, updated_at=now)
        return updated == 1

    @staticmethod
    def compare_and_set_order(order_id, new_status: str, allowed_prior: Iterable[str], now: datetime) -> bool:
        updated = Order.objects.filter(
            pk=order_id,
            status__in=list(allowed_prior),
        ).update(status=new_status, updated_at=now)
        return updated == 1

    @staticmethod
    def list_stale_pending_payments(older_than: datetime, limit: int) -> List[Payment]:
        return list(
            Payment.objects.filter(status=PaymentStatus.PENDING, created_at__lte=older_than)
            .order_by('created_at')[:limit]
        )

    @staticmethod
    def record_webhook_event(provider: str, event_id: str, event_type: str, payload: dict) -> tuple[ProviderWebhookEvent, bool]:
        try:
            return ProviderWebhookEvent.objects.get_or_create(
                provider=provider,
                event_id=event_id,
                defaults={'event_type': event_type, 'payload': payload},
            )
        except IntegrityError:
            return ProviderWebhookEvent.objects.get(provider=provider, event_id=event_id), False

    @staticmethod
    def mark_webhook_event(event: ProviderWebhookEvent, processed: bool, error: str = '') -> None:
        event.processed = processed
        event.process_error = error[:2000]
        event.save(update_fields=['processed', 'process_error'])
