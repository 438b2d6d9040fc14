import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.catalog.models import BillingInterval, Product, ProductType
from apps.entitlements.models import GrantSource, Subscription, SubscriptionStatus, UserAccess
from apps.payments.errors import AlreadyExpired, AuthenticationRequired, AuthorizationDenied

User = get_user_model()
logger = logging.getLogger(__name__)

INTERVAL_DAYS = {
    BillingInterval.WEEKLY: 7,
    BillingInterval.MONTHLY: 30,
}


def compute_access_expiry(product: Product, now: datetime) -> Optional[datetime]:
    """None for lifetime products; signal plans run 7 or 30 days from ``now``."""
    if product.type != ProductType.SIGNAL:
        return None
    interval = product.billing_interval
    if interval not in INTERVAL_DAYS:
        logger.warning("Signal product %s has no billing interval, defaulting to monthly", product.product_id)
        interval = BillingInterval.MONTHLY
    return now + timedelta(days=INTERVAL_DAYS[interval])


class AccessService:
    """Reads and writes user entitlements."""

    @staticmethod
    def get_active_access(user, product_id, now: Optional[datetime] = None) -> Optional[UserAccess]:
        if user is None or not getattr(user, 'is_authenticated', False):
            return None
        try:
            return UserAccess.objects.live(now).filter(user=user, product_id=product_id).first()
        except (ValueError, ValidationError):
            return None

    def has_active_access(self, user, product_id, now: Optional[datetime] = None) -> bool:
        return self.get_active_access(user, product_id, now) is not None

    @staticmethod
    def get_access_record(user, product_id) -> Optional[UserAccess]:
        """Stored row regardless of liveness, used to tell 'expired' from 'never bought'."""
        try:
            return UserAccess.objects.filter(user=user, product_id=product_id).first()
        except (ValueError, ValidationError):
            return None

    def require_access(
        self,
        user,
        product_id,
        denied_message: str = "Access denied. Please purchase this product first.",
        now: Optional[datetime] = None,
    ) -> UserAccess:
        """Return the live entitlement or raise the specific reason it is missing."""
        if user is None or not getattr(user, "is_authenticated", False):
            raise AuthenticationRequired("Unauthorized")
        now = now or timezone.now()
        record = self.get_access_record(user, product_id)
        if record is None:
            raise AuthorizationDenied(denied_message)
        if record.access_expires_at is not None and record.access_expires_at <= now:
            raise AlreadyExpired("Your access to this content has expired.")
        if not record.is_active:
            raise AuthorizationDenied(denied_message)
        return record

    @staticmethod
    def list_live_access(user, now: Optional[datetime] = None) -> List[UserAccess]:
        return list(
            UserAccess.objects.live(now)
            .filter(user=user)
            .select_related('product')
            .order_by('-access_granted_at')
        )

    @staticmethod
    def grant(
        user,
        product: Product,
        now: datetime,
        order=None,
        granted_by: str = GrantSource.PAYMENT,
    ) -> Tuple[UserAccess, Optional[Subscription]]:
        """Upsert the (user, product) entitlement and, for signals, the subscription.

        Must run inside the caller's transaction.
        """
        expires_at = compute_access_expiry(product, now)
        access, _ = UserAccess.objects.update_or_create(
            user=user,
            product=product,
            defaults={
                'product_type': product.type,
                'is_active': True,
                'access_granted_at': now,
                'access_expires_at': expires_at,
                'granted_by': granted_by,
                'order': order,
            },
        )

        subscription = None
        if product.type == ProductType.SIGNAL:
            subscription, _ = Subscription.objects.update_or_create(
                user=user,
                plan=product,
                defaults={
                    'status': SubscriptionStatus.ACTIVE,
                    'current_period_start': now,
                    'current_period_end': expires_at,
                    'cancel_at_period_end': False,
                },
            )
        return access, subscription

    @staticmethod
    def expire_lapsed(now: Optional[datetime] = None, limit: Optional[int] = None) -> Tuple[int, int]:
        """Mark lapsed subscriptions expired and deactivate their access rows.

        Returns (subscriptions_expired, access_rows_deactivated).
        """
        now = now or timezone.now()
        lapsed = Subscription.objects.filter(
            status=SubscriptionStatus.ACTIVE,
            current_period_end__lte=now,
        ).order_by('current_period_end')
        if limit:
            lapsed = lapsed[:limit]

        expired_subscriptions = 0
        deactivated = 0
        for subscription in lapsed:
            # Conditional update so a renewal committed meanwhile is left alone.
            expired_subscriptions += Subscription.objects.filter(
                pk=subscription.pk,
                status=SubscriptionStatus.ACTIVE,
                current_period_end__lte=now,
            ).update(status=SubscriptionStatus.EXPIRED, updated_at=now)
            deactivated += UserAccess.objects.filter(
                user_id=subscription.user_id,
                product_id=subscription.plan_id,
                is_active=True,
                access_expires_at__lte=now,
            ).update(is_active=False, updated_at=now)
        return expired_subscriptions, deactivated
