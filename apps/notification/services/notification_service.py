"""Service layer for in-app notifications"""
import logging
from typing import List, Optional

from django.core.exceptions import ValidationError

from apps.catalog.models import ProductType
from apps.notification.models import NotificationType, UserNotification
from apps.payments.providers.base import NormalizedOutcome

logger = logging.getLogger('app')

PRODUCT_PATHS = {
    ProductType.COURSE: 'courses',
    ProductType.SIGNAL: 'signals',
    ProductType.BOT: 'bots',
}


class NotificationService:
    """Creates and lists user notifications"""

    def notify_payment_outcome(self, order, outcome: NormalizedOutcome) -> Optional[UserNotification]:
        product = order.product
        if outcome == NormalizedOutcome.SUCCESSFUL:
            notification = UserNotification.objects.create(
                user_id=order.user_id,
                type=NotificationType.PAYMENT,
                title='Payment Successful',
                message=f'Your payment for {product.name} has been confirmed. You now have full access!',
                link=f'/{PRODUCT_PATHS.get(product.type, "dashboard")}/{product.product_id}',
            )
        elif outcome == NormalizedOutcome.FAILED:
            notification = UserNotification.objects.create(
                user_id=order.user_id,
                type=NotificationType.PAYMENT,
                title='Payment Failed',
                message='Your payment attempt failed. Please try again or contact support.',
                link=f'/checkout?productId={product.product_id}',
            )
        else:
            return None
        logger.info(f"Created {notification.title!r} notification for order {order.order_id}")
        return notification

    @staticmethod
    def list_for_user(user, unread_only: bool = False) -> List[UserNotification]:
        qs = UserNotification.objects.filter(user=user)
        if unread_only:
            qs = qs.filter(is_read=False)
        return list(qs)

    @staticmethod
    def mark_read(user, notification_id) -> bool:
        try:
            return UserNotification.objects.filter(
                user=user, notification_id=notification_id,
            ).update(is_read=True) == 1
        except (ValueError, ValidationError):
            return False
