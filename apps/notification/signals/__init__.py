"""
Signal handlers that turn reconciliation results into user notifications
"""
import logging

from django.dispatch import receiver

from apps.notification.services.notification_service import NotificationService
from apps.payments.signals import payment_reconciled

logger = logging.getLogger('app')


@receiver(payment_reconciled)
def notify_payment_reconciled(sender, payment, order, outcome, **kwargs):
    """
    Runs after the reconciliation transaction commits; a failure here never
    affects the payment or the granted access.
    """
    try:
        NotificationService().notify_payment_outcome(order, outcome)
    except Exception as e:
        logger.error(f"Error creating notification for order {order.order_id}: {e}")
