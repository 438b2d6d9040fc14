import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.catalog.models import Product
from apps.entitlements.models import Subscription, UserAccess
from apps.entitlements.services.access_service import AccessService
from apps.logs.utils import log_event
from apps.payments.errors import PaymentNotFound, ProductNotFound, StoreWriteFailed
from apps.payments.models import Order, OrderStatus, Payment, PaymentStatus
from apps.payments.providers.base import NormalizedOutcome
from apps.payments.repositories.payment_repository import PaymentRepository
from apps.payments.signals import payment_reconciled

logger = logging.getLogger(__name__)

# Same table for every provider: outcome -> (payment status, order status)
OUTCOME_STATUSES = {
    NormalizedOutcome.SUCCESSFUL: (PaymentStatus.COMPLETED, OrderStatus.COMPLETED),
    NormalizedOutcome.FAILED: (PaymentStatus.FAILED, OrderStatus.FAILED),
    NormalizedOutcome.PENDING: (PaymentStatus.PENDING, OrderStatus.PROCESSING),
}

# Statuses a payment may move out of, keyed by target. Completed is absorbing,
# and a pending report never regresses a terminal payment.
PAYMENT_PRIOR_STATES = {
    PaymentStatus.COMPLETED: (PaymentStatus.PENDING, PaymentStatus.FAILED),
    PaymentStatus.FAILED: (PaymentStatus.PENDING,),
    PaymentStatus.PENDING: (),
}

ORDER_PRIOR_STATES = {
    OrderStatus.COMPLETED: (OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.FAILED),
    OrderStatus.FAILED: (OrderStatus.PENDING, OrderStatus.PROCESSING),
    OrderStatus.PROCESSING: (OrderStatus.PENDING, OrderStatus.FAILED),
}


@dataclass
class ReconciliationResult:
    payment: Payment
    order: Order
    outcome: NormalizedOutcome
    changed: bool
    access: Optional[UserAccess] = None
    subscription: Optional[Subscription] = None


class ReconciliationService:
    """Single entry point that moves Order/Payment status and grants access.

    Webhooks, the verify endpoint and the poller all call ``reconcile``; the
    result of a replayed report is the same as the first one.
    """

    def __init__(
        self,
        repository: Optional[PaymentRepository] = None,
        access_service: Optional[AccessService] = None,
    ) -> None:
        self.repository = repository or PaymentRepository()
        self.access_service = access_service or AccessService()

    def reconcile(
        self,
        provider: str,
        provider_reference: str,
        outcome: NormalizedOutcome,
        *,
        provider_metadata: Optional[Dict[str, Any]] = None,
    ) -> ReconciliationResult:
        outcome = NormalizedOutcome(outcome)
        payment_status, order_status = OUTCOME_STATUSES[outcome]
        now = timezone.now()

        try:
            with transaction.atomic():
                result = self._reconcile_locked(
                    provider, provider_reference, outcome,
                    payment_status, order_status, provider_metadata or {}, now,
                )
        except DatabaseError as exc:
            logger.exception("Reconciliation of %s:%s failed to persist", provider, provider_reference)
            raise StoreWriteFailed("Could not persist payment reconciliation") from exc

        log_event(
            "Payment reconciled" if result.changed else "Payment reconciliation replay",
            channel="payment",
            context={
                "provider": str(provider),
                "provider_payment_id": provider_reference,
                "outcome": outcome.value,
                "payment_status": result.payment.status,
                "order_id": str(result.order.order_id),
                "order_status": result.order.status,
                "changed": result.changed,
                "access_granted": result.access is not None,
            },
        )
        return result

    def _reconcile_locked(self, provider, provider_reference, outcome, payment_status, order_status, provider_metadata, now) -> ReconciliationResult:
        payment = self.repository.lock_payment(provider, provider_reference)
        if payment is None:
            logger.warning("No payment for %s reference %s", provider, provider_reference)
            raise PaymentNotFound(f"Payment not found for reference {provider_reference}")

        already_at_target = payment.status == payment_status
        changed = False
        if not already_at_target:
            metadata = {**(payment.metadata or {}), **provider_metadata, 'verified_at': now.isoformat()}
            changed = self.repository.compare_and_set_payment(
                payment, payment_status, PAYMENT_PRIOR_STATES[payment_status], metadata, now,
            )

        if changed or already_at_target:
            # Replays also repair an order left behind by an earlier partial write.
            self.repository.compare_and_set_order(
                payment.order_id, order_status, ORDER_PRIOR_STATES[order_status], now,
            )

        payment.refresh_from_db()
        order = Order.objects.select_related('product', 'user').get(pk=payment.order_id)

        access = subscription = None
        if outcome == NormalizedOutcome.SUCCESSFUL and payment.status == PaymentStatus.COMPLETED:
            needs_grant = changed or not UserAccess.objects.filter(
                user_id=order.user_id, product_id=order.product_id,
            ).exists()
            if needs_grant:
                product = Product.objects.select_related('signal_plan').filter(pk=order.product_id).first()
                if product is None:
                    raise ProductNotFound(f"Product for order {order.order_id} not found")
                access, subscription = self.access_service.grant(
                    order.user, product, now, order=order,
                )

        if changed:
            transaction.on_commit(
                lambda: payment_reconciled.send(
                    sender=self.__class__,
                    payment=payment,
                    order=order,
                    outcome=outcome,
                    access=access,
                )
            )

        return ReconciliationResult(
            payment=payment,
            order=order,
            outcome=outcome,
            changed=changed,
            access=access,
            subscription=subscription,
        )
