import json
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from apps.logs.utils import log_event
from apps.payments.errors import (
    EntitlementError,
    InvalidRequest,
    OrderNotFound,
    PaymentNotFound,
    SignatureInvalid,
)
from apps.payments.models import PaymentProviderName
from apps.payments.providers.registry import ProviderRegistry, get_default_registry
from apps.payments.repositories.payment_repository import PaymentRepository
from apps.payments.services.reconciliation_service import ReconciliationResult, ReconciliationService
from apps.payments.utils.signature import verify_hmac_sha256

logger = logging.getLogger(__name__)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, '')}


class PaymentIngestionService:
    """Turns provider notifications and client polls into reconciliation calls."""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        reconciliation: Optional[ReconciliationService] = None,
        repository: Optional[PaymentRepository] = None,
    ) -> None:
        self._registry = registry
        self.repository = repository or PaymentRepository()
        self.reconciliation = reconciliation or ReconciliationService(repository=self.repository)

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry or get_default_registry()

    def _record_event(self, provider: str, event_id: str, event_type: str, payload: dict):
        try:
            event, created = self.repository.record_webhook_event(provider, event_id, event_type, payload)
        except DatabaseError:
            logger.warning("Could not record %s webhook %s in inbox", provider, event_id, exc_info=True)
            return None
        if not created:
            logger.info("Duplicate %s webhook %s received", provider, event_id)
        return event

    def _mark_event(self, event, processed: bool, error: str = '') -> None:
        if event is None:
            return
        try:
            self.repository.mark_webhook_event(event, processed, error)
        except DatabaseError:
            logger.warning("Could not update inbox entry %s", event.pk, exc_info=True)

    def handle_card_webhook(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        provider = self.registry.get(PaymentProviderName.STRIPE)
        event = provider.construct_event(raw_body, signature_header)

        inbox = self._record_event(PaymentProviderName.STRIPE, event.event_id, event.type, event.payload)
        if not event.is_actionable:
            logger.info("Ignoring card webhook %s of type %s", event.event_id, event.type)
            self._mark_event(inbox, True)
            return {'received': True}

        outcome = event.outcome
        transaction_id = event.metadata.get('latest_charge') or event.metadata.get('payment_intent')
        try:
            if settings.PAYMENTS.get('CARD_WEBHOOK_REQUERY'):
                status = provider.query_status(event.payment_reference)
                outcome = status.outcome
                transaction_id = status.transaction_id or transaction_id
            result = self.reconciliation.reconcile(
                PaymentProviderName.STRIPE,
                event.payment_reference,
                outcome,
                provider_metadata=_compact({
                    'transaction_id': transaction_id,
                    'event_id': event.event_id,
                    'event_type': event.type,
                }),
            )
        except EntitlementError as exc:
            self._mark_event(inbox, False, exc.message)
            raise
        self._mark_event(inbox, True)
        return {'received': True, 'status': result.payment.status}

    def handle_momo_callback(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        secret = getattr(settings, 'MOMO_CALLBACK_SECRET', '')
        if secret and not verify_hmac_sha256(secret, raw_body, signature_header):
            raise SignatureInvalid("Invalid callback signature")

        try:
            payload = json.loads(raw_body or b'{}')
        except ValueError:
            raise InvalidRequest("Invalid JSON body") from None
        if not isinstance(payload, dict):
            raise InvalidRequest("Invalid JSON body")

        reference = payload.get('referenceId')
        if not reference:
            raise InvalidRequest("Missing referenceId")

        advisory_status = str(payload.get('status') or '')
        inbox = self._record_event(
            PaymentProviderName.MTN_MOMO,
            f"{reference}:{advisory_status or 'UNKNOWN'}",
            'requesttopay.callback',
            payload,
        )

        if self.repository.get_payment(PaymentProviderName.MTN_MOMO, reference) is None:
            self._mark_event(inbox, False, "Payment not found")
            raise PaymentNotFound(f"Payment not found for reference {reference}")

        try:
            # The callback body is advisory; the provider is the source of truth.
            result = self._query_and_reconcile(PaymentProviderName.MTN_MOMO, reference)
        except EntitlementError as exc:
            self._mark_event(inbox, False, exc.message)
            raise
        self._mark_event(inbox, True)
        return {'received': True, 'status': result.payment.status}

    def _query_and_reconcile(self, provider_name: str, reference: str) -> ReconciliationResult:
        status = self.registry.get(provider_name).query_status(reference)
        return self.reconciliation.reconcile(
            provider_name,
            reference,
            status.outcome,
            provider_metadata=_compact({
                'transaction_id': status.transaction_id,
                'provider_status': status.status,
                'reason': getattr(status, 'reason', None) or getattr(status, 'failure_message', None),
            }),
        )

    def verify_payment(self, user, reference: str, order_id) -> ReconciliationResult:
        if not reference or not order_id:
            raise InvalidRequest("Missing required fields: referenceId and orderId")

        order = self.repository.get_order_for_user(order_id, user)
        if order is None:
            raise OrderNotFound()
        payment = self.repository.get_payment_for_order(order, reference)
        if payment is None:
            raise PaymentNotFound()

        return self._query_and_reconcile(payment.provider, reference)

    def poll_pending(self, limit: int = 50, min_age_seconds: Optional[int] = None) -> Dict[str, int]:
        if min_age_seconds is None:
            min_age_seconds = settings.PAYMENTS.get('POLL_MIN_AGE_SECONDS', 60)
        older_than = timezone.now() - timedelta(seconds=min_age_seconds)
        summary = {'checked': 0, 'completed': 0, 'failed': 0, 'pending': 0, 'errors': 0}

        for payment in self.repository.list_stale_pending_payments(older_than, limit):
            summary['checked'] += 1
            try:
                result = self._query_and_reconcile(payment.provider, payment.provider_payment_id)
            except EntitlementError as exc:
                summary['errors'] += 1
                logger.warning(
                    "Polling %s payment %s failed: %s",
                    payment.provider, payment.provider_payment_id, exc.message,
                )
                continue
            summary[result.payment.status] += 1

        log_event("Pending payment poll finished", channel="payment", context=summary)
        return summary
