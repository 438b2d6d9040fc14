import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from apps.payments.errors import ProviderUnavailable, SignatureInvalid
from apps.payments.models import PaymentProviderName
from apps.payments.providers.base import (
    CardPaymentStatus,
    CardProcessorEvent,
    NormalizedOutcome,
    PaymentProvider,
    ProviderIntent,
)

logger = logging.getLogger(__name__)

EVENT_OUTCOMES = {
    'payment_intent.succeeded': NormalizedOutcome.SUCCESSFUL,
    'payment_intent.payment_failed': NormalizedOutcome.FAILED,
    'payment_intent.canceled': NormalizedOutcome.FAILED,
    'payment_intent.processing': NormalizedOutcome.PENDING,
}

# Hosted checkout reports through session events; completed depends on payment_status.
SESSION_EVENT_OUTCOMES = {
    'checkout.session.async_payment_succeeded': NormalizedOutcome.SUCCESSFUL,
    'checkout.session.async_payment_failed': NormalizedOutcome.FAILED,
    'checkout.session.expired': NormalizedOutcome.FAILED,
}

SESSION_REFERENCE_PREFIX = 'cs_'
HOSTED_CHECKOUT_MARKER = 'session'


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1')))


def from_minor_units(amount: Optional[int]) -> Optional[Decimal]:
    if amount is None:
        return None
    return (Decimal(amount) / 100).quantize(Decimal('0.01'))


def map_intent_status(status: str, has_error: bool = False) -> NormalizedOutcome:
    if status == 'succeeded':
        return NormalizedOutcome.SUCCESSFUL
    if status == 'canceled':
        return NormalizedOutcome.FAILED
    # A fresh intent also sits in requires_payment_method before the first attempt.
    if status == 'requires_payment_method' and has_error:
        return NormalizedOutcome.FAILED
    return NormalizedOutcome.PENDING


def map_session_status(status: Optional[str], payment_status: Optional[str]) -> NormalizedOutcome:
    if payment_status in ('paid', 'no_payment_required'):
        return NormalizedOutcome.SUCCESSFUL
    if status == 'expired':
        return NormalizedOutcome.FAILED
    return NormalizedOutcome.PENDING


def _session_intent_metadata(intent) -> Dict[str, Any]:
    """payment_intent on a session is an id, or the object when expanded."""
    if not intent:
        return {}
    if isinstance(intent, str):
        return {'payment_intent': intent}
    metadata = {'payment_intent': intent.get('id')}
    if intent.get('latest_charge'):
        metadata['latest_charge'] = intent['latest_charge']
    return metadata


class StripeProvider(PaymentProvider):
    """Card processor adapter on top of the official stripe library."""

    name = PaymentProviderName.STRIPE

    def __init__(self, secret_key: Optional[str] = None, webhook_secret: Optional[str] = None, timeout: Optional[int] = None):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        self.timeout = timeout or settings.PAYMENTS.get('PROVIDER_TIMEOUT', 30)
        # The stripe library keeps one HTTP client per process.
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

    def create_intent(self, amount: Decimal, currency: str, metadata: Dict[str, Any], **kwargs) -> ProviderIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                automatic_payment_methods={'enabled': True},
                api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe intent creation failed: %s", exc)
            raise ProviderUnavailable("Failed to create card payment") from exc
        return ProviderIntent(
            reference=intent['id'],
            raw_status=intent['status'],
            client_secret=intent['client_secret'],
        )

    def create_checkout_session(
        self,
        amount: Decimal,
        currency: str,
        metadata: Dict[str, Any],
        *,
        product_name: str,
        success_url: str,
        cancel_url: str,
        description: Optional[str] = None,
    ) -> ProviderIntent:
        """Hosted checkout page; the session id is the payment reference."""
        string_metadata = {k: str(v) for k, v in (metadata or {}).items()}
        product_data = {'name': product_name}
        if description:
            product_data['description'] = description
        try:
            session = stripe.checkout.Session.create(
                mode='payment',
                payment_method_types=['card'],
                line_items=[{
                    'price_data': {
                        'currency': currency.lower(),
                        'product_data': product_data,
                        'unit_amount': to_minor_units(amount),
                    },
                    'quantity': 1,
                }],
                payment_intent_data={
                    'metadata': {**string_metadata, 'checkout': HOSTED_CHECKOUT_MARKER},
                },
                metadata=string_metadata,
                client_reference_id=string_metadata.get('order_id'),
                success_url=success_url,
                cancel_url=cancel_url,
                api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session creation failed: %s", exc)
            raise ProviderUnavailable("Failed to create checkout session") from exc
        return ProviderIntent(
            reference=session['id'],
            raw_status=session.get('status') or 'open',
            checkout_url=session.get('url'),
        )

    def query_status(self, reference: str) -> CardPaymentStatus:
        if reference.startswith(SESSION_REFERENCE_PREFIX):
            return self._query_session(reference)
        try:
            intent = stripe.PaymentIntent.retrieve(reference, api_key=self.secret_key)
        except stripe.StripeError as exc:
            logger.error("Stripe status query for %s failed: %s", reference, exc)
            raise ProviderUnavailable("Failed to query card payment") from exc

        last_error = intent.get('last_payment_error')
        metadata = dict(intent.get('metadata') or {})
        if intent.get('latest_charge'):
            metadata['latest_charge'] = intent['latest_charge']
        return CardPaymentStatus(
            reference=intent['id'],
            status=intent['status'],
            outcome=map_intent_status(intent['status'], has_error=bool(last_error)),
            amount=from_minor_units(intent.get('amount')),
            currency=(intent.get('currency') or '').upper() or None,
            metadata=metadata,
            failure_message=(last_error or {}).get('message') if last_error else None,
        )

    def _query_session(self, reference: str) -> CardPaymentStatus:
        try:
            session = stripe.checkout.Session.retrieve(
                reference, expand=['payment_intent'], api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe session query for %s failed: %s", reference, exc)
            raise ProviderUnavailable("Failed to query card payment") from exc

        metadata = dict(session.get('metadata') or {})
        metadata.update(_session_intent_metadata(session.get('payment_intent')))
        return CardPaymentStatus(
            reference=session['id'],
            status=session.get('payment_status') or session.get('status') or '',
            outcome=map_session_status(session.get('status'), session.get('payment_status')),
            amount=from_minor_units(session.get('amount_total')),
            currency=(session.get('currency') or '').upper() or None,
            metadata=metadata,
        )

    def construct_event(self, payload: bytes, signature_header: Optional[str]) -> CardProcessorEvent:
        """Verify the Stripe-Signature header and parse the event."""
        if not signature_header:
            raise SignatureInvalid("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature_header, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalid("Invalid signature") from exc
        except ValueError as exc:
            raise SignatureInvalid("Invalid payload") from exc
        # Verified; parse the same bytes as plain dicts.
        return parse_event(json.loads(payload))


def _parse_session_event(event: Dict[str, Any], event_type: str, obj: Dict[str, Any]) -> CardProcessorEvent:
    if event_type == 'checkout.session.completed':
        outcome = map_session_status(obj.get('status'), obj.get('payment_status'))
    else:
        outcome = SESSION_EVENT_OUTCOMES[event_type]
    metadata = dict(obj.get('metadata') or {})
    metadata.update(_session_intent_metadata(obj.get('payment_intent')))
    return CardProcessorEvent(
        event_id=event.get('id', ''),
        type=event_type,
        outcome=outcome,
        payment_reference=obj.get('id'),
        client_reference=obj.get('client_reference_id') or metadata.get('order_id'),
        amount=from_minor_units(obj.get('amount_total')),
        currency=(obj.get('currency') or '').upper() or None,
        metadata=metadata,
        payload=event,
    )


def parse_event(event: Dict[str, Any]) -> CardProcessorEvent:
    event_type = event.get('type', '')
    obj = (event.get('data') or {}).get('object') or {}
    metadata = dict(obj.get('metadata') or {})

    if event_type == 'checkout.session.completed' or event_type in SESSION_EVENT_OUTCOMES:
        return _parse_session_event(event, event_type, obj)

    outcome = EVENT_OUTCOMES.get(event_type)
    # Intents behind a hosted checkout are reconciled from their session events.
    if outcome is not None and metadata.get('checkout') != HOSTED_CHECKOUT_MARKER:
        if obj.get('latest_charge'):
            metadata['latest_charge'] = obj['latest_charge']
        return CardProcessorEvent(
            event_id=event.get('id', ''),
            type=event_type,
            outcome=outcome,
            payment_reference=obj.get('id'),
            client_reference=metadata.get('order_id'),
            amount=from_minor_units(obj.get('amount')),
            currency=(obj.get('currency') or '').upper() or None,
            metadata=metadata,
            payload=event,
        )

    return CardProcessorEvent(event_id=event.get('id', ''), type=event_type, outcome=None, payload=event)
