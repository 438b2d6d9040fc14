"""In-memory provider doubles injected through the registry."""
import hashlib
import hmac
import time
from decimal import Decimal
from typing import Dict, List, Optional

from apps.payments.errors import ProviderUnavailable
from apps.payments.providers.base import (
    CardPaymentStatus,
    MobileMoneyStatus,
    NormalizedOutcome,
    PaymentProvider,
    ProviderIntent,
)
from apps.payments.providers.registry import ProviderRegistry
from apps.payments.providers.stripe_provider import StripeProvider


class FakeCardProvider(StripeProvider):
    """Real webhook verification, scripted intents and status queries."""

    def __init__(self, statuses: Optional[Dict[str, str]] = None, fail: bool = False):
        super().__init__(secret_key="sk_test_dummy", webhook_secret="whsec_test_secret")
        self.statuses = dict(statuses or {})
        self.fail = fail
        self.created: List[dict] = []
        self.sessions: List[dict] = []
        self.queried: List[str] = []

    def create_intent(self, amount: Decimal, currency: str, metadata: dict, **kwargs) -> ProviderIntent:
        if self.fail:
            raise ProviderUnavailable("Failed to create card payment")
        reference = f"pi_fake_{len(self.created) + 1}"
        self.created.append({"amount": amount, "currency": currency, "metadata": metadata})
        return ProviderIntent(reference=reference, raw_status="requires_payment_method", client_secret=f"{reference}_secret")

    def create_checkout_session(self, amount: Decimal, currency: str, metadata: dict, **kwargs) -> ProviderIntent:
        if self.fail:
            raise ProviderUnavailable("Failed to create checkout session")
        reference = f"cs_fake_{len(self.sessions) + 1}"
        self.sessions.append({"amount": amount, "currency": currency, "metadata": metadata, **kwargs})
        return ProviderIntent(reference=reference, raw_status="open", checkout_url=f"https://checkout.stripe.test/pay/{reference}")

    def query_status(self, reference: str) -> CardPaymentStatus:
        self.queried.append(reference)
        if self.fail:
            raise ProviderUnavailable("Failed to query card payment")
        status = self.statuses.get(reference, "processing")
        outcome = {
            "succeeded": NormalizedOutcome.SUCCESSFUL,
            "canceled": NormalizedOutcome.FAILED,
        }.get(status, NormalizedOutcome.PENDING)
        return CardPaymentStatus(reference=reference, status=status, outcome=outcome, metadata={"latest_charge": "ch_fake"})


class FakeMobileMoneyProvider(PaymentProvider):
    name = "mtn_momo"

    def __init__(
        self,
        statuses: Optional[Dict[str, str]] = None,
        unavailable: Optional[set] = None,
        fail_create: bool = False,
        currency: str = "UGX",
    ):
        self.currency = currency
        self.statuses = dict(statuses or {})
        self.unavailable = set(unavailable or ())
        self.fail_create = fail_create
        self.requests: List[dict] = []
        self.queried: List[str] = []

    def create_intent(self, amount, currency, metadata, **kwargs) -> ProviderIntent:
        if self.fail_create:
            raise ProviderUnavailable("Mobile money provider request failed")
        reference = f"{metadata['order_id']}-{len(self.requests) + 1}"
        self.requests.append({"amount": amount, "currency": currency, "metadata": metadata, **kwargs})
        return ProviderIntent(reference=reference, raw_status="PENDING")

    def query_status(self, reference: str) -> MobileMoneyStatus:
        self.queried.append(reference)
        if reference in self.unavailable:
            raise ProviderUnavailable("Mobile money provider timed out")
        status = self.statuses.get(reference, "PENDING")
        outcome = {
            "SUCCESSFUL": NormalizedOutcome.SUCCESSFUL,
            "FAILED": NormalizedOutcome.FAILED,
            "REJECTED": NormalizedOutcome.FAILED,
            "TIMEOUT": NormalizedOutcome.FAILED,
        }.get(status, NormalizedOutcome.PENDING)
        return MobileMoneyStatus(
            reference=reference,
            status=status,
            outcome=outcome,
            financial_transaction_id="987654321" if status == "SUCCESSFUL" else None,
        )


def build_fake_registry(card: Optional[FakeCardProvider] = None, momo: Optional[FakeMobileMoneyProvider] = None) -> ProviderRegistry:
    return ProviderRegistry({
        "stripe": card or FakeCardProvider(),
        "mtn_momo": momo or FakeMobileMoneyProvider(),
    })


def stripe_signature_header(payload: str, secret: str = "whsec_test_secret", timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook bodies."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> dict:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    }
