"""Provider-neutral types returned by the payment adapters."""
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


class NormalizedOutcome(str, enum.Enum):
    SUCCESSFUL = 'SUCCESSFUL'
    FAILED = 'FAILED'
    PENDING = 'PENDING'


@dataclass(frozen=True)
class ProviderIntent:
    reference: str
    raw_status: str = ''
    client_secret: Optional[str] = None
    checkout_url: Optional[str] = None


@dataclass(frozen=True)
class CardPaymentStatus:
    reference: str
    status: str
    outcome: NormalizedOutcome
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    failure_message: Optional[str] = None

    @property
    def transaction_id(self) -> Optional[str]:
        return self.metadata.get('latest_charge') or self.metadata.get('payment_intent')


@dataclass(frozen=True)
class CardProcessorEvent:
    """Verified card processor webhook event."""
    event_id: str
    type: str
    outcome: Optional[NormalizedOutcome]
    payment_reference: Optional[str] = None
    client_reference: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_actionable(self) -> bool:
        return self.outcome is not None and bool(self.payment_reference)


@dataclass(frozen=True)
class MobileMoneyStatus:
    reference: str
    status: str
    outcome: NormalizedOutcome
    financial_transaction_id: Optional[str] = None
    external_id: Optional[str] = None
    reason: Optional[str] = None

    @property
    def transaction_id(self) -> Optional[str]:
        return self.financial_transaction_id


class PaymentProvider:
    """Adapter contract. Implementations never touch local storage."""

    name: str = ''

    def create_intent(self, amount: Decimal, currency: str, metadata: Dict[str, Any], **kwargs) -> ProviderIntent:
        raise NotImplementedError

    def query_status(self, reference: str):
        raise NotImplementedError
