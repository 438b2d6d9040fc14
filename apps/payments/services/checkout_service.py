import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from apps.entitlements.services.access_service import AccessService
from apps.logs.utils import log_event
from apps.payments.errors import InvalidRequest, ProductNotFound, StoreWriteFailed
from apps.payments.models import Order, Payment, PaymentProviderName
from apps.payments.providers.base import NormalizedOutcome
from apps.payments.providers.registry import ProviderRegistry, get_default_registry
from apps.payments.repositories.payment_repository import PaymentRepository
from apps.payments.services.reconciliation_service import ReconciliationService
from apps.payments.utils.phone import is_valid_mobile_number

User = get_user_model()
logger = logging.getLogger(__name__)

MOMO_INSTRUCTIONS = [
    "1. Check your phone for MTN Mobile Money prompt",
    "2. Enter your PIN to approve the payment",
    "3. Wait for confirmation",
]


@dataclass
class CheckoutResult:
    order: Order
    payment: Payment
    client_secret: Optional[str] = None
    checkout_url: Optional[str] = None
    instructions: List[str] = field(default_factory=list)


class CheckoutService:
    """Creates orders, provider intents and the matching pending payments."""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        repository: Optional[PaymentRepository] = None,
        reconciliation: Optional[ReconciliationService] = None,
        access_service: Optional[AccessService] = None,
    ) -> None:
        self._registry = registry
        self.repository = repository or PaymentRepository()
        self.access_service = access_service or AccessService()
        self.reconciliation = reconciliation or ReconciliationService(
            repository=self.repository, access_service=self.access_service,
        )

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry or get_default_registry()

    def _get_product(self, product_id):
        if not product_id:
            raise InvalidRequest("Missing required fields: productId")
        product = self.repository.get_active_product(product_id)
        if not product:
            raise ProductNotFound()
        return product

    def _persist_payment(self, order: Order, provider: str, reference: str, metadata: dict) -> Payment:
        try:
            with transaction.atomic():
                return self.repository.create_payment(order, provider, reference, metadata)
        except DatabaseError as exc:
            logger.exception("Failed to record %s payment %s for order %s", provider, reference, order.order_id)
            raise StoreWriteFailed("Failed to create payment record") from exc

    @staticmethod
    def _order_metadata(order: Order, product) -> dict:
        return {
            'order_id': str(order.order_id),
            'user_id': str(order.user_id),
            'product_id': str(product.product_id),
            'product_type': product.type,
        }

    @staticmethod
    def _charge_currency(product, requested: Optional[str] = None) -> str:
        """Products are sold in their catalog currency only."""
        currency = product.currency.upper()
        if requested and requested.strip().upper() != currency:
            raise InvalidRequest(f"This product is sold in {currency}")
        return currency

    def create_card_payment(self, user: User, product_id, currency: Optional[str] = None) -> CheckoutResult:
        product = self._get_product(product_id)
        currency = self._charge_currency(product, currency)

        order = self.repository.create_order(
            user, product, product.price, currency, PaymentProviderName.STRIPE,
        )
        provider = self.registry.get(PaymentProviderName.STRIPE)
        intent = provider.create_intent(
            product.price,
            currency,
            self._order_metadata(order, product),
        )
        payment = self._persist_payment(order, PaymentProviderName.STRIPE, intent.reference, {})

        log_event(
            "Card payment intent created",
            channel="payment",
            context={
                "order_id": str(order.order_id),
                "provider_payment_id": intent.reference,
                "amount": str(product.price),
                "currency": currency,
            },
        )
        return CheckoutResult(order=order, payment=payment, client_secret=intent.client_secret)

    def create_checkout_session(self, user: User, product_id) -> CheckoutResult:
        product = self._get_product(product_id)
        currency = self._charge_currency(product)

        order = self.repository.create_order(
            user, product, product.price, currency, PaymentProviderName.STRIPE,
        )
        frontend_url = settings.FRONTEND_URL.rstrip('/')
        provider = self.registry.get(PaymentProviderName.STRIPE)
        session = provider.create_checkout_session(
            product.price,
            currency,
            self._order_metadata(order, product),
            product_name=product.name,
            description=product.description or None,
            success_url=(
                f"{frontend_url}/dashboard?payment=success"
                f"&session_id={{CHECKOUT_SESSION_ID}}&order_id={order.order_id}"
            ),
            cancel_url=f"{frontend_url}/checkout?product={product.product_id}&canceled=true",
        )
        payment = self._persist_payment(order, PaymentProviderName.STRIPE, session.reference, {'checkout': 'session'})

        log_event(
            "Card checkout session created",
            channel="payment",
            context={
                "order_id": str(order.order_id),
                "provider_payment_id": session.reference,
                "amount": str(product.price),
                "currency": currency,
            },
        )
        return CheckoutResult(order=order, payment=payment, checkout_url=session.checkout_url)

    def create_mobile_money_payment(self, user: User, product_id, phone_number: str) -> CheckoutResult:
        if not product_id or not phone_number:
            raise InvalidRequest("Missing required fields: productId and phoneNumber")
        if not is_valid_mobile_number(phone_number):
            raise InvalidRequest("Invalid phone number format. Use format: 07XXXXXXXX or +256XXXXXXXXX")

        product = self._get_product(product_id)
        if self.access_service.has_active_access(user, product.product_id):
            raise InvalidRequest("You already have access to this product")

        provider = self.registry.get(PaymentProviderName.MTN_MOMO)
        # The wallet is debited in the collection account's currency only.
        if product.currency.upper() != provider.currency.upper():
            raise InvalidRequest("This product cannot be paid with MTN Mobile Money")
        currency = provider.currency.upper()

        order = self.repository.create_order(
            user, product, product.price, currency, PaymentProviderName.MTN_MOMO,
        )
        # A provider failure leaves the order pending with no payment attached.
        intent = provider.create_intent(
            product.price,
            currency,
            {'order_id': str(order.order_id)},
            phone_number=phone_number,
            description=f"Payment for {product.name}",
        )
        payment = self._persist_payment(
            order, PaymentProviderName.MTN_MOMO, intent.reference, {'phone_number': phone_number},
        )
        # Request sent; the engine moves the order to processing.
        result = self.reconciliation.reconcile(
            PaymentProviderName.MTN_MOMO, intent.reference, NormalizedOutcome.PENDING,
        )

        log_event(
            "Mobile money payment requested",
            channel="payment",
            context={
                "order_id": str(order.order_id),
                "provider_payment_id": intent.reference,
                "amount": str(product.price),
                "currency": currency,
            },
        )
        return CheckoutResult(order=result.order, payment=payment, instructions=list(MOMO_INSTRUCTIONS))
