import logging
import threading
import time
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from apps.payments.errors import ProviderUnavailable
from apps.payments.models import PaymentProviderName
from apps.payments.providers.base import (
    MobileMoneyStatus,
    NormalizedOutcome,
    PaymentProvider,
    ProviderIntent,
)
from apps.payments.utils.phone import normalize_msisdn

logger = logging.getLogger(__name__)

BASE_URLS = {
    'production': 'https://proxy.momoapi.mtn.com',
    'sandbox': 'https://sandbox.momodeveloper.mtn.com',
}
TOKEN_SAFETY_MARGIN = 100
DEFAULT_TOKEN_TTL = 3600
FAILED_STATUSES = {'FAILED', 'REJECTED', 'TIMEOUT'}


def map_momo_status(status: Optional[str]) -> NormalizedOutcome:
    status = (status or '').upper()
    if status == 'SUCCESSFUL':
        return NormalizedOutcome.SUCCESSFUL
    if status in FAILED_STATUSES:
        return NormalizedOutcome.FAILED
    return NormalizedOutcome.PENDING


class MoMoClient(PaymentProvider):
    """MTN Mobile Money collection API client."""

    name = PaymentProviderName.MTN_MOMO

    def __init__(
        self,
        subscription_key: Optional[str] = None,
        api_user: Optional[str] = None,
        api_key: Optional[str] = None,
        environment: Optional[str] = None,
        callback_url: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
        clock=time.monotonic,
    ):
        self.subscription_key = subscription_key or settings.MTN_MOMO_SUBSCRIPTION_KEY
        self.api_user = api_user or settings.MTN_MOMO_API_USER
        self.api_key = api_key or settings.MTN_MOMO_API_KEY
        self.environment = environment or settings.MTN_MOMO_ENVIRONMENT
        self.callback_url = callback_url if callback_url is not None else settings.MTN_MOMO_CALLBACK_URL
        self.currency = currency or settings.MTN_MOMO_CURRENCY
        self.timeout = timeout or settings.PAYMENTS.get('PROVIDER_TIMEOUT', 30)
        self.base_url = BASE_URLS['production' if self.environment == 'production' else 'sandbox']

        self.session = session or requests.Session()
        self.session.headers.update({
            'Ocp-Apim-Subscription-Key': self.subscription_key,
            'X-Target-Environment': self.environment,
            'Content-Type': 'application/json',
        })

        self._clock = clock
        self._token_lock = threading.Lock()
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0

    def _token_valid(self) -> bool:
        return bool(self._access_token) and self._clock() < self._token_expiry

    def get_access_token(self) -> str:
        if self._token_valid():
            return self._access_token

        with self._token_lock:
            # Another caller may have refreshed while we waited.
            if self._token_valid():
                return self._access_token

            data = self._request(
                'POST',
                '/collection/token/',
                auth=(self.api_user, self.api_key),
                authenticate=False,
            )
            token = data.get('access_token')
            if not token:
                raise ProviderUnavailable("Access token not found in MoMo response")
            ttl = int(data.get('expires_in') or DEFAULT_TOKEN_TTL)
            self._token_expiry = self._clock() + max(ttl - TOKEN_SAFETY_MARGIN, 0)
            self._access_token = token
            logger.info("MoMo access token refreshed, valid for %ss", ttl - TOKEN_SAFETY_MARGIN)
            return token

    def _request(self, method: str, path: str, *, authenticate: bool = True, headers: Optional[Dict[str, str]] = None, **kwargs) -> Dict[str, Any]:
        request_headers = dict(headers or {})
        if authenticate:
            request_headers['Authorization'] = f'Bearer {self.get_access_token()}'

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=request_headers, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.Timeout as exc:
            logger.error("MoMo %s %s timed out", method, path)
            raise ProviderUnavailable("Mobile money provider timed out") from exc
        except requests.RequestException as exc:
            body = getattr(getattr(exc, 'response', None), 'text', '')
            logger.error("MoMo %s %s failed: %s %s", method, path, exc, body)
            raise ProviderUnavailable("Mobile money provider request failed") from exc

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    @staticmethod
    def build_reference_id(order_id: str) -> str:
        return f"{order_id}-{int(time.time() * 1000)}"

    def create_intent(self, amount: Decimal, currency: str, metadata: Dict[str, Any], **kwargs) -> ProviderIntent:
        order_id = str(metadata['order_id'])
        phone_number = kwargs['phone_number']
        description = kwargs.get('description') or f"Order {order_id}"
        reference_id = self.build_reference_id(order_id)

        payload = {
            'amount': f"{Decimal(str(amount)):.2f}",
            'currency': currency or self.currency,
            'externalId': order_id,
            'payer': {
                'partyIdType': 'MSISDN',
                'partyId': normalize_msisdn(phone_number),
            },
            'payerMessage': description,
            'payeeNote': f"Payment for order {order_id}",
        }
        headers = {'X-Reference-Id': reference_id}
        if self.callback_url:
            headers['X-Callback-Url'] = self.callback_url

        self._request('POST', '/collection/v1_0/requesttopay', json=payload, headers=headers)
        logger.info("MoMo requesttopay %s submitted for order %s", reference_id, order_id)
        return ProviderIntent(reference=reference_id, raw_status='PENDING')

    def query_status(self, reference: str) -> MobileMoneyStatus:
        data = self._request('GET', f'/collection/v1_0/requesttopay/{reference}')
        status = data.get('status') or 'PENDING'
        return MobileMoneyStatus(
            reference=reference,
            status=status,
            outcome=map_momo_status(status),
            financial_transaction_id=data.get('financialTransactionId'),
            external_id=data.get('externalId'),
            reason=data.get('reason') if isinstance(data.get('reason'), str) else (data.get('reason') or {}).get('message'),
        )

    def get_balance(self) -> Dict[str, Any]:
        return self._request('GET', '/collection/v1_0/account/balance')

    def is_account_active(self, msisdn: str) -> bool:
        data = self._request('GET', f'/collection/v1_0/accountholder/msisdn/{normalize_msisdn(msisdn)}/active')
        return data.get('result') is True
