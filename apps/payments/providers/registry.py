from typing import Dict, Optional

from apps.payments.errors import InvalidRequest
from apps.payments.providers.base import PaymentProvider


class ProviderRegistry:
    """Adapter instances by provider name, injected into services."""

    def __init__(self, providers: Optional[Dict[str, PaymentProvider]] = None):
        self._providers: Dict[str, PaymentProvider] = dict(providers or {})

    def register(self, provider: PaymentProvider) -> None:
        self._providers[str(provider.name)] = provider

    def get(self, name: str) -> PaymentProvider:
        try:
            return self._providers[str(name)]
        except KeyError:
            raise InvalidRequest(f"Unsupported payment provider: {name}") from None

    def __contains__(self, name) -> bool:
        return str(name) in self._providers


_default_registry: Optional[ProviderRegistry] = None


def build_default_registry() -> ProviderRegistry:
    from apps.payments.providers.momo_client import MoMoClient
    from apps.payments.providers.stripe_provider import StripeProvider

    return ProviderRegistry({
        'stripe': StripeProvider(),
        'mtn_momo': MoMoClient(),
    })


def get_default_registry() -> ProviderRegistry:
    """Process-wide registry built lazily from settings."""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry
