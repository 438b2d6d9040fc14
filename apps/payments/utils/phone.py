import re
from typing import Optional

from django.conf import settings

UGANDA_MOBILE_PATTERN = re.compile(r'^(\+256|0)?7\d{8}$')


def is_valid_mobile_number(phone: str) -> bool:
    """Checkout accepts +2567XXXXXXXX, 07XXXXXXXX or 7XXXXXXXX."""
    if not phone:
        return False
    return bool(UGANDA_MOBILE_PATTERN.match(re.sub(r'[\s-]', '', phone)))


def normalize_msisdn(raw: str, country_code: Optional[str] = None) -> str:
    """Return the MSISDN in international form without '+', as MoMo expects."""
    country_code = country_code or getattr(settings, 'MTN_MOMO_COUNTRY_CODE', '256')
    msisdn = re.sub(r'[\s-]', '', raw or '')
    if msisdn.startswith('+'):
        msisdn = msisdn[1:]
    if msisdn.startswith('0'):
        msisdn = country_code + msisdn[1:]
    elif len(msisdn) == 9 and msisdn.startswith('7'):
        msisdn = country_code + msisdn
    if not msisdn.isdigit():
        raise ValueError(f"Invalid MSISDN: {raw!r}")
    return msisdn
