import logging
from typing import Any, Dict, Optional

from django.conf import settings

# Context keys that must never reach the logs table in clear text.
SENSITIVE_KEYS = frozenset({
    "phone_number",
    "msisdn",
    "client_secret",
    "api_key",
    "signature",
    "token",
})


def mask_value(value: Any) -> str:
    text = str(value)
    if len(text) <= 4:
        return "****"
    return f"{'*' * (len(text) - 4)}{text[-4:]}"


def scrub_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of ``context`` with sensitive values masked, nested dicts included."""
    scrubbed: Dict[str, Any] = {}
    for key, value in (context or {}).items():
        if isinstance(value, dict):
            scrubbed[key] = scrub_context(value)
        elif key in SENSITIVE_KEYS and value not in (None, ""):
            scrubbed[key] = mask_value(value)
        else:
            scrubbed[key] = value
    return scrubbed


def log_event(
    message: str,
    *,
    level: int = logging.INFO,
    channel: str = "app",
    context: Optional[Dict[str, Any]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Write a structured payment/delivery event to the ``channel`` logger."""

    logging.getLogger(channel).log(
        level,
        message,
        extra={
            "context": scrub_context(context),
            "extra_data": scrub_context(extra),
            "channel": channel,
            "environment": getattr(settings, "APP_ENV", "local"),
        },
    )
