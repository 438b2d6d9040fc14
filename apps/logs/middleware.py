import logging
import time
from typing import Any, Dict

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin

from core.jwt_auth import extract_token, decode_token

logger = logging.getLogger("app")

# Provider callbacks carry no bearer token and are logged under their own channel.
WEBHOOK_PATH_PREFIX = "/api/webhooks/"


def _client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def _get_user_id_from_jwt(request) -> str | None:
    token = extract_token(request)
    if not token:
        return None
    try:
        payload = decode_token(token)
    except Exception:
        return None
    return payload.get("user_id") or payload.get("sub")


def _channel_for(request) -> str:
    return "payment" if request.path.startswith(WEBHOOK_PATH_PREFIX) else "web"


class RequestLoggingMiddleware(MiddlewareMixin):
    """Capture incoming/outgoing HTTP requests for audit logging."""

    def process_request(self, request):
        request._log_start_ts = time.time()
        request._log_context: Dict[str, Any] = {
            "path": request.path,
            "method": request.method,
            "ip": _client_ip(request),
            "query_string": request.META.get("QUERY_STRING", ""),
            "user_id": _get_user_id_from_jwt(request),
        }

        logger.info(
            f"Client request {request.path}",
            extra={
                "context": request._log_context,
                "channel": _channel_for(request),
                "environment": getattr(settings, "APP_ENV", "local"),
            },
        )

    def process_response(self, request, response):
        if hasattr(request, "_log_context"):
            duration_ms = None
            if hasattr(request, "_log_start_ts"):
                duration_ms = round((time.time() - request._log_start_ts) * 1000, 2)
            context = request._log_context.copy()
            context.update(
                {
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "content_type": response.get("Content-Type"),
                }
            )

            logger.info(
                f"Client response {request.path} {response.status_code}",
                extra={
                    "context": context,
                    "channel": _channel_for(request),
                    "environment": getattr(settings, "APP_ENV", "local"),
                },
            )
        return response

    def process_exception(self, request, exception):
        context = getattr(request, "_log_context", {}).copy()
        context.update({"exception": repr(exception)})
        logger.error(
            "request_exception",
            extra={
                "context": context,
                "channel": _channel_for(request),
                "environment": getattr(settings, "APP_ENV", "local"),
            },
        )
