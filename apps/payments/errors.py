"""Failure taxonomy shared by payments, entitlements and delivery.

Services raise these; routers turn them into ``ninja.errors.HttpError``.
"""
from ninja.errors import HttpError


class EntitlementError(Exception):
    http_status = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_http(self, status: int | None = None) -> HttpError:
        return HttpError(status or self.http_status, self.message)


class AuthenticationRequired(EntitlementError):
    http_status = 401
    default_message = "Authentication required"


class AuthorizationDenied(EntitlementError):
    http_status = 403
    default_message = "Access denied"


class NotFound(EntitlementError):
    http_status = 404
    default_message = "Not found"


class PaymentNotFound(NotFound):
    default_message = "Payment not found"


class OrderNotFound(NotFound):
    default_message = "Order not found"


class ProductNotFound(NotFound):
    default_message = "Product not found"


class TokenNotFound(NotFound):
    default_message = "Download token not found"


class LessonNotFound(NotFound):
    default_message = "Lesson not found"


class SignatureInvalid(EntitlementError):
    http_status = 400
    default_message = "Invalid signature"


class AlreadyExpired(EntitlementError):
    http_status = 403
    default_message = "Expired"


class LimitExceeded(EntitlementError):
    http_status = 403
    default_message = "Download limit exceeded"


class ProviderUnavailable(EntitlementError):
    # 503 on the pull path; webhook routes answer 500 so the provider re-delivers.
    http_status = 503
    default_message = "Payment provider unavailable"


class StoreWriteFailed(EntitlementError):
    http_status = 500
    default_message = "Could not persist changes"


class InvalidRequest(EntitlementError):
    http_status = 400
    default_message = "Invalid request"
