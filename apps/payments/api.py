import logging

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from core.jwt_auth import JWTAuth

from apps.payments.errors import EntitlementError, NotFound, ProviderUnavailable, StoreWriteFailed
from apps.payments.models import PaymentStatus
from apps.payments.schemas import (
    CreateCardIntentRequest,
    CreateCardIntentResponse,
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    CreateMobileMoneyPaymentRequest,
    CreateMobileMoneyPaymentResponse,
    OrderSummary,
    PaymentSummary,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAckResponse,
)
from apps.payments.services.checkout_service import CheckoutService
from apps.payments.services.ingestion_service import PaymentIngestionService

logger = logging.getLogger(__name__)

router = Router(tags=["payments"])
webhooks_router = Router(tags=["webhooks"])
checkout_service = CheckoutService()
ingestion_service = PaymentIngestionService()

GENERIC_PAYMENT_FAILURE = "Payment could not be confirmed, please retry or contact support"

VERIFY_MESSAGES = {
    PaymentStatus.COMPLETED: "Payment successful! You now have access to your product.",
    PaymentStatus.FAILED: "Payment failed. Please try again.",
    PaymentStatus.PENDING: "Payment is still being processed. Please wait.",
}


def _purchase_error(exc: EntitlementError) -> HttpError:
    if isinstance(exc, (ProviderUnavailable, StoreWriteFailed)):
        return HttpError(exc.http_status, GENERIC_PAYMENT_FAILURE)
    return exc.to_http()


@router.post("/stripe/create-intent", response=CreateCardIntentResponse, auth=JWTAuth())
def create_card_intent(request: HttpRequest, data: CreateCardIntentRequest):
    try:
        result = checkout_service.create_card_payment(request.auth, data.productId, data.currency)
    except EntitlementError as exc:
        raise _purchase_error(exc)
    return CreateCardIntentResponse(
        clientSecret=result.client_secret,
        paymentIntentId=result.payment.provider_payment_id,
        orderId=str(result.order.order_id),
    )


@router.post("/stripe/create-session", response=CreateCheckoutSessionResponse, auth=JWTAuth())
def create_checkout_session(request: HttpRequest, data: CreateCheckoutSessionRequest):
    try:
        result = checkout_service.create_checkout_session(request.auth, data.productId)
    except EntitlementError as exc:
        raise _purchase_error(exc)
    return CreateCheckoutSessionResponse(
        url=result.checkout_url,
        sessionId=result.payment.provider_payment_id,
        orderId=str(result.order.order_id),
    )


@router.post("/mtn/create-payment", response=CreateMobileMoneyPaymentResponse, auth=JWTAuth())
def create_mobile_money_payment(request: HttpRequest, data: CreateMobileMoneyPaymentRequest):
    try:
        result = checkout_service.create_mobile_money_payment(request.auth, data.productId, data.phoneNumber)
    except EntitlementError as exc:
        raise _purchase_error(exc)
    return CreateMobileMoneyPaymentResponse(
        success=True,
        orderId=str(result.order.order_id),
        referenceId=result.payment.provider_payment_id,
        message="Payment request sent. Please approve on your phone.",
        instructions=result.instructions,
    )


@router.post("/verify", response=VerifyPaymentResponse, auth=JWTAuth())
def verify_payment(request: HttpRequest, data: VerifyPaymentRequest):
    try:
        result = ingestion_service.verify_payment(request.auth, data.referenceId, data.orderId)
    except EntitlementError as exc:
        raise _purchase_error(exc)

    payment = result.payment
    return VerifyPaymentResponse(
        success=payment.status == PaymentStatus.COMPLETED,
        status=payment.status,
        order=OrderSummary(id=str(result.order.order_id), status=result.order.status),
        payment=PaymentSummary(
            status=payment.status,
            transactionId=(payment.metadata or {}).get('transaction_id'),
        ),
        message=VERIFY_MESSAGES[payment.status],
    )


def _webhook_error(exc: EntitlementError) -> HttpError:
    # Anything but a bad request or unknown payment makes the provider retry.
    if exc.http_status == 400 or isinstance(exc, NotFound):
        return exc.to_http()
    return HttpError(500, exc.message)


@webhooks_router.post("/stripe", response=WebhookAckResponse)
def stripe_webhook(request: HttpRequest):
    try:
        return ingestion_service.handle_card_webhook(
            request.body, request.headers.get("Stripe-Signature"),
        )
    except EntitlementError as exc:
        logger.warning("Stripe webhook rejected: %s", exc.message)
        raise _webhook_error(exc)
    except Exception:
        logger.exception("Unhandled error processing Stripe webhook")
        raise HttpError(500, "Webhook processing failed")


@webhooks_router.post("/mtn", response=WebhookAckResponse)
def mtn_webhook(request: HttpRequest):
    try:
        return ingestion_service.handle_momo_callback(
            request.body, request.headers.get("X-Callback-Signature"),
        )
    except EntitlementError as exc:
        logger.warning("MTN callback rejected: %s", exc.message)
        raise _webhook_error(exc)
    except Exception:
        logger.exception("Unhandled error processing MTN callback")
        raise HttpError(500, "Webhook processing failed")
