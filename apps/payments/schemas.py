from typing import List, Optional

from ninja import Schema


class CreateCardIntentRequest(Schema):
    productId: str
    currency: Optional[str] = None


class CreateCardIntentResponse(Schema):
    clientSecret: Optional[str] = None
    paymentIntentId: str
    orderId: str


class CreateCheckoutSessionRequest(Schema):
    productId: str


class CreateCheckoutSessionResponse(Schema):
    url: str
    sessionId: str
    orderId: str


class CreateMobileMoneyPaymentRequest(Schema):
    productId: str
    phoneNumber: str


class CreateMobileMoneyPaymentResponse(Schema):
    success: bool
    orderId: str
    referenceId: str
    message: str
    instructions: List[str]


class VerifyPaymentRequest(Schema):
    referenceId: str
    orderId: str


class OrderSummary(Schema):
    id: str
    status: str


class PaymentSummary(Schema):
    status: str
    transactionId: Optional[str] = None


class VerifyPaymentResponse(Schema):
    success: bool
    status: str
    order: OrderSummary
    payment: PaymentSummary
    message: str


class WebhookAckResponse(Schema):
    received: bool
    status: Optional[str] = None
