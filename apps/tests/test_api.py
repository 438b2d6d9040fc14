from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import Client, TestCase, override_settings

from core.jwt_auth import create_jwt_token, decode_token

from apps.notification.models import NotificationType, UserNotification
from apps.payments.models import Order, OrderStatus, Payment, PaymentStatus

from .factories import (
    create_bot_product,
    create_order_with_payment,
    create_product,
    create_signal_product,
    create_user,
    grant_access,
)
from .fakes import FakeCardProvider, FakeMobileMoneyProvider, build_fake_registry

REGISTRY_PATH = "apps.payments.providers.registry._default_registry"


class AuthenticatedClientMixin:
    def setUp(self):
        self.client = Client()
        self.user = create_user()
        self.auth_headers = {
            "HTTP_AUTHORIZATION": f"Bearer {create_jwt_token(self.user)}",
            "content_type": "application/json",
        }
        self.card = FakeCardProvider()
        self.momo = FakeMobileMoneyProvider()
        registry_patch = patch(REGISTRY_PATH, build_fake_registry(card=self.card, momo=self.momo))
        registry_patch.start()
        self.addCleanup(registry_patch.stop)

    def post(self, path, data):
        return self.client.post(path, data=data, **self.auth_headers)


class CardCheckoutAPITestCase(AuthenticatedClientMixin, TestCase):
    def test_create_intent_uses_catalog_price(self):
        course = create_product(price=Decimal("49.99"))

        response = self.post("/api/payments/stripe/create-intent", {"productId": str(course.product_id), "amount": 1})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["paymentIntentId"], "pi_fake_1")
        self.assertEqual(data["clientSecret"], "pi_fake_1_secret")
        self.assertEqual(self.card.created[0]["amount"], Decimal("49.99"))
        self.assertEqual(self.card.created[0]["metadata"]["order_id"], data["orderId"])

        order = Order.objects.get(order_id=data["orderId"])
        self.assertEqual(order.status, OrderStatus.PENDING)
        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.provider_payment_id, "pi_fake_1")
        self.assertEqual(payment.status, PaymentStatus.PENDING)

    def test_unknown_product(self):
        response = self.post("/api/payments/stripe/create-intent", {"productId": "2f1c1a7e-6a55-4f0e-9d7e-3c1d2b9a0f11"})
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Order.objects.exists())

    def test_inactive_product(self):
        course = create_product(is_active=False)
        response = self.post("/api/payments/stripe/create-intent", {"productId": str(course.product_id)})
        self.assertEqual(response.status_code, 404)

    def test_provider_failure_is_generic(self):
        self.card.fail = True
        course = create_product()

        response = self.post("/api/payments/stripe/create-intent", {"productId": str(course.product_id)})

        self.assertEqual(response.status_code, 503)
        self.assertNotIn("card", response.json()["detail"].lower())
        self.assertFalse(Payment.objects.exists())

    def test_requires_authentication(self):
        course = create_product()
        response = self.client.post(
            "/api/payments/stripe/create-intent",
            data={"productId": str(course.product_id)},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 401)

    def test_currency_follows_catalog(self):
        course = create_product(price=Decimal("49.99"), currency="USD")

        response = self.post("/api/payments/stripe/create-intent", {"productId": str(course.product_id), "currency": "ugx"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "This product is sold in USD")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self.card.created, [])

        response = self.post("/api/payments/stripe/create-intent", {"productId": str(course.product_id), "currency": "usd"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.card.created[0]["currency"], "USD")
        order = Order.objects.get(order_id=response.json()["orderId"])
        self.assertEqual(order.currency, "USD")
        self.assertEqual(Payment.objects.get(order=order).currency, "USD")


class CheckoutSessionAPITestCase(AuthenticatedClientMixin, TestCase):
    def test_create_session(self):
        course = create_product(price=Decimal("49.99"))

        response = self.post("/api/payments/stripe/create-session", {"productId": str(course.product_id)})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["sessionId"], "cs_fake_1")
        self.assertEqual(data["url"], "https://checkout.stripe.test/pay/cs_fake_1")

        created = self.card.sessions[0]
        self.assertEqual(created["amount"], Decimal("49.99"))
        self.assertEqual(created["currency"], "USD")
        self.assertEqual(created["metadata"]["order_id"], data["orderId"])
        self.assertEqual(created["product_name"], course.name)
        self.assertIn("{CHECKOUT_SESSION_ID}", created["success_url"])
        self.assertIn(data["orderId"], created["success_url"])
        self.assertIn("canceled=true", created["cancel_url"])

        order = Order.objects.get(order_id=data["orderId"])
        self.assertEqual(order.status, OrderStatus.PENDING)
        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.provider, "stripe")
        self.assertEqual(payment.provider_payment_id, "cs_fake_1")
        self.assertEqual(payment.status, PaymentStatus.PENDING)

    def test_session_payment_is_verified_by_session_id(self):
        course = create_product()
        data = self.post("/api/payments/stripe/create-session", {"productId": str(course.product_id)}).json()
        self.card.statuses["cs_fake_1"] = "succeeded"

        response = self.post("/api/payments/verify", {"referenceId": data["sessionId"], "orderId": data["orderId"]})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertEqual(self.card.queried, ["cs_fake_1"])

    def test_unknown_product(self):
        response = self.post("/api/payments/stripe/create-session", {"productId": "2f1c1a7e-6a55-4f0e-9d7e-3c1d2b9a0f11"})
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Order.objects.exists())

    def test_provider_failure_is_generic(self):
        self.card.fail = True
        course = create_product()

        response = self.post("/api/payments/stripe/create-session", {"productId": str(course.product_id)})

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json()["detail"],
            "Payment could not be confirmed, please retry or contact support",
        )
        self.assertFalse(Payment.objects.exists())

    def test_requires_authentication(self):
        course = create_product()
        response = self.client.post(
            "/api/payments/stripe/create-session",
            data={"productId": str(course.product_id)},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 401)


class MobileMoneyCheckoutAPITestCase(AuthenticatedClientMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.course = create_product(price=Decimal("25000"), currency="UGX")

    def test_request_to_pay_moves_order_to_processing(self):
        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "0771 234-567",
        })

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(len(data["instructions"]), 3)
        self.assertEqual(data["referenceId"], f"{data['orderId']}-1")

        order = Order.objects.get(order_id=data["orderId"])
        self.assertEqual(order.status, OrderStatus.PROCESSING)
        self.assertEqual(order.payment_method, "mtn_momo")
        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.metadata["phone_number"], "0771 234-567")
        self.assertEqual(self.momo.requests[0]["amount"], Decimal("25000"))

    def test_invalid_phone_number(self):
        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "12345",
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("phone", response.json()["detail"])
        self.assertFalse(Order.objects.exists())

    def test_existing_access_is_rejected(self):
        grant_access(self.user, self.course)
        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "0771234567",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "You already have access to this product")

    def test_expired_access_can_repurchase(self):
        grant_access(self.user, self.course, expires_in=timedelta(days=-1))
        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "+256771234567",
        })
        self.assertEqual(response.status_code, 200)

    def test_provider_failure_leaves_order_pending(self):
        self.momo.fail_create = True

        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "0771234567",
        })

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json()["detail"],
            "Payment could not be confirmed, please retry or contact support",
        )
        order = Order.objects.get()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertFalse(Payment.objects.exists())

    def test_product_in_other_currency_is_refused(self):
        course = create_product(name="Dollar Course", price=Decimal("49.99"), currency="USD")

        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(course.product_id),
            "phoneNumber": "0771234567",
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "This product cannot be paid with MTN Mobile Money")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self.momo.requests, [])

    def test_charged_currency_is_recorded(self):
        response = self.post("/api/payments/mtn/create-payment", {
            "productId": str(self.course.product_id),
            "phoneNumber": "0771234567",
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.momo.requests[0]["currency"], "UGX")
        order = Order.objects.get(order_id=response.json()["orderId"])
        self.assertEqual(order.currency, "UGX")
        self.assertEqual(Payment.objects.get(order=order).currency, "UGX")


class VerifyAPITestCase(AuthenticatedClientMixin, TestCase):
    def test_verify_completed_payment(self):
        course = create_product()
        order, _ = create_order_with_payment(self.user, course, reference="pi_verify")
        self.card.statuses["pi_verify"] = "succeeded"

        response = self.post("/api/payments/verify", {"referenceId": "pi_verify", "orderId": str(order.order_id)})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["order"], {"id": str(order.order_id), "status": "completed"})
        self.assertEqual(data["payment"]["transactionId"], "ch_fake")
        self.assertEqual(data["message"], "Payment successful! You now have access to your product.")

    def test_verify_pending_payment(self):
        course = create_product()
        order, _ = create_order_with_payment(self.user, course, reference="pi_slow")

        response = self.post("/api/payments/verify", {"referenceId": "pi_slow", "orderId": str(order.order_id)})

        data = response.json()
        self.assertFalse(data["success"])
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["order"]["status"], "processing")
        self.assertEqual(data["message"], "Payment is still being processed. Please wait.")

    def test_verify_someone_elses_order(self):
        course = create_product()
        order, _ = create_order_with_payment(create_user("other"), course, reference="pi_other")

        response = self.post("/api/payments/verify", {"referenceId": "pi_other", "orderId": str(order.order_id)})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.card.queried, [])

    def test_verify_provider_unavailable(self):
        course = create_product()
        order, payment = create_order_with_payment(self.user, course, reference="pi_down")
        self.card.fail = True

        response = self.post("/api/payments/verify", {"referenceId": "pi_down", "orderId": str(order.order_id)})

        self.assertEqual(response.status_code, 503)
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.PENDING)


class AccessAPITestCase(AuthenticatedClientMixin, TestCase):
    def test_product_access(self):
        bot = create_bot_product()
        url = f"/api/access/products/{bot.product_id}"

        self.assertFalse(self.client.get(url, **self.auth_headers).json()["hasAccess"])

        grant_access(self.user, bot)
        data = self.client.get(url, **self.auth_headers).json()
        self.assertTrue(data["hasAccess"])
        self.assertTrue(data["isLifetime"])
        self.assertIsNone(data["accessExpiresAt"])

    def test_malformed_product_id(self):
        response = self.client.get("/api/access/products/not-a-uuid", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["hasAccess"])

    def test_list_live_access_only(self):
        signal = create_signal_product()
        bot = create_bot_product()
        grant_access(self.user, signal, expires_in=timedelta(days=-2))
        grant_access(self.user, bot)

        response = self.client.get("/api/access/me", **self.auth_headers)

        self.assertEqual(response.status_code, 200)
        items = response.json()
        self.assertEqual([item["productId"] for item in items], [str(bot.product_id)])
        self.assertEqual(items[0]["grantedBy"], "payment")

    def test_requires_authentication(self):
        self.assertEqual(self.client.get("/api/access/me").status_code, 401)


class NotificationAPITestCase(AuthenticatedClientMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.read = UserNotification.objects.create(
            user=self.user, type=NotificationType.PAYMENT, title="Old", message="m", is_read=True,
        )
        self.unread = UserNotification.objects.create(
            user=self.user, type=NotificationType.PAYMENT, title="New", message="m",
        )
        UserNotification.objects.create(
            user=create_user("other"), type=NotificationType.PAYMENT, title="Not mine", message="m",
        )

    def test_list_and_filter(self):
        everything = self.client.get("/api/notifications/", **self.auth_headers).json()
        self.assertEqual({n["title"] for n in everything}, {"Old", "New"})

        unread = self.client.get("/api/notifications/?unread_only=true", **self.auth_headers).json()
        self.assertEqual([n["id"] for n in unread], [str(self.unread.notification_id)])

    def test_mark_read(self):
        response = self.client.post(
            f"/api/notifications/{self.unread.notification_id}/read", **self.auth_headers,
        )
        self.assertEqual(response.status_code, 200)
        self.unread.refresh_from_db()
        self.assertTrue(self.unread.is_read)

    def test_mark_read_unknown(self):
        response = self.client.post("/api/notifications/bogus/read", **self.auth_headers)
        self.assertEqual(response.status_code, 404)


class AccessTokenTestCase(TestCase):
    def setUp(self):
        self.user = create_user()

    def test_token_claims(self):
        claims = decode_token(create_jwt_token(self.user))

        self.assertEqual(claims["sub"], str(self.user.id))
        self.assertEqual(claims["type"], "access")
        self.assertEqual(claims["email"], self.user.email)
        self.assertGreater(claims["exp"], claims["iat"])

    @override_settings(JWT_ACCESS_TTL_MIN=-1)
    def test_expired_token_is_rejected(self):
        response = Client().get(
            "/api/access/me",
            HTTP_AUTHORIZATION=f"Bearer {create_jwt_token(self.user)}",
        )
        self.assertEqual(response.status_code, 401)
