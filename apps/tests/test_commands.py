from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from apps.entitlements.models import Subscription, SubscriptionStatus, UserAccess
from apps.payments.models import Payment, PaymentStatus

from .factories import create_order_with_payment, create_product, create_signal_product, create_user
from .fakes import FakeCardProvider, FakeMobileMoneyProvider, build_fake_registry

REGISTRY_PATH = "apps.payments.providers.registry._default_registry"


class ExpireEntitlementsCommandTestCase(TestCase):
    def setUp(self):
        self.user = create_user()
        self.plan = create_signal_product()

    def _subscribe(self, user, ends_in):
        now = timezone.now()
        UserAccess.objects.create(
            user=user, product=self.plan, product_type=self.plan.type,
            access_granted_at=now - timedelta(days=30), access_expires_at=now + ends_in,
        )
        return Subscription.objects.create(
            user=user, plan=self.plan, status=SubscriptionStatus.ACTIVE,
            current_period_start=now - timedelta(days=30), current_period_end=now + ends_in,
        )

    def test_expires_lapsed_subscriptions_only(self):
        lapsed = self._subscribe(self.user, timedelta(hours=-1))
        current = self._subscribe(create_user("renewed"), timedelta(days=5))
        out = StringIO()

        call_command("expire_entitlements", stdout=out)

        lapsed.refresh_from_db()
        current.refresh_from_db()
        self.assertEqual(lapsed.status, SubscriptionStatus.EXPIRED)
        self.assertEqual(current.status, SubscriptionStatus.ACTIVE)
        self.assertFalse(UserAccess.objects.get(user=self.user).is_active)
        self.assertTrue(UserAccess.objects.get(user=current.user).is_active)
        self.assertIn("Expired 1 subscriptions, deactivated 1 access rows", out.getvalue())

    def test_rerun_is_a_no_op(self):
        self._subscribe(self.user, timedelta(hours=-1))
        call_command("expire_entitlements", stdout=StringIO())

        out = StringIO()
        call_command("expire_entitlements", stdout=out)

        self.assertIn("Expired 0 subscriptions, deactivated 0 access rows", out.getvalue())


class PollPendingPaymentsCommandTestCase(TestCase):
    def setUp(self):
        self.user = create_user()
        self.course = create_product()
        self.card = FakeCardProvider(statuses={"pi_done": "succeeded"})
        self.momo = FakeMobileMoneyProvider(statuses={"momo-ref": "REJECTED"})
        registry_patch = patch(REGISTRY_PATH, build_fake_registry(card=self.card, momo=self.momo))
        registry_patch.start()
        self.addCleanup(registry_patch.stop)

    def test_reconciles_stale_payments(self):
        create_order_with_payment(self.user, self.course, reference="pi_done")
        create_order_with_payment(self.user, create_product(name="Other"), provider="mtn_momo", reference="momo-ref")
        out = StringIO()

        call_command("poll_pending_payments", "--min-age-seconds", "0", stdout=out)

        self.assertEqual(Payment.objects.get(provider_payment_id="pi_done").status, PaymentStatus.COMPLETED)
        self.assertEqual(Payment.objects.get(provider_payment_id="momo-ref").status, PaymentStatus.FAILED)
        self.assertIn("Checked 2: 1 completed, 1 failed, 0 still pending, 0 errors", out.getvalue())

    def test_limit_is_respected(self):
        create_order_with_payment(self.user, self.course, reference="pi_done")
        create_order_with_payment(self.user, create_product(name="Other"), provider="mtn_momo", reference="momo-ref")
        out = StringIO()

        call_command("poll_pending_payments", "--limit", "1", "--min-age-seconds", "0", stdout=out)

        self.assertIn("Checked 1:", out.getvalue())
        self.assertEqual(len(self.card.queried) + len(self.momo.queried), 1)

    def test_provider_outage_counts_as_error(self):
        self.momo.unavailable.add("momo-ref")
        create_order_with_payment(self.user, self.course, provider="mtn_momo", reference="momo-ref")
        out = StringIO()

        call_command("poll_pending_payments", "--min-age-seconds", "0", stdout=out)

        self.assertIn("1 errors", out.getvalue())
        self.assertEqual(Payment.objects.get().status, PaymentStatus.PENDING)
