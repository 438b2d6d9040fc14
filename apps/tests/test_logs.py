import logging
from unittest.mock import patch

from django.test import SimpleTestCase

from apps.logs.handlers import DatabaseLogHandler
from apps.logs.utils import log_event, mask_value, scrub_context


class ScrubContextTestCase(SimpleTestCase):
    def test_masks_sensitive_keys(self):
        scrubbed = scrub_context({
            "order_id": "o-1",
            "phone_number": "256771234567",
            "token": "abc",
            "provider": {"client_secret": "pi_1_secret_xyz", "status": "PENDING"},
        })

        self.assertEqual(scrubbed["order_id"], "o-1")
        self.assertEqual(scrubbed["phone_number"], "********4567")
        self.assertEqual(scrubbed["token"], "****")
        self.assertEqual(scrubbed["provider"]["client_secret"], mask_value("pi_1_secret_xyz"))
        self.assertTrue(scrubbed["provider"]["client_secret"].endswith("_xyz"))
        self.assertEqual(scrubbed["provider"]["status"], "PENDING")

    def test_leaves_input_untouched(self):
        context = {"phone_number": "0771234567"}
        scrub_context(context)
        self.assertEqual(context["phone_number"], "0771234567")

    def test_empty_values_are_kept(self):
        self.assertEqual(scrub_context({"signature": None}), {"signature": None})
        self.assertEqual(scrub_context(None), {})


class LogEventTestCase(SimpleTestCase):
    def test_event_goes_to_channel_logger(self):
        with self.assertLogs("payment", level="INFO") as captured:
            log_event("Payment reconciled", channel="payment", context={"msisdn": "256771234567"})

        record = captured.records[0]
        self.assertEqual(record.getMessage(), "Payment reconciled")
        self.assertEqual(record.channel, "payment")
        self.assertEqual(record.context, {"msisdn": "********4567"})

    def test_database_row_is_scrubbed(self):
        handler = DatabaseLogHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        record = logging.LogRecord("payment", logging.WARNING, __file__, 1, "callback rejected", None, None)
        record.context = {"signature": "deadbeefcafe"}

        with patch("apps.logs.handlers.timezone.now", return_value="now"):
            row = handler._row(record)

        self.assertEqual(row[0], "warning")
        self.assertEqual(row[1], "payment")
        self.assertEqual(row[2], "callback rejected")
        self.assertEqual(row[3], '{"signature": "********cafe"}')
        self.assertEqual(row[6], "now")
