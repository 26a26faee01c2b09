# apps/utils/tests.py
import json
import logging
from unittest import mock

from django.db import OperationalError
from django.test import SimpleTestCase, TestCase
from rest_framework.exceptions import ValidationError

from .db import is_retryable, retry_on_tx_failure
from .exceptions import (
    BusinessLogicException,
    Conflict,
    IntegrityFault,
    NotFound,
    ValidationFailed,
    custom_exception_handler,
)
from .logging import JSONFormatter
from .validators import require_positive_quantity, require_text


class ValidatorTests(SimpleTestCase):
    def test_require_text(self):
        self.assertEqual(require_text("  123 Test St ", "shippingAddress"), "123 Test St")
        with self.assertRaises(ValidationFailed) as ctx:
            require_text("   ", "shippingAddress")
        self.assertEqual(ctx.exception.code, "shippingAddress_required")

        with self.assertRaises(ValidationFailed):
            require_text(None, "userId")

    def test_require_positive_quantity(self):
        self.assertEqual(require_positive_quantity(3), 3)
        self.assertEqual(require_positive_quantity("4"), 4)

        for bad in (0, -2, "x", None, False):
            with self.assertRaises(ValidationFailed):
                require_positive_quantity(bad)

        with self.assertRaises(ValidationFailed):
            require_positive_quantity(11, maximum=10)


class ExceptionHandlerTests(SimpleTestCase):
    def test_business_errors_map_to_their_status(self):
        cases = [
            (BusinessLogicException("rule"), 400, "business_error"),
            (ValidationFailed("bad"), 400, "validation_error"),
            (NotFound("gone"), 404, "not_found"),
            (Conflict("clash", code="busy"), 409, "busy"),
            (IntegrityFault("dangling"), 404, "integrity_fault"),
        ]
        for exc, expected_status, expected_code in cases:
            resp = custom_exception_handler(exc, {})
            self.assertEqual(resp.status_code, expected_status)
            self.assertEqual(resp.data, {"error": exc.message, "code": expected_code})

    def test_drf_errors_pass_through(self):
        resp = custom_exception_handler(ValidationError({"quantity": ["required"]}), {})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("quantity", resp.data)

    def test_unexpected_error_is_generic_500(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            resp = custom_exception_handler(RuntimeError("db password leaked"), {})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data["code"], "server_error")
        self.assertNotIn("password", resp.data["error"])


class RetryDecoratorTests(SimpleTestCase):
    def test_retries_deadlock_then_succeeds(self):
        calls = []

        @retry_on_tx_failure(max_attempts=3, backoff=0)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("deadlock detected")
            return "ok"

        self.assertEqual(flaky(), "ok")
        self.assertEqual(len(calls), 3)

    def test_gives_up_after_max_attempts(self):
        fn = mock.Mock(side_effect=OperationalError("could not serialize access"))
        fn.__name__ = "fn"
        wrapped = retry_on_tx_failure(max_attempts=lambda: 2, backoff=lambda: 0)(fn)

        with self.assertRaises(OperationalError):
            wrapped()
        self.assertEqual(fn.call_count, 2)

    def test_other_operational_errors_are_not_retried(self):
        fn = mock.Mock(side_effect=OperationalError("connection refused"))
        fn.__name__ = "fn"
        wrapped = retry_on_tx_failure(max_attempts=5, backoff=0)(fn)

        with self.assertRaises(OperationalError):
            wrapped()
        self.assertEqual(fn.call_count, 1)

    def test_pgcode_detection(self):
        exc = OperationalError("boom")
        exc.pgcode = "40P01"
        self.assertTrue(is_retryable(exc))
        self.assertFalse(is_retryable(OperationalError("syntax")))


class JSONFormatterTests(SimpleTestCase):
    def _record(self, msg, args=None, **extra):
        record = logging.LogRecord("apps.orders", logging.INFO, __file__, 10, msg, args, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_fields_are_copied(self):
        out = json.loads(JSONFormatter().format(self._record("placed", order_id=7, user_id="u1")))

        self.assertEqual(out["msg"], "placed")
        self.assertEqual(out["lvl"], "INFO")
        self.assertEqual(out["order_id"], 7)
        self.assertEqual(out["user_id"], "u1")

    def test_sensitive_keys_are_scrubbed(self):
        record = self._record({"user": "u1", "payment": {"card_number": "4111", "cvv": "123"}})
        out = json.loads(JSONFormatter().format(record))

        self.assertIn("***REDACTED***", out["msg"])
        self.assertNotIn("4111", out["msg"])


class HealthCheckTests(TestCase):
    def test_health_ok(self):
        resp = self.client.get("/api/utils/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["components"]["db"], "ok")

    def test_server_info(self):
        resp = self.client.get("/api/utils/info/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["app_name"], "Storefront")
