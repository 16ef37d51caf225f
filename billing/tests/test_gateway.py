from unittest import mock

import httpx
from django.test import SimpleTestCase, override_settings

from billing.exceptions import GatewayError, GatewayNotConfigured
from billing.services.gateway import (
    GatewayClient, build_receipt, verify_payment_signature, verify_webhook_signature,
)
from billing.tests.helpers import checkout_signature, webhook_signature

SECRET = "test_key_secret"


class PaymentSignatureTest(SimpleTestCase):
    def setUp(self):
        self.sig = checkout_signature("order_ABC", "pay_XYZ", SECRET)

    def test_valid(self):
        self.assertTrue(verify_payment_signature("order_ABC", "pay_XYZ", self.sig, SECRET))

    def test_single_char_mutation_rejected(self):
        for i in (0, len(self.sig) // 2, len(self.sig) - 1):
            flipped = "0" if self.sig[i] != "0" else "1"
            mutated = self.sig[:i] + flipped + self.sig[i + 1:]
            self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", mutated, SECRET))

    def test_length_mismatch_rejected(self):
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", self.sig[:-2], SECRET))
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", self.sig + "00", SECRET))

    def test_malformed_hex_rejected(self):
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", "zz" * 32, SECRET))
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", "", SECRET))
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", None, SECRET))

    def test_other_payment_rejected(self):
        self.assertFalse(verify_payment_signature("order_ABC", "pay_OTHER", self.sig, SECRET))

    def test_wrong_secret_rejected(self):
        self.assertFalse(verify_payment_signature("order_ABC", "pay_XYZ", self.sig, "another"))

    def test_uppercase_hex_accepted(self):
        self.assertTrue(verify_payment_signature("order_ABC", "pay_XYZ", self.sig.upper(), SECRET))


class WebhookSignatureTest(SimpleTestCase):
    body = b'{"event":"payment.captured"}'

    def test_valid(self):
        self.assertTrue(verify_webhook_signature(self.body, webhook_signature(self.body), "test_webhook_secret"))

    def test_body_tampered(self):
        sig = webhook_signature(self.body)
        self.assertFalse(verify_webhook_signature(self.body + b" ", sig, "test_webhook_secret"))

    def test_missing_header(self):
        self.assertFalse(verify_webhook_signature(self.body, None, "test_webhook_secret"))


class ReceiptTest(SimpleTestCase):
    def test_receipt_is_bounded(self):
        r = build_receipt("p", 123456789, tag="Essential Plus Plan")
        self.assertLessEqual(len(r), 40)
        self.assertTrue(r.startswith("p_EssentialP_"))
        self.assertTrue(r.endswith("_123456"))


@override_settings(RAZORPAY_API_BASE="https://api.razorpay.test/v1")
class GatewayClientTest(SimpleTestCase):
    def _response(self, code, payload):
        return httpx.Response(code, json=payload, request=httpx.Request("POST", "https://api.razorpay.test/v1/orders"))

    def test_missing_keys(self):
        with self.assertRaises(GatewayNotConfigured):
            GatewayClient(key_id="", key_secret="")

    def test_create_order(self):
        resp = self._response(200, {"id": "order_N1", "amount": 499900, "currency": "INR"})
        with mock.patch.object(httpx.Client, "post", return_value=resp) as post:
            gw = GatewayClient().create_order(amount=499900, currency="INR", receipt="p_x")
        self.assertEqual((gw.id, gw.amount, gw.currency), ("order_N1", 499900, "INR"))
        url = post.call_args.args[0]
        self.assertEqual(url, "https://api.razorpay.test/v1/orders")
        self.assertEqual(post.call_args.kwargs["json"]["receipt"], "p_x")

    def test_rejected_order(self):
        resp = self._response(401, {"error": {"code": "BAD_REQUEST_ERROR"}})
        with mock.patch.object(httpx.Client, "post", return_value=resp):
            with self.assertLogs("assistdesk.billing.gateway", level="ERROR"):
                with self.assertRaises(GatewayError) as ctx:
                    GatewayClient().create_order(amount=100, currency="INR", receipt="p_x")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_network_error(self):
        with mock.patch.object(httpx.Client, "post", side_effect=httpx.ConnectError("boom")):
            with self.assertLogs("assistdesk.billing.gateway", level="ERROR"):
                with self.assertRaises(GatewayError):
                    GatewayClient().create_order(amount=100, currency="INR", receipt="p_x")
