"""Tests for Midtrans notification handling."""

import json

from django.test import Client, TestCase, override_settings

import pytest

from apps.web.payments.services import compute_signature
from apps.web.payments.webhooks import describe_payment_channel, resolve_statuses
from apps.web.restaurant.models import (
    Notification,
    NotificationCategory,
    OrderStatus,
    PaymentStatus,
)
from apps.web.restaurant.tests.factories import OrderFactory

SERVER_KEY = "SB-Mid-server-test"


class TestResolveStatuses:
    """Midtrans transaction_status -> (payment status, order status)."""

    @pytest.mark.parametrize(
        ("transaction_status", "fraud_status", "payment_status", "order_status"),
        [
            ("capture", "accept", PaymentStatus.PAID, OrderStatus.PROCESSING),
            ("capture", "challenge", PaymentStatus.PENDING_REVIEW, OrderStatus.PENDING_PAYMENT),
            ("settlement", None, PaymentStatus.PAID, OrderStatus.PROCESSING),
            ("pending", None, PaymentStatus.UNPAID, OrderStatus.PENDING_PAYMENT),
            ("deny", None, PaymentStatus.FAILED, OrderStatus.CANCELLED),
            ("failure", None, PaymentStatus.FAILED, OrderStatus.CANCELLED),
            ("cancel", None, PaymentStatus.CANCELLED, OrderStatus.CANCELLED),
            ("expire", None, PaymentStatus.EXPIRED, OrderStatus.CANCELLED),
            ("refund", None, PaymentStatus.REFUNDED, OrderStatus.REFUNDED),
            ("partial_refund", None, PaymentStatus.PARTIAL_REFUND, OrderStatus.REFUNDED),
        ],
    )
    def test_mapping(self, transaction_status, fraud_status, payment_status, order_status):
        resolution = resolve_statuses(transaction_status, fraud_status)

        assert resolution.payment_status == payment_status
        assert resolution.order_status == order_status


class TestDescribePaymentChannel:
    def test_virtual_account(self):
        payload = {"payment_type": "bank_transfer", "va_numbers": [{"bank": "bca"}]}

        assert describe_payment_channel(payload) == "BCA"

    def test_credit_card(self):
        payload = {"payment_type": "credit_card", "bank": "bni"}

        assert describe_payment_channel(payload) == "Credit Card (BNI)"

    def test_qris_with_acquirer(self):
        payload = {"payment_type": "qris", "acquirer": "gopay"}

        assert describe_payment_channel(payload) == "QRIS (GOPAY)"

    def test_unknown(self):
        assert describe_payment_channel({}) == "Midtrans"


@override_settings(MIDTRANS_SERVER_KEY=SERVER_KEY)
class TestMidtransNotification(TestCase):
    """Tests for POST /api/payment/notification."""

    def setUp(self):
        self.http_client = Client()
        self.url = "/api/payment/notification"
        self.order = OrderFactory(total_amount=96000)

    def _notify(self, transaction_status: str, signature: str | None = None, **extra):
        """Helper to send a signed notification."""
        payload = {
            "order_id": str(self.order.pk),
            "status_code": "200",
            "gross_amount": "96000.00",
            "transaction_status": transaction_status,
            "payment_type": "bank_transfer",
            "va_numbers": [{"bank": "bca", "va_number": "12345"}],
            **extra,
        }
        payload["signature_key"] = signature or compute_signature(
            payload["order_id"], payload["status_code"], payload["gross_amount"], SERVER_KEY
        )
        return self.http_client.post(
            self.url, data=json.dumps(payload), content_type="application/json"
        )

    def test_settlement_marks_paid(self):
        response = self._notify("settlement")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PAID)
        self.assertEqual(self.order.status, OrderStatus.PROCESSING)
        self.assertEqual(self.order.payment_channel, "BCA")
        self.assertEqual(self.order.tax_amount, 9600)

        notification = Notification.objects.get(user=self.order.user)
        self.assertEqual(notification.category, NotificationCategory.PAYMENT)
        self.assertEqual(notification.title, "Payment successful!")

    def test_expire_cancels_order(self):
        self._notify("expire")

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.EXPIRED)
        self.assertEqual(self.order.status, OrderStatus.CANCELLED)

    def test_duplicate_notification_is_skipped(self):
        self._notify("settlement")
        response = self._notify("settlement")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Notification.objects.filter(user=self.order.user).count(), 1)

    def test_invalid_signature(self):
        response = self._notify("settlement", signature="forged")

        self.assertEqual(response.status_code, 401)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.UNPAID)

    def test_unknown_order(self):
        self.order.delete()

        response = self._notify("settlement")

        self.assertEqual(response.status_code, 404)

    def test_malformed_payload(self):
        response = self.http_client.post(
            self.url, data=json.dumps({"order_id": "x"}), content_type="application/json"
        )

        self.assertEqual(response.status_code, 400)

    @override_settings(MIDTRANS_SERVER_KEY="")
    def test_not_configured(self):
        response = self._notify("settlement", signature="anything")

        self.assertEqual(response.status_code, 500)
