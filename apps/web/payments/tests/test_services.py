"""Tests for payment services."""

import json

import httpx
import pytest
import respx

from apps.web.payments.services import (
    PaymentError,
    compute_signature,
    create_snap_transaction,
    snap_transactions_url,
    verify_notification_signature,
)

SNAP_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"


@pytest.mark.usefixtures("midtrans_settings")
class TestCreateSnapTransaction:
    """Tests for create_snap_transaction."""

    @respx.mock
    def test_success(self):
        """Posts the order and returns the Snap token."""
        route = respx.post(SNAP_URL).mock(
            return_value=httpx.Response(
                201,
                json={
                    "token": "snap-token-abc",
                    "redirect_url": "https://app.sandbox.midtrans.com/snap/v4/redirection/snap-token-abc",
                },
            )
        )

        result = create_snap_transaction(
            order_id="order-1", gross_amount=96000, customer_name="Budi"
        )

        assert result.token == "snap-token-abc"
        assert result.redirect_url.endswith("/snap-token-abc")

        request = route.calls.last.request
        assert request.headers["Authorization"].startswith("Basic ")
        body = json.loads(request.content)
        assert body["transaction_details"] == {"order_id": "order-1", "gross_amount": 96000}
        assert body["customer_details"] == {"first_name": "Budi"}
        assert body["callbacks"]["finish"] == "http://testserver/orders/order-1"

    @respx.mock
    def test_midtrans_error_messages(self):
        """Midtrans error_messages become the PaymentError message."""
        respx.post(SNAP_URL).mock(
            return_value=httpx.Response(
                400,
                json={"error_messages": ["transaction_details.gross_amount is not equal"]},
            )
        )

        with pytest.raises(PaymentError) as exc_info:
            create_snap_transaction(order_id="order-1", gross_amount=1)

        assert exc_info.value.message == "transaction_details.gross_amount is not equal"
        assert exc_info.value.code == "400"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(201, json={"redirect_url": "https://app.sandbox.midtrans.com/x"}),
            httpx.Response(201, text="<html>maintenance</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    @respx.mock
    def test_unusable_success_body(self, response):
        respx.post(SNAP_URL).mock(return_value=response)

        with pytest.raises(PaymentError) as exc_info:
            create_snap_transaction(order_id="order-1", gross_amount=1000)

        assert exc_info.value.code == "invalid_response"

    @respx.mock
    def test_network_error(self):
        respx.post(SNAP_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(PaymentError) as exc_info:
            create_snap_transaction(order_id="order-1", gross_amount=1000)

        assert exc_info.value.code == "network_error"

    def test_not_configured(self, settings):
        settings.MIDTRANS_SERVER_KEY = ""

        with pytest.raises(PaymentError) as exc_info:
            create_snap_transaction(order_id="order-1", gross_amount=1000)

        assert exc_info.value.code == "not_configured"

    def test_url_follows_base_url(self, settings):
        settings.MIDTRANS_BASE_URL = "https://app.midtrans.com/"

        assert snap_transactions_url() == "https://app.midtrans.com/snap/v1/transactions"


@pytest.mark.usefixtures("midtrans_settings")
class TestNotificationSignature:
    """Tests for verify_notification_signature."""

    def _payload(self, **overrides) -> dict:
        payload = {
            "order_id": "order-1",
            "status_code": "200",
            "gross_amount": "96000.00",
        }
        payload["signature_key"] = compute_signature(
            payload["order_id"],
            payload["status_code"],
            payload["gross_amount"],
            "SB-Mid-server-test",
        )
        payload.update(overrides)
        return payload

    def test_compute_signature_is_sha512(self):
        import hashlib

        expected = hashlib.sha512(b"order-120096000.00key").hexdigest()

        assert compute_signature("order-1", "200", "96000.00", "key") == expected

    def test_valid(self):
        assert verify_notification_signature(self._payload()) is True

    def test_tampered_amount(self):
        assert verify_notification_signature(self._payload(gross_amount="1.00")) is False

    def test_missing_fields(self):
        payload = self._payload()
        del payload["signature_key"]

        assert verify_notification_signature(payload) is False
