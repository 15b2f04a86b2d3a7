"""Tests for the resume-payment endpoint."""

from unittest.mock import patch

import pytest

from apps.web.payments.services import PaymentError, SnapTransaction
from apps.web.restaurant.models import PaymentMethod, PaymentStatus
from apps.web.restaurant.tests.factories import OrderFactory

URL = "/api/payment/create-transaction"
SNAP = SnapTransaction(token="fresh-token", redirect_url="https://example.test/pay/fresh-token")


def _post(client, payload):
    return client.post(URL, data=payload, content_type="application/json")


@pytest.mark.django_db
class TestCreateTransactionView:
    """Tests for POST /api/payment/create-transaction."""

    @patch("apps.web.payments.views.create_snap_transaction", return_value=SNAP)
    def test_creates_session_for_unpaid_order(self, mock_snap, api_client, user):
        order = OrderFactory(
            user=user,
            total_amount=96000,
            delivery_address={"fullName": "Budi Santoso"},
        )

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.status_code == 200
        assert response.json() == {"token": "fresh-token", "redirectUrl": SNAP.redirect_url}
        mock_snap.assert_called_once_with(
            order_id=str(order.pk), gross_amount=96000, customer_name="Budi Santoso"
        )
        order.refresh_from_db()
        assert order.snap_token == "fresh-token"

    @patch("apps.web.payments.views.create_snap_transaction")
    def test_reuses_existing_session(self, mock_snap, api_client, user):
        order = OrderFactory(
            user=user, snap_token="old-token", snap_redirect_url="https://example.test/old"
        )

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.json()["token"] == "old-token"
        mock_snap.assert_not_called()

    def test_requires_order_id(self, api_client):
        response = _post(api_client, {})

        assert response.status_code == 400
        assert response.json() == {"message": "orderId is required"}

    def test_other_users_order(self, api_client, other_user):
        order = OrderFactory(user=other_user)

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.status_code == 404

    def test_cod_order_rejected(self, api_client, user):
        order = OrderFactory(user=user, payment_method=PaymentMethod.COD)

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.status_code == 400

    def test_paid_order_rejected(self, api_client, user):
        order = OrderFactory(user=user, payment_status=PaymentStatus.PAID)

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.status_code == 400
        assert response.json()["message"] == "Order is already paid"

    @patch("apps.web.payments.views.create_snap_transaction")
    def test_midtrans_failure(self, mock_snap, api_client, user):
        mock_snap.side_effect = PaymentError("boom", code="500")
        order = OrderFactory(user=user)

        response = _post(api_client, {"orderId": str(order.pk)})

        assert response.status_code == 502

    def test_requires_login(self, anon_client):
        response = _post(anon_client, {"orderId": "x"})

        assert response.status_code == 401
