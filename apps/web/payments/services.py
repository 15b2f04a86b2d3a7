"""
Payment services - Midtrans Snap integration.

Provides functions for creating Snap transactions and verifying
Midtrans HTTP notifications.
"""

import hashlib
import hmac
import logging

from django.conf import settings

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

SNAP_TIMEOUT_SECONDS = 15.0


class PaymentError(Exception):
    """Error during payment processing."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SnapTransaction(BaseModel):
    """A Snap checkout session for one order."""

    token: str
    redirect_url: str


def is_configured() -> bool:
    """Check whether a Midtrans server key is available."""
    return bool(settings.MIDTRANS_SERVER_KEY)


def snap_transactions_url() -> str:
    return f"{settings.MIDTRANS_BASE_URL.rstrip('/')}/snap/v1/transactions"


def create_snap_transaction(
    order_id: str,
    gross_amount: int,
    customer_name: str = "TakumaEat Customer",
) -> SnapTransaction:
    """
    Create a Midtrans Snap transaction for the order.

    Args:
        order_id: Our order ID (Midtrans echoes it back in notifications)
        gross_amount: Amount in whole Rupiah
        customer_name: Name shown on the Snap payment page

    Returns:
        SnapTransaction with the token the storefront hands to snap.pay()

    Raises:
        PaymentError: If Midtrans is not configured or the API call fails
    """
    if not is_configured():
        raise PaymentError("Midtrans is not configured", code="not_configured")

    finish_url = f"{settings.APP_BASE_URL.rstrip('/')}/orders/{order_id}"
    payload = {
        "transaction_details": {
            "order_id": order_id,
            "gross_amount": gross_amount,
        },
        "customer_details": {
            "first_name": customer_name,
        },
        "callbacks": {
            "finish": finish_url,
            "error": finish_url,
            "unfinish": finish_url,
        },
    }

    logger.info(
        "Creating Midtrans transaction: order_id=%s amount=%s", order_id, gross_amount
    )

    try:
        response = httpx.post(
            snap_transactions_url(),
            json=payload,
            auth=(settings.MIDTRANS_SERVER_KEY, ""),
            headers={"Accept": "application/json"},
            timeout=SNAP_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        raise PaymentError(
            message=f"Midtrans request failed: {e}",
            code="network_error",
        ) from e

    if response.status_code >= 400:
        logger.error(
            "Midtrans create-transaction failed: status=%s body=%s",
            response.status_code,
            response.text,
        )
        raise PaymentError(
            message=_error_message(response),
            code=str(response.status_code),
        )

    try:
        return SnapTransaction.model_validate_json(response.content)
    except ValidationError as e:
        logger.error(
            "Midtrans create-transaction returned an unusable body: status=%s body=%s",
            response.status_code,
            response.text,
        )
        raise PaymentError(
            message="Midtrans returned an invalid transaction response",
            code="invalid_response",
        ) from e


def _error_message(response: httpx.Response) -> str:
    """Pull Midtrans' error_messages out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "Failed to create payment session"

    errors = body.get("error_messages") if isinstance(body, dict) else None
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors)
    return "Failed to create payment session"


def compute_signature(
    order_id: str, status_code: str, gross_amount: str, server_key: str
) -> str:
    """
    Midtrans notification signature.

    SHA512 hex digest of order_id + status_code + gross_amount + server_key.
    """
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode()).hexdigest()


def verify_notification_signature(payload: dict[str, object]) -> bool:
    """
    Verify the signature_key of a Midtrans notification payload.

    Returns:
        True if the signature matches, False if fields are missing or it differs
    """
    order_id = payload.get("order_id")
    status_code = payload.get("status_code")
    gross_amount = payload.get("gross_amount")
    received = payload.get("signature_key")

    if not (order_id and status_code and gross_amount and received):
        return False
    if not is_configured():
        return False

    expected = compute_signature(
        str(order_id),
        str(status_code),
        str(gross_amount),
        settings.MIDTRANS_SERVER_KEY,
    )
    return hmac.compare_digest(expected, str(received))
