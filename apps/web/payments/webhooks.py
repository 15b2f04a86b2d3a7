"""
Midtrans notification handlers.

Handles HTTP notifications from Midtrans:
- settlement/capture: Payment completed, order moves to processing
- pending: Still waiting for the customer
- deny/cancel/expire/failure: Payment failed, order cancelled
- refund/partial_refund: Order refunded
"""

import json
import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.web.payments.services import is_configured, verify_notification_signature
from apps.web.restaurant.models import Order, OrderStatus, PaymentStatus
from apps.web.restaurant.notifications import notify_payment_update

logger = logging.getLogger(__name__)

TAX_RATE = 0.1


@dataclass(frozen=True)
class StatusResolution:
    """Payment and order status implied by a Midtrans transaction status."""

    payment_status: str
    order_status: str


def resolve_statuses(
    transaction_status: str, fraud_status: str | None = None
) -> StatusResolution:
    """Map Midtrans transaction_status/fraud_status to our statuses."""
    match transaction_status.lower():
        case "capture":
            if (fraud_status or "").lower() == "challenge":
                return StatusResolution(
                    PaymentStatus.PENDING_REVIEW, OrderStatus.PENDING_PAYMENT
                )
            return StatusResolution(PaymentStatus.PAID, OrderStatus.PROCESSING)
        case "settlement":
            return StatusResolution(PaymentStatus.PAID, OrderStatus.PROCESSING)
        case "pending":
            return StatusResolution(PaymentStatus.UNPAID, OrderStatus.PENDING_PAYMENT)
        case "deny" | "failure":
            return StatusResolution(PaymentStatus.FAILED, OrderStatus.CANCELLED)
        case "cancel":
            return StatusResolution(PaymentStatus.CANCELLED, OrderStatus.CANCELLED)
        case "expire":
            return StatusResolution(PaymentStatus.EXPIRED, OrderStatus.CANCELLED)
        case "refund":
            return StatusResolution(PaymentStatus.REFUNDED, OrderStatus.REFUNDED)
        case "partial_refund":
            return StatusResolution(PaymentStatus.PARTIAL_REFUND, OrderStatus.REFUNDED)
        case _:
            return StatusResolution(PaymentStatus.UNPAID, OrderStatus.PENDING_PAYMENT)


def describe_payment_channel(payload: dict[str, object]) -> str:
    """Human label for the channel the customer paid with."""
    payment_type = str(payload.get("payment_type") or "")
    bank = str(payload.get("bank") or "").upper()

    if payment_type == "credit_card":
        return f"Credit Card ({bank or 'Card'})"
    if payment_type == "bank_transfer":
        va_numbers = payload.get("va_numbers")
        if isinstance(va_numbers, list) and va_numbers and isinstance(va_numbers[0], dict):
            va_bank = str(va_numbers[0].get("bank") or "").upper()
            if va_bank:
                return va_bank
        return bank or "Bank Transfer"
    if payment_type == "cstore":
        return str(payload.get("store") or "").upper() or "Convenience Store"
    if payment_type == "echannel":
        return "Mandiri Bill"
    if payment_type:
        # QRIS, GoPay, ShopeePay etc
        channel = payment_type.replace("_", " ").upper()
        acquirer = payload.get("acquirer")
        if acquirer:
            channel = f"{channel} ({str(acquirer).upper()})"
        return channel
    return "Midtrans"


@csrf_exempt
@require_POST
def midtrans_notification(request: HttpRequest) -> JsonResponse:
    """
    Handle Midtrans HTTP notifications.

    POST /api/payment/notification
    """
    if not is_configured():
        logger.error("Midtrans notification received without server key configured")
        return JsonResponse({"message": "Midtrans not configured"}, status=500)

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"message": "Invalid Midtrans payload"}, status=400)

    required = ("order_id", "transaction_status", "signature_key", "status_code", "gross_amount")
    if not isinstance(payload, dict) or not all(payload.get(k) for k in required):
        return JsonResponse({"message": "Invalid Midtrans payload"}, status=400)

    # Verify notification signature
    if not verify_notification_signature(payload):
        logger.warning(
            "Midtrans signature mismatch: order_id=%s", payload.get("order_id")
        )
        return JsonResponse({"message": "Invalid signature"}, status=401)

    logger.info(
        "Received Midtrans notification: order_id=%s transaction_status=%s",
        payload["order_id"],
        payload["transaction_status"],
    )

    try:
        order = Order.objects.get(pk=payload["order_id"])
    except (Order.DoesNotExist, ValidationError):
        # ValidationError: order_id is not a UUID
        logger.error("Order not found for notification: order_id=%s", payload["order_id"])
        return JsonResponse({"message": "Order not found"}, status=404)

    resolution = resolve_statuses(
        str(payload["transaction_status"]), payload.get("fraud_status")
    )

    status_changed = (
        resolution.payment_status != order.payment_status
        or resolution.order_status != order.status
    )
    metadata_missing = not order.payment_channel or not order.tax_amount

    if not (status_changed or metadata_missing):
        logger.info("Order already up to date, skipping: order_id=%s", order.pk)
        return JsonResponse({"success": True})

    order.payment_status = resolution.payment_status
    order.status = resolution.order_status
    order.payment_channel = order.payment_channel or describe_payment_channel(payload)
    if not order.tax_amount:
        order.tax_amount = round(order.total_amount * TAX_RATE)

    try:
        order.save(
            update_fields=[
                "payment_status",
                "status",
                "payment_channel",
                "tax_amount",
                "updated_at",
            ]
        )
    except DatabaseError:
        logger.exception("Failed to update order status: order_id=%s", order.pk)
        return JsonResponse({"message": "Failed to update order status"}, status=500)

    logger.info(
        "Order updated via notification: order_id=%s payment_status=%s status=%s",
        order.pk,
        order.payment_status,
        order.status,
    )

    if status_changed:
        notify_payment_update(order)

    return JsonResponse({"success": True})
