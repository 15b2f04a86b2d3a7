"""
Payment views - resume Snap payment for an existing order.
"""

import json
import logging

from django.core.exceptions import ValidationError
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from takumaeat_schemas import WireModel

from apps.web.core.decorators import api_login_required
from apps.web.payments.services import PaymentError, create_snap_transaction
from apps.web.restaurant.models import Order, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)


class CreateTransactionRequest(WireModel):
    """Request body for POST /api/payment/create-transaction."""

    order_id: str = Field(..., min_length=1)


class CreateTransactionResponse(WireModel):
    token: str
    redirect_url: str


@csrf_exempt
@require_POST
@api_login_required
def create_transaction(request: HttpRequest) -> JsonResponse:
    """
    Create (or reuse) the Snap session for an unpaid gateway order.

    Lets a customer who closed the payment popup pay later from the
    order page.
    """
    try:
        body = CreateTransactionRequest.model_validate(json.loads(request.body))
    except (json.JSONDecodeError, PydanticValidationError):
        return JsonResponse({"message": "orderId is required"}, status=400)

    try:
        order = Order.objects.for_user(request).get(pk=body.order_id)
    except (Order.DoesNotExist, ValidationError):
        return JsonResponse({"message": "Order not found"}, status=404)

    if order.payment_method != PaymentMethod.GATEWAY:
        return JsonResponse({"message": "Order is not paid online"}, status=400)
    if order.payment_status == PaymentStatus.PAID:
        return JsonResponse({"message": "Order is already paid"}, status=400)

    if order.snap_token and order.snap_redirect_url:
        response = CreateTransactionResponse(
            token=order.snap_token, redirect_url=order.snap_redirect_url
        )
        return JsonResponse(response.to_wire())

    customer_name = (order.delivery_address or {}).get("fullName") or (
        request.user.get_full_name() or "TakumaEat Customer"
    )

    try:
        snap = create_snap_transaction(
            order_id=str(order.pk),
            gross_amount=order.total_amount,
            customer_name=customer_name,
        )
    except PaymentError as e:
        logger.error(
            "Midtrans create-transaction failed: order_id=%s error=%s", order.pk, e.message
        )
        return JsonResponse(
            {"message": "Failed to create Midtrans transaction"}, status=502
        )

    order.snap_token = snap.token
    order.snap_redirect_url = snap.redirect_url
    order.save(update_fields=["snap_token", "snap_redirect_url", "updated_at"])

    response = CreateTransactionResponse(
        token=snap.token, redirect_url=snap.redirect_url
    )
    return JsonResponse(response.to_wire())
