"""
Storefront API views - JSON endpoints consumed by the checkout flow.

- Reference data: branches (takeaway) and saved addresses (delivery)
- Promo code checks against a cart subtotal
- Order creation, history, detail and status updates
- Customer notifications
"""

import json
import logging
from datetime import datetime
from typing import Any, TypeVar

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F, QuerySet
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from takumaeat_schemas import (
    AddressCreateRequest,
    AddressListResponse,
    AddressSchema,
    AddressUpdateRequest,
    BranchListResponse,
    BranchSchema,
    ErrorResponse,
    OrderCreateRequest,
    OrderCreateResponse,
    PaymentDirective,
    PromoCheckRequest,
    PromoCheckResponse,
)
from takumaeat_schemas import OrderType as WireOrderType
from takumaeat_schemas import PaymentMethod as WirePaymentMethod

from apps.web.core.decorators import api_login_required, idempotency_key_required
from apps.web.payments.services import PaymentError, create_snap_transaction
from apps.web.restaurant.models import (
    Address,
    Branch,
    MenuItem,
    MenuItemStatus,
    Notification,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    Promo,
)
from apps.web.restaurant.notifications import notify_order_created
from apps.web.restaurant.promos import evaluate_promo
from apps.web.restaurant.serializers import (
    NotificationListResponse,
    NotificationSchema,
    OrderDetailResponse,
    OrderDetailSchema,
    OrderItemSchema,
    OrderListResponse,
    OrderStatusUpdateRequest,
    OrderStatusUpdateResponse,
    OrderSummarySchema,
)

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)

# Served when the branches table is empty or unreachable
DEFAULT_BRANCHES = [
    BranchSchema(
        id="jakarta",
        name="TakumaEat Jakarta",
        address="Jl. Sudirman No. 21, Jakarta",
        operation_hours="10.00 - 22.00 WIB",
    ),
    BranchSchema(
        id="surabaya",
        name="TakumaEat Surabaya",
        address="Jl. Darmo No. 12, Surabaya",
        operation_hours="11.00 - 23.00 WIB",
    ),
]


class OrderRejected(Exception):
    """Raised inside the order transaction to abort and roll back."""

    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse(ErrorResponse(message=message).model_dump(), status=status)


def _validation_message(exc: PydanticValidationError) -> str:
    """First pydantic error as 'field: message'."""
    err = exc.errors()[0]
    field = ".".join(str(loc) for loc in err["loc"])
    return f"{field}: {err['msg']}" if field else err["msg"]


def _parse_body(request: HttpRequest, schema: type[_M]) -> _M | JsonResponse:
    """Parse a JSON body into a schema, or build the 400 response."""
    try:
        body = json.loads(request.body)
        return schema.model_validate(body)
    except json.JSONDecodeError:
        return _error("Invalid JSON in request body", 400)
    except PydanticValidationError as e:
        return _error(_validation_message(e), 400)


def _get_or_none(queryset: QuerySet[Any], pk: str) -> Any:
    """Fetch by primary key; malformed keys count as missing."""
    try:
        return queryset.filter(pk=pk).first()
    except ValidationError:
        return None


def _as_aware(value: datetime) -> datetime:
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


# =============================================================================
# Serializers
# =============================================================================


def _serialize_branch(branch: Branch) -> BranchSchema:
    return BranchSchema(
        id=str(branch.pk),
        name=branch.name,
        address=branch.address,
        operation_hours=branch.operation_hours,
        map_url=branch.map_url or None,
    )


def _serialize_address(address: Address) -> AddressSchema:
    return AddressSchema(
        id=str(address.pk),
        recipient_name=address.recipient_name,
        phone_number=address.phone_number,
        address_line=address.address_line,
        detail=address.detail or None,
        latitude=address.latitude,
        longitude=address.longitude,
        is_default=address.is_default,
    )


def _serialize_order_summary(order: Order) -> OrderSummarySchema:
    return OrderSummarySchema(
        id=str(order.pk),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        order_type=order.order_type,
        total_amount=order.total_amount,
        created_at=order.created_at,
    )


def _serialize_order_item(item: OrderItem) -> OrderItemSchema:
    return OrderItemSchema(
        id=str(item.pk),
        name=item.name,
        price=item.price,
        quantity=item.quantity,
        note=item.note,
        image_url=item.image_url,
        line_total=item.line_total,
    )


def _serialize_order_detail(order: Order) -> OrderDetailSchema:
    return OrderDetailSchema(
        id=str(order.pk),
        order_number=order.order_number,
        order_type=order.order_type,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        payment_channel=order.payment_channel,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        delivery_fee=order.delivery_fee,
        tax_amount=order.tax_amount,
        total_amount=order.total_amount,
        promo_code=order.promo_code,
        delivery_address=order.delivery_address,
        branch_name=order.pickup_branch.name if order.pickup_branch else None,
        schedule_at=order.schedule_at,
        notes=order.notes,
        snap_token=order.snap_token,
        snap_redirect_url=order.snap_redirect_url,
        created_at=order.created_at,
    )


# =============================================================================
# Branches & Addresses
# =============================================================================


@require_GET
def branch_list(_request: HttpRequest) -> JsonResponse:
    """
    GET /api/branches

    Returns pickup branches ordered by name. Falls back to the built-in
    branch list (fallback=true) when none are configured or the query fails.
    """
    try:
        branches = [_serialize_branch(b) for b in Branch.objects.all()]
    except DatabaseError:
        logger.warning("Branch query failed, falling back to defaults", exc_info=True)
        branches = []

    if not branches:
        response = BranchListResponse(branches=DEFAULT_BRANCHES, fallback=True)
    else:
        response = BranchListResponse(branches=branches, fallback=False)
    return JsonResponse(response.to_wire())


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_login_required
def addresses(request: HttpRequest) -> JsonResponse:
    """
    GET /api/user/addresses - the user's addresses, default first
    POST /api/user/addresses - save a new address
    """
    if request.method == "GET":
        response = AddressListResponse(
            addresses=[_serialize_address(a) for a in Address.objects.for_user(request)]
        )
        return JsonResponse(response.to_wire())

    parsed = _parse_body(request, AddressCreateRequest)
    if isinstance(parsed, JsonResponse):
        return parsed

    with transaction.atomic():
        if parsed.is_default:
            Address.objects.for_user(request).update(is_default=False)
        address = Address.objects.create(
            user=request.user,
            recipient_name=parsed.recipient_name,
            phone_number=parsed.phone_number,
            address_line=parsed.address_line,
            detail=parsed.detail,
            latitude=parsed.latitude,
            longitude=parsed.longitude,
            is_default=parsed.is_default,
        )

    return JsonResponse(
        {"address": _serialize_address(address).to_wire()}, status=201
    )


@csrf_exempt
@require_http_methods(["PATCH", "DELETE"])
@api_login_required
def address_detail(request: HttpRequest, address_id: str) -> JsonResponse:
    """
    PATCH /api/user/addresses/{id} - update an own address
    DELETE /api/user/addresses/{id} - delete an own address
    """
    address = _get_or_none(Address.objects.for_user(request), address_id)
    if address is None:
        return _error("Address not found", 404)

    if request.method == "DELETE":
        address.delete()
        return JsonResponse({"message": "Address deleted"})

    parsed = _parse_body(request, AddressUpdateRequest)
    if isinstance(parsed, JsonResponse):
        return parsed

    changes = parsed.model_dump(exclude_none=True)
    with transaction.atomic():
        if changes.get("is_default"):
            Address.objects.for_user(request).exclude(pk=address.pk).update(
                is_default=False
            )
        for field, value in changes.items():
            setattr(address, field, value)
        address.save()

    return JsonResponse({"address": _serialize_address(address).to_wire()})


# =============================================================================
# Promos
# =============================================================================


@csrf_exempt
@require_POST
def promo_check(request: HttpRequest) -> JsonResponse:
    """
    POST /api/promos/check

    Request body: PromoCheckRequest {code, cartTotal}
    Response: PromoCheckResponse. Rejections are 200 with valid=false.
    """
    try:
        body = json.loads(request.body)
        check = PromoCheckRequest.model_validate(body)
    except (json.JSONDecodeError, PydanticValidationError):
        response = PromoCheckResponse(valid=False, message="Invalid request")
        return JsonResponse(response.to_wire(), status=400)

    evaluation = evaluate_promo(check.code, check.cart_total)
    if not evaluation.valid or evaluation.promo is None:
        response = PromoCheckResponse(valid=False, message=evaluation.message)
    else:
        response = PromoCheckResponse(
            valid=True,
            promo_code=evaluation.promo.code,
            discount_amount=evaluation.discount_amount,
            message=evaluation.message,
        )
    return JsonResponse(response.to_wire())


# =============================================================================
# Order API Endpoints
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_login_required
@idempotency_key_required
def orders(request: HttpRequest) -> JsonResponse:
    """
    GET /api/orders - the user's order history, newest first
    POST /api/orders - create an order (requires Idempotency-Key)
    """
    if request.method == "GET":
        response = OrderListResponse(
            orders=[_serialize_order_summary(o) for o in Order.objects.for_user(request)]
        )
        return JsonResponse(response.to_wire())

    return create_order(request)


MIXED_FULFILLMENT_MESSAGE = "Order must include either delivery or takeaway details, not both"


def _validate_fulfillment(order_request: OrderCreateRequest) -> str | None:
    """Cross-field rules pydantic can't express; returns an error message."""
    if order_request.order_type == WireOrderType.DELIVERY:
        if order_request.delivery is None:
            return "Incomplete delivery information"
        if order_request.takeaway is not None:
            return MIXED_FULFILLMENT_MESSAGE
        if order_request.payment_method != WirePaymentMethod.GATEWAY:
            return "Delivery orders must be paid online"
        scheduled = order_request.delivery.schedule_type.value == "SCHEDULED"
        when = order_request.delivery.scheduled_at
    else:
        if order_request.takeaway is None:
            return "Branch selection required"
        if order_request.delivery is not None:
            return MIXED_FULFILLMENT_MESSAGE
        if order_request.takeaway.payment_method != order_request.payment_method:
            return "Payment method does not match the takeaway details"
        scheduled = order_request.takeaway.pickup_type.value == "SCHEDULED"
        when = order_request.takeaway.pickup_at

    if scheduled:
        if when is None:
            return "Scheduled time is required"
        if _as_aware(when) <= timezone.now():
            return "Scheduled time must be in the future"
    return None


def create_order(request: HttpRequest) -> JsonResponse:
    """
    Create an order from the submitted cart.

    Request body: OrderCreateRequest schema
    Response: OrderCreateResponse schema (201) or {message} (4xx/5xx)
    """
    parsed = _parse_body(request, OrderCreateRequest)
    if isinstance(parsed, JsonResponse):
        return parsed
    order_request = parsed

    fulfillment_error = _validate_fulfillment(order_request)
    if fulfillment_error:
        return _error(fulfillment_error, 400)

    subtotal = sum(item.price * item.quantity for item in order_request.cart_items)
    is_delivery = order_request.order_type == WireOrderType.DELIVERY
    delivery_fee = settings.DELIVERY_FEE if is_delivery else 0

    # Promo is re-evaluated here; a stale or bad code means no discount, not an error
    promo: Promo | None = None
    discount = 0
    if order_request.promo_code:
        evaluation = evaluate_promo(order_request.promo_code, subtotal)
        if evaluation.valid:
            promo = evaluation.promo
            discount = evaluation.discount_amount
        else:
            logger.warning(
                "Ignoring promo on order: code=%s reason=%s",
                order_request.promo_code,
                evaluation.message,
            )

    total = max(0, subtotal - discount + delivery_fee)

    delivery_address: dict[str, Any] | None = None
    branch: Branch | None = None
    schedule_at: datetime | None = None
    notes = ""
    customer_name = request.user.get_full_name() or request.user.get_username()

    if is_delivery:
        delivery = order_request.delivery
        assert delivery is not None  # checked by _validate_fulfillment
        address = _get_or_none(Address.objects.for_user(request), delivery.address_id)
        if address is None:
            return _error("Address not found", 404)

        delivery_address = {
            "fullName": address.recipient_name,
            "phone": address.phone_number,
            "addressLine": address.address_line,
            "detail": address.detail,
            "latitude": address.latitude,
            "longitude": address.longitude,
            "scheduleType": delivery.schedule_type.value,
            "scheduledAt": delivery.scheduled_at.isoformat()
            if delivery.scheduled_at
            else None,
            "notes": delivery.notes,
        }
        if delivery.schedule_type.value == "SCHEDULED" and delivery.scheduled_at:
            schedule_at = _as_aware(delivery.scheduled_at)
        notes = delivery.notes
        customer_name = address.recipient_name
    else:
        takeaway = order_request.takeaway
        assert takeaway is not None  # checked by _validate_fulfillment
        branch = _get_or_none(Branch.objects.all(), takeaway.branch_id)
        if branch is None:
            return _error("Branch not found", 404)
        if takeaway.pickup_type.value == "SCHEDULED" and takeaway.pickup_at:
            schedule_at = _as_aware(takeaway.pickup_at)
        notes = takeaway.notes

    payment_method = PaymentMethod(order_request.payment_method.value)

    try:
        with transaction.atomic():
            image_urls = _reserve_stock(order_request)

            if promo is not None:
                Promo.objects.filter(pk=promo.pk).update(
                    usage_count=F("usage_count") + 1
                )

            order = Order.objects.create(
                user=request.user,
                order_type=OrderType(order_request.order_type.value),
                status=OrderStatus.PENDING_PAYMENT,
                payment_method=payment_method,
                payment_status=PaymentStatus.UNPAID
                if payment_method == PaymentMethod.GATEWAY
                else PaymentStatus.COD_PENDING,
                subtotal=subtotal,
                discount_amount=discount,
                delivery_fee=delivery_fee,
                total_amount=total,
                promo_code=promo.code if promo else "",
                delivery_address=delivery_address,
                pickup_branch=branch,
                schedule_at=schedule_at,
                notes=notes,
            )

            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        name=item.name,
                        price=item.price,
                        quantity=item.quantity,
                        note=item.note,
                        image_url=image_urls.get(item.name, ""),
                    )
                    for item in order_request.cart_items
                ]
            )

            notify_order_created(order)

            snap_token = None
            if payment_method == PaymentMethod.GATEWAY:
                snap = create_snap_transaction(
                    order_id=str(order.pk),
                    gross_amount=total,
                    customer_name=customer_name,
                )
                order.snap_token = snap.token
                order.snap_redirect_url = snap.redirect_url
                order.save(update_fields=["snap_token", "snap_redirect_url"])
                snap_token = snap.token

    except OrderRejected as e:
        return _error(e.message, e.status)
    except PaymentError as e:
        logger.error("Midtrans transaction failed: %s", e.message)
        return _error(e.message, 502)

    logger.info(
        "Order created: order_id=%s type=%s method=%s total=%s",
        order.pk,
        order.order_type,
        order.payment_method,
        order.total_amount,
    )

    response = OrderCreateResponse(
        order_id=str(order.pk),
        payment=PaymentDirective(
            method=order_request.payment_method,
            snap_token=snap_token,
        ),
    )
    return JsonResponse(response.to_wire(), status=201)


def _reserve_stock(order_request: OrderCreateRequest) -> dict[str, str]:
    """
    Lock, check and deduct stock for every cart line.

    Must run inside a transaction. Returns item image URLs keyed by name.

    Raises:
        OrderRejected: If an item is unknown or has too little stock
    """
    image_urls: dict[str, str] = {}

    for item in order_request.cart_items:
        menu_item = MenuItem.objects.select_for_update().filter(name=item.name).first()
        if menu_item is None:
            raise OrderRejected(f"Menu item {item.name} not found", status=404)

        if menu_item.stock < item.quantity:
            raise OrderRejected(
                f"Not enough stock for {item.name} (remaining: {menu_item.stock})"
            )

        menu_item.stock -= item.quantity
        menu_item.status = (
            MenuItemStatus.OUT_OF_STOCK
            if menu_item.stock == 0
            else MenuItemStatus.AVAILABLE
        )
        menu_item.save(update_fields=["stock", "status", "updated_at"])
        image_urls[item.name] = menu_item.image_url

    return image_urls


@require_GET
@api_login_required
def order_detail(request: HttpRequest, order_id: str) -> JsonResponse:
    """
    GET /api/orders/{order_id}

    Response: OrderDetailResponse schema (200) or 404
    """
    order = _get_or_none(
        Order.objects.for_user(request).select_related("pickup_branch"), order_id
    )
    if order is None:
        return _error("Order not found", 404)

    response = OrderDetailResponse(
        order=_serialize_order_detail(order),
        items=[_serialize_order_item(item) for item in order.items.all()],
    )
    return JsonResponse(response.to_wire())


@csrf_exempt
@require_http_methods(["PATCH"])
@api_login_required
def order_status(request: HttpRequest, order_id: str) -> JsonResponse:
    """
    PATCH /api/orders/{order_id}/status

    Request body: OrderStatusUpdateRequest {status?, paymentStatus?}
    """
    parsed = _parse_body(request, OrderStatusUpdateRequest)
    if isinstance(parsed, JsonResponse):
        return parsed

    if parsed.status is None and parsed.payment_status is None:
        return _error("No status provided", 400)

    order = _get_or_none(Order.objects.all(), order_id)
    if order is None:
        return _error("Order not found", 404)

    if order.user_id != request.user.pk:
        return _error("Forbidden", 403)

    update_fields = ["updated_at"]
    if parsed.status is not None:
        order.status = parsed.status.value
        update_fields.append("status")
    if parsed.payment_status is not None:
        order.payment_status = parsed.payment_status.value
        update_fields.append("payment_status")
    order.save(update_fields=update_fields)

    response = OrderStatusUpdateResponse(order=_serialize_order_summary(order))
    return JsonResponse(response.to_wire())


# =============================================================================
# Notifications
# =============================================================================


@require_GET
@api_login_required
def notification_list(request: HttpRequest) -> JsonResponse:
    """
    GET /api/notifications

    Returns the user's notifications, newest first.
    """
    response = NotificationListResponse(
        notifications=[
            NotificationSchema(
                id=str(n.pk),
                title=n.title,
                description=n.description,
                category=n.category,
                status=n.status,
                action_url=n.action_url,
                created_at=n.created_at,
            )
            for n in Notification.objects.for_user(request)
        ]
    )
    return JsonResponse(response.to_wire())
