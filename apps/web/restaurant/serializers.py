"""
Pydantic schemas for order history and notification API responses.

Checkout request/response contracts live in takumaeat_schemas; these are
the server-only views over stored orders.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field
from takumaeat_schemas import OrderStatus, PaymentStatus, WireModel

# =============================================================================
# Orders
# =============================================================================


class OrderSummarySchema(WireModel):
    """A row in the customer's order history."""

    id: str
    status: str
    payment_status: str
    payment_method: str
    order_type: str
    total_amount: int
    created_at: datetime


class OrderListResponse(WireModel):
    """Response for GET /api/orders."""

    orders: list[OrderSummarySchema] = Field(default_factory=list)


class OrderItemSchema(WireModel):
    """A line item in an order detail response."""

    id: str
    name: str
    price: int
    quantity: int
    note: str
    image_url: str
    line_total: int


class OrderDetailSchema(WireModel):
    """Full order record."""

    id: str
    order_number: str
    order_type: str
    status: str
    payment_method: str
    payment_status: str
    payment_channel: str
    subtotal: int
    discount_amount: int
    delivery_fee: int
    tax_amount: int
    total_amount: int
    promo_code: str
    delivery_address: dict[str, Any] | None = None
    branch_name: str | None = None
    schedule_at: datetime | None = None
    notes: str
    snap_token: str
    snap_redirect_url: str
    created_at: datetime


class OrderDetailResponse(WireModel):
    """Response for GET /api/orders/{order_id}."""

    order: OrderDetailSchema
    items: list[OrderItemSchema]


class OrderStatusUpdateRequest(WireModel):
    """Request body for PATCH /api/orders/{order_id}/status."""

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None


class OrderStatusUpdateResponse(WireModel):
    """Response for PATCH /api/orders/{order_id}/status."""

    order: OrderSummarySchema


# =============================================================================
# Notifications
# =============================================================================


class NotificationSchema(WireModel):
    """An in-app notification."""

    id: str
    title: str
    description: str
    category: Literal["order", "payment"]
    status: Literal["unread", "read"]
    action_url: str
    created_at: datetime


class NotificationListResponse(WireModel):
    """Response for GET /api/notifications."""

    notifications: list[NotificationSchema] = Field(default_factory=list)
