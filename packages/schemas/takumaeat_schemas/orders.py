"""Order, promo and payment schemas - data contracts for the checkout flow."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Flat surcharge (IDR) added to every delivery order; takeaway pays none.
DEFAULT_DELIVERY_FEE = 15000


class WireModel(BaseModel):
    """Base for JSON payloads exchanged with the storefront API (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Enums
# =============================================================================


class OrderType(str, Enum):
    """Order fulfillment type."""

    DELIVERY = "delivery"
    TAKEAWAY = "takeaway"


class PaymentMethod(str, Enum):
    """How the customer pays."""

    GATEWAY = "gateway"  # Midtrans Snap
    COD = "cod"  # cash on delivery/pickup


class ScheduleType(str, Enum):
    """Delivery timing."""

    ASAP = "ASAP"
    SCHEDULED = "SCHEDULED"


class PickupType(str, Enum):
    """Takeaway timing."""

    NOW = "NOW"
    SCHEDULED = "SCHEDULED"


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING_PAYMENT = "pending_payment"
    PROCESSING = "processing"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    OUT_FOR_DELIVERY = "out_for_delivery"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    """Payment processing status."""

    UNPAID = "unpaid"
    WAITING_FOR_PAYMENT = "waiting_for_payment"
    PENDING_PAYMENT = "pending_payment"
    PENDING_REVIEW = "pending_review"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"
    COD_PENDING = "cod_pending"


# =============================================================================
# Order creation
# =============================================================================


class OrderItemInput(WireModel):
    """A cart line as submitted with an order."""

    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    note: str = Field(default="", max_length=500)


class DeliveryDetails(WireModel):
    """Delivery block of an order (saved address + timing)."""

    address_id: str = Field(..., min_length=1)
    schedule_type: ScheduleType = ScheduleType.ASAP
    scheduled_at: datetime | None = None
    notes: str = Field(default="", max_length=1000)


class TakeawayDetails(WireModel):
    """Takeaway block of an order (branch + timing)."""

    branch_id: str = Field(..., min_length=1)
    branch_name: str = ""
    pickup_type: PickupType = PickupType.NOW
    pickup_at: datetime | None = None
    notes: str = Field(default="", max_length=1000)
    payment_method: PaymentMethod = PaymentMethod.GATEWAY


class OrderCreateRequest(WireModel):
    """Request body for POST /api/orders."""

    order_type: OrderType
    payment_method: PaymentMethod
    cart_items: list[OrderItemInput] = Field(..., min_length=1)
    promo_code: str | None = None
    delivery: DeliveryDetails | None = None
    takeaway: TakeawayDetails | None = None


class PaymentDirective(WireModel):
    """What the client must do next to pay for a created order."""

    method: PaymentMethod
    snap_token: str | None = None


class OrderCreateResponse(WireModel):
    """Response for POST /api/orders."""

    order_id: str
    payment: PaymentDirective


# =============================================================================
# Promos
# =============================================================================


class PromoCheckRequest(WireModel):
    """Request body for POST /api/promos/check."""

    code: str = Field(..., min_length=1)
    cart_total: int = Field(..., ge=0)


class PromoCheckResponse(WireModel):
    """Response for POST /api/promos/check."""

    valid: bool
    promo_code: str | None = None
    discount_amount: int | None = None
    message: str


# =============================================================================
# Errors
# =============================================================================


class ErrorResponse(BaseModel):
    """Body of every non-2xx API response."""

    message: str
