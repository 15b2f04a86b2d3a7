"""TakumaEat Schemas - Pydantic models for data contracts."""

from takumaeat_schemas.locations import (
    AddressCreateRequest,
    AddressListResponse,
    AddressSchema,
    AddressUpdateRequest,
    BranchListResponse,
    BranchSchema,
)
from takumaeat_schemas.orders import (
    DEFAULT_DELIVERY_FEE,
    DeliveryDetails,
    ErrorResponse,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderItemInput,
    OrderStatus,
    OrderType,
    PaymentDirective,
    PaymentMethod,
    PaymentStatus,
    PickupType,
    PromoCheckRequest,
    PromoCheckResponse,
    ScheduleType,
    TakeawayDetails,
    WireModel,
)

__all__ = [
    # Locations
    "AddressCreateRequest",
    "AddressListResponse",
    "AddressSchema",
    "AddressUpdateRequest",
    "BranchListResponse",
    "BranchSchema",
    # Orders
    "DEFAULT_DELIVERY_FEE",
    "DeliveryDetails",
    "ErrorResponse",
    "OrderCreateRequest",
    "OrderCreateResponse",
    "OrderItemInput",
    "OrderStatus",
    "OrderType",
    "PaymentDirective",
    "PaymentMethod",
    "PaymentStatus",
    "PickupType",
    "PromoCheckRequest",
    "PromoCheckResponse",
    "ScheduleType",
    "TakeawayDetails",
    "WireModel",
]
