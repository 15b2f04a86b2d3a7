"""
Checkout draft persistence.

The orchestrator snapshots its working state (step, order type, and both
forms) after every change so a reload resumes mid-flow. The snapshot is
cleared once an order is submitted.
"""

import logging
from datetime import datetime
from enum import Enum

from pydantic import Field, ValidationError
from takumaeat_schemas import OrderType, PaymentMethod, PickupType, ScheduleType, WireModel

from apps.web.checkout.storage import KeyValueStorage

logger = logging.getLogger(__name__)

DRAFT_STORAGE_KEY = "takumaeat:checkout-state"


class CheckoutStep(str, Enum):
    """Wizard steps."""

    REVIEW = "review"
    DETAILS = "details"
    SUBMITTING = "submitting"
    CONFIRMATION = "confirmation"


class DeliveryForm(WireModel):
    """Delivery step input; fields stay empty until the customer fills them."""

    address_id: str | None = None
    schedule_type: ScheduleType = ScheduleType.ASAP
    scheduled_at: datetime | None = None
    notes: str = ""


class TakeawayForm(WireModel):
    """Takeaway step input."""

    branch_id: str | None = None
    branch_name: str = ""
    pickup_type: PickupType = PickupType.NOW
    pickup_at: datetime | None = None
    notes: str = ""
    payment_method: PaymentMethod = PaymentMethod.GATEWAY


class CheckoutDraft(WireModel):
    """Snapshot of an in-progress checkout."""

    step: CheckoutStep = CheckoutStep.REVIEW
    order_type: OrderType = OrderType.DELIVERY
    delivery: DeliveryForm = Field(default_factory=DeliveryForm)
    takeaway: TakeawayForm = Field(default_factory=TakeawayForm)


class DraftRepository:
    """Saves, loads and clears the checkout draft in a key-value storage."""

    def __init__(self, storage: KeyValueStorage, key: str = DRAFT_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    def save(self, draft: CheckoutDraft) -> None:
        self._storage.set_item(self._key, draft.model_dump_json(by_alias=True))

    def load(self) -> CheckoutDraft | None:
        """
        Load the saved draft.

        Returns:
            The draft, or None if nothing is saved or the snapshot is unreadable
        """
        raw = self._storage.get_item(self._key)
        if not raw:
            return None
        try:
            return CheckoutDraft.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable checkout draft")
            self.clear()
            return None

    def clear(self) -> None:
        self._storage.remove_item(self._key)
