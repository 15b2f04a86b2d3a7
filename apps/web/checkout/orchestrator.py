"""
Checkout orchestrator - the review -> details -> confirmation wizard.

Steps move only along TRANSITIONS. While an order is being submitted the
orchestrator sits in SUBMITTING and ignores every call, so a double click on
"place order" cannot create two orders.

Order submission:
1. Validate the active form (delivery or takeaway)
2. Require a loaded gateway for online payment
3. POST the composed order with a fresh Idempotency-Key
4. On success clear the draft and enter CONFIRMATION
5. Pay through the gateway, or finalize straight away for COD
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from takumaeat_schemas import (
    DeliveryDetails,
    OrderCreateRequest,
    OrderType,
    PaymentMethod,
    PickupType,
    ScheduleType,
    TakeawayDetails,
)

from apps.web.checkout.api import StorefrontAPI
from apps.web.checkout.cart import CartItems, CartStore
from apps.web.checkout.config import CheckoutConfig
from apps.web.checkout.drafts import (
    CheckoutDraft,
    CheckoutStep,
    DeliveryForm,
    DraftRepository,
    TakeawayForm,
)
from apps.web.checkout.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    GatewayNotReadyError,
    InvalidTransitionError,
    StorefrontAPIError,
)
from apps.web.checkout.gateway import (
    GatewayResult,
    PaymentAttempt,
    PaymentGateway,
    PaymentOutcome,
)
from apps.web.checkout.promo import PromoApplication, PromoValidator

logger = logging.getLogger(__name__)

TRANSITIONS: dict[CheckoutStep, frozenset[CheckoutStep]] = {
    CheckoutStep.REVIEW: frozenset({CheckoutStep.DETAILS}),
    CheckoutStep.DETAILS: frozenset({CheckoutStep.REVIEW, CheckoutStep.SUBMITTING}),
    CheckoutStep.SUBMITTING: frozenset({CheckoutStep.DETAILS, CheckoutStep.CONFIRMATION}),
    CheckoutStep.CONFIRMATION: frozenset({CheckoutStep.REVIEW}),
}

EMPTY_CART_MESSAGE = "Your cart is empty"
GATEWAY_NOT_READY_MESSAGE = "Payment gateway not ready"
INVALID_ORDER_MESSAGE = "Some order details are too long or invalid, please review your order"
PROMO_STALE_MESSAGE = "Your order changed, please apply the promo again"
PAYMENT_FAILED_MESSAGE = (
    "Transaction not completed. You can retry the payment from your order history."
)


@dataclass(frozen=True)
class Confirmation:
    """What the confirmation modal shows once a checkout finishes."""

    order_id: str
    outcome: PaymentOutcome
    order_url: str
    home_url: str


class CheckoutOrchestrator:
    """
    Drives one customer's checkout.

    Args:
        cart: The cart being checked out
        api: Storefront API client
        gateway: Payment gateway bridge
        drafts: Where the working state is snapshotted
        config: Delivery fee, timeout and timezone settings
        promo_validator: Defaults to a PromoValidator over `api`
        clock: Returns the current aware datetime (injectable for tests)
    """

    def __init__(
        self,
        cart: CartStore,
        api: StorefrontAPI,
        gateway: PaymentGateway,
        drafts: DraftRepository,
        config: CheckoutConfig | None = None,
        promo_validator: PromoValidator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cart = cart
        self._api = api
        self._gateway = gateway
        self._drafts = drafts
        self._config = config or CheckoutConfig()
        self._promos = promo_validator or PromoValidator(api)
        self._clock = clock or (lambda: datetime.now(self._config.tzinfo))

        self.step = CheckoutStep.REVIEW
        self.order_type = OrderType.DELIVERY
        self.delivery = DeliveryForm()
        self.takeaway = TakeawayForm()
        self.promo: PromoApplication | None = None
        self.promo_message: str | None = None
        self.error_message: str | None = None
        self.confirmation: Confirmation | None = None
        self.attempt: PaymentAttempt | None = None

        # Set once an order is placed; the finished form must not be saved again
        self._draft_consumed = False
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._unsubscribe = cart.subscribe(self._on_cart_changed)

    def close(self) -> None:
        """Detach from the cart and cancel any pending timer."""
        self._unsubscribe()
        self._cancel_timeout()

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def is_submitting(self) -> bool:
        return self.step == CheckoutStep.SUBMITTING

    @property
    def subtotal(self) -> int:
        return self._cart.cart_subtotal

    @property
    def discount(self) -> int:
        return self.promo.discount_amount if self.promo else 0

    @property
    def delivery_fee(self) -> int:
        return self._config.delivery_fee if self.order_type == OrderType.DELIVERY else 0

    @property
    def total(self) -> int:
        return max(0, self.subtotal - self.discount + self.delivery_fee)

    @property
    def payment_method(self) -> PaymentMethod:
        """Delivery is always paid online; takeaway uses the customer's choice."""
        if self.order_type == OrderType.DELIVERY:
            return PaymentMethod.GATEWAY
        return self.takeaway.payment_method

    # =========================================================================
    # Navigation & form input
    # =========================================================================

    def go_to_details(self) -> None:
        """
        Leave the cart review for the details form.

        Raises:
            CheckoutValidationError: If the cart is empty
            InvalidTransitionError: If not on the review step
        """
        if self.is_submitting:
            return
        if self._cart.cart_item_count == 0:
            raise CheckoutValidationError(EMPTY_CART_MESSAGE)
        self._draft_consumed = False
        self._transition(CheckoutStep.DETAILS)

    def back_to_review(self) -> None:
        if self.is_submitting:
            return
        self._transition(CheckoutStep.REVIEW)

    def close_confirmation(self) -> None:
        """Dismiss the confirmation modal and start over."""
        self._cancel_timeout()
        if self.step == CheckoutStep.CONFIRMATION:
            self._transition(CheckoutStep.REVIEW)
        self.confirmation = None
        self.attempt = None

    def set_order_type(self, order_type: OrderType) -> None:
        if self.is_submitting or order_type == self.order_type:
            return
        self.order_type = order_type
        self.clear_promo()
        self._draft_consumed = False
        self._persist()

    def update_delivery(self, **changes: Any) -> None:
        """Merge field changes into the delivery form (snake_case names)."""
        if self.is_submitting:
            return
        self.delivery = DeliveryForm.model_validate({**self.delivery.model_dump(), **changes})
        self._draft_consumed = False
        self._persist()

    def update_takeaway(self, **changes: Any) -> None:
        """Merge field changes into the takeaway form (snake_case names)."""
        if self.is_submitting:
            return
        self.takeaway = TakeawayForm.model_validate({**self.takeaway.model_dump(), **changes})
        self._draft_consumed = False
        self._persist()

    # =========================================================================
    # Promo
    # =========================================================================

    async def apply_promo(self, code: str) -> PromoApplication | None:
        """
        Validate a code against the current subtotal and apply it if accepted.

        A rejected code removes any previously applied promo.
        """
        if self.is_submitting:
            return None
        order_type = self.order_type
        application, self.promo_message = await self._promos.apply(code, self.subtotal)
        stale = application is not None and (
            application.subtotal != self.subtotal or order_type != self.order_type
        )
        if stale:
            # Cart or order type changed while the check was in flight
            application = None
            self.promo_message = PROMO_STALE_MESSAGE
        self.promo = application
        return application

    def clear_promo(self) -> None:
        if self.promo is not None:
            logger.info("Clearing promo %s", self.promo.code)
        self.promo = None
        self.promo_message = None

    def _on_cart_changed(self, _items: CartItems) -> None:
        # A discount is only trusted for the subtotal it was validated against
        if self.promo is not None and self.promo.subtotal != self._cart.cart_subtotal:
            self.clear_promo()

    # =========================================================================
    # Validation & payload
    # =========================================================================

    def validate(self) -> None:
        """
        Check the active form.

        Raises:
            CheckoutValidationError: With a customer-facing message
        """
        if self._cart.cart_item_count == 0:
            raise CheckoutValidationError(EMPTY_CART_MESSAGE)

        if self.order_type == OrderType.DELIVERY:
            if not self.delivery.address_id:
                raise CheckoutValidationError(
                    "Please select a delivery address", field="addressId"
                )
            if self.delivery.schedule_type == ScheduleType.SCHEDULED:
                self._require_future(self.delivery.scheduled_at, "scheduledAt")
        else:
            if not self.takeaway.branch_id:
                raise CheckoutValidationError(
                    "Please select a pickup branch", field="branchId"
                )
            if self.takeaway.pickup_type == PickupType.SCHEDULED:
                self._require_future(self.takeaway.pickup_at, "pickupAt")

    def _require_future(self, when: datetime | None, field: str) -> None:
        if when is None:
            raise CheckoutValidationError("Please choose a time", field=field)
        if self._localize(when) <= self._clock():
            raise CheckoutValidationError("Scheduled time must be in the future", field=field)

    def _localize(self, when: datetime) -> datetime:
        if when.tzinfo is None:
            return when.replace(tzinfo=self._config.tzinfo)
        return when

    def build_order_request(self) -> OrderCreateRequest:
        """Compose the order payload from the cart and the active form."""
        delivery = None
        takeaway = None

        if self.order_type == OrderType.DELIVERY:
            scheduled = self.delivery.schedule_type == ScheduleType.SCHEDULED
            delivery = DeliveryDetails(
                address_id=self.delivery.address_id or "",
                schedule_type=self.delivery.schedule_type,
                scheduled_at=self._localize(self.delivery.scheduled_at)
                if scheduled and self.delivery.scheduled_at
                else None,
                notes=self.delivery.notes,
            )
        else:
            scheduled = self.takeaway.pickup_type == PickupType.SCHEDULED
            takeaway = TakeawayDetails(
                branch_id=self.takeaway.branch_id or "",
                branch_name=self.takeaway.branch_name,
                pickup_type=self.takeaway.pickup_type,
                pickup_at=self._localize(self.takeaway.pickup_at)
                if scheduled and self.takeaway.pickup_at
                else None,
                notes=self.takeaway.notes,
                payment_method=self.takeaway.payment_method,
            )

        return OrderCreateRequest(
            order_type=self.order_type,
            payment_method=self.payment_method,
            cart_items=self._cart.to_order_items(),
            promo_code=self.promo.code if self.promo else None,
            delivery=delivery,
            takeaway=takeaway,
        )

    # =========================================================================
    # Submission
    # =========================================================================

    async def place_order(self) -> PaymentAttempt | None:
        """
        Submit the order from the details step.

        Failures are reported through error_message and leave the customer
        on the details step.

        Returns:
            The payment attempt for the created order, or None if nothing
            was submitted (already submitting, invalid form, API failure)

        Raises:
            InvalidTransitionError: If called outside the details step
        """
        if self.is_submitting:
            logger.debug("Order submission already in flight; ignoring")
            return None
        if self.step != CheckoutStep.DETAILS:
            raise InvalidTransitionError(self.step.value, CheckoutStep.SUBMITTING.value)

        self.error_message = None
        try:
            self.validate()
            if self.payment_method == PaymentMethod.GATEWAY and not self._gateway.is_ready():
                raise GatewayNotReadyError(GATEWAY_NOT_READY_MESSAGE)
            order = self.build_order_request()
        except CheckoutError as e:
            self.error_message = e.message
            return None
        except ValidationError as e:
            logger.warning("Order payload rejected: %s", e)
            self.error_message = INVALID_ORDER_MESSAGE
            return None

        self._transition(CheckoutStep.SUBMITTING)
        try:
            result = await self._api.create_order(order, idempotency_key=str(uuid.uuid4()))
        except StorefrontAPIError as e:
            self.error_message = e.message
            self._transition(CheckoutStep.DETAILS)
            return None

        logger.info(
            "Order submitted: order_id=%s method=%s", result.order_id, result.payment.method.value
        )

        self._transition(CheckoutStep.CONFIRMATION)
        self._draft_consumed = True
        self._drafts.clear()
        self._start_timeout()

        attempt = PaymentAttempt(result.order_id, on_resolved=self._on_payment_resolved)
        self.attempt = attempt

        token = result.payment.snap_token
        if result.payment.method == PaymentMethod.GATEWAY and token and self._gateway.is_ready():
            self._gateway.pay(token, attempt.callbacks())
        elif result.payment.method == PaymentMethod.COD:
            attempt.resolve(PaymentOutcome.COD)
        else:
            attempt.resolve(PaymentOutcome.PENDING)

        return attempt

    def _on_payment_resolved(
        self,
        attempt: PaymentAttempt,
        outcome: PaymentOutcome,
        result: GatewayResult | None,
    ) -> None:
        if outcome == PaymentOutcome.ERROR:
            logger.warning("Payment failed: order_id=%s result=%s", attempt.order_id, result)
            self.error_message = PAYMENT_FAILED_MESSAGE
        self.finalize(attempt.order_id, outcome)

    def finalize(self, order_id: str, outcome: PaymentOutcome) -> None:
        """Clear the cart and show the outcome."""
        self._cancel_timeout()
        self._cart.clear_cart()
        self.clear_promo()
        self.confirmation = Confirmation(
            order_id=order_id,
            outcome=outcome,
            order_url=self._config.order_url(order_id),
            home_url=self._config.home_url,
        )

    def _start_timeout(self) -> None:
        self._cancel_timeout()
        loop = asyncio.get_running_loop()
        self._timeout_handle = loop.call_later(
            self._config.confirmation_timeout, self._on_confirmation_timeout
        )

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _on_confirmation_timeout(self) -> None:
        self._timeout_handle = None
        if self.step != CheckoutStep.CONFIRMATION or self.confirmation is not None:
            return
        logger.warning(
            "No payment outcome after %ss; returning checkout to review",
            self._config.confirmation_timeout,
        )
        self._transition(CheckoutStep.REVIEW)

    # =========================================================================
    # Draft persistence
    # =========================================================================

    def snapshot(self) -> CheckoutDraft:
        # An in-flight submission resumes as an editable form
        step = CheckoutStep.DETAILS if self.is_submitting else self.step
        return CheckoutDraft(
            step=step,
            order_type=self.order_type,
            delivery=self.delivery,
            takeaway=self.takeaway,
        )

    def restore(self, mode: OrderType | None = None) -> bool:
        """
        Resume from the saved draft.

        Args:
            mode: Order type requested by the page URL; overrides the draft

        Returns:
            True if a draft was found
        """
        draft = self._drafts.load()
        if draft is not None:
            step = draft.step
            if step in (CheckoutStep.SUBMITTING, CheckoutStep.CONFIRMATION):
                step = CheckoutStep.DETAILS
            if self._cart.cart_item_count == 0:
                step = CheckoutStep.REVIEW
            self.step = step
            self.order_type = draft.order_type
            self.delivery = draft.delivery
            self.takeaway = draft.takeaway

        if mode is not None and mode != self.order_type:
            self.order_type = mode
            self._persist()
        return draft is not None

    def _persist(self) -> None:
        if self.step == CheckoutStep.CONFIRMATION or self._draft_consumed:
            return
        self._drafts.save(self.snapshot())

    def _transition(self, target: CheckoutStep) -> None:
        if target not in TRANSITIONS[self.step]:
            raise InvalidTransitionError(self.step.value, target.value)
        logger.debug("Checkout step %s -> %s", self.step.value, target.value)
        self.step = target
        self._persist()
