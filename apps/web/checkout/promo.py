"""
Promo code validation for the checkout.

A rejection is an ordinary result, never an exception: the customer can
try another code or continue without a discount.
"""

import logging

from pydantic import ConfigDict, Field
from takumaeat_schemas import PromoCheckResponse, WireModel

from apps.web.checkout.api import StorefrontAPI
from apps.web.checkout.exceptions import StorefrontAPIError

logger = logging.getLogger(__name__)

EMPTY_CODE_MESSAGE = "Please enter a promo code"
UNAVAILABLE_MESSAGE = "Unable to check promo code right now, please try again"


class PromoApplication(WireModel):
    """A validated promo, tied to the subtotal it was validated against."""

    model_config = ConfigDict(frozen=True)

    code: str
    discount_amount: int = Field(..., ge=0)
    subtotal: int = Field(..., ge=0)


class PromoValidator:
    """Checks promo codes against the storefront API."""

    def __init__(self, api: StorefrontAPI) -> None:
        self._api = api

    async def check_promo(self, code: str, cart_subtotal: int) -> PromoCheckResponse:
        """
        Validate a code against the current cart subtotal.

        Returns:
            PromoCheckResponse; valid=False carries the reason in message
        """
        code = code.strip()
        if not code:
            return PromoCheckResponse(valid=False, message=EMPTY_CODE_MESSAGE)

        try:
            result = await self._api.check_promo(code, cart_subtotal)
        except StorefrontAPIError as e:
            logger.warning("Promo check failed: code=%s error=%s", code, e.message)
            # 4xx carries a customer-facing reason; anything else is unavailability
            if e.status_code is not None and e.status_code < 500:
                return PromoCheckResponse(valid=False, message=e.message)
            return PromoCheckResponse(valid=False, message=UNAVAILABLE_MESSAGE)

        logger.info(
            "Promo checked: code=%s subtotal=%s valid=%s", code, cart_subtotal, result.valid
        )
        return result

    async def apply(self, code: str, cart_subtotal: int) -> tuple[PromoApplication | None, str]:
        """
        Validate a code and turn an accepted result into a PromoApplication.

        Returns:
            (application or None, message to show)
        """
        result = await self.check_promo(code, cart_subtotal)
        if not result.valid:
            return None, result.message

        discount = min(result.discount_amount or 0, cart_subtotal)
        application = PromoApplication(
            code=result.promo_code or code.strip().upper(),
            discount_amount=discount,
            subtotal=cart_subtotal,
        )
        return application, result.message
