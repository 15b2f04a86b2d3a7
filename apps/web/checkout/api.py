"""Storefront API client - async httpx wrapper around the TakumaEat REST API."""

import logging
import uuid
from typing import Any

import httpx
from pydantic import ValidationError
from takumaeat_schemas import (
    AddressListResponse,
    AddressSchema,
    BranchListResponse,
    OrderCreateRequest,
    OrderCreateResponse,
    PromoCheckRequest,
    PromoCheckResponse,
)

from apps.web.checkout.exceptions import StorefrontAPIError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong, please try again"
ORDER_ERROR_MESSAGE = "Failed to create order"


class StorefrontAPI:
    """
    Client for the storefront endpoints the checkout depends on.

    Session cookies or auth headers are the caller's concern: pass a
    configured httpx.AsyncClient.
    """

    TIMEOUT_SECONDS = 30.0

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Storefront origin, e.g. http://localhost:8000
            http_client: Optional HTTP client for dependency injection (testing).
        """
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=self.TIMEOUT_SECONDS)
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        fallback_message: str = GENERIC_ERROR_MESSAGE,
        **kwargs: Any,
    ) -> Any:
        """
        Send a request and decode the JSON body.

        Raises:
            StorefrontAPIError: On transport failure or a non-2xx status.
                The message is the server's "message" field when present.
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning("Storefront request failed: %s %s: %s", method, path, e)
            raise StorefrontAPIError(fallback_message) from e

        if response.is_error:
            message = _server_message(response) or fallback_message
            logger.warning(
                "Storefront returned %s for %s %s: %s",
                response.status_code,
                method,
                path,
                message,
            )
            raise StorefrontAPIError(
                message,
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise StorefrontAPIError(
                fallback_message,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _parse(self, schema: Any, data: Any, fallback_message: str) -> Any:
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected storefront response for %s: %s", schema.__name__, e)
            raise StorefrontAPIError(fallback_message) from e

    # =========================================================================
    # Reference data
    # =========================================================================

    async def list_branches(self) -> BranchListResponse:
        data = await self._request("GET", "/api/branches")
        return self._parse(BranchListResponse, data, GENERIC_ERROR_MESSAGE)

    async def list_addresses(self) -> list[AddressSchema]:
        data = await self._request("GET", "/api/user/addresses")
        parsed = self._parse(AddressListResponse, data, GENERIC_ERROR_MESSAGE)
        return parsed.addresses

    # =========================================================================
    # Checkout
    # =========================================================================

    async def check_promo(self, code: str, cart_total: int) -> PromoCheckResponse:
        body = PromoCheckRequest(code=code, cart_total=cart_total)
        data = await self._request("POST", "/api/promos/check", json=body.to_wire())
        return self._parse(PromoCheckResponse, data, GENERIC_ERROR_MESSAGE)

    async def create_order(
        self,
        order: OrderCreateRequest,
        idempotency_key: str | None = None,
    ) -> OrderCreateResponse:
        """
        Submit an order.

        Args:
            order: Composed order payload
            idempotency_key: Key for this submission attempt (generated if omitted)

        Returns:
            The created order ID and what to do next to pay

        Raises:
            StorefrontAPIError: If the server rejects the order
        """
        key = idempotency_key or str(uuid.uuid4())
        data = await self._request(
            "POST",
            "/api/orders",
            json=order.to_wire(),
            headers={"Idempotency-Key": key},
            fallback_message=ORDER_ERROR_MESSAGE,
        )
        return self._parse(OrderCreateResponse, data, ORDER_ERROR_MESSAGE)


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"] or None
    return None
