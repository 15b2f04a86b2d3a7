"""
Payment gateway bridge - Midtrans Snap.

The orchestrator talks to a PaymentGateway; SnapGateway is the real one.
Each payment runs as a PaymentAttempt whose outcome is set exactly once:
the first of success/pending/error/close wins and later signals are ignored.
"""

import asyncio
import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urljoin

import httpx

from apps.web.checkout.exceptions import GatewayNotReadyError

logger = logging.getLogger(__name__)

GatewayResult = dict[str, Any]


class PaymentOutcome(str, Enum):
    """How a checkout ended, as shown on the confirmation screen."""

    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
    COD = "cod"


@dataclass(frozen=True)
class GatewayCallbacks:
    """Signals the gateway raises while the customer pays."""

    on_success: Callable[[GatewayResult], None]
    on_pending: Callable[[GatewayResult], None]
    on_error: Callable[[GatewayResult], None]
    on_close: Callable[[], None]


@runtime_checkable
class PaymentGateway(Protocol):
    """Client-side payment capability used by the checkout."""

    def is_ready(self) -> bool: ...

    def pay(self, token: str, callbacks: GatewayCallbacks) -> None: ...


AttemptListener = Callable[["PaymentAttempt", PaymentOutcome, GatewayResult | None], None]


class PaymentAttempt:
    """
    Single-assignment outcome of paying for one order.

    Must be created inside a running event loop.
    """

    def __init__(self, order_id: str, on_resolved: AttemptListener | None = None) -> None:
        self.order_id = order_id
        self._on_resolved = on_resolved
        self._future: asyncio.Future[PaymentOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self.result: GatewayResult | None = None

    @property
    def resolved(self) -> bool:
        return self._future.done()

    @property
    def outcome(self) -> PaymentOutcome | None:
        return self._future.result() if self._future.done() else None

    def resolve(self, outcome: PaymentOutcome, result: GatewayResult | None = None) -> bool:
        """
        Record the outcome if none is recorded yet.

        Returns:
            True if this call set the outcome, False if it was ignored
        """
        if self._future.done():
            logger.debug(
                "Ignoring %s for order %s; already %s",
                outcome.value,
                self.order_id,
                self._future.result().value,
            )
            return False

        self.result = result
        self._future.set_result(outcome)
        logger.info("Payment attempt resolved: order_id=%s outcome=%s", self.order_id, outcome.value)
        if self._on_resolved is not None:
            self._on_resolved(self, outcome, result)
        return True

    async def wait(self) -> PaymentOutcome:
        return await asyncio.shield(self._future)

    def callbacks(self) -> GatewayCallbacks:
        """Gateway callbacks bound to this attempt. Closing without a result counts as pending."""
        return GatewayCallbacks(
            on_success=lambda result: self.resolve(PaymentOutcome.SUCCESS, result),
            on_pending=lambda result: self.resolve(PaymentOutcome.PENDING, result),
            on_error=lambda result: self.resolve(PaymentOutcome.ERROR, result),
            on_close=lambda: self.resolve(PaymentOutcome.PENDING),
        )


class SnapGateway:
    """
    Midtrans Snap in redirect mode.

    load() fetches the Snap script once to confirm the gateway is reachable.
    pay() opens the hosted Snap page for the token; the outcome comes back
    through handle_redirect() (from the finish URL's transaction_status) or
    dismiss() when the customer abandons the page.
    """

    SCRIPT_TIMEOUT_SECONDS = 10.0

    def __init__(
        self,
        script_url: str,
        client_key: str,
        http_client: httpx.AsyncClient | None = None,
        launcher: Callable[[str], Any] | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            script_url: Snap script URL (sandbox or production)
            client_key: Midtrans client key; empty disables the gateway
            http_client: Optional HTTP client for dependency injection (testing).
            launcher: Opens a URL for the customer (defaults to webbrowser.open)
        """
        self.script_url = script_url
        self.client_key = client_key
        self._client = http_client or httpx.AsyncClient(timeout=self.SCRIPT_TIMEOUT_SECONDS)
        self._owns_client = http_client is None
        self._launcher = launcher or webbrowser.open
        self._loaded = False
        self._ready = False
        self._pending: dict[str, GatewayCallbacks] = {}

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def load(self) -> bool:
        """
        Load the Snap script. Subsequent calls return the first result.

        Returns:
            Whether the gateway is ready
        """
        if self._loaded:
            return self._ready
        self._loaded = True

        if not self.client_key:
            logger.warning("Midtrans client key is not set; online payment disabled")
            return False

        try:
            response = await self._client.get(self.script_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to load Snap script from %s: %s", self.script_url, e)
            return False

        self._ready = True
        return True

    def is_ready(self) -> bool:
        return self._ready

    def redirect_url(self, token: str) -> str:
        return urljoin(self.script_url, f"v4/redirection/{token}")

    def pay(self, token: str, callbacks: GatewayCallbacks) -> None:
        """
        Open the Snap payment page for a transaction token.

        Raises:
            GatewayNotReadyError: If load() has not succeeded
        """
        if not self._ready:
            raise GatewayNotReadyError("Payment gateway not ready")

        self._pending[token] = callbacks
        opened = self._launcher(self.redirect_url(token))
        if opened is False:
            self._pending.pop(token, None)
            callbacks.on_error({"status_message": "Unable to open the payment page"})

    def handle_redirect(self, token: str, transaction_status: str, **result: Any) -> None:
        """Dispatch the transaction_status Snap appends to the finish URL."""
        callbacks = self._pending.pop(token, None)
        if callbacks is None:
            logger.debug("No pending Snap payment for token %s", token)
            return

        payload = {"transaction_status": transaction_status, **result}
        match transaction_status:
            case "settlement" | "capture":
                callbacks.on_success(payload)
            case "pending":
                callbacks.on_pending(payload)
            case "deny" | "cancel" | "expire" | "failure":
                callbacks.on_error(payload)
            case _:
                callbacks.on_close()

    def dismiss(self, token: str) -> None:
        """The customer left the Snap page without finishing."""
        callbacks = self._pending.pop(token, None)
        if callbacks is not None:
            callbacks.on_close()
