"""Checkout client exceptions."""


class CheckoutError(Exception):
    """Base exception for checkout errors shown to the customer."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CheckoutValidationError(CheckoutError):
    """Form input blocks submission (missing address/branch, past schedule)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StorefrontAPIError(CheckoutError):
    """Request to the storefront API failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class GatewayNotReadyError(CheckoutError):
    """Payment gateway script is not loaded or has no client key."""


class InvalidTransitionError(CheckoutError):
    """Checkout step change not allowed from the current step."""

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Cannot move checkout from {source} to {target}")
        self.source = source
        self.target = target
