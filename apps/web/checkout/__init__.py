"""
Checkout client - the storefront's checkout workflow as a library.

Cart store, draft persistence, storefront API client, promo validation,
branch/address providers, the Midtrans Snap bridge and the orchestrator
that ties them together. No Django dependency.
"""

from apps.web.checkout.api import StorefrontAPI
from apps.web.checkout.cart import CART_STORAGE_KEY, CartItem, CartStore
from apps.web.checkout.config import CheckoutConfig
from apps.web.checkout.drafts import (
    DRAFT_STORAGE_KEY,
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
    GatewayCallbacks,
    PaymentAttempt,
    PaymentGateway,
    PaymentOutcome,
    SnapGateway,
)
from apps.web.checkout.orchestrator import CheckoutOrchestrator, Confirmation
from apps.web.checkout.promo import PromoApplication, PromoValidator
from apps.web.checkout.providers import AddressProvider, BranchProvider
from apps.web.checkout.storage import FileStorage, InMemoryStorage, KeyValueStorage

__all__ = [
    # Cart & persistence
    "CART_STORAGE_KEY",
    "CartItem",
    "CartStore",
    "DRAFT_STORAGE_KEY",
    "CheckoutDraft",
    "CheckoutStep",
    "DeliveryForm",
    "DraftRepository",
    "FileStorage",
    "InMemoryStorage",
    "KeyValueStorage",
    "TakeawayForm",
    # Remote
    "AddressProvider",
    "BranchProvider",
    "PromoApplication",
    "PromoValidator",
    "StorefrontAPI",
    # Payment
    "GatewayCallbacks",
    "PaymentAttempt",
    "PaymentGateway",
    "PaymentOutcome",
    "SnapGateway",
    # Orchestration
    "CheckoutConfig",
    "CheckoutOrchestrator",
    "Confirmation",
    # Errors
    "CheckoutError",
    "CheckoutValidationError",
    "GatewayNotReadyError",
    "InvalidTransitionError",
    "StorefrontAPIError",
]
