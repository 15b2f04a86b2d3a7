"""Branch and address reference data for the details step."""

import logging

from takumaeat_schemas import AddressSchema, BranchSchema

from apps.web.checkout.api import StorefrontAPI
from apps.web.checkout.exceptions import StorefrontAPIError

logger = logging.getLogger(__name__)


class BranchProvider:
    """
    Pickup branches for takeaway orders.

    `fallback` is True when the server served its default list, or when the
    fetch failed and no branches are available.
    """

    def __init__(self, api: StorefrontAPI) -> None:
        self._api = api
        self.branches: list[BranchSchema] = []
        self.fallback = False

    async def load(self) -> list[BranchSchema]:
        try:
            response = await self._api.list_branches()
        except StorefrontAPIError as e:
            logger.warning("Failed to load branches: %s", e.message)
            self.branches = []
            self.fallback = True
            return self.branches

        self.branches = list(response.branches)
        self.fallback = response.fallback
        return self.branches

    def get(self, branch_id: str) -> BranchSchema | None:
        return next((b for b in self.branches if b.id == branch_id), None)


class AddressProvider:
    """Saved delivery addresses of the signed-in customer."""

    def __init__(self, api: StorefrontAPI) -> None:
        self._api = api
        self.addresses: list[AddressSchema] = []

    async def load(self) -> list[AddressSchema]:
        """
        Fetch addresses.

        Raises:
            StorefrontAPIError: If the request fails (e.g. 401 when signed out)
        """
        self.addresses = await self._api.list_addresses()
        return self.addresses

    def get(self, address_id: str) -> AddressSchema | None:
        return next((a for a in self.addresses if a.id == address_id), None)

    def default_address(self) -> AddressSchema | None:
        """The address flagged default, else the first one."""
        for address in self.addresses:
            if address.is_default:
                return address
        return self.addresses[0] if self.addresses else None
