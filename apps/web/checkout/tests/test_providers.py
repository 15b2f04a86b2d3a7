"""Tests for BranchProvider and AddressProvider."""

import httpx
import pytest
import respx

from apps.web.checkout.api import StorefrontAPI
from apps.web.checkout.exceptions import StorefrontAPIError
from apps.web.checkout.providers import AddressProvider, BranchProvider

BASE_URL = "http://shop.test"


def _address(address_id: str, is_default: bool = False) -> dict:
    return {
        "id": address_id,
        "recipientName": "Budi",
        "phoneNumber": "08123",
        "addressLine": f"Jl. Melati {address_id}",
        "isDefault": is_default,
    }


@pytest.fixture
def api() -> StorefrontAPI:
    return StorefrontAPI(BASE_URL)


class TestBranchProvider:
    @pytest.mark.asyncio
    @respx.mock
    async def test_load(self, api):
        respx.get(f"{BASE_URL}/api/branches").mock(
            return_value=httpx.Response(
                200,
                json={"branches": [{"id": "b1", "name": "Kemang", "address": "Jl. Kemang 1"}]},
            )
        )
        provider = BranchProvider(api)

        branches = await provider.load()

        assert [b.id for b in branches] == ["b1"]
        assert provider.fallback is False
        assert provider.get("b1").name == "Kemang"
        assert provider.get("missing") is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_failure_degrades_to_empty_fallback(self, api):
        respx.get(f"{BASE_URL}/api/branches").mock(return_value=httpx.Response(500))
        provider = BranchProvider(api)

        branches = await provider.load()

        assert branches == []
        assert provider.fallback is True


class TestAddressProvider:
    @pytest.mark.asyncio
    @respx.mock
    async def test_default_address_prefers_flagged(self, api):
        respx.get(f"{BASE_URL}/api/user/addresses").mock(
            return_value=httpx.Response(
                200, json={"addresses": [_address("a1"), _address("a2", is_default=True)]}
            )
        )
        provider = AddressProvider(api)
        await provider.load()

        assert provider.default_address().id == "a2"
        assert provider.get("a1").address_line == "Jl. Melati a1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_default_address_falls_back_to_first(self, api):
        respx.get(f"{BASE_URL}/api/user/addresses").mock(
            return_value=httpx.Response(200, json={"addresses": [_address("a1"), _address("a2")]})
        )
        provider = AddressProvider(api)
        await provider.load()

        assert provider.default_address().id == "a1"

    def test_default_address_empty(self, api):
        assert AddressProvider(api).default_address() is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_load_propagates_errors(self, api):
        respx.get(f"{BASE_URL}/api/user/addresses").mock(
            return_value=httpx.Response(401, json={"message": "Unauthorized"})
        )

        with pytest.raises(StorefrontAPIError):
            await AddressProvider(api).load()
