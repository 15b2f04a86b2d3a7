"""Branch and address schemas - reference data for takeaway and delivery."""

from pydantic import Field

from takumaeat_schemas.orders import WireModel


class BranchSchema(WireModel):
    """A pickup location."""

    id: str
    name: str
    address: str
    operation_hours: str = ""
    map_url: str | None = None


class BranchListResponse(WireModel):
    """Response for GET /api/branches."""

    branches: list[BranchSchema] = Field(default_factory=list)
    fallback: bool = False


class AddressSchema(WireModel):
    """A saved delivery address."""

    id: str
    recipient_name: str
    phone_number: str
    address_line: str
    detail: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    is_default: bool = False


class AddressListResponse(WireModel):
    """Response for GET /api/user/addresses."""

    addresses: list[AddressSchema] = Field(default_factory=list)


class AddressCreateRequest(WireModel):
    """Request body for POST /api/user/addresses."""

    recipient_name: str = Field(..., min_length=1, max_length=200)
    phone_number: str = Field(..., min_length=1, max_length=20)
    address_line: str = Field(..., min_length=1, max_length=500)
    detail: str = Field(default="", max_length=500)
    latitude: float | None = None
    longitude: float | None = None
    is_default: bool = False


class AddressUpdateRequest(WireModel):
    """Request body for PATCH /api/user/addresses/{id}; all fields optional."""

    recipient_name: str | None = Field(default=None, min_length=1, max_length=200)
    phone_number: str | None = Field(default=None, min_length=1, max_length=20)
    address_line: str | None = Field(default=None, min_length=1, max_length=500)
    detail: str | None = Field(default=None, max_length=500)
    latitude: float | None = None
    longitude: float | None = None
    is_default: bool | None = None
