"""Checkout client configuration, read from the environment."""

from functools import cached_property
from zoneinfo import ZoneInfo

import environ
from pydantic import BaseModel, Field
from takumaeat_schemas import DEFAULT_DELIVERY_FEE

DEFAULT_SNAP_URL = "https://app.sandbox.midtrans.com/snap/snap.js"


class CheckoutConfig(BaseModel):
    """
    Settings for the checkout client.

    Build from environment variables with CheckoutConfig.from_env(), or
    construct directly in tests.
    """

    api_url: str = "http://localhost:8000"
    snap_url: str = DEFAULT_SNAP_URL
    client_key: str = ""
    app_base_url: str = "http://localhost:8000"
    delivery_fee: int = Field(default=DEFAULT_DELIVERY_FEE, ge=0)
    confirmation_timeout: float = Field(default=5.0, gt=0)
    timezone: str = "Asia/Jakarta"

    @classmethod
    def from_env(cls, env: environ.Env | None = None) -> "CheckoutConfig":
        env = env or environ.Env()
        return cls(
            api_url=env.str("TAKUMAEAT_API_URL", default="http://localhost:8000"),
            snap_url=env.str("MIDTRANS_SNAP_URL", default=DEFAULT_SNAP_URL),
            client_key=env.str("MIDTRANS_CLIENT_KEY", default=""),
            app_base_url=env.str("APP_BASE_URL", default="http://localhost:8000"),
            delivery_fee=env.int("DELIVERY_FEE", default=DEFAULT_DELIVERY_FEE),
            confirmation_timeout=env.float("CHECKOUT_CONFIRMATION_TIMEOUT", default=5.0),
            timezone=env.str("CHECKOUT_TIMEZONE", default="Asia/Jakarta"),
        )

    @cached_property
    def tzinfo(self) -> ZoneInfo:
        """Zone used to read schedule times entered without an offset."""
        return ZoneInfo(self.timezone)

    def order_url(self, order_id: str) -> str:
        return f"{self.app_base_url.rstrip('/')}/orders/{order_id}"

    @property
    def home_url(self) -> str:
        return f"{self.app_base_url.rstrip('/')}/"
