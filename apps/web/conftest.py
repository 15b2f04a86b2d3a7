"""
Pytest configuration for Django app tests.
"""

from django.core.cache import cache
from django.test import Client as DjangoClient

import pytest

from apps.web.core.models import User
from apps.web.restaurant.tests.factories import AdminFactory, UserFactory


@pytest.fixture(autouse=True)
def clear_cache():
    """Idempotency keys live in the cache; start every test empty."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db) -> User:
    """A signed-up customer."""
    return UserFactory(username="testuser", first_name="Budi", last_name="Santoso")


@pytest.fixture
def other_user(db) -> User:
    return UserFactory(username="otheruser")


@pytest.fixture
def staff(db) -> User:
    """A backoffice admin (receives order notifications)."""
    return AdminFactory(username="staff")


@pytest.fixture
def api_client(user: User) -> DjangoClient:
    """Django test client signed in as `user`."""
    client = DjangoClient()
    client.force_login(user)
    return client


@pytest.fixture
def anon_client() -> DjangoClient:
    return DjangoClient()


@pytest.fixture
def midtrans_settings(settings):
    """Midtrans configured against the sandbox."""
    settings.MIDTRANS_SERVER_KEY = "SB-Mid-server-test"
    settings.MIDTRANS_CLIENT_KEY = "SB-Mid-client-test"
    settings.MIDTRANS_BASE_URL = "https://app.sandbox.midtrans.com"
    settings.APP_BASE_URL = "http://testserver"
    return settings
