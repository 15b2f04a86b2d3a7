"""Tests for request decorators."""

from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse

import pytest

from apps.web.core.decorators import api_login_required, idempotency_key_required


def _counting_view(status: int = 201):
    calls = []

    @idempotency_key_required
    def view(request):
        calls.append(request)
        return JsonResponse({"n": len(calls)}, status=status)

    return view, calls


class TestApiLoginRequired:
    def test_anonymous_gets_json_401(self, rf):
        @api_login_required
        def view(request):
            return JsonResponse({})

        request = rf.get("/api/orders")
        request.user = AnonymousUser()

        response = view(request)

        assert response.status_code == 401
        assert response.content == b'{"message": "Unauthorized"}'


@pytest.mark.django_db
class TestIdempotencyKeyRequired:
    def test_get_passes_through(self, rf, user):
        view, calls = _counting_view(status=200)
        request = rf.get("/api/orders")
        request.user = user

        assert view(request).status_code == 200
        assert len(calls) == 1

    def test_post_without_key(self, rf, user):
        view, calls = _counting_view()
        request = rf.post("/api/orders", data={}, content_type="application/json")
        request.user = user

        response = view(request)

        assert response.status_code == 400
        assert calls == []

    def test_replay_served_from_cache(self, rf, user):
        view, calls = _counting_view()

        for _ in range(2):
            request = rf.post(
                "/api/orders", data={}, content_type="application/json",
                HTTP_IDEMPOTENCY_KEY="key-1",
            )
            request.user = user
            response = view(request)

        assert response.status_code == 201
        assert response.content == b'{"n": 1}'
        assert len(calls) == 1

    def test_keys_are_per_user(self, rf, user, other_user):
        view, calls = _counting_view()

        for owner in (user, other_user):
            request = rf.post(
                "/api/orders", data={}, content_type="application/json",
                HTTP_IDEMPOTENCY_KEY="key-1",
            )
            request.user = owner
            view(request)

        assert len(calls) == 2

    def test_errors_are_not_cached(self, rf, user):
        view, calls = _counting_view(status=400)

        for _ in range(2):
            request = rf.post(
                "/api/orders", data={}, content_type="application/json",
                HTTP_IDEMPOTENCY_KEY="key-1",
            )
            request.user = user
            view(request)

        assert len(calls) == 2
