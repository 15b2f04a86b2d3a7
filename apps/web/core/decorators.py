"""
Decorators for request handling and validation.
"""

import json
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.core.cache import cache
from django.http import HttpRequest, JsonResponse

logger = logging.getLogger(__name__)


def api_login_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that rejects anonymous API calls with a JSON 401.

    Unlike Django's login_required, this never redirects to a login page.
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        if not request.user.is_authenticated:
            return JsonResponse({"message": "Unauthorized"}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapper


IDEMPOTENCY_TTL_SECONDS = 60 * 60 * 24


def idempotency_key_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that requires an Idempotency-Key header for POST requests.

    Keys are scoped to the user and the request path. A repeated key replays
    the first successful response instead of running the view again. Error
    responses are not stored, so a failed request may be retried with the
    same key.

    Usage:
        @idempotency_key_required
        def orders(request):
            ...
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        if request.method != "POST":
            return view_func(request, *args, **kwargs)

        key = request.headers.get("Idempotency-Key", "").strip()
        if not key:
            return JsonResponse(
                {"message": "Idempotency-Key header is required"},
                status=400,
            )

        cache_key = f"idempotency:{request.user.pk}:{request.path}:{key}"
        replay = cache.get(cache_key)
        if replay is not None:
            logger.info("Replaying response for idempotency key %s", key)
            return JsonResponse(replay["body"], status=replay["status"])

        response = view_func(request, *args, **kwargs)

        if response.status_code < 400:
            cache.set(
                cache_key,
                {"body": json.loads(response.content), "status": response.status_code},
                timeout=IDEMPOTENCY_TTL_SECONDS,
            )

        return response

    return wrapper
