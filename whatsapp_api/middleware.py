"""Request gates applied before the WhatsApp handlers run."""

from __future__ import annotations

import hmac
import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import request

from .config import mask_secret
from .responses import ApiResponse, bad_request, unauthorized

LOGGER = logging.getLogger(__name__)

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
JSON_CONTENT_TYPE = "application/json"


def require_json_content_type() -> Optional[ApiResponse]:
    """``before_request`` hook rejecting non-JSON bodies on mutating requests."""

    if request.method in BODYLESS_METHODS:
        return None
    # Unmatched paths and methods fall through to the 404/405 handlers.
    if request.url_rule is None:
        return None
    content_type = request.headers.get("Content-Type", "")
    if JSON_CONTENT_TYPE not in content_type.lower():
        LOGGER.info("Rejected %s %s with Content-Type %r", request.method, request.path, content_type)
        return bad_request("Content-Type must be application/json")
    return None


def api_key_required(expected_key: Optional[str]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Protects a view with the ``X-API-Key`` header; disabled when no key is configured."""

    def decorator(view: Callable[..., Any]) -> Callable[..., Any]:
        if not expected_key:
            return view

        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            provided = request.headers.get("X-API-Key", "")
            if not hmac.compare_digest(provided.encode(), expected_key.encode()):
                LOGGER.warning("Invalid API key %s on %s", mask_secret(provided), request.path)
                return unauthorized("Unauthorized: invalid API key")
            return view(*args, **kwargs)

        return wrapper

    return decorator
