"""JSON envelope helpers shared by every endpoint."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple

ApiResponse = Tuple[Dict[str, Any], int]

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_SERVER_ERROR = 500


def now_timestamp() -> int:
    return int(time.time())


def envelope(success: bool, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return body


def success(message: str, data: Optional[Any] = None, status: int = HTTP_OK) -> ApiResponse:
    return envelope(True, message, data), status


def error(message: str, status: int) -> ApiResponse:
    return envelope(False, message), status


def bad_request(message: str) -> ApiResponse:
    return error(message, HTTP_BAD_REQUEST)


def unauthorized(message: str) -> ApiResponse:
    return error(message, HTTP_UNAUTHORIZED)


def internal_error(message: str) -> ApiResponse:
    return error(message, HTTP_INTERNAL_SERVER_ERROR)
