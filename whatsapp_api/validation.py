"""Validation of send-message request bodies."""

from __future__ import annotations

import json
import logging
import re
from functools import wraps
from typing import Any, Callable, Dict

from flask import request

from .models import SendMessageRequest
from .responses import bad_request

LOGGER = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10
MAX_PHONE_LENGTH = 15
MAX_MESSAGE_LENGTH = 4096

_PHONE_SEPARATORS = re.compile(r"[ \-+]")
_DIGITS = re.compile(r"[0-9]+")


class ValidationError(ValueError):
    """Raised when a request body cannot be accepted."""


def normalize_phone_number(phone_number: str) -> str:
    """Removes spaces, hyphens and plus signs from a phone number."""

    return _PHONE_SEPARATORS.sub("", phone_number)


def validate_phone_number(phone_number: str) -> str:
    normalized = normalize_phone_number(phone_number)
    if normalized and not _DIGITS.fullmatch(normalized):
        raise ValidationError("Phone number must contain only digits")
    if len(normalized) < MIN_PHONE_LENGTH:
        raise ValidationError("Phone number is too short, please include country code")
    if len(normalized) > MAX_PHONE_LENGTH:
        raise ValidationError(f"Phone number is too long, maximum {MAX_PHONE_LENGTH} digits")
    return normalized


def validate_message(message: str) -> str:
    if not message.strip():
        raise ValidationError("Message cannot be empty")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message is too long, maximum {MAX_MESSAGE_LENGTH} characters")
    return message


def parse_send_message(raw_body: str) -> SendMessageRequest:
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON format: {exc}") from None
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON format: request body must be a JSON object")
    fields: Dict[str, str] = {}
    for name in ("phone_number", "message"):
        value = payload.get(name, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"Invalid JSON format: {name} must be a string")
        fields[name] = value

    send_request = SendMessageRequest(phone_number=fields["phone_number"], message=fields["message"])
    normalized = validate_phone_number(send_request.phone_number)
    validate_message(send_request.message)
    send_request.phone_number = normalized
    return send_request


def validated_send_message(view: Callable[..., Any]) -> Callable[..., Any]:
    """Parses the body and passes the validated request to ``view`` as ``send_request``."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            send_request = parse_send_message(request.get_data(as_text=True))
        except ValidationError as exc:
            LOGGER.info("Rejected send-message request: %s", exc)
            return bad_request(str(exc))
        kwargs["send_request"] = send_request
        return view(*args, **kwargs)

    return wrapper
