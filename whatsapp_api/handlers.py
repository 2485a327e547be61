"""Request handlers mapping WhatsApp service operations to JSON responses."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .models import QRKind, SendMessageRequest
from .responses import (
    ApiResponse,
    bad_request,
    internal_error,
    now_timestamp,
    success,
    unauthorized,
)
from .services.whatsapp_service import WhatsAppService

LOGGER = logging.getLogger(__name__)

SERVICE_NOT_INITIALIZED = "WhatsApp service not initialized"
NOT_LOGGED_IN = "WhatsApp is not logged in"

STATUS_MESSAGES = {
    "connected_and_logged_in": "WhatsApp is connected and logged in",
    "logged_in_but_disconnected": "WhatsApp is logged in but disconnected",
    "connected_but_not_logged_in": "WhatsApp is connected but not logged in",
    "disconnected": "WhatsApp is disconnected",
}

QR_MESSAGES = {
    "logged_in": "WhatsApp is already logged in",
    QRKind.LOGIN_SUCCESS.value: "WhatsApp login successful",
    QRKind.ALREADY_CONNECTED.value: "WhatsApp is already connected",
    QRKind.QR_CODE.value: "QR code generated successfully, scan it with WhatsApp",
}


def connection_status(is_connected: bool, is_logged_in: bool) -> str:
    """Collapses the two connection flags into a single status label."""

    if is_connected and is_logged_in:
        return "connected_and_logged_in"
    if is_logged_in:
        return "logged_in_but_disconnected"
    if is_connected:
        return "connected_but_not_logged_in"
    return "disconnected"


class WhatsAppHandlers:
    """One method per endpoint, all sharing the injected WhatsApp service."""

    def __init__(self, service: Optional[WhatsAppService]) -> None:
        self._service = service

    def generate_qr(self) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        if service.is_logged_in():
            return success(QR_MESSAGES["logged_in"], self._qr_payload("logged_in"))

        try:
            result = service.generate_qr()
        except Exception as exc:
            LOGGER.exception("QR generation failed")
            return internal_error(f"Failed to generate QR code: {exc}")

        status = result.kind.value
        qr_code = result.qr_code if result.kind is QRKind.QR_CODE else None
        return success(QR_MESSAGES[status], self._qr_payload(status, qr_code))

    def status(self) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        is_connected = service.is_connected()
        is_logged_in = service.is_logged_in()
        label = connection_status(is_connected, is_logged_in)
        return success(
            "WhatsApp status retrieved successfully",
            {
                "is_connected": is_connected,
                "is_logged_in": is_logged_in,
                "status": label,
                "message": STATUS_MESSAGES[label],
                "timestamp": now_timestamp(),
            },
        )

    def logout(self) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        if not service.is_logged_in():
            return bad_request("No active session to logout")

        try:
            service.logout()
        except Exception as exc:
            LOGGER.exception("Logout failed")
            return internal_error(f"Failed to logout: {exc}")

        LOGGER.info("WhatsApp session logged out")
        return success("Successfully logged out and session deleted", {"timestamp": now_timestamp()})

    def send_message(self, send_request: Optional[SendMessageRequest]) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        if not service.is_logged_in():
            return unauthorized(NOT_LOGGED_IN)

        # The validation stage did not run for this route.
        if send_request is None:
            return bad_request("Invalid request data")

        try:
            service.send_message(send_request.phone_number, send_request.message)
        except Exception as exc:
            LOGGER.exception("Sending message to %s failed", send_request.phone_number)
            return internal_error(f"Failed to send message: {exc}")

        return success(
            "Message sent successfully",
            {"phone_number": send_request.phone_number, "timestamp": now_timestamp()},
        )

    def device_info(self) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        if not service.is_logged_in():
            return unauthorized(NOT_LOGGED_IN)

        info: Dict[str, Any] = {
            "device_id": None,
            "device_name": None,
            "is_connected": False,
            "is_logged_in": False,
        }
        device = service.device_identity() if service.client is not None else None
        if device is not None:
            info.update(
                device_id=device.id,
                device_name=device.name,
                is_connected=service.is_connected(),
                is_logged_in=service.is_logged_in(),
            )
        return success("Device info retrieved successfully", info)

    def health(self) -> ApiResponse:
        service = self._service
        if service is None:
            return internal_error(SERVICE_NOT_INITIALIZED)

        is_connected = service.is_connected()
        is_logged_in = service.is_logged_in()
        data = {
            "container_initialized": service.container is not None,
            "client_initialized": service.client is not None,
            "is_connected": is_connected,
            "is_logged_in": is_logged_in,
            "service_status": "running",
            "timestamp": now_timestamp(),
        }
        if is_connected and is_logged_in:
            message = "WhatsApp service is healthy"
        else:
            message = "WhatsApp service is running but not fully operational"
        return success(message, data)

    @staticmethod
    def _qr_payload(status: str, qr_code: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": status,
            "message": QR_MESSAGES[status],
            "timestamp": now_timestamp(),
        }
        if qr_code:
            payload["qr_code"] = qr_code
        return payload
