"""Messaging-client service backed by the WhatsApp gateway."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ..models import DeviceIdentity, QRResult
from .gateway_client import GatewayClient

LOGGER = logging.getLogger(__name__)


class WhatsAppServiceError(Exception):
    """Raised when the messaging client cannot complete an operation."""


class GatewaySession:
    """Handle on the gateway session paired with this service."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.device: Optional[DeviceIdentity] = None

    def update_from(self, payload: Optional[Dict[str, Any]]) -> None:
        me = (payload or {}).get("me")
        if not isinstance(me, dict):
            me = {}
        device_id = me.get("id")
        if device_id:
            self.device = DeviceIdentity(id=str(device_id), name=me.get("pushName"))
        else:
            self.device = None


class WhatsAppService:
    """Exposes QR login, status, logout and message sending for one gateway session."""

    STATUS_WORKING = "WORKING"
    STATUS_SCAN_QR = "SCAN_QR_CODE"
    CONNECTED_STATUSES = frozenset({STATUS_WORKING, STATUS_SCAN_QR})
    STOPPED_STATUSES = frozenset({"STOPPED", "FAILED"})
    CHAT_SUFFIX = "@c.us"

    def __init__(
        self,
        container: Optional[GatewayClient],
        *,
        session_name: str = "default",
        qr_wait_seconds: int = 5,
        poll_interval: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.container = container
        self.client: Optional[GatewaySession] = None
        self._session_name = session_name
        self._qr_wait_seconds = max(0, qr_wait_seconds)
        self._poll_interval = poll_interval
        self._sleep = sleep

    def generate_qr(self) -> QRResult:
        if self.container is None:
            raise WhatsAppServiceError("container is not initialized")

        self.client = GatewaySession(self._session_name)
        try:
            payload = self._fetch_session()
            status = self._status_of(payload)
            if status == self.STATUS_WORKING:
                LOGGER.info("Gateway session %s already logged in, connecting", self._session_name)
                self.client.update_from(payload)
                return QRResult.already_connected()

            if payload is None or status in self.STOPPED_STATUSES:
                LOGGER.info("Starting gateway session %s to request a QR code", self._session_name)
                self.container.start_session(self._session_name)

            payload = self._wait_for_login_state()
            status = self._status_of(payload)
            if status == self.STATUS_WORKING:
                LOGGER.info("Gateway session %s logged in while waiting for QR", self._session_name)
                self.client.update_from(payload)
                return QRResult.login_success()
            if status == self.STATUS_SCAN_QR:
                qr = self.container.get_qr(self._session_name)
                data = qr.get("data")
                if not data:
                    raise WhatsAppServiceError("failed to create QR code: empty image")
                mimetype = qr.get("mimetype") or "image/png"
                LOGGER.info("QR code generated for gateway session %s", self._session_name)
                return QRResult.qr(f"data:{mimetype};base64,{data}")
        except requests.RequestException as exc:
            raise WhatsAppServiceError(f"failed to connect: {exc}") from exc

        LOGGER.warning("Gateway session %s ended in status %s without a QR code", self._session_name, status)
        raise WhatsAppServiceError("failed to generate QR code")

    def send_message(self, phone_number: str, message: str) -> None:
        if self.client is None or self.container is None:
            raise WhatsAppServiceError("client not initialized")
        chat_id = f"{phone_number}{self.CHAT_SUFFIX}"
        try:
            self.container.send_text(self.client.name, chat_id, message)
        except requests.RequestException as exc:
            raise WhatsAppServiceError(f"failed to send message: {exc}") from exc
        LOGGER.info("Message sent to %s", chat_id)

    def logout(self) -> None:
        if self.client is None or self.container is None:
            raise WhatsAppServiceError("no active client session")
        try:
            self.container.logout_session(self.client.name)
        except requests.RequestException as exc:
            raise WhatsAppServiceError(f"failed to logout: {exc}") from exc
        LOGGER.info("Gateway session %s logged out", self.client.name)
        self.client = None

    def is_connected(self) -> bool:
        if self.client is None:
            return False
        return self._status_of(self._refresh()) in self.CONNECTED_STATUSES

    def is_logged_in(self) -> bool:
        if self.client is None:
            return False
        payload = self._refresh()
        return self._status_of(payload) == self.STATUS_WORKING and self.client.device is not None

    def device_identity(self) -> Optional[DeviceIdentity]:
        if self.client is None:
            return None
        return self.client.device

    def close(self) -> None:
        if self.container is not None:
            LOGGER.info("Shutting down WhatsApp gateway client")
            self.container.close()

    def _fetch_session(self) -> Optional[Dict[str, Any]]:
        if self.container is None:
            raise WhatsAppServiceError("container is not initialized")
        payload = self.container.get_session(self._session_name)
        if payload is not None and not isinstance(payload, dict):
            LOGGER.warning("Ignoring malformed gateway session payload for %s: %r", self._session_name, payload)
            return None
        return payload

    def _refresh(self) -> Optional[Dict[str, Any]]:
        if self.client is None or self.container is None:
            return None
        try:
            payload = self._fetch_session()
        except requests.RequestException:
            LOGGER.exception("Failed to read gateway session %s", self._session_name)
            return None
        if self.client is not None:
            self.client.update_from(payload)
        return payload

    def _wait_for_login_state(self) -> Optional[Dict[str, Any]]:
        deadline = time.monotonic() + self._qr_wait_seconds
        while True:
            payload = self._fetch_session()
            status = self._status_of(payload)
            if status in (self.STATUS_WORKING, self.STATUS_SCAN_QR):
                return payload
            if status in self.STOPPED_STATUSES or time.monotonic() >= deadline:
                return payload
            LOGGER.debug("Gateway session %s is %s, waiting", self._session_name, status)
            self._sleep(self._poll_interval)

    @staticmethod
    def _status_of(payload: Optional[Dict[str, Any]]) -> Optional[str]:
        if not payload:
            return None
        status = payload.get("status")
        return str(status).upper() if status else None
