"""HTTP client for the WhatsApp multi-device gateway."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..config import mask_secret

LOGGER = logging.getLogger(__name__)


class GatewayClient:
    """Small wrapper around the gateway REST API (sessions, QR login, messages)."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 15,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._session = session or requests.Session()
        self._timeout = timeout
        LOGGER.info("Gateway client configured for %s (api key %s)", self._base_url, mask_secret(api_key))

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, *parts: str) -> str:
        suffix = "/".join(part.strip("/") for part in parts if part)
        return f"{self._base_url}/{suffix}" if suffix else self._base_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["X-Api-Key"] = self._api_key
        return headers

    def _request(
        self,
        method: str,
        url: str,
        *,
        allow_statuses: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> requests.Response:
        response = self._session.request(method, url, headers=self._headers(), timeout=self._timeout, **kwargs)
        if response.status_code in allow_statuses:
            return response
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            LOGGER.error("Gateway API error: %s %s -> %s | Response: %s", method, url, exc, response.text)
            raise
        return response

    def get_session(self, name: str) -> Optional[Dict[str, Any]]:
        url = self._url("api", "sessions", name)
        response = self._request("GET", url, allow_statuses=(404,))
        if response.status_code == 404:
            return None
        return response.json()

    def start_session(self, name: str) -> Dict[str, Any]:
        url = self._url("api", "sessions", name, "start")
        response = self._request("POST", url, json={})
        return response.json() if response.content else {}

    def get_qr(self, name: str) -> Dict[str, Any]:
        """Returns ``{"mimetype": ..., "data": <base64>}`` for the pending login QR."""

        url = self._url("api", name, "auth", "qr")
        response = self._request("GET", url, params={"format": "image"})
        return response.json()

    def logout_session(self, name: str) -> None:
        url = self._url("api", "sessions", name, "logout")
        self._request("POST", url, json={})

    def send_text(self, name: str, chat_id: str, text: str) -> Dict[str, Any]:
        payload = {"session": name, "chatId": chat_id, "text": text}
        LOGGER.debug("Sending gateway payload to %s", chat_id)
        response = self._request("POST", self._url("api", "sendText"), json=payload)
        return response.json() if response.content else {}

    def close(self) -> None:
        self._session.close()
