"""Flask application entry point for the WhatsApp API."""

from __future__ import annotations

import atexit
import logging
from typing import Any, Optional

from flask import Flask
from werkzeug.exceptions import HTTPException

from whatsapp_api.config import Settings, mask_secret
from whatsapp_api.handlers import WhatsAppHandlers
from whatsapp_api.middleware import api_key_required, require_json_content_type
from whatsapp_api.models import SendMessageRequest
from whatsapp_api.responses import envelope
from whatsapp_api.services.gateway_client import GatewayClient
from whatsapp_api.services.whatsapp_service import WhatsAppService
from whatsapp_api.validation import validated_send_message

LOGGER = logging.getLogger(__name__)


def build_service(settings: Settings) -> Optional[WhatsAppService]:
    """Creates the gateway-backed service, or ``None`` when no gateway is configured."""

    if not settings.gateway_url:
        LOGGER.warning("WHATSAPP_GATEWAY_URL is not set; WhatsApp service not initialized")
        return None
    container = GatewayClient(
        settings.gateway_url,
        api_key=settings.gateway_api_key,
        timeout=settings.gateway_timeout,
    )
    service = WhatsAppService(
        container,
        session_name=settings.session_name,
        qr_wait_seconds=settings.qr_wait_seconds,
    )
    LOGGER.info("WhatsApp service initialized for session %s", settings.session_name)
    return service


def create_app(service: Optional[WhatsAppService], *, api_key: Optional[str] = None) -> Flask:
    handlers = WhatsAppHandlers(service)
    protected = api_key_required(api_key)
    if not api_key:
        LOGGER.warning("API_KEY is not set; logout and send endpoints are unprotected")
    else:
        LOGGER.info("Mutating endpoints protected by API key %s", mask_secret(api_key))

    app = Flask(__name__)
    app.before_request(require_json_content_type)

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException) -> Any:
        return envelope(False, exc.description or exc.name), exc.code or 500

    @app.route("/whatsapp/qr", methods=["GET"])
    def generate_qr() -> Any:
        return handlers.generate_qr()

    @app.route("/whatsapp-status", methods=["GET"])
    def whatsapp_status() -> Any:
        return handlers.status()

    # "/logout/whastapp" is the path existing clients were given.
    @app.route("/logout/whatsapp", methods=["POST"])
    @app.route("/logout/whastapp", methods=["POST"])
    @protected
    def logout() -> Any:
        return handlers.logout()

    @app.route("/whatsapp/send", methods=["POST"])
    @protected
    @validated_send_message
    def send_message(send_request: Optional[SendMessageRequest] = None) -> Any:
        return handlers.send_message(send_request)

    @app.route("/whatsapp/device", methods=["GET"])
    def device_info() -> Any:
        return handlers.device_info()

    @app.route("/whatsapp/health", methods=["GET"])
    def health() -> Any:
        return handlers.health()

    return app


settings = Settings.from_env()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

whatsapp_service = build_service(settings)
if whatsapp_service is not None:
    atexit.register(whatsapp_service.close)

app = create_app(whatsapp_service, api_key=settings.api_key)


if __name__ == "__main__":
    app.run(host=settings.host, port=settings.port)
