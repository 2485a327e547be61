"""WhatsAppService state handling over a scripted gateway."""

import pytest
import requests

from whatsapp_api.app import create_app
from whatsapp_api.models import QRKind
from whatsapp_api.services.whatsapp_service import WhatsAppService, WhatsAppServiceError

WORKING = {"name": "default", "status": "WORKING", "me": {"id": "628123456789@c.us", "pushName": "Office phone"}}
SCAN = {"name": "default", "status": "SCAN_QR_CODE"}
STOPPED = {"name": "default", "status": "STOPPED"}


class ScriptedGateway:
    """Returns queued session payloads; the last one repeats."""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.calls = []
        self.fail_on = None

    def _maybe_fail(self, name):
        if self.fail_on == name:
            raise requests.ConnectionError("gateway unreachable")

    def get_session(self, name):
        self.calls.append(("get_session", name))
        self._maybe_fail("get_session")
        if len(self.sessions) > 1:
            return self.sessions.pop(0)
        return self.sessions[0] if self.sessions else None

    def start_session(self, name):
        self.calls.append(("start_session", name))
        return {}

    def get_qr(self, name):
        self.calls.append(("get_qr", name))
        return {"mimetype": "image/png", "data": "QUJD"}

    def logout_session(self, name):
        self.calls.append(("logout_session", name))
        self._maybe_fail("logout_session")

    def send_text(self, name, chat_id, text):
        self.calls.append(("send_text", name, chat_id, text))
        self._maybe_fail("send_text")
        return {"id": "msg-1"}

    def close(self):
        self.calls.append(("close",))


def _service(gateway):
    return WhatsAppService(gateway, qr_wait_seconds=1, poll_interval=0, sleep=lambda _: None)


def test_generate_qr_without_container_fails():
    service = WhatsAppService(None)

    with pytest.raises(WhatsAppServiceError, match="container is not initialized"):
        service.generate_qr()


def test_generate_qr_returns_data_uri():
    gateway = ScriptedGateway(STOPPED, SCAN)
    service = _service(gateway)

    result = service.generate_qr()

    assert result.kind is QRKind.QR_CODE
    assert result.qr_code == "data:image/png;base64,QUJD"
    assert ("start_session", "default") in gateway.calls
    assert service.client is not None


def test_generate_qr_when_already_working():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)

    result = service.generate_qr()

    assert result.kind is QRKind.ALREADY_CONNECTED
    assert service.device_identity().id == "628123456789@c.us"
    assert all(call[0] != "start_session" for call in gateway.calls)


def test_generate_qr_reports_login_during_wait():
    gateway = ScriptedGateway(STOPPED, {"status": "STARTING"}, WORKING)
    service = _service(gateway)

    result = service.generate_qr()

    assert result.kind is QRKind.LOGIN_SUCCESS
    assert service.device_identity().name == "Office phone"


def test_generate_qr_fails_when_session_never_ready():
    gateway = ScriptedGateway(STOPPED, {"status": "FAILED"})
    service = _service(gateway)

    with pytest.raises(WhatsAppServiceError, match="failed to generate QR code"):
        service.generate_qr()


def test_generate_qr_wraps_transport_errors():
    gateway = ScriptedGateway(STOPPED)
    gateway.fail_on = "get_session"
    service = _service(gateway)

    with pytest.raises(WhatsAppServiceError, match="failed to connect"):
        service.generate_qr()


def test_flags_are_false_without_client():
    service = _service(ScriptedGateway(WORKING))

    assert service.is_connected() is False
    assert service.is_logged_in() is False
    assert service.device_identity() is None


def test_flags_follow_gateway_status():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()

    assert service.is_connected() is True
    assert service.is_logged_in() is True

    gateway.sessions = [SCAN]
    assert service.is_connected() is True
    assert service.is_logged_in() is False


def test_flags_swallow_gateway_errors():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.fail_on = "get_session"

    assert service.is_connected() is False
    assert service.is_logged_in() is False


def test_send_message_requires_client():
    service = _service(ScriptedGateway(WORKING))

    with pytest.raises(WhatsAppServiceError, match="client not initialized"):
        service.send_message("628123456789", "hi")


def test_send_message_targets_chat_id():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()

    service.send_message("628123456789", "hi")

    assert ("send_text", "default", "628123456789@c.us", "hi") in gateway.calls


def test_send_message_wraps_transport_errors():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.fail_on = "send_text"

    with pytest.raises(WhatsAppServiceError, match="failed to send message"):
        service.send_message("628123456789", "hi")


def test_logout_requires_client():
    service = _service(ScriptedGateway(WORKING))

    with pytest.raises(WhatsAppServiceError, match="no active client session"):
        service.logout()


def test_logout_drops_client():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()

    service.logout()

    assert service.client is None
    assert ("logout_session", "default") in gateway.calls
    assert service.is_logged_in() is False


def test_logout_failure_keeps_client():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.fail_on = "logout_session"

    with pytest.raises(WhatsAppServiceError, match="failed to logout"):
        service.logout()
    assert service.client is not None


def test_close_releases_container():
    gateway = ScriptedGateway(WORKING)

    _service(gateway).close()

    assert ("close",) in gateway.calls


def test_malformed_session_payload_reads_as_logged_out():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.sessions = [["unexpected"]]

    assert service.is_connected() is False
    assert service.is_logged_in() is False
    assert service.device_identity() is None


def test_malformed_device_block_is_ignored():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.sessions = [{"status": "WORKING", "me": "628123456789@c.us"}]

    assert service.is_connected() is True
    assert service.is_logged_in() is False


def test_status_route_survives_malformed_session_payload():
    gateway = ScriptedGateway(WORKING)
    service = _service(gateway)
    service.generate_qr()
    gateway.sessions = [["unexpected"]]
    client = create_app(service).test_client()

    response = client.get("/whatsapp-status")

    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "disconnected"


def test_close_without_container_is_noop():
    WhatsAppService(None).close()
