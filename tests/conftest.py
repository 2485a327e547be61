"""Shared fixtures: a fake WhatsApp service and Flask test clients."""

import os

import pytest

# Keep tests away from a real gateway even when the developer's shell has one configured.
os.environ.pop("WHATSAPP_GATEWAY_URL", None)
os.environ.pop("API_KEY", None)

from tests.fakes import FakeWhatsAppService  # noqa: E402
from whatsapp_api.app import create_app  # noqa: E402
from whatsapp_api.models import DeviceIdentity  # noqa: E402


@pytest.fixture
def service():
    return FakeWhatsAppService(
        connected=True,
        logged_in=True,
        device=DeviceIdentity(id="628123456789@c.us", name="Office phone"),
    )


@pytest.fixture
def make_client():
    def _make(service, api_key=None):
        app = create_app(service, api_key=api_key)
        app.testing = True
        return app.test_client()

    return _make


@pytest.fixture
def client(service, make_client):
    return make_client(service)
