"""Data transfer objects for the WhatsApp API handlers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class QRKind(Enum):
    LOGIN_SUCCESS = "login_success"
    ALREADY_CONNECTED = "already_connected"
    QR_CODE = "qr_generated"


@dataclass(frozen=True)
class QRResult:
    """Outcome of a QR login attempt; ``qr_code`` is only set for ``QR_CODE``."""

    kind: QRKind
    qr_code: Optional[str] = None

    @classmethod
    def login_success(cls) -> "QRResult":
        return cls(QRKind.LOGIN_SUCCESS)

    @classmethod
    def already_connected(cls) -> "QRResult":
        return cls(QRKind.ALREADY_CONNECTED)

    @classmethod
    def qr(cls, data_uri: str) -> "QRResult":
        if not data_uri:
            raise ValueError("QR payload must not be empty")
        return cls(QRKind.QR_CODE, data_uri)


@dataclass
class SendMessageRequest:
    phone_number: str
    message: str


@dataclass(frozen=True)
class DeviceIdentity:
    id: str
    name: Optional[str] = None
