"""
Transport failures.

These never show up as parser diagnostics: a buffer that could not be
fetched is simply not analysed.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional


class TransportErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    STALL = "stall"
    TIMEOUT = "timeout"
    DISCONNECTED = "disconnected"
    ACCESS_DENIED = "access_denied"
    UNSUPPORTED = "unsupported"
    OTHER = "other"


HINTS = {
    TransportErrorKind.NOT_FOUND: "device or resource not found; check it is connected and the VID:PID is correct",
    TransportErrorKind.STALL: "device returned STALL; it likely does not support this request or the vendor code is wrong",
    TransportErrorKind.TIMEOUT: "request timed out; device may be unresponsive",
    TransportErrorKind.DISCONNECTED: "device was disconnected during the request",
    TransportErrorKind.ACCESS_DENIED: "access denied; try again with sufficient permissions (e.g. sudo or a udev rule)",
    TransportErrorKind.UNSUPPORTED: "control transfer not supported by the device or host controller",
    TransportErrorKind.OTHER: "check the device documentation for supported vendor requests",
}


class TransportError(Exception):
    """A descriptor could not be fetched from the device."""

    def __init__(self, kind: TransportErrorKind, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.code = code

    @property
    def hint(self) -> str:
        return HINTS[self.kind]

    def __str__(self) -> str:
        text = super().__str__()
        if self.code is not None:
            return "{} ({})".format(text, self.code)
        return text
