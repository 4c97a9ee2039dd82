"""
Platform capability UUID formatting and classification.

The UUID inside a Platform Device Capability is stored the Microsoft GUID
way: a little-endian DWORD, two little-endian WORDs, then eight bytes in
wire order.
"""

from __future__ import annotations
from enum import Enum

WEBUSB_PLATFORM_CAPABILITY_UUID = "3408b638-09a9-47a0-8bfd-a0768815b665"
MS_OS_20_PLATFORM_CAPABILITY_UUID = "d8dd60df-4589-4cc7-9cd2-659d9e648a9f"

UUID_LENGTH = 16


class PlatformKind(str, Enum):
    WEBUSB = "webusb"
    MSOS20 = "msos20"
    UNKNOWN = "unknown"


def uuid_to_string(uuid: bytes) -> str:
    if len(uuid) != UUID_LENGTH:
        raise ValueError("platform capability UUID must be 16 bytes, got {}".format(len(uuid)))
    return ("{:02x}{:02x}{:02x}{:02x}-{:02x}{:02x}-{:02x}{:02x}"
            "-{:02x}{:02x}-{:02x}{:02x}{:02x}{:02x}{:02x}{:02x}".format(
                uuid[3], uuid[2], uuid[1], uuid[0], uuid[5], uuid[4], uuid[7], uuid[6],
                uuid[8], uuid[9], uuid[10], uuid[11], uuid[12], uuid[13], uuid[14], uuid[15]))


def classify_uuid_string(text: str) -> PlatformKind:
    """Match a formatted UUID against the known platform capabilities, ignoring case."""
    text = text.lower()
    if text == WEBUSB_PLATFORM_CAPABILITY_UUID:
        return PlatformKind.WEBUSB
    if text == MS_OS_20_PLATFORM_CAPABILITY_UUID:
        return PlatformKind.MSOS20
    return PlatformKind.UNKNOWN


def classify(uuid: bytes) -> PlatformKind:
    return classify_uuid_string(uuid_to_string(uuid))


def uuid_to_bytes(text: str) -> bytes:
    """Inverse of :func:`uuid_to_string`, handy for building capabilities."""
    hexdigits = text.strip("{}").replace("-", "")
    raw = bytes.fromhex(hexdigits)
    if len(raw) != UUID_LENGTH:
        raise ValueError("not a UUID: {!r}".format(text))
    return raw[3::-1] + raw[5:3:-1] + raw[7:5:-1] + raw[8:]
