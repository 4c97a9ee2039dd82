"""
Platform Device Capability classifier.

Picks the capability flavour from its UUID and decodes the WebUSB or
MS OS 2.0 data block that follows the 20-byte platform header.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from .cursor import ByteCursor
from .diagnostics import DiagnosticsBuilder
from .models import MS_OS_20_WINDOWS_VERSION, MsOs20PlatformData, PlatformCapability, WebUsbPlatformData
from .platform_uuid import UUID_LENGTH, PlatformKind, classify_uuid_string, uuid_to_string

logger = logging.getLogger(__name__)

# bLength, bDescriptorType, bDevCapabilityType, bReserved, UUID[16]
PLATFORM_HEADER_LENGTH = 4 + UUID_LENGTH
WEBUSB_DATA_LENGTH = 4
MS_OS_20_DATA_LENGTH = 8


def _decode_webusb(cursor: ByteCursor, data_offset: int, diag: DiagnosticsBuilder) -> WebUsbPlatformData:
    data = WebUsbPlatformData(
        bcdVersion=cursor.read_u16le(data_offset),
        bVendorCode=cursor.read_u8(data_offset + 2),
        iLandingPage=cursor.read_u8(data_offset + 3),
    )
    if data.bVendorCode == 0:
        diag.warning("WebUSB vendor code is 0 (invalid)", data_offset + 2)
    return data


def _decode_msos20(cursor: ByteCursor, data_offset: int, diag: DiagnosticsBuilder) -> MsOs20PlatformData:
    data = MsOs20PlatformData(
        dwWindowsVersion=cursor.read_u32le(data_offset),
        wMSOSDescriptorSetTotalLength=cursor.read_u16le(data_offset + 4),
        bMS_VendorCode=cursor.read_u8(data_offset + 6),
        bAltEnumCode=cursor.read_u8(data_offset + 7),
    )
    if data.dwWindowsVersion != MS_OS_20_WINDOWS_VERSION:
        diag.warning(
            "Unusual Windows version 0x{:08x} (expected 0x{:08x})".format(
                data.dwWindowsVersion, MS_OS_20_WINDOWS_VERSION),
            data_offset)
    return data


def classify_platform_capability(cursor: ByteCursor, offset: int, cap_length: int,
                                 diag: DiagnosticsBuilder) -> PlatformCapability:
    """Decode the platform capability whose header starts at ``offset``.

    The caller guarantees the 20-byte header lies inside the buffer. The
    data block is only decoded when ``cap_length`` declares room for it;
    a platform capability with an unrecognised UUID is legal and is
    returned with ``kind`` set to unknown.
    """
    uuid = cursor.read_bytes(offset + 4, UUID_LENGTH)
    uuid_string = uuid_to_string(uuid)
    kind = classify_uuid_string(uuid_string)
    data_offset = offset + PLATFORM_HEADER_LENGTH

    data: Optional[Union[WebUsbPlatformData, MsOs20PlatformData]] = None
    if kind == PlatformKind.WEBUSB and cap_length >= PLATFORM_HEADER_LENGTH + WEBUSB_DATA_LENGTH:
        data = _decode_webusb(cursor, data_offset, diag)
    elif kind == PlatformKind.MSOS20 and cap_length >= PLATFORM_HEADER_LENGTH + MS_OS_20_DATA_LENGTH:
        data = _decode_msos20(cursor, data_offset, diag)

    logger.debug("platform capability at %d: uuid=%s kind=%s", offset, uuid_string, kind.value)

    return PlatformCapability(
        bReserved=cursor.read_u8(offset + 3),
        uuid=uuid,
        uuid_string=uuid_string,
        kind=kind,
        data=data,
    )
