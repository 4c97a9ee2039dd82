"""
BOS (Binary device Object Store) descriptor parser.

Decodes the 5-byte BOS header and walks the Device Capability records
that follow it. Platform capabilities are handed to
:mod:`webusb_analyzer.capability`; every other capability type is
tolerated and only its 3-byte header is recorded.
"""

from __future__ import annotations
import logging

from .capability import PLATFORM_HEADER_LENGTH, classify_platform_capability
from .cursor import ByteCursor, OutOfBounds
from .diagnostics import AnalysisResult, DiagnosticsBuilder
from .models import USB_DC_PLATFORM, USB_DT_BOS, BosDescriptor, DeviceCapability

logger = logging.getLogger(__name__)

BOS_HEADER_LENGTH = 5
CAPABILITY_HEADER_LENGTH = 3


def _walk_capabilities(cursor: ByteCursor, start: int, count: int,
                       diag: DiagnosticsBuilder) -> list[DeviceCapability]:
    length = len(cursor)
    capabilities: list[DeviceCapability] = []
    offset = start

    while offset < length and len(capabilities) < count:
        if offset + CAPABILITY_HEADER_LENGTH > length:
            diag.fatal("Truncated device capability at offset {}".format(offset), offset)
            break

        cap_length = cursor.read_u8(offset)
        cap_type = cursor.read_u8(offset + 1)
        cap_capability_type = cursor.read_u8(offset + 2)

        if cap_length < CAPABILITY_HEADER_LENGTH:
            diag.fatal("Invalid device capability length {} at offset {} (minimum is {})".format(
                cap_length, offset, CAPABILITY_HEADER_LENGTH), offset)
            break

        if offset + cap_length > length:
            diag.fatal("Device capability extends beyond buffer (offset={}, len={}, buffer={})".format(
                offset, cap_length, length), offset)
            break

        platform = None
        if cap_capability_type == USB_DC_PLATFORM and cursor.fits(offset, PLATFORM_HEADER_LENGTH):
            if cap_length < PLATFORM_HEADER_LENGTH:
                diag.error("Platform capability too short (len={}, minimum={})".format(
                    cap_length, PLATFORM_HEADER_LENGTH), offset)
            else:
                platform = classify_platform_capability(cursor, offset, cap_length, diag)

        capabilities.append(DeviceCapability(
            offset=offset,
            bLength=cap_length,
            bDescriptorType=cap_type,
            bDevCapabilityType=cap_capability_type,
            platform=platform,
        ))
        logger.debug("device capability %d at offset %d: type 0x%02x len %d",
                     len(capabilities) - 1, offset, cap_capability_type, cap_length)

        offset += cap_length

    return capabilities


def parse_bos_descriptor(data: bytes) -> AnalysisResult:
    """Decode a BOS descriptor buffer.

    ``parsed`` of the result is a :class:`BosDescriptor`, or None when
    the buffer is too short to hold the BOS header.
    """
    cursor = ByteCursor(data)
    length = len(cursor)
    diag = DiagnosticsBuilder()

    if length < BOS_HEADER_LENGTH:
        diag.fatal("BOS descriptor too short ({} bytes, minimum {})".format(
            length, BOS_HEADER_LENGTH), 0)
        return diag.build()

    b_length = cursor.read_u8(0)
    b_descriptor_type = cursor.read_u8(1)
    w_total_length = cursor.read_u16le(2)
    b_num_device_caps = cursor.read_u8(4)

    if b_descriptor_type != USB_DT_BOS:
        diag.error("Invalid BOS descriptor type 0x{:02x}".format(b_descriptor_type), 1)

    if w_total_length != length:
        diag.warning("BOS total length mismatch (reported={}, actual={})".format(
            w_total_length, length), 2)

    capabilities: list[DeviceCapability] = []
    if b_length < BOS_HEADER_LENGTH:
        diag.fatal("Invalid BOS header length {} (minimum is {})".format(
            b_length, BOS_HEADER_LENGTH), 0)
    else:
        try:
            capabilities = _walk_capabilities(cursor, b_length, b_num_device_caps, diag)
        except OutOfBounds as e:
            diag.fatal("Truncated device capability: {}".format(e), e.offset)

    bos = BosDescriptor(
        bLength=b_length,
        bDescriptorType=b_descriptor_type,
        wTotalLength=w_total_length,
        bNumDeviceCaps=b_num_device_caps,
        capabilities=tuple(capabilities),
    )
    return diag.build(bos)
