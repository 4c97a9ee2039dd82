"""
MS OS 2.0 descriptor set parser.

The set is a flat stream of sub-descriptors, each opening with
``wLength`` and ``wDescriptorType``. Subset headers do not nest their
children on the wire; they only declare how many following bytes belong
to them, so the walk is linear and those declared lengths are checked
against the buffer rather than used to recurse.

Anything that makes the position of the next sub-descriptor unknowable
(a truncated header, a zero or undersized ``wLength``, a record running
past the buffer, an unknown ``wDescriptorType``) stops the walk.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from .cursor import ByteCursor, OutOfBounds
from .diagnostics import AnalysisResult, DiagnosticsBuilder
from .models import (
    MS_OS_20_WINDOWS_VERSION,
    CompatibleId,
    ConfigSubsetHeader,
    FunctionSubsetHeader,
    MsOsDescriptor,
    MsOsDescriptorSet,
    MsOsDescriptorType,
    RegistryDataType,
    RegistryProperty,
    SetHeader,
)

logger = logging.getLogger(__name__)

SUB_DESCRIPTOR_HEADER_LENGTH = 4
SET_HEADER_LENGTH = 10
SUBSET_HEADER_LENGTH = 8
COMPATIBLE_ID_LENGTH = 20
REG_PROPERTY_MIN_LENGTH = 8

WINUSB_COMPATIBLE_ID = b"WINUSB"
PLACEHOLDER_CHAR = "?"


def decode_utf16_low_bytes(cursor: ByteCursor, start: int, size: int) -> tuple[str, int]:
    """Render a UTF-16LE string for display from its low bytes.

    Walks ``size - 2`` bytes, leaving out the trailing null code unit the
    Microsoft format always reserves. Printable ASCII is kept, a zero low
    byte ends the string, anything else becomes ``?``. Code units whose
    second byte would fall outside the buffer are skipped.

    Returns the text and the number of printable characters in it.
    """
    length = len(cursor)
    chars: list[str] = []
    visible = 0
    for i in range(0, size - 2, 2):
        if start + i + 1 >= length:
            continue
        c = cursor.read_u8(start + i)
        if 32 <= c <= 126:
            chars.append(chr(c))
            visible += 1
        elif c == 0:
            break
        else:
            chars.append(PLACEHOLDER_CHAR)
    return "".join(chars), visible


class _SetWalker:
    """State for one walk over one descriptor set buffer."""

    def __init__(self, data: bytes):
        self.cursor = ByteCursor(data)
        self.length = len(self.cursor)
        self.diag = DiagnosticsBuilder()
        self.descriptors: list[MsOsDescriptor] = []
        self._handlers: dict[int, Callable[[int, int, int], Optional[MsOsDescriptor]]] = {
            MsOsDescriptorType.SET_HEADER: self._set_header,
            MsOsDescriptorType.SUBSET_HEADER_CONFIGURATION: self._configuration_subset,
            MsOsDescriptorType.SUBSET_HEADER_FUNCTION: self._function_subset,
            MsOsDescriptorType.FEATURE_COMPATIBLE_ID: self._compatible_id,
            MsOsDescriptorType.FEATURE_REG_PROPERTY: self._registry_property,
        }

    def walk(self) -> int:
        """Walk the stream; returns the offset where the walk ended."""
        cursor, diag, length = self.cursor, self.diag, self.length
        offset = 0

        while offset < length:
            if offset + SUB_DESCRIPTOR_HEADER_LENGTH > length:
                diag.fatal("Truncated descriptor at offset {} (need {} bytes, have {})".format(
                    offset, SUB_DESCRIPTOR_HEADER_LENGTH, length - offset), offset)
                break

            w_length = cursor.read_u16le(offset)
            w_descriptor_type = cursor.read_u16le(offset + 2)

            if w_length == 0:
                diag.fatal("Zero length descriptor at offset {}".format(offset), offset)
                break
            if w_length < SUB_DESCRIPTOR_HEADER_LENGTH:
                diag.fatal("Invalid descriptor length {} at offset {} (minimum is {})".format(
                    w_length, offset, SUB_DESCRIPTOR_HEADER_LENGTH), offset)
                break
            if offset + w_length > length:
                diag.fatal("Descriptor extends beyond buffer (offset={}, len={}, buffer={})".format(
                    offset, w_length, length), offset)
                break

            handler = self._handlers.get(w_descriptor_type)
            if handler is None:
                diag.fatal("Unknown descriptor type 0x{:04x} (len={})".format(
                    w_descriptor_type, w_length), offset)
                break

            descriptor = handler(offset, w_length, w_descriptor_type)
            if descriptor is not None:
                self.descriptors.append(descriptor)
            logger.debug("MS OS 2.0 sub-descriptor type %d at offset %d, len %d",
                         w_descriptor_type, offset, w_length)

            offset += w_length

        return offset

    def _too_short(self, name: str, offset: int, w_length: int, minimum: int) -> bool:
        if w_length < minimum:
            self.diag.error("{} too short (len={}, expected={})".format(name, w_length, minimum), offset)
            return True
        return False

    def _set_header(self, offset: int, w_length: int, w_type: int) -> Optional[SetHeader]:
        if self._too_short("Set Header", offset, w_length, SET_HEADER_LENGTH):
            return None
        cursor, diag = self.cursor, self.diag
        header = SetHeader(
            offset=offset,
            wLength=w_length,
            wDescriptorType=w_type,
            dwWindowsVersion=cursor.read_u32le(offset + 4),
            wTotalLength=cursor.read_u16le(offset + 8),
        )
        if header.wTotalLength != self.length:
            diag.warning("Total length mismatch (reported={}, actual={})".format(
                header.wTotalLength, self.length), offset + 8)
        if offset != 0:
            diag.warning("Set Header not at beginning (offset={})".format(offset), offset)
        if header.dwWindowsVersion != MS_OS_20_WINDOWS_VERSION:
            diag.warning("Unusual Windows version 0x{:08x} (expected 0x{:08x} for Win 8.1)".format(
                header.dwWindowsVersion, MS_OS_20_WINDOWS_VERSION), offset + 4)
        return header

    def _configuration_subset(self, offset: int, w_length: int, w_type: int) -> Optional[ConfigSubsetHeader]:
        if self._too_short("Configuration Subset Header", offset, w_length, SUBSET_HEADER_LENGTH):
            return None
        cursor, diag = self.cursor, self.diag
        header = ConfigSubsetHeader(
            offset=offset,
            wLength=w_length,
            wDescriptorType=w_type,
            bConfigurationValue=cursor.read_u8(offset + 4),
            bReserved=cursor.read_u8(offset + 5),
            wTotalLength=cursor.read_u16le(offset + 6),
        )
        if header.bReserved != 0:
            diag.warning("Reserved field not zero (value={})".format(header.bReserved), offset + 5)
        if offset + header.wTotalLength > self.length:
            diag.error("Configuration subset extends beyond buffer (offset={}, total={}, buffer={})".format(
                offset, header.wTotalLength, self.length), offset)
        return header

    def _function_subset(self, offset: int, w_length: int, w_type: int) -> Optional[FunctionSubsetHeader]:
        if self._too_short("Function Subset Header", offset, w_length, SUBSET_HEADER_LENGTH):
            return None
        cursor, diag = self.cursor, self.diag
        header = FunctionSubsetHeader(
            offset=offset,
            wLength=w_length,
            wDescriptorType=w_type,
            bFirstInterface=cursor.read_u8(offset + 4),
            bReserved=cursor.read_u8(offset + 5),
            wSubsetLength=cursor.read_u16le(offset + 6),
        )
        if header.bReserved != 0:
            diag.warning("Reserved field not zero (value={})".format(header.bReserved), offset + 5)
        if offset + header.wSubsetLength > self.length:
            diag.error("Function subset extends beyond buffer (offset={}, subset={}, buffer={})".format(
                offset, header.wSubsetLength, self.length), offset)
        if header.wSubsetLength < w_length:
            diag.error("Function subset length smaller than header length ({} < {})".format(
                header.wSubsetLength, w_length), offset + 6)
        return header

    def _compatible_id(self, offset: int, w_length: int, w_type: int) -> Optional[CompatibleId]:
        if self._too_short("Compatible ID Feature", offset, w_length, COMPATIBLE_ID_LENGTH):
            return None
        cursor, diag = self.cursor, self.diag
        feature = CompatibleId(
            offset=offset,
            wLength=w_length,
            wDescriptorType=w_type,
            compatible_id=cursor.read_bytes(offset + 4, 8),
            sub_compatible_id=cursor.read_bytes(offset + 12, 8),
        )
        if feature.compatible_id[:6] != WINUSB_COMPATIBLE_ID:
            diag.warning("Compatible ID is not 'WINUSB'", offset + 4)
        if feature.compatible_id[6] != 0 or feature.compatible_id[7] != 0:
            diag.warning("Compatible ID not properly null-terminated", offset + 10)
        return feature

    def _registry_property(self, offset: int, w_length: int, w_type: int) -> Optional[RegistryProperty]:
        if w_length < REG_PROPERTY_MIN_LENGTH:
            self.diag.error("Registry Property Feature too short (len={}, minimum={})".format(
                w_length, REG_PROPERTY_MIN_LENGTH), offset)
            return None
        return decode_registry_property(self.cursor, offset, w_length, self.diag)


def decode_registry_property(cursor: ByteCursor, offset: int, w_length: int,
                             diag: DiagnosticsBuilder) -> RegistryProperty:
    """Decode a Registry Property feature whose header has been checked.

    Layout after the 4-byte sub-descriptor header::

        +4  wPropertyDataType    u16
        +6  wPropertyNameLength  u16
        +8  PropertyName         UTF-16LE, wPropertyNameLength bytes
        ..  wPropertyDataLength  u16
        ..  PropertyData         wPropertyDataLength bytes

    Length problems are recorded as errors and decoding stops at the
    first field that cannot be located; the walk itself continues with
    the next sub-descriptor.
    """
    length = len(cursor)
    data_type = cursor.read_u16le(offset + 4)
    name_length = cursor.read_u16le(offset + 6)
    fields = dict(offset=offset, wLength=w_length,
                  wDescriptorType=int(MsOsDescriptorType.FEATURE_REG_PROPERTY),
                  wPropertyDataType=data_type, wPropertyNameLength=name_length)

    if data_type not in (RegistryDataType.REG_SZ, RegistryDataType.REG_MULTI_SZ):
        diag.warning("Unusual property data type {} (1=REG_SZ, 7=REG_MULTI_SZ)".format(data_type), offset + 4)

    if name_length == 0 or name_length % 2 != 0:
        diag.error("Invalid property name length {} (must be even and >0)".format(name_length), offset + 6)
        return RegistryProperty(**fields)

    name_offset = offset + 8
    if name_offset + name_length > length:
        diag.error("Property name extends beyond descriptor", name_offset)
        return RegistryProperty(**fields)

    name, visible = decode_utf16_low_bytes(cursor, name_offset, name_length)
    fields["property_name"] = name
    if visible == 0:
        diag.warning("Empty property name", name_offset)

    data_length_offset = name_offset + name_length
    if data_length_offset + 2 > length:
        diag.error("Property data length field beyond descriptor", data_length_offset)
        return RegistryProperty(**fields)

    data_length = cursor.read_u16le(data_length_offset)
    fields["wPropertyDataLength"] = data_length

    expected_total = 8 + name_length + 2 + data_length
    if expected_total != w_length:
        diag.error("Length mismatch (calculated={}, reported={})".format(expected_total, w_length), offset)

    data_offset = data_length_offset + 2
    if data_offset + data_length > length:
        diag.error("Property data extends beyond descriptor", data_offset)
    elif data_length > 0:
        fields["property_data"] = cursor.read_bytes(data_offset, data_length)
        fields["property_data_text"] = decode_utf16_low_bytes(cursor, data_offset, data_length)[0]

    return RegistryProperty(**fields)


def parse_msos20_descriptor_set(data: bytes) -> AnalysisResult:
    """Decode an MS OS 2.0 descriptor set buffer.

    ``parsed`` of the result is always an :class:`MsOsDescriptorSet`
    holding every sub-descriptor decoded before the walk stopped.
    """
    walker = _SetWalker(data)
    try:
        end = walker.walk()
    except OutOfBounds as e:
        walker.diag.fatal("Truncated descriptor: {}".format(e), e.offset)
        end = e.offset
    logger.debug("MS OS 2.0 walk stopped at %d of %d bytes", end, walker.length)
    return walker.diag.build(MsOsDescriptorSet(
        descriptors=tuple(walker.descriptors),
        consumed_length=end,
    ))

