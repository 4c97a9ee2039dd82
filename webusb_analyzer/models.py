"""
Pydantic models for decoded BOS, WebUSB and MS OS 2.0 descriptors.

Field names follow the USB and Microsoft documents (``bLength``,
``wTotalLength``, ...) so decoded values can be compared against a
datasheet without translation. Every model is frozen: a parse call
builds them once and nothing mutates them afterwards.
"""

from __future__ import annotations
from enum import Enum, IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .platform_uuid import PlatformKind

# Descriptor type codes
USB_DT_STRING = 0x03
USB_DT_BOS = 0x0F
USB_DT_DEVICE_CAPABILITY = 0x10

# Device capability types
USB_DC_WIRELESS_USB = 0x01
USB_DC_USB_2_0_EXTENSION = 0x02
USB_DC_SUPERSPEED_USB = 0x03
USB_DC_CONTAINER_ID = 0x04
USB_DC_PLATFORM = 0x05
USB_DC_SUPERSPEED_PLUS = 0x0A

WEBUSB_URL_DESCRIPTOR_TYPE = USB_DT_STRING

# dwWindowsVersion for Windows 8.1, the only value the MS OS 2.0 document defines
MS_OS_20_WINDOWS_VERSION = 0x06030000

CAPABILITY_NAMES = {
    USB_DC_WIRELESS_USB: "Wireless USB",
    USB_DC_USB_2_0_EXTENSION: "USB 2.0 Extension",
    USB_DC_SUPERSPEED_USB: "SuperSpeed USB",
    USB_DC_CONTAINER_ID: "Container ID",
    USB_DC_PLATFORM: "Platform",
    USB_DC_SUPERSPEED_PLUS: "SuperSpeedPlus USB",
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# BOS

class WebUsbPlatformData(_Frozen):
    bcdVersion: int
    bVendorCode: int
    iLandingPage: int

    @property
    def has_landing_page(self) -> bool:
        return self.iLandingPage != 0


class MsOs20PlatformData(_Frozen):
    dwWindowsVersion: int
    wMSOSDescriptorSetTotalLength: int
    bMS_VendorCode: int
    bAltEnumCode: int


class PlatformCapability(_Frozen):
    bReserved: int
    uuid: bytes = Field(description="16 raw UUID bytes as they appear on the wire")
    uuid_string: str
    kind: PlatformKind = PlatformKind.UNKNOWN
    data: Optional[Union[WebUsbPlatformData, MsOs20PlatformData]] = Field(
        default=None, description="Decoded capability data; None if unknown or too short")


class DeviceCapability(_Frozen):
    offset: int
    bLength: int
    bDescriptorType: int
    bDevCapabilityType: int
    platform: Optional[PlatformCapability] = None

    @property
    def name(self) -> str:
        return CAPABILITY_NAMES.get(self.bDevCapabilityType, "Unknown")

    @property
    def is_platform(self) -> bool:
        return self.bDevCapabilityType == USB_DC_PLATFORM


class BosDescriptor(_Frozen):
    bLength: int
    bDescriptorType: int
    wTotalLength: int
    bNumDeviceCaps: int
    capabilities: tuple[DeviceCapability, ...] = ()

    @property
    def capabilities_parsed(self) -> int:
        return len(self.capabilities)

    def platform_capabilities(self, kind: Optional[PlatformKind] = None) -> list[PlatformCapability]:
        return [
            c.platform for c in self.capabilities
            if c.platform is not None and (kind is None or c.platform.kind == kind)
        ]

    @property
    def webusb(self) -> Optional[WebUsbPlatformData]:
        """First WebUSB capability that carried its data block."""
        for cap in self.platform_capabilities(PlatformKind.WEBUSB):
            if isinstance(cap.data, WebUsbPlatformData):
                return cap.data
        return None

    @property
    def msos20(self) -> Optional[MsOs20PlatformData]:
        for cap in self.platform_capabilities(PlatformKind.MSOS20):
            if isinstance(cap.data, MsOs20PlatformData):
                return cap.data
        return None


# WebUSB URL

class UrlScheme(str, Enum):
    HTTP = "http"
    HTTPS = "https"
    NONE = "none"
    UNKNOWN = "unknown"


URL_SCHEME_CODES = {
    0: UrlScheme.HTTP,
    1: UrlScheme.HTTPS,
    255: UrlScheme.NONE,
}

URL_SCHEME_PREFIXES = {
    UrlScheme.HTTP: "http://",
    UrlScheme.HTTPS: "https://",
    UrlScheme.NONE: "",
    UrlScheme.UNKNOWN: "unknown://",
}


class WebUsbUrlDescriptor(_Frozen):
    bLength: int
    bDescriptorType: int
    bScheme: int
    scheme: UrlScheme
    url_suffix: bytes = b""

    @property
    def prefix(self) -> str:
        return URL_SCHEME_PREFIXES[self.scheme]

    @property
    def url(self) -> str:
        return self.prefix + self.url_suffix.decode("utf-8", errors="replace")


# MS OS 2.0 descriptor set

class MsOsDescriptorType(IntEnum):
    SET_HEADER = 0x00
    SUBSET_HEADER_CONFIGURATION = 0x01
    SUBSET_HEADER_FUNCTION = 0x02
    FEATURE_COMPATIBLE_ID = 0x03
    FEATURE_REG_PROPERTY = 0x04


class RegistryDataType(IntEnum):
    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD_LITTLE_ENDIAN = 4
    REG_DWORD_BIG_ENDIAN = 5
    REG_LINK = 6
    REG_MULTI_SZ = 7


class MsOsSubDescriptor(_Frozen):
    offset: int
    wLength: int
    wDescriptorType: int


class SetHeader(MsOsSubDescriptor):
    dwWindowsVersion: int
    wTotalLength: int


class ConfigSubsetHeader(MsOsSubDescriptor):
    bConfigurationValue: int
    bReserved: int
    wTotalLength: int


class FunctionSubsetHeader(MsOsSubDescriptor):
    bFirstInterface: int
    bReserved: int
    wSubsetLength: int


class CompatibleId(MsOsSubDescriptor):
    compatible_id: bytes
    sub_compatible_id: bytes

    @staticmethod
    def _text(raw: bytes) -> str:
        return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")

    @property
    def compatible_id_text(self) -> str:
        return self._text(self.compatible_id)

    @property
    def sub_compatible_id_text(self) -> str:
        return self._text(self.sub_compatible_id)


class RegistryProperty(MsOsSubDescriptor):
    wPropertyDataType: int
    wPropertyNameLength: int
    property_name: str = ""
    wPropertyDataLength: Optional[int] = None
    property_data: bytes = b""
    property_data_text: str = ""

    @property
    def data_type_name(self) -> str:
        try:
            return RegistryDataType(self.wPropertyDataType).name
        except ValueError:
            return "UNKNOWN"


MsOsDescriptor = Union[SetHeader, ConfigSubsetHeader, FunctionSubsetHeader,
                       CompatibleId, RegistryProperty]


class MsOsDescriptorSet(_Frozen):
    descriptors: tuple[MsOsDescriptor, ...] = ()
    consumed_length: int = Field(
        default=0, description="Sum of wLength for every sub-descriptor walked")

    def of_type(self, cls: type) -> list:
        return [d for d in self.descriptors if isinstance(d, cls)]
