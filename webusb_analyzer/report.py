"""
Text rendering of analysis results.

Each ``render_*`` function returns a list of lines; the caller decides
where they go.
"""

from __future__ import annotations
from typing import Optional

from .analyzer import DeviceReport, StageReport
from .diagnostics import AnalysisResult, Diagnostic, Severity, Verdict
from .models import (
    USB_DT_BOS,
    USB_DT_DEVICE_CAPABILITY,
    WEBUSB_URL_DESCRIPTOR_TYPE,
    BosDescriptor,
    CompatibleId,
    ConfigSubsetHeader,
    FunctionSubsetHeader,
    MsOs20PlatformData,
    MsOsDescriptorSet,
    RegistryProperty,
    SetHeader,
    WebUsbPlatformData,
    WebUsbUrlDescriptor,
)

COLOR_RED = "\033[31m"
COLOR_ORANGE = "\033[33m"
COLOR_RESET = "\033[0m"


def hex_dump(buffer: bytes) -> list[str]:
    lines = []
    size = len(buffer)
    for i in range(0, size, 16):
        hex_part = ""
        ascii_part = ""
        for j in range(16):
            if i + j < size:
                hex_part += "{:02X} ".format(buffer[i + j])
                c = buffer[i + j]
                ascii_part += "." if c < 32 or c > 126 else chr(c)
            else:
                hex_part += "   "
        lines.append("  {:08x}  {} {}".format(i, hex_part, ascii_part))
    return lines


def _paint(text: str, color: str, enabled: bool) -> str:
    return color + text + COLOR_RESET if enabled else text


def format_diagnostic(diag: Diagnostic, color: bool = True, indent: str = "  ") -> str:
    if diag.severity == Severity.ERROR:
        text = _paint("ERROR: " + diag.message, COLOR_RED, color)
    else:
        text = _paint("WARNING: " + diag.message, COLOR_ORANGE, color)
    return indent + text


def summary_line(result: AnalysisResult, what: str) -> str:
    if result.verdict == Verdict.WELL_FORMED:
        return "✓ {} appears to be well-formed".format(what)
    if result.verdict == Verdict.VALID_WITH_WARNINGS:
        return "⚠ {} is valid but has {} warning(s)".format(what, result.warning_count)
    return "✗ {} has {} error(s) and {} warning(s)".format(what, result.error_count, result.warning_count)


def _diagnostic_lines(result: AnalysisResult, color: bool) -> list[str]:
    return [format_diagnostic(d, color) for d in result.diagnostics]


def render_bos(result: AnalysisResult, color: bool = True) -> list[str]:
    lines = ["=== BOS Descriptor Analysis ==="]
    bos: Optional[BosDescriptor] = result.parsed
    if bos is not None:
        lines += [
            "BOS Header:",
            "  bLength: {}".format(bos.bLength),
            "  bDescriptorType: 0x{:02x} ({})".format(
                bos.bDescriptorType, "BOS" if bos.bDescriptorType == USB_DT_BOS else "UNKNOWN"),
            "  wTotalLength: {}".format(bos.wTotalLength),
            "  bNumDeviceCaps: {}".format(bos.bNumDeviceCaps),
        ]
        for index, cap in enumerate(bos.capabilities):
            lines += [
                "Device Capability {} (offset {}):".format(index, cap.offset),
                "  bLength: {}".format(cap.bLength),
                "  bDescriptorType: 0x{:02x} ({})".format(
                    cap.bDescriptorType,
                    "DEVICE_CAPABILITY" if cap.bDescriptorType == USB_DT_DEVICE_CAPABILITY else "UNKNOWN"),
                "  bDevCapabilityType: 0x{:02x} ({})".format(cap.bDevCapabilityType, cap.name),
            ]
            platform = cap.platform
            if platform is None:
                continue
            lines += [
                "  Platform Capability:",
                "    bReserved: {}".format(platform.bReserved),
                "    UUID: {}".format(platform.uuid_string),
            ]
            if isinstance(platform.data, WebUsbPlatformData):
                data = platform.data
                lines += [
                    "    Type: WebUSB Platform Capability",
                    "      bcdVersion: 0x{:04x}".format(data.bcdVersion),
                    "      bVendorCode: 0x{:02x}".format(data.bVendorCode),
                    "      iLandingPage: {} ({})".format(
                        data.iLandingPage, "Present" if data.has_landing_page else "Not Present"),
                ]
            elif isinstance(platform.data, MsOs20PlatformData):
                data = platform.data
                lines += [
                    "    Type: MS OS 2.0 Platform Capability",
                    "      dwWindowsVersion: 0x{:08x}".format(data.dwWindowsVersion),
                    "      wMSOSDescriptorSetTotalLength: {}".format(data.wMSOSDescriptorSetTotalLength),
                    "      bMS_VendorCode: 0x{:02x}".format(data.bMS_VendorCode),
                    "      bAltEnumCode: {}".format(data.bAltEnumCode),
                ]
            else:
                lines.append("    Type: {} Platform Capability".format(platform.kind.value))
    lines += _diagnostic_lines(result, color)
    parsed = bos.capabilities_parsed if bos is not None else 0
    lines.append("Parsed {} device capabilities, {} errors, {} warnings".format(
        parsed, result.error_count, result.warning_count))
    lines.append(summary_line(result, "BOS descriptor"))
    return lines


def render_url(result: AnalysisResult, color: bool = True) -> list[str]:
    lines = ["=== WebUSB URL Descriptor ==="]
    url: Optional[WebUsbUrlDescriptor] = result.parsed
    if url is not None:
        lines += [
            "bLength: {}".format(url.bLength),
            "bDescriptorType: {} ({})".format(
                url.bDescriptorType,
                "WebUSB URL" if url.bDescriptorType == WEBUSB_URL_DESCRIPTOR_TYPE else "UNKNOWN"),
            "bScheme: {} ({})".format(url.bScheme, url.scheme.value),
            "URL: {}".format(url.url),
        ]
    lines += _diagnostic_lines(result, color)
    return lines


def _sub_descriptor_line(d) -> list[str]:
    if isinstance(d, SetHeader):
        return ["Offset {}: Set Header (len={}, winver=0x{:08x}, total={})".format(
            d.offset, d.wLength, d.dwWindowsVersion, d.wTotalLength)]
    if isinstance(d, ConfigSubsetHeader):
        return ["Offset {}: Configuration Subset Header (len={}, config={}, total={})".format(
            d.offset, d.wLength, d.bConfigurationValue, d.wTotalLength)]
    if isinstance(d, FunctionSubsetHeader):
        return ["Offset {}: Function Subset Header (len={}, interface={}, subset={})".format(
            d.offset, d.wLength, d.bFirstInterface, d.wSubsetLength)]
    if isinstance(d, CompatibleId):
        return ["Offset {}: Compatible ID Feature (len={}, compat='{}', subcompat='{}')".format(
            d.offset, d.wLength, d.compatible_id_text, d.sub_compatible_id_text)]
    if isinstance(d, RegistryProperty):
        lines = ["Offset {}: Registry Property Feature (len={}, datatype={} {}, namelen={})".format(
            d.offset, d.wLength, d.wPropertyDataType, d.data_type_name, d.wPropertyNameLength)]
        if d.property_name:
            lines.append("  Property Name: {}".format(d.property_name))
        if d.wPropertyDataLength is not None:
            lines.append("  Property Data Length: {}".format(d.wPropertyDataLength))
        if d.property_data:
            lines.append("  Property Data: {}".format(d.property_data_text))
        return lines
    return []


def render_msos20(result: AnalysisResult, color: bool = True) -> list[str]:
    lines = ["=== MS OS 2.0 Descriptor Analysis ==="]
    descriptor_set: Optional[MsOsDescriptorSet] = result.parsed
    if descriptor_set is not None:
        for d in descriptor_set.descriptors:
            lines += _sub_descriptor_line(d)
    lines += _diagnostic_lines(result, color)
    lines.append("Parsing completed: {} errors, {} warnings".format(result.error_count, result.warning_count))
    lines.append(summary_line(result, "Descriptor"))
    return lines


def _render_stage(title: str, stage: Optional[StageReport], renderer, color: bool, dump: bool) -> list[str]:
    if stage is None:
        return []
    lines = ["=== Fetching {} ===".format(title)]
    for key, value in stage.request.items():
        lines.append("Using {}: 0x{:02x}".format(key.replace("_", " "), value))
    if stage.failure is not None:
        lines.append("INFO: {}".format(stage.failure.message))
        lines.append("  {}".format(stage.failure.hint))
        return lines + [""]
    lines.append("SUCCESS: {} retrieved ({} bytes)".format(title, len(stage.raw)))
    if dump:
        lines.append("Raw {} data:".format(title))
        lines += hex_dump(stage.raw)
    lines.append("")
    lines += renderer(stage.result, color)
    return lines + [""]


def render_device_report(report: DeviceReport, color: bool = True, dump: bool = True) -> list[str]:
    lines = []
    lines += _render_stage("BOS descriptor", report.bos, render_bos, color, dump)
    lines += _render_stage("WebUSB URL", report.url, render_url, color, dump)
    lines += _render_stage("MS OS 2.0 descriptor", report.msos20, render_msos20, color, dump)
    lines += ["INFO: {}".format(note) for note in report.notes]
    return lines
