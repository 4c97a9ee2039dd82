"""
WebUSB Analyzer - BOS, WebUSB and MS OS 2.0 descriptor validation.

Decodes the descriptors a device exposes for WebUSB and for automatic
WinUSB binding on Windows, and reports every deviation it finds.
"""

from .bos import parse_bos_descriptor
from .diagnostics import AnalysisResult, Diagnostic, Severity, Verdict
from .msos20 import parse_msos20_descriptor_set
from .platform_uuid import PlatformKind, classify, uuid_to_string
from .url import parse_webusb_url_descriptor

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "Diagnostic",
    "PlatformKind",
    "Severity",
    "Verdict",
    "classify",
    "parse_bos_descriptor",
    "parse_msos20_descriptor_set",
    "parse_webusb_url_descriptor",
    "uuid_to_string",
]
