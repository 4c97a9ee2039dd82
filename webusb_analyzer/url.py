"""
WebUSB URL descriptor parser.

https://wicg.github.io/webusb/#url-descriptor
"""

from __future__ import annotations

from .cursor import ByteCursor
from .diagnostics import AnalysisResult, DiagnosticsBuilder
from .models import URL_SCHEME_CODES, UrlScheme, WebUsbUrlDescriptor

URL_HEADER_LENGTH = 3


def parse_webusb_url_descriptor(data: bytes) -> AnalysisResult:
    cursor = ByteCursor(data)
    length = len(cursor)
    diag = DiagnosticsBuilder()

    if length < URL_HEADER_LENGTH:
        diag.fatal("WebUSB URL descriptor too short ({} bytes, minimum {})".format(
            length, URL_HEADER_LENGTH), 0)
        return diag.build()

    b_length = cursor.read_u8(0)
    b_scheme = cursor.read_u8(2)

    # Suffix is bounded by both the buffer and the declared length
    end = min(length, b_length)
    suffix = cursor.read_bytes(URL_HEADER_LENGTH, end - URL_HEADER_LENGTH) if end > URL_HEADER_LENGTH else b""

    descriptor = WebUsbUrlDescriptor(
        bLength=b_length,
        bDescriptorType=cursor.read_u8(1),
        bScheme=b_scheme,
        scheme=URL_SCHEME_CODES.get(b_scheme, UrlScheme.UNKNOWN),
        url_suffix=suffix,
    )
    return diag.build(descriptor)
