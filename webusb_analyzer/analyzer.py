"""
Device session: fetch each descriptor buffer and run its parser.

The BOS is read first because it tells us which vendor codes to use for
the WebUSB URL and the MS OS 2.0 descriptor set.
"""

from __future__ import annotations
import logging
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from .bos import parse_bos_descriptor
from .config import AnalyzerConfig
from .diagnostics import AnalysisResult, Verdict
from .errors import TransportError, TransportErrorKind
from .models import BosDescriptor
from .msos20 import SET_HEADER_LENGTH, parse_msos20_descriptor_set
from .url import parse_webusb_url_descriptor

logger = logging.getLogger(__name__)

STAGE_BOS = "bos"
STAGE_URL = "url"
STAGE_MSOS20 = "msos20"


class DescriptorSource(Protocol):
    def fetch_bos(self) -> bytes: ...

    def fetch_ms_os_20(self, vendor_code: int) -> bytes: ...

    def fetch_webusb_url(self, vendor_code: int, landing_page_index: int) -> bytes: ...


class TransportFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransportErrorKind
    message: str
    hint: str

    @classmethod
    def from_error(cls, error: TransportError) -> TransportFailure:
        return cls(kind=error.kind, message=str(error), hint=error.hint)


class StageReport(BaseModel):
    """Raw bytes and analysis for one descriptor request."""

    model_config = ConfigDict(frozen=True)

    raw: Optional[bytes] = None
    result: Optional[AnalysisResult] = None
    failure: Optional[TransportFailure] = None
    request: dict[str, int] = Field(default_factory=dict, description="Vendor request parameters used")


class DeviceReport(BaseModel):
    bos: Optional[StageReport] = None
    url: Optional[StageReport] = None
    msos20: Optional[StageReport] = None
    notes: list[str] = Field(default_factory=list)

    @property
    def results(self) -> list[AnalysisResult]:
        return [s.result for s in (self.bos, self.url, self.msos20) if s is not None and s.result is not None]

    @property
    def ok(self) -> bool:
        fetched = any(s is not None and s.raw is not None for s in (self.bos, self.msos20))
        return fetched and all(r.verdict != Verdict.INVALID for r in self.results)


def _fetch(stage: str, fetch, request: Optional[dict] = None) -> tuple[StageReport, bool]:
    try:
        raw = fetch()
    except TransportError as e:
        logger.warning("%s: %s", stage, e)
        return StageReport(failure=TransportFailure.from_error(e), request=request or {}), False
    return StageReport(raw=raw, request=request or {}), True


def analyze_device(source: DescriptorSource, config: Optional[AnalyzerConfig] = None) -> DeviceReport:
    config = config or AnalyzerConfig()
    report = DeviceReport()
    bos: Optional[BosDescriptor] = None

    stage, fetched = _fetch(STAGE_BOS, source.fetch_bos)
    if fetched:
        result = parse_bos_descriptor(stage.raw)
        stage = stage.model_copy(update={"result": result})
        bos = result.parsed
    else:
        report.notes.append("Device may not support BOS descriptors (USB 2.0 device?)")
    report.bos = stage

    webusb = bos.webusb if bos is not None else None
    if webusb is not None and webusb.bVendorCode != 0 and webusb.iLandingPage != 0:
        request = {"vendor_code": webusb.bVendorCode, "landing_page_index": webusb.iLandingPage}
        stage, fetched = _fetch(
            STAGE_URL,
            lambda: source.fetch_webusb_url(webusb.bVendorCode, webusb.iLandingPage),
            request)
        if fetched:
            stage = stage.model_copy(update={"result": parse_webusb_url_descriptor(stage.raw)})
        elif stage.failure.kind == TransportErrorKind.STALL:
            report.notes.append("WebUSB URL request stalled; this may indicate no landing page is configured")
        report.url = stage
    elif webusb is not None:
        report.notes.append("WebUSB capability has no landing page or vendor code")
    else:
        report.notes.append("No WebUSB capability found in BOS descriptor")

    msos = bos.msos20 if bos is not None else None
    if msos is not None:
        vendor_code = msos.bMS_VendorCode
    else:
        vendor_code = config.ms_os_20_vendor_code
        report.notes.append(
            "No MS OS 2.0 capability in BOS; using vendor code 0x{:02x}".format(vendor_code))

    stage, fetched = _fetch(STAGE_MSOS20, lambda: source.fetch_ms_os_20(vendor_code),
                            {"vendor_code": vendor_code})
    if fetched:
        if len(stage.raw) < SET_HEADER_LENGTH:
            report.notes.append(
                "MS OS 2.0 descriptor very short ({} bytes), may be truncated".format(len(stage.raw)))
        stage = stage.model_copy(update={"result": parse_msos20_descriptor_set(stage.raw)})
    report.msos20 = stage

    return report
