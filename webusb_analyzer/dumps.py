"""
Replay of descriptor buffers saved to disk.

Lets BOS, MS OS 2.0 and WebUSB URL captures be analysed without the
device, for example a dump attached to a bug report.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from .errors import TransportError, TransportErrorKind

logger = logging.getLogger(__name__)


class FileTransport:
    """Serves descriptor buffers from dump files instead of a device."""

    def __init__(self, bos: Optional[Path] = None, msos20: Optional[Path] = None,
                 url: Optional[Path] = None):
        self.paths = {"bos": bos, "msos20": msos20, "url": url}

    def has(self, key: str) -> bool:
        return self.paths.get(key) is not None

    def _read(self, key: str) -> bytes:
        path = self.paths.get(key)
        if path is None:
            raise TransportError(TransportErrorKind.NOT_FOUND, "no {} dump file given".format(key))
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            raise TransportError(TransportErrorKind.NOT_FOUND, "{} not found".format(path))
        except PermissionError:
            raise TransportError(TransportErrorKind.ACCESS_DENIED, "cannot read {}".format(path))
        if not data:
            raise TransportError(TransportErrorKind.OTHER, "{} is empty".format(path))
        logger.debug("Read %d bytes from %s", len(data), path)
        return data

    def fetch_bos(self) -> bytes:
        return self._read("bos")

    def fetch_ms_os_20(self, vendor_code: int) -> bytes:
        return self._read("msos20")

    def fetch_webusb_url(self, vendor_code: int, landing_page_index: int) -> bytes:
        return self._read("url")
