"""
libusb descriptor transport.

:class:`LibusbTransport` issues the three control transfers against a
live device through the ``libusb`` ctypes binding. Dump files are served
by :class:`webusb_analyzer.dumps.FileTransport`.
"""

from __future__ import annotations
import logging
from ctypes import c_uint8
from typing import Optional

import libusb as usb

from .config import AnalyzerConfig
from .errors import TransportError, TransportErrorKind
from .models import USB_DT_BOS

logger = logging.getLogger(__name__)

# MS OS 2.0 vendor request wIndex
MS_OS_20_DESCRIPTOR_INDEX = 0x0007
# WebUSB vendor request wIndex
WEBUSB_REQUEST_GET_URL = 0x0002

ERROR_KINDS = {
    usb.LIBUSB_ERROR_NOT_FOUND: TransportErrorKind.NOT_FOUND,
    usb.LIBUSB_ERROR_PIPE: TransportErrorKind.STALL,
    usb.LIBUSB_ERROR_TIMEOUT: TransportErrorKind.TIMEOUT,
    usb.LIBUSB_ERROR_NO_DEVICE: TransportErrorKind.DISCONNECTED,
    usb.LIBUSB_ERROR_ACCESS: TransportErrorKind.ACCESS_DENIED,
    usb.LIBUSB_ERROR_NOT_SUPPORTED: TransportErrorKind.UNSUPPORTED,
}


def error_name(code):
    name = usb.error_name(code)
    if isinstance(name, bytes):
        name = name.decode()
    return name


def transport_error(code, what):
    kind = ERROR_KINDS.get(code, TransportErrorKind.OTHER)
    return TransportError(kind, "{} failed: {}".format(what, error_name(code)), code)


class LibusbTransport:
    """Fetches raw descriptor buffers from one device."""

    def __init__(self, vid, pid, config: Optional[AnalyzerConfig] = None):
        self.vid = vid
        self.pid = pid
        self.config = config or AnalyzerConfig()
        self._handle = None
        self._context_ready = False

    def open(self):
        r = usb.init(None)
        if r < 0:
            raise transport_error(r, "libusb initialisation")
        self._context_ready = True

        handle = usb.open_device_with_vid_pid(None, self.vid, self.pid)
        if not handle:
            self.close()
            raise TransportError(TransportErrorKind.NOT_FOUND,
                                 "Device {:04x}:{:04x} not found".format(self.vid, self.pid))
        self._handle = handle
        logger.info("Opened device %04x:%04x", self.vid, self.pid)

        if self.config.detach_kernel_driver:
            self._detach_kernel_driver()
        return self

    def _detach_kernel_driver(self):
        interface = self.config.interface
        if usb.kernel_driver_active(self._handle, interface) == 1:
            logger.info("Kernel driver is active on interface %d, detaching", interface)
            r = usb.detach_kernel_driver(self._handle, interface)
            if r != 0 and r != usb.LIBUSB_ERROR_NOT_FOUND:
                logger.warning("Could not detach kernel driver: %s", error_name(r))

    def close(self):
        if self._handle:
            usb.close(self._handle)
            self._handle = None
        if self._context_ready:
            usb.exit(None)
            self._context_ready = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _control_in(self, request_type, request, value, index, what):
        if not self._handle:
            raise TransportError(TransportErrorKind.DISCONNECTED, "{}: device is not open".format(what))

        length = self.config.buffer_size
        desc = (c_uint8 * length)()
        logger.debug("%s: bmRequestType=0x%02x bRequest=0x%02x wValue=0x%04x wIndex=0x%04x wLength=%d",
                     what, request_type, request, value, index, length)
        r = usb.control_transfer(self._handle,
                                 request_type,
                                 request,
                                 value,
                                 index,
                                 desc,
                                 length,
                                 self.config.timeout_ms)
        if r < 0:
            logger.warning("%s failed (%d): %s", what, r, error_name(r))
            raise transport_error(r, what)
        if r == 0:
            raise TransportError(TransportErrorKind.OTHER, "{}: device returned 0 bytes".format(what))
        return bytes(desc[:r])

    def fetch_bos(self):
        return self._control_in(usb.LIBUSB_ENDPOINT_IN,
                                usb.LIBUSB_REQUEST_GET_DESCRIPTOR,
                                USB_DT_BOS << 8,
                                0,
                                "BOS descriptor request")

    def fetch_ms_os_20(self, vendor_code):
        request_type = usb.LIBUSB_ENDPOINT_IN | usb.LIBUSB_REQUEST_TYPE_VENDOR | usb.LIBUSB_RECIPIENT_DEVICE
        return self._control_in(request_type,
                                vendor_code,
                                0x0000,
                                MS_OS_20_DESCRIPTOR_INDEX,
                                "MS OS 2.0 descriptor request")

    def fetch_webusb_url(self, vendor_code, landing_page_index):
        request_type = usb.LIBUSB_ENDPOINT_IN | usb.LIBUSB_REQUEST_TYPE_VENDOR | usb.LIBUSB_RECIPIENT_DEVICE
        return self._control_in(request_type,
                                vendor_code,
                                landing_page_index,
                                WEBUSB_REQUEST_GET_URL,
                                "WebUSB URL request")
