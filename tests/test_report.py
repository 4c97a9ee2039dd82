import unittest

from builders import bos, compatible_id, interface_guids_property, msos20_cap, msos20_set, webusb_cap
from webusb_analyzer.analyzer import analyze_device
from webusb_analyzer.bos import parse_bos_descriptor
from webusb_analyzer.msos20 import parse_msos20_descriptor_set
from webusb_analyzer.report import (
    COLOR_ORANGE,
    COLOR_RED,
    hex_dump,
    render_bos,
    render_device_report,
    render_msos20,
    render_url,
    summary_line,
)
from webusb_analyzer.url import parse_webusb_url_descriptor

from test_analyzer import URL, FakeTransport


class TestHexDump(unittest.TestCase):
    def test_layout(self):
        lines = hex_dump(bytes(range(0x41, 0x41 + 17)))
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("  00000000  41 42 43"))
        self.assertTrue(lines[0].endswith("ABCDEFGHIJKLMNOP"))
        self.assertTrue(lines[1].startswith("  00000010  51 "))
        self.assertTrue(lines[1].endswith("Q"))

    def test_non_printable_shown_as_dot(self):
        self.assertTrue(hex_dump(b"\x00A\xff")[0].endswith(".A."))

    def test_empty(self):
        self.assertEqual(hex_dump(b""), [])


class TestRenderers(unittest.TestCase):
    def test_bos_fields_and_summary(self):
        result = parse_bos_descriptor(bos(webusb_cap(), msos20_cap()))
        text = "\n".join(render_bos(result, color=False))

        self.assertIn("bNumDeviceCaps: 2", text)
        self.assertIn("UUID: 3408b638-09a9-47a0-8bfd-a0768815b665", text)
        self.assertIn("Type: WebUSB Platform Capability", text)
        self.assertIn("Type: MS OS 2.0 Platform Capability", text)
        self.assertIn("Parsed 2 device capabilities, 0 errors, 0 warnings", text)
        self.assertIn("BOS descriptor appears to be well-formed", text)

    def test_warning_colour(self):
        result = parse_bos_descriptor(bos(webusb_cap(vendor_code=0)))
        colored = render_bos(result, color=True)
        plain = render_bos(result, color=False)

        self.assertTrue(any(COLOR_ORANGE in line for line in colored))
        self.assertFalse(any("\033[" in line for line in plain))
        self.assertIn("  WARNING: WebUSB vendor code is 0 (invalid)", plain)

    def test_error_colour_and_short_bos(self):
        result = parse_bos_descriptor(b"\x05\x0f")
        lines = render_bos(result, color=True)
        self.assertTrue(any(COLOR_RED in line and "too short" in line for line in lines))
        self.assertIn("has 1 error(s) and 0 warning(s)", lines[-1])

    def test_msos20(self):
        result = parse_msos20_descriptor_set(msos20_set(compatible_id(), interface_guids_property()))
        text = "\n".join(render_msos20(result, color=False))

        self.assertIn("Offset 0: Set Header (len=10, winver=0x06030000, total=162)", text)
        self.assertIn("compat='WINUSB'", text)
        self.assertIn("Property Name: DeviceInterfaceGUIDs", text)
        self.assertIn("Property Data: {975F44D9-0D08-43FD-8B3E-127CA8AFFF9D}", text)
        self.assertIn("Parsing completed: 0 errors, 0 warnings", text)

    def test_url(self):
        text = "\n".join(render_url(parse_webusb_url_descriptor(URL), color=False))
        self.assertIn("URL: https://example.com", text)
        self.assertIn("bDescriptorType: 3 (WebUSB URL)", text)

    def test_summary_with_warnings(self):
        result = parse_msos20_descriptor_set(msos20_set(compatible_id(b"LIBUSB\x00\x00")))
        self.assertEqual(summary_line(result, "Descriptor"), "⚠ Descriptor is valid but has 1 warning(s)")


class TestDeviceReport(unittest.TestCase):
    def test_session_rendering(self):
        transport = FakeTransport(bos=bos(webusb_cap(), msos20_cap()), msos20=msos20_set(compatible_id()))
        lines = render_device_report(analyze_device(transport), color=False, dump=True)
        text = "\n".join(lines)

        self.assertIn("=== Fetching BOS descriptor ===", text)
        self.assertIn("Raw BOS descriptor data:", text)
        self.assertIn("=== Fetching WebUSB URL ===", text)
        self.assertIn("INFO: url stalled (-9)", text)
        self.assertIn("Using vendor code: 0x02", text)
        self.assertIn("SUCCESS: MS OS 2.0 descriptor retrieved (30 bytes)", text)

    def test_without_hex_dump(self):
        transport = FakeTransport(bos=bos(msos20_cap()), msos20=msos20_set(compatible_id()))
        text = "\n".join(render_device_report(analyze_device(transport), color=False, dump=False))
        self.assertNotIn("Raw ", text)
        self.assertIn("INFO: No WebUSB capability found in BOS descriptor", text)


if __name__ == "__main__":
    unittest.main()
