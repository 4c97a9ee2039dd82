import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from webusb_analyzer.config import CONFIG_ENV_VAR, AnalyzerConfig, load_config


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, text):
        path = self.dir / "analyzer.yaml"
        path.write_text(text)
        return path

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config()
        self.assertEqual(config, AnalyzerConfig())
        self.assertEqual(config.timeout_ms, 5000)
        self.assertEqual(config.buffer_size, 512)
        self.assertEqual(config.ms_os_20_vendor_code, 0x02)

    def test_yaml_file(self):
        path = self.write("timeout_ms: 1000\nms_os_20_vendor_code: 0x21\ncolor: false\n")
        config = load_config(path)
        self.assertEqual(config.timeout_ms, 1000)
        self.assertEqual(config.ms_os_20_vendor_code, 0x21)
        self.assertFalse(config.color)
        self.assertTrue(config.hex_dump)

    def test_environment_variable(self):
        path = self.write("buffer_size: 1024\n")
        with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
            self.assertEqual(load_config().buffer_size, 1024)

    def test_missing_file(self):
        self.assertEqual(load_config(self.dir / "absent.yaml"), AnalyzerConfig())

    def test_invalid_values_fall_back_to_defaults(self):
        path = self.write("ms_os_20_vendor_code: 300\n")
        with self.assertLogs("webusb_analyzer.config", level="ERROR"):
            self.assertEqual(load_config(path), AnalyzerConfig())

    def test_malformed_yaml_falls_back_to_defaults(self):
        path = self.write("timeout_ms: [1, 2\n")
        with self.assertLogs("webusb_analyzer.config", level="ERROR"):
            self.assertEqual(load_config(path), AnalyzerConfig())

    def test_empty_file(self):
        self.assertEqual(load_config(self.write("")), AnalyzerConfig())


if __name__ == "__main__":
    unittest.main()
