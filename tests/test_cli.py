import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from builders import bos, compatible_id, msos20_cap, msos20_set, webusb_cap
from webusb_analyzer import cli
from webusb_analyzer.config import CONFIG_ENV_VAR


class TestParseArgs(unittest.TestCase):
    def test_hex_with_prefix(self):
        args = cli.parse_args(["0x361d:0x0202"])
        self.assertEqual((args["vid"], args["pid"]), (0x361D, 0x0202))
        self.assertFalse(args["debug"])
        self.assertEqual(args["files"], {})

    def test_bare_hex_as_printed_by_lsusb(self):
        args = cli.parse_args(["361d:0202"])
        self.assertEqual((args["vid"], args["pid"]), (0x361D, 0x0202))

    def test_separate_decimal_ids(self):
        args = cli.parse_args(["13853", "514"])
        self.assertEqual((args["vid"], args["pid"]), (0x361D, 0x0202))

    def test_options(self):
        args = cli.parse_args(["-d", "-c", "analyzer.yaml", "0x1234:0x5678"])
        self.assertTrue(args["debug"])
        self.assertEqual(args["config"], Path("analyzer.yaml"))

    def test_dump_files(self):
        args = cli.parse_args(["--bos", "bos.bin", "--msos20", "set.bin"])
        self.assertEqual(args["files"], {"bos": Path("bos.bin"), "msos20": Path("set.bin")})
        self.assertIsNone(args["vid"])

    def test_usage_errors(self):
        for argv in ([], ["0:1"], ["0x1:0x10000"], ["zz:1"], ["1", "2", "3"], ["-x", "1:2"],
                     ["--bos"], ["--bos", "bos.bin", "1:2"], ["-c"]):
            with self.subTest(argv=argv):
                with self.assertRaises(cli.UsageError):
                    cli.parse_args(argv)


class TestRun(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.config = self.dir / "analyzer.yaml"
        self.config.write_text("hex_dump: false\n")

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, data):
        path = self.dir / name
        path.write_bytes(data)
        return path

    def _run(self, files):
        out = io.StringIO()
        args = {"debug": False, "config": self.config, "vid": None, "pid": None, "files": files}
        return cli.run(args, out), out.getvalue()

    def test_dump_files_ok(self):
        files = {
            "bos": self._write("bos.bin", bos(webusb_cap(), msos20_cap())),
            "msos20": self._write("set.bin", msos20_set(compatible_id())),
        }
        code, output = self._run(files)

        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn("=== BOS Descriptor Analysis ===", output)
        self.assertIn("=== MS OS 2.0 Descriptor Analysis ===", output)
        self.assertNotIn("Raw ", output)
        self.assertNotIn("\033[", output)

    def test_invalid_descriptor_fails(self):
        files = {"msos20": self._write("set.bin", b"\x0a\x00\x07\x00" + bytes(6))}
        code, output = self._run(files)

        self.assertEqual(code, cli.EXIT_FAILED)
        self.assertIn("ERROR: Unknown descriptor type 0x0007 (len=10)", output)

    def test_nothing_readable_fails(self):
        code, output = self._run({"bos": self.dir / "missing.bin"})
        self.assertEqual(code, cli.EXIT_FAILED)
        self.assertIn("Device may not support BOS descriptors", output)


class TestMain(unittest.TestCase):
    def test_usage_error_exit_code(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            self.assertEqual(cli.main(["--bogus"]), cli.EXIT_USAGE)
        self.assertIn("Unknown option --bogus", err.getvalue())
        self.assertIn("Usage:", err.getvalue())

    def test_debug_sets_libusb_log_level(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "set.bin"
            path.write_bytes(msos20_set(compatible_id()))
            with mock.patch.dict(os.environ, {}), mock.patch("sys.stdout", new_callable=io.StringIO) as out:
                os.environ.pop(CONFIG_ENV_VAR, None)
                code = cli.main(["-d", "--msos20", str(path)])
                self.assertEqual(os.environ.get("LIBUSB_DEBUG"), "4")

        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn("SUCCESS: MS OS 2.0 descriptor retrieved (30 bytes)", out.getvalue())


if __name__ == "__main__":
    unittest.main()
