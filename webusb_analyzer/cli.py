"""
Command line entry point.

    webusb-analyzer [-d] [-c CONFIG] VID:PID
    webusb-analyzer [-d] [-c CONFIG] VID PID
    webusb-analyzer [-d] [-c CONFIG] [--bos FILE] [--msos20 FILE] [--url FILE]
"""

from __future__ import annotations
import logging
import os
import sys
from pathlib import Path

from .analyzer import analyze_device
from .config import load_config
from .dumps import FileTransport
from .errors import TransportError
from .report import render_device_report

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

FILE_OPTIONS = {"--bos": "bos", "--msos20": "msos20", "--url": "url"}


class UsageError(Exception):
    pass


def usage(prog):
    return ("Usage: {0} [-d] [-c CONFIG] VID:PID\n"
            "       {0} [-d] [-c CONFIG] VID PID\n"
            "       {0} [-d] [-c CONFIG] [--bos FILE] [--msos20 FILE] [--url FILE]\n"
            "Example: {0} 0x361d:0x0202".format(prog))


def parse_id(text, what):
    """Parse a VID or PID given in hex (0x prefix) or decimal."""
    try:
        value = int(text, 0)
    except ValueError:
        raise UsageError("Invalid {} '{}' (must be a valid hex or decimal number)".format(what, text))
    if value <= 0 or value > 0xFFFF:
        raise UsageError("Invalid {} '{}' (must be between 1 and 0xFFFF)".format(what, text))
    return value


def parse_args(argv):
    """Returns a dict with ``debug``, ``config``, ``vid``, ``pid`` and ``files``."""
    args = {"debug": False, "config": None, "vid": None, "pid": None, "files": {}}
    positional = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "-d":
            args["debug"] = True
        elif arg == "-c" or arg in FILE_OPTIONS:
            if i + 1 >= len(argv):
                raise UsageError("{} needs a file argument".format(arg))
            i += 1
            if arg == "-c":
                args["config"] = Path(argv[i])
            else:
                args["files"][FILE_OPTIONS[arg]] = Path(argv[i])
        elif arg.startswith("-"):
            raise UsageError("Unknown option {}".format(arg))
        else:
            positional.append(arg)
        i += 1

    if args["files"]:
        if positional:
            raise UsageError("Dump files and a device ID cannot be combined")
        return args

    if len(positional) == 1 and ":" in positional[0]:
        vid, pid = positional[0].split(":", 1)
    elif len(positional) == 2:
        vid, pid = positional
    else:
        raise UsageError("Expected VID:PID, VID PID, or dump files")

    # bare hex like 361d:0202 is what lsusb prints
    if ":" in positional[0] and not vid.lower().startswith("0x"):
        vid, pid = "0x" + vid, "0x" + pid
    args["vid"] = parse_id(vid, "VID")
    args["pid"] = parse_id(pid, "PID")
    return args


def run(args, out=None):
    out = out or sys.stdout
    config = load_config(args["config"])

    if args["files"]:
        report = analyze_device(FileTransport(**args["files"]), config)
    else:
        # libusb binds its native backend at import time
        from .transport import LibusbTransport
        print("Looking for USB device {:04x}:{:04x}".format(args["vid"], args["pid"]), file=out)
        try:
            with LibusbTransport(args["vid"], args["pid"], config) as transport:
                report = analyze_device(transport, config)
        except TransportError as e:
            print("ERROR: {}".format(e), file=out)
            print("  {}".format(e.hint), file=out)
            return EXIT_FAILED

    color = config.color and getattr(out, "isatty", lambda: False)()
    for line in render_device_report(report, color=color, dump=config.hex_dump):
        print(line, file=out)
    return EXIT_OK if report.ok else EXIT_FAILED


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    prog = os.path.basename(sys.argv[0]) or "webusb-analyzer"
    try:
        args = parse_args(argv)
    except UsageError as e:
        print(str(e), file=sys.stderr)
        print(usage(prog), file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(
        level=logging.DEBUG if args["debug"] else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    if args["debug"]:
        os.environ["LIBUSB_DEBUG"] = "4"  # usb.LIBUSB_LOG_LEVEL_DEBUG

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
