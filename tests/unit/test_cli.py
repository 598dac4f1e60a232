import contextlib
import io
import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "cli"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from rpistats_app.cli import _run, build_parser
from rpistats_telemetry import USE_SETTINGS, CommandSet, ReaderSettings


def _settings() -> ReaderSettings:
    py = sys.executable
    return ReaderSettings(
        commands=CommandSet(
            temperature=(py, "-c", "print(\"temp=48.3'C\")"),
            uptime=(py, "-c", "print('oops')"),
            clock=(py, "-c", "print('frequency(48)=1500000000')"),
        ),
        timeout_s=10.0,
        reap_grace_s=0.5,
    )


def _invoke(argv: list[str], names: list[str], clock: str | None = None) -> tuple[int, object]:
    args = build_parser().parse_args(argv)
    args.settings = _settings()
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        rc = _run(args, names, clock=clock)
    return rc, json.loads(out.getvalue())


class CliParserTests(unittest.TestCase):
    def test_metric_command(self):
        args = build_parser().parse_args(["temperature"])
        self.assertEqual(args.command, "temperature")
        self.assertIs(args.timeout, USE_SETTINGS)
        self.assertFalse(args.callback)

    def test_clock_command(self):
        args = build_parser().parse_args(["--timeout", "2.5", "clock", "arm"])
        self.assertEqual(args.command, "clock")
        self.assertEqual(args.name, "arm")
        self.assertEqual(args.timeout, 2.5)

    def test_timeout_none(self):
        args = build_parser().parse_args(["--timeout", "none", "uptime"])
        self.assertIsNone(args.timeout)

    def test_unknown_clock_rejected(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["clock", "gpu"])


class CliRunTests(unittest.TestCase):
    def test_success_prints_outcome(self):
        rc, payload = _invoke(["temperature"], ["temperature"])
        self.assertEqual(rc, 0)
        self.assertEqual(payload, {"value": 48.3, "error": None, "kind": None})

    def test_failure_sets_exit_code(self):
        rc, payload = _invoke(["uptime"], ["uptime"])
        self.assertEqual(rc, 1)
        self.assertEqual(payload["error"], "failed to parse uptime")
        self.assertEqual(payload["kind"], "parse")

    def test_callback_mode(self):
        rc, payload = _invoke(["--callback", "clock", "arm"], [], clock="arm")
        self.assertEqual(rc, 0)
        self.assertEqual(payload["value"], 1500000000)

    def test_several_metrics_keyed_by_name(self):
        rc, payload = _invoke(["--callback", "all"], ["temperature", "uptime"])
        self.assertEqual(rc, 1)
        self.assertEqual(set(payload), {"temperature", "uptime"})
        self.assertEqual(payload["temperature"]["value"], 48.3)


if __name__ == "__main__":
    unittest.main()
