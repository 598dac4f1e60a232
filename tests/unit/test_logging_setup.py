import json
import logging
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from rpistats_core.logging_setup import JsonFormatter, configure_logging


class JsonFormatterTests(unittest.TestCase):
    def test_extra_fields(self):
        record = logging.LogRecord("rpistats.telemetry", logging.WARNING, __file__, 1, "uptime query failed", None, None)
        record.event = "query_failed"
        record.metric = "uptime"
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["level"], "WARNING")
        self.assertEqual(payload["event"], "query_failed")
        self.assertEqual(payload["metric"], "uptime")
        self.assertNotIn("exc", payload)


def _reset_logger():
    logger = logging.getLogger("rpistats")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self):
        _reset_logger()

    def test_child_logger_writes_json_lines(self):
        with tempfile.TemporaryDirectory() as tmp:
            logger = configure_logging(console=False, level="DEBUG", directory=Path(tmp))
            self.assertIs(configure_logging(directory=Path(tmp)), logger)

            logging.getLogger("rpistats.telemetry").warning(
                "temperature query failed", extra={"event": "query_failed", "metric": "temperature"}
            )
            for handler in logger.handlers:
                handler.flush()

            lines = (Path(tmp) / "rpistats.log").read_text(encoding="utf-8").splitlines()
            rows = [json.loads(line) for line in lines]
            failed = [row for row in rows if row.get("event") == "query_failed"]
            self.assertEqual(len(failed), 1)
            self.assertEqual(failed[0]["logger"], "rpistats.telemetry")
            self.assertEqual(failed[0]["metric"], "temperature")
            _reset_logger()


if __name__ == "__main__":
    unittest.main()
