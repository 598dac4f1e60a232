import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from rpistats_core.config import AppConfig, load_config, reader_settings, save_config
from rpistats_telemetry.settings import UPTIME_PROGRAM


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "missing.json"
            cfg = load_config(path)
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.commands.vcgencmd, "/usr/bin/vcgencmd")
            self.assertEqual(cfg.queries.timeout_s, 10.0)
            self.assertEqual(cfg.cpu_sampling.samples, 10)

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.commands.vcgencmd = "/opt/vc/bin/vcgencmd"
            cfg.queries.timeout_s = None
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.commands.vcgencmd, "/opt/vc/bin/vcgencmd")
            self.assertIsNone(reloaded.queries.timeout_s)

    def test_normalizes_out_of_range_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "config_version": 2,
                "cpu_sampling": {"samples": 0, "interval_s": 60},
                "queries": {"timeout_s": 0, "reap_grace_s": -1},
                "logging": {"level": "chatty", "keep_log_files": 0},
                "commands": {"free": "free -k", "df": [], "shell": ""},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.cpu_sampling.samples, 1)
            self.assertEqual(cfg.cpu_sampling.interval_s, 5.0)
            self.assertEqual(cfg.queries.timeout_s, 0.1)
            self.assertEqual(cfg.queries.reap_grace_s, 0.0)
            self.assertEqual(cfg.logging.level, "INFO")
            self.assertEqual(cfg.logging.keep_log_files, 2)
            self.assertEqual(cfg.commands.free, ["free", "-k"])
            self.assertEqual(cfg.commands.df, ["df"])
            self.assertEqual(cfg.commands.shell, "bash")

    def test_migrate_v1_shape(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            old = {"vcgencmd": "/opt/vc/bin/vcgencmd", "timeout_ms": 2500}
            path.write_text(json.dumps(old), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.config_version, 2)
            self.assertEqual(cfg.commands.vcgencmd, "/opt/vc/bin/vcgencmd")
            self.assertEqual(cfg.queries.timeout_s, 2.5)

    def _load_raw(self, raw: dict) -> AppConfig:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps(raw), encoding="utf-8")
            return load_config(path)

    def test_wrong_typed_sampling_values_use_defaults(self):
        cfg = self._load_raw({"config_version": 2, "cpu_sampling": {"samples": "ten", "interval_s": [1]}})
        self.assertEqual(cfg.cpu_sampling.samples, 10)
        self.assertEqual(cfg.cpu_sampling.interval_s, 0.1)

    def test_wrong_typed_query_values_use_defaults(self):
        cfg = self._load_raw({"config_version": 2, "queries": {"timeout_s": "soon", "reap_grace_s": {}}})
        self.assertEqual(cfg.queries.timeout_s, 10.0)
        self.assertEqual(cfg.queries.reap_grace_s, 1.0)

    def test_wrong_typed_logging_values_use_defaults(self):
        cfg = self._load_raw({"config_version": 2, "logging": {"keep_log_files": None, "console": "yes"}})
        self.assertEqual(cfg.logging.keep_log_files, 7)
        self.assertTrue(cfg.logging.console)

    def test_wrong_typed_version_and_sections(self):
        cfg = self._load_raw({"config_version": "two", "commands": "nope", "timeout_ms": "fast"})
        self.assertEqual(cfg.config_version, 2)
        self.assertEqual(cfg.commands.vcgencmd, "/usr/bin/vcgencmd")
        self.assertEqual(cfg.queries.timeout_s, 10.0)

    def test_reader_settings_carries_sampling_duration(self):
        cfg = AppConfig()
        cfg.cpu_sampling.samples = 15
        cfg.cpu_sampling.interval_s = 1.0
        self.assertEqual(reader_settings(cfg).cpu_sampling_s, 15.0)

    def test_reader_settings(self):
        cfg = AppConfig()
        cfg.commands.vcgencmd = "/opt/vc/bin/vcgencmd"
        cfg.cpu_sampling.samples = 3
        cfg.queries.timeout_s = 4.0
        settings = reader_settings(cfg)
        self.assertEqual(settings.commands.temperature, ("/opt/vc/bin/vcgencmd", "measure_temp"))
        self.assertEqual(settings.commands.clock, ("/opt/vc/bin/vcgencmd", "measure_clock"))
        self.assertIn("top -bn3", settings.commands.cpu_usage[-1])
        self.assertEqual(settings.commands.uptime, ("awk", UPTIME_PROGRAM, "/proc/uptime"))
        self.assertEqual(settings.timeout_s, 4.0)


if __name__ == "__main__":
    unittest.main()
