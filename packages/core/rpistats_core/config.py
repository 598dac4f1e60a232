"""Persistent settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from rpistats_telemetry import CommandSet, ReaderSettings


CONFIG_VERSION = 2


@dataclass
class CommandsConfig:
    vcgencmd: str = "/usr/bin/vcgencmd"
    free: list[str] = field(default_factory=lambda: ["free"])
    df: list[str] = field(default_factory=lambda: ["df"])
    shell: str = "bash"
    awk: str = "awk"
    uptime_file: str = "/proc/uptime"


@dataclass
class CpuSamplingConfig:
    samples: int = 10
    interval_s: float = 0.1


@dataclass
class QueriesConfig:
    timeout_s: float | None = 10.0
    reap_grace_s: float = 1.0


@dataclass
class LoggingConfig:
    keep_log_files: int = 7
    console: bool = True
    level: str = "INFO"


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    cpu_sampling: CpuSamplingConfig = field(default_factory=CpuSamplingConfig)
    queries: QueriesConfig = field(default_factory=QueriesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "rpistats"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "rpistats"
    return Path.home() / ".config" / "rpistats"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _argv(value: Any, fallback: list[str]) -> list[str]:
    if isinstance(value, str) and value.strip():
        return value.split()
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return list(value)
    return list(fallback)


def _normalize_commands(cfg: AppConfig) -> None:
    defaults = CommandsConfig()
    cfg.commands.free = _argv(cfg.commands.free, defaults.free)
    cfg.commands.df = _argv(cfg.commands.df, defaults.df)
    for name in ("vcgencmd", "shell", "awk", "uptime_file"):
        value = getattr(cfg.commands, name)
        if not isinstance(value, str) or not value.strip():
            setattr(cfg.commands, name, getattr(defaults, name))


def _number(value: Any, default: Any, cast: Callable[[Any], Any] = float) -> Any:
    # bool is an int subclass but never a sensible count or duration.
    if isinstance(value, bool):
        return default
    try:
        return cast(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _normalize_sampling(cfg: AppConfig) -> None:
    defaults = CpuSamplingConfig()
    samples = _number(cfg.cpu_sampling.samples, defaults.samples, int)
    interval_s = _number(cfg.cpu_sampling.interval_s, defaults.interval_s)
    cfg.cpu_sampling.samples = max(1, min(100, samples))
    cfg.cpu_sampling.interval_s = float(max(0.05, min(5.0, interval_s)))


def _normalize_queries(cfg: AppConfig) -> None:
    defaults = QueriesConfig()
    if cfg.queries.timeout_s is not None:
        cfg.queries.timeout_s = float(max(0.1, _number(cfg.queries.timeout_s, defaults.timeout_s)))
    grace_s = _number(cfg.queries.reap_grace_s, defaults.reap_grace_s)
    cfg.queries.reap_grace_s = float(max(0.0, min(30.0, grace_s)))


def _normalize_logging(cfg: AppConfig) -> None:
    cfg.logging.keep_log_files = max(2, _number(cfg.logging.keep_log_files, LoggingConfig().keep_log_files, int))
    level = str(cfg.logging.level).upper()
    cfg.logging.level = level if level in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"
    if not isinstance(cfg.logging.console, bool):
        cfg.logging.console = LoggingConfig().console


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = _number(raw.get("config_version", 1), 1, int)
    data = dict(raw)

    if version < 2:
        # v1 was a flat file of tool paths plus "timeout_ms".
        commands = data.get("commands")
        commands = dict(commands) if isinstance(commands, dict) else {}
        for key in ("vcgencmd", "free", "df", "shell", "awk", "uptime_file"):
            if key in data:
                commands.setdefault(key, data.pop(key))
        data["commands"] = commands
        if "timeout_ms" in data:
            timeout_ms = data.pop("timeout_ms")
            queries = data.get("queries")
            queries = dict(queries) if isinstance(queries, dict) else {}
            if timeout_ms is None:
                queries.setdefault("timeout_s", None)
            else:
                timeout_s = _number(timeout_ms, None)
                if timeout_s is not None:
                    queries.setdefault("timeout_s", timeout_s / 1000.0)
            data["queries"] = queries
    data["config_version"] = CONFIG_VERSION

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        commands=_merge(CommandsConfig, data.get("commands", {})),
        cpu_sampling=_merge(CpuSamplingConfig, data.get("cpu_sampling", {})),
        queries=_merge(QueriesConfig, data.get("queries", {})),
        logging=_merge(LoggingConfig, data.get("logging", {})),
    )

    _normalize_commands(cfg)
    _normalize_sampling(cfg)
    _normalize_queries(cfg)
    _normalize_logging(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path


def reader_settings(cfg: AppConfig) -> ReaderSettings:
    commands = CommandSet.build(
        vcgencmd=cfg.commands.vcgencmd,
        free=tuple(cfg.commands.free),
        df=tuple(cfg.commands.df),
        shell=cfg.commands.shell,
        awk=cfg.commands.awk,
        uptime_file=cfg.commands.uptime_file,
        cpu_samples=cfg.cpu_sampling.samples,
        cpu_interval_s=cfg.cpu_sampling.interval_s,
    )
    return ReaderSettings(
        commands=commands,
        timeout_s=cfg.queries.timeout_s,
        reap_grace_s=cfg.queries.reap_grace_s,
        cpu_sampling_s=cfg.cpu_sampling.samples * cfg.cpu_sampling.interval_s,
    )
