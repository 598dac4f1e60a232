"""CLI entrypoints for one-shot telemetry queries."""

from __future__ import annotations

import argparse
import asyncio
import json
import threading
from pathlib import Path
from typing import Any, Awaitable, Callable

from rpistats_core import load_config, reader_settings
from rpistats_core.logging_setup import configure_logging, install_crash_hooks
from rpistats_telemetry import CLOCKS, Clock, Outcome, TelemetryReader, USE_SETTINGS, api

AsyncQuery = Callable[[TelemetryReader, Any], Awaitable[Outcome[Any]]]
CallbackQuery = Callable[[TelemetryReader, Any, Callable[[Outcome[Any]], None]], object]
Starter = Callable[[Callable[[Outcome[Any]], None]], object]

# metric name -> (coroutine form, callback form)
METRICS: dict[str, tuple[AsyncQuery, CallbackQuery]] = {
    "temperature": (
        lambda r, t: api.get_cpu_temperature_async(t, r),
        lambda r, t, h: api.get_cpu_temperature(h, t, r),
    ),
    "voltage": (
        lambda r, t: api.get_voltage_async(t, r),
        lambda r, t, h: api.get_voltage(h, t, r),
    ),
    "memory": (
        lambda r, t: api.get_memory_usage_async(t, r),
        lambda r, t, h: api.get_memory_usage(h, t, r),
    ),
    "disk": (
        lambda r, t: api.get_disk_usage_async(t, r),
        lambda r, t, h: api.get_disk_usage(h, t, r),
    ),
    "clocks": (
        lambda r, t: api.get_clock_frequencies_async(CLOCKS, t, r),
        lambda r, t, h: api.get_clock_frequencies(h, CLOCKS, t, r),
    ),
    "cpu-usage": (
        lambda r, t: api.get_cpu_usage_async(t, r),
        lambda r, t, h: api.get_cpu_usage(h, t, r),
    ),
    "uptime": (
        lambda r, t: api.get_uptime_async(t, r),
        lambda r, t, h: api.get_uptime(h, t, r),
    ),
}


# Every subcommand build_parser registers.
COMMANDS = frozenset([*METRICS, "clock", "all"])


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _timeout(value: str) -> float | None:
    if value.lower() in ("none", "off"):
        return None
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value}") from exc
    if seconds < 0:
        raise argparse.ArgumentTypeError("timeout must not be negative")
    return seconds


def _wait_for_callbacks(starters: dict[str, Starter]) -> dict[str, Outcome[Any]]:
    results: dict[str, Outcome[Any]] = {}
    lock = threading.Lock()
    done = threading.Event()

    def _handler_for(name: str) -> Callable[[Outcome[Any]], None]:
        def _handler(outcome: Outcome[Any]) -> None:
            with lock:
                results[name] = outcome
                if len(results) == len(starters):
                    done.set()

        return _handler

    for name, start in starters.items():
        start(_handler_for(name))
    done.wait()
    return results


async def _gather(queries: dict[str, Awaitable[Outcome[Any]]]) -> dict[str, Outcome[Any]]:
    outcomes = await asyncio.gather(*queries.values())
    return dict(zip(queries.keys(), outcomes))


def _run(args: argparse.Namespace, names: list[str], clock: str | None = None) -> int:
    reader = TelemetryReader(args.settings)
    timeout = args.timeout

    if args.callback:
        starters: dict[str, Starter] = {
            name: (lambda h, n=name: METRICS[n][1](reader, timeout, h)) for name in names
        }
        if clock is not None:
            starters[f"clock:{clock}"] = lambda h: api.get_clock_frequency(clock, h, timeout, reader)
        results = _wait_for_callbacks(starters)
    else:
        queries: dict[str, Awaitable[Outcome[Any]]] = {name: METRICS[name][0](reader, timeout) for name in names}
        if clock is not None:
            queries[f"clock:{clock}"] = api.get_clock_frequency_async(clock, timeout, reader)
        results = asyncio.run(_gather(queries))

    payload = {name: outcome.to_dict() for name, outcome in results.items()}
    _print_json(payload if len(payload) > 1 else next(iter(payload.values())))
    return 0 if all(outcome.succeeded for outcome in results.values()) else 1


def cmd_metric(args: argparse.Namespace) -> int:
    return _run(args, [args.command])


def cmd_clock(args: argparse.Namespace) -> int:
    return _run(args, [], clock=args.name)


def cmd_all(args: argparse.Namespace) -> int:
    return _run(args, list(METRICS))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rpistats", description="Raspberry Pi telemetry queries")
    parser.add_argument("--config", default=None, help="Optional path to a settings file")
    parser.add_argument(
        "--timeout",
        type=_timeout,
        default=USE_SETTINGS,
        help="Per-query deadline in seconds, or 'none' to wait forever",
    )
    parser.add_argument("--callback", action="store_true", help="Use the callback API instead of awaiting")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("temperature", "CPU temperature in degrees C"),
        ("voltage", "Core voltage in volts"),
        ("memory", "Memory usage as reported by free"),
        ("disk", "Disk usage per mounted filesystem"),
        ("clocks", "Frequency of every known clock"),
        ("cpu-usage", "Average CPU usage in percent"),
        ("uptime", "Uptime in milliseconds"),
    ):
        metric_cmd = sub.add_parser(name, help=help_text)
        metric_cmd.set_defaults(func=cmd_metric)

    clock_cmd = sub.add_parser("clock", help="Frequency of a single clock")
    clock_cmd.add_argument("name", choices=[c.value for c in Clock])
    clock_cmd.set_defaults(func=cmd_clock)

    all_cmd = sub.add_parser("all", help="Run every query once")
    all_cmd.set_defaults(func=cmd_all)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config(Path(args.config).expanduser() if args.config else None)
    configure_logging(keep_files=cfg.logging.keep_log_files, console=cfg.logging.console, level=cfg.logging.level)
    install_crash_hooks()
    args.settings = reader_settings(cfg)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
