"""One-shot telemetry queries backed by vcgencmd and standard Linux tools."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Sequence, TypeVar

from .models import CLOCKS, Clock, ClockReading, DiskUsageEntry, MemoryUsage
from .outcome import ErrorKind, Outcome
from .parsers import (
    match_clock_frequency,
    parse_clock_frequency,
    parse_cpu_usage,
    parse_disk_usage,
    parse_memory_usage,
    parse_temperature,
    parse_uptime,
    parse_voltage,
)
from .process import run_command
from .settings import ReaderSettings

T = TypeVar("T")

_LOG = logging.getLogger("rpistats.telemetry")

# Marker for "use the reader's configured timeout"; None means no deadline.
USE_SETTINGS: Any = object()


def clock_name(clock: Clock | str) -> str:
    """Validate ``clock`` against the fixed clock set and return its name."""
    return Clock(clock).value


class TelemetryReader:
    """Runs one external command per query and parses its output into an Outcome.

    Every method is a coroutine that never raises for launch, stderr, parse or
    timeout failures; those come back as failed outcomes.
    """

    def __init__(self, settings: ReaderSettings | None = None) -> None:
        self.settings = settings or ReaderSettings()

    def _deadline(self, timeout: float | None) -> float | None:
        return self.settings.timeout_s if timeout is USE_SETTINGS else timeout

    async def _query(
        self,
        metric: str,
        argv: Sequence[str],
        parse: Callable[[str], Outcome[T]],
        timeout: float | None,
    ) -> Outcome[T]:
        _LOG.debug("query %s: %s", metric, " ".join(argv), extra={"event": "query_start", "metric": metric})
        raw = await run_command(
            argv,
            timeout=self._deadline(timeout),
            grace_s=self.settings.reap_grace_s,
        )
        outcome: Outcome[T] = raw if raw.failed else parse(raw.value or "")  # type: ignore[assignment]
        if outcome.failed:
            _LOG.warning(
                "%s query failed: %s", metric, outcome.error, extra={"event": "query_failed", "metric": metric}
            )
        else:
            _LOG.debug("%s query done", metric, extra={"event": "query_done", "metric": metric})
        return outcome

    async def cpu_temperature(self, timeout: float | None = USE_SETTINGS) -> Outcome[float]:
        return await self._query("temperature", self.settings.commands.temperature, parse_temperature, timeout)

    async def voltage(self, timeout: float | None = USE_SETTINGS) -> Outcome[float]:
        return await self._query("voltage", self.settings.commands.voltage, parse_voltage, timeout)

    async def memory_usage(self, timeout: float | None = USE_SETTINGS) -> Outcome[MemoryUsage]:
        return await self._query("memory", self.settings.commands.memory, parse_memory_usage, timeout)

    async def disk_usage(self, timeout: float | None = USE_SETTINGS) -> Outcome[list[DiskUsageEntry]]:
        return await self._query("disk", self.settings.commands.disk, parse_disk_usage, timeout)

    async def clock_frequency(self, clock: Clock | str, timeout: float | None = USE_SETTINGS) -> Outcome[int]:
        name = clock_name(clock)
        return await self._query(
            f"clock {name}",
            (*self.settings.commands.clock, name),
            lambda text: parse_clock_frequency(text, name),
            timeout,
        )

    async def clock_frequencies(
        self,
        clocks: Iterable[Clock | str] = CLOCKS,
        timeout: float | None = USE_SETTINGS,
    ) -> Outcome[list[ClockReading]]:
        """Measure every clock concurrently.

        A clock whose command fails, writes to stderr or prints something
        unexpected gets a ``None`` frequency; the batch as a whole only fails
        when there is nothing to measure. Readings are listed in the order the
        commands finished.
        """
        names = [clock_name(c) for c in clocks]
        if not names:
            return Outcome.fail("no clocks to measure", ErrorKind.PARSE)

        deadline = self._deadline(timeout)
        readings: list[ClockReading] = []

        async def measure(name: str) -> None:
            raw = await run_command(
                (*self.settings.commands.clock, name),
                timeout=deadline,
                grace_s=self.settings.reap_grace_s,
                wait_for_exit=True,
            )
            frequency = None if raw.failed else match_clock_frequency(raw.value or "")
            if frequency is None:
                _LOG.info(
                    "clock %s unavailable: %s",
                    name,
                    raw.error or "unexpected output",
                    extra={"event": "clock_missing", "metric": f"clock {name}"},
                )
            readings.append(ClockReading(clock=name, frequency=frequency))

        _LOG.debug("query clocks: %s", ",".join(names), extra={"event": "query_start", "metric": "clocks"})
        await asyncio.gather(*(measure(name) for name in names))
        return Outcome.ok(readings)

    async def cpu_usage(self, timeout: float | None = USE_SETTINGS) -> Outcome[float]:
        # The configured deadline counts from the end of sampling; an explicit timeout is taken as given.
        if timeout is USE_SETTINGS and self.settings.timeout_s is not None:
            timeout = self.settings.timeout_s + self.settings.cpu_sampling_s
        return await self._query("cpu usage", self.settings.commands.cpu_usage, parse_cpu_usage, timeout)

    async def uptime(self, timeout: float | None = USE_SETTINGS) -> Outcome[int]:
        return await self._query("uptime", self.settings.commands.uptime, parse_uptime, timeout)
