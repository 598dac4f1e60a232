"""Module-level query functions in callback and coroutine form.

``get_<metric>(handler)`` returns immediately and calls ``handler`` once with
the Outcome. ``get_<metric>_async()`` awaits the same Outcome. Both use the
default reader unless a ``reader`` is passed.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from .callbacks import Handler, QueryHandle, deliver
from .models import CLOCKS, Clock, ClockReading, DiskUsageEntry, MemoryUsage
from .outcome import Outcome
from .reader import USE_SETTINGS, TelemetryReader, clock_name


@lru_cache(maxsize=1)
def default_reader() -> TelemetryReader:
    return TelemetryReader()


def _pick(reader: TelemetryReader | None) -> TelemetryReader:
    return reader or default_reader()


async def get_cpu_temperature_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[float]:
    return await _pick(reader).cpu_temperature(timeout=timeout)


def get_cpu_temperature(
    handler: Handler[float], timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> QueryHandle:
    return deliver(lambda: get_cpu_temperature_async(timeout, reader), handler)


async def get_voltage_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[float]:
    return await _pick(reader).voltage(timeout=timeout)


def get_voltage(
    handler: Handler[float], timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> QueryHandle:
    return deliver(lambda: get_voltage_async(timeout, reader), handler)


async def get_memory_usage_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[MemoryUsage]:
    return await _pick(reader).memory_usage(timeout=timeout)


def get_memory_usage(
    handler: Handler[MemoryUsage], timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> QueryHandle:
    return deliver(lambda: get_memory_usage_async(timeout, reader), handler)


async def get_disk_usage_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[list[DiskUsageEntry]]:
    return await _pick(reader).disk_usage(timeout=timeout)


def get_disk_usage(
    handler: Handler[list[DiskUsageEntry]],
    timeout: float | None = USE_SETTINGS,
    reader: TelemetryReader | None = None,
) -> QueryHandle:
    return deliver(lambda: get_disk_usage_async(timeout, reader), handler)


async def get_clock_frequency_async(
    clock: Clock | str, timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[int]:
    return await _pick(reader).clock_frequency(clock, timeout=timeout)


def get_clock_frequency(
    clock: Clock | str,
    handler: Handler[int],
    timeout: float | None = USE_SETTINGS,
    reader: TelemetryReader | None = None,
) -> QueryHandle:
    # Reject unknown clocks here, before anything is scheduled.
    name = clock_name(clock)
    return deliver(lambda: get_clock_frequency_async(name, timeout, reader), handler)


async def get_clock_frequencies_async(
    clocks: Iterable[Clock | str] = CLOCKS,
    timeout: float | None = USE_SETTINGS,
    reader: TelemetryReader | None = None,
) -> Outcome[list[ClockReading]]:
    return await _pick(reader).clock_frequencies(clocks, timeout=timeout)


def get_clock_frequencies(
    handler: Handler[list[ClockReading]],
    clocks: Iterable[Clock | str] = CLOCKS,
    timeout: float | None = USE_SETTINGS,
    reader: TelemetryReader | None = None,
) -> QueryHandle:
    names = [clock_name(c) for c in clocks]
    return deliver(lambda: get_clock_frequencies_async(names, timeout, reader), handler)


async def get_cpu_usage_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[float]:
    return await _pick(reader).cpu_usage(timeout=timeout)


def get_cpu_usage(
    handler: Handler[float], timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> QueryHandle:
    return deliver(lambda: get_cpu_usage_async(timeout, reader), handler)


async def get_uptime_async(
    timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> Outcome[int]:
    return await _pick(reader).uptime(timeout=timeout)


def get_uptime(
    handler: Handler[int], timeout: float | None = USE_SETTINGS, reader: TelemetryReader | None = None
) -> QueryHandle:
    return deliver(lambda: get_uptime_async(timeout, reader), handler)
