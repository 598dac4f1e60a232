"""Raspberry Pi system telemetry read from vcgencmd and standard Linux tools."""

from .api import (
    default_reader,
    get_clock_frequencies,
    get_clock_frequencies_async,
    get_clock_frequency,
    get_clock_frequency_async,
    get_cpu_temperature,
    get_cpu_temperature_async,
    get_cpu_usage,
    get_cpu_usage_async,
    get_disk_usage,
    get_disk_usage_async,
    get_memory_usage,
    get_memory_usage_async,
    get_uptime,
    get_uptime_async,
    get_voltage,
    get_voltage_async,
)
from .callbacks import deliver
from .models import CLOCKS, Clock, ClockReading, DiskUsageEntry, MemoryUsage
from .outcome import ErrorKind, Outcome, TelemetryError
from .reader import USE_SETTINGS, TelemetryReader, clock_name
from .settings import CommandSet, ReaderSettings, cpu_usage_pipeline

__all__ = [
    "CLOCKS",
    "Clock",
    "ClockReading",
    "CommandSet",
    "DiskUsageEntry",
    "ErrorKind",
    "MemoryUsage",
    "Outcome",
    "ReaderSettings",
    "TelemetryError",
    "TelemetryReader",
    "USE_SETTINGS",
    "clock_name",
    "cpu_usage_pipeline",
    "default_reader",
    "deliver",
    "get_clock_frequencies",
    "get_clock_frequencies_async",
    "get_clock_frequency",
    "get_clock_frequency_async",
    "get_cpu_temperature",
    "get_cpu_temperature_async",
    "get_cpu_usage",
    "get_cpu_usage_async",
    "get_disk_usage",
    "get_disk_usage_async",
    "get_memory_usage",
    "get_memory_usage_async",
    "get_uptime",
    "get_uptime_async",
    "get_voltage",
    "get_voltage_async",
]
