"""Text scanners for the output of vcgencmd, free, df, top and /proc/uptime."""

from __future__ import annotations

import re

from .models import DiskUsageEntry, MemoryUsage
from .outcome import ErrorKind, Outcome

_NUMBER = r"(-?\d+(?:\.\d+)?)"
TEMPERATURE_RE = re.compile(r"temp=" + _NUMBER + r"'C")
VOLTAGE_RE = re.compile(r"volt=" + _NUMBER + r"V")
CLOCK_RE = re.compile(r"frequency\((\d+)\)=(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")
# Hz. Longer digit runs are rejected before int() sees them.
_MAX_FREQUENCY_DIGITS = 18


def _tokens(line: str) -> list[str]:
    return _WHITESPACE_RE.sub(" ", line.strip()).split(" ")


def _parse_labelled(text: str, pattern: re.Pattern[str], metric: str) -> Outcome[float]:
    match = pattern.search(text)
    if not match:
        return Outcome.fail(f"failed to parse {metric}", ErrorKind.PARSE)
    return Outcome.ok(float(match.group(1)))


def parse_temperature(text: str) -> Outcome[float]:
    """``temp=42.8'C`` -> 42.8"""
    return _parse_labelled(text, TEMPERATURE_RE, "temperature")


def parse_voltage(text: str) -> Outcome[float]:
    """``volt=0.8600V`` -> 0.86"""
    return _parse_labelled(text, VOLTAGE_RE, "voltage")


def parse_memory_usage(text: str) -> Outcome[MemoryUsage]:
    lines = text.split("\n")
    if len(lines) < 2 or not lines[1].strip():
        return Outcome.fail("unable to parse memory usage", ErrorKind.PARSE)

    # Row label ("Mem:") comes first.
    fields = _tokens(lines[1])[1:7]
    if len(fields) < 6:
        return Outcome.fail("unable to parse memory usage", ErrorKind.PARSE)
    try:
        total, used, free, shared, buff_cache, available = (float(f) for f in fields)
    except ValueError:
        return Outcome.fail("unable to parse memory usage", ErrorKind.PARSE)
    return Outcome.ok(
        MemoryUsage(
            total=total,
            used=used,
            free=free,
            shared=shared,
            buff_cache=buff_cache,
            available=available,
        )
    )


def _disk_entry(line: str) -> DiskUsageEntry:
    parts = line.split(None, 5)
    if len(parts) < 6:
        raise ValueError(f"expected 6 fields, got {len(parts)}")
    filesystem, blocks, used, available, percent, mounted_on = parts
    return DiskUsageEntry(
        filesystem=filesystem,
        one_k_blocks=float(blocks),
        used=float(used),
        available=float(available),
        use_percentage=float(percent.rstrip("%")),
        mounted_on=mounted_on.strip(),
    )


def parse_disk_usage(text: str) -> Outcome[list[DiskUsageEntry]]:
    """Parse ``df`` output, one entry per row after the header.

    The text may be the first chunk of a longer listing, so an unterminated
    last row that does not parse is dropped once earlier rows have parsed.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    truncated = bool(lines) and not text.endswith("\n")
    entries: list[DiskUsageEntry] = []
    for index, line in enumerate(lines[1:], start=1):
        try:
            entries.append(_disk_entry(line))
        except ValueError as exc:
            if truncated and entries and index == len(lines) - 1:
                break
            return Outcome.fail(f"unable to parse disk usage: {exc}", ErrorKind.PARSE)

    if not entries:
        return Outcome.fail("no disk usage data found", ErrorKind.PARSE)
    return Outcome.ok(entries)


def match_clock_frequency(text: str) -> int | None:
    match = CLOCK_RE.search(text)
    if not match or len(match.group(2)) > _MAX_FREQUENCY_DIGITS:
        return None
    return int(match.group(2))


def parse_clock_frequency(text: str, clock: str) -> Outcome[int]:
    frequency = match_clock_frequency(text)
    if frequency is None:
        return Outcome.fail(f"failed to parse {clock} clock frequency", ErrorKind.PARSE)
    return Outcome.ok(frequency)


def parse_cpu_usage(text: str) -> Outcome[float]:
    """Average one percentage per line, as emitted by the sampling pipeline."""
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        return Outcome.fail("no CPU usage data retrieved", ErrorKind.PARSE)
    try:
        samples = [float(line) for line in lines]
    except ValueError:
        return Outcome.fail("failed to parse CPU usage", ErrorKind.PARSE)
    return Outcome.ok(sum(samples) / len(samples))


def parse_uptime(text: str) -> Outcome[int]:
    try:
        return Outcome.ok(int(text.strip()))
    except ValueError:
        return Outcome.fail("failed to parse uptime", ErrorKind.PARSE)
