"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Clock(str, Enum):
    ARM = "arm"
    CORE = "core"
    H264 = "h264"
    ISP = "isp"
    V3D = "v3d"
    UART = "uart"
    PWM = "pwm"
    EMMC = "emmc"
    PIXEL = "pixel"
    VEC = "vec"
    HDMI = "hdmi"
    DPI = "dpi"


CLOCKS: tuple[Clock, ...] = tuple(Clock)


@dataclass(frozen=True)
class MemoryUsage:
    total: float
    used: float
    free: float
    shared: float
    buff_cache: float
    available: float


@dataclass(frozen=True)
class DiskUsageEntry:
    filesystem: str
    one_k_blocks: float
    used: float
    available: float
    use_percentage: float
    mounted_on: str


@dataclass(frozen=True)
class ClockReading:
    clock: str
    frequency: int | None
