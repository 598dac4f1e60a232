"""Command lines and query limits used by the telemetry reader."""

from __future__ import annotations

from dataclasses import dataclass, field

VCGENCMD = "/usr/bin/vcgencmd"
# printf keeps large products out of awk's exponent notation.
UPTIME_PROGRAM = '{ printf "%.0f\\n", $1 * 1000 }'


def cpu_usage_pipeline(samples: int = 10, interval_s: float = 0.1) -> str:
    # One "100 - idle" line per top iteration.
    return f"top -bn{samples} -d {interval_s} | grep 'Cpu(s)' | awk '{{ print 100 - $8 }}'"


@dataclass(frozen=True)
class CommandSet:
    temperature: tuple[str, ...] = (VCGENCMD, "measure_temp")
    voltage: tuple[str, ...] = (VCGENCMD, "measure_volts")
    memory: tuple[str, ...] = ("free",)
    disk: tuple[str, ...] = ("df",)
    # The clock name is appended as the last argument.
    clock: tuple[str, ...] = (VCGENCMD, "measure_clock")
    cpu_usage: tuple[str, ...] = ("bash", "-c", cpu_usage_pipeline())
    uptime: tuple[str, ...] = ("awk", UPTIME_PROGRAM, "/proc/uptime")

    @classmethod
    def build(
        cls,
        vcgencmd: str = VCGENCMD,
        free: tuple[str, ...] = ("free",),
        df: tuple[str, ...] = ("df",),
        shell: str = "bash",
        awk: str = "awk",
        uptime_file: str = "/proc/uptime",
        cpu_samples: int = 10,
        cpu_interval_s: float = 0.1,
    ) -> "CommandSet":
        return cls(
            temperature=(vcgencmd, "measure_temp"),
            voltage=(vcgencmd, "measure_volts"),
            memory=tuple(free),
            disk=tuple(df),
            clock=(vcgencmd, "measure_clock"),
            cpu_usage=(shell, "-c", cpu_usage_pipeline(cpu_samples, cpu_interval_s)),
            uptime=(awk, UPTIME_PROGRAM, uptime_file),
        )


@dataclass(frozen=True)
class ReaderSettings:
    commands: CommandSet = field(default_factory=CommandSet)
    # None waits forever for the first signal.
    timeout_s: float | None = 10.0
    reap_grace_s: float = 1.0
    # How long the cpu_usage command spends sampling (samples * interval).
    cpu_sampling_s: float = 1.0
