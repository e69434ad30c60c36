"""Data models for proctop."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CpuCounters:
    """Cumulative aggregate CPU tick counters from the first line of /proc/stat."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    @property
    def active(self) -> int:
        """Ticks spent doing work (guest time is already part of user time)."""
        return self.user + self.nice + self.system + self.irq + self.softirq + self.steal

    @property
    def idle_total(self) -> int:
        """Ticks spent idle, including time waiting on I/O."""
        return self.idle + self.iowait

    @property
    def total(self) -> int:
        return self.active + self.idle_total


@dataclass(slots=True, frozen=True)
class CpuMark:
    """Last CPU measurement of a process: consumed CPU time and when it was read."""

    consumed_ms: int
    measured_at: float  # epoch seconds


@dataclass(slots=True, frozen=True)
class ProcessRow:
    """Immutable display row for one process."""

    pid: int
    user: str
    cpu_utilization: float  # 0.0 - 1.0
    ram: str  # "<N> MB" or "-"
    uptime_seconds: int
    command: str


@dataclass(slots=True, frozen=True)
class SystemReport:
    """Everything the display layer needs for one refresh tick."""

    os_name: str
    kernel: str
    cpu_utilization: float  # 0.0 - 1.0
    memory_utilization: float  # 0.0 - 1.0
    total_processes: int
    running_processes: int
    uptime_seconds: int
    processes: list[ProcessRow]
