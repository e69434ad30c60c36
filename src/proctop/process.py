"""A single tracked process and its CPU rate computation."""

import logging
import time
from collections.abc import Callable

from proctop.identity import IdentityCache
from proctop.models import CpuMark, ProcessRow
from proctop.procfs import STARTTIME_FIELD, UTIME_FIELD, ProcFS

logger = logging.getLogger(__name__)

UNKNOWN = "-"


class ProcessSample:
    """
    One running process.

    The immutable facts (start time, command line, owner) are read once at
    construction. Every read tolerates the process having exited already and
    falls back to a placeholder value; the next reconciliation drops the pid.

    CPU utilization is a rate: each measurement is compared against the
    previous one, stored as a :class:`CpuMark`. The first measurement compares
    against the process start, giving the average over its lifetime so far.
    """

    __slots__ = (
        "pid",
        "start_time",
        "command_line",
        "owner_id",
        "owner_name",
        "mark",
        "_procfs",
        "_clock",
    )

    def __init__(
        self,
        pid: int,
        boot_time: float,
        identity_cache: IdentityCache,
        procfs: ProcFS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the ProcessSample.

        Args:
            pid: Process id.
            boot_time: System boot time in epoch seconds.
            identity_cache: Resolves the owner's uid to a user name.
            procfs: Source of the process details.
            clock: Returns the current time in epoch seconds.
        """
        self.pid = pid
        self._procfs = procfs
        self._clock = clock
        self.start_time = self._fetch_start_time(boot_time)
        self.command_line = self._fetch_command_line()
        self.owner_id, self.owner_name = self._fetch_owner(identity_cache)
        self.mark = CpuMark(consumed_ms=0, measured_at=self.start_time)

    def __repr__(self) -> str:
        return f"ProcessSample(pid={self.pid}, owner={self.owner_name!r}, command={self.command_line!r})"

    def _fetch_start_time(self, boot_time: float) -> float:
        values = self._procfs.process_stat_field(self.pid, STARTTIME_FIELD)
        if values is None:
            return boot_time
        return boot_time + values[0] / self._procfs.tick_rate

    def _fetch_command_line(self) -> str:
        return self._procfs.process_cmdline(self.pid) or UNKNOWN

    def _fetch_owner(self, identity_cache: IdentityCache) -> tuple[int | None, str]:
        status = self._procfs.process_status(self.pid)
        if status is None or "Uid" not in status:
            return None, UNKNOWN
        try:
            # Real, effective, saved and filesystem uid; the first one owns it.
            uid = int(status["Uid"].split()[0])
        except (IndexError, ValueError):
            logger.debug("Malformed Uid line for pid %d: %r", self.pid, status["Uid"])
            return None, UNKNOWN
        name = identity_cache.fetch_name(uid)
        return uid, name if name is not None else f"UID({uid})"

    @property
    def last_cpu_time_consumed_ms(self) -> int:
        return self.mark.consumed_ms

    @property
    def last_measured_at(self) -> float:
        return self.mark.measured_at

    @property
    def user(self) -> str:
        return self.owner_name

    @property
    def command(self) -> str:
        return self.command_line

    def uptime(self) -> int:
        """Return how long the process has been running, in whole seconds."""
        return max(int(self._clock() - self.start_time), 0)

    def cpu_utilization(self) -> float:
        """
        Return the fraction of one CPU used since the previous measurement.

        Time spent by reaped children is included. Returns 0.0 when the process
        has just started, when its stat file is gone, or when no wall-clock time
        elapsed since the previous measurement.
        """
        if self.uptime() == 0:
            return 0.0

        ticks = self._procfs.process_stat_field(self.pid, UTIME_FIELD, count=4)
        if ticks is None:
            return 0.0
        measured_at = self._clock()
        # utime + stime + cutime + cstime
        consumed_ms = 1000 * sum(ticks) // self._procfs.tick_rate

        delta_wallclock_ms = (measured_at - self.mark.measured_at) * 1000
        if delta_wallclock_ms <= 0:
            return 0.0
        delta_consumed = consumed_ms - self.mark.consumed_ms

        self.mark = CpuMark(consumed_ms=consumed_ms, measured_at=measured_at)
        return min(max(delta_consumed / delta_wallclock_ms, 0.0), 1.0)

    def ram(self) -> str:
        """Return the virtual memory size as ``"<N> MB"``, or ``"-"`` if unknown."""
        status = self._procfs.process_status(self.pid)
        if status is None or "VmSize" not in status:
            return UNKNOWN
        try:
            size_kb = int(status["VmSize"].split()[0])
        except (IndexError, ValueError):
            return UNKNOWN
        return f"{size_kb // 1024} MB"

    def row(self) -> ProcessRow:
        """Measure the process once and return its display row."""
        return ProcessRow(
            pid=self.pid,
            user=self.owner_name,
            cpu_utilization=self.cpu_utilization(),
            ram=self.ram(),
            uptime_seconds=self.uptime(),
            command=self.command_line,
        )

    @property
    def sort_key(self) -> tuple[int, int]:
        """
        Ascending sort key: higher owner ids first, then higher pids first.

        Regular users have higher uids than system accounts, and recently
        launched processes have higher pids. Unknown owners come last.
        """
        owner = self.owner_id if self.owner_id is not None else -1
        return (-owner, -self.pid)

    def __lt__(self, other: "ProcessSample") -> bool:
        return self.sort_key < other.sort_key
