"""System monitoring engine for proctop."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from proctop.identity import IdentityCache
from proctop.models import SystemReport
from proctop.process import ProcessSample
from proctop.processor import ProcessorSample
from proctop.procfs import ProcFS, read_os_name

logger = logging.getLogger(__name__)


class SystemSnapshot:
    """
    The monitored system: aggregate CPU, memory, and the tracked processes.

    Boot time, kernel version and OS name are read once at construction; any
    failure there raises a :class:`~proctop.errors.ProcSourceError`, since
    nothing else can be shown without them.

    Processes are kept across polls. Their CPU rate depends on the previous
    measurement, so :meth:`processes` only adds samples for new pids and drops
    samples for exited ones instead of rebuilding the collection.

    Not thread-safe: polling and rendering are expected to run on one thread.
    """

    def __init__(
        self,
        procfs: ProcFS | None = None,
        identity_cache: IdentityCache | None = None,
        os_release_path: str | Path = "/etc/os-release",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the SystemSnapshot.

        Args:
            procfs: Reader for the proc tree. Defaults to ``/proc``.
            identity_cache: Resolves process owners. Defaults to /etc/passwd.
            os_release_path: File holding the OS ``PRETTY_NAME``.
            clock: Returns the current time in epoch seconds.
        """
        self._procfs = procfs if procfs is not None else ProcFS()
        self._clock = clock
        self.identity_cache = identity_cache if identity_cache is not None else IdentityCache()
        self.cpu = ProcessorSample(self._procfs)
        self.boot_time = self._procfs.boot_time()
        self.kernel_version = self._procfs.kernel_version()
        self.os_name = read_os_name(os_release_path)
        self._samples: dict[int, ProcessSample] = {}
        self._processes: list[ProcessSample] = []

    @property
    def kernel(self) -> str:
        return self.kernel_version

    @property
    def operating_system(self) -> str:
        return self.os_name

    def processes(self) -> list[ProcessSample]:
        """
        Reconcile the tracked processes with the live ones and return them sorted.

        The same list object is returned on every call. Samples for pids that
        are still alive are left untouched, so their CPU measurement state
        carries over to the next poll.
        """
        live_pids = self._procfs.pids()
        previous_pids = set(self._samples)

        to_add = live_pids - previous_pids
        to_remove = previous_pids - live_pids

        if to_remove:
            for pid in to_remove:
                del self._samples[pid]
            self._processes[:] = [sample for sample in self._processes if sample.pid not in to_remove]

        for pid in sorted(to_add):
            sample = ProcessSample(pid, self.boot_time, self.identity_cache, self._procfs, clock=self._clock)
            self._samples[pid] = sample
            self._processes.append(sample)

        self._processes.sort()
        if to_add or to_remove:
            logger.debug(
                "Reconciled processes: %d added, %d removed, %d tracked",
                len(to_add),
                len(to_remove),
                len(self._processes),
            )
        return self._processes

    def memory_utilization(self) -> float:
        """
        Return the fraction of memory in use.

        Buffers and page cache count as used: this is ``1 - MemFree/MemTotal``.
        """
        total_kb = self._procfs.meminfo_kb("MemTotal")
        free_kb = self._procfs.meminfo_kb("MemFree")
        if total_kb <= 0:
            return 0.0
        return (total_kb - free_kb) / total_kb

    def uptime(self) -> int:
        """Return the seconds elapsed since boot."""
        return max(int(self._clock() - self.boot_time), 0)

    def total_processes(self) -> int:
        """Return the number of processes created since boot."""
        return self._procfs.system_counter("processes")

    def running_processes(self) -> int:
        """Return the number of processes currently runnable."""
        return self._procfs.system_counter("procs_running")

    def poll(self, limit: int | None = None) -> SystemReport:
        """
        Collect one refresh tick for the display layer.

        Args:
            limit: Only measure and report the first ``limit`` processes in
                display order. ``None`` reports all of them.
        """
        processes = self.processes()
        shown = processes if limit is None else processes[:limit]
        return SystemReport(
            os_name=self.os_name,
            kernel=self.kernel_version,
            cpu_utilization=self.cpu.utilization(),
            memory_utilization=self.memory_utilization(),
            total_processes=self.total_processes(),
            running_processes=self.running_processes(),
            uptime_seconds=self.uptime(),
            processes=[sample.row() for sample in shown],
        )
