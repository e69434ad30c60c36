"""Aggregate CPU utilization from the kernel's cumulative tick counters."""

import logging

from proctop.procfs import ProcFS

logger = logging.getLogger(__name__)


class ProcessorSample:
    """
    Aggregate CPU of the system.

    Keeps the counters seen on the previous query so each query reports the
    utilization since the last one. The first query reports the average since
    boot, because the previous counters start at zero.
    """

    def __init__(self, procfs: ProcFS) -> None:
        self._procfs = procfs
        self.previous_total_ticks = 0
        self.previous_idle_ticks = 0
        self._last_utilization = 0.0

    def utilization(self) -> float:
        """
        Return the fraction of CPU time spent working since the previous call.

        When no tick elapsed since the previous call the stored counters are
        kept and the previous result is returned again.

        Raises:
            SourceUnavailableError: The CPU accounting source could not be opened.
            UnexpectedFormatError: Its first line does not have the expected layout.
        """
        counters = self._procfs.cpu_counters()
        total = counters.total
        idle = counters.idle_total

        delta_total = total - self.previous_total_ticks
        delta_idle = idle - self.previous_idle_ticks
        if delta_total <= 0:
            logger.debug("No CPU ticks elapsed since the previous poll")
            return self._last_utilization

        self.previous_total_ticks = total
        self.previous_idle_ticks = idle

        usage = (delta_total - delta_idle) / delta_total
        self._last_utilization = min(max(usage, 0.0), 1.0)
        return self._last_utilization
