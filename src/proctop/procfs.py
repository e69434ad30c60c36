"""Readers for the Linux /proc filesystem and related system files.

System-wide readers raise :class:`~proctop.errors.ProcSourceError` subclasses,
since the monitor cannot work without them. Per-process readers return ``None``
instead: a process can exit between being listed and being inspected, and the
next poll drops it anyway.
"""

import logging
import os
from pathlib import Path

from proctop.errors import SourceUnavailableError, UnexpectedFormatError
from proctop.models import CpuCounters
from proctop.parser import read_key_value_pairs, strip_quotes

logger = logging.getLogger(__name__)

# Index of a /proc/<pid>/stat field in the list that follows the "(comm)" field.
# Field numbers are the 1-based ones from proc(5); the list starts at field 3.
_STAT_OFFSET = 3
UTIME_FIELD = 14
STARTTIME_FIELD = 22


def _default_tick_rate() -> int:
    return os.sysconf("SC_CLK_TCK")


def _parse_int(value: str, source: str, key: str) -> int:
    try:
        return int(value.split()[0])
    except (IndexError, ValueError) as exc:
        raise UnexpectedFormatError(f"Invalid value {value!r} for {key!r} in {source}.") from exc


def _lookup(pairs: dict[str, str], key: str, source: str) -> str:
    try:
        return pairs[key]
    except KeyError as exc:
        raise UnexpectedFormatError(f"Missing key {key!r} in {source}.") from exc


class ProcFS:
    """
    Access to a /proc tree.

    Every path is resolved against ``root`` so the whole monitor can run on a
    copy of the tree (tests build one under a temporary directory).
    """

    def __init__(self, root: str | Path = "/proc", tick_rate: int | None = None) -> None:
        """
        Initialize the ProcFS reader.

        Args:
            root: Mount point of the proc filesystem.
            tick_rate: Scheduler clock ticks per second. Defaults to the
                running kernel's ``SC_CLK_TCK``.
        """
        self.root = Path(root)
        self.tick_rate = tick_rate if tick_rate is not None else _default_tick_rate()

    def __repr__(self) -> str:
        return f"ProcFS(root={str(self.root)!r}, tick_rate={self.tick_rate})"

    # -- system-wide sources ---------------------------------------------

    def pids(self) -> set[int]:
        """Return the ids of the processes currently listed under the root."""
        try:
            entries = list(os.scandir(self.root))
        except OSError as exc:
            raise SourceUnavailableError(self.root) from exc
        pids: set[int] = set()
        for entry in entries:
            if not entry.name.isdigit():
                continue
            try:
                if entry.is_dir():
                    pids.add(int(entry.name))
            except OSError:
                # Vanished while scanning
                continue
        return pids

    def cpu_counters(self) -> CpuCounters:
        """
        Read the aggregate CPU counters from the first line of ``stat``.

        Raises:
            SourceUnavailableError: ``stat`` could not be opened.
            UnexpectedFormatError: The first line is not ``cpu`` + 10 integers.
        """
        path = self.root / "stat"
        try:
            with open(path, encoding="utf-8") as source:
                line = source.readline()
        except OSError as exc:
            raise SourceUnavailableError(path) from exc

        fields = line.split()
        if len(fields) < 11 or fields[0] != "cpu":
            raise UnexpectedFormatError(f"Could not read the cpu line from file {path}: {line!r}")
        try:
            values = [int(value) for value in fields[1:11]]
        except ValueError as exc:
            raise UnexpectedFormatError(f"Non-numeric cpu counters in file {path}: {line!r}") from exc
        return CpuCounters(*values)

    def system_counters(self) -> dict[str, str]:
        """Return the space-separated ``stat`` file as key/value pairs."""
        return read_key_value_pairs(self.root / "stat", " ")

    def system_counter(self, key: str) -> int:
        """Return one integer counter (``btime``, ``processes``...) from ``stat``."""
        source = str(self.root / "stat")
        return _parse_int(_lookup(self.system_counters(), key, source), source, key)

    def boot_time(self) -> float:
        """Return the boot time as epoch seconds."""
        return float(self.system_counter("btime"))

    def meminfo_kb(self, key: str) -> int:
        """Return one ``meminfo`` value in kB (e.g. ``MemTotal``)."""
        path = self.root / "meminfo"
        source = str(path)
        return _parse_int(_lookup(read_key_value_pairs(path, ":"), key, source), source, key)

    def kernel_version(self) -> str:
        """Return the kernel version, the third word of ``version``."""
        path = self.root / "version"
        try:
            with open(path, encoding="utf-8") as source:
                line = source.readline()
        except OSError as exc:
            raise SourceUnavailableError(path) from exc
        words = line.split()
        if len(words) < 3:
            raise UnexpectedFormatError(f"Error while trying to read kernel info from file: {path}")
        return words[2]

    # -- per-process sources ---------------------------------------------

    def _read_process_file(self, pid: int, name: str) -> str | None:
        path = self.root / str(pid) / name
        try:
            with open(path, encoding="utf-8", errors="replace") as source:
                return source.read()
        except OSError as exc:
            logger.debug("Could not read %s: %s", path, exc)
            return None

    def process_stat_fields(self, pid: int) -> list[str] | None:
        """
        Return the fields of ``<pid>/stat`` that follow the command name.

        The command name sits in parentheses and may itself contain spaces or
        parentheses, so the split happens after the last ``)``.
        """
        content = self._read_process_file(pid, "stat")
        if content is None:
            return None
        end_comm = content.rfind(")")
        if end_comm == -1:
            logger.debug("Malformed stat line for pid %d", pid)
            return None
        return content[end_comm + 1 :].split()

    def process_stat_field(self, pid: int, field: int, count: int = 1) -> list[int] | None:
        """
        Return ``count`` integer fields of ``<pid>/stat`` starting at ``field``.

        Args:
            pid: Process id.
            field: 1-based field number as listed in proc(5).
            count: Number of consecutive fields to return.
        """
        fields = self.process_stat_fields(pid)
        if fields is None:
            return None
        start = field - _STAT_OFFSET
        try:
            values = [int(value) for value in fields[start : start + count]]
        except ValueError:
            logger.debug("Non-numeric stat fields for pid %d", pid)
            return None
        if len(values) != count:
            logger.debug("Truncated stat line for pid %d", pid)
            return None
        return values

    def process_status(self, pid: int) -> dict[str, str] | None:
        """Return ``<pid>/status`` as a mapping of key to stripped value."""
        content = self._read_process_file(pid, "status")
        if content is None:
            return None
        status: dict[str, str] = {}
        for line in content.splitlines():
            key, found, value = line.partition(":")
            if found:
                status[key] = value.strip()
        return status

    def process_cmdline(self, pid: int) -> str | None:
        """Return the command line of a process, arguments joined by spaces."""
        content = self._read_process_file(pid, "cmdline")
        if content is None:
            return None
        return content.replace("\0", " ").strip()


def read_os_name(path: str | Path = "/etc/os-release") -> str:
    """
    Return the ``PRETTY_NAME`` of an os-release file, quotes removed.

    Raises:
        SourceUnavailableError: The file could not be opened.
        UnexpectedFormatError: A line is not ``key=value`` or ``PRETTY_NAME`` is missing.
    """
    pairs = read_key_value_pairs(path, "=")
    return strip_quotes(_lookup(pairs, "PRETTY_NAME", str(path)))
