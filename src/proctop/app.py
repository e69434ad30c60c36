"""proctop - Main Textual application."""

import argparse
import logging
import sys
from collections.abc import Sequence

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from proctop.config import LOG_LEVELS, Settings
from proctop.errors import ProcSourceError
from proctop.formatting import elapsed_time, format_fraction, progress_bar
from proctop.identity import IdentityCache
from proctop.models import ProcessRow, SystemReport
from proctop.monitor import SystemSnapshot
from proctop.procfs import ProcFS

logger = logging.getLogger(__name__)


class HeaderStats(Static):
    """Header widget showing system information, CPU and memory statistics."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._report: SystemReport | None = None

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_system_info(), id="system-info"),
            Static(self._get_usage_info(), id="usage-info"),
        )

    def update_stats(self, report: SystemReport) -> None:
        """Update the statistics from a system report."""
        self._report = report
        if not self.is_mounted:
            return
        self.query_one("#system-info", Static).update(self._get_system_info())
        self.query_one("#usage-info", Static).update(self._get_usage_info())

    def _get_system_info(self) -> str:
        """Get OS, kernel and process count display."""
        report = self._report
        if report is None:
            return "Loading system info..."
        return (
            f"OS: {report.os_name}\n"
            f"Kernel: {report.kernel}\n"
            f"Total Processes: {report.total_processes}\n"
            f"Running Processes: {report.running_processes}\n"
            f"Up Time: {elapsed_time(report.uptime_seconds)}"
        )

    def _get_usage_info(self) -> str:
        """Get CPU and memory bar display."""
        report = self._report
        if report is None:
            return "Loading CPU info..."
        return (
            f"CPU {progress_bar(report.cpu_utilization)}\n"
            f"Mem {progress_bar(report.memory_utilization, color='cyan')}"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: list[int] = []

    @property
    def pids(self) -> list[int]:
        """Pids currently shown, in display order."""
        return list(self._current_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("USER", key="user", width=10)
        table.add_column("CPU%", key="cpu", width=8)
        table.add_column("RAM", key="ram", width=9)
        table.add_column("TIME+", key="time", width=10)
        table.add_column("Command", key="command")

    def update_processes(self, processes: list[ProcessRow]) -> None:
        """
        Update the process table with new rows.

        While the pids and their order are unchanged, cells are updated in
        place; otherwise the table is refilled in the new order.
        """
        table = self.query_one("#process-table", DataTable)
        new_pids = [row.pid for row in processes]

        if new_pids == self._current_pids:
            for row in processes:
                self._update_row(table, row)
            return

        table.clear()
        for row in processes:
            table.add_row(*self._cells(row), key=str(row.pid))
        self._current_pids = new_pids

    @staticmethod
    def _cells(row: ProcessRow) -> tuple[str, ...]:
        return (
            str(row.pid),
            row.user[:10],
            format_fraction(row.cpu_utilization),
            row.ram,
            elapsed_time(row.uptime_seconds),
            row.command[:50],
        )

    def _update_row(self, table: DataTable, row: ProcessRow) -> None:
        """Update an existing row using update_cell for performance."""
        row_key = str(row.pid)
        for column, value in zip(("pid", "user", "cpu", "ram", "time", "command"), self._cells(row)):
            table.update_cell(row_key, column, value)


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Linux Process Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 7;
    }

    Horizontal {
        height: auto;
    }

    #system-info {
        width: 1fr;
        padding-right: 2;
    }

    #usage-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(self, system: SystemSnapshot, settings: Settings | None = None) -> None:
        """
        Initialize the ProctopApp.

        Args:
            system: The monitored system, polled on every refresh tick.
            settings: Poll rate and process limit. Defaults to ``Settings()``.
        """
        super().__init__()
        self._system = system
        self._settings = settings if settings is not None else Settings()
        self._last_report: SystemReport | None = None

    @property
    def last_report(self) -> SystemReport | None:
        """The report rendered on the latest tick."""
        return self._last_report

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Render the first tick once the widgets are mounted and schedule the following ones."""
        self.call_after_refresh(self._refresh_stats)
        self.set_interval(self._settings.poll_rate, self._refresh_stats)

    def _refresh_stats(self) -> None:
        """Poll the system inline and refresh the UI."""
        try:
            report = self._system.poll(limit=self._settings.limit)
        except ProcSourceError as exc:
            logger.error("Stopping: %s", exc)
            self.exit(return_code=1, message=f"proctop: {exc}")
            return
        self._last_report = report
        self.query_one("#header-stats", HeaderStats).update_stats(report)
        self.query_one(ProcessTable).update_processes(report.processes)

    def action_refresh(self) -> None:
        """Handle refresh action - poll immediately."""
        self._refresh_stats()

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()


def configure_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """
    Configure the ``proctop`` logger.

    Records go to ``log_file`` when one is given. Otherwise they are dropped,
    since anything written to the terminal would corrupt the UI.
    """
    package_logger = logging.getLogger("proctop")
    package_logger.setLevel(level)
    for old_handler in list(package_logger.handlers):
        package_logger.removeHandler(old_handler)
        old_handler.close()
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler = logging.NullHandler()
    package_logger.addHandler(handler)
    package_logger.propagate = False


def parse_args(argv: Sequence[str] | None = None, defaults: Settings | None = None) -> Settings:
    """Parse command line arguments on top of ``defaults`` (environment settings)."""
    defaults = defaults if defaults is not None else Settings()
    parser = argparse.ArgumentParser(prog="proctop", description="Interactive Linux process monitor.")
    parser.add_argument(
        "-d", "--delay", dest="poll_rate", type=float, default=defaults.poll_rate,
        help="seconds between refreshes (default: %(default)s)",
    )
    parser.add_argument(
        "-n", "--limit", type=int, default=defaults.limit,
        help="number of processes to show (default: %(default)s)",
    )
    parser.add_argument("--proc-root", default=defaults.proc_root, help="proc filesystem mount point")
    parser.add_argument("--passwd", dest="passwd_path", default=defaults.passwd_path, help="passwd database")
    parser.add_argument(
        "--os-release", dest="os_release_path", default=defaults.os_release_path, help="os-release file"
    )
    parser.add_argument(
        "--log-level", default=defaults.log_level,
        choices=LOG_LEVELS, type=str.upper,
    )
    parser.add_argument("--log-file", default=defaults.log_file, help="write logs to this file")
    return Settings(**vars(parser.parse_args(argv)))


def build_system(settings: Settings) -> SystemSnapshot:
    """Create the monitored system from settings. Raises ProcSourceError on failure."""
    return SystemSnapshot(
        procfs=ProcFS(settings.proc_root),
        identity_cache=IdentityCache.from_passwd(settings.passwd_path),
        os_release_path=settings.os_release_path,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for proctop application."""
    try:
        settings = parse_args(argv, Settings.from_env())
    except ValueError as exc:
        sys.exit(f"proctop: {exc}")
    configure_logging(settings.log_level, settings.log_file)

    try:
        system = build_system(settings)
    except ProcSourceError as exc:
        logger.error("Could not start: %s", exc)
        sys.exit(f"proctop: {exc}")

    app = ProctopApp(system, settings)
    app.run()
    if app.return_code:
        sys.exit(app.return_code)


if __name__ == "__main__":
    main()
