"""Runtime settings for proctop."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "PROCTOP_"
MIN_POLL_RATE = 0.1
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class Settings:
    """Settings resolved from defaults, environment variables and the command line."""

    poll_rate: float = 1.0  # seconds between refreshes
    limit: int = 20  # processes shown
    proc_root: str = "/proc"
    passwd_path: str = "/etc/passwd"
    os_release_path: str = "/etc/os-release"
    log_level: str = "WARNING"
    log_file: str | None = None

    def __post_init__(self) -> None:
        self.poll_rate = max(MIN_POLL_RATE, self.poll_rate)
        self.limit = max(1, self.limit)
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {self.log_level!r}, expected one of {', '.join(LOG_LEVELS)}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from ``PROCTOP_*`` environment variables.

        Args:
            environ: Environment to read. Defaults to ``os.environ``.

        Raises:
            ValueError: A numeric variable does not hold a number, or the
                log level is unknown.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}

        def number(name: str, kind: type) -> None:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                return
            try:
                values[name] = kind(raw)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}{name.upper()} must be a number, got {raw!r}") from exc

        number("poll_rate", float)
        number("limit", int)
        for name, env_name in (
            ("proc_root", "PROC_ROOT"),
            ("passwd_path", "PASSWD"),
            ("os_release_path", "OS_RELEASE"),
            ("log_level", "LOG_LEVEL"),
            ("log_file", "LOG_FILE"),
        ):
            raw = environ.get(ENV_PREFIX + env_name)
            if raw:
                values[name] = raw
        level = str(values.get("log_level", "WARNING")).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
        return cls(**values)
