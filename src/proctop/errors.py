"""Errors raised when a system-wide source cannot be used."""

from pathlib import Path


class ProcSourceError(Exception):
    """A source the whole snapshot depends on is missing or malformed."""


class SourceUnavailableError(ProcSourceError):
    """The named file or directory could not be opened."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"Could not open file: {path}")
        self.path = str(path)


class UnexpectedFormatError(ProcSourceError):
    """The source was opened but its content did not have the expected shape."""
