"""Key/value parsing for kernel and system info text files."""

from pathlib import Path

from proctop.errors import SourceUnavailableError, UnexpectedFormatError


def read_key_value_pairs(path: str | Path, separator: str) -> dict[str, str]:
    """
    Read a text file made of ``<key><separator><value>`` lines.

    Each line is split at the first occurrence of the separator. Values are
    returned untouched, so callers strip padding themselves. Blank lines and
    ``#`` comments are skipped; a later duplicate key wins.

    Args:
        path: File to read.
        separator: Delimiter between key and value (e.g. ``":"``, ``"="``, ``" "``).

    Raises:
        SourceUnavailableError: The file could not be opened.
        UnexpectedFormatError: A line does not contain the separator.
    """
    try:
        with open(path, encoding="utf-8") as source:
            lines = source.read().splitlines()
    except OSError as exc:
        raise SourceUnavailableError(path) from exc

    pairs: dict[str, str] = {}
    for line in lines:
        if not line.strip() or line.startswith("#"):
            continue
        key, found, value = line.partition(separator)
        if not found:
            raise UnexpectedFormatError(
                f"Could not find the separator {separator!r} in the line {line!r} of file {path}."
            )
        pairs[key] = value
    return pairs


def strip_quotes(value: str) -> str:
    """Remove every single and double quote character from a value."""
    return value.replace('"', "").replace("'", "")
