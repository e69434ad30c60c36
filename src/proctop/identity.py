"""User id to user name resolution backed by the passwd database."""

import logging
from collections.abc import Callable
from functools import partial
from pathlib import Path

from proctop.errors import SourceUnavailableError, UnexpectedFormatError

logger = logging.getLogger(__name__)


def load_passwd(path: str | Path = "/etc/passwd") -> dict[int, str]:
    """
    Build the uid -> user name mapping from a passwd file.

    Records are colon-delimited; the first field is the name and the third
    the numeric uid. Blank lines are skipped.

    Raises:
        SourceUnavailableError: The file could not be opened.
        UnexpectedFormatError: A record has too few fields or a non-numeric uid.
    """
    try:
        with open(path, encoding="utf-8") as passwd:
            lines = passwd.read().splitlines()
    except OSError as exc:
        raise SourceUnavailableError(path) from exc

    uid_to_name: dict[int, str] = {}
    for line in lines:
        if not line.strip():
            continue
        fields = line.split(":")
        if len(fields) < 3:
            raise UnexpectedFormatError(f"Malformed record {line!r} in file {path}.")
        try:
            uid = int(fields[2])
        except ValueError as exc:
            raise UnexpectedFormatError(f"Invalid uid {fields[2]!r} in file {path}.") from exc
        uid_to_name[uid] = fields[0]
    return uid_to_name


class IdentityCache:
    """
    Cache of uid -> user name that resyncs in full on a miss.

    The mapping is only ever replaced wholesale, so a lookup result always
    comes from one complete read of the database and never from a mix of
    old and new records.
    """

    def __init__(self, load: Callable[[], dict[int, str]] | None = None) -> None:
        """
        Initialize the cache with one full load.

        Args:
            load: Returns the complete mapping. Defaults to reading /etc/passwd.
        """
        self._load = load if load is not None else partial(load_passwd, "/etc/passwd")
        self.mapping: dict[int, str] = self._load()
        self.rebuild_count = 0

    @classmethod
    def from_passwd(cls, path: str | Path) -> "IdentityCache":
        """Create a cache backed by the given passwd file."""
        return cls(partial(load_passwd, path))

    def rebuild(self) -> None:
        """Replace the mapping with a fresh full load."""
        self.mapping = self._load()
        self.rebuild_count += 1
        logger.info("Rebuilt identity cache with %d entries", len(self.mapping))

    def fetch_name(self, uid: int) -> str | None:
        """
        Return the name for ``uid``, or ``None`` if it no longer exists.

        A miss triggers exactly one rebuild before giving up.
        """
        name = self.mapping.get(uid)
        if name is not None:
            return name
        self.rebuild()
        return self.mapping.get(uid)
