"""
Banned-author set with copy-on-write reads.

Invariants:
    - current() returns an immutable frozenset; a reader never observes a
      half-applied ban
    - dismiss/allow are idempotent
    - version increases only when membership actually changes
"""

from __future__ import annotations

import logging
import threading
from typing import FrozenSet, Iterable

logger = logging.getLogger(__name__)


class BannedAuthors:
    """Set of banned author ids, replaced wholesale on every change.

    Thread safety:
        Writers serialize on a lock and publish a new frozenset. Readers
        take the current reference without locking.
    """

    def __init__(self, initial: Iterable[int] = ()) -> None:
        self._authors: FrozenSet[int] = frozenset(initial)
        self._version = 0
        self._lock = threading.Lock()

    def current(self) -> FrozenSet[int]:
        """Immutable view of the banned authors at this instant."""
        return self._authors

    @property
    def version(self) -> int:
        """Number of effective membership changes so far."""
        return self._version

    def dismiss(self, author: int) -> bool:
        """Ban an author.

        Returns:
            True if the author was not banned before
        """
        with self._lock:
            if author in self._authors:
                return False
            self._authors = self._authors | {author}
            self._version += 1
        logger.info("Author dismissed", extra={"author": author})
        return True

    def allow(self, author: int) -> bool:
        """Lift a ban.

        Returns:
            True if the author was banned before
        """
        with self._lock:
            if author not in self._authors:
                return False
            self._authors = self._authors - {author}
            self._version += 1
        logger.info("Author allowed", extra={"author": author})
        return True

    def __contains__(self, author: object) -> bool:
        return author in self._authors

    def __len__(self) -> int:
        return len(self._authors)
