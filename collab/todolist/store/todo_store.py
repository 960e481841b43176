"""
Shared to-do list store.

The ToDoListStore owns one EntryLedger per entry id and the banned-author
set. Commands are routed to the ledger of their entry; queries recompute
every ledger's snapshot against one read of the banned set.

Invariants:
    - No command raises; an unknown entry id creates its ledger
    - Ledgers are never destroyed; removal is a visibility update
    - Ban and unban never touch a ledger
    - count() and iterate() agree for the same banned set and history
    - An entry is visible only with resolved visibility True and a
      non-empty resolved name

How to change safely:
    - Keep reading the banned set once per query pass
    - Do not cache snapshots across ban/unban without keying on the
      banned-set version
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional

from ..ledger import Entry, EntryLedger, EntryState
from .banned import BannedAuthors

logger = logging.getLogger(__name__)


class ToDoListStore:
    """Multi-author to-do list converging under out-of-order commands.

    Thread safety:
        Ledger creation is serialized by a store lock; appends use the
        ledgers' per-field locks. Queries snapshot the ledger map and the
        banned set before resolving entries.

    Example:
        >>> store = ToDoListStore()
        >>> store.add_entry(1, author=10, name="Buy milk", timestamp=10)
        >>> store.mark_done(1, author=20, timestamp=20)
        >>> store.count()
        1
        >>> store.remove_entry(1, author=10, timestamp=30)
        >>> store.count()
        0
    """

    def __init__(
        self,
        banned_authors: Iterable[int] = (),
        dedupe_updates: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            banned_authors: Authors banned from the start
            dedupe_updates: Suppress identical updates recorded twice
        """
        self.dedupe_updates = dedupe_updates
        self._ledgers: Dict[int, EntryLedger] = {}
        self._banned = BannedAuthors(banned_authors)
        self._lock = threading.Lock()

    def _ledger(self, entry_id: int) -> EntryLedger:
        """Resolve the ledger for an entry, creating it on first reference."""
        ledger = self._ledgers.get(entry_id)
        if ledger is not None:
            return ledger
        with self._lock:
            ledger = self._ledgers.get(entry_id)
            if ledger is None:
                ledger = EntryLedger(entry_id, dedupe=self.dedupe_updates)
                self._ledgers[entry_id] = ledger
                logger.debug("Ledger created", extra={"entry_id": entry_id})
        return ledger

    # Commands

    def add_entry(self, entry_id: int, author: int, name: Optional[str], timestamp: int) -> None:
        """Create or rename an entry and make it visible."""
        ledger = self._ledger(entry_id)
        ledger.record_name(author, timestamp, name)
        ledger.record_visibility(author, timestamp, True)
        logger.debug(
            "add_entry recorded",
            extra={"entry_id": entry_id, "author": author, "timestamp": timestamp},
        )

    def remove_entry(self, entry_id: int, author: int, timestamp: int) -> None:
        """Hide an entry. Name and state history are retained."""
        self._ledger(entry_id).record_visibility(author, timestamp, False)
        logger.debug(
            "remove_entry recorded",
            extra={"entry_id": entry_id, "author": author, "timestamp": timestamp},
        )

    def mark_done(self, entry_id: int, author: int, timestamp: int) -> None:
        """Record a DONE state update."""
        self._ledger(entry_id).record_state(author, timestamp, EntryState.DONE)
        logger.debug(
            "mark_done recorded",
            extra={"entry_id": entry_id, "author": author, "timestamp": timestamp},
        )

    def mark_undone(self, entry_id: int, author: int, timestamp: int) -> None:
        """Record an UNDONE state update."""
        self._ledger(entry_id).record_state(author, timestamp, EntryState.UNDONE)
        logger.debug(
            "mark_undone recorded",
            extra={"entry_id": entry_id, "author": author, "timestamp": timestamp},
        )

    def dismiss_user(self, author: int) -> None:
        """Ban an author; their updates stop contributing to the view."""
        self._banned.dismiss(author)

    def allow_user(self, author: int) -> None:
        """Lift a ban; the author's updates contribute again."""
        self._banned.allow(author)

    # Queries

    def _visible(self, excluded: FrozenSet[int]) -> List[Entry]:
        with self._lock:
            ledgers = list(self._ledgers.values())
        entries = []
        for ledger in ledgers:
            entry = ledger.snapshot(excluded)
            if entry is not None and entry.name:
                entries.append(entry)
        return entries

    def count(self) -> int:
        """Number of currently visible entries."""
        return len(self._visible(self._banned.current()))

    def iterate(self) -> List[Entry]:
        """Currently visible entries, in no particular order."""
        return self._visible(self._banned.current())

    def get_entry(self, entry_id: int) -> Optional[Entry]:
        """Visible entry for an id, or None if hidden, unnamed or unknown."""
        ledger = self._ledgers.get(entry_id)
        if ledger is None:
            return None
        entry = ledger.snapshot(self._banned.current())
        if entry is None or not entry.name:
            return None
        return entry

    def get_ledger(self, entry_id: int) -> Optional[EntryLedger]:
        """Raw ledger for an id, without creating it."""
        return self._ledgers.get(entry_id)

    @property
    def banned_authors(self) -> FrozenSet[int]:
        """Currently banned authors."""
        return self._banned.current()

    @property
    def ledger_count(self) -> int:
        """Number of ledgers, phantom and hidden entries included."""
        return len(self._ledgers)

    @property
    def stats(self) -> dict[str, Any]:
        """Get store statistics."""
        return {
            "ledgers": self.ledger_count,
            "visible": self.count(),
            "banned_authors": len(self._banned),
            "ban_version": self._banned.version,
        }

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.iterate())
