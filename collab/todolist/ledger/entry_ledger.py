"""
Per-entry append-only update ledger.

An EntryLedger holds the complete history of one to-do entry as three
independent ordered collections (name, state, visibility). The visible
entry is never stored; it is recomputed by snapshot() from the history
and the set of excluded (banned) authors.

Invariants:
    - Updates are never removed or mutated; history only grows
    - Each collection stays sorted by its MergeRule sort key
    - snapshot() is a pure function of the history and its argument
    - The ledger never references its owning store

How to change safely:
    - Keep appends under the per-collection lock
    - snapshot() must read the excluded set exactly once per call; callers
      pass an immutable set for that reason
"""

from __future__ import annotations

import bisect
import threading
from typing import AbstractSet, Generic, Iterator, List, Optional, TypeVar

from .merge_rules import NAME_RULE, STATE_RULE, VISIBILITY_RULE, MergeRule
from .updates import Entry, EntryState, Update

T = TypeVar("T")


class _UpdateLog(Generic[T]):
    """Sorted, append-only list of updates for a single field."""

    def __init__(self, rule: MergeRule[T], dedupe: bool = True) -> None:
        self.rule = rule
        self.dedupe = dedupe
        self._updates: List[Update[T]] = []
        self._lock = threading.Lock()

    def add(self, update: Update[T]) -> bool:
        """Insert an update at its ordered position.

        Returns:
            False if dedupe is on and an identical update was already present
        """
        key = self.rule.sort_key
        with self._lock:
            if self.dedupe:
                pos = bisect.bisect_left(self._updates, key(update), key=key)
                if pos < len(self._updates) and self._updates[pos] == update:
                    return False
            bisect.insort(self._updates, update, key=key)
            return True

    def latest(self, excluded: AbstractSet[int]) -> Optional[Update[T]]:
        """Maximal update whose author is not excluded."""
        with self._lock:
            updates = list(self._updates)
        for update in reversed(updates):
            if update.author not in excluded:
                return update
        return None

    def __len__(self) -> int:
        return len(self._updates)

    def __iter__(self) -> Iterator[Update[T]]:
        with self._lock:
            return iter(list(self._updates))


class EntryLedger:
    """Append-only history of one entry with ban-aware snapshots.

    Thread safety:
        Each field collection has its own lock, so concurrent appends to
        different fields never contend. snapshot() copies each collection
        under its lock before resolving it.

    Example:
        >>> ledger = EntryLedger(1)
        >>> ledger.record_name(author=7, timestamp=10, text="Buy milk")
        True
        >>> ledger.record_visibility(author=7, timestamp=10, visible=True)
        True
        >>> ledger.snapshot(frozenset())
        Entry(id=1, name='Buy milk', state=<EntryState.UNDONE: 'undone'>)
        >>> ledger.snapshot(frozenset({7})) is None
        True
    """

    def __init__(self, entry_id: int, dedupe: bool = True) -> None:
        self.entry_id = entry_id
        self._names: _UpdateLog[Optional[str]] = _UpdateLog(NAME_RULE, dedupe)
        self._states: _UpdateLog[EntryState] = _UpdateLog(STATE_RULE, dedupe)
        self._visibility: _UpdateLog[bool] = _UpdateLog(VISIBILITY_RULE, dedupe)

    def record_name(self, author: int, timestamp: int, text: Optional[str]) -> bool:
        """Record a name update. Returns False for a suppressed duplicate."""
        return self._names.add(Update(author, timestamp, text))

    def record_state(self, author: int, timestamp: int, state: EntryState) -> bool:
        """Record a completion state update."""
        return self._states.add(Update(author, timestamp, state))

    def record_visibility(self, author: int, timestamp: int, visible: bool) -> bool:
        """Record a visibility update (False means removed)."""
        return self._visibility.add(Update(author, timestamp, visible))

    def snapshot(self, excluded_authors: AbstractSet[int]) -> Optional[Entry]:
        """Resolve the visible entry ignoring updates by excluded authors.

        Args:
            excluded_authors: Authors whose updates are ignored

        Returns:
            The resolved Entry if visibility resolves to True, else None.
            The returned name is None when no name update resolves.
        """
        visibility = self._visibility.latest(excluded_authors)
        if visibility is None or not visibility.value:
            return None

        name = self._names.latest(excluded_authors)
        state = self._states.latest(excluded_authors)
        return Entry(
            id=self.entry_id,
            name=name.value if name is not None else None,
            state=state.value if state is not None else EntryState.UNDONE,
        )

    def name_history(self) -> List[Update[Optional[str]]]:
        """Name updates in rule order (oldest/losing first)."""
        return list(self._names)

    def state_history(self) -> List[Update[EntryState]]:
        """State updates in rule order."""
        return list(self._states)

    def visibility_history(self) -> List[Update[bool]]:
        """Visibility updates in rule order."""
        return list(self._visibility)

    @property
    def history_size(self) -> dict[str, int]:
        """Number of recorded updates per field."""
        return {
            "name": len(self._names),
            "state": len(self._states),
            "visibility": len(self._visibility),
        }

    def __repr__(self) -> str:
        return f"EntryLedger(entry_id={self.entry_id}, history={self.history_size})"
