"""
Merge rules for ledger fields.

Each rule is a strict total order over the updates of one field. The
winning update is the maximal one under the rule. Updates are ordered
first by timestamp, then by a field-specific tie-break:

    name        lowest author id wins, then greatest text
    state       DONE outranks UNDONE, then lowest author id
    visibility  hidden outranks visible, then lowest author id

Invariants:
    - Two updates compare equal only if author, timestamp and value match
    - The winner of a set of updates does not depend on insertion order

How to change safely:
    - Changing a tie-break changes the converged view of existing histories
    - Keep every sort key total; never compare values that may be None
      without normalizing them first
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Optional, TypeVar

from .updates import EntryState, Update

T = TypeVar("T")

_STATE_RANK = {
    EntryState.UNDONE: 0,
    EntryState.DONE: 1,
}


class MergeRule(Generic[T]):
    """Base class for a per-field total order.

    Subclasses implement sort_key(); a larger key wins.
    """

    field_name = ""

    def sort_key(self, update: Update[T]) -> tuple:
        raise NotImplementedError

    def compare(self, a: Update[T], b: Update[T]) -> int:
        """Three-way compare two updates.

        Returns:
            -1 if a loses to b, 1 if a wins over b, 0 if identical
        """
        ka, kb = self.sort_key(a), self.sort_key(b)
        if ka < kb:
            return -1
        if ka > kb:
            return 1
        return 0

    def winner(self, updates: Iterable[Update[T]]) -> Optional[Update[T]]:
        """Return the maximal update, or None for an empty input."""
        return max(updates, key=self.sort_key, default=None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(field={self.field_name!r})"


class NameRule(MergeRule[Optional[str]]):
    """Name updates: on equal timestamps the lowest author id wins."""

    field_name = "name"

    def sort_key(self, update: Update[Optional[str]]) -> tuple:
        # None sorts below any text from the same author and timestamp
        text = update.value
        return (update.timestamp, -update.author, text is not None, text or "")


class StateRule(MergeRule[EntryState]):
    """State updates: on equal timestamps DONE outranks UNDONE."""

    field_name = "state"

    def sort_key(self, update: Update[EntryState]) -> tuple:
        return (update.timestamp, _STATE_RANK[update.value], -update.author)


class VisibilityRule(MergeRule[bool]):
    """Visibility updates: on equal timestamps a removal outranks a create."""

    field_name = "visibility"

    def sort_key(self, update: Update[bool]) -> tuple:
        return (update.timestamp, not update.value, -update.author)


NAME_RULE = NameRule()
STATE_RULE = StateRule()
VISIBILITY_RULE = VisibilityRule()

RULES: dict[str, MergeRule[Any]] = {
    rule.field_name: rule for rule in (NAME_RULE, STATE_RULE, VISIBILITY_RULE)
}
