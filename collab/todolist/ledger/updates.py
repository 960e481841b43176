"""
Value types for the per-entry merge engine.

Invariants:
    - Update is immutable once created
    - Entry is never stored, only derived from a ledger snapshot
    - Timestamps are caller-supplied logical integers; they are only compared

How to change safely:
    - Adding a new field to Entry requires a new ledger collection and rule
    - Do not add mutable state to Update
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class EntryState(Enum):
    """Completion state of a to-do entry."""

    UNDONE = "undone"
    DONE = "done"


@dataclass(frozen=True)
class Update(Generic[T]):
    """A single field update with its provenance.

    Attributes:
        author: Author id that issued the update
        timestamp: Logical timestamp supplied by the caller
        value: New field value (name text, EntryState, or visibility flag)
    """

    author: int
    timestamp: int
    value: T


@dataclass(frozen=True)
class Entry:
    """Visible to-do entry computed from a ledger.

    Attributes:
        id: Entry id
        name: Resolved name (None until a name update resolves)
        state: Resolved completion state
    """

    id: int
    name: str | None
    state: EntryState = EntryState.UNDONE

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state.value,
        }
