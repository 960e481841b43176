"""
Ledger module - per-entry update history and merge rules.

This module handles:
- Immutable field updates with provenance (author, timestamp)
- Per-field strict total orders used to pick winning updates
- Ban-aware snapshot computation of a single entry

Invariants:
    - Ledgers are append-only
    - The resolved view depends only on the set of recorded updates and
      the excluded authors, never on arrival order
"""

from .entry_ledger import EntryLedger
from .merge_rules import (
    NAME_RULE,
    RULES,
    STATE_RULE,
    VISIBILITY_RULE,
    MergeRule,
    NameRule,
    StateRule,
    VisibilityRule,
)
from .updates import Entry, EntryState, Update

__all__ = [
    "EntryLedger",
    "Entry",
    "EntryState",
    "Update",
    "MergeRule",
    "NameRule",
    "StateRule",
    "VisibilityRule",
    "NAME_RULE",
    "STATE_RULE",
    "VISIBILITY_RULE",
    "RULES",
]
