"""
Store module - the shared to-do list and its banned-author set.

The store routes commands to per-entry ledgers and aggregates their
snapshots into the visible list. Visible entries are derived on every
query and can always be recomputed from the ledgers.
"""

from .banned import BannedAuthors
from .todo_store import ToDoListStore

__all__ = [
    "BannedAuthors",
    "ToDoListStore",
]
