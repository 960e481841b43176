"""
Command journal abstraction.

The journal delivers encoded commands to the applier. Only an in-memory
backend ships here; durable transports are provided by the embedding
application.

Invariants:
    - Records are ordered within a partition only
    - Consumers must not rely on cross-partition or timestamp order
"""

from .base import (
    CommandJournal,
    JournalConnectionError,
    JournalError,
    JournalPos,
    JournalRecord,
    JournalSerializationError,
)
from .memory import InMemoryCommandJournal

__all__ = [
    "CommandJournal",
    "JournalRecord",
    "JournalPos",
    "JournalError",
    "JournalConnectionError",
    "JournalSerializationError",
    "InMemoryCommandJournal",
]
