"""
Base protocol and types for the command journal.

The journal is the delivery channel that feeds commands to the applier.
It preserves order within a partition only; the store converges without
any cross-partition ordering.

Invariants:
    - JournalPos uniquely identifies a record in the journal
    - JournalRecord contains the encoded command plus metadata
    - All backends must provide per-partition ordering

How to change safely:
    - Protocol changes require updating all implementations
    - Add new methods as optional with default implementations
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class JournalError(Exception):
    """Base exception for journal operations."""
    pass


class JournalConnectionError(JournalError):
    """Journal is not connected."""
    pass


class JournalSerializationError(JournalError):
    """Failed to deserialize a journal record."""
    pass


@dataclass(frozen=True)
class JournalPos:
    """Position of a record in the journal.

    Attributes:
        topic: Topic name
        partition: Partition number
        offset: Offset within partition
        timestamp_ms: Wall-clock time the record was appended (milliseconds)
    """
    topic: str
    partition: int
    offset: int
    timestamp_ms: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "topic": self.topic,
            "partition": self.partition,
            "offset": self.offset,
            "timestamp_ms": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> JournalPos:
        """Create from dictionary."""
        return cls(
            topic=data["topic"],
            partition=data["partition"],
            offset=data["offset"],
            timestamp_ms=data["timestamp_ms"],
        )

    def __str__(self) -> str:
        return f"{self.topic}:{self.partition}:{self.offset}"


@dataclass
class JournalRecord:
    """A record read from the journal.

    Attributes:
        key: Partition key
        value: Encoded command (JSON bytes)
        position: Position in the journal
        headers: Optional headers/metadata
    """
    key: str
    value: bytes
    position: JournalPos
    headers: Dict[str, bytes] = field(default_factory=dict)

    def value_json(self) -> Any:
        """Parse value as JSON.

        Raises:
            JournalSerializationError: If value is not valid JSON
        """
        try:
            return json.loads(self.value.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise JournalSerializationError(f"Failed to decode record at {self.position}: {e}") from e


@runtime_checkable
class CommandJournal(Protocol):
    """Protocol implemented by command journal backends."""

    @property
    def is_connected(self) -> bool:
        ...

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def append(
        self,
        topic: str,
        key: str,
        value: bytes,
        headers: Optional[Dict[str, bytes]] = None,
    ) -> JournalPos:
        ...

    def subscribe(
        self,
        topic: str,
        group_id: str,
    ) -> AsyncIterator[JournalRecord]:
        ...

    async def commit(self, record: JournalRecord, group_id: str) -> None:
        ...
