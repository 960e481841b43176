"""
In-memory command journal.

Backs the service, the replay tool and the tests. Commands are hashed to
partitions by key, so a subscriber sees commands for different entries
interleaved in an order that has nothing to do with their timestamps.
The merge rules make that order irrelevant.

Invariants:
    - All data is lost on process exit
    - Records are ordered within a partition, not across partitions
    - A consumer group resumes from its own committed offset per
      (topic, partition); records appended later are always delivered

How to change safely:
    - Keep interface compatible with the CommandJournal protocol
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
import time
from collections import defaultdict
from typing import AsyncIterator, Dict, List, Optional, Set, Tuple

from .base import JournalConnectionError, JournalPos, JournalRecord

logger = logging.getLogger(__name__)

# (topic, group_id) -> partition -> next offset to deliver
_Offsets = Dict[Tuple[str, str], Dict[int, int]]


class InMemoryCommandJournal:
    """In-memory implementation of CommandJournal.

    Thread safety:
        Uses an asyncio lock. Safe to use from multiple coroutines.

    Example:
        >>> journal = InMemoryCommandJournal()
        >>> await journal.connect()
        >>> await journal.append("todo-commands", "entry:1", b"{...}")
        >>> async for record in journal.subscribe("todo-commands", "applier"):
        ...     print(record.value)
    """

    def __init__(self, num_partitions: int = 4) -> None:
        self.num_partitions = num_partitions
        self._partitions: Dict[str, List[List[JournalRecord]]] = {}
        self._committed: _Offsets = defaultdict(dict)
        self._connected = False
        self._lock = asyncio.Lock()
        self._wakeups: Dict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self._active: Set[int] = set()
        self._subscription_ids = itertools.count()

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        logger.debug("In-memory journal connected")

    async def close(self) -> None:
        """Close the journal, dropping records, commits and subscriptions."""
        self._connected = False
        self._partitions.clear()
        self._committed.clear()
        self._active.clear()
        for event in self._wakeups.values():
            event.set()
        logger.debug("In-memory journal closed")

    def _topic(self, topic: str) -> List[List[JournalRecord]]:
        if topic not in self._partitions:
            self._partitions[topic] = [[] for _ in range(self.num_partitions)]
        return self._partitions[topic]

    async def append(
        self,
        topic: str,
        key: str,
        value: bytes,
        headers: Optional[Dict[str, bytes]] = None,
    ) -> JournalPos:
        """Append an encoded command under its partition key.

        Raises:
            JournalConnectionError: If not connected
        """
        if not self._connected:
            raise JournalConnectionError("Not connected")

        partition = self._partition_for_key(key)
        async with self._lock:
            records = self._topic(topic)[partition]
            pos = JournalPos(
                topic=topic,
                partition=partition,
                offset=len(records),
                timestamp_ms=int(time.time() * 1000),
            )
            records.append(
                JournalRecord(key=key, value=value, position=pos, headers=headers or {})
            )
            self._wakeups[topic].set()

        logger.debug(
            "Command appended",
            extra={"topic": topic, "key": key, "partition": partition, "offset": pos.offset},
        )
        return pos

    async def subscribe(self, topic: str, group_id: str) -> AsyncIterator[JournalRecord]:
        """Yield records of a topic, starting from the group's commits.

        Runs until the journal is closed or the consumer stops iterating.
        """
        if not self._connected:
            raise JournalConnectionError("Not connected")

        subscription = next(self._subscription_ids)
        self._active.add(subscription)
        cursor = dict(self._committed[(topic, group_id)])

        try:
            while subscription in self._active:
                async with self._lock:
                    batch = []
                    for partition, records in enumerate(self._topic(topic)):
                        start = cursor.get(partition, 0)
                        batch.extend(records[start:])
                        cursor[partition] = len(records)
                    if not batch:
                        self._wakeups[topic].clear()

                for record in batch:
                    yield record

                if not batch:
                    try:
                        await asyncio.wait_for(self._wakeups[topic].wait(), timeout=1.0)
                    except asyncio.TimeoutError:
                        pass
        finally:
            self._active.discard(subscription)

    async def commit(self, record: JournalRecord, group_id: str) -> None:
        """Mark a record, and everything before it in its partition, consumed."""
        pos = record.position
        self._committed[(pos.topic, group_id)][pos.partition] = pos.offset + 1

    def _partition_for_key(self, key: str) -> int:
        digest = hashlib.md5(key.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big") % self.num_partitions
