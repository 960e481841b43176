"""
Integration tests for CommandApplier with the in-memory journal.

Tests cover:
- Applying decoded commands and raw payloads
- Consuming the journal until idle
- Error accounting for malformed records
- The background applier loop
"""

import asyncio

import pytest

from collab.todolist.commands import (
    AddEntry,
    AllowUser,
    CommandApplier,
    DismissUser,
    MarkDone,
    RemoveEntry,
    encode_command,
    partition_key,
)
from collab.todolist.journal import InMemoryCommandJournal
from collab.todolist.ledger import Entry, EntryState
from collab.todolist.store import ToDoListStore

TOPIC = "todo-commands"


class TestCommandApplier:
    """Integration tests for CommandApplier."""

    @pytest.fixture
    def store(self):
        return ToDoListStore()

    @pytest.fixture
    def journal(self):
        """Create an in-memory journal (connected by the async tests)."""
        return InMemoryCommandJournal(num_partitions=4)

    @pytest.fixture
    def applier(self, journal, store):
        return CommandApplier(journal, store, topic=TOPIC, group_id="applier")

    async def _submit(self, journal, command):
        if not journal.is_connected:
            await journal.connect()
        return await journal.append(TOPIC, partition_key(command), encode_command(command))

    def test_apply_command(self, applier, store):
        """Decoded commands are routed to the store."""
        result = applier.apply_command(AddEntry(entry_id=1, author=1, name="Buy milk", timestamp=10))
        assert result.success
        applier.apply_command(MarkDone(entry_id=1, author=2, timestamp=20))
        assert store.iterate() == [Entry(1, "Buy milk", EntryState.DONE)]

    def test_apply_moderation_commands(self, applier, store):
        """Dismiss and allow commands update the banned set."""
        applier.apply_command(AddEntry(entry_id=1, author=1, name="x", timestamp=1))
        applier.apply_command(DismissUser(author=1))
        assert store.count() == 0
        applier.apply_command(AllowUser(author=1))
        assert store.count() == 1

    def test_apply_payload_reports_decode_errors(self, applier, store):
        """Malformed payloads produce a failed result, not an exception."""
        result = applier.apply_payload({"op": "mark_done", "entry_id": "one"})
        assert not result.success
        assert result.command is None
        assert "Invalid command" in result.error
        assert store.ledger_count == 0


    @pytest.mark.asyncio
    async def test_run_until_idle_applies_journal(self, applier, journal, store):
        """All journal records are applied and committed."""
        await self._submit(journal, AddEntry(entry_id=1, author=1, name="Buy milk", timestamp=10))
        await self._submit(journal, MarkDone(entry_id=1, author=2, timestamp=20))
        await self._submit(journal, AddEntry(entry_id=2, author=1, name="Buy eggs", timestamp=5))
        await self._submit(journal, RemoveEntry(entry_id=2, author=3, timestamp=6))

        consumed = await applier.run_until_idle(idle_timeout=0.2)

        assert consumed == 4
        assert store.iterate() == [Entry(1, "Buy milk", EntryState.DONE)]
        assert applier.stats["processed_count"] == 4
        assert applier.stats["error_count"] == 0
        assert applier.stats["last_position"] is not None


    @pytest.mark.asyncio
    async def test_run_until_idle_resumes_from_commit(self, applier, journal, store):
        """A second run only sees records appended after the first."""
        await self._submit(journal, AddEntry(entry_id=1, author=1, name="a", timestamp=1))
        assert await applier.run_until_idle(idle_timeout=0.2) == 1

        await self._submit(journal, AddEntry(entry_id=2, author=1, name="b", timestamp=1))
        assert await applier.run_until_idle(idle_timeout=0.2) == 1
        assert store.count() == 2


    @pytest.mark.asyncio
    async def test_bad_record_does_not_block(self, applier, journal, store):
        """Undecodable records are counted and skipped."""
        await journal.connect()
        await journal.append(TOPIC, "entry:1", b"not json")
        await journal.append(TOPIC, "entry:1", b'{"op": "teleport"}')
        await self._submit(journal, AddEntry(entry_id=1, author=1, name="ok", timestamp=1))

        consumed = await applier.run_until_idle(idle_timeout=0.2)

        assert consumed == 3
        assert applier.stats["error_count"] == 2
        assert applier.stats["processed_count"] == 1
        assert store.count() == 1


    @pytest.mark.asyncio
    async def test_background_loop(self, applier, journal, store):
        """The start() loop applies records as they arrive."""
        await journal.connect()
        task = asyncio.create_task(applier.start())
        try:
            await self._submit(journal, AddEntry(entry_id=1, author=1, name="x", timestamp=1))
            for _ in range(50):
                if store.count() == 1:
                    break
                await asyncio.sleep(0.02)
            assert store.count() == 1
            assert applier.stats["running"] is True
        finally:
            await applier.stop()
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        assert applier.stats["running"] is False
