"""
Command applier for the shared to-do list.

The CommandApplier consumes encoded commands from a CommandJournal and
applies them to a ToDoListStore. It ensures:
- Every decodable command is applied exactly as recorded
- Undecodable records are logged and skipped without blocking the loop
- Journal offsets are committed after each record

Invariants:
    - Application order does not affect the resulting view
    - A failed record never leaves a partial update behind; entry
      commands touch a single ledger and cannot fail once decoded

How to change safely:
    - New command ops need a branch in apply_command()
    - Test with shuffled delivery, not only journal order
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..journal.base import CommandJournal, JournalPos, JournalRecord
from ..store.todo_store import ToDoListStore
from .models import (
    AddEntry,
    AllowUser,
    Command,
    CommandDecodeError,
    DismissUser,
    MarkDone,
    MarkUndone,
    RemoveEntry,
    decode_command,
)

logger = logging.getLogger(__name__)


class ApplierError(Exception):
    """Error during command application."""

    pass


@dataclass
class ApplyResult:
    """Result of applying one command.

    Attributes:
        success: Whether the command was applied
        command: The decoded command (None if decoding failed)
        position: Journal position of the source record, if any
        error: Error message if failed
    """

    success: bool
    command: Optional[Command] = None
    position: Optional[JournalPos] = None
    error: Optional[str] = None


class CommandApplier:
    """Consumes journal records and applies them to a store.

    Thread safety:
        Designed to run as a single asyncio task per store.

    Example:
        >>> applier = CommandApplier(journal, store)
        >>> await applier.start()  # Runs until stopped
    """

    def __init__(
        self,
        journal: CommandJournal,
        store: ToDoListStore,
        topic: str = "todo-commands",
        group_id: str = "todo-applier",
    ) -> None:
        """Initialize the applier.

        Args:
            journal: Journal to consume from
            store: Store to apply commands to
            topic: Journal topic name
            group_id: Consumer group ID
        """
        self.journal = journal
        self.store = store
        self.topic = topic
        self.group_id = group_id

        self._running = False
        self._processed_count = 0
        self._error_count = 0
        self._last_position: JournalPos | None = None

    def apply_command(self, command: Command) -> ApplyResult:
        """Apply a decoded command to the store.

        Raises:
            ApplierError: If the command type is not handled
        """
        if isinstance(command, AddEntry):
            self.store.add_entry(command.entry_id, command.author, command.name, command.timestamp)
        elif isinstance(command, RemoveEntry):
            self.store.remove_entry(command.entry_id, command.author, command.timestamp)
        elif isinstance(command, MarkDone):
            self.store.mark_done(command.entry_id, command.author, command.timestamp)
        elif isinstance(command, MarkUndone):
            self.store.mark_undone(command.entry_id, command.author, command.timestamp)
        elif isinstance(command, DismissUser):
            self.store.dismiss_user(command.author)
        elif isinstance(command, AllowUser):
            self.store.allow_user(command.author)
        else:
            raise ApplierError(f"Unhandled command type: {type(command).__name__}")

        return ApplyResult(success=True, command=command)

    def apply_payload(self, data: Dict[str, Any]) -> ApplyResult:
        """Decode and apply a command dictionary.

        Decoding failures are reported in the result, not raised.
        """
        try:
            command = decode_command(data)
        except CommandDecodeError as e:
            return ApplyResult(success=False, error=str(e))
        return self.apply_command(command)

    async def _process_record(self, record: JournalRecord) -> ApplyResult:
        try:
            result = self.apply_payload(record.value_json())
        except Exception as e:
            logger.error(f"Error processing record: {e}", exc_info=True)
            result = ApplyResult(success=False, error=str(e))
        result.position = record.position
        return result

    def _account(self, result: ApplyResult) -> None:
        if result.success:
            self._processed_count += 1
            logger.debug(
                "Applied command",
                extra={"op": result.command.op if result.command else None,
                       "position": str(result.position)},
            )
        else:
            self._error_count += 1
            logger.error(
                "Failed to apply command",
                extra={"position": str(result.position), "error": result.error},
            )

    async def start(self) -> None:
        """Start the applier loop. Runs until stop() is called."""
        if self._running:
            logger.warning("Applier already running")
            return

        self._running = True
        logger.info("Starting applier", extra={"topic": self.topic, "group_id": self.group_id})

        try:
            async for record in self.journal.subscribe(self.topic, self.group_id):
                if not self._running:
                    break
                self._account(await self._process_record(record))
                await self.journal.commit(record, self.group_id)
                self._last_position = record.position
        except asyncio.CancelledError:
            logger.info("Applier cancelled")
        finally:
            self._running = False

    async def run_until_idle(self, idle_timeout: float = 0.5) -> int:
        """Apply records until none arrive for idle_timeout seconds.

        Returns:
            Number of records consumed
        """
        consumed = 0
        records = self.journal.subscribe(self.topic, self.group_id).__aiter__()
        try:
            while True:
                try:
                    record = await asyncio.wait_for(records.__anext__(), timeout=idle_timeout)
                except (asyncio.TimeoutError, StopAsyncIteration):
                    break
                self._account(await self._process_record(record))
                await self.journal.commit(record, self.group_id)
                self._last_position = record.position
                consumed += 1
        finally:
            await records.aclose()
        return consumed

    async def stop(self) -> None:
        """Stop the applier loop."""
        self._running = False
        logger.info("Stopping applier")

    @property
    def stats(self) -> dict[str, Any]:
        """Get applier statistics."""
        return {
            "running": self._running,
            "processed_count": self._processed_count,
            "error_count": self._error_count,
            "last_position": str(self._last_position) if self._last_position else None,
        }
