"""
Shared to-do list service - main entry point.

This module wires the service components together:
- Command journal (in-memory)
- Applier loop (journal -> store)
- ToDoListStore (ledgers + banned authors)

Usage:
    python -m collab.todolist.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - The applier is the only writer that consumes the journal
    - Graceful shutdown cancels the applier and closes the journal

How to change safely:
    - Add new components with enable/disable flags
    - Test shutdown sequence thoroughly
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter

from .commands import CommandApplier, encode_command, partition_key
from .commands.models import Command
from .config import ServiceConfig
from .journal import InMemoryCommandJournal, JournalPos
from .store import ToDoListStore

logger = logging.getLogger(__name__)


def setup_logging(config: ServiceConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Service configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("asyncio").setLevel(logging.WARNING)


class Service:
    """Service orchestrator.

    Manages the lifecycle of the journal, the store and the applier loop.

    Attributes:
        config: Service configuration
        journal: Command journal
        store: The shared to-do list
        applier: Applier consuming the journal

    Example:
        >>> service = Service()
        >>> await service.open()
        >>> await service.submit(AddEntry(entry_id=1, author=1, name="x", timestamp=1))
        >>> await service.applier.run_until_idle()
        >>> await service.stop()
    """

    def __init__(self, config: ServiceConfig | None = None) -> None:
        """Initialize the service.

        Args:
            config: Optional configuration (loaded from env if not provided)
        """
        self.config = config or ServiceConfig.from_env()
        self.journal = InMemoryCommandJournal(num_partitions=self.config.journal.num_partitions)
        self.store = ToDoListStore(
            banned_authors=self.config.store.initial_banned,
            dedupe_updates=self.config.store.dedupe_updates,
        )
        self.applier = CommandApplier(
            journal=self.journal,
            store=self.store,
            topic=self.config.journal.topic,
            group_id=self.config.journal.group_id,
        )
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    async def open(self) -> None:
        """Connect the journal without starting the applier loop."""
        if not self.journal.is_connected:
            await self.journal.connect()
            logger.info("Command journal connected")

    async def submit(self, command: Command) -> JournalPos:
        """Append a command to the journal."""
        return await self.journal.append(
            self.config.journal.topic,
            partition_key(command),
            encode_command(command),
        )

    async def start(self) -> None:
        """Start the applier loop and wait for a shutdown request."""
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting to-do list service")
        self.config.log_config()

        try:
            await self.open()
            self._tasks.append(asyncio.create_task(self.applier.start()))
            self._running = True
            logger.info("To-do list service started")

            await self._shutdown_event.wait()
        except Exception as e:
            logger.error(f"Service startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the service gracefully."""
        logger.info("Stopping to-do list service")

        await self.applier.stop()
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self.journal.is_connected:
            await self.journal.close()

        self._running = False
        logger.info("To-do list service stopped", extra=self.store.stats)

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def main() -> None:
    """Main entry point."""
    try:
        config = ServiceConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    service = Service(config)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        service.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        loop.run_until_complete(service.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(service.stop())
        loop.close()


if __name__ == "__main__":
    main()
