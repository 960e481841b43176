"""
Configuration management for the shared to-do list service.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Invalid values fail fast in ServiceConfig.validate()

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Deprecate settings by logging warnings but continuing to support them
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def parse_authors(raw: str) -> frozenset[int]:
    """Parse a comma-separated list of author ids."""
    authors = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            authors.add(int(part))
        except ValueError:
            raise ValueError(f"Invalid author id: {part!r}") from None
    return frozenset(authors)


@dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Attributes:
        dedupe_updates: Suppress identical updates recorded twice
        initial_banned: Authors banned when the store is created
    """

    dedupe_updates: bool = True
    initial_banned: frozenset[int] = frozenset()

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Load configuration from environment variables."""
        return cls(
            dedupe_updates=os.getenv("TODO_DEDUPE_UPDATES", "true").lower() == "true",
            initial_banned=parse_authors(os.getenv("TODO_BANNED_AUTHORS", "")),
        )


@dataclass(frozen=True)
class JournalConfig:
    """Command journal configuration.

    Attributes:
        num_partitions: Partitions per topic for the in-memory journal
        topic: Topic name for commands
        group_id: Consumer group ID for the applier
    """

    num_partitions: int = 4
    topic: str = "todo-commands"
    group_id: str = "todo-applier"

    @classmethod
    def from_env(cls) -> JournalConfig:
        """Load configuration from environment variables."""
        return cls(
            num_partitions=int(os.getenv("JOURNAL_PARTITIONS", "4")),
            topic=os.getenv("JOURNAL_TOPIC", "todo-commands"),
            group_id=os.getenv("JOURNAL_GROUP_ID", "todo-applier"),
        )


@dataclass(frozen=True)
class ApplierConfig:
    """Applier loop configuration.

    Attributes:
        idle_timeout_seconds: Quiet period after which run_until_idle returns
    """

    idle_timeout_seconds: float = 0.5

    @classmethod
    def from_env(cls) -> ApplierConfig:
        """Load configuration from environment variables."""
        return cls(
            idle_timeout_seconds=float(os.getenv("APPLIER_IDLE_TIMEOUT", "0.5")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ServiceConfig:
    """Complete service configuration.

    Attributes:
        store: Store configuration
        journal: Journal configuration
        applier: Applier configuration
        observability: Logging configuration
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)
    applier: ApplierConfig = field(default_factory=ApplierConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            store=StoreConfig.from_env(),
            journal=JournalConfig.from_env(),
            applier=ApplierConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.journal.num_partitions < 1:
            raise ValueError("JOURNAL_PARTITIONS must be at least 1")
        if not self.journal.topic:
            raise ValueError("JOURNAL_TOPIC must not be empty")
        if self.applier.idle_timeout_seconds <= 0:
            raise ValueError("APPLIER_IDLE_TIMEOUT must be positive")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Service configuration loaded",
            extra={
                "dedupe_updates": self.store.dedupe_updates,
                "initial_banned": sorted(self.store.initial_banned),
                "journal_topic": self.journal.topic,
                "journal_partitions": self.journal.num_partitions,
                "applier_group": self.journal.group_id,
                "log_level": self.observability.log_level,
            },
        )
