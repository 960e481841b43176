"""
Replay CLI tool for the shared to-do list.

This tool rebuilds a to-do list from a JSON-lines command file:
1. Read one command per line (file or stdin)
2. Optionally shuffle them with a seed
3. Push them through the journal and applier
4. Print the visible entries as JSON

Usage:
    todo-replay commands.jsonl [--shuffle --seed 7] [--banned 3,4]

Invariants:
    - The printed view does not depend on --shuffle or --seed
    - Blank lines are ignored; malformed lines are counted as errors

How to change safely:
    - Keep the output sorted by entry id so runs can be diffed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, TextIO

from ..commands import CommandDecodeError, decode_command_json
from ..commands.models import Command
from ..config import ServiceConfig, StoreConfig, parse_authors
from ..ledger import Entry
from ..main import Service

logger = logging.getLogger(__name__)


@dataclass
class ReplayResult:
    """Result of a replay run.

    Attributes:
        entries: Visible entries, sorted by id
        commands_applied: Commands consumed by the applier
        errors: Messages for lines that could not be decoded
    """

    entries: List[Entry] = field(default_factory=list)
    commands_applied: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "commands_applied": self.commands_applied,
            "errors": self.errors,
        }


def read_commands(lines: Iterable[str], result: ReplayResult) -> List[Command]:
    """Decode JSON-lines commands, collecting errors into result."""
    commands = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            commands.append(decode_command_json(line))
        except CommandDecodeError as e:
            result.errors.append(f"line {lineno}: {e}")
    return commands


async def replay(
    lines: Iterable[str],
    config: Optional[ServiceConfig] = None,
    seed: Optional[int] = None,
) -> ReplayResult:
    """Replay commands into a fresh service and collect the visible view.

    Args:
        lines: JSON-lines command source
        config: Service configuration (defaults are used if omitted)
        seed: If given, shuffle commands with this seed before submitting

    Returns:
        ReplayResult with visible entries sorted by id
    """
    result = ReplayResult()
    commands = read_commands(lines, result)
    if seed is not None:
        random.Random(seed).shuffle(commands)

    service = Service(config or ServiceConfig())
    await service.open()
    try:
        for command in commands:
            await service.submit(command)
        result.commands_applied = await service.applier.run_until_idle(
            service.config.applier.idle_timeout_seconds
        )
        result.entries = sorted(service.store.iterate(), key=lambda entry: entry.id)
    finally:
        await service.stop()

    logger.info(
        "Replay finished",
        extra={"applied": result.commands_applied, "errors": len(result.errors)},
    )
    return result


def main(argv: Optional[List[str]] = None, stdout: Optional[TextIO] = None) -> int:
    """CLI entry point for the replay tool."""
    parser = argparse.ArgumentParser(
        description="Replay a JSON-lines command file and print the visible to-do list"
    )
    parser.add_argument("path", nargs="?", default="-", help="Command file ('-' for stdin)")
    parser.add_argument("--shuffle", action="store_true", help="Shuffle commands before replay")
    parser.add_argument("--seed", type=int, default=0, help="Shuffle seed")
    parser.add_argument("--banned", default="", help="Comma-separated author ids to ban")
    parser.add_argument("--keep-duplicates", action="store_true", help="Record duplicate updates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        banned = parse_authors(args.banned)
        config = ServiceConfig.from_env()
    except ValueError as e:
        parser.error(str(e))

    config.store = StoreConfig(
        dedupe_updates=config.store.dedupe_updates and not args.keep_duplicates,
        initial_banned=config.store.initial_banned | banned,
    )

    if args.path == "-":
        lines = sys.stdin.readlines()
    else:
        with open(args.path, encoding="utf-8") as f:
            lines = f.readlines()

    result = asyncio.run(replay(lines, config, args.seed if args.shuffle else None))

    stdout = stdout or sys.stdout
    json.dump(result.to_dict(), stdout, indent=2)
    stdout.write("\n")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
