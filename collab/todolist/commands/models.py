"""
Command variants for the shared to-do list.

Commands form a closed tagged union discriminated by the "op" field:

    add_entry, remove_entry, mark_done, mark_undone   (entry commands)
    dismiss_user, allow_user                          (moderation commands)

Example payload:
    {"op": "add_entry", "entry_id": 1, "author": 42, "name": "Buy milk",
     "timestamp": 10}

Invariants:
    - Commands are immutable once decoded
    - Entry commands carry a caller-supplied timestamp; moderation commands
      do not
    - REORDER_TABLE covers every ordered pair of ops

How to change safely:
    - New ops must be added to the Command union and to REORDER_TABLE
    - Never change the meaning of an existing op name; journals may hold it
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class CommandDecodeError(ValueError):
    """Command payload could not be decoded.

    Attributes:
        errors: Validation errors reported by pydantic
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class _CommandBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AddEntry(_CommandBase):
    """Create or rename an entry and make it visible."""

    op: Literal["add_entry"] = "add_entry"
    entry_id: int
    author: int
    name: Optional[str] = None
    timestamp: int


class RemoveEntry(_CommandBase):
    """Hide an entry."""

    op: Literal["remove_entry"] = "remove_entry"
    entry_id: int
    author: int
    timestamp: int


class MarkDone(_CommandBase):
    op: Literal["mark_done"] = "mark_done"
    entry_id: int
    author: int
    timestamp: int


class MarkUndone(_CommandBase):
    op: Literal["mark_undone"] = "mark_undone"
    entry_id: int
    author: int
    timestamp: int


class DismissUser(_CommandBase):
    """Ban an author."""

    op: Literal["dismiss_user"] = "dismiss_user"
    author: int


class AllowUser(_CommandBase):
    """Lift an author's ban."""

    op: Literal["allow_user"] = "allow_user"
    author: int


EntryCommand = Union[AddEntry, RemoveEntry, MarkDone, MarkUndone]
ModerationCommand = Union[DismissUser, AllowUser]
Command = Annotated[
    Union[EntryCommand, ModerationCommand],
    Field(discriminator="op"),
]

ENTRY_OPS = frozenset({"add_entry", "remove_entry", "mark_done", "mark_undone"})
MODERATION_OPS = frozenset({"dismiss_user", "allow_user"})

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


class Commutation(Enum):
    """Whether two commands may be applied in either order."""

    ALWAYS = "always"
    DISTINCT_AUTHOR = "distinct_author"


def _build_reorder_table() -> Dict[tuple[str, str], Commutation]:
    table: Dict[tuple[str, str], Commutation] = {}
    for first in ENTRY_OPS | MODERATION_OPS:
        for second in ENTRY_OPS | MODERATION_OPS:
            table[(first, second)] = Commutation.ALWAYS
    # A ban and an unban of the same author leave different final sets
    # depending on which runs last.
    table[("dismiss_user", "allow_user")] = Commutation.DISTINCT_AUTHOR
    table[("allow_user", "dismiss_user")] = Commutation.DISTINCT_AUTHOR
    return table


REORDER_TABLE: Dict[tuple[str, str], Commutation] = _build_reorder_table()


def commutes(first: Command, second: Command) -> bool:
    """Check whether applying two commands in either order gives the same view."""
    rule = REORDER_TABLE[(first.op, second.op)]
    if rule is Commutation.ALWAYS:
        return True
    return first.author != second.author


def decode_command(data: Dict[str, Any]) -> Command:
    """Decode a command from its dictionary form.

    Raises:
        CommandDecodeError: If the payload is not a valid command
    """
    try:
        return _command_adapter.validate_python(data)
    except ValidationError as e:
        raise CommandDecodeError(f"Invalid command: {e}", errors=e.errors()) from e


def decode_command_json(raw: Union[str, bytes]) -> Command:
    """Decode a command from JSON text or bytes."""
    try:
        return _command_adapter.validate_json(raw)
    except ValidationError as e:
        raise CommandDecodeError(f"Invalid command: {e}", errors=e.errors()) from e


def encode_command(command: Command) -> bytes:
    """Serialize a command to JSON bytes."""
    return command.model_dump_json().encode("utf-8")


def partition_key(command: Union[EntryCommand, ModerationCommand]) -> str:
    """Journal partition key: entry id for entry commands, author otherwise."""
    if isinstance(command, get_args(EntryCommand)):
        return f"entry:{command.entry_id}"
    return f"author:{command.author}"
