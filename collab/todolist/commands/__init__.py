"""
Commands module - command variants and their application.

This module handles:
- The closed set of command variants and their JSON form
- The pairwise reorder table describing which commands commute
- Applying commands from a journal to a store

Invariants:
    - Entry commands commute with every other command
    - Applying the same set of entry commands in any order yields the same view
"""

from .applier import ApplierError, ApplyResult, CommandApplier
from .models import (
    ENTRY_OPS,
    MODERATION_OPS,
    REORDER_TABLE,
    AddEntry,
    AllowUser,
    Command,
    CommandDecodeError,
    Commutation,
    DismissUser,
    MarkDone,
    MarkUndone,
    RemoveEntry,
    commutes,
    decode_command,
    decode_command_json,
    encode_command,
    partition_key,
)

__all__ = [
    "AddEntry",
    "RemoveEntry",
    "MarkDone",
    "MarkUndone",
    "DismissUser",
    "AllowUser",
    "Command",
    "CommandDecodeError",
    "Commutation",
    "ENTRY_OPS",
    "MODERATION_OPS",
    "REORDER_TABLE",
    "commutes",
    "decode_command",
    "decode_command_json",
    "encode_command",
    "partition_key",
    "CommandApplier",
    "ApplyResult",
    "ApplierError",
]
