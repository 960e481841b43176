"""
Unit tests for command models.

Tests cover:
- Decoding the tagged union from dicts and JSON
- Rejection of malformed payloads
- The pairwise reorder table
"""

import itertools
import json

import pytest

from collab.todolist.commands import (
    ENTRY_OPS,
    MODERATION_OPS,
    REORDER_TABLE,
    AddEntry,
    AllowUser,
    CommandDecodeError,
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


class TestDecodeCommand:
    """Tests for command decoding."""

    def test_decode_add_entry(self):
        """add_entry decodes into AddEntry."""
        cmd = decode_command(
            {"op": "add_entry", "entry_id": 1, "author": 2, "name": "Buy milk", "timestamp": 10}
        )
        assert cmd == AddEntry(entry_id=1, author=2, name="Buy milk", timestamp=10)

    @pytest.mark.parametrize(
        "op,cls",
        [
            ("remove_entry", RemoveEntry),
            ("mark_done", MarkDone),
            ("mark_undone", MarkUndone),
        ],
    )
    def test_decode_entry_commands(self, op, cls):
        """Entry commands decode by their op tag."""
        cmd = decode_command({"op": op, "entry_id": 3, "author": 4, "timestamp": 5})
        assert isinstance(cmd, cls)
        assert (cmd.entry_id, cmd.author, cmd.timestamp) == (3, 4, 5)

    def test_decode_moderation_commands(self):
        """Moderation commands carry only an author."""
        assert decode_command({"op": "dismiss_user", "author": 9}) == DismissUser(author=9)
        assert decode_command({"op": "allow_user", "author": 9}) == AllowUser(author=9)

    def test_add_entry_name_is_optional(self):
        """A missing name decodes as None."""
        cmd = decode_command({"op": "add_entry", "entry_id": 1, "author": 2, "timestamp": 3})
        assert cmd.name is None

    def test_unknown_op_rejected(self):
        """Unknown op tags raise CommandDecodeError."""
        with pytest.raises(CommandDecodeError) as exc_info:
            decode_command({"op": "rename_everything", "author": 1})
        assert exc_info.value.errors

    def test_missing_field_rejected(self):
        """Missing required fields raise CommandDecodeError."""
        with pytest.raises(CommandDecodeError):
            decode_command({"op": "mark_done", "entry_id": 1, "author": 2})

    def test_extra_field_rejected(self):
        """Unexpected fields are rejected."""
        with pytest.raises(CommandDecodeError):
            decode_command({"op": "dismiss_user", "author": 1, "reason": "spam"})

    def test_decode_error_is_value_error(self):
        """CommandDecodeError is a ValueError."""
        with pytest.raises(ValueError):
            decode_command_json(b"not json")

    def test_json_round_trip(self):
        """Encoded commands decode back to equal commands."""
        cmd = MarkDone(entry_id=1, author=2, timestamp=3)
        raw = encode_command(cmd)
        assert json.loads(raw)["op"] == "mark_done"
        assert decode_command_json(raw) == cmd

    def test_commands_are_immutable(self):
        """Decoded commands cannot be modified."""
        cmd = RemoveEntry(entry_id=1, author=2, timestamp=3)
        with pytest.raises(Exception):
            cmd.author = 5


class TestReorderTable:
    """Tests for the pairwise reorder table."""

    def test_table_covers_all_pairs(self):
        """Every ordered pair of ops has an entry."""
        ops = ENTRY_OPS | MODERATION_OPS
        assert set(REORDER_TABLE) == set(itertools.product(ops, ops))

    def test_entry_commands_always_commute(self):
        """Entry commands commute with each other, even on one entry."""
        a = AddEntry(entry_id=1, author=1, name="x", timestamp=10)
        b = RemoveEntry(entry_id=1, author=2, timestamp=10)
        c = MarkDone(entry_id=1, author=1, timestamp=10)
        for first, second in itertools.permutations([a, b, c], 2):
            assert commutes(first, second)

    def test_entry_commands_commute_with_moderation(self):
        """Bans are retroactive, so they commute with entry commands."""
        add = AddEntry(entry_id=1, author=1, name="x", timestamp=10)
        ban = DismissUser(author=1)
        assert commutes(add, ban)
        assert commutes(ban, add)

    def test_ban_and_unban_of_same_author_do_not_commute(self):
        """The last of a ban/unban pair decides the outcome."""
        assert not commutes(DismissUser(author=1), AllowUser(author=1))
        assert not commutes(AllowUser(author=1), DismissUser(author=1))

    def test_ban_and_unban_of_different_authors_commute(self):
        """Ban/unban of different authors are independent."""
        assert commutes(DismissUser(author=1), AllowUser(author=2))

    def test_repeated_bans_commute(self):
        """Dismiss is idempotent."""
        assert commutes(DismissUser(author=1), DismissUser(author=1))


class TestPartitionKey:
    """Tests for journal partition keys."""

    def test_entry_commands_keyed_by_entry(self):
        assert partition_key(MarkDone(entry_id=5, author=1, timestamp=1)) == "entry:5"

    def test_moderation_commands_keyed_by_author(self):
        assert partition_key(AllowUser(author=3)) == "author:3"

    def test_every_entry_command_keyed_by_entry(self):
        """All four entry commands for one entry share a partition key."""
        commands = [
            AddEntry(entry_id=7, author=1, name="a", timestamp=1),
            RemoveEntry(entry_id=7, author=2, timestamp=2),
            MarkDone(entry_id=7, author=3, timestamp=3),
            MarkUndone(entry_id=7, author=4, timestamp=4),
        ]
        assert {partition_key(c) for c in commands} == {"entry:7"}
        assert partition_key(DismissUser(author=7)) == "author:7"
