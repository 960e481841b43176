"""
Unit tests for the banned-author set.
"""

from collab.todolist.store import BannedAuthors


class TestBannedAuthors:
    """Tests for BannedAuthors."""

    def test_initial_authors(self):
        """Initial authors are banned."""
        banned = BannedAuthors([3, 4])
        assert banned.current() == frozenset({3, 4})
        assert 3 in banned
        assert len(banned) == 2

    def test_dismiss_is_idempotent(self):
        """Dismissing twice changes membership once."""
        banned = BannedAuthors()
        assert banned.dismiss(7) is True
        assert banned.dismiss(7) is False
        assert banned.version == 1

    def test_allow_unknown_is_noop(self):
        """Allowing an author that is not banned does nothing."""
        banned = BannedAuthors()
        assert banned.allow(7) is False
        assert banned.version == 0

    def test_current_is_a_stable_copy(self):
        """A view taken before a change is not affected by it."""
        banned = BannedAuthors([1])
        view = banned.current()
        banned.dismiss(2)
        banned.allow(1)
        assert view == frozenset({1})
        assert banned.current() == frozenset({2})
