"""Tests for in-place alias table edits."""

from __future__ import annotations

import pytest

from forwardsync.domain.aliases import (
    add_destination,
    diff_tables,
    empty_mailboxes,
    is_pushable,
    normalize_destinations,
    remove_destination,
    remove_mailbox,
    rename_mailbox,
    set_destinations,
)


def test_normalize_drops_blanks_and_duplicates() -> None:
    assert normalize_destinations([" b@y ", "", "c@z", "b@y", "   "]) == ["b@y", "c@z"]


def test_set_destinations_inserts_and_replaces() -> None:
    table = {"a@x": ["old@y"]}

    set_destinations(table, "a@x", ["new@y", "new@y"])
    set_destinations(table, " b@x ", ["c@z"])

    assert table == {"a@x": ["new@y"], "b@x": ["c@z"]}


def test_set_destinations_rejects_blank_mailbox() -> None:
    with pytest.raises(ValueError):
        set_destinations({}, "  ", ["c@z"])


def test_add_destination_creates_mailbox_and_ignores_duplicates() -> None:
    table = {}

    add_destination(table, "a@x", "b@y")
    add_destination(table, "a@x", "b@y")
    add_destination(table, "a@x", "c@z")

    assert table == {"a@x": ["b@y", "c@z"]}


def test_remove_destination_can_leave_mailbox_empty() -> None:
    table = {"a@x": ["b@y"]}

    assert remove_destination(table, "a@x", "b@y") is True
    assert table == {"a@x": []}
    assert remove_destination(table, "a@x", "b@y") is False
    assert remove_destination(table, "missing@x", "b@y") is False


def test_remove_mailbox() -> None:
    table = {"a@x": ["b@y"]}

    assert remove_mailbox(table, "a@x") is True
    assert remove_mailbox(table, "a@x") is False
    assert table == {}


def test_rename_mailbox_keeps_destinations() -> None:
    table = {"a@x": ["b@y", "c@z"]}

    rename_mailbox(table, "a@x", "renamed@x")

    assert table == {"renamed@x": ["b@y", "c@z"]}


def test_rename_missing_mailbox() -> None:
    with pytest.raises(KeyError):
        rename_mailbox({}, "a@x", "b@x")


def test_empty_mailboxes_block_push() -> None:
    table = {"a@x": ["b@y"], "z@x": [], "m@x": []}

    assert empty_mailboxes(table) == ["m@x", "z@x"]
    assert is_pushable(table) is False
    assert is_pushable({"a@x": ["b@y"]}) is True


def test_diff_tables() -> None:
    before = {"keep@x": ["1@y", "2@y"], "gone@x": ["1@y"], "edit@x": ["1@y"]}
    after = {"keep@x": ["2@y", "1@y"], "new@x": ["1@y"], "edit@x": ["3@y"]}

    assert diff_tables(before, after) == (["new@x"], ["gone@x"], ["edit@x"])
