"""
Alias table format and editing
"""
from .codec import parse, serialize, decode, payload_lines, split_destinations
from .table import (
    normalize_destinations,
    set_destinations,
    remove_mailbox,
    rename_mailbox,
    add_destination,
    remove_destination,
    empty_mailboxes,
    is_pushable,
    diff_tables,
)

__all__ = [
    "parse",
    "serialize",
    "decode",
    "payload_lines",
    "split_destinations",
    "normalize_destinations",
    "set_destinations",
    "remove_mailbox",
    "rename_mailbox",
    "add_destination",
    "remove_destination",
    "empty_mailboxes",
    "is_pushable",
    "diff_tables",
]
