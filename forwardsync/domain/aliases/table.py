"""
In-place edits on alias tables

Every edit keeps destination lists free of blanks and duplicates.
"""
from typing import Iterable, List, Tuple

from ..models import AliasTable


def normalize_destinations(destinations: Iterable[str]) -> List[str]:
    """Trim entries, drop blanks and duplicates, keep first-seen order"""
    result: List[str] = []
    for entry in destinations:
        entry = entry.strip()
        if entry and entry not in result:
            result.append(entry)
    return result


def set_destinations(table: AliasTable, mailbox: str, destinations: Iterable[str]) -> None:
    """Insert a mailbox or replace its destinations"""
    mailbox = mailbox.strip()
    if not mailbox:
        raise ValueError("Mailbox must not be empty")
    table[mailbox] = normalize_destinations(destinations)


def remove_mailbox(table: AliasTable, mailbox: str) -> bool:
    """Remove a mailbox; returns whether it existed"""
    return table.pop(mailbox, None) is not None


def rename_mailbox(table: AliasTable, old: str, new: str) -> None:
    """Move a mailbox's destinations under a new name"""
    if old not in table:
        raise KeyError(old)
    destinations = table[old]
    set_destinations(table, new, destinations)
    if new.strip() != old:
        del table[old]


def add_destination(table: AliasTable, mailbox: str, destination: str) -> None:
    """Append one destination, creating the mailbox if needed"""
    set_destinations(table, mailbox, [*table.get(mailbox.strip(), []), destination])


def remove_destination(table: AliasTable, mailbox: str, destination: str) -> bool:
    """Drop one destination; the mailbox stays even if left empty"""
    destinations = table.get(mailbox)
    if destinations is None or destination not in destinations:
        return False
    table[mailbox] = [entry for entry in destinations if entry != destination]
    return True


def empty_mailboxes(table: AliasTable) -> List[str]:
    return sorted(mailbox for mailbox, destinations in table.items() if not destinations)


def is_pushable(table: AliasTable) -> bool:
    """A table with any mailbox lacking destinations must not be pushed"""
    return not empty_mailboxes(table)


def diff_tables(before: AliasTable, after: AliasTable) -> Tuple[List[str], List[str], List[str]]:
    """
    Compare two tables by mailbox.

    Returns:
        (added, removed, changed) sorted mailbox lists; a reordering of the
        same destinations is not a change
    """
    added = sorted(set(after) - set(before))
    removed = sorted(set(before) - set(after))
    changed = sorted(
        mailbox
        for mailbox in set(before) & set(after)
        if sorted(before[mailbox]) != sorted(after[mailbox])
    )
    return added, removed, changed
