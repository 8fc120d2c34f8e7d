"""
Virtual alias file codec

Format, one mailbox per line:

    # comment
    alice@example.com bob@example.org
    carol@example.com dave@example.net, eve@example.net

The mailbox is everything before the first space; the rest is a list of
destinations separated by whitespace and/or commas.
"""
import re
from itertools import groupby
from typing import Iterable, List

from ...core.exceptions import ParseError
from ...core.logging import get_logger
from ..models import AliasTable

logger = get_logger(__name__)

_DESTINATION_SEPARATOR = re.compile(r"[\s,]")


# ============================================================
# Parsing
# ============================================================

def split_destinations(source: str) -> List[str]:
    """
    Split a destination list.

    Tokens are trimmed, empty tokens dropped and adjacent duplicates
    collapsed. Non-adjacent duplicates are kept.
    """
    tokens = [token.strip() for token in _DESTINATION_SEPARATOR.split(source)]
    return [token for token, _ in groupby(token for token in tokens if token)]


def parse(text: str) -> AliasTable:
    """
    Parse alias file content.

    Args:
        text: Raw file content

    Returns:
        Mailbox to destinations mapping. A mailbox repeated on a later line
        replaces the earlier entry.

    Raises:
        ParseError: A non-comment line has no space separator. The whole
            file is rejected; no partial table is returned.
    """
    table: AliasTable = {}

    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        mailbox, sep, rest = line.partition(" ")
        if not sep:
            logger.error(f"Rejecting alias file, line {number} has no separator: '{line}'")
            raise ParseError(
                f"Error parsing file: line {number} has no destination: '{line}'",
                line_number=number,
                line=line,
            )

        table[mailbox] = split_destinations(rest)

    return table


def decode(raw: bytes) -> str:
    """Decode remote file bytes as UTF-8"""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Error parsing file: not valid UTF-8 ({e})") from e


# ============================================================
# Serialization
# ============================================================

def serialize(table: AliasTable, sort_keys: bool = False) -> str:
    """Render a table as alias file content, one line per mailbox"""
    keys: Iterable[str] = sorted(table) if sort_keys else table
    return "".join(f"{key} {' '.join(table[key])}\n" for key in keys)


def payload_lines(text: str) -> List[str]:
    """Sorted line list, the order-independent form used for verification"""
    return sorted(text.splitlines())
