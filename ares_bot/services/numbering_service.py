"""
Ticket number formatting: ``TKT-YYYYMMDD-NNN``.

Only formatting and parsing live here. Reserving the next sequence for a day
is the repository's job, done atomically in the database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

TICKET_PREFIX = "TKT"
SEQUENCE_DIGITS = 3

_TICKET_RE = re.compile(r"^\s*#?(tkt)-(\d{8})-(\d{%d,})\s*$" % SEQUENCE_DIGITS, re.IGNORECASE)


@dataclass(frozen=True)
class ParsedTicketNumber:
    day: date
    sequence: int

    @property
    def canonical(self) -> str:
        return format_ticket_number(self.day, self.sequence)


def format_ticket_number(day: date, sequence: int) -> str:
    """Zero-pad the sequence to three digits; larger sequences keep all digits."""
    if sequence < 1:
        raise ValueError("ticket sequence starts at 1")
    return f"{TICKET_PREFIX}-{day:%Y%m%d}-{sequence:0{SEQUENCE_DIGITS}d}"


def parse_ticket_number(value: Optional[str]) -> Optional[ParsedTicketNumber]:
    """Parse a ticket number typed by a person ("tkt-20250301-004", "#TKT-...")."""
    if not value:
        return None
    match = _TICKET_RE.match(value)
    if not match:
        return None
    try:
        day = datetime.strptime(match.group(2), "%Y%m%d").date()
    except ValueError:
        return None
    sequence = int(match.group(3))
    if sequence < 1:
        return None
    return ParsedTicketNumber(day=day, sequence=sequence)


def is_valid_ticket_number(value: Optional[str]) -> bool:
    return parse_ticket_number(value) is not None


def canonical_ticket_number(value: Optional[str]) -> Optional[str]:
    """Uppercase, zero-padded form used as the database key."""
    parsed = parse_ticket_number(value)
    return parsed.canonical if parsed else None
