"""Small input helpers shared by handlers and services."""

import re
from typing import Optional

_NON_PHONE_CHARS = re.compile(r"[^\d+]")


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Keep digits and a single leading '+'.

    Gateway ids such as "595981123456@c.us" are reduced to their digits.
    Returns None when nothing usable is left.
    """
    if not raw:
        return None
    local = raw.split("@", 1)[0]
    cleaned = _NON_PHONE_CHARS.sub("", local)
    plus = cleaned.startswith("+")
    digits = cleaned.replace("+", "")
    if not digits:
        return None
    return f"+{digits}" if plus else digits


def mask_phone(raw: Optional[str]) -> str:
    """Hide all but the first digits of a phone number for logs."""
    if not raw:
        return "none"
    return f"{raw[:8]}***"
