"""
Text helpers for keyword matching on Spanish chat messages.

Matching happens on a folded copy of the message (accents removed,
lower-cased) so spelling variants with and without tildes collapse to one
keyword. Phrases match on word boundaries only.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Optional, Pattern


def fold(text: Optional[str]) -> str:
    """Lower-case and strip diacritics ("Clínica" -> "clinica")."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def phrase_pattern(phrases: Iterable[str]) -> Optional[Pattern[str]]:
    """
    Compile folded phrases into one alternation anchored on word boundaries.

    Longer phrases come first so "ya mismo" wins over "ya" at the same offset.
    Inner whitespace matches any whitespace run.
    """
    folded = sorted({fold(p).strip() for p in phrases if p and p.strip()}, key=len, reverse=True)
    if not folded:
        return None
    parts = [r"\s+".join(re.escape(token) for token in phrase.split()) for phrase in folded]
    return re.compile(r"(?<!\w)(?:" + "|".join(parts) + r")(?!\w)")


def collapse_whitespace(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def truncate(text: Optional[str], limit: int) -> str:
    """Cut text for display, marking the cut with an ellipsis."""
    value = collapse_whitespace(text)
    if len(value) <= limit:
        return value
    return value[: max(limit - 3, 0)].rstrip() + "..."
