"""Session-scoped placeholder allocation and the token -> original mapping.

Every session owns exactly one :class:`RedactionMap`.  The ordinal counter
lives on the map itself (not at module level) and is shared by all PII
categories, so ``[REDACTED_EMAIL_1]`` and ``[REDACTED_PERSON_1]`` can never
both exist within a session.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class PIICategory(str, Enum):
    EMAIL = "EMAIL"
    ID = "ID"
    PHONE = "PHONE"
    MONEY = "MONEY"
    DATE = "DATE"
    ENTITY = "ENTITY"
    PERSON = "PERSON"


MARKER_PREFIX = "[REDACTED_"

# Fixed grammar of a rendered placeholder: [REDACTED_<CATEGORY>_<ordinal>]
TOKEN_PATTERN: re.Pattern[str] = re.compile(r"\[REDACTED_([A-Z][A-Z_]*)_(\d+)\]")


@dataclass(frozen=True)
class PlaceholderToken:
    """A reversible marker standing in for one detected PII span."""

    category: PIICategory
    ordinal: int

    def render(self) -> str:
        return f"{MARKER_PREFIX}{self.category.value}_{self.ordinal}]"

    def __str__(self) -> str:
        return self.render()

    @classmethod
    def parse(cls, text: str) -> PlaceholderToken | None:
        """Parse a rendered token; ``None`` if *text* is not exactly one."""
        match = TOKEN_PATTERN.fullmatch(text)
        if match is None:
            return None
        try:
            category = PIICategory(match.group(1))
        except ValueError:
            return None
        return cls(category=category, ordinal=int(match.group(2)))


class RedactionMap:
    """Rendered placeholder -> original substring, for a single session."""

    __slots__ = ("_entries", "_counter")

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._counter = 0

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def allocate(self, category: PIICategory, original: str) -> PlaceholderToken:
        """Mint the next token for *category* and record *original* under it."""
        self._counter += 1
        token = PlaceholderToken(category=PIICategory(category), ordinal=self._counter)
        self._entries[token.render()] = original
        return token

    def reserve(self, ordinal: int) -> None:
        """Never allocate *ordinal* or below; it is already used in the text."""
        self._counter = max(self._counter, ordinal)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, rendered: str) -> str | None:
        return self._entries.get(rendered)

    def __contains__(self, rendered: object) -> bool:
        return rendered in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def tokens(self) -> list[str]:
        return list(self._entries)

    def items(self) -> list[tuple[str, str]]:
        return list(self._entries.items())

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the mapping."""
        return dict(self._entries)

    @property
    def counter(self) -> int:
        """Highest ordinal allocated so far."""
        return self._counter

    # ------------------------------------------------------------------
    # Wipe
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop every entry and reset the ordinal counter."""
        self._entries.clear()
        self._counter = 0

    def __repr__(self) -> str:
        # Never render original values.
        return f"RedactionMap(size={len(self._entries)})"
