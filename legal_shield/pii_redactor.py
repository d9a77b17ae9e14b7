"""PII redaction with reversible placeholder mapping.

Design goals
------------
* **Local masking**: every detected span is replaced by a
  ``[REDACTED_<CATEGORY>_<N>]`` marker before the text leaves the process;
  the originals only live in the session's :class:`RedactionMap`.
* **Deterministic**: rules run in a fixed priority order and the first rule
  to claim a span wins.  An organisation name that also looks like
  "Capitalised Capitalised" is therefore always ENTITY, never PERSON.
* **Extensible**: add a row to ``_RULES`` without touching ``redact``.

The detectors are heuristics, not an NER model.  They target contracts
written in English or Turkish, so letter classes include Latin-1 accents
and the Turkish letters Ş ş Ğ ğ İ ı.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import ClassVar

from legal_shield.redaction_map import (
    MARKER_PREFIX,
    TOKEN_PATTERN,
    PIICategory,
    RedactionMap,
)

logger = logging.getLogger(__name__)


# Upper / lower case letters: ASCII, Latin-1 accents, Turkish specials.
_UPPER = "A-ZÀ-ÖØ-ÞŞĞİ"
_LOWER = "a-zß-öø-ÿşğı"

_ENTITY_WORD = rf"[{_UPPER}{_LOWER}0-9&]+"
_NAME_WORD = rf"[{_UPPER}][{_LOWER}]{{2,}}"
# Longer suffixes first so "Ltd. Şti." is not cut short at "Ltd.".
_LEGAL_SUFFIX = (
    r"(?:FZ-LLC|LLC|Inc\.|Ltd\.\s*Şti\.|Ltd\.|Corp\.|GmbH|Co\."
    r"|Tic\.\s*A\.Ş\.|A\.Ş\.|Limited|Şirketi|Holding)"
)
_CURRENCY = r"(?:USD|TL|TRY|EURO|EUR|DOLAR|L[İI]RA|£|\$|€)"
_AMOUNT = r"(?:\d{1,3}(?:[.,]\d{3})+|\d+)(?:[.,]\d+)?"


@dataclass(frozen=True)
class _Rule:
    category: PIICategory
    pattern: re.Pattern[str]
    priority: int


@dataclass
class PIIRedactor:
    """Detect and mask PII in contract text.

    Example
    -------
    >>> redactor = PIIRedactor()
    >>> masked, mapping = redactor.redact("Mail jane@example.com today")
    >>> masked
    'Mail [REDACTED_EMAIL_1] today'
    >>> mapping.lookup("[REDACTED_EMAIL_1]")
    'jane@example.com'
    """

    # Applied in ascending priority.  PERSON must stay last so names already
    # consumed by ENTITY are not captured again.
    _RULES: ClassVar[list[_Rule]] = [
        _Rule(
            PIICategory.EMAIL,
            re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}"),
            10,
        ),
        _Rule(
            # 11 digit national identity number; no checksum validation.
            PIICategory.ID,
            re.compile(r"\b\d{11}\b"),
            20,
        ),
        _Rule(
            # +90 5XX XXX XX XX, 05XX XXX XX XX, 5XXXXXXXXX
            PIICategory.PHONE,
            re.compile(
                r"(?<![\d+])(?:\+90[ \t]*|0)?5\d{2}[ \t]*\d{3}[ \t]*\d{2}[ \t]*\d{2}(?!\d)"
            ),
            30,
        ),
        _Rule(
            # 150.000 USD, 100 TL, 2,500.50 EUR, $500, €1.200
            PIICategory.MONEY,
            re.compile(
                rf"[$€£][ \t]?{_AMOUNT}"
                rf"|\b{_AMOUNT}\s*{_CURRENCY}(?!\w)",
                re.IGNORECASE,
            ),
            40,
        ),
        _Rule(
            # DD.MM.YYYY, DD/MM/YYYY, DD-MM-YY
            PIICategory.DATE,
            re.compile(r"\b\d{1,2}[./\-]\d{1,2}[./\-]\d{2,4}\b"),
            50,
        ),
        _Rule(
            # Up to four words closed by a legal-form suffix.
            PIICategory.ENTITY,
            re.compile(
                rf"\b(?:{_ENTITY_WORD}[ \t]+){{0,3}}{_ENTITY_WORD}\s*{_LEGAL_SUFFIX}(?!\w)"
            ),
            60,
        ),
        _Rule(
            # "Name Middle Surname": a run of two or more capitalised words.
            PIICategory.PERSON,
            re.compile(rf"\b{_NAME_WORD}(?:\s+{_NAME_WORD})+\b"),
            70,
        ),
    ]

    rules: list[_Rule] = field(
        default_factory=lambda: sorted(PIIRedactor._RULES, key=lambda r: r.priority)
    )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def redact(
        self,
        text: str,
        redaction_map: RedactionMap | None = None,
    ) -> tuple[str, RedactionMap]:
        """Replace PII spans with placeholders.

        Parameters
        ----------
        text : str
            Raw document text.  Must be the *full* text; truncation is the
            caller's job and happens on the masked output.
        redaction_map : RedactionMap | None
            The session's map.  A fresh one is created when omitted.

        Returns
        -------
        masked_text : str
            The input with every detected span replaced by its placeholder.
        redaction_map : RedactionMap
            The map the placeholders were recorded in.
        """
        if redaction_map is None:
            redaction_map = RedactionMap()
        for marker in TOKEN_PATTERN.finditer(text):
            redaction_map.reserve(int(marker.group(2)))

        counts: Counter[str] = Counter()
        for rule in self.rules:
            text = self._replace(text, rule, redaction_map, counts)

        if counts:
            logger.debug(
                "Masked %d span(s): %s",
                sum(counts.values()),
                ", ".join(f"{cat}={n}" for cat, n in counts.items()),
            )
        return text, redaction_map

    def list_rules(self) -> list[dict[str, str | int]]:
        """Return the active rules in application order."""
        return [
            {"category": r.category.value, "priority": r.priority, "pattern": r.pattern.pattern}
            for r in self.rules
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _replace(
        text: str,
        rule: _Rule,
        redaction_map: RedactionMap,
        counts: Counter[str],
    ) -> str:
        """Replace all *rule* matches in *text*, recording them in the map."""
        # Markers already present (earlier rules, or a re-entrant call).
        markers = [(m.start(), m.end()) for m in TOKEN_PATTERN.finditer(text)]

        def _sub(match: re.Match[str]) -> str:
            original = match.group(0)
            if original.startswith(MARKER_PREFIX):
                return original
            start, end = match.span()
            if any(start < m_end and end > m_start for m_start, m_end in markers):
                return original
            token = redaction_map.allocate(rule.category, original)
            counts[rule.category.value] += 1
            return token.render()

        return rule.pattern.sub(_sub, text)
