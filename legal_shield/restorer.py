"""Put original values back into a result returned by the analysis service.

Restoration is an explicit encode -> substitute -> decode pipeline:

1. The result tree is flattened to a JSON document.
2. Every placeholder in that document is replaced by its original value,
   escaped with the same JSON string rules (quotes, backslashes and
   control characters in a name or address cannot break the document).
3. The document is parsed back and, for :class:`AnalysisResult` inputs,
   re-validated into the model.

Placeholders only ever occur inside JSON string literals, so numeric and
enum fields pass through untouched.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, TypeVar

from pydantic import BaseModel

from legal_shield.redaction_map import TOKEN_PATTERN, RedactionMap

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedactionAnomaly(BaseModel):
    """Non-fatal mismatch between a result and the redaction map.

    Only the placeholder text is recorded, never the original value.
    """

    kind: Literal["unresolved_token", "unreferenced_entry"]
    token: str


def restore(result: T, redaction_map: RedactionMap) -> T:
    """Return *result* with every known placeholder replaced by its original."""
    restored, _ = restore_with_anomalies(result, redaction_map)
    return restored


def restore_with_anomalies(
    result: T, redaction_map: RedactionMap
) -> tuple[T, list[RedactionAnomaly]]:
    """Restore *result* and report tokens that could not be matched.

    Tokens absent from the map (fabricated or mangled by the model) are
    left in place verbatim.
    """
    if isinstance(result, BaseModel):
        document = _encode(result.model_dump(mode="json", by_alias=True))
    else:
        document = _encode(result)

    document, seen, unresolved = _substitute(document, redaction_map)
    anomalies = _anomalies(redaction_map, seen, unresolved)

    decoded = json.loads(document)
    if isinstance(result, BaseModel):
        return type(result).model_validate(decoded), anomalies
    return decoded, anomalies


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def _encode(tree: Any) -> str:
    return json.dumps(tree, ensure_ascii=False)


def _escape(value: str) -> str:
    """Encode *value* as the body of a JSON string literal."""
    return json.dumps(value, ensure_ascii=False)[1:-1]


def _substitute(
    document: str, redaction_map: RedactionMap
) -> tuple[str, set[str], list[str]]:
    seen: set[str] = set()
    unresolved: list[str] = []

    def _sub(match: re.Match[str]) -> str:
        token = match.group(0)
        original = redaction_map.lookup(token)
        if original is None:
            unresolved.append(token)
            return token
        seen.add(token)
        return _escape(original)

    return TOKEN_PATTERN.sub(_sub, document), seen, unresolved


def _anomalies(
    redaction_map: RedactionMap, seen: set[str], unresolved: list[str]
) -> list[RedactionAnomaly]:
    anomalies: list[RedactionAnomaly] = []

    for token in dict.fromkeys(unresolved):
        logger.warning("Result references unknown placeholder %s; left as is", token)
        anomalies.append(RedactionAnomaly(kind="unresolved_token", token=token))

    unreferenced = [token for token in redaction_map if token not in seen]
    if unreferenced:
        logger.info("%d placeholder(s) never echoed back by the analysis", len(unreferenced))
    anomalies.extend(
        RedactionAnomaly(kind="unreferenced_entry", token=token) for token in unreferenced
    )
    return anomalies
