"""Schema of the structured risk report returned by the analysis service.

Field names on the wire are camelCase (``riskScore``, ``keyDates``) to
match what the model is instructed to produce; attributes are snake_case.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RiskCategory(str, Enum):
    TERMINATION = "Termination"
    LIABILITY = "Liability"
    NDA = "NDA"
    JURISDICTION = "Jurisdiction"
    OTHER = "Other"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskFinding(BaseModel):
    """A single risk identified in the contract."""

    category: RiskCategory
    description: str
    """Why the clause is a risk, in English."""

    severity: Severity
    quote: str
    """Clause text in the document's original language.  May carry
    ``[REDACTED_...]`` markers until restoration."""


class AnalysisResult(BaseModel):
    """Structured risk report for one document."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    risk_score: int = Field(..., alias="riskScore", ge=0, le=100)
    risks: list[RiskFinding]
    key_dates: list[str] | None = Field(None, alias="keyDates")
    parties: list[str] | None = None

    def to_wire(self) -> dict:
        """JSON-compatible dict using the camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
