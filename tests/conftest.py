"""Shared fakes: a controllable clock and an echoing analysis service."""

from __future__ import annotations

import pytest

from legal_shield.models import AnalysisResult, RiskCategory, RiskFinding, Severity
from legal_shield.redaction_map import TOKEN_PATTERN
from legal_shield.session import Session

SCENARIO = "Contact Jane Doe at jane.doe@example.com, penalty 5.000 USD due 01.01.2025."


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EchoClient:
    """Analysis service stand-in that quotes the masked text back verbatim."""

    def __init__(self) -> None:
        self.received: list[str] = []

    async def analyze(self, masked_text: str) -> AnalysisResult:
        self.received.append(masked_text)
        tokens = [m.group(0) for m in TOKEN_PATTERN.finditer(masked_text)]
        return AnalysisResult(
            summary=f"Penalty clause involving {', '.join(tokens)}.",
            riskScore=72,
            risks=[
                RiskFinding(
                    category=RiskCategory.TERMINATION,
                    description="Early termination triggers a fixed penalty.",
                    severity=Severity.HIGH,
                    quote=masked_text,
                ),
            ],
            keyDates=[t for t in tokens if "_DATE_" in t],
            parties=[t for t in tokens if "_PERSON_" in t or "_ENTITY_" in t],
        )

    def get_model_info(self) -> dict[str, str | float]:
        return {"provider": "echo", "model": "echo-1"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock: FakeClock) -> Session:
    return Session(clock=clock)


@pytest.fixture
def sample_result() -> AnalysisResult:
    return AnalysisResult(
        summary="Standard supply agreement.",
        riskScore=40,
        risks=[
            RiskFinding(
                category=RiskCategory.LIABILITY,
                description="Liability is uncapped.",
                severity=Severity.MEDIUM,
                quote="The supplier is liable without limit.",
            ),
        ],
    )
