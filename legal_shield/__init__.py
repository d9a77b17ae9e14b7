"""Legal Shield -- ephemeral contract risk analysis.

PII is masked locally before the text reaches the analysis service,
restored in the returned report, and wiped with the rest of the session
once the fixed destruct window elapses.
"""

from legal_shield.analysis_client import AnalysisClient, GeminiAnalysisClient
from legal_shield.destruct_timer import DestructTimer
from legal_shield.errors import (
    ExternalServiceError,
    InputError,
    InvalidTransitionError,
    LegalShieldError,
    SessionBusyError,
    SessionCancelledError,
)
from legal_shield.models import AnalysisResult, RiskCategory, RiskFinding, Severity
from legal_shield.pii_redactor import PIIRedactor
from legal_shield.pipeline import ContractAnalysisPipeline
from legal_shield.redaction_map import PIICategory, PlaceholderToken, RedactionMap
from legal_shield.restorer import RedactionAnomaly, restore, restore_with_anomalies
from legal_shield.session import DESTRUCT_WINDOW_SECONDS, Session, SessionStatus, Stage

__all__ = [
    "PIIRedactor",
    "PIICategory",
    "PlaceholderToken",
    "RedactionMap",
    "RedactionAnomaly",
    "restore",
    "restore_with_anomalies",
    "Session",
    "SessionStatus",
    "Stage",
    "DESTRUCT_WINDOW_SECONDS",
    "DestructTimer",
    "AnalysisClient",
    "GeminiAnalysisClient",
    "AnalysisResult",
    "RiskFinding",
    "RiskCategory",
    "Severity",
    "ContractAnalysisPipeline",
    "LegalShieldError",
    "InputError",
    "ExternalServiceError",
    "SessionBusyError",
    "InvalidTransitionError",
    "SessionCancelledError",
]
