"""ContractAnalysisPipeline -- redact, analyse, restore, then self-destruct.

Typical usage::

    pipeline = ContractAnalysisPipeline(client=GeminiAnalysisClient(api_key=...))

    result = await pipeline.analyze(extracted_text)
    pipeline.status()       # stage=viewing, remaining_seconds=60

    # ... 60 seconds later the destruct timer wipes the session
    pipeline.status()       # stage=destroyed
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from legal_shield.analysis_client import AnalysisClient
from legal_shield.config import DEFAULT_MAX_PAYLOAD_CHARS, MIN_TEXT_CHARS
from legal_shield.destruct_timer import CHECK_INTERVAL_SECONDS, DestructTimer
from legal_shield.errors import InputError, SessionCancelledError
from legal_shield.models import AnalysisResult
from legal_shield.pii_redactor import PIIRedactor
from legal_shield.redaction_map import TOKEN_PATTERN
from legal_shield.restorer import restore_with_anomalies
from legal_shield.session import Session, SessionStatus, Stage

logger = logging.getLogger(__name__)


def truncate_masked(masked_text: str, limit: int) -> str:
    """Cut *masked_text* to *limit* characters without splitting a placeholder."""
    if len(masked_text) <= limit:
        return masked_text
    start = masked_text.rfind("[", 0, limit)
    if start != -1:
        token = TOKEN_PATTERN.match(masked_text, start)
        if token is not None and token.end() > limit:
            return masked_text[:start]
    return masked_text[:limit]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

@dataclass
class ContractAnalysisPipeline:
    """Drives one session through redaction, analysis and restoration.

    Parameters
    ----------
    client : AnalysisClient
        External analysis service.  Only ever sees masked text.
    session : Session
        The single active session.  One pipeline, one session.
    max_payload_chars : int
        Limit applied to the *masked* text before it is sent.
    min_text_chars : int
        Shortest non-blank text accepted for analysis.
    check_interval : float
        Destruct timer granularity in seconds.
    """

    client: AnalysisClient
    session: Session = field(default_factory=Session)
    max_payload_chars: int = DEFAULT_MAX_PAYLOAD_CHARS
    min_text_chars: int = MIN_TEXT_CHARS
    check_interval: float = CHECK_INTERVAL_SECONDS

    _redactor: PIIRedactor = field(default_factory=PIIRedactor, init=False, repr=False)
    _timer: DestructTimer | None = field(default=None, init=False, repr=False)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(self, text: str | None) -> AnalysisResult:
        """Run the full pipeline and move the session to Viewing.

        Steps
        -----
        1. Validate the input.
        2. Redact the *full* text into the session's redaction map.
        3. Truncate the masked text (never the raw text).
        4. Send it to the analysis service.
        5. Restore placeholders in the returned report.
        6. Start the destruct countdown.
        """
        self._stop_timer()
        generation = self.session.begin()
        redaction_map = self.session.redaction_map
        completed = False
        try:
            if not text or len(text.strip()) < self.min_text_chars:
                raise InputError("Could not read document content or document is empty.")

            masked_text, _ = self._redactor.redact(text, redaction_map)
            payload = truncate_masked(masked_text, self.max_payload_chars)
            if len(payload) < len(masked_text):
                logger.info(
                    "Masked text truncated from %d to %d chars", len(masked_text), len(payload)
                )

            masked_result = await self.client.analyze(payload)
            result, anomalies = restore_with_anomalies(masked_result, redaction_map)

            completed = self.session.complete(result, generation, anomalies)
            if not completed:
                raise SessionCancelledError("Session was reset during analysis")
        except asyncio.CancelledError:
            self.session.abandon(generation)
            raise
        except SessionCancelledError:
            raise
        except Exception as exc:
            self.session.fail(exc, generation)
            raise
        finally:
            if not completed:
                redaction_map.clear()

        self._start_timer()
        return result

    # ------------------------------------------------------------------
    # Session controls
    # ------------------------------------------------------------------

    def status(self) -> SessionStatus:
        if self._timer is not None:
            # Evaluate the deadline now instead of waiting for the next tick.
            return self._timer.check()
        return self.session.status()

    def destroy(self) -> SessionStatus:
        self.session.destroy()
        self._stop_timer()
        return self.session.status()

    def reset(self) -> SessionStatus:
        self._stop_timer()
        self.session.reset()
        return self.session.status()

    def browse(self) -> SessionStatus:
        self.session.browse()
        return self.session.status()

    def leave_browsing(self) -> SessionStatus:
        stage = self.session.leave_browsing()
        if stage is not Stage.VIEWING:
            self._stop_timer()
        return self.session.status()

    @property
    def result(self) -> AnalysisResult | None:
        """The restored report, only while the session is viewable."""
        self.status()
        if self.session.stage is Stage.VIEWING:
            return self.session.analysis_result
        return None

    # ------------------------------------------------------------------
    # Timer plumbing
    # ------------------------------------------------------------------

    def _start_timer(self) -> None:
        self._timer = DestructTimer(self.session, interval=self.check_interval)
        self._timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
