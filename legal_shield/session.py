"""Lifecycle of the single analysis session and its sensitive artifacts.

::

    Idle --begin--> Processing --complete--> Viewing --expire/destroy--> Destroyed
                         |                      |
                         +------fail-------> Errored
    (any) --reset--> Idle              Idle|Viewing <--> Browsing

The session is the only owner of the :class:`RedactionMap` and the restored
:class:`AnalysisResult`.  Leaving Processing/Viewing for any other stage
performs a *strict wipe*: the map is cleared in place and the result
reference is set to ``None`` before the transition returns, so the
postcondition can be checked immediately.

All transitions are serialized under one lock so a timer expiry racing a
user reset produces exactly one terminal transition.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from enum import Enum
from typing import Callable, Iterable

from pydantic import BaseModel

from legal_shield.destruct_timer import remaining_seconds
from legal_shield.errors import InvalidTransitionError, SessionBusyError
from legal_shield.models import AnalysisResult
from legal_shield.redaction_map import RedactionMap
from legal_shield.restorer import RedactionAnomaly

logger = logging.getLogger(__name__)

# Exposure window shared by every session.  Intentionally not a setting.
DESTRUCT_WINDOW_SECONDS = 60.0


class Stage(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    VIEWING = "viewing"
    DESTROYED = "destroyed"
    ERRORED = "errored"
    BROWSING = "browsing"


class SessionStatus(BaseModel):
    """Non-sensitive snapshot of the session, safe to display or log."""

    stage: Stage
    remaining_seconds: int | None = None
    session_token: str | None = None
    error: str | None = None


def _new_session_token() -> str:
    return "tk_" + secrets.token_hex(8)


class Session:
    """State machine guarding one document's sensitive data."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.RLock()

        self.stage = Stage.IDLE
        self.redaction_map = RedactionMap()
        self.analysis_result: AnalysisResult | None = None
        self.expiry_deadline: float | None = None
        self.session_token: str | None = None
        self.error: str | None = None
        self.anomalies: list[RedactionAnomaly] = []

        # Bumped on every reset so in-flight work can detect it was abandoned.
        self.generation = 0
        # Stage to return to when leaving Browsing.
        self._resume_stage = Stage.IDLE

    # ------------------------------------------------------------------
    # Pipeline transitions
    # ------------------------------------------------------------------

    def begin(self) -> int:
        """Idle -> Processing.  Returns the generation of the new attempt.

        A session that is Viewing, Destroyed, Errored or Browsing is reset
        implicitly first; a second upload while Processing is rejected.
        """
        with self._lock:
            if self.stage is Stage.PROCESSING:
                raise SessionBusyError("An analysis is already in progress")
            if self.stage is not Stage.IDLE:
                self._reset_locked("new upload")
            # Residual state from a prior session must never leak forward.
            self._wipe_locked()
            self.redaction_map = RedactionMap()
            self.error = None
            self.stage = Stage.PROCESSING
            logger.info("Session %d: processing", self.generation)
            return self.generation

    def complete(
        self,
        result: AnalysisResult,
        generation: int,
        anomalies: Iterable[RedactionAnomaly] = (),
    ) -> bool:
        """Processing -> Viewing.  ``False`` if the attempt was abandoned."""
        with self._lock:
            if generation != self.generation or self.stage is not Stage.PROCESSING:
                logger.info("Discarding result of abandoned session %d", generation)
                return False
            self.analysis_result = result
            self.anomalies = list(anomalies)
            self.expiry_deadline = self._clock() + DESTRUCT_WINDOW_SECONDS
            self.session_token = _new_session_token()
            self.stage = Stage.VIEWING
            logger.info(
                "Session %d: viewing as %s for %.0fs",
                generation,
                self.session_token,
                DESTRUCT_WINDOW_SECONDS,
            )
            return True

    def fail(self, error: BaseException | str, generation: int) -> bool:
        """Processing -> Errored.  ``False`` if the attempt was abandoned."""
        with self._lock:
            if generation != self.generation or self.stage is not Stage.PROCESSING:
                return False
            self._wipe_locked()
            self.error = str(error) or type(error).__name__
            self.stage = Stage.ERRORED
            logger.warning("Session %d: errored (%s)", generation, self.error)
            return True

    def abandon(self, generation: int) -> bool:
        """Reset only if *generation* is still the current attempt."""
        with self._lock:
            if generation != self.generation:
                return False
            self._reset_locked("cancelled")
            return True

    # ------------------------------------------------------------------
    # Destruction
    # ------------------------------------------------------------------

    def expire(self) -> bool:
        """Destroy the session if its deadline has passed.

        Returns ``True`` only for the call that performed the destruction.
        """
        with self._lock:
            if self.expiry_deadline is None or self._clock() < self.expiry_deadline:
                return False
            if self.stage is Stage.VIEWING:
                self._wipe_locked()
                self.stage = Stage.DESTROYED
                logger.info("Session %d: destroyed (expired)", self.generation)
                return True
            if self.stage is Stage.BROWSING:
                # Data goes now; there is nothing left to return to.
                self._wipe_locked()
                self._resume_stage = Stage.IDLE
                logger.info("Session %d: wiped while browsing (expired)", self.generation)
                return True
            return False

    def destroy(self) -> None:
        """User-initiated Viewing -> Destroyed."""
        with self._lock:
            if self.stage is not Stage.VIEWING:
                raise InvalidTransitionError(f"Cannot destroy from {self.stage.value}")
            self._wipe_locked()
            self.stage = Stage.DESTROYED
            logger.info("Session %d: destroyed (user)", self.generation)

    def reset(self) -> None:
        """Any stage -> Idle, wiping everything."""
        with self._lock:
            self._reset_locked("reset")

    # ------------------------------------------------------------------
    # Browsing side-state
    # ------------------------------------------------------------------

    def browse(self) -> None:
        with self._lock:
            if self.stage not in (Stage.IDLE, Stage.VIEWING):
                raise InvalidTransitionError(f"Cannot browse from {self.stage.value}")
            self._resume_stage = self.stage
            self.stage = Stage.BROWSING

    def leave_browsing(self) -> Stage:
        """Return to Viewing if the session is still live, otherwise Idle."""
        with self._lock:
            if self.stage is not Stage.BROWSING:
                raise InvalidTransitionError(f"Not browsing (stage is {self.stage.value})")
            # Catch an expiry that no timer tick has observed yet.
            self.expire()
            if self._resume_stage is Stage.VIEWING and self.is_live:
                self.stage = Stage.VIEWING
            else:
                self._wipe_locked()
                self.stage = Stage.IDLE
            self._resume_stage = Stage.IDLE
            return self.stage

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_live(self) -> bool:
        """A result exists and its deadline has not passed."""
        with self._lock:
            return (
                self.analysis_result is not None
                and self.expiry_deadline is not None
                and self._clock() < self.expiry_deadline
            )

    def time_left(self) -> float | None:
        with self._lock:
            if self.expiry_deadline is None:
                return None
            return max(self.expiry_deadline - self._clock(), 0.0)

    def status(self) -> SessionStatus:
        with self._lock:
            remaining = None
            if self.expiry_deadline is not None:
                remaining = remaining_seconds(self.expiry_deadline, self._clock())
            return SessionStatus(
                stage=self.stage,
                remaining_seconds=remaining,
                session_token=self.session_token,
                error=self.error,
            )

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _wipe_locked(self) -> None:
        self.redaction_map.clear()
        self.analysis_result = None
        self.anomalies = []
        self.expiry_deadline = None
        self.session_token = None

    def _reset_locked(self, reason: str) -> None:
        self._wipe_locked()
        # A stale in-flight attempt may still hold the old map; detach it.
        self.redaction_map = RedactionMap()
        self.error = None
        self.stage = Stage.IDLE
        self._resume_stage = Stage.IDLE
        self.generation += 1
        logger.info("Session reset (%s); generation %d", reason, self.generation)
