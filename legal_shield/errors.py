"""Error taxonomy for the analysis pipeline.

``InputError`` and ``ExternalServiceError`` are terminal for the current
attempt: the session moves to ``Errored`` and a reset is required before
retrying.  Redaction anomalies are *not* exceptions -- see
:class:`legal_shield.restorer.RedactionAnomaly`.
"""

from __future__ import annotations


class LegalShieldError(Exception):
    """Base class for every error raised by this package."""


class InputError(LegalShieldError):
    """Extracted text is missing or too short to analyse."""


class ExternalServiceError(LegalShieldError):
    """The analysis service failed, timed out, or returned an invalid payload."""


class SessionBusyError(LegalShieldError):
    """A new analysis was requested while another one is still processing."""


class InvalidTransitionError(LegalShieldError):
    """The requested stage change is not allowed from the current stage."""


class SessionCancelledError(LegalShieldError):
    """The session was reset while its analysis was still in flight."""
