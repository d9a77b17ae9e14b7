"""Runtime settings and logging setup.

Settings come from the environment (a local ``.env`` is honoured).  The
destruct window is not configurable; it is the fixed constant
``DESTRUCT_WINDOW_SECONDS`` in :mod:`legal_shield.session`.

Environment variables
---------------------
``GEMINI_API_KEY``                 API key for the analysis service.
``LEGAL_SHIELD_MODEL``             Model name (default ``gemini-2.5-flash``).
``LEGAL_SHIELD_BASE_URL``          OpenAI-compatible endpoint.
``LEGAL_SHIELD_TIMEOUT``           Request timeout in seconds (default 120).
``LEGAL_SHIELD_MAX_PAYLOAD_CHARS`` Masked-text limit (default 500000).
``LEGAL_SHIELD_LOG_LEVEL``         Root log level (default INFO).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import dotenv

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_PAYLOAD_CHARS = 500_000
MIN_TEXT_CHARS = 50

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = GEMINI_OPENAI_BASE_URL
    timeout: float = 120.0
    max_payload_chars: int = DEFAULT_MAX_PAYLOAD_CHARS
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment."""
    dotenv.load_dotenv()
    return Settings(
        api_key=os.getenv("GEMINI_API_KEY") or None,
        model=os.getenv("LEGAL_SHIELD_MODEL", DEFAULT_MODEL),
        base_url=os.getenv("LEGAL_SHIELD_BASE_URL", GEMINI_OPENAI_BASE_URL),
        timeout=float(os.getenv("LEGAL_SHIELD_TIMEOUT", "120")),
        max_payload_chars=int(
            os.getenv("LEGAL_SHIELD_MAX_PAYLOAD_CHARS", str(DEFAULT_MAX_PAYLOAD_CHARS))
        ),
        log_level=os.getenv("LEGAL_SHIELD_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging once for the service process."""
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    # Request logs from the HTTP stack would echo masked payload sizes and URLs.
    for name in ("openai", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
