"""Tests for environment-driven settings."""

from legal_shield.config import DEFAULT_MODEL, load_settings


def test_defaults(monkeypatch):
    for name in (
        "GEMINI_API_KEY",
        "LEGAL_SHIELD_MODEL",
        "LEGAL_SHIELD_TIMEOUT",
        "LEGAL_SHIELD_MAX_PAYLOAD_CHARS",
        "LEGAL_SHIELD_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("legal_shield.config.dotenv.load_dotenv", lambda: False)

    settings = load_settings()

    assert settings.api_key is None
    assert settings.model == DEFAULT_MODEL
    assert settings.max_payload_chars == 500_000
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setattr("legal_shield.config.dotenv.load_dotenv", lambda: False)
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    monkeypatch.setenv("LEGAL_SHIELD_MAX_PAYLOAD_CHARS", "1000")
    monkeypatch.setenv("LEGAL_SHIELD_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.api_key == "abc"
    assert settings.max_payload_chars == 1000
    assert settings.log_level == "DEBUG"
