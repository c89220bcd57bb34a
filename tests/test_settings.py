from __future__ import annotations

import pytest

from ledger.settings import Settings


def test_defaults_with_empty_environment() -> None:
    assert Settings.from_env({}) == Settings()


def test_reads_overrides() -> None:
    settings = Settings.from_env({
        "TOUR_LEDGER_DATA_FILE": "/tmp/ledger.json",
        "TOUR_LEDGER_MODEL": "openrouter/openai/gpt-4o-mini",
        "TOUR_LEDGER_INSIGHT_ENABLED": "False",
        "TOUR_LEDGER_INSIGHT_TIMEOUT": "5",
        "TOUR_LEDGER_LOG_LEVEL": "debug",
    })

    assert settings.data_file == "/tmp/ledger.json"
    assert settings.model == "openrouter/openai/gpt-4o-mini"
    assert settings.insight_enabled is False
    assert settings.insight_timeout_seconds == 5.0
    assert settings.log_level == "DEBUG"


def test_bad_timeout_is_reported() -> None:
    with pytest.raises(ValueError, match="TOUR_LEDGER_INSIGHT_TIMEOUT"):
        Settings.from_env({"TOUR_LEDGER_INSIGHT_TIMEOUT": "soon"})


def test_from_env_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("TOUR_LEDGER_DATA_FILE", "custom.json")
    assert Settings.from_env().data_file == "custom.json"
