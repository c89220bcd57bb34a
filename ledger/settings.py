# =============================================================================
# ledger/settings.py  —  Environment-driven configuration
# =============================================================================
#
# Entry points call load_dotenv() first, then Settings.from_env().  Library
# code receives a Settings object and never reads os.environ itself.
#
#   TOUR_LEDGER_DATA_FILE        JSON file backing the store
#   TOUR_LEDGER_MODEL            LiteLLM model string for the advisor
#   TOUR_LEDGER_INSIGHT_ENABLED  "false" skips the advisor call entirely
#   TOUR_LEDGER_INSIGHT_TIMEOUT  seconds before the fallback insight is used
#   TOUR_LEDGER_LOG_LEVEL        logging level name
#
# OPENROUTER_API_KEY is not listed here: LiteLLM reads it directly.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional


_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    data_file: str = "tour_ledger_data.json"
    model: str = "openrouter/openai/gpt-4o"
    insight_enabled: bool = True
    insight_timeout_seconds: float = 20.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()

        timeout_raw = env.get("TOUR_LEDGER_INSIGHT_TIMEOUT", "")
        try:
            timeout = float(timeout_raw) if timeout_raw.strip() else defaults.insight_timeout_seconds
        except ValueError:
            raise ValueError(
                f"TOUR_LEDGER_INSIGHT_TIMEOUT must be a number of seconds, got {timeout_raw!r}"
            ) from None

        enabled_raw = env.get("TOUR_LEDGER_INSIGHT_ENABLED", "true")

        return cls(
            data_file=env.get("TOUR_LEDGER_DATA_FILE", defaults.data_file),
            model=env.get("TOUR_LEDGER_MODEL", defaults.model),
            insight_enabled=enabled_raw.strip().lower() not in _FALSE_VALUES,
            insight_timeout_seconds=timeout,
            log_level=env.get("TOUR_LEDGER_LOG_LEVEL", defaults.log_level).upper(),
        )
