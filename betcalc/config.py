"""Engine configuration: every tunable default in one place.

:class:`EngineConfig` is a frozen dataclass; nothing in ``betcalc.core``
reads it.  Services and the HTTP layer pull values from it and pass them to
the pure functions as keyword arguments.

Typical usage::

    from betcalc.config import get_config

    cfg = get_config()
    summary = compute_risk_metrics(scenarios, stake, tolerance=cfg.risk_free_tolerance)

    # Override a single value for one caller:
    from dataclasses import replace
    lenient = replace(cfg, risk_free_tolerance=5.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration bundle.

    Attributes:
        risk_free_tolerance: Worst-case loss (in currency) still reported as
            risk-free.  0.0 means a bet is risk-free only if no scenario
            loses money.
        max_kelly_fraction: Default Kelly cap when a caller does not supply
            one.  1.0 is uncapped.
        default_commission: Exchange commission rate used when a request
            omits it (2% is the common exchange rate).
        currency_places: Decimal places for presentation rounding.
        log_level: Logging level name for the HTTP app and the CLI.
    """

    risk_free_tolerance: float = 0.0
    max_kelly_fraction: float = 1.0
    default_commission: float = 0.02
    currency_places: int = 2
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from ``BETCALC_*`` environment variables (and .env)."""
        load_dotenv()
        return cls(
            risk_free_tolerance=float(os.getenv("BETCALC_RISK_FREE_TOLERANCE", "0.0")),
            max_kelly_fraction=float(os.getenv("BETCALC_MAX_KELLY_FRACTION", "1.0")),
            default_commission=float(os.getenv("BETCALC_DEFAULT_COMMISSION", "0.02")),
            currency_places=int(os.getenv("BETCALC_CURRENCY_PLACES", "2")),
            log_level=os.getenv("BETCALC_LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """Return the cached environment-derived configuration."""
    return EngineConfig.from_env()
