import pytest

from betcalc.config import get_config

_ENV_VARS = (
    "BETCALC_RISK_FREE_TOLERANCE",
    "BETCALC_MAX_KELLY_FRACTION",
    "BETCALC_DEFAULT_COMMISSION",
    "BETCALC_CURRENCY_PLACES",
    "BETCALC_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from default config; env overrides are per-test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()
