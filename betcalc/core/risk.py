"""Risk metrics and Kelly sizing — summary maths over scenario sets.

All functions here are **pure**: no I/O, no logging.

1. :func:`compute_risk_metrics` — ROI, worst/best case, qualifying loss and
   the risk-free flag for any scenario list the evaluator produces.
2. :func:`kelly_fraction` — Kelly criterion for one back bet, capped.
3. :func:`kelly_result` — Kelly fraction turned into a stake, expected value
   and a display risk band.
4. :func:`expected_value` — EV of a back bet with an optional money-back
   refund.

Design decisions
----------------
* The win probability fed to Kelly is **caller-supplied**.  It is the
  bettor's estimate of the true probability, deliberately distinct from the
  market-implied ``1 / odds``; nothing here derives it from prices.
* The risk-free check takes an explicit ``tolerance``.  Some promotions are
  worth taking with a small accepted loss; that allowance belongs to the
  caller's configuration, not to a literal in the formula.  The default of
  0 means "never loses money".

Run tests with::

    pytest tests/test_risk.py -v
"""

from __future__ import annotations

from typing import Final, Iterable

from betcalc.core.errors import InvalidProbability, InvalidScenarioSet, InvalidStakeAmount
from betcalc.core.odds_math import check_decimal_odds
from betcalc.core.types import (
    KellyResult,
    RiskSummary,
    Scenario,
    check_number,
    check_positive_amount,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Uncapped Kelly; callers pass a smaller cap to limit risk.
MAX_KELLY_FRACTION: Final[float] = 1.0

#: Upper bounds (fraction of bankroll) of the Kelly display bands.
_RISK_BANDS: Final[tuple[tuple[float, str], ...]] = (
    (0.05, "low"),
    (0.15, "medium"),
    (0.25, "high"),
)
_TOP_RISK_BAND: Final[str] = "very_high"


# ---------------------------------------------------------------------------
# Scenario summary
# ---------------------------------------------------------------------------


def compute_risk_metrics(
    scenarios: Iterable[Scenario],
    total_stake: float,
    *,
    guaranteed_profit: float | None = None,
    arbitrage_margin_percent: float = 0.0,
    tolerance: float = 0.0,
) -> RiskSummary:
    """Summarise a scenario list.

    Args:
        scenarios: Output of any ``evaluate_*`` function; at least one.
        total_stake: Money committed (stake total, or stake plus liability
            for back/lay pairs).  Must be positive.
        guaranteed_profit: Profit used for ROI.  Defaults to the worst case,
            which is the profit that is actually guaranteed.
        arbitrage_margin_percent: Passed through from the detector/solver.
        tolerance: Non-negative loss still classed as risk-free.

    Returns:
        :class:`RiskSummary` with ``roi_percent = profit / total_stake × 100``,
        ``qualifying_loss = |min(0, worst_case)|`` and
        ``is_risk_free = worst_case ≥ −tolerance``.

    Raises:
        InvalidScenarioSet: Empty scenario list.
        InvalidStakeAmount: Non-positive ``total_stake`` or negative
            ``tolerance``.
    """
    profits = [scenario.profit for scenario in scenarios]
    if not profits:
        raise InvalidScenarioSet("At least one scenario is required for risk metrics.")
    stake = check_positive_amount(total_stake, field="total_stake")
    allowance = check_number(tolerance, field="tolerance")
    if allowance < 0.0:
        raise InvalidStakeAmount(
            f"tolerance must be ≥ 0, got {tolerance!r}.", field="tolerance"
        )

    worst_case = min(profits)
    best_case = max(profits)
    profit = worst_case if guaranteed_profit is None else guaranteed_profit
    return RiskSummary(
        roi_percent=profit / stake * 100.0,
        worst_case=worst_case,
        best_case=best_case,
        qualifying_loss=abs(min(0.0, worst_case)),
        arbitrage_margin_percent=arbitrage_margin_percent,
        is_risk_free=worst_case >= -allowance,
    )


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------


def _check_win_prob(win_prob: float) -> float:
    value = check_number(win_prob, field="win_prob", error=InvalidProbability)
    if not (0.0 < value < 1.0):
        raise InvalidProbability(
            f"win_prob must be in (0, 1), got {win_prob!r}.", field="win_prob"
        )
    return value


def kelly_fraction(
    win_prob: float,
    back_odds: float,
    *,
    max_fraction: float = MAX_KELLY_FRACTION,
    fractional_divisor: float = 1.0,
) -> float:
    """Kelly stake as a fraction of bankroll for a simple win/lose bet.

    Solves ``max_f E[log(1 + f·X)]`` for a payoff of ``b = odds − 1`` with
    probability ``p`` and ``−1`` with ``q = 1 − p``::

        f*  =  (b·p − q) / b

    The result is divided by ``fractional_divisor`` (2 for half-Kelly) and
    clipped to ``[0, max_fraction]``.

    Examples::

        kelly_fraction(0.55, 2.0)                       → 0.10
        kelly_fraction(0.55, 2.0, max_fraction=0.05)    → 0.05
        kelly_fraction(0.40, 2.0)                       → 0.0  (negative EV)

    Raises:
        InvalidProbability: ``win_prob`` outside ``(0, 1)``.
        InvalidOddsFormat: ``back_odds`` ≤ 1.0.
        InvalidStakeAmount: ``max_fraction`` outside ``(0, 1]`` or a
            non-positive divisor.
    """
    p = _check_win_prob(win_prob)
    odds = check_decimal_odds(back_odds, field="back_odds")
    cap = check_number(max_fraction, field="max_fraction")
    if not (0.0 < cap <= 1.0):
        raise InvalidStakeAmount(
            f"max_fraction must be in (0, 1], got {max_fraction!r}.", field="max_fraction"
        )
    divisor = check_positive_amount(fractional_divisor, field="fractional_divisor")

    b = odds - 1.0
    q = 1.0 - p
    full_kelly = (b * p - q) / b
    if full_kelly <= 0.0:
        return 0.0
    return min(full_kelly / divisor, cap)


def risk_band(fraction: float) -> str:
    """Display band for a Kelly fraction of bankroll."""
    for upper, label in _RISK_BANDS:
        if fraction < upper:
            return label
    return _TOP_RISK_BAND


def kelly_result(
    win_prob: float,
    back_odds: float,
    bankroll: float,
    *,
    max_fraction: float = MAX_KELLY_FRACTION,
    fractional_divisor: float = 1.0,
) -> KellyResult:
    """Kelly fraction, stake, expected value and risk band for a bankroll."""
    fraction = kelly_fraction(
        win_prob,
        back_odds,
        max_fraction=max_fraction,
        fractional_divisor=fractional_divisor,
    )
    stake = fraction * check_positive_amount(bankroll, field="bankroll")
    b = check_decimal_odds(back_odds, field="back_odds") - 1.0
    p = _check_win_prob(win_prob)
    return KellyResult(
        fraction=fraction,
        recommended_stake=stake,
        expected_value=(p * b - (1.0 - p)) * stake,
        risk_band=risk_band(fraction),
    )


def expected_value(
    win_prob: float,
    stake: float,
    back_odds: float,
    *,
    refund_rate: float = 0.0,
    refund_retention: float = 1.0,
    max_refund: float | None = None,
) -> float:
    """Expected profit of a back bet with an optional money-back refund.

    ``EV = p × stake × (odds − 1) + (1 − p) × (refund − stake)`` where the
    refund is ``stake × refund_rate`` valued at ``refund_retention`` (1.0 for
    cash, the expected free-bet conversion rate otherwise) and capped at
    ``max_refund``.
    """
    p = _check_win_prob(win_prob)
    amount = check_positive_amount(stake, field="stake")
    odds = check_decimal_odds(back_odds, field="back_odds")
    rates = []
    for name, value in (("refund_rate", refund_rate), ("refund_retention", refund_retention)):
        rate = check_number(value, field=name)
        if not (0.0 <= rate <= 1.0):
            raise InvalidStakeAmount(f"{name} must be in [0, 1], got {value!r}.", field=name)
        rates.append(rate)

    refund = amount * rates[0] * rates[1]
    if max_refund is not None:
        refund = min(refund, check_positive_amount(max_refund, field="max_refund"))
    return p * amount * (odds - 1.0) + (1.0 - p) * (refund - amount)
