"""Outcome enumeration: net profit/loss for every way a bet can settle.

All functions here are **pure** and return a ``list[Scenario]`` whose order
is part of the observable contract:

* dutching / arbitrage — one scenario per leg, in leg input order;
* back/lay matched bet — ``back_wins``, ``lay_wins``;
* early payout / 2-Up — the four fixed names in :data:`EARLY_PAYOUT_SCENARIOS`;
* each-way — ``win``, ``place_only``, ``lose``;
* accumulator insurance — ``all_legs_win``, ``one_leg_loses_refund``,
  ``two_or_more_lose``.

Run tests with::

    pytest tests/test_scenarios.py -v
"""

from __future__ import annotations

from typing import Final, Iterable

from betcalc.core.errors import InvalidLeg, InvalidStakeAmount
from betcalc.core.odds_math import CommissionModel
from betcalc.core.staking import leg_effective_odds, validate_leg_set
from betcalc.core.types import (
    EachWayBet,
    Leg,
    LayMode,
    MatchedBet,
    Scenario,
    StakeDistribution,
    check_number,
)

MATCHED_BET_SCENARIOS: Final[tuple[str, str]] = ("back_wins", "lay_wins")

EARLY_PAYOUT_SCENARIOS: Final[tuple[str, str, str, str]] = (
    "payout_triggered_back_wins",
    "payout_triggered_back_loses",
    "no_payout_back_wins",
    "no_payout_back_loses",
)

EACH_WAY_SCENARIOS: Final[tuple[str, str, str]] = ("win", "place_only", "lose")

ACCA_INSURANCE_SCENARIOS: Final[tuple[str, str, str]] = (
    "all_legs_win",
    "one_leg_loses_refund",
    "two_or_more_lose",
)


def leg_wins_name(leg_id: str) -> str:
    return f"{leg_id} wins"


# ---------------------------------------------------------------------------
# Dutching / arbitrage
# ---------------------------------------------------------------------------


def evaluate_distribution(
    distribution: StakeDistribution,
    legs: Iterable[Leg],
    *,
    commission_model: CommissionModel | str = CommissionModel.ON_WINNINGS,
) -> list[Scenario]:
    """One "leg i wins, all others lose" scenario per leg.

    ``profit_i = stake_i × (o_i − 1) − Σ_{j≠i} stake_j`` with ``o_i`` the
    commission-adjusted odds under ``commission_model`` (use the same model
    the distribution was solved with).

    Raises:
        InvalidLeg: The distribution's leg ids do not match ``legs``.
    """
    leg_list = validate_leg_set(legs)
    if [leg.leg_id for leg in leg_list] != list(distribution.stakes):
        raise InvalidLeg("Stake distribution does not match the supplied legs.")

    odds = leg_effective_odds(leg_list, commission_model)
    total = sum(distribution.stakes.values())
    scenarios = []
    for leg, price in zip(leg_list, odds):
        stake = distribution.stakes[leg.leg_id]
        others = total - stake
        scenarios.append(Scenario(leg_wins_name(leg.leg_id), stake * (price - 1.0) - others))
    return scenarios


# ---------------------------------------------------------------------------
# Back / lay building blocks
# ---------------------------------------------------------------------------


def _back_win_amount(bet: MatchedBet) -> float:
    # Stake-returned free bets pay the whole return; everything else pays winnings.
    if bet.mode is LayMode.FREE_BET_SR:
        return bet.back_stake * bet.back_odds
    return bet.back_stake * (bet.back_odds - 1.0)


def _back_loss_amount(bet: MatchedBet) -> float:
    return bet.back_stake if bet.stake_at_risk else 0.0


def _lay_win_amount(bet: MatchedBet) -> float:
    return bet.lay_stake * (1.0 - bet.lay_commission)


def back_wins_profit(bet: MatchedBet) -> float:
    return _back_win_amount(bet) - bet.liability


def lay_wins_profit(bet: MatchedBet) -> float:
    return _lay_win_amount(bet) - _back_loss_amount(bet) + bet.refund_if_back_loses


# ---------------------------------------------------------------------------
# Matched bet, early payout
# ---------------------------------------------------------------------------


def evaluate_matched_bet(bet: MatchedBet) -> list[Scenario]:
    """``back_wins`` then ``lay_wins`` for a back/lay pair."""
    back_wins, lay_wins = MATCHED_BET_SCENARIOS
    return [
        Scenario(back_wins, back_wins_profit(bet)),
        Scenario(lay_wins, lay_wins_profit(bet)),
    ]


def evaluate_early_payout(bet: MatchedBet) -> list[Scenario]:
    """Four-scenario grid for early-payout (2-Up, 2-goals-ahead) offers.

    When the payout triggers, the bookmaker settles the back bet as a winner
    regardless of the final result, so the back winnings are always credited;
    only the lay side then depends on the match result.
    """
    back_win = _back_win_amount(bet)
    lay_win = _lay_win_amount(bet)
    triggered_wins, triggered_loses, no_payout_wins, no_payout_loses = EARLY_PAYOUT_SCENARIOS
    return [
        Scenario(triggered_wins, back_win - bet.liability),
        Scenario(triggered_loses, back_win + lay_win),
        Scenario(no_payout_wins, back_win - bet.liability),
        Scenario(no_payout_loses, lay_wins_profit(bet)),
    ]


# ---------------------------------------------------------------------------
# Each-way, accumulator insurance
# ---------------------------------------------------------------------------


def evaluate_each_way(bet: EachWayBet) -> list[Scenario]:
    """Win / placed-only / unplaced outcomes for a fully laid each-way bet."""
    win_part_wins = back_wins_profit(bet.win_lay)
    win_part_loses = lay_wins_profit(bet.win_lay)
    place_part_wins = back_wins_profit(bet.place_lay)
    place_part_loses = lay_wins_profit(bet.place_lay)
    win, place_only, lose = EACH_WAY_SCENARIOS
    return [
        Scenario(win, win_part_wins + place_part_wins),
        Scenario(place_only, win_part_loses + place_part_wins),
        Scenario(lose, win_part_loses + place_part_loses),
    ]


def evaluate_acca_insurance(bet: MatchedBet, refund_value: float = 0.0) -> list[Scenario]:
    """Accumulator laid as a single, with a refund if exactly one leg loses.

    ``refund_value`` is the cash-equivalent of the insurance refund (the
    stake for cash refunds, the expected free-bet retention otherwise).
    """
    refund = check_number(refund_value, field="refund_value")
    if refund < 0.0:
        raise InvalidStakeAmount(
            f"refund_value must be ≥ 0, got {refund_value!r}.", field="refund_value"
        )
    all_win, one_loses, many_lose = ACCA_INSURANCE_SCENARIOS
    lay_wins = lay_wins_profit(bet)
    return [
        Scenario(all_win, back_wins_profit(bet)),
        Scenario(one_loses, lay_wins + refund),
        Scenario(many_lose, lay_wins),
    ]
