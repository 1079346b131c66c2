"""Stake solving — how much to put on each leg.

All functions here are **pure**: no I/O, no logging.  Every calculator in
the service layer is a thin caller of these solvers; none re-derives the
lay-stake or dutching formulas locally.

Two solver families are exposed:

1. :func:`solve_stakes` — dutching / arbitrage over N back legs.  Stakes are
   proportional to each leg's implied probability so that every
   "leg i wins" outcome returns the same amount.
2. :func:`solve_lay_stake` — a back bet hedged by one exchange lay, for
   qualifying bets, free bets (SNR/SR) and money-back offers.  Each-way and
   accumulator solvers are compositions of it.

Dutching derivation
-------------------
With effective odds ``o_i`` and implied probabilities ``p_i = 1 / o_i``,
``T = Σ p_i``.  Staking ``s_i = (p_i / T) × S`` returns ``s_i × o_i = S / T``
whichever leg wins, so the guaranteed profit is::

    profit  =  S / T − S  =  S × (1/T − 1)                       (1)

which is positive iff ``T < 1``.  Equation (1) back-solves the total stake
for a target profit, and a fixed stake ``c`` on leg ``k`` gives
``S = c × T / p_k``.

Lay derivation
--------------
For back stake ``B`` at ``b`` and a lay at ``l`` with commission ``c``,
equalising "back wins" ``B(b − 1) − L(l − 1)`` with "lay wins"
``L(1 − c) − B + R`` (``R`` = money-back refund) gives::

    L  =  (B × b − R) / (l − c)                                  (2)

A stake-not-returned free bet replaces ``B × b`` with ``B × (b − 1)`` and
drops the ``−B`` term because the stake is not the bettor's money.

Run tests with::

    pytest tests/test_staking.py -v
"""

from __future__ import annotations

import math
from typing import Final, Iterable, Sequence

from betcalc.core.errors import (
    InsufficientLegs,
    InvalidLeg,
    InvalidOddsFormat,
    InvalidStakeAmount,
)
from betcalc.core.odds_math import (
    CommissionModel,
    check_commission,
    check_decimal_odds,
    combine_odds,
    effective_odds,
)
from betcalc.core.types import (
    CustomStakeOnLeg,
    EachWayBet,
    Leg,
    LayMode,
    MatchedBet,
    NoArbitrageOpportunity,
    StakeDistribution,
    StakeObjective,
    TargetProfit,
    TotalStake,
    check_number,
    check_positive_amount,
)

#: A leg set needs at least this many legs to be dutched or arbitraged.
MIN_LEGS: Final[int] = 2

#: Below this total implied probability the solver treats the sum as having
#: underflowed; unreachable with valid odds but guarded all the same.
_MIN_TOTAL_IMPLIED: Final[float] = 1e-12


# ---------------------------------------------------------------------------
# Leg-set helpers (shared with the arbitrage detector)
# ---------------------------------------------------------------------------


def validate_leg_set(legs: Iterable[Leg]) -> list[Leg]:
    """Check the multi-leg precondition and return the legs as a list.

    Raises:
        InsufficientLegs: Fewer than :data:`MIN_LEGS` legs.
        InvalidLeg: A non-:class:`Leg` item or a duplicated ``leg_id``
            (reported for the first duplicate in input order).
    """
    leg_list = list(legs)
    for index, leg in enumerate(leg_list):
        if not isinstance(leg, Leg):
            raise InvalidLeg(f"Item {index} is not a Leg: {leg!r}.")
    if len(leg_list) < MIN_LEGS:
        raise InsufficientLegs(
            f"At least {MIN_LEGS} legs with odds > 1.0 are required, got {len(leg_list)}."
        )
    seen: set[str] = set()
    for leg in leg_list:
        if leg.leg_id in seen:
            raise InvalidLeg(f"Duplicate leg id {leg.leg_id!r}.", field=leg.leg_id)
        seen.add(leg.leg_id)
    return leg_list


def leg_effective_odds(
    legs: Sequence[Leg], model: CommissionModel | str = CommissionModel.ON_WINNINGS
) -> list[float]:
    """Commission-adjusted back odds for each leg, in input order."""
    return [effective_odds(leg.back_odds, leg.commission, model) for leg in legs]


def total_implied_probability(
    legs: Sequence[Leg], model: CommissionModel | str = CommissionModel.ON_WINNINGS
) -> float:
    """Σ 1 / effective odds, guarded against a degenerate sum."""
    total = sum(1.0 / odds for odds in leg_effective_odds(legs, model))
    if not math.isfinite(total) or total < _MIN_TOTAL_IMPLIED:
        raise InvalidOddsFormat(
            f"Total implied probability {total!r} is degenerate; check leg odds."
        )
    return total


def margin_percent(total_implied: float) -> float:
    """Signed book margin ``(1/T − 1) × 100``; positive only for arbitrage."""
    return (1.0 / total_implied - 1.0) * 100.0


def custom_stake_objective(legs: Iterable[Leg]) -> CustomStakeOnLeg:
    """Objective for the first leg (input order) that carries a custom stake.

    Raises:
        InvalidStakeAmount: If no leg carries a custom stake.
    """
    for leg in legs:
        if leg.custom_stake is not None:
            return CustomStakeOnLeg(leg.leg_id, leg.custom_stake)
    raise InvalidStakeAmount("Enter a custom stake for at least one leg.", field="custom_stake")


# ---------------------------------------------------------------------------
# Dutching / arbitrage
# ---------------------------------------------------------------------------


def solve_stakes(
    legs: Iterable[Leg],
    objective: StakeObjective,
    *,
    commission_model: CommissionModel | str = CommissionModel.ON_WINNINGS,
) -> StakeDistribution | NoArbitrageOpportunity:
    """Distribute stakes so every winning-leg scenario pays the same.

    Args:
        legs: Two or more legs; only ``back_odds`` and ``commission`` are
            used.  Output stakes keep the input order.
        objective: :class:`TotalStake`, :class:`TargetProfit` or
            :class:`CustomStakeOnLeg`.
        commission_model: How each leg's commission reduces its odds.

    Returns:
        A :class:`StakeDistribution`, or :class:`NoArbitrageOpportunity`
        when the commission-adjusted implied probabilities sum to ≥ 1.

    Raises:
        InsufficientLegs: Fewer than two legs.
        InvalidLeg: Duplicate ids, or a custom-stake leg id not in ``legs``.
        InvalidStakeAmount: ``objective`` is not a supported objective.

    Examples::

        solve_stakes([Leg("a", 2.10), Leg("b", 2.00)], TotalStake(100))
        → stakes {"a": 48.78, "b": 51.22}, guaranteed_profit 2.44
    """
    leg_list = validate_leg_set(legs)
    if not isinstance(objective, (TotalStake, TargetProfit, CustomStakeOnLeg)):
        raise InvalidStakeAmount(f"Unsupported stake objective {objective!r}.", field="objective")
    if isinstance(objective, CustomStakeOnLeg) and objective.leg_id not in {
        leg.leg_id for leg in leg_list
    }:
        raise InvalidLeg(
            f"Custom stake refers to unknown leg {objective.leg_id!r}.", field=objective.leg_id
        )

    odds = leg_effective_odds(leg_list, commission_model)
    implied = [1.0 / price for price in odds]
    total_implied = total_implied_probability(leg_list, commission_model)

    if total_implied >= 1.0:
        return NoArbitrageOpportunity(
            total_implied_probability=total_implied,
            margin_percent=margin_percent(total_implied),
        )

    # Profit per unit of total stake, equation (1).
    unit_profit = 1.0 / total_implied - 1.0

    if isinstance(objective, TotalStake):
        total_stake = objective.amount
    elif isinstance(objective, TargetProfit):
        total_stake = objective.amount / unit_profit
    else:
        index = next(i for i, leg in enumerate(leg_list) if leg.leg_id == objective.leg_id)
        total_stake = objective.amount / (implied[index] / total_implied)

    stakes = {
        leg.leg_id: (prob / total_implied) * total_stake
        for leg, prob in zip(leg_list, implied)
    }
    return StakeDistribution(
        stakes=stakes,
        total_stake=total_stake,
        guaranteed_profit=total_stake * unit_profit,
        total_implied_probability=total_implied,
        margin_percent=margin_percent(total_implied),
    )


# ---------------------------------------------------------------------------
# Back / lay
# ---------------------------------------------------------------------------


def solve_lay_stake(
    back_stake: float,
    back_odds: float,
    lay_odds: float,
    lay_commission: float = 0.0,
    *,
    mode: LayMode | str = LayMode.QUALIFYING,
    back_commission: float = 0.0,
    refund_if_back_loses: float = 0.0,
) -> MatchedBet:
    """Solve the lay stake that equalises a back/lay pair (equation 2).

    Args:
        back_stake: Cash stake, or free-bet value in the free-bet modes.
        back_odds: Decimal back odds.
        lay_odds: Decimal exchange lay odds.
        lay_commission: Exchange commission on lay winnings, ``[0, 1)``.
        mode: :class:`LayMode` — qualifying, free bet SNR or free bet SR.
        back_commission: Commission on back winnings (``ON_WINNINGS``).
        refund_if_back_loses: Money-back refund credited when the back bet
            loses; qualifying mode only, at most ``back_stake``.

    Raises:
        InvalidOddsFormat: Odds ≤ 1.0.
        InvalidCommission: Either commission outside ``[0, 1)``.
        InvalidStakeAmount: Non-positive stake, or a refund that is negative,
            larger than the stake, or paired with a free-bet mode.

    Examples::

        solve_lay_stake(100, 3.00, 3.10, 0.02).lay_stake        → 97.40
        solve_lay_stake(25, 5.0, 5.2, 0.02,
                        mode=LayMode.FREE_BET_SNR).lay_stake     → 19.31
    """
    mode = LayMode(mode)
    stake = check_positive_amount(back_stake, field="back_stake")
    raw_back = check_decimal_odds(back_odds, field="back_odds")
    lay = check_decimal_odds(lay_odds, field="lay_odds")
    commission = check_commission(lay_commission, field="lay_commission")
    back = effective_odds(raw_back, back_commission, CommissionModel.ON_WINNINGS)

    refund = check_number(refund_if_back_loses, field="refund_if_back_loses")
    if refund < 0.0 or refund > stake:
        raise InvalidStakeAmount(
            f"refund_if_back_loses must be in [0, back_stake], got {refund_if_back_loses!r}.",
            field="refund_if_back_loses",
        )
    if refund and mode is not LayMode.QUALIFYING:
        raise InvalidStakeAmount(
            "A money-back refund only applies to qualifying bets.",
            field="refund_if_back_loses",
        )

    if mode is LayMode.FREE_BET_SNR:
        back_return = stake * (back - 1.0)
    else:
        back_return = stake * back

    lay_stake = (back_return - refund) / (lay - commission)
    return MatchedBet(
        back_stake=stake,
        back_odds=back,
        lay_odds=lay,
        lay_commission=commission,
        lay_stake=lay_stake,
        liability=lay_stake * (lay - 1.0),
        mode=mode,
        refund_if_back_loses=refund,
    )


def solve_each_way(
    stake_per_part: float,
    win_odds: float,
    place_fraction: float,
    win_lay_odds: float,
    place_lay_odds: float,
    lay_commission: float = 0.0,
    *,
    place_odds: float | None = None,
) -> EachWayBet:
    """Lay both halves of an each-way bet.

    The place part is priced at ``1 + (win_odds − 1) × place_fraction``
    unless the bookmaker quotes ``place_odds`` explicitly.

    Raises:
        InvalidOddsFormat: If ``place_fraction`` is outside ``(0, 1]`` or
            any odds are ≤ 1.0.
    """
    win = check_decimal_odds(win_odds, field="win_odds")
    fraction = check_number(place_fraction, field="place_fraction", error=InvalidOddsFormat)
    if not (0.0 < fraction <= 1.0):
        raise InvalidOddsFormat(
            f"place_fraction must be in (0, 1], got {place_fraction!r}.", field="place_fraction"
        )
    if place_odds is None:
        place = 1.0 + (win - 1.0) * fraction
    else:
        place = check_decimal_odds(place_odds, field="place_odds")

    win_lay = solve_lay_stake(stake_per_part, win, win_lay_odds, lay_commission)
    place_lay = solve_lay_stake(stake_per_part, place, place_lay_odds, lay_commission)
    return EachWayBet(
        stake_per_part=win_lay.back_stake,
        win_odds=win,
        place_odds=place,
        win_lay=win_lay,
        place_lay=place_lay,
    )


def solve_accumulator(
    back_stake: float,
    leg_back_odds: Iterable[float],
    lay_odds: float,
    lay_commission: float = 0.0,
    *,
    boost_percent: float = 0.0,
    mode: LayMode | str = LayMode.QUALIFYING,
) -> MatchedBet:
    """Lay an accumulator as a single combined selection.

    The back price is the product of the leg prices, optionally boosted by
    ``boost_percent`` (``boosted = combined × (1 + boost/100)``).  Pass the
    exchange's combined lay price (for legs laid as one multiple, the
    product of the leg lay prices via
    :func:`~betcalc.core.odds_math.combine_odds`).
    """
    boost = check_number(boost_percent, field="boost_percent", error=InvalidOddsFormat)
    if boost < 0.0:
        raise InvalidOddsFormat(
            f"boost_percent must be ≥ 0, got {boost_percent!r}.", field="boost_percent"
        )
    combined = combine_odds(leg_back_odds) * (1.0 + boost / 100.0)
    return solve_lay_stake(back_stake, combined, lay_odds, lay_commission, mode=mode)
