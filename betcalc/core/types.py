"""Immutable value objects that flow through the calculation pipeline.

Every type here is a frozen, slotted dataclass created fresh per call and
discarded after the caller renders it.  Validation happens in
``__post_init__`` so an invalid :class:`Leg` or objective can never reach the
solver; the solver therefore never fails half-way through a computation.

Design choices
--------------
* :class:`StakeObjective` is a closed union of three dataclasses rather than
  a string-tagged mode.  Solvers dispatch on ``isinstance`` and the set of
  supported modes is exhaustively checkable.
* :class:`StakeDistribution` and :class:`NoArbitrageOpportunity` share the
  ``is_arbitrage`` flag so callers can branch on one attribute regardless of
  which variant the solver returned.
* Currency values are stored at full float precision.  Rounding belongs to
  the presentation layer (:func:`~betcalc.core.odds_math.round_currency`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Union

from betcalc.core.errors import CalculationError, InvalidStakeAmount
from betcalc.core.odds_math import check_commission, check_decimal_odds


def check_number(
    value: float,
    *,
    field: str,
    error: type[CalculationError] = InvalidStakeAmount,
) -> float:
    """Return ``value`` as a finite float or raise ``error`` naming ``field``.

    Range checks stay with the caller; this only classifies values that are
    not numbers at all.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise error(f"{field} {value!r} is not a number.", field=field) from None
    if not math.isfinite(number):
        raise error(f"{field} must be finite, got {value!r}.", field=field)
    return number


def check_positive_amount(amount: float, *, field: str = "amount") -> float:
    """Return ``amount`` as a float or raise :class:`InvalidStakeAmount`."""
    value = check_number(amount, field=field)
    if value <= 0.0:
        raise InvalidStakeAmount(f"{field} must be greater than 0, got {amount!r}.", field=field)
    return value


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Leg:
    """One selection in a multi-leg calculation.

    Attributes:
        leg_id: Identifier used as the key in stake distributions and in
            scenario names.  Must be unique within a leg set.
        back_odds: Decimal back price, strictly above 1.0.
        lay_odds: Decimal lay price, absent for pure dutching/arbitrage legs.
        commission: Commission rate in ``[0, 1)`` applied to this leg.
        custom_stake: Optional fixed stake for this leg (custom-stake mode).
    """

    leg_id: str
    back_odds: float
    lay_odds: float | None = None
    commission: float = 0.0
    custom_stake: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "leg_id", str(self.leg_id))
        object.__setattr__(
            self, "back_odds", check_decimal_odds(self.back_odds, field=f"{self.leg_id}.back_odds")
        )
        if self.lay_odds is not None:
            object.__setattr__(
                self, "lay_odds", check_decimal_odds(self.lay_odds, field=f"{self.leg_id}.lay_odds")
            )
        object.__setattr__(
            self, "commission", check_commission(self.commission, field=f"{self.leg_id}.commission")
        )
        if self.custom_stake is not None:
            object.__setattr__(
                self,
                "custom_stake",
                check_positive_amount(self.custom_stake, field=f"{self.leg_id}.custom_stake"),
            )


@dataclass(slots=True, frozen=True)
class TotalStake:
    """Distribute a fixed total stake across all legs."""

    amount: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", check_positive_amount(self.amount, field="total_stake"))


@dataclass(slots=True, frozen=True)
class TargetProfit:
    """Back-solve the total stake that guarantees ``amount`` profit."""

    amount: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", check_positive_amount(self.amount, field="target_profit"))


@dataclass(slots=True, frozen=True)
class CustomStakeOnLeg:
    """Fix one leg's stake and scale every other leg to match."""

    leg_id: str
    amount: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "leg_id", str(self.leg_id))
        object.__setattr__(self, "amount", check_positive_amount(self.amount, field="custom_stake"))


StakeObjective = Union[TotalStake, TargetProfit, CustomStakeOnLeg]


class LayMode(str, Enum):
    """Which kind of back bet a lay is hedging."""

    QUALIFYING = "qualifying"
    FREE_BET_SNR = "free_bet_snr"
    FREE_BET_SR = "free_bet_sr"


# ---------------------------------------------------------------------------
# Solver outputs
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class StakeDistribution:
    """Stakes that equalise profit across every winning-leg scenario.

    Attributes:
        stakes: Leg id → stake, in leg input order.
        total_stake: Sum of all stakes.
        guaranteed_profit: Profit in every "leg i wins" scenario.
        total_implied_probability: Σ 1 / effective odds over all legs (< 1).
        margin_percent: ``(1 / total_implied_probability − 1) × 100``.
    """

    stakes: Mapping[str, float]
    total_stake: float
    guaranteed_profit: float
    total_implied_probability: float
    margin_percent: float
    is_arbitrage: bool = field(default=True, init=False)

    @property
    def implied_probability_percent(self) -> float:
        return self.total_implied_probability * 100.0

    @property
    def roi_percent(self) -> float:
        return self.guaranteed_profit / self.total_stake * 100.0


@dataclass(slots=True, frozen=True)
class NoArbitrageOpportunity:
    """Valid negative answer: the leg set cannot guarantee a profit.

    ``margin_percent`` keeps its sign (``(1/T − 1) × 100``, ≤ 0) so callers
    can explain how far the book is from an arbitrage.
    """

    total_implied_probability: float
    margin_percent: float
    is_arbitrage: bool = field(default=False, init=False)

    @property
    def implied_probability_percent(self) -> float:
        return self.total_implied_probability * 100.0


@dataclass(slots=True, frozen=True)
class MatchedBet:
    """A back bet hedged by a single exchange lay.

    Attributes:
        back_stake: Stake (or free-bet value) on the back side.
        back_odds: Decimal back odds after any back-side commission.
        lay_odds: Decimal lay odds.
        lay_commission: Exchange commission on lay winnings.
        lay_stake: Solved lay stake.
        liability: Exchange liability ``lay_stake × (lay_odds − 1)``.
        mode: Which kind of back bet is being hedged.
        refund_if_back_loses: Cash value returned by a money-back offer
            when the back bet loses (0 when no such offer applies).
    """

    back_stake: float
    back_odds: float
    lay_odds: float
    lay_commission: float
    lay_stake: float
    liability: float
    mode: LayMode = LayMode.QUALIFYING
    refund_if_back_loses: float = 0.0

    @property
    def stake_at_risk(self) -> bool:
        """False for free bets, whose stake is never the bettor's money."""
        return self.mode is LayMode.QUALIFYING


@dataclass(slots=True, frozen=True)
class EachWayBet:
    """An each-way back bet with separate win and place lays.

    ``stake_per_part`` is the stake on *each* of the win and place parts;
    the total outlay is twice that.
    """

    stake_per_part: float
    win_odds: float
    place_odds: float
    win_lay: MatchedBet
    place_lay: MatchedBet

    @property
    def total_stake(self) -> float:
        return self.stake_per_part * 2.0


# ---------------------------------------------------------------------------
# Scenario / summary outputs
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Scenario:
    """One outcome hypothesis and the net profit/loss it produces."""

    name: str
    profit: float


@dataclass(slots=True, frozen=True)
class ArbitrageResult:
    """Answer from the arbitrage detector.

    ``margin_percent`` is 0 when the set is not an arbitrage.
    """

    is_arbitrage: bool
    margin_percent: float
    implied_probability_percent: float


@dataclass(slots=True, frozen=True)
class RiskSummary:
    """Read-only metrics derived from a scenario set."""

    roi_percent: float
    worst_case: float
    best_case: float
    qualifying_loss: float
    arbitrage_margin_percent: float
    is_risk_free: bool


@dataclass(slots=True, frozen=True)
class KellyResult:
    """Kelly sizing for one back bet at a caller-supplied win probability."""

    fraction: float
    recommended_stake: float
    expected_value: float
    risk_band: str


@dataclass(slots=True, frozen=True)
class VenueQuote:
    """A price for the same asset on one venue."""

    venue: str
    price: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", check_positive_amount(self.price, field=f"{self.venue}.price"))


@dataclass(slots=True, frozen=True)
class CrossVenueOpportunity:
    """Buy on one venue, sell on another; profit per unit after fees."""

    buy_venue: str
    sell_venue: str
    buy_price: float
    sell_price: float
    gross_profit: float
    gross_profit_percent: float
    net_profit: float
    net_profit_percent: float
