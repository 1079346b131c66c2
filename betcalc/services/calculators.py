"""
Calculator pipelines, one function per calculator tool.

Each pipeline is a thin caller of the core engine:

    inputs → staking (solve) → scenarios (evaluate) → risk (summarise)

The tools differ only in which solver they call, which commission model
applies and which scenario shape they report:

    dutching      ON_WINNINGS commission, N "leg wins" scenarios
    arbitrage     ON_RETURN commission, N "leg wins" scenarios
    matched_bet   back/lay pair, 2 scenarios (qualifying, SNR, SR, money-back)
    early_payout  back/lay pair, 4 fixed early-payout scenarios
    each_way      win + place lays, 3 scenarios
    acca          accumulator laid as a single, 3 insurance scenarios
    kelly         Kelly sizing for a caller-supplied win probability
    cross_venue   buy/sell price comparison across venues

Results keep full precision; rounding is done by the HTTP layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from betcalc.config import get_config
from betcalc.core import arbitrage, risk, scenarios, staking
from betcalc.core.odds_math import CommissionModel
from betcalc.core.types import (
    CrossVenueOpportunity,
    EachWayBet,
    KellyResult,
    Leg,
    LayMode,
    MatchedBet,
    NoArbitrageOpportunity,
    RiskSummary,
    Scenario,
    StakeDistribution,
    StakeObjective,
    VenueQuote,
)
from betcalc.services import engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------

@dataclass
class MultiLegOutcome:
    """Dutching/arbitrage result: solved distribution plus its scenarios."""

    legs: List[Leg]
    result: Union[StakeDistribution, NoArbitrageOpportunity]
    scenarios: List[Scenario] = field(default_factory=list)
    summary: Optional[RiskSummary] = None


@dataclass
class LayOutcome:
    """Back/lay result (matched bet, early payout, accumulator)."""

    bet: MatchedBet
    scenarios: List[Scenario]
    summary: RiskSummary
    combined_back_odds: Optional[float] = None


@dataclass
class EachWayOutcome:
    bet: EachWayBet
    scenarios: List[Scenario]
    summary: RiskSummary


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tolerance(tolerance: Optional[float]) -> float:
    return get_config().risk_free_tolerance if tolerance is None else tolerance


def _money_committed(bet: MatchedBet) -> float:
    """Cash at risk: the liability, plus the back stake unless it is a free bet."""
    return bet.liability + (bet.back_stake if bet.stake_at_risk else 0.0)


def _multi_leg(
    legs: Iterable[Leg],
    objective: Optional[StakeObjective],
    commission_model: CommissionModel,
    tolerance: Optional[float],
) -> MultiLegOutcome:
    leg_list = list(legs)
    if objective is None:
        objective = staking.custom_stake_objective(leg_list)

    result = engine.solve_stakes(leg_list, objective, commission_model)
    outcome = MultiLegOutcome(legs=leg_list, result=result)
    if not result.is_arbitrage:
        return outcome

    outcome.scenarios = engine.evaluate_scenarios(result, leg_list, commission_model)
    outcome.summary = risk.compute_risk_metrics(
        outcome.scenarios,
        result.total_stake,
        guaranteed_profit=result.guaranteed_profit,
        arbitrage_margin_percent=result.margin_percent,
        tolerance=_tolerance(tolerance),
    )
    return outcome


# ---------------------------------------------------------------------------
# Multi-leg tools
# ---------------------------------------------------------------------------

def dutching(
    legs: Iterable[Leg],
    objective: StakeObjective,
    tolerance: Optional[float] = None,
    commission_model: Union[CommissionModel, str] = CommissionModel.ON_WINNINGS,
) -> MultiLegOutcome:
    """Dutch a set of selections; by default commission reduces each leg's winnings."""
    return _multi_leg(legs, objective, CommissionModel(commission_model), tolerance)


def arbitrage_stakes(
    legs: Iterable[Leg],
    objective: Optional[StakeObjective] = None,
    tolerance: Optional[float] = None,
    commission_model: Union[CommissionModel, str] = CommissionModel.ON_RETURN,
) -> MultiLegOutcome:
    """Arbitrage stakes; by default commission is charged on each leg's whole return.

    With no ``objective`` the first leg carrying a ``custom_stake`` fixes
    the distribution.
    """
    return _multi_leg(legs, objective, CommissionModel(commission_model), tolerance)


# ---------------------------------------------------------------------------
# Back / lay tools
# ---------------------------------------------------------------------------

def matched_bet(
    back_stake: float,
    back_odds: float,
    lay_odds: float,
    lay_commission: float,
    mode: Union[LayMode, str] = LayMode.QUALIFYING,
    back_commission: float = 0.0,
    refund_if_back_loses: float = 0.0,
    tolerance: Optional[float] = None,
) -> LayOutcome:
    """Qualifying bet, free bet (SNR/SR) or money-back matched bet."""
    bet = staking.solve_lay_stake(
        back_stake,
        back_odds,
        lay_odds,
        lay_commission,
        mode=mode,
        back_commission=back_commission,
        refund_if_back_loses=refund_if_back_loses,
    )
    outcomes = scenarios.evaluate_matched_bet(bet)
    summary = risk.compute_risk_metrics(
        outcomes, _money_committed(bet), tolerance=_tolerance(tolerance)
    )
    logger.info(
        "Matched bet (%s): lay %.2f @ %.2f, liability %.2f, worst case %.2f",
        bet.mode.value, bet.lay_stake, bet.lay_odds, bet.liability, summary.worst_case,
    )
    return LayOutcome(bet=bet, scenarios=outcomes, summary=summary)


def early_payout(
    back_stake: float,
    back_odds: float,
    lay_odds: float,
    lay_commission: float,
    tolerance: Optional[float] = None,
) -> LayOutcome:
    """Early-payout / 2-Up offer laid as a normal qualifying bet."""
    bet = staking.solve_lay_stake(back_stake, back_odds, lay_odds, lay_commission)
    outcomes = scenarios.evaluate_early_payout(bet)
    summary = risk.compute_risk_metrics(
        outcomes, _money_committed(bet), tolerance=_tolerance(tolerance)
    )
    logger.info(
        "Early payout: lay %.2f, qualifying loss %.2f, best case %.2f",
        bet.lay_stake, summary.qualifying_loss, summary.best_case,
    )
    return LayOutcome(bet=bet, scenarios=outcomes, summary=summary)


def each_way(
    stake_per_part: float,
    win_odds: float,
    place_fraction: float,
    win_lay_odds: float,
    place_lay_odds: float,
    lay_commission: float,
    place_odds: Optional[float] = None,
    tolerance: Optional[float] = None,
) -> EachWayOutcome:
    """Each-way bet matched with separate win and place lays."""
    bet = staking.solve_each_way(
        stake_per_part,
        win_odds,
        place_fraction,
        win_lay_odds,
        place_lay_odds,
        lay_commission,
        place_odds=place_odds,
    )
    outcomes = scenarios.evaluate_each_way(bet)
    committed = bet.total_stake + bet.win_lay.liability + bet.place_lay.liability
    summary = risk.compute_risk_metrics(outcomes, committed, tolerance=_tolerance(tolerance))
    logger.info(
        "Each way: place odds %.2f, worst case %.2f over %s",
        bet.place_odds, summary.worst_case, [s.name for s in outcomes],
    )
    return EachWayOutcome(bet=bet, scenarios=outcomes, summary=summary)


def acca(
    back_stake: float,
    leg_back_odds: Iterable[float],
    lay_odds: float,
    lay_commission: float,
    boost_percent: float = 0.0,
    refund_value: float = 0.0,
    tolerance: Optional[float] = None,
) -> LayOutcome:
    """Accumulator (optionally boosted/insured) laid as a single multiple."""
    bet = staking.solve_accumulator(
        back_stake, leg_back_odds, lay_odds, lay_commission, boost_percent=boost_percent
    )
    outcomes = scenarios.evaluate_acca_insurance(bet, refund_value)
    summary = risk.compute_risk_metrics(
        outcomes, _money_committed(bet), tolerance=_tolerance(tolerance)
    )
    logger.info(
        "Acca: combined odds %.2f, lay %.2f, worst case %.2f",
        bet.back_odds, bet.lay_stake, summary.worst_case,
    )
    return LayOutcome(bet=bet, scenarios=outcomes, summary=summary, combined_back_odds=bet.back_odds)


# ---------------------------------------------------------------------------
# Sizing and price comparison
# ---------------------------------------------------------------------------

def kelly(
    win_prob: float,
    back_odds: float,
    bankroll: float,
    max_fraction: Optional[float] = None,
    fractional_divisor: float = 1.0,
) -> KellyResult:
    """Kelly stake for a bankroll; cap defaults to the configured maximum."""
    if max_fraction is None:
        max_fraction = get_config().max_kelly_fraction
    result = risk.kelly_result(
        win_prob,
        back_odds,
        bankroll,
        max_fraction=max_fraction,
        fractional_divisor=fractional_divisor,
    )
    logger.info(
        "Kelly: p=%.3f odds=%.2f → %.2f%% of bankroll (%s)",
        win_prob, back_odds, result.fraction * 100, result.risk_band,
    )
    return result


def cross_venue(
    quotes: Iterable[VenueQuote],
    trading_fee_percent: float = 0.1,
    withdrawal_fee: float = 0.0,
    min_profit_percent: float = 0.0,
) -> List[CrossVenueOpportunity]:
    """Rank cross-venue opportunities for one asset."""
    quote_list = list(quotes)
    opportunities = arbitrage.scan_cross_venue(
        quote_list,
        trading_fee_percent=trading_fee_percent,
        withdrawal_fee=withdrawal_fee,
        min_profit_percent=min_profit_percent,
    )
    logger.info(
        "Cross-venue scan over %d quotes: %d opportunities", len(quote_list), len(opportunities)
    )
    return opportunities
