"""
Library entry points for the calculation engine.

These five functions are what UI components and the HTTP layer call:

    convert_odds         — notation conversion via decimal
    solve_stakes         — dutching / arbitrage stake distribution
    evaluate_scenarios   — per-outcome profit for any solved bet
    detect_arbitrage     — is this leg set a guaranteed profit?
    compute_risk_metrics — ROI / worst case / risk-free summary

They add logging and config-driven defaults on top of ``betcalc.core``;
the maths itself lives only in the core modules.
"""

import logging
from typing import Iterable, List, Optional, Union

from betcalc.config import get_config
from betcalc.core import arbitrage, risk, scenarios, staking
from betcalc.core.errors import CalculationError, InvalidLeg
from betcalc.core.odds_math import CommissionModel, OddsFormat, from_decimal, to_decimal
from betcalc.core.types import (
    ArbitrageResult,
    EachWayBet,
    Leg,
    MatchedBet,
    NoArbitrageOpportunity,
    RiskSummary,
    Scenario,
    StakeDistribution,
    StakeObjective,
)

logger = logging.getLogger(__name__)


def convert_odds(
    value: Union[str, float, int],
    from_format: Union[OddsFormat, str],
    to_format: Union[OddsFormat, str] = OddsFormat.DECIMAL,
) -> Union[float, str]:
    """Convert odds between notations, always normalising through decimal."""
    decimal_odds = to_decimal(value, from_format)
    return from_decimal(decimal_odds, to_format)


def solve_stakes(
    legs: Iterable[Leg],
    objective: StakeObjective,
    commission_model: Union[CommissionModel, str] = CommissionModel.ON_WINNINGS,
) -> Union[StakeDistribution, NoArbitrageOpportunity]:
    """Solve a dutching/arbitrage stake distribution."""
    leg_list = list(legs)
    try:
        result = staking.solve_stakes(leg_list, objective, commission_model=commission_model)
    except CalculationError as exc:
        logger.warning("solve_stakes rejected %d legs: %s: %s", len(leg_list), exc.kind, exc)
        raise

    if not result.is_arbitrage:
        logger.warning(
            "No arbitrage across %d legs (implied %.2f%%, margin %.2f%%)",
            len(leg_list),
            result.implied_probability_percent,
            result.margin_percent,
        )
    else:
        logger.info(
            "Solved %d legs: total stake %.2f, guaranteed profit %.2f",
            len(leg_list),
            result.total_stake,
            result.guaranteed_profit,
        )
    return result


def evaluate_scenarios(
    solved: Union[StakeDistribution, MatchedBet, EachWayBet],
    legs: Optional[Iterable[Leg]] = None,
    commission_model: Union[CommissionModel, str] = CommissionModel.ON_WINNINGS,
) -> List[Scenario]:
    """Enumerate outcomes for whatever the solver produced.

    A :class:`StakeDistribution` needs the legs it was solved from; back/lay
    and each-way bets carry everything they need.
    """
    if isinstance(solved, StakeDistribution):
        if legs is None:
            raise InvalidLeg("Legs are required to evaluate a stake distribution.")
        return scenarios.evaluate_distribution(solved, legs, commission_model=commission_model)
    if isinstance(solved, MatchedBet):
        return scenarios.evaluate_matched_bet(solved)
    if isinstance(solved, EachWayBet):
        return scenarios.evaluate_each_way(solved)
    raise CalculationError(f"Cannot evaluate scenarios for {type(solved).__name__}.")


def detect_arbitrage(
    legs: Iterable[Leg],
    commission_model: Union[CommissionModel, str] = CommissionModel.ON_RETURN,
) -> ArbitrageResult:
    """Classify a leg set as arbitrage or not."""
    leg_list = list(legs)
    result = arbitrage.detect_arbitrage(leg_list, commission_model=commission_model)
    logger.info(
        "Arbitrage check on %d legs: %s (implied %.2f%%)",
        len(leg_list),
        "arbitrage" if result.is_arbitrage else "no arbitrage",
        result.implied_probability_percent,
    )
    return result


def compute_risk_metrics(
    scenario_list: Iterable[Scenario],
    total_stake: float,
    guaranteed_profit: Optional[float] = None,
    arbitrage_margin_percent: float = 0.0,
    tolerance: Optional[float] = None,
) -> RiskSummary:
    """Summarise scenarios; ``tolerance`` defaults to the configured value."""
    if tolerance is None:
        tolerance = get_config().risk_free_tolerance
    return risk.compute_risk_metrics(
        scenario_list,
        total_stake,
        guaranteed_profit=guaranteed_profit,
        arbitrage_margin_percent=arbitrage_margin_percent,
        tolerance=tolerance,
    )
