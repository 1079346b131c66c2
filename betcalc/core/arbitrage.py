"""Arbitrage detection and cross-venue price comparison.

Pure functions.  :func:`detect_arbitrage` shares its leg-set validation and
implied-probability sum with :func:`~betcalc.core.staking.solve_stakes`, so
the two always agree on whether a leg set is an arbitrage: if the detector
says yes, the solver returns a :class:`~betcalc.core.types.StakeDistribution`
whose every scenario is non-negative.

:func:`scan_cross_venue` is the comparison half of an exchange price
scanner.  Fetching prices is the caller's job.
"""

from __future__ import annotations

from itertools import permutations
from typing import Iterable

from betcalc.core.errors import InsufficientLegs, InvalidCommission, InvalidStakeAmount
from betcalc.core.odds_math import CommissionModel
from betcalc.core.staking import margin_percent, total_implied_probability, validate_leg_set
from betcalc.core.types import (
    ArbitrageResult,
    CrossVenueOpportunity,
    Leg,
    VenueQuote,
    check_number,
)


def detect_arbitrage(
    legs: Iterable[Leg],
    *,
    commission_model: CommissionModel | str = CommissionModel.ON_WINNINGS,
) -> ArbitrageResult:
    """Classify a leg set as arbitrage or not.

    Examples::

        detect_arbitrage([Leg("a", 2.10), Leg("b", 2.00)])
        → is_arbitrage=True, implied 97.62 %, margin 2.44 %

        detect_arbitrage([Leg("a", 1.80), Leg("b", 1.80)])
        → is_arbitrage=False, implied 111.11 %, margin 0.0

    Raises:
        InsufficientLegs: Fewer than two legs.
        InvalidLeg: Duplicate leg ids.
    """
    leg_list = validate_leg_set(legs)
    total = total_implied_probability(leg_list, commission_model)
    is_arbitrage = total < 1.0
    return ArbitrageResult(
        is_arbitrage=is_arbitrage,
        margin_percent=margin_percent(total) if is_arbitrage else 0.0,
        implied_probability_percent=total * 100.0,
    )


def scan_cross_venue(
    quotes: Iterable[VenueQuote],
    *,
    trading_fee_percent: float = 0.1,
    withdrawal_fee: float = 0.0,
    min_profit_percent: float = 0.0,
) -> list[CrossVenueOpportunity]:
    """Rank buy-here/sell-there opportunities across venues.

    For every ordered pair of distinct venues the per-unit gross profit is
    ``sell − buy``.  A trading fee is paid on both the buy and the sell leg
    (charged against the buy price) and a flat withdrawal fee once::

        net  =  (sell − buy) − 2 × fee% × buy − withdrawal

    Args:
        quotes: Two or more venue prices for the same asset.
        trading_fee_percent: Per-trade fee in percent, ``[0, 100)``.
        withdrawal_fee: Flat transfer cost per unit moved, ≥ 0.
        min_profit_percent: Only opportunities whose net profit percent
            (relative to the buy price) reaches this value are returned.

    Returns:
        Opportunities sorted by net profit percent, best first.

    Raises:
        InsufficientLegs: Fewer than two quotes.
        InvalidCommission: Trading fee outside ``[0, 100)``.
        InvalidStakeAmount: Negative withdrawal fee.
    """
    quote_list = list(quotes)
    if len(quote_list) < 2:
        raise InsufficientLegs(
            f"At least 2 venue quotes are required, got {len(quote_list)}."
        )
    fee = check_number(trading_fee_percent, field="trading_fee_percent", error=InvalidCommission)
    if not (0.0 <= fee < 100.0):
        raise InvalidCommission(
            f"trading_fee_percent must be in [0, 100), got {trading_fee_percent!r}.",
            field="trading_fee_percent",
        )
    withdrawal = check_number(withdrawal_fee, field="withdrawal_fee")
    if withdrawal < 0.0:
        raise InvalidStakeAmount(
            f"withdrawal_fee must be ≥ 0, got {withdrawal_fee!r}.", field="withdrawal_fee"
        )

    opportunities = []
    for buy, sell in permutations(quote_list, 2):
        if buy.venue == sell.venue:
            continue
        gross = sell.price - buy.price
        net = gross - (fee * 2.0 / 100.0) * buy.price - withdrawal
        net_percent = net / buy.price * 100.0
        if net_percent < min_profit_percent:
            continue
        opportunities.append(
            CrossVenueOpportunity(
                buy_venue=buy.venue,
                sell_venue=sell.venue,
                buy_price=buy.price,
                sell_price=sell.price,
                gross_profit=gross,
                gross_profit_percent=gross / buy.price * 100.0,
                net_profit=net,
                net_profit_percent=net_percent,
            )
        )
    opportunities.sort(key=lambda opp: opp.net_profit_percent, reverse=True)
    return opportunities
