"""
Pydantic request/response schemas for the betcalc API.

Request models only check shapes and types.  Range checks (odds > 1.0,
commission in [0, 1), positive stakes) are left to the engine so every
rejection carries the engine's error kind; see ``betcalc.main``.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from betcalc.core.odds_math import CommissionModel, OddsFormat
from betcalc.core.types import LayMode

OddsValue = Union[float, str]


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------

class OddsConvertRequest(BaseModel):
    """Payload for POST /api/odds/convert."""

    value: OddsValue = Field(..., description='e.g. 2.5, "3/2" or -150')
    from_format: OddsFormat = OddsFormat.DECIMAL
    to_format: OddsFormat = OddsFormat.DECIMAL

    model_config = {
        "json_schema_extra": {
            "example": {"value": "5/2", "from_format": "fractional", "to_format": "american"}
        }
    }


class OddsConvertResponse(BaseModel):
    decimal: float
    value: OddsValue
    implied_probability_percent: float


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

class LegIn(BaseModel):
    """One selection.  Odds are read in the request's ``odds_format``."""

    id: str = Field(..., min_length=1, max_length=80)
    odds: OddsValue
    commission: float = Field(0.0, description="Rate, e.g. 0.02 for 2%")
    custom_stake: Optional[float] = None


class ScenarioOut(BaseModel):
    name: str
    profit: float


class RiskSummaryOut(BaseModel):
    roi_percent: float
    worst_case: float
    best_case: float
    qualifying_loss: float
    arbitrage_margin_percent: float
    is_risk_free: bool


class ErrorResponse(BaseModel):
    """Body of a 422 raised by the engine (``CalculationError.to_dict``)."""

    error: str
    detail: str
    field: Optional[str] = None


# ---------------------------------------------------------------------------
# Multi-leg: dutching / arbitrage
# ---------------------------------------------------------------------------

class MultiLegRequest(BaseModel):
    """Payload for the dutching, arbitrage and detect endpoints."""

    legs: List[LegIn]
    odds_format: OddsFormat = OddsFormat.DECIMAL
    objective: Literal["total_stake", "target_profit", "custom_stake"] = "total_stake"
    amount: Optional[float] = Field(
        None, description="Total stake or target profit; custom-stake amount if custom_leg_id is set"
    )
    custom_leg_id: Optional[str] = None
    commission_model: Optional[CommissionModel] = Field(
        None,
        description="on_winnings for dutching; on_return for arbitrage and detect if omitted",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "legs": [{"id": "home", "odds": 2.10}, {"id": "away", "odds": 2.00}],
                "objective": "total_stake",
                "amount": 100,
            }
        }
    }


class LegStakeOut(BaseModel):
    id: str
    odds: float
    stake: float
    payout: float


class MultiLegResponse(BaseModel):
    is_arbitrage: bool
    implied_probability_percent: float
    margin_percent: float
    total_stake: float = 0.0
    guaranteed_profit: float = 0.0
    stakes: List[LegStakeOut] = Field(default_factory=list)
    scenarios: List[ScenarioOut] = Field(default_factory=list)
    summary: Optional[RiskSummaryOut] = None


class ArbitrageDetectResponse(BaseModel):
    is_arbitrage: bool
    margin_percent: float
    implied_probability_percent: float


# ---------------------------------------------------------------------------
# Back / lay
# ---------------------------------------------------------------------------

class MatchedBetRequest(BaseModel):
    """Payload for POST /api/calculators/matched-bet."""

    back_stake: float
    back_odds: OddsValue
    lay_odds: OddsValue
    odds_format: OddsFormat = OddsFormat.DECIMAL
    lay_commission: Optional[float] = Field(None, description="Defaults to the configured rate")
    mode: LayMode = LayMode.QUALIFYING
    back_commission: float = 0.0
    refund_if_back_loses: float = 0.0


class EarlyPayoutRequest(BaseModel):
    back_stake: float
    back_odds: OddsValue
    lay_odds: OddsValue
    odds_format: OddsFormat = OddsFormat.DECIMAL
    lay_commission: Optional[float] = None


class AccaRequest(BaseModel):
    back_stake: float
    leg_odds: List[OddsValue] = Field(..., min_length=1)
    lay_odds: OddsValue
    odds_format: OddsFormat = OddsFormat.DECIMAL
    lay_commission: Optional[float] = None
    boost_percent: float = 0.0
    refund_value: float = Field(0.0, description="Cash value of the insurance refund")


class LayResponse(BaseModel):
    back_odds: float
    lay_stake: float
    liability: float
    scenarios: List[ScenarioOut]
    summary: RiskSummaryOut


class EachWayRequest(BaseModel):
    stake_per_part: float
    win_odds: OddsValue
    place_fraction: float = Field(0.25, description="Place terms, e.g. 0.25 for 1/4 odds")
    win_lay_odds: OddsValue
    place_lay_odds: OddsValue
    place_odds: Optional[OddsValue] = None
    odds_format: OddsFormat = OddsFormat.DECIMAL
    lay_commission: Optional[float] = None


class EachWayResponse(BaseModel):
    place_odds: float
    win_lay_stake: float
    place_lay_stake: float
    total_liability: float
    scenarios: List[ScenarioOut]
    summary: RiskSummaryOut


# ---------------------------------------------------------------------------
# Kelly, cross-venue
# ---------------------------------------------------------------------------

class KellyRequest(BaseModel):
    win_probability: float = Field(..., description="Your estimate of the true probability")
    back_odds: OddsValue
    odds_format: OddsFormat = OddsFormat.DECIMAL
    bankroll: float
    max_fraction: Optional[float] = None
    fractional_divisor: float = 1.0


class KellyResponse(BaseModel):
    kelly_percent: float
    recommended_stake: float
    expected_value: float
    risk_band: str


class VenueQuoteIn(BaseModel):
    venue: str
    price: float


class CrossVenueRequest(BaseModel):
    quotes: List[VenueQuoteIn]
    trading_fee_percent: float = 0.1
    withdrawal_fee: float = 0.0
    min_profit_percent: float = 0.0


class CrossVenueOut(BaseModel):
    buy_venue: str
    sell_venue: str
    buy_price: float
    sell_price: float
    gross_profit_percent: float
    net_profit: float
    net_profit_percent: float
