"""
FastAPI application for the betcalc calculation engine.
Exposes odds conversion, arbitrage detection and every calculator as JSON endpoints.
"""

from contextlib import asynccontextmanager
from typing import List, Optional, Union
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from betcalc.config import get_config
from betcalc.core.errors import CalculationError
from betcalc.core.odds_math import (
    CommissionModel,
    OddsFormat,
    implied_probability,
    round_currency,
    to_decimal,
)
from betcalc.core.types import (
    CustomStakeOnLeg,
    Leg,
    RiskSummary,
    Scenario,
    StakeObjective,
    TargetProfit,
    TotalStake,
    VenueQuote,
)
from betcalc.schemas import (
    AccaRequest,
    ArbitrageDetectResponse,
    CrossVenueOut,
    CrossVenueRequest,
    EachWayRequest,
    EachWayResponse,
    EarlyPayoutRequest,
    ErrorResponse,
    KellyRequest,
    KellyResponse,
    LayResponse,
    LegStakeOut,
    MatchedBetRequest,
    MultiLegRequest,
    MultiLegResponse,
    OddsConvertRequest,
    OddsConvertResponse,
    RiskSummaryOut,
    ScenarioOut,
)
from betcalc.services import calculators, engine
from betcalc.services.calculators import LayOutcome, MultiLegOutcome

# Logging setup
logging.basicConfig(
    level=get_config().log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_NAME = "betcalc"
APP_VERSION = "1.0.0"

# Engine rejections share one documented 422 body.
ENGINE_ERRORS = {422: {"model": ErrorResponse, "description": "Input rejected by the engine"}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    cfg = get_config()
    logger.info(
        "Starting %s %s (tolerance %.2f, default commission %.3f, %d dp)",
        APP_NAME, APP_VERSION, cfg.risk_free_tolerance, cfg.default_commission, cfg.currency_places,
    )
    yield
    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(
    title="betcalc",
    description="Odds conversion, stake solving and scenario analysis for matched betting",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ============================================================================
# PRESENTATION HELPERS
# ============================================================================

def _money(amount: float) -> float:
    return round_currency(amount, get_config().currency_places)


def _pct(value: float) -> float:
    return round_currency(value, 2)


def _decimal(value: Union[float, str], fmt: OddsFormat) -> float:
    return to_decimal(value, fmt)


def _lay_commission(value: Optional[float]) -> float:
    return get_config().default_commission if value is None else value


def _scenarios_out(scenarios: List[Scenario]) -> List[ScenarioOut]:
    return [ScenarioOut(name=s.name, profit=_money(s.profit)) for s in scenarios]


def _summary_out(summary: RiskSummary) -> RiskSummaryOut:
    return RiskSummaryOut(
        roi_percent=_pct(summary.roi_percent),
        worst_case=_money(summary.worst_case),
        best_case=_money(summary.best_case),
        qualifying_loss=_money(summary.qualifying_loss),
        arbitrage_margin_percent=_pct(summary.arbitrage_margin_percent),
        is_risk_free=summary.is_risk_free,
    )


def _legs_from_request(payload: MultiLegRequest) -> List[Leg]:
    return [
        Leg(
            leg.id,
            _decimal(leg.odds, payload.odds_format),
            commission=leg.commission,
            custom_stake=leg.custom_stake,
        )
        for leg in payload.legs
    ]


def _objective_from_request(payload: MultiLegRequest) -> Optional[StakeObjective]:
    """Map the request objective; ``None`` means "use the legs' custom stakes"."""
    if payload.objective == "total_stake":
        return TotalStake(payload.amount)
    if payload.objective == "target_profit":
        return TargetProfit(payload.amount)
    if payload.custom_leg_id is not None:
        return CustomStakeOnLeg(payload.custom_leg_id, payload.amount)
    return None


def _multi_leg_response(outcome: MultiLegOutcome) -> MultiLegResponse:
    result = outcome.result
    response = MultiLegResponse(
        is_arbitrage=result.is_arbitrage,
        implied_probability_percent=_pct(result.implied_probability_percent),
        margin_percent=_pct(result.margin_percent),
    )
    if not result.is_arbitrage:
        return response

    response.total_stake = _money(result.total_stake)
    response.guaranteed_profit = _money(result.guaranteed_profit)
    # Scenario i is "leg i wins", so payout_i = total stake + profit_i.
    response.stakes = [
        LegStakeOut(
            id=leg.leg_id,
            odds=leg.back_odds,
            stake=_money(result.stakes[leg.leg_id]),
            payout=_money(result.total_stake + scenario.profit),
        )
        for leg, scenario in zip(outcome.legs, outcome.scenarios)
    ]
    response.scenarios = _scenarios_out(outcome.scenarios)
    response.summary = _summary_out(outcome.summary)
    return response


def _lay_response(outcome: LayOutcome) -> LayResponse:
    return LayResponse(
        back_odds=round_currency(outcome.bet.back_odds, 4),
        lay_stake=_money(outcome.bet.lay_stake),
        liability=_money(outcome.bet.liability),
        scenarios=_scenarios_out(outcome.scenarios),
        summary=_summary_out(outcome.summary),
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "app": APP_NAME, "version": APP_VERSION}


@app.post("/api/odds/convert", response_model=OddsConvertResponse, responses=ENGINE_ERRORS)
async def convert_odds(payload: OddsConvertRequest):
    """Convert a price between decimal, fractional and American notation."""
    decimal_odds = _decimal(payload.value, payload.from_format)
    converted = engine.convert_odds(decimal_odds, OddsFormat.DECIMAL, payload.to_format)
    if isinstance(converted, float):
        converted = round_currency(converted, 4)
    return OddsConvertResponse(
        decimal=round_currency(decimal_odds, 4),
        value=converted,
        implied_probability_percent=_pct(implied_probability(decimal_odds) * 100.0),
    )


@app.post("/api/arbitrage/detect", response_model=ArbitrageDetectResponse, responses=ENGINE_ERRORS)
async def detect_arbitrage(payload: MultiLegRequest):
    result = engine.detect_arbitrage(
        _legs_from_request(payload),
        payload.commission_model or CommissionModel.ON_RETURN,
    )
    return ArbitrageDetectResponse(
        is_arbitrage=result.is_arbitrage,
        margin_percent=_pct(result.margin_percent),
        implied_probability_percent=_pct(result.implied_probability_percent),
    )


@app.post("/api/arbitrage/cross-venue", response_model=List[CrossVenueOut], responses=ENGINE_ERRORS)
async def cross_venue(payload: CrossVenueRequest):
    """Rank buy/sell venue pairs for one asset after fees."""
    opportunities = calculators.cross_venue(
        [VenueQuote(q.venue, q.price) for q in payload.quotes],
        trading_fee_percent=payload.trading_fee_percent,
        withdrawal_fee=payload.withdrawal_fee,
        min_profit_percent=payload.min_profit_percent,
    )
    return [
        CrossVenueOut(
            buy_venue=opp.buy_venue,
            sell_venue=opp.sell_venue,
            buy_price=opp.buy_price,
            sell_price=opp.sell_price,
            gross_profit_percent=_pct(opp.gross_profit_percent),
            net_profit=round_currency(opp.net_profit, 8),
            net_profit_percent=_pct(opp.net_profit_percent),
        )
        for opp in opportunities
    ]


# ============================================================================
# CALCULATORS
# ============================================================================

@app.post("/api/calculators/dutching", response_model=MultiLegResponse, responses=ENGINE_ERRORS)
async def dutching(payload: MultiLegRequest):
    outcome = calculators.dutching(
        _legs_from_request(payload),
        _objective_from_request(payload),
        commission_model=payload.commission_model or CommissionModel.ON_WINNINGS,
    )
    return _multi_leg_response(outcome)


@app.post("/api/calculators/arbitrage", response_model=MultiLegResponse, responses=ENGINE_ERRORS)
async def arbitrage(payload: MultiLegRequest):
    outcome = calculators.arbitrage_stakes(
        _legs_from_request(payload),
        _objective_from_request(payload),
        commission_model=payload.commission_model or CommissionModel.ON_RETURN,
    )
    return _multi_leg_response(outcome)


@app.post("/api/calculators/matched-bet", response_model=LayResponse, responses=ENGINE_ERRORS)
async def matched_bet(payload: MatchedBetRequest):
    """Qualifying, free bet (SNR/SR) or money-back matched bet."""
    outcome = calculators.matched_bet(
        payload.back_stake,
        _decimal(payload.back_odds, payload.odds_format),
        _decimal(payload.lay_odds, payload.odds_format),
        _lay_commission(payload.lay_commission),
        mode=payload.mode,
        back_commission=payload.back_commission,
        refund_if_back_loses=payload.refund_if_back_loses,
    )
    return _lay_response(outcome)


@app.post("/api/calculators/early-payout", response_model=LayResponse, responses=ENGINE_ERRORS)
async def early_payout(payload: EarlyPayoutRequest):
    outcome = calculators.early_payout(
        payload.back_stake,
        _decimal(payload.back_odds, payload.odds_format),
        _decimal(payload.lay_odds, payload.odds_format),
        _lay_commission(payload.lay_commission),
    )
    return _lay_response(outcome)


@app.post("/api/calculators/each-way", response_model=EachWayResponse, responses=ENGINE_ERRORS)
async def each_way(payload: EachWayRequest):
    fmt = payload.odds_format
    place_odds = None if payload.place_odds is None else _decimal(payload.place_odds, fmt)
    outcome = calculators.each_way(
        payload.stake_per_part,
        _decimal(payload.win_odds, fmt),
        payload.place_fraction,
        _decimal(payload.win_lay_odds, fmt),
        _decimal(payload.place_lay_odds, fmt),
        _lay_commission(payload.lay_commission),
        place_odds=place_odds,
    )
    bet = outcome.bet
    return EachWayResponse(
        place_odds=round_currency(bet.place_odds, 4),
        win_lay_stake=_money(bet.win_lay.lay_stake),
        place_lay_stake=_money(bet.place_lay.lay_stake),
        total_liability=_money(bet.win_lay.liability + bet.place_lay.liability),
        scenarios=_scenarios_out(outcome.scenarios),
        summary=_summary_out(outcome.summary),
    )


@app.post("/api/calculators/acca", response_model=LayResponse, responses=ENGINE_ERRORS)
async def acca(payload: AccaRequest):
    """Accumulator, optionally boosted or insured, laid as one multiple."""
    fmt = payload.odds_format
    outcome = calculators.acca(
        payload.back_stake,
        [_decimal(odds, fmt) for odds in payload.leg_odds],
        _decimal(payload.lay_odds, fmt),
        _lay_commission(payload.lay_commission),
        boost_percent=payload.boost_percent,
        refund_value=payload.refund_value,
    )
    return _lay_response(outcome)


@app.post("/api/calculators/kelly", response_model=KellyResponse, responses=ENGINE_ERRORS)
async def kelly(payload: KellyRequest):
    result = calculators.kelly(
        payload.win_probability,
        _decimal(payload.back_odds, payload.odds_format),
        payload.bankroll,
        max_fraction=payload.max_fraction,
        fractional_divisor=payload.fractional_divisor,
    )
    return KellyResponse(
        kelly_percent=_pct(result.fraction * 100.0),
        recommended_stake=_money(result.recommended_stake),
        expected_value=_money(result.expected_value),
        risk_band=result.risk_band,
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(CalculationError)
async def calculation_error_handler(request: Request, exc: CalculationError):
    """Input rejected by the engine: 422 with the error kind."""
    logger.warning("%s %s rejected: %s: %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
