"""
Tests for the per-tool calculator pipelines
Run with: pytest tests/test_calculators.py -v
"""

import pytest

from betcalc.config import get_config
from betcalc.core.errors import InvalidStakeAmount
from betcalc.core.odds_math import CommissionModel
from betcalc.core.types import Leg, LayMode, TotalStake, VenueQuote
from betcalc.services import calculators


class TestMultiLegTools:
    """Dutching and arbitrage pipelines"""

    def test_dutching_two_way(self):
        outcome = calculators.dutching([Leg("a", 2.10), Leg("b", 2.00)], TotalStake(100))

        assert outcome.result.stakes["a"] == pytest.approx(48.78, abs=0.01)
        assert [s.name for s in outcome.scenarios] == ["a wins", "b wins"]
        assert outcome.summary.is_risk_free
        assert outcome.summary.roi_percent == pytest.approx(2.439, abs=1e-3)
        assert outcome.summary.arbitrage_margin_percent == pytest.approx(2.439, abs=1e-3)

    def test_no_arbitrage_has_no_scenarios(self):
        outcome = calculators.dutching([Leg("a", 1.8), Leg("b", 1.8)], TotalStake(100))

        assert not outcome.result.is_arbitrage
        assert outcome.scenarios == []
        assert outcome.summary is None

    def test_arbitrage_uses_leg_custom_stake(self):
        legs = [Leg("a", 2.10, custom_stake=200), Leg("b", 2.00)]
        outcome = calculators.arbitrage_stakes(legs)

        assert outcome.result.total_stake == pytest.approx(410.0)
        assert outcome.result.stakes["b"] == pytest.approx(210.0)

    def test_arbitrage_without_any_stake_rejected(self):
        with pytest.raises(InvalidStakeAmount):
            calculators.arbitrage_stakes([Leg("a", 2.10), Leg("b", 2.00)])

    def test_arbitrage_charges_commission_on_return(self):
        legs = [Leg("a", 2.2, commission=0.02), Leg("b", 2.2, commission=0.02)]
        outcome = calculators.arbitrage_stakes(legs, TotalStake(100))

        assert outcome.result.guaranteed_profit == pytest.approx(7.8)
        for scenario in outcome.scenarios:
            assert scenario.profit == pytest.approx(7.8)

    def test_model_override_flips_verdict(self):
        """3% commission on 2.10/2.00 is an arb on winnings but not on the return"""
        legs = [Leg("a", 2.10, commission=0.03), Leg("b", 2.00, commission=0.03)]

        assert not calculators.arbitrage_stakes(legs, TotalStake(100)).result.is_arbitrage
        assert not calculators.dutching(
            legs, TotalStake(100), commission_model=CommissionModel.ON_RETURN
        ).result.is_arbitrage
        assert calculators.dutching(legs, TotalStake(100)).result.is_arbitrage
        assert calculators.arbitrage_stakes(
            legs, TotalStake(100), commission_model="on_winnings"
        ).result.is_arbitrage


class TestMatchedBetTools:
    """Back/lay pipelines"""

    def test_qualifying_bet(self):
        outcome = calculators.matched_bet(100, 3.00, 3.10, 0.02)

        assert outcome.bet.lay_stake == pytest.approx(97.40, abs=0.01)
        assert outcome.summary.worst_case == pytest.approx(-4.545, abs=1e-3)
        assert outcome.summary.qualifying_loss == pytest.approx(4.545, abs=1e-3)
        assert not outcome.summary.is_risk_free
        # Committed money is liability plus back stake.
        assert outcome.summary.roi_percent == pytest.approx(-4.545 / 304.545 * 100, abs=1e-3)

    def test_qualifying_bet_within_tolerance(self):
        outcome = calculators.matched_bet(100, 3.00, 3.10, 0.02, tolerance=5.0)

        assert outcome.summary.is_risk_free

    def test_configured_tolerance(self, monkeypatch):
        monkeypatch.setenv("BETCALC_RISK_FREE_TOLERANCE", "5")
        get_config.cache_clear()

        assert calculators.matched_bet(100, 3.00, 3.10, 0.02).summary.is_risk_free

    def test_free_bet_is_risk_free(self):
        outcome = calculators.matched_bet(25, 5.0, 5.2, 0.02, mode=LayMode.FREE_BET_SNR)

        assert outcome.summary.is_risk_free
        assert outcome.summary.worst_case == pytest.approx(18.92, abs=0.01)
        assert outcome.summary.roi_percent == pytest.approx(
            outcome.summary.worst_case / outcome.bet.liability * 100
        )

    def test_early_payout(self):
        outcome = calculators.early_payout(100, 3.00, 3.10, 0.02)

        assert len(outcome.scenarios) == 4
        assert outcome.summary.best_case == pytest.approx(295.45, abs=0.01)
        assert outcome.summary.worst_case == pytest.approx(-4.545, abs=1e-3)

    def test_each_way(self):
        outcome = calculators.each_way(10, 11.0, 0.25, 12.0, 3.6, 0.0)

        assert outcome.bet.place_odds == pytest.approx(3.5)
        assert outcome.summary.worst_case == pytest.approx(-1.1111, abs=1e-4)

    def test_acca_with_insurance(self):
        outcome = calculators.acca(10, [2.0, 1.5, 3.0], 9.5, 0.0, refund_value=7.0)

        assert outcome.combined_back_odds == pytest.approx(9.0)
        assert [s.name for s in outcome.scenarios] == [
            "all_legs_win",
            "one_leg_loses_refund",
            "two_or_more_lose",
        ]
        assert outcome.summary.best_case == pytest.approx(6.474, abs=1e-3)

    def test_boosted_acca(self):
        outcome = calculators.acca(10, [2.0, 1.5, 3.0], 9.5, 0.0, boost_percent=10)

        assert outcome.combined_back_odds == pytest.approx(9.9)
        assert outcome.summary.worst_case > 0.0


class TestSizingTools:

    def test_kelly_uncapped_by_default(self):
        result = calculators.kelly(0.55, 2.0, 1000)

        assert result.fraction == pytest.approx(0.10)
        assert result.recommended_stake == pytest.approx(100.0)

    def test_kelly_cap_from_config(self, monkeypatch):
        monkeypatch.setenv("BETCALC_MAX_KELLY_FRACTION", "0.05")
        get_config.cache_clear()

        assert calculators.kelly(0.55, 2.0, 1000).fraction == pytest.approx(0.05)

    def test_cross_venue(self):
        quotes = [VenueQuote("alpha", 100.0), VenueQuote("beta", 102.0)]
        opportunities = calculators.cross_venue(quotes)

        assert len(opportunities) == 1
        assert opportunities[0].sell_venue == "beta"
