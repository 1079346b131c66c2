"""
Tests for the engine entry points (logging and config-driven defaults)
Run with: pytest tests/test_engine.py -v
"""

import logging

import pytest

from betcalc.core.errors import CalculationError, InsufficientLegs, InvalidLeg, InvalidOddsFormat
from betcalc.core.staking import solve_each_way, solve_lay_stake
from betcalc.core.types import Leg, Scenario, TotalStake
from betcalc.services import engine


class TestConvertOdds:

    def test_fractional_to_american(self):
        assert engine.convert_odds("5/2", "fractional", "american") == pytest.approx(250.0)

    def test_american_to_fractional(self):
        assert engine.convert_odds(-200, "american", "fractional") == "1/2"

    def test_defaults_to_decimal(self):
        assert engine.convert_odds("11/10", "fractional") == pytest.approx(2.1)

    def test_american_zero_rejected(self):
        with pytest.raises(InvalidOddsFormat):
            engine.convert_odds(0, "american", "decimal")

    @pytest.mark.parametrize("odds", [1.25, 2.0, 2.5, 4.333, 34.0])
    def test_round_trip_through_american(self, odds):
        american = engine.convert_odds(odds, "decimal", "american")

        assert engine.convert_odds(american, "american", "decimal") == pytest.approx(odds)


class TestSolveStakes:

    def test_solved_distribution_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="betcalc.services.engine"):
            result = engine.solve_stakes([Leg("a", 2.1), Leg("b", 2.0)], TotalStake(100))

        assert result.is_arbitrage
        assert "guaranteed profit 2.44" in caplog.text

    def test_no_arbitrage_logs_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="betcalc.services.engine"):
            result = engine.solve_stakes([Leg("a", 1.8), Leg("b", 1.8)], TotalStake(100))

        assert not result.is_arbitrage
        assert any(record.levelno == logging.WARNING for record in caplog.records)

    def test_rejection_is_logged_and_reraised(self, caplog):
        with caplog.at_level(logging.WARNING, logger="betcalc.services.engine"):
            with pytest.raises(InsufficientLegs):
                engine.solve_stakes([Leg("a", 2.0)], TotalStake(100))

        assert "InsufficientLegs" in caplog.text


class TestEvaluateScenarios:

    def test_distribution_needs_legs(self):
        legs = [Leg("a", 2.1), Leg("b", 2.0)]
        result = engine.solve_stakes(legs, TotalStake(100))

        with pytest.raises(InvalidLeg):
            engine.evaluate_scenarios(result)
        assert len(engine.evaluate_scenarios(result, legs)) == 2

    def test_matched_bet_dispatch(self):
        bet = solve_lay_stake(100, 3.0, 3.1, 0.02)

        assert [s.name for s in engine.evaluate_scenarios(bet)] == ["back_wins", "lay_wins"]

    def test_each_way_dispatch(self):
        bet = solve_each_way(10, 11.0, 0.25, 12.0, 3.6)

        assert [s.name for s in engine.evaluate_scenarios(bet)] == ["win", "place_only", "lose"]

    def test_unknown_object_rejected(self):
        with pytest.raises(CalculationError):
            engine.evaluate_scenarios(object())


class TestDetectAndRisk:

    def test_detect_arbitrage(self):
        assert engine.detect_arbitrage([Leg("a", 2.1), Leg("b", 2.0)]).is_arbitrage

    def test_detect_charges_commission_on_return_by_default(self):
        legs = [Leg("a", 2.1, commission=0.03), Leg("b", 2.0, commission=0.03)]

        assert not engine.detect_arbitrage(legs).is_arbitrage
        assert engine.detect_arbitrage(legs, "on_winnings").is_arbitrage

    def test_tolerance_comes_from_config(self, monkeypatch):
        scenarios = [Scenario("back_wins", -3.0), Scenario("lay_wins", -3.0)]
        assert not engine.compute_risk_metrics(scenarios, 100).is_risk_free

        monkeypatch.setenv("BETCALC_RISK_FREE_TOLERANCE", "5")
        from betcalc.config import get_config
        get_config.cache_clear()

        assert engine.compute_risk_metrics(scenarios, 100).is_risk_free

    def test_explicit_tolerance_wins(self):
        scenarios = [Scenario("back_wins", -3.0)]

        assert engine.compute_risk_metrics(scenarios, 100, tolerance=3.0).is_risk_free
