"""
Tests for the command-line calculator
Run with: pytest tests/test_cli.py -v
"""

import importlib.util
from pathlib import Path

import pytest

_SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "calculate.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("calculate", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestConvert:

    def test_fractional_to_american(self, cli, capsys):
        assert cli.main(["convert", "5/2", "--from", "fractional", "--to", "american"]) == 0
        assert capsys.readouterr().out.strip() == "250"

    def test_negative_american_to_fractional(self, cli, capsys):
        assert cli.main(["convert", "-200", "--from", "american", "--to", "fractional"]) == 0
        assert capsys.readouterr().out.strip() == "1/2"

    def test_zero_american(self, cli, capsys):
        assert cli.main(["convert", "0", "--from", "american"]) == 2
        assert "error: InvalidOddsFormat:" in capsys.readouterr().err


class TestMultiLeg:

    def test_dutch(self, cli, capsys):
        assert cli.main(["dutch", "home=2.10", "away=2.00", "--stake", "100"]) == 0
        out = capsys.readouterr().out
        assert "48.78" in out
        assert "51.22" in out
        assert "profit 2.44" in out

    def test_target_profit(self, cli, capsys):
        assert cli.main(["arb", "home=2.10", "away=2.00", "--target-profit", "10"]) == 0
        assert "total stake 410.00" in capsys.readouterr().out

    def test_no_arbitrage(self, cli, capsys):
        assert cli.main(["dutch", "a=1.8", "b=1.8"]) == 0
        assert "No arbitrage" in capsys.readouterr().out

    def test_single_leg(self, cli, capsys):
        assert cli.main(["dutch", "a=2.5"]) == 2
        assert "error: InsufficientLegs:" in capsys.readouterr().err

    def test_malformed_leg(self, cli, capsys):
        assert cli.main(["detect", "home2.10", "away=2.00"]) == 2
        assert "error: InvalidLeg:" in capsys.readouterr().err

    def test_detect(self, cli, capsys):
        assert cli.main(["detect", "home=2.10", "away=2.00"]) == 0
        assert capsys.readouterr().out.startswith("ARBITRAGE")

    def test_detect_matches_arb_under_commission(self, cli, capsys):
        legs = ["a=2.10", "b=2.00", "--commission", "0.03"]

        assert cli.main(["detect", *legs]) == 0
        assert capsys.readouterr().out.startswith("no arbitrage")
        assert cli.main(["arb", *legs]) == 0
        assert capsys.readouterr().out.startswith("No arbitrage")

    def test_commission_model_flag(self, cli, capsys):
        legs = ["a=2.10", "b=2.00", "--commission", "0.03", "--model", "on_winnings"]

        assert cli.main(["detect", *legs]) == 0
        assert capsys.readouterr().out.startswith("ARBITRAGE")
        assert cli.main(["arb", *legs]) == 0
        assert "total stake 100.00" in capsys.readouterr().out

    def test_unknown_commission_model(self, cli):
        with pytest.raises(SystemExit):
            cli.main(["detect", "a=2.10", "b=2.00", "--model", "on_stake"])


class TestLayAndKelly:

    def test_lay(self, cli, capsys):
        argv = ["lay", "--stake", "100", "--back", "3.0", "--lay", "3.1", "--commission", "0.02"]
        assert cli.main(argv) == 0
        out = capsys.readouterr().out
        assert "lay stake 97.40, liability 204.55" in out
        assert "risk-free: no" in out

    def test_free_bet(self, cli, capsys):
        argv = ["lay", "--stake", "25", "--back", "5.0", "--lay", "5.2", "--mode", "free_bet_snr"]
        assert cli.main(argv) == 0
        assert "lay stake 19.31" in capsys.readouterr().out

    def test_kelly(self, cli, capsys):
        assert cli.main(["kelly", "--prob", "0.55", "--odds", "2.0", "--bankroll", "1000"]) == 0
        assert capsys.readouterr().out.strip() == "kelly 10.00% (medium), stake 100.00, EV 10.00"

    def test_kelly_bad_probability(self, cli, capsys):
        assert cli.main(["kelly", "--prob", "1.5", "--odds", "2.0", "--bankroll", "1000"]) == 2
        assert "error: InvalidProbability:" in capsys.readouterr().err
