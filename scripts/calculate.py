"""
calculate.py — Run the betcalc calculators from the command line.

Subcommands
-----------
  convert   Convert a price between decimal, fractional and American.
  detect    Is a set of back prices an arbitrage?
  dutch     Dutch stakes across legs (commission on winnings).
  arb       Arbitrage stakes across legs (commission on the whole return).
  lay       Lay stake for a qualifying bet or free bet.
  kelly     Kelly stake for your own win probability.

Legs are written ``id=odds`` and read in ``--format`` notation.  ``--model`` picks how
commission is charged: ``on_return`` (the default for detect and arb) or
``on_winnings`` (the default for dutch).

Usage
-----
  python scripts/calculate.py convert 5/2 --from fractional --to american
  python scripts/calculate.py dutch home=2.10 away=2.00 --stake 100
  python scripts/calculate.py lay --stake 25 --back 5.0 --lay 5.2 --mode free_bet_snr
  python scripts/calculate.py kelly --prob 0.55 --odds 2.0 --bankroll 1000

Input errors print ``error: <kind>: <message>`` to stderr and exit with 2.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Ensure the project root (one level up from scripts/) is on sys.path so that
# `from betcalc.xxx import ...` resolves when the script is run directly.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from betcalc.config import get_config  # noqa: E402
from betcalc.core.errors import CalculationError, InvalidLeg  # noqa: E402
from betcalc.core.odds_math import CommissionModel, OddsFormat, round_currency, to_decimal  # noqa: E402
from betcalc.core.types import Leg, LayMode, TargetProfit, TotalStake  # noqa: E402
from betcalc.services import calculators, engine  # noqa: E402

EXIT_INPUT_ERROR = 2


def _parse_legs(tokens: List[str], fmt: OddsFormat, commission: float) -> List[Leg]:
    legs = []
    for token in tokens:
        leg_id, sep, odds = token.partition("=")
        if not sep or not leg_id:
            raise InvalidLeg(f"Leg {token!r} must be written id=odds.", field=token)
        legs.append(Leg(leg_id, to_decimal(odds, fmt), commission=commission))
    return legs


def _money(amount: float) -> str:
    places = get_config().currency_places
    return f"{round_currency(amount, places):.{places}f}"


def _print_scenarios(scenarios) -> None:
    for scenario in scenarios:
        print(f"  {scenario.name:<28} {_money(scenario.profit):>12}")


def _print_summary(summary) -> None:
    print(
        f"worst case {_money(summary.worst_case)}, best case {_money(summary.best_case)}, "
        f"ROI {summary.roi_percent:.2f}%, risk-free: {'yes' if summary.is_risk_free else 'no'}"
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def _cmd_convert(args: argparse.Namespace) -> None:
    converted = engine.convert_odds(args.value, args.from_format, args.to_format)
    if isinstance(converted, float):
        converted = f"{converted:.4f}".rstrip("0").rstrip(".")
    print(converted)


def _cmd_detect(args: argparse.Namespace) -> None:
    legs = _parse_legs(args.legs, OddsFormat(args.format), args.commission)
    result = engine.detect_arbitrage(legs, CommissionModel(args.model))
    verdict = "ARBITRAGE" if result.is_arbitrage else "no arbitrage"
    print(
        f"{verdict}: implied {result.implied_probability_percent:.2f}%, "
        f"margin {result.margin_percent:.2f}%"
    )


def _cmd_multi_leg(args: argparse.Namespace) -> None:
    legs = _parse_legs(args.legs, OddsFormat(args.format), args.commission)
    if args.target_profit is not None:
        objective = TargetProfit(args.target_profit)
    else:
        objective = TotalStake(args.stake)

    if args.command == "arb":
        outcome = calculators.arbitrage_stakes(legs, objective, commission_model=args.model)
    else:
        outcome = calculators.dutching(legs, objective, commission_model=args.model)

    result = outcome.result
    if not result.is_arbitrage:
        print(
            f"No arbitrage: implied {result.implied_probability_percent:.2f}%, "
            f"margin {result.margin_percent:.2f}%"
        )
        return
    for leg_id, stake in result.stakes.items():
        print(f"  {leg_id:<28} {_money(stake):>12}")
    print(f"total stake {_money(result.total_stake)}, profit {_money(result.guaranteed_profit)}")
    _print_scenarios(outcome.scenarios)


def _cmd_lay(args: argparse.Namespace) -> None:
    fmt = OddsFormat(args.format)
    commission = get_config().default_commission if args.commission is None else args.commission
    outcome = calculators.matched_bet(
        args.stake,
        to_decimal(args.back, fmt),
        to_decimal(args.lay, fmt),
        commission,
        mode=args.mode,
        refund_if_back_loses=args.refund,
    )
    print(f"lay stake {_money(outcome.bet.lay_stake)}, liability {_money(outcome.bet.liability)}")
    _print_scenarios(outcome.scenarios)
    _print_summary(outcome.summary)


def _cmd_kelly(args: argparse.Namespace) -> None:
    result = calculators.kelly(
        args.prob,
        to_decimal(args.odds, OddsFormat(args.format)),
        args.bankroll,
        max_fraction=args.max_fraction,
        fractional_divisor=args.divisor,
    )
    print(
        f"kelly {result.fraction * 100:.2f}% ({result.risk_band}), "
        f"stake {_money(result.recommended_stake)}, EV {_money(result.expected_value)}"
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    formats = [fmt.value for fmt in OddsFormat]
    models = [model.value for model in CommissionModel]
    parser = argparse.ArgumentParser(description="Matched-betting odds and stake calculator.")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert odds between notations")
    convert.add_argument("value", help='Price, e.g. 2.5, "5/2" or -150')
    convert.add_argument("--from", dest="from_format", choices=formats, default="decimal")
    convert.add_argument("--to", dest="to_format", choices=formats, default="decimal")
    convert.set_defaults(handler=_cmd_convert)

    detect = sub.add_parser("detect", help="Check a leg set for arbitrage")
    detect.add_argument("legs", nargs="+", help="Legs as id=odds")
    detect.add_argument("--format", choices=formats, default="decimal")
    detect.add_argument("--commission", type=float, default=0.0)
    detect.add_argument("--model", choices=models, default=CommissionModel.ON_RETURN.value)
    detect.set_defaults(handler=_cmd_detect)

    multi_defaults = (
        ("dutch", "Dutch stakes", CommissionModel.ON_WINNINGS),
        ("arb", "Arbitrage stakes", CommissionModel.ON_RETURN),
    )
    for name, help_text, default_model in multi_defaults:
        multi = sub.add_parser(name, help=help_text)
        multi.add_argument("legs", nargs="+", help="Legs as id=odds")
        multi.add_argument("--format", choices=formats, default="decimal")
        multi.add_argument("--commission", type=float, default=0.0, help="Rate, e.g. 0.02")
        multi.add_argument("--model", choices=models, default=default_model.value)
        multi.add_argument("--stake", type=float, default=100.0, help="Total stake")
        multi.add_argument("--target-profit", type=float, default=None)
        multi.set_defaults(handler=_cmd_multi_leg)

    lay = sub.add_parser("lay", help="Lay stake for a back bet")
    lay.add_argument("--stake", type=float, required=True)
    lay.add_argument("--back", required=True, help="Back odds")
    lay.add_argument("--lay", required=True, help="Lay odds")
    lay.add_argument("--format", choices=formats, default="decimal")
    lay.add_argument("--commission", type=float, default=None, help="Defaults to the configured rate")
    lay.add_argument("--mode", choices=[mode.value for mode in LayMode], default="qualifying")
    lay.add_argument("--refund", type=float, default=0.0, help="Money-back refund if the back bet loses")
    lay.set_defaults(handler=_cmd_lay)

    kelly = sub.add_parser("kelly", help="Kelly stake sizing")
    kelly.add_argument("--prob", type=float, required=True, help="Your win probability")
    kelly.add_argument("--odds", required=True)
    kelly.add_argument("--format", choices=formats, default="decimal")
    kelly.add_argument("--bankroll", type=float, required=True)
    kelly.add_argument("--max-fraction", type=float, default=None)
    kelly.add_argument("--divisor", type=float, default=1.0, help="2 for half-Kelly")
    kelly.set_defaults(handler=_cmd_kelly)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_config().log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        args.handler(args)
    except CalculationError as exc:
        print(f"error: {exc.kind}: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
