"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement conversions locally in services.

The three pillars exposed are:

1. **Notation conversion** — decimal ↔ fractional ↔ American, plus implied
   probability.  Decimal odds are the canonical internal representation.
2. **Commission adjustment** — the two commission models used across the
   calculators (charged on the whole return, or on winnings only).
3. **Presentation rounding** — currency rounding applied once, at the very
   end, never between calculation steps.

Design decisions
----------------
* Fractional parsing is *lenient*: a string that is not a well-formed
  ``"N/D"`` (or has ``D == 0``) falls back to being read as a decimal
  number.  This mirrors what bettors type into a fractional field
  ("2.5" instead of "3/2") and keeps the calculator responsive; callers that
  need strictness validate upstream.
* American odds of exactly 0 are not a price and are rejected.  Any other
  sign/magnitude maps to decimal odds > 1.0 by construction.
* Currency rounding uses ``ROUND_HALF_UP`` on the decimal string of the
  float, so ``2.675`` displays as ``2.68`` rather than falling foul of binary
  representation.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from fractions import Fraction
from typing import Final, Iterable

from betcalc.core.errors import InvalidCommission, InvalidOddsFormat

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Smallest valid decimal price is anything strictly above evens-minus-stake.
MIN_DECIMAL_ODDS: Final[float] = 1.0

#: Largest denominator used when rendering decimal odds as a fraction.
#: Bookmaker ladders never quote fractions with denominators above 100.
MAX_FRACTION_DENOMINATOR: Final[int] = 100

#: A ladder fraction further than this from the true price is not used;
#: the price is rendered with denominators up to
#: :data:`EXACT_FRACTION_DENOMINATOR` instead.
FRACTION_TOLERANCE: Final[float] = 5e-4
EXACT_FRACTION_DENOMINATOR: Final[int] = 10_000

#: Default number of decimal places for currency output.
CURRENCY_PLACES: Final[int] = 2


class OddsFormat(str, Enum):
    """Odds notations accepted at the engine boundary."""

    DECIMAL = "decimal"
    FRACTIONAL = "fractional"
    AMERICAN = "american"


class CommissionModel(str, Enum):
    """How an exchange or bookmaker commission reduces a leg's payout.

    ``ON_RETURN``
        Commission is charged on the whole return:
        ``effective = odds × (1 − c)``.
    ``ON_WINNINGS``
        Commission is charged on net winnings only (exchange back bets,
        reduced-winnings promotions): ``effective = odds − (odds − 1) × c``.
    """

    ON_RETURN = "on_return"
    ON_WINNINGS = "on_winnings"


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def check_decimal_odds(odds: float, *, field: str = "odds") -> float:
    """Return ``odds`` as a float or raise :class:`InvalidOddsFormat`.

    Rejects non-finite values and anything ≤ 1.0 (a price that cannot
    return more than the stake).
    """
    try:
        value = float(odds)
    except (TypeError, ValueError):
        raise InvalidOddsFormat(f"{field} {odds!r} is not a number.", field=field) from None
    if not math.isfinite(value) or value <= MIN_DECIMAL_ODDS:
        raise InvalidOddsFormat(
            f"{field} must be greater than 1.0 in decimal notation, got {odds!r}.",
            field=field,
        )
    return value


def check_commission(commission: float, *, field: str = "commission") -> float:
    """Return ``commission`` as a float or raise :class:`InvalidCommission`.

    Commission is a rate in ``[0, 1)``; 0 is valid and gives the
    uncommissioned formulas.
    """
    try:
        value = float(commission)
    except (TypeError, ValueError):
        raise InvalidCommission(f"{field} {commission!r} is not a number.", field=field) from None
    if not math.isfinite(value) or not (0.0 <= value < 1.0):
        raise InvalidCommission(
            f"{field} must be in [0, 1), got {commission!r}.", field=field
        )
    return value


# ---------------------------------------------------------------------------
# Notation conversion
# ---------------------------------------------------------------------------


def _parse_number(value: str | float | int) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidOddsFormat(f"Odds value {value!r} is not a number.") from None
    if not math.isfinite(number):
        raise InvalidOddsFormat(f"Odds value {value!r} is not finite.")
    return number


def american_to_decimal(american: str | float | int) -> float:
    """Convert American odds to decimal.

    Examples::

        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)
        american_to_decimal(-200) → 1.5000   (risk 200 to win 100)

    Raises:
        InvalidOddsFormat: If the value is not a number or is exactly 0.
    """
    number = _parse_number(american)
    if number == 0:
        raise InvalidOddsFormat("American odds of 0 are not a valid price.")
    if number > 0:
        return number / 100.0 + 1.0
    return 100.0 / abs(number) + 1.0


def fractional_to_decimal(fractional: str | float | int) -> float:
    """Convert a fractional ``"N/D"`` price to decimal odds.

    A value that does not parse as ``N/D`` with a non-zero ``D`` is read as
    an already-decimal number.  That fallback result is returned unchecked;
    a successfully parsed fraction must still come out above 1.0.

    Examples::

        fractional_to_decimal("5/2") → 3.5
        fractional_to_decimal("2.5") → 2.5    (lenient fallback)
        fractional_to_decimal("3/0") → 3.0    (zero denominator, fallback)

    Raises:
        InvalidOddsFormat: If neither the fraction nor the fallback parses,
            or a well-formed fraction yields odds ≤ 1.0 (e.g. ``"-1/2"``).
    """
    text = str(fractional).strip()
    parts = text.split("/")
    if len(parts) == 2:
        try:
            numerator = float(parts[0])
            denominator = float(parts[1])
        except ValueError:
            numerator = denominator = math.nan
        if (
            math.isfinite(numerator)
            and math.isfinite(denominator)
            and denominator != 0
        ):
            return check_decimal_odds(numerator / denominator + 1.0)
        # Malformed fraction: fall back to whatever precedes the slash.
        return _parse_number(parts[0])
    return _parse_number(text)


def decimal_to_american(decimal_odds: float) -> float:
    """Convert decimal odds to (unrounded) American odds.

    Prices ≥ 2.0 map to positive American odds, shorter prices to negative.
    Use :func:`format_american` for display.
    """
    odds = check_decimal_odds(decimal_odds)
    if odds >= 2.0:
        return (odds - 1.0) * 100.0
    return -100.0 / (odds - 1.0)


def decimal_to_fractional(decimal_odds: float) -> str:
    """Render decimal odds as a reduced ``"N/D"`` string.

    The denominator is limited to :data:`MAX_FRACTION_DENOMINATOR`, so
    ``1.3333`` renders as ``"1/3"`` and ``2.5`` as ``"3/2"``.  Prices off the
    ladder keep their value: ``1.995`` renders as ``"199/200"``, not ``"1/1"``.
    """
    odds = check_decimal_odds(decimal_odds)
    fraction = Fraction(odds - 1.0).limit_denominator(MAX_FRACTION_DENOMINATOR)
    if abs(float(fraction) - (odds - 1.0)) > FRACTION_TOLERANCE:
        fraction = Fraction(odds - 1.0).limit_denominator(EXACT_FRACTION_DENOMINATOR)
    return f"{fraction.numerator}/{fraction.denominator}"


def format_american(decimal_odds: float) -> str:
    """Signed, integer-rounded American odds for display (``"+150"``)."""
    american = round(decimal_to_american(decimal_odds))
    return f"+{american}" if american > 0 else str(american)


def to_decimal(value: str | float | int, fmt: OddsFormat | str) -> float:
    """Normalise an odds value in any supported notation to decimal odds.

    Raises:
        InvalidOddsFormat: For unparseable input, American 0, or decimal
            odds ≤ 1.0 (the fractional fallback excepted, see
            :func:`fractional_to_decimal`).
    """
    fmt = OddsFormat(fmt)
    if fmt is OddsFormat.FRACTIONAL:
        return fractional_to_decimal(value)
    if fmt is OddsFormat.AMERICAN:
        return american_to_decimal(value)
    return check_decimal_odds(_parse_number(value))


def from_decimal(decimal_odds: float, fmt: OddsFormat | str) -> float | str:
    """Express decimal odds in ``fmt``.

    Returns a float for decimal and American notation and an ``"N/D"``
    string for fractional notation.
    """
    fmt = OddsFormat(fmt)
    if fmt is OddsFormat.FRACTIONAL:
        return decimal_to_fractional(decimal_odds)
    if fmt is OddsFormat.AMERICAN:
        return decimal_to_american(decimal_odds)
    return check_decimal_odds(decimal_odds)


def implied_probability(decimal_odds: float) -> float:
    """Market-implied probability ``1 / odds`` (margin-inclusive)."""
    return 1.0 / check_decimal_odds(decimal_odds)


# ---------------------------------------------------------------------------
# Commission and combination
# ---------------------------------------------------------------------------


def effective_odds(
    decimal_odds: float,
    commission: float = 0.0,
    model: CommissionModel | str = CommissionModel.ON_WINNINGS,
) -> float:
    """Decimal odds after commission under the given model.

    Examples::

        effective_odds(3.0, 0.05, CommissionModel.ON_WINNINGS) → 2.90
        effective_odds(3.0, 0.05, CommissionModel.ON_RETURN)   → 2.85

    The result is always positive for a valid commission but may fall to or
    below 1.0 when commission eats the whole margin of a short price.
    """
    odds = check_decimal_odds(decimal_odds)
    rate = check_commission(commission)
    if CommissionModel(model) is CommissionModel.ON_RETURN:
        return odds * (1.0 - rate)
    return odds - (odds - 1.0) * rate


def combine_odds(odds: Iterable[float]) -> float:
    """Accumulator price: the product of every leg's decimal odds."""
    combined = 1.0
    count = 0
    for price in odds:
        combined *= check_decimal_odds(price)
        count += 1
    if count == 0:
        raise InvalidOddsFormat("At least one price is required to combine odds.")
    return combined


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def round_currency(amount: float, places: int = CURRENCY_PLACES) -> float:
    """Round a currency amount half-up for display.

    Only ever call this on final outputs; the engine keeps full float
    precision internally.
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(float(amount))).quantize(quantum, rounding=ROUND_HALF_UP)
    # Normalise -0.0 so displays never show a signed zero.
    return float(rounded) + 0.0
