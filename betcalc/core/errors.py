"""Classified input errors raised by the calculation engine.

Every error subclasses :class:`CalculationError`, which is itself a
``ValueError`` so callers that already catch ``ValueError`` keep working.
Each subclass carries a stable ``kind`` string that the HTTP layer and CLI
surface verbatim; the engine classifies, it never formats user-facing text.

A "no arbitrage" answer is **not** an error.  It is returned as
:class:`~betcalc.core.types.NoArbitrageOpportunity`.
"""

from __future__ import annotations


class CalculationError(ValueError):
    """Base class for every input-validation failure in the engine."""

    kind: str = "CalculationError"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, str | None]:
        return {"error": self.kind, "detail": self.message, "field": self.field}


class InvalidOddsFormat(CalculationError):
    """Odds value unparseable, zero American odds, or decimal odds ≤ 1.0."""

    kind = "InvalidOddsFormat"


class InvalidCommission(CalculationError):
    """Commission rate outside ``[0, 1)``."""

    kind = "InvalidCommission"


class InvalidStakeAmount(CalculationError):
    """Stake, target profit, bankroll or custom stake ≤ 0."""

    kind = "InvalidStakeAmount"


class InsufficientLegs(CalculationError):
    """Fewer than two legs with valid odds were supplied."""

    kind = "InsufficientLegs"


class InvalidLeg(CalculationError):
    """Leg set is malformed: duplicate ids or an unknown custom-stake leg."""

    kind = "InvalidLeg"


class InvalidProbability(CalculationError):
    """A caller-supplied probability lies outside ``(0, 1)``."""

    kind = "InvalidProbability"


class InvalidScenarioSet(CalculationError):
    """Risk metrics were requested over an empty scenario list."""

    kind = "InvalidScenarioSet"
