"""Core mathematics for the betcalc betting-calculator engine.

This package contains pure, calculator-agnostic building blocks:

- ``odds_math`` — odds notation conversion, commission-adjusted odds, rounding
- ``types``     — immutable value objects (legs, objectives, results)
- ``errors``    — the classified error taxonomy raised before any maths runs
- ``staking``   — stake distribution for dutching/arbitrage and back/lay pairs
- ``scenarios`` — per-outcome profit/loss enumeration
- ``arbitrage`` — arbitrage detection and cross-venue price comparison
- ``risk``      — ROI, worst case, qualifying loss, Kelly sizing

Nothing in this package imports from ``betcalc.services`` or ``betcalc.main``.
All modules are side-effect-free and unit-testable in isolation.
"""
