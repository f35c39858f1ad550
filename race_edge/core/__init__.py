"""Core mathematics and data model for the Race Edge pricing engine.

This package contains pure building blocks:

- ``odds_math``  — price hygiene, implied probability, overround, format conversion
- ``stakes``     — arbitrage stake splits, Kelly sizing, each-way returns
- ``thresholds`` — every tunable detection threshold in one place
- ``market``     — immutable snapshot and result value objects
- ``form``       — speed ratings and recent-form summaries

Nothing in this package imports from ``race_edge.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
