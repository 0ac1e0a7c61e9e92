"""
Evaluation layer for the Erlang acceptance engine.

Handles:
- Idempotence verification (second apply must change nothing)
- Expectation checks against probed state
"""

from .idempotence import IdempotenceVerifier
from .expectations import find_mismatches, check_expectation

__all__ = [
    "IdempotenceVerifier",
    "find_mismatches",
    "check_expectation",
]
