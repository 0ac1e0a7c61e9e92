"""
Execution layer for the Erlang acceptance engine.

Handles:
- Running commands on targets (local, prefixed, mocked)
- Applying declarations through the convergence engine
- Probing package and repository state
- Scenario time budgets
"""

from .target import Target, LocalTarget, MockTarget, MockResponse, CommandResult
from .deadline import Deadline
from .applier import Applier, parse_report
from .prober import Prober

__all__ = [
    # Targets
    "Target",
    "LocalTarget",
    "MockTarget",
    "MockResponse",
    "CommandResult",
    # Timeout
    "Deadline",
    # Applier
    "Applier",
    "parse_report",
    # Prober
    "Prober",
]
