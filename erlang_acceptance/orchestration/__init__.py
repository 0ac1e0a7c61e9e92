"""
Orchestration layer for the Erlang acceptance engine.

Handles:
- Running a scenario matrix against one target
- Parallel execution across independent targets
- Dry-run validation of matrices
"""

from .runner import ScenarioRunner, MatrixRunner, DryRunner

__all__ = [
    "ScenarioRunner",
    "MatrixRunner",
    "DryRunner",
]
