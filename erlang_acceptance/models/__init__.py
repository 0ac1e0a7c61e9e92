"""
Data models for the Erlang acceptance engine.

Public exports:
- Declarations and their parts (Precondition, Expectation)
- Result types (ApplyResult, ProbeResult, ScenarioOutcome)
- Enums (ScenarioState)
"""

from .declaration import (
    ENSURE_PRESENT,
    ENSURE_ABSENT,
    Precondition,
    Expectation,
    Declaration,
    load_matrix,
)

from .result import (
    ScenarioState,
    CommandResult,
    ResourceChange,
    ApplyResult,
    RepoState,
    ProbeResult,
    Failure,
    ScenarioOutcome,
)

__all__ = [
    # Declaration models
    "ENSURE_PRESENT",
    "ENSURE_ABSENT",
    "Precondition",
    "Expectation",
    "Declaration",
    "load_matrix",
    # Result models
    "ScenarioState",
    "CommandResult",
    "ResourceChange",
    "ApplyResult",
    "RepoState",
    "ProbeResult",
    "Failure",
    "ScenarioOutcome",
]
