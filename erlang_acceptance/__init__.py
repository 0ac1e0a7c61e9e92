"""
Erlang Acceptance - convergence verification for the erlang module.

This package provides:
- Declarations of desired package/repository state (with expectations)
- Per OS family scenario matrices (RedHat, Debian)
- Idempotence verification (apply twice, second run must change nothing)
- State probing through package-manager queries
- Report generation (summary, JSON, Markdown)

Quick start:
    from erlang_acceptance import LocalTarget, ScenarioRunner, Reporter, get_family

    family = get_family("RedHat")
    runner = ScenarioRunner(LocalTarget(), family)
    outcomes = runner.run(family.matrix())

    report = Reporter().generate(outcomes)
    print(Reporter().to_summary(report))

CLI usage:
    erlang-acceptance run --os-family RedHat --format markdown
"""

__version__ = "0.1.0"

# Core exports
from .config import Config, EngineConfig, ProbeConfig, ExecutionConfig, TargetConfig
from .exceptions import (
    AcceptanceError,
    ApplyError,
    ProbeError,
    NotIdempotentError,
    AssertionMismatchError,
    TimeoutError,
    ConfigurationError,
    MatrixError,
)

# Model exports
from .models import (
    # Declaration models
    Precondition,
    Expectation,
    Declaration,
    load_matrix,
    # Result models
    ScenarioState,
    CommandResult,
    ResourceChange,
    ApplyResult,
    RepoState,
    ProbeResult,
    Failure,
    ScenarioOutcome,
)

# Platform exports
from .platforms import PlatformFamily, RedHatFamily, DebianFamily, get_family

# Execution exports
from .execution import Target, LocalTarget, MockTarget, MockResponse, Deadline, Applier, Prober

# Evaluation exports
from .evaluation import IdempotenceVerifier, check_expectation, find_mismatches

# Orchestration exports
from .orchestration import ScenarioRunner, MatrixRunner, DryRunner

# Reporting exports
from .reporting import Report, Reporter

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "EngineConfig",
    "ProbeConfig",
    "ExecutionConfig",
    "TargetConfig",
    # Exceptions
    "AcceptanceError",
    "ApplyError",
    "ProbeError",
    "NotIdempotentError",
    "AssertionMismatchError",
    "TimeoutError",
    "ConfigurationError",
    "MatrixError",
    # Declaration models
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
    # Platforms
    "PlatformFamily",
    "RedHatFamily",
    "DebianFamily",
    "get_family",
    # Execution
    "Target",
    "LocalTarget",
    "MockTarget",
    "MockResponse",
    "Deadline",
    "Applier",
    "Prober",
    # Evaluation
    "IdempotenceVerifier",
    "check_expectation",
    "find_mismatches",
    # Orchestration
    "ScenarioRunner",
    "MatrixRunner",
    "DryRunner",
    # Reporting
    "Report",
    "Reporter",
]
