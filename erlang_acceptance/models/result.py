"""
Result data models for the Erlang acceptance engine.

These capture the outcomes of a scenario run, including:
- Convergence engine applications (what changed, what failed)
- Probed host state (package + repositories)
- The overall scenario outcome and its state machine position
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any

from .declaration import Declaration


class ScenarioState(Enum):
    """Position of a scenario in its lifecycle.

    PENDING -> APPLIED_FIRST -> VERIFIED -> PROBED -> PASSED | FAILED
    """

    PENDING = "pending"
    APPLIED_FIRST = "applied_first"
    VERIFIED = "verified"  # second apply reported no changes
    PROBED = "probed"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ScenarioState.PASSED, ScenarioState.FAILED)


@dataclass
class CommandResult:
    """Output of one command run on a target.

    Attributes:
        cmd: The shell command that was run
        exit_code: Process exit code
        stdout: Captured standard output
        stderr: Captured standard error
        duration_seconds: How long the command took
    """

    cmd: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stdout and stderr joined, for error context."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def __str__(self) -> str:
        status = "OK" if self.success else f"FAIL (exit={self.exit_code})"
        return f"CommandResult({status}, {self.duration_seconds:.1f}s, {self.cmd[:60]})"


@dataclass
class ResourceChange:
    """One resource event reported by the convergence engine."""

    resource: str  # e.g. Package[erlang]
    attribute: str  # e.g. ensure
    message: str  # e.g. created

    def __str__(self) -> str:
        return f"{self.resource}/{self.attribute}: {self.message}"


@dataclass
class ApplyResult:
    """Outcome of one convergence engine application."""

    exit_code: int
    changes: List[ResourceChange] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def changed_resources(self) -> List[str]:
        """Distinct changed resources, in report order."""
        seen: Dict[str, None] = {}
        for change in self.changes:
            seen.setdefault(change.resource, None)
        return list(seen)

    @property
    def changed_count(self) -> int:
        return len(self.changed_resources)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    def __str__(self) -> str:
        return (
            f"ApplyResult(exit={self.exit_code}, changed={self.changed_count}, "
            f"failed={self.failed_count}, {self.duration_seconds:.1f}s)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exit_code": self.exit_code,
            "changed_count": self.changed_count,
            "failed_count": self.failed_count,
            "changes": [str(c) for c in self.changes],
            "failures": self.failures,
            "duration_seconds": round(self.duration_seconds, 2),
        }


@dataclass
class RepoState:
    """Observed state of one package repository."""

    name: str
    exists: bool
    enabled: bool = False


@dataclass
class ProbeResult:
    """Observed host state after convergence."""

    installed: bool
    version: Optional[str] = None
    source: Optional[str] = None  # repository id or maintainer string
    repos: Dict[str, RepoState] = field(default_factory=dict)

    def repo_exists(self, name: str) -> bool:
        repo = self.repos.get(name)
        return repo is not None and repo.exists

    def repo_enabled(self, name: str) -> bool:
        repo = self.repos.get(name)
        return repo is not None and repo.exists and repo.enabled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "installed": self.installed,
            "version": self.version,
            "source": self.source,
            "repos": {
                name: {"exists": r.exists, "enabled": r.enabled}
                for name, r in self.repos.items()
            },
        }


@dataclass
class Failure:
    """Why a scenario failed.

    Attributes:
        kind: Error class name (ApplyError, NotIdempotentError, ...)
        stage: Last state reached before the failure
        message: Human-readable message
        output: Captured command output, if any
        details: Extra lines (changed resources, mismatches)
    """

    kind: str
    stage: ScenarioState
    message: str
    output: str = ""
    details: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.kind} at {self.stage.value}: {self.message}"


@dataclass
class ScenarioOutcome:
    """Complete result of running one declaration against one target."""

    declaration: Declaration
    target: str
    run_id: str = ""
    state: ScenarioState = ScenarioState.PENDING
    first_apply: Optional[ApplyResult] = None
    second_apply: Optional[ApplyResult] = None
    probe: Optional[ProbeResult] = None
    failure: Optional[Failure] = None
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.state == ScenarioState.PASSED

    @property
    def name(self) -> str:
        return self.declaration.name

    def summary(self) -> str:
        """Human-readable summary."""
        status = "PASS" if self.passed else "FAIL"
        line = f"[{status}] [{self.target}] {self.name}"
        if self.failure:
            line += f" - {self.failure}"
        return line

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "target": self.target,
            "run_id": self.run_id,
            "state": self.state.value,
            "passed": self.passed,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
            "declaration": self.declaration.to_dict(),
            "first_apply": self.first_apply.to_dict() if self.first_apply else None,
            "second_apply": self.second_apply.to_dict() if self.second_apply else None,
            "probe": self.probe.to_dict() if self.probe else None,
            "failure": {
                "kind": self.failure.kind,
                "stage": self.failure.stage.value,
                "message": self.failure.message,
                "details": self.failure.details,
                "output": self.failure.output,
            }
            if self.failure
            else None,
        }
