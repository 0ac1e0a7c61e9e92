"""
Configuration management for the Erlang acceptance engine.

Supports:
- Programmatic configuration via dataclasses
- YAML file loading
- Environment variable overrides
- Sensible defaults for all settings
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any, Dict, List
import os

import yaml

from .exceptions import ConfigurationError

TEARDOWN_POLICIES = ("none", "after_run", "before_each")


@dataclass
class EngineConfig:
    """Configuration for the convergence engine invocation."""

    command: str = "puppet apply"
    extra_args: List[str] = field(default_factory=list)
    timeout_seconds: int = 900

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not self.command.strip():
            raise ConfigurationError("engine command cannot be empty")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("engine timeout_seconds must be positive")


@dataclass
class ProbeConfig:
    """Configuration for package-manager state queries."""

    timeout_seconds: int = 120

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.timeout_seconds <= 0:
            raise ConfigurationError("probe timeout_seconds must be positive")


@dataclass
class ExecutionConfig:
    """Configuration for running scenario matrices."""

    parallel_targets: int = 1
    scenario_timeout_seconds: Optional[int] = None  # None = no overall budget
    teardown: str = "none"  # none, after_run, before_each

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.parallel_targets <= 0:
            raise ConfigurationError("parallel_targets must be positive")
        if self.scenario_timeout_seconds is not None and self.scenario_timeout_seconds <= 0:
            raise ConfigurationError("scenario_timeout_seconds must be positive")
        if self.teardown not in TEARDOWN_POLICIES:
            raise ConfigurationError(
                f"Invalid teardown '{self.teardown}'. Must be one of: {list(TEARDOWN_POLICIES)}"
            )


@dataclass
class TargetConfig:
    """A host to run the matrix against.

    exec_prefix is prepended to every command, e.g. ["docker", "exec", "node1"].
    An empty prefix runs commands on the local machine.
    """

    name: str
    os_family: str
    exec_prefix: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("target name cannot be empty")
        if not self.os_family:
            raise ConfigurationError(f"target '{self.name}' has no os_family")
        if isinstance(self.exec_prefix, str):
            self.exec_prefix = self.exec_prefix.split()


@dataclass
class Config:
    """Master configuration for the acceptance engine.

    Example usage:
        # Defaults
        config = Config.default()

        # From file
        config = Config.from_yaml(Path("acceptance.yaml"))

        # Programmatic
        config = Config(
            engine=EngineConfig(timeout_seconds=1800),
            targets=[TargetConfig(name="el8", os_family="RedHat",
                                  exec_prefix=["docker", "exec", "el8"])],
        )
    """

    engine: EngineConfig = field(default_factory=EngineConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    targets: List[TargetConfig] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        try:
            return cls(
                engine=EngineConfig(**data.get("engine", {})),
                probe=ProbeConfig(**data.get("probe", {})),
                execution=ExecutionConfig(**data.get("execution", {})),
                targets=[TargetConfig(**t) for t in data.get("targets", [])],
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}")

    @classmethod
    def default(cls) -> "Config":
        """Create configuration with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, base: Optional["Config"] = None) -> "Config":
        """Apply environment variable overrides.

        Supported environment variables:
        - ERLANG_ACCEPTANCE_ENGINE: Convergence engine command
        - ERLANG_ACCEPTANCE_TIMEOUT: Engine timeout in seconds
        - ERLANG_ACCEPTANCE_PROBE_TIMEOUT: Probe timeout in seconds
        - ERLANG_ACCEPTANCE_SCENARIO_TIMEOUT: Per-scenario budget in seconds
        - ERLANG_ACCEPTANCE_PARALLEL: Number of targets run in parallel
        - ERLANG_ACCEPTANCE_TEARDOWN: Teardown policy
        """
        config = base or cls.default()

        try:
            if command := os.environ.get("ERLANG_ACCEPTANCE_ENGINE"):
                config.engine.command = command
            if timeout := os.environ.get("ERLANG_ACCEPTANCE_TIMEOUT"):
                config.engine.timeout_seconds = int(timeout)
            if probe_timeout := os.environ.get("ERLANG_ACCEPTANCE_PROBE_TIMEOUT"):
                config.probe.timeout_seconds = int(probe_timeout)
            if budget := os.environ.get("ERLANG_ACCEPTANCE_SCENARIO_TIMEOUT"):
                config.execution.scenario_timeout_seconds = int(budget)
            if parallel := os.environ.get("ERLANG_ACCEPTANCE_PARALLEL"):
                config.execution.parallel_targets = int(parallel)
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment override: {e}")

        if teardown := os.environ.get("ERLANG_ACCEPTANCE_TEARDOWN"):
            if teardown not in TEARDOWN_POLICIES:
                raise ConfigurationError(f"Invalid ERLANG_ACCEPTANCE_TEARDOWN: {teardown}")
            config.execution.teardown = teardown

        config.validate()
        return config

    def validate(self):
        """Re-check every section after fields were changed in place.

        Raises:
            ConfigurationError: If any value is out of range
        """
        self.engine.validate()
        self.probe.validate()
        self.execution.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (for serialization)."""
        return {
            "engine": {
                "command": self.engine.command,
                "extra_args": self.engine.extra_args,
                "timeout_seconds": self.engine.timeout_seconds,
            },
            "probe": {
                "timeout_seconds": self.probe.timeout_seconds,
            },
            "execution": {
                "parallel_targets": self.execution.parallel_targets,
                "scenario_timeout_seconds": self.execution.scenario_timeout_seconds,
                "teardown": self.execution.teardown,
            },
            "targets": [
                {
                    "name": t.name,
                    "os_family": t.os_family,
                    "exec_prefix": t.exec_prefix,
                }
                for t in self.targets
            ],
        }

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False)
