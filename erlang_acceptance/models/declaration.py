"""
Declaration data models for the Erlang acceptance engine.

A Declaration defines:
- The desired state handed to the convergence engine (package + repository)
- Preconditions that must run inside the same convergence (e.g. forced erase)
- The state the prober is expected to observe afterwards
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Dict, Any, Tuple

import yaml

from ..exceptions import MatrixError

ENSURE_PRESENT = "present"
ENSURE_ABSENT = "absent"
REPO_ENSURE_VALUES = (ENSURE_PRESENT, ENSURE_ABSENT)


def _quote(value: str) -> str:
    """Render a Puppet single-quoted string."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


@dataclass(frozen=True)
class Precondition:
    """A guarded command that runs before the class is converged.

    Rendered as an ``exec`` resource whose ``onlyif`` guard makes it a
    no-op on the second application.

    Attributes:
        name: Resource title (also the command when command is empty)
        onlyif: Guard command; the exec runs only when it exits 0
        reason: Why the precondition exists (shown in dry runs and reports)
        command: Command to run (defaults to name)
        path: Search path for the exec
    """

    name: str
    onlyif: str
    reason: str
    command: str = ""
    path: Tuple[str, ...] = ("/usr/bin", "/bin")

    def __post_init__(self):
        if not self.name:
            raise MatrixError("Precondition name cannot be empty")
        if not self.onlyif:
            raise MatrixError(f"Precondition '{self.name}' needs an onlyif guard")

    def to_manifest(self) -> str:
        paths = ", ".join(_quote(p) for p in self.path)
        lines = [f"exec {{ {_quote(self.name)}:"]
        if self.command and self.command != self.name:
            lines.append(f"  command => {_quote(self.command)},")
        lines.append(f"  onlyif  => {_quote(self.onlyif)},")
        lines.append(f"  path    => [{paths}],")
        lines.append("}")
        return "\n".join(lines)


@dataclass(frozen=True)
class Expectation:
    """State the prober must observe after convergence.

    None on an optional field means "not checked".
    """

    installed: bool = True
    source_contains: Optional[str] = None
    repo_name: Optional[str] = None
    repo_present: Optional[bool] = None
    repo_enabled: Optional[bool] = None
    version_contains: Optional[str] = None  # checked only when installed


@dataclass(frozen=True)
class Declaration:
    """Desired state for one scenario.

    Example YAML:
        - name: "install from bintray"
          package_ensure: present
          repo_source: bintray
          repo_version: "23"
          expect:
            installed: true
            source_contains: bintray
            repo_name: erlang-bintray
            repo_present: true
            repo_enabled: true
    """

    name: str
    package_ensure: str = ENSURE_PRESENT  # present, absent or a version string
    repo_source: Optional[str] = None  # None = module default
    repo_version: Optional[str] = None
    repo_ensure: str = ENSURE_PRESENT
    preconditions: Tuple[Precondition, ...] = ()
    expect: Expectation = field(default_factory=Expectation)

    def __post_init__(self):
        if not self.name:
            raise MatrixError("Declaration name cannot be empty")
        if not self.package_ensure:
            raise MatrixError(f"Declaration '{self.name}' has empty package_ensure")
        if self.repo_ensure not in REPO_ENSURE_VALUES:
            raise MatrixError(
                f"Invalid repo_ensure '{self.repo_ensure}' in '{self.name}'. "
                f"Must be one of: {list(REPO_ENSURE_VALUES)}"
            )
        if self.repo_source is not None:
            if not isinstance(self.repo_source, str):
                raise MatrixError(f"repo_source in '{self.name}' must be a string")
            if not self.repo_source.strip():
                raise MatrixError(f"Declaration '{self.name}' has blank repo_source")

    @property
    def removes_package(self) -> bool:
        return self.package_ensure == ENSURE_ABSENT

    @property
    def is_destructive(self) -> bool:
        """True when the declaration removes the package or its repository."""
        return self.removes_package or self.repo_ensure == ENSURE_ABSENT

    def to_manifest(self) -> str:
        """Render the Puppet manifest applied for this declaration."""
        params = []
        if self.package_ensure != ENSURE_PRESENT:
            params.append(("package_ensure", self.package_ensure))
        if self.repo_source is not None:
            params.append(("repo_source", self.repo_source))
        if self.repo_ensure != ENSURE_PRESENT:
            params.append(("repo_ensure", self.repo_ensure))
        if self.repo_version is not None:
            params.append(("repo_version", self.repo_version))

        blocks = [p.to_manifest() for p in self.preconditions]
        if params:
            width = max(len(k) for k, _ in params)
            body = "\n".join(
                f"  {k.ljust(width)} => {_quote(v)}," for k, v in params
            )
            blocks.append(f"class {{ 'erlang':\n{body}\n}}")
        else:
            blocks.append("class { 'erlang': }")
        return "\n".join(blocks) + "\n"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Declaration":
        """Create a Declaration from a dictionary.

        When ``expect.installed`` is omitted it follows ``package_ensure``:
        an absent package is expected not installed.

        Raises:
            MatrixError: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise MatrixError(f"Declaration must be a mapping, got {type(data).__name__}: {data!r}")
        if "name" not in data:
            raise MatrixError(f"Declaration missing required field 'name': {data}")

        try:
            expect_data = data.get("expect", {}) or {}
            if not isinstance(expect_data, dict):
                raise MatrixError(f"'expect' in '{data['name']}' must be a mapping")
            package_ensure = str(data.get("package_ensure", ENSURE_PRESENT))
            expect_data = {"installed": package_ensure != ENSURE_ABSENT, **expect_data}

            preconditions = tuple(
                Precondition(
                    name=p["name"],
                    onlyif=p["onlyif"],
                    reason=p.get("reason", ""),
                    command=p.get("command", ""),
                    path=tuple(p.get("path", ("/usr/bin", "/bin"))),
                )
                for p in data.get("preconditions", [])
            )
            source = data.get("repo_source")
            version = data.get("repo_version")
            return cls(
                name=str(data["name"]),
                package_ensure=package_ensure,
                repo_source=str(source) if source is not None else None,
                repo_version=str(version) if version is not None else None,
                repo_ensure=data.get("repo_ensure", ENSURE_PRESENT),
                preconditions=preconditions,
                expect=Expectation(**expect_data),
            )
        except MatrixError:
            raise
        except (KeyError, TypeError, AttributeError) as e:
            raise MatrixError(f"Failed to parse declaration '{data.get('name')}': {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert declaration to dictionary (for serialization)."""
        return {
            "name": self.name,
            "package_ensure": self.package_ensure,
            "repo_source": self.repo_source,
            "repo_version": self.repo_version,
            "repo_ensure": self.repo_ensure,
            "preconditions": [
                {
                    "name": p.name,
                    "command": p.command,
                    "onlyif": p.onlyif,
                    "path": list(p.path),
                    "reason": p.reason,
                }
                for p in self.preconditions
            ],
            "expect": {
                "installed": self.expect.installed,
                "source_contains": self.expect.source_contains,
                "repo_name": self.expect.repo_name,
                "repo_present": self.expect.repo_present,
                "repo_enabled": self.expect.repo_enabled,
                "version_contains": self.expect.version_contains,
            },
        }


def load_matrix(path: Path) -> List[Declaration]:
    """Load an ordered list of declarations from YAML.

    Accepts either a top-level list or a mapping with a ``matrix`` key.

    Raises:
        MatrixError: If the file is missing, malformed or empty
    """
    if not path.exists():
        raise MatrixError(f"Matrix file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MatrixError(f"Invalid YAML in {path}: {e}")

    if isinstance(data, dict):
        data = data.get("matrix")
    if not data:
        raise MatrixError(f"Empty matrix file: {path}")
    if not isinstance(data, list):
        raise MatrixError(f"Matrix in {path} must be a list of declarations")

    return [Declaration.from_dict(item) for item in data]
