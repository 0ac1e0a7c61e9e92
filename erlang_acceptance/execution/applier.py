"""
Declarative applier for the Erlang acceptance engine.

Renders a Declaration into a manifest and hands it to the convergence
engine (``puppet apply`` by default) exactly once per call. The engine's
text report is parsed into an ApplyResult.
"""

import re
import shlex
from typing import List, Optional, Tuple
import logging

from ..config import EngineConfig
from ..models.declaration import Declaration
from ..models.result import ApplyResult, ResourceChange
from ..exceptions import ApplyError
from .deadline import Deadline
from .target import Target

logger = logging.getLogger(__name__)

# --detailed-exitcodes: 0 = no changes, 2 = changes, 4 = failures, 6 = both
SUCCESS_EXIT_CODES = (0, 2)
CHANGED_EXIT_CODE = 2

RESOURCE_EVENT = re.compile(r"\]/([\w-]+): (.*)$")
EVENT_PREFIX = "Notice: /Stage["
ERROR_PREFIX = "Error: "


def parse_report(stdout: str, stderr: str = "") -> Tuple[List[ResourceChange], List[str]]:
    """Extract resource events and errors from an engine report.

    Resource events look like:
        Notice: /Stage[main]/Erlang::Repo::Yum/Yumrepo[erlang-bintray]/ensure: created

    Returns:
        (changes, failures)
    """
    changes: List[ResourceChange] = []
    failures: List[str] = []

    for line in (stdout + "\n" + stderr).splitlines():
        line = line.strip()
        if line.startswith(EVENT_PREFIX):
            event = line[len("Notice: "):]
            # First "]/attr: " ends the resource path; titles never contain ": "
            match = RESOURCE_EVENT.search(event)
            if not match:
                continue
            path = event[: match.start() + 1]
            # Titles may contain "/" (File[/etc/...]), so split at the type name
            start = path.rfind("/", 0, path.rfind("[")) + 1
            changes.append(ResourceChange(
                resource=path[start:],
                attribute=match.group(1),
                message=match.group(2),
            ))
        elif line.startswith(ERROR_PREFIX):
            failures.append(line[len(ERROR_PREFIX):])

    return changes, failures


class Applier:
    """Applies declarations through the convergence engine.

    Never retries: one call, one engine run.

    Usage:
        applier = Applier(LocalTarget(), config.engine)
        result = applier.apply(declaration)
        print(result.changed_count)
    """

    def __init__(self, target: Target, config: Optional[EngineConfig] = None):
        self.target = target
        self.config = config or EngineConfig()

    def build_command(self, declaration: Declaration) -> str:
        """Shell command line that applies the declaration."""
        parts = [
            self.config.command,
            "--detailed-exitcodes",
            "--color=false",
            *(shlex.quote(arg) for arg in self.config.extra_args),
            "-e",
            shlex.quote(declaration.to_manifest()),
        ]
        return " ".join(parts)

    def apply(self, declaration: Declaration, deadline: Optional[Deadline] = None) -> ApplyResult:
        """Apply a declaration once.

        Args:
            declaration: Desired state to converge to
            deadline: Optional scenario budget capping the engine timeout

        Returns:
            ApplyResult with parsed resource changes

        Raises:
            ApplyError: On a failure exit code, missing engine or malformed report
            TimeoutError: If the engine exceeds its timeout
        """
        timeout = self.config.timeout_seconds
        if deadline is not None:
            timeout = deadline.cap(timeout)

        cmd = self.build_command(declaration)
        logger.debug(f"[{self.target.name}] Applying '{declaration.name}'")

        try:
            result = self.target.run(cmd, timeout)
        except OSError as e:
            raise ApplyError(f"Could not start convergence engine on {self.target.name}: {e}")

        changes, failures = parse_report(result.stdout, result.stderr)
        apply_result = ApplyResult(
            exit_code=result.exit_code,
            changes=changes,
            failures=failures,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_seconds=result.duration_seconds,
        )

        if result.exit_code not in SUCCESS_EXIT_CODES:
            summary = failures[0] if failures else f"exit code {result.exit_code}"
            raise ApplyError(
                f"Applying '{declaration.name}' failed: {summary}",
                output=result.output,
                failures=failures,
            )

        if result.exit_code == CHANGED_EXIT_CODE and not changes:
            raise ApplyError(
                f"Malformed report for '{declaration.name}': "
                "engine reported changes but no resource events were found",
                output=result.output,
            )
        if result.exit_code == 0 and changes:
            raise ApplyError(
                f"Malformed report for '{declaration.name}': "
                f"engine reported no changes but {len(changes)} resource events were found",
                output=result.output,
            )

        logger.debug(f"[{self.target.name}] {apply_result}")
        return apply_result
