"""
Command targets for the Erlang acceptance engine.

A Target runs one shell command on a host and returns what it printed.
The applier and the prober only ever talk to a Target, so the same
scenario matrix can run locally, inside a container via an argv prefix,
or against scripted responses in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Sequence
import subprocess
import time
import logging

from ..models.result import CommandResult
from ..exceptions import TimeoutError

logger = logging.getLogger(__name__)


class Target(ABC):
    """Abstract base class for command targets.

    Concrete implementations:
    - LocalTarget: Runs commands with subprocess (optionally behind a prefix)
    - MockTarget: Returns scripted responses for testing
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def run(self, cmd: str, timeout: float) -> CommandResult:
        """Run a shell command and return its result.

        Args:
            cmd: Shell command line
            timeout: Maximum time in seconds

        Returns:
            CommandResult (a non-zero exit is NOT an exception)

        Raises:
            TimeoutError: If the command exceeds the timeout
            OSError: If the command cannot be started at all
        """
        pass


class LocalTarget(Target):
    """Runs commands through ``sh -c`` with subprocess.

    Usage:
        target = LocalTarget()
        result = target.run("rpm -q erlang", timeout=60)

        # Inside a container
        target = LocalTarget("el8", exec_prefix=["docker", "exec", "el8"])
    """

    def __init__(self, name: str = "localhost", exec_prefix: Optional[Sequence[str]] = None):
        super().__init__(name)
        self.exec_prefix = list(exec_prefix or [])

    def argv(self, cmd: str) -> List[str]:
        return self.exec_prefix + ["sh", "-c", cmd]

    def run(self, cmd: str, timeout: float) -> CommandResult:
        start_time = time.time()
        logger.debug(f"[{self.name}] $ {cmd[:200]}")

        try:
            result = subprocess.run(
                self.argv(cmd),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.stdout or ""
            if isinstance(partial, bytes):
                partial = partial.decode(errors="replace")
            logger.error(f"[{self.name}] Command timed out after {timeout:.0f}s: {cmd[:100]}")
            raise TimeoutError(
                f"Command timed out after {timeout:.0f}s on {self.name}: {cmd[:100]}",
                output=partial,
            )

        duration = time.time() - start_time
        logger.debug(
            f"[{self.name}] exit={result.returncode}, "
            f"stdout={len(result.stdout)} chars, duration={duration:.1f}s"
        )

        return CommandResult(
            cmd=cmd,
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_seconds=duration,
        )


@dataclass
class MockResponse:
    """A scripted response for MockTarget."""

    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    timeout: bool = False


class MockTarget(Target):
    """Mock target for testing.

    Responses are scripted per command pattern. The longest pattern that
    appears in the command wins. Each pattern's responses are consumed in
    order and the last one repeats.

    Usage:
        target = MockTarget()
        target.script("puppet apply", MockResponse(2, CHANGED), MockResponse(0))
        target.script("rpm -q", MockResponse(0, "23.3-1.el8\\n"))
    """

    def __init__(self, name: str = "mock"):
        super().__init__(name)
        self._responses: Dict[str, List[MockResponse]] = {}

        # Track calls for assertions
        self.calls: List[Dict[str, Any]] = []

    def script(self, pattern: str, *responses: MockResponse) -> "MockTarget":
        self._responses.setdefault(pattern, []).extend(responses)
        return self

    def run(self, cmd: str, timeout: float) -> CommandResult:
        self.calls.append({"cmd": cmd, "timeout": timeout})

        response = self._next_response(cmd)
        if response.timeout:
            raise TimeoutError(f"Mock timeout after {timeout}s: {cmd[:100]}")

        return CommandResult(
            cmd=cmd,
            exit_code=response.exit_code,
            stdout=response.stdout,
            stderr=response.stderr,
        )

    def _next_response(self, cmd: str) -> MockResponse:
        matches = [p for p in self._responses if p in cmd]
        if not matches:
            return MockResponse()

        queue = self._responses[max(matches, key=len)]
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    @property
    def call_count(self) -> int:
        """Number of commands run."""
        return len(self.calls)

    def commands_matching(self, pattern: str) -> List[str]:
        """Commands run so far that contain pattern."""
        return [c["cmd"] for c in self.calls if pattern in c["cmd"]]
