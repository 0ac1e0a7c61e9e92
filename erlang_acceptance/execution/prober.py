"""
State prober for the Erlang acceptance engine.

Runs read-only package-manager queries on a target and turns their
output into a ProbeResult. Which commands run, and how their output is
read, is decided by the target's PlatformFamily.
"""

from typing import Callable, Optional, TypeVar
import logging

from ..config import ProbeConfig
from ..models.declaration import Declaration
from ..models.result import CommandResult, ProbeResult
from ..exceptions import ProbeError
from ..platforms import PlatformFamily
from .deadline import Deadline
from .target import Target

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Prober:
    """Queries installed packages and repositories.

    Absent packages and repositories are valid observations, not errors.

    Usage:
        prober = Prober(target, get_family("RedHat"))
        state = prober.probe(declaration)
        if state.installed:
            print(state.source)
    """

    def __init__(
        self,
        target: Target,
        family: PlatformFamily,
        config: Optional[ProbeConfig] = None,
    ):
        self.target = target
        self.family = family
        self.config = config or ProbeConfig()

    def probe(self, declaration: Declaration, deadline: Optional[Deadline] = None) -> ProbeResult:
        """Observe the state relevant to a declaration.

        Args:
            declaration: Declaration whose package and repository to inspect
            deadline: Optional scenario budget capping each query timeout

        Returns:
            ProbeResult

        Raises:
            ProbeError: If a query fails or its output cannot be parsed
            TimeoutError: If a query exceeds its timeout
        """
        installed, version = self._query(
            self.family.package_query(), self.family.parse_package, deadline
        )

        source = None
        if installed:
            source = self._query(
                self.family.source_query(), self.family.parse_source, deadline
            )

        repo_name = declaration.expect.repo_name or self.family.repo_name(declaration.repo_source)
        repo = self._query(
            self.family.repo_query(repo_name),
            lambda result: self.family.parse_repo(repo_name, result),
            deadline,
        )

        state = ProbeResult(
            installed=installed,
            version=version,
            source=source,
            repos={repo_name: repo},
        )
        logger.debug(
            f"[{self.target.name}] Probed: installed={installed}, source={source}, "
            f"{repo_name}: exists={repo.exists}, enabled={repo.enabled}"
        )
        return state

    def _query(
        self,
        cmd: str,
        parse: Callable[[CommandResult], T],
        deadline: Optional[Deadline],
    ) -> T:
        timeout = self.config.timeout_seconds
        if deadline is not None:
            timeout = deadline.cap(timeout)

        try:
            result = self.target.run(cmd, timeout)
        except OSError as e:
            raise ProbeError(f"Could not run '{cmd}' on {self.target.name}: {e}")

        return parse(result)
