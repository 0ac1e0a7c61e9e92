"""
Scenario matrix runner for the Erlang acceptance engine.

The ScenarioRunner drives one target through an ordered matrix:
1. Optionally reset the host (teardown policy)
2. Apply the declaration twice (idempotence)
3. Probe package and repository state
4. Check the probed state against the declaration's expectation

A failed scenario never stops the matrix. The MatrixRunner runs several
independent targets in parallel, one thread per target.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
import time
import uuid
import logging

from ..config import Config, TargetConfig
from ..models.declaration import Declaration
from ..models.result import Failure, ScenarioOutcome, ScenarioState
from ..platforms import PlatformFamily, get_family
from ..execution.target import Target, LocalTarget
from ..execution.applier import Applier
from ..execution.prober import Prober
from ..execution.deadline import Deadline
from ..evaluation.idempotence import IdempotenceVerifier
from ..evaluation.expectations import check_expectation
from ..exceptions import (
    AcceptanceError,
    ApplyError,
    AssertionMismatchError,
    NotIdempotentError,
)

logger = logging.getLogger(__name__)


class ScenarioRunner:
    """Runs scenarios sequentially against a single target.

    Usage:
        runner = ScenarioRunner(LocalTarget(), get_family("RedHat"))
        outcomes = runner.run(runner.family.matrix())
        for o in outcomes:
            print(o.summary())

    Attributes:
        target: Host the commands run on
        family: OS family variant of the target
        config: Configuration for the runner
    """

    def __init__(
        self,
        target: Target,
        family: PlatformFamily,
        config: Optional[Config] = None,
        applier: Optional[Applier] = None,
        prober: Optional[Prober] = None,
    ):
        self.target = target
        self.family = family
        self.config = config or Config.default()
        self.applier = applier or Applier(target, self.config.engine)
        self.prober = prober or Prober(target, family, self.config.probe)
        self.verifier = IdempotenceVerifier(self.applier)

    @property
    def teardown(self) -> str:
        return self.config.execution.teardown

    def run_scenario(self, declaration: Declaration) -> ScenarioOutcome:
        """Run one declaration to a terminal state.

        Returns:
            ScenarioOutcome in state PASSED or FAILED
        """
        run_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        outcome = ScenarioOutcome(
            declaration=declaration,
            target=self.target.name,
            run_id=run_id,
            started_at=datetime.now(),
        )
        deadline = Deadline(
            self.config.execution.scenario_timeout_seconds,
            label=f"scenario '{declaration.name}'",
        )

        logger.info(f"[{run_id}] [{self.target.name}] Running: {declaration.name}")
        for precondition in declaration.preconditions:
            logger.info(f"[{run_id}] Precondition '{precondition.name}': {precondition.reason}")

        try:
            if self.teardown == "before_each":
                self._reset(deadline)

            self.verifier.verify(declaration, deadline, outcome)
            logger.debug(f"[{run_id}] Idempotent")

            outcome.probe = self.prober.probe(declaration, deadline)
            outcome.state = ScenarioState.PROBED

            check_expectation(declaration, outcome.probe)
            outcome.state = ScenarioState.PASSED

        except NotIdempotentError as e:
            self._fail(outcome, e, details=[str(c) for c in e.changes])

        except AssertionMismatchError as e:
            self._fail(outcome, e, details=e.mismatches)

        except ApplyError as e:
            self._fail(outcome, e, details=e.failures)

        except AcceptanceError as e:
            self._fail(outcome, e)

        except Exception as e:
            logger.exception(f"[{run_id}] Unexpected error: {e}")
            self._fail(outcome, e)

        finally:
            outcome.duration_seconds = time.monotonic() - start

        logger.info(f"[{run_id}] {outcome.summary()}")
        return outcome

    def run(self, matrix: Sequence[Declaration]) -> List[ScenarioOutcome]:
        """Run a matrix in order.

        Args:
            matrix: Ordered declarations

        Returns:
            One outcome per declaration, in the same order
        """
        outcomes: List[ScenarioOutcome] = []
        total = len(matrix)

        for i, declaration in enumerate(matrix, 1):
            logger.info(f"[{self.target.name}] Scenario {i}/{total}: {declaration.name}")
            outcomes.append(self.run_scenario(declaration))

            passed = sum(1 for o in outcomes if o.passed)
            logger.info(f"[{self.target.name}] Progress: {passed}/{i} passed ({i}/{total} complete)")

        if self.teardown == "after_run":
            try:
                self._reset(Deadline.unlimited())
            except AcceptanceError as e:
                logger.error(f"[{self.target.name}] Teardown failed: {e}")

        return outcomes

    def _reset(self, deadline: Deadline) -> None:
        """Converge the host to the family's reset declaration."""
        reset = self.family.reset_declaration()
        logger.debug(f"[{self.target.name}] Resetting host: {reset.name}")
        self.applier.apply(reset, deadline)

    def _fail(self, outcome: ScenarioOutcome, error: Exception, details: Optional[List[str]] = None) -> None:
        outcome.failure = Failure(
            kind=type(error).__name__,
            stage=outcome.state,
            message=str(error),
            output=getattr(error, "output", "") or "",
            details=list(details or []),
        )
        outcome.state = ScenarioState.FAILED
        logger.error(f"[{outcome.run_id}] {outcome.failure}")


class MatrixRunner:
    """Runs matrices on several independent targets.

    Targets share no state, so they run in parallel threads (up to
    ``execution.parallel_targets``). Scenarios on one target stay sequential.

    Usage:
        runner = MatrixRunner.from_config(config)
        outcomes = runner.run()
    """

    def __init__(
        self,
        jobs: Sequence[Tuple[ScenarioRunner, Sequence[Declaration]]],
        config: Optional[Config] = None,
    ):
        self.jobs = list(jobs)
        self.config = config or Config.default()

        names = [runner.target.name for runner, _ in self.jobs]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise AcceptanceError(f"Each target may appear once per run: {sorted(duplicates)}")

    @classmethod
    def from_config(
        cls,
        config: Config,
        matrix: Optional[Sequence[Declaration]] = None,
        targets: Optional[Sequence[TargetConfig]] = None,
    ) -> "MatrixRunner":
        """Build one LocalTarget runner per configured target.

        Args:
            config: Configuration (targets are taken from here by default)
            matrix: Matrix to use for every target instead of the family matrix
            targets: Explicit targets overriding config.targets
        """
        jobs = []
        for target_config in targets if targets is not None else config.targets:
            family = get_family(target_config.os_family)
            target = LocalTarget(target_config.name, target_config.exec_prefix)
            runner = ScenarioRunner(target, family, config)
            jobs.append((runner, list(matrix) if matrix is not None else family.matrix()))
        return cls(jobs, config)

    def run_by_target(self) -> Dict[str, List[ScenarioOutcome]]:
        """Run every target's matrix.

        Returns:
            Outcomes keyed by target name, in job order
        """
        workers = min(self.config.execution.parallel_targets, max(len(self.jobs), 1))
        logger.info(f"Running {len(self.jobs)} targets with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                (runner.target.name, pool.submit(runner.run, matrix))
                for runner, matrix in self.jobs
            ]
            return {name: future.result() for name, future in futures}

    def run(self) -> List[ScenarioOutcome]:
        """Run every target and flatten the outcomes."""
        results = self.run_by_target()
        return [outcome for outcomes in results.values() for outcome in outcomes]


class DryRunner:
    """Dry run mode - validates a matrix without executing anything.

    Useful for reviewing manifests and ordering before touching a host.
    """

    DEFAULT_SOURCE = "<default>"

    def validate_declaration(self, declaration: Declaration) -> dict:
        """Check one declaration for self-contradictions.

        Returns:
            Dict with validation results and the rendered manifest
        """
        issues = []
        expect = declaration.expect

        if declaration.removes_package and expect.installed:
            issues.append("package_ensure is absent but the package is expected installed")
        if not declaration.removes_package and not expect.installed:
            issues.append(
                f"package_ensure is {declaration.package_ensure} but the package is expected absent"
            )
        if declaration.repo_ensure == "absent" and expect.repo_present:
            issues.append("repo_ensure is absent but the repository is expected present")
        if declaration.repo_ensure == "present" and expect.repo_present is False:
            issues.append("repo_ensure is present but the repository is expected absent")
        if expect.version_contains and not expect.installed:
            issues.append("version expectation on a package expected absent")
        if expect.repo_present is not None and not expect.repo_name:
            issues.append("repository expectation without repo_name")

        return {
            "name": declaration.name,
            "valid": len(issues) == 0,
            "issues": issues,
            "destructive": declaration.is_destructive,
            "preconditions": [
                f"{p.name}: {p.reason}" for p in declaration.preconditions
            ],
            "manifest": declaration.to_manifest(),
        }

    def validate_matrix(self, matrix: Sequence[Declaration]) -> dict:
        """Validate a whole matrix, including ordering.

        A destructive scenario for a repo source must come after a
        constructive one for the same source, and names must be unique.

        Returns:
            Dict with overall validation results
        """
        results = [self.validate_declaration(d) for d in matrix]
        installed_sources = set()
        seen_names = set()

        for declaration, result in zip(matrix, results):
            source = declaration.repo_source or self.DEFAULT_SOURCE
            if declaration.name in seen_names:
                result["issues"].append("duplicate scenario name")
            seen_names.add(declaration.name)

            if declaration.is_destructive:
                if source not in installed_sources:
                    result["issues"].append(
                        f"removes source {source} before any scenario installs it"
                    )
            else:
                installed_sources.add(source)

            result["valid"] = len(result["issues"]) == 0

        valid_count = sum(1 for r in results if r["valid"])
        return {
            "total": len(results),
            "valid": valid_count,
            "invalid": len(results) - valid_count,
            "results": results,
        }
