"""
Idempotence verification for the Erlang acceptance engine.

A declaration converges correctly when applying it a second time, right
after a successful first application, changes nothing. This holds
whatever package manager sits underneath.
"""

from typing import Optional
import logging

from ..models.declaration import Declaration
from ..models.result import ScenarioOutcome, ScenarioState
from ..exceptions import NotIdempotentError
from ..execution.applier import Applier
from ..execution.deadline import Deadline

logger = logging.getLogger(__name__)


class IdempotenceVerifier:
    """Applies a declaration twice and checks the second run is a no-op.

    Usage:
        verifier = IdempotenceVerifier(applier)
        outcome = verifier.verify(declaration)
        assert outcome.state == ScenarioState.VERIFIED

    The outcome passed in (if any) is updated in place, so a caller that
    catches an error still sees how far the scenario got.
    """

    def __init__(self, applier: Applier):
        self.applier = applier

    def verify(
        self,
        declaration: Declaration,
        deadline: Optional[Deadline] = None,
        outcome: Optional[ScenarioOutcome] = None,
    ) -> ScenarioOutcome:
        """Apply twice and require zero changes on the second application.

        Args:
            declaration: Desired state
            deadline: Optional scenario budget
            outcome: Outcome to fill in (a new one is created when None)

        Returns:
            ScenarioOutcome in state VERIFIED

        Raises:
            NotIdempotentError: If the second application changed resources
            ApplyError: If either application fails
            TimeoutError: If either application times out
        """
        if outcome is None:
            outcome = ScenarioOutcome(declaration=declaration, target=self.applier.target.name)

        outcome.first_apply = self.applier.apply(declaration, deadline)
        outcome.state = ScenarioState.APPLIED_FIRST
        logger.debug(
            f"'{declaration.name}': first apply changed {outcome.first_apply.changed_count} resources"
        )

        second = self.applier.apply(declaration, deadline)
        outcome.second_apply = second

        if second.changed_count != 0:
            changed = ", ".join(second.changed_resources)
            raise NotIdempotentError(
                f"Re-applying '{declaration.name}' changed {second.changed_count} "
                f"resources: {changed}",
                changes=second.changes,
                first=outcome.first_apply,
                second=second,
            )

        outcome.state = ScenarioState.VERIFIED
        return outcome
