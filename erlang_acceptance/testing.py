"""
Test helpers for acceptance suites written with pytest.

One helper per property, so a test module never repeats the
apply/re-apply logic per scenario:

    @pytest.mark.parametrize("declaration", family.matrix(), ids=lambda d: d.name)
    def test_scenario(applier, prober, declaration):
        assert_idempotent(applier, declaration)
        assert_expected_state(prober, declaration)
"""

from typing import Optional

from .models.declaration import Declaration
from .models.result import ProbeResult, ScenarioOutcome
from .execution.applier import Applier
from .execution.prober import Prober
from .execution.deadline import Deadline
from .evaluation.idempotence import IdempotenceVerifier
from .evaluation.expectations import find_mismatches
from .exceptions import NotIdempotentError


def assert_idempotent(
    applier: Applier,
    declaration: Declaration,
    deadline: Optional[Deadline] = None,
) -> ScenarioOutcome:
    """Apply twice and fail the test if the second run changed anything.

    ApplyError and TimeoutError propagate unchanged so they show up as
    test errors rather than assertion failures.
    """
    try:
        return IdempotenceVerifier(applier).verify(declaration, deadline)
    except NotIdempotentError as e:
        changes = "\n".join(f"  {c}" for c in e.changes)
        raise AssertionError(
            f"'{declaration.name}' is not idempotent; second apply changed:\n{changes}"
        ) from e


def assert_expected_state(
    prober: Prober,
    declaration: Declaration,
    deadline: Optional[Deadline] = None,
) -> ProbeResult:
    """Probe the host and fail the test on any unmet expectation."""
    state = prober.probe(declaration, deadline)
    mismatches = find_mismatches(declaration, state)
    assert not mismatches, f"'{declaration.name}': " + "; ".join(mismatches)
    return state
