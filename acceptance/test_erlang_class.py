"""
Acceptance tests for the erlang class.

Scenarios run in matrix order against one host; removal scenarios rely on
the install scenario before them. Run with:

    ERLANG_ACCEPTANCE_OS_FAMILY=RedHat pytest acceptance
"""

import os

import pytest

from erlang_acceptance import get_family
from erlang_acceptance.testing import assert_expected_state, assert_idempotent

OS_FAMILY = os.environ.get("ERLANG_ACCEPTANCE_OS_FAMILY")

MATRIX = get_family(OS_FAMILY).matrix() if OS_FAMILY else []

pytestmark = [
    pytest.mark.acceptance,
    pytest.mark.skipif(not OS_FAMILY, reason="ERLANG_ACCEPTANCE_OS_FAMILY is not set"),
]


@pytest.mark.parametrize("declaration", MATRIX, ids=[d.name for d in MATRIX])
def test_converges_idempotently(applier, prober, declaration):
    assert_idempotent(applier, declaration)
    assert_expected_state(prober, declaration)
