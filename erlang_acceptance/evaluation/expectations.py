"""
Expectation checks for the Erlang acceptance engine.

Compares what the prober observed with the Expectation carried by a
Declaration and lists every difference.
"""

from typing import List

from ..models.declaration import Declaration
from ..models.result import ProbeResult
from ..exceptions import AssertionMismatchError


def find_mismatches(declaration: Declaration, state: ProbeResult) -> List[str]:
    """Return one message per unmet expectation (empty when all hold)."""
    expect = declaration.expect
    mismatches: List[str] = []

    if state.installed != expect.installed:
        wanted = "installed" if expect.installed else "not installed"
        actual = "installed" if state.installed else "not installed"
        mismatches.append(f"package expected {wanted} but is {actual}")

    # Source attribution is only meaningful for an installed package
    if expect.source_contains and state.installed:
        if state.source is None or expect.source_contains not in state.source:
            mismatches.append(
                f"package source '{state.source}' does not contain '{expect.source_contains}'"
            )

    if expect.version_contains and state.installed:
        if state.version is None or expect.version_contains not in state.version:
            mismatches.append(
                f"package version '{state.version}' does not contain '{expect.version_contains}'"
            )

    if expect.repo_name:
        name = expect.repo_name
        if expect.repo_present is not None and state.repo_exists(name) != expect.repo_present:
            wanted = "present" if expect.repo_present else "absent"
            mismatches.append(f"repository {name} expected {wanted}")
        if expect.repo_enabled is not None and state.repo_enabled(name) != expect.repo_enabled:
            wanted = "enabled" if expect.repo_enabled else "disabled"
            mismatches.append(f"repository {name} expected {wanted}")

    return mismatches


def check_expectation(declaration: Declaration, state: ProbeResult) -> None:
    """Raise if the observed state does not match the declaration.

    Raises:
        AssertionMismatchError: Listing every mismatch
    """
    mismatches = find_mismatches(declaration, state)
    if mismatches:
        raise AssertionMismatchError(
            f"'{declaration.name}': " + "; ".join(mismatches),
            mismatches=mismatches,
        )
