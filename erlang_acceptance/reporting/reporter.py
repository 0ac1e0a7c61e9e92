"""
Report generation for the Erlang acceptance engine.

Generates human-readable and machine-readable reports
from scenario outcomes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List
import json

from ..models.result import ScenarioOutcome

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_ERRORS = 2


@dataclass
class Report:
    """Summary report of a matrix run.

    Contains aggregate statistics and individual outcomes.
    """

    timestamp: datetime
    total_scenarios: int
    passed: int
    failed: int
    not_idempotent: int
    mismatched: int
    errors: int
    timeouts: int
    pass_rate: float
    total_duration_seconds: float
    outcomes: List[ScenarioOutcome]

    @property
    def exit_code(self) -> int:
        """0 = all passed, 1 = test failures only, 2 = errors or timeouts."""
        if self.errors > 0 or self.timeouts > 0:
            return EXIT_ERRORS
        if self.failed > 0:
            return EXIT_FAILED
        return EXIT_PASSED

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_scenarios": self.total_scenarios,
            "passed": self.passed,
            "failed": self.failed,
            "not_idempotent": self.not_idempotent,
            "mismatched": self.mismatched,
            "errors": self.errors,
            "timeouts": self.timeouts,
            "pass_rate": round(self.pass_rate, 2),
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "exit_code": self.exit_code,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class Reporter:
    """Generates reports from scenario outcomes.

    Supports multiple output formats:
    - JSON (for programmatic consumption)
    - Markdown (for human reading)
    - Summary (brief console output)

    Usage:
        reporter = Reporter()
        report = reporter.generate(outcomes)
        print(reporter.to_markdown(report))
    """

    def generate(self, outcomes: List[ScenarioOutcome]) -> Report:
        """Generate a summary report from outcomes.

        Args:
            outcomes: Scenario outcomes, in run order

        Returns:
            Report with aggregate statistics
        """
        total = len(outcomes)
        passed = sum(1 for o in outcomes if o.passed)
        kinds = [o.failure.kind for o in outcomes if o.failure]

        not_idempotent = kinds.count("NotIdempotentError")
        mismatched = kinds.count("AssertionMismatchError")
        timeouts = kinds.count("TimeoutError")
        errors = len(kinds) - not_idempotent - mismatched - timeouts

        return Report(
            timestamp=datetime.now(),
            total_scenarios=total,
            passed=passed,
            failed=total - passed,
            not_idempotent=not_idempotent,
            mismatched=mismatched,
            errors=errors,
            timeouts=timeouts,
            pass_rate=(passed / total * 100) if total > 0 else 0.0,
            total_duration_seconds=sum(o.duration_seconds for o in outcomes),
            outcomes=list(outcomes),
        )

    def to_json(self, report: Report, indent: int = 2) -> str:
        """Export report as JSON."""
        return json.dumps(report.to_dict(), indent=indent, default=str)

    def to_markdown(self, report: Report) -> str:
        """Export report as Markdown.

        Args:
            report: Report to export

        Returns:
            Markdown string
        """
        md = f"""# Erlang Acceptance Report

**Generated:** {report.timestamp.strftime("%Y-%m-%d %H:%M:%S")}

## Summary

| Metric | Value |
|--------|-------|
| Total Scenarios | {report.total_scenarios} |
| Passed | {report.passed} |
| Failed | {report.failed} |
| Not Idempotent | {report.not_idempotent} |
| State Mismatches | {report.mismatched} |
| Errors | {report.errors} |
| Timeouts | {report.timeouts} |
| **Pass Rate** | **{report.pass_rate:.1f}%** |
| Total Duration | {report.total_duration_seconds:.1f}s |

## Results by Scenario

| Target | Scenario | State | Duration | Changes (1st/2nd) |
|--------|----------|-------|----------|-------------------|
"""
        for o in report.outcomes:
            first = o.first_apply.changed_count if o.first_apply else "-"
            second = o.second_apply.changed_count if o.second_apply else "-"
            md += (
                f"| {o.target} | {o.name} | "
                f"{o.state.value} | "
                f"{o.duration_seconds:.1f}s | "
                f"{first}/{second} |\n"
            )

        failures = [o for o in report.outcomes if not o.passed]
        if failures:
            md += """
## Failure Details

"""
            for o in failures:
                md += f"### {o.target}: {o.name}\n\n"
                if o.failure:
                    md += f"**{o.failure.kind}** at `{o.failure.stage.value}`: {o.failure.message}\n\n"
                    if o.failure.details:
                        for detail in o.failure.details:
                            md += f"- {detail}\n"
                        md += "\n"
                if o.declaration.preconditions:
                    md += "**Preconditions:**\n"
                    for p in o.declaration.preconditions:
                        md += f"- `{p.name}`: {p.reason}\n"
                    md += "\n"
                md += f"**Manifest:**\n\n```puppet\n{o.declaration.to_manifest()}```\n\n"
                if o.failure and o.failure.output:
                    md += f"**Output:**\n\n```\n{o.failure.output.strip()[-4000:]}\n```\n\n"

        md += """
---
*Generated by erlang-acceptance*
"""
        return md

    def to_summary(self, report: Report) -> str:
        """Generate brief summary for console output."""
        status = "PASSED" if report.passed == report.total_scenarios else "FAILED"

        lines = [
            f"\nErlang acceptance: {status}",
            f"   Passed: {report.passed}/{report.total_scenarios} ({report.pass_rate:.1f}%)",
        ]

        if report.not_idempotent > 0:
            lines.append(f"   Not idempotent: {report.not_idempotent}")
        if report.mismatched > 0:
            lines.append(f"   State mismatches: {report.mismatched}")
        if report.errors > 0:
            lines.append(f"   Errors: {report.errors}")
        if report.timeouts > 0:
            lines.append(f"   Timeouts: {report.timeouts}")

        lines.append(f"   Duration: {report.total_duration_seconds:.1f}s")

        for o in report.outcomes:
            if not o.passed:
                lines.append(f"   - {o.summary()}")

        return "\n".join(lines)
