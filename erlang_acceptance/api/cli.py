"""
Command line interface for the Erlang acceptance engine.

Usage:
    erlang-acceptance run --os-family RedHat
    erlang-acceptance run --config acceptance.yaml --format markdown -o report.md
    erlang-acceptance matrix --os-family Debian
    erlang-acceptance manifest "with repo source set to epel" --os-family RedHat
    erlang-acceptance validate --matrix custom_matrix.yaml
"""

from pathlib import Path
from typing import List, Optional, Tuple
import logging

import click
from dotenv import load_dotenv

from ..config import Config, TargetConfig, TEARDOWN_POLICIES
from ..models.declaration import Declaration, load_matrix
from ..orchestration.runner import MatrixRunner, DryRunner
from ..platforms import get_family
from ..reporting.reporter import Reporter
from ..exceptions import AcceptanceError

OS_FAMILY_ENV = "ERLANG_ACCEPTANCE_OS_FAMILY"


def setup_logging(verbose: bool, quiet: bool):
    """Configure logging based on verbosity."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def resolve_matrix(
    os_family: Optional[str],
    matrix_file: Optional[Path],
    only: Tuple[str, ...] = (),
) -> Optional[List[Declaration]]:
    """Pick the matrix from a file or a family, then apply --only filters.

    Returns None when neither is given (each target uses its own family matrix).
    """
    if matrix_file is not None:
        matrix = load_matrix(matrix_file)
    elif os_family:
        matrix = get_family(os_family).matrix()
    else:
        if only:
            raise click.UsageError("--only needs --os-family or --matrix")
        return None

    if only:
        names = {d.name for d in matrix}
        unknown = [n for n in only if n not in names]
        if unknown:
            raise click.UsageError(f"Unknown scenario(s): {', '.join(unknown)}")
        matrix = [d for d in matrix if d.name in only]
    return matrix


@click.group()
@click.version_option(package_name="erlang-acceptance")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Quiet output (errors only)")
def cli(verbose: bool, quiet: bool):
    """Erlang acceptance - verify idempotent package and repository convergence."""
    # Load .env from current directory or home
    load_dotenv()
    load_dotenv(Path.home() / ".env")
    setup_logging(verbose, quiet)


@cli.command()
@click.option("--os-family", envvar=OS_FAMILY_ENV, help="os.family fact of the target (RedHat, Debian)")
@click.option("--target-name", default="localhost", help="Name of the target in reports")
@click.option("--exec-prefix", default="", help="Command prefix, e.g. 'docker exec node1'")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config YAML")
@click.option("--matrix", "matrix_file", type=click.Path(path_type=Path), help="Custom matrix YAML")
@click.option("--only", multiple=True, help="Only run the named scenario (repeatable)")
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["summary", "json", "markdown"]),
    default="summary",
    help="Output format (default: summary)",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file path")
@click.option("--timeout", type=int, help="Override engine timeout (seconds)")
@click.option("--scenario-timeout", type=int, help="Overall budget per scenario (seconds)")
@click.option("--teardown", type=click.Choice(TEARDOWN_POLICIES), help="Teardown policy")
@click.option("--dry-run", is_flag=True, help="Validate and list scenarios without running")
def run(
    os_family: Optional[str],
    target_name: str,
    exec_prefix: str,
    config_path: Optional[Path],
    matrix_file: Optional[Path],
    only: Tuple[str, ...],
    output_format: str,
    output: Optional[Path],
    timeout: Optional[int],
    scenario_timeout: Optional[int],
    teardown: Optional[str],
    dry_run: bool,
):
    """Run the scenario matrix and report the outcomes.

    Exit status: 0 all passed, 1 idempotence or state failures,
    2 apply/probe errors or timeouts.

    Example:
        erlang-acceptance run --os-family RedHat --format markdown -o report.md
    """
    try:
        config = Config.from_yaml(config_path) if config_path else Config.default()
        config = Config.from_env(config)

        # Override config with CLI args
        if timeout is not None:
            config.engine.timeout_seconds = timeout
        if scenario_timeout is not None:
            config.execution.scenario_timeout_seconds = scenario_timeout
        if teardown:
            config.execution.teardown = teardown
        config.validate()

        targets = config.targets
        if os_family:
            targets = [TargetConfig(name=target_name, os_family=os_family, exec_prefix=exec_prefix)]
        if not targets:
            click.echo(f"Error: no targets. Pass --os-family, set {OS_FAMILY_ENV} or configure targets.", err=True)
            raise SystemExit(1)

        matrix = resolve_matrix(os_family, matrix_file, only)

        if dry_run:
            dry = DryRunner()
            invalid = 0
            for target in targets:
                declarations = matrix if matrix is not None else get_family(target.os_family).matrix()
                validation = dry.validate_matrix(declarations)
                invalid += validation["invalid"]
                click.echo(f"\n{target.name} ({target.os_family}): scenarios to run (dry run)")
                _echo_validation(validation)
            raise SystemExit(0 if invalid == 0 else 1)

        if matrix_file is not None:
            validation = DryRunner().validate_matrix(matrix)
            if validation["invalid"]:
                click.echo(f"Error: {matrix_file} has invalid scenarios:", err=True)
                _echo_validation(validation)
                raise SystemExit(1)

        runner = MatrixRunner.from_config(config, matrix=matrix, targets=targets)
        outcomes = runner.run()

    except AcceptanceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    reporter = Reporter()
    report = reporter.generate(outcomes)

    if output_format == "json":
        text = reporter.to_json(report)
    elif output_format == "markdown":
        text = reporter.to_markdown(report)
    else:
        text = reporter.to_summary(report)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text)
        click.echo(f"\nReport saved to: {output}")
    else:
        click.echo(text)

    raise SystemExit(report.exit_code)


@cli.command()
@click.option("--os-family", envvar=OS_FAMILY_ENV, required=True, help="os.family fact (RedHat, Debian)")
def matrix(os_family: str):
    """List the scenarios for an OS family, in run order."""
    try:
        family = get_family(os_family)
    except AcceptanceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    declarations = family.matrix()
    click.echo(f"\n{family.name} (default source: {family.default_source}):\n")
    for i, d in enumerate(declarations, 1):
        flags = []
        if d.is_destructive:
            flags.append("destructive")
        if d.preconditions:
            flags.append("preconditions")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"  {i:2d}. {d.name}{suffix}")

    click.echo(f"\nTotal: {len(declarations)} scenarios")


@cli.command()
@click.argument("name")
@click.option("--os-family", envvar=OS_FAMILY_ENV, help="os.family fact (RedHat, Debian)")
@click.option("--matrix", "matrix_file", type=click.Path(path_type=Path), help="Custom matrix YAML")
def manifest(name: str, os_family: Optional[str], matrix_file: Optional[Path]):
    """Print the manifest applied for scenario NAME."""
    try:
        declarations = resolve_matrix(os_family, matrix_file)
    except AcceptanceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    if declarations is None:
        raise click.UsageError("Pass --os-family or --matrix")

    for d in declarations:
        if d.name == name:
            for p in d.preconditions:
                click.echo(f"# precondition: {p.name} ({p.reason})")
            click.echo(d.to_manifest(), nl=False)
            return

    click.echo(f"Error: no scenario named '{name}'", err=True)
    raise SystemExit(1)


@cli.command()
@click.option("--os-family", envvar=OS_FAMILY_ENV, help="os.family fact (RedHat, Debian)")
@click.option("--matrix", "matrix_file", type=click.Path(path_type=Path), help="Custom matrix YAML")
@click.option("--show-manifests", is_flag=True, help="Print each rendered manifest")
def validate(os_family: Optional[str], matrix_file: Optional[Path], show_manifests: bool):
    """Validate a matrix without running it."""
    try:
        declarations = resolve_matrix(os_family, matrix_file)
    except AcceptanceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    if declarations is None:
        raise click.UsageError("Pass --os-family or --matrix")

    validation = DryRunner().validate_matrix(declarations)
    click.echo("\nValidation Results:")
    _echo_validation(validation, show_manifests)
    raise SystemExit(0 if validation["invalid"] == 0 else 1)


def _echo_validation(validation: dict, show_manifests: bool = False):
    for result in validation["results"]:
        status = "OK " if result["valid"] else "BAD"
        click.echo(f"  [{status}] {result['name']}")
        for precondition in result["preconditions"]:
            click.echo(f"        precondition: {precondition}")
        for issue in result["issues"]:
            click.echo(f"        ! {issue}")
        if show_manifests:
            for line in result["manifest"].splitlines():
                click.echo(f"        | {line}")
    click.echo(f"\nValid: {validation['valid']}/{validation['total']}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
