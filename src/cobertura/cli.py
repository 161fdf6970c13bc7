"""cobertura CLI: top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console

from cobertura import __version__
from cobertura.config import load_config, validate_config
from cobertura.errors import ParserError
from cobertura.parser import parse_file
from cobertura.reporter import reporter
from cobertura.summary import check_document, summarize

if TYPE_CHECKING:
    from cobertura.config import CoberturaConfig
    from cobertura.models import CoverageDocument

logger = logging.getLogger(__name__)
console = Console()

# Exit codes
_EXIT_CHECK_FAILED = 1
_EXIT_INVALID_REPORT = 2
_EXIT_INVALID_CONFIG = 2


def _load_checked_config(path: str) -> CoberturaConfig:
    """Load and validate `.cobertura.yml`, exiting when it is unusable."""
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise SystemExit(_EXIT_INVALID_CONFIG) from e

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(f"Invalid configuration: {error}")
        raise SystemExit(_EXIT_INVALID_CONFIG)
    return config


def _load_report(report: str, chunk_size: int) -> CoverageDocument:
    """Parse *report*, printing the failure and exiting on invalid input."""
    try:
        return parse_file(report, chunk_size=chunk_size)
    except ParserError as e:
        reporter.print_error(f"{report} is not a valid Cobertura report: {e}")
        raise SystemExit(_EXIT_INVALID_REPORT) from e
    except OSError as e:
        reporter.print_error(f"Failed to read {report}: {e}")
        raise SystemExit(_EXIT_INVALID_REPORT) from e


def _document_to_dict(document: CoverageDocument) -> dict[str, Any]:
    """Convert a document to JSON-serializable primitives."""
    result = asdict(document)
    for package in result["packages"]:
        for cls in package["classes"]:
            cls["file_name"] = str(cls["file_name"])
    return result


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="cobertura")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """cobertura: validate and inspect Cobertura XML coverage reports."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@cli.command("parse")
@click.argument("report", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Print the parsed document as JSON instead of a summary table.",
)
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory holding .cobertura.yml.",
)
def parse_command(report: str, path: str, *, as_json: bool) -> None:
    """Parse REPORT and print its contents.

    Example:
      cobertura parse coverage.xml
      cobertura parse coverage.xml --json-output
    """
    config = _load_checked_config(path)
    document = _load_report(report, config.parser.chunk_size)

    if as_json:
        click.echo(json.dumps(_document_to_dict(document), indent=2))
        return

    reporter.print_header(f"Cobertura report {report} (version {document.version})")
    reporter.print_document(document, summarize(document))


@cli.command("check")
@click.argument("report", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tolerance",
    type=float,
    default=None,
    help="Allowed difference between declared and computed line rate.",
)
@click.option(
    "--fail-under",
    type=float,
    default=None,
    help="Minimum line coverage percentage.",
)
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory holding .cobertura.yml.",
)
def check_command(
    report: str,
    tolerance: float | None,
    fail_under: float | None,
    path: str,
) -> None:
    """Check REPORT's declared line-rate against its own line data.

    Exits with status 1 when the declared rate is off by more than the
    tolerance or coverage is below the threshold.

    Example:
      cobertura check coverage.xml --fail-under 80
    """
    config = _load_checked_config(path)
    document = _load_report(report, config.parser.chunk_size)

    result = check_document(
        document,
        tolerance=config.check.line_rate_tolerance if tolerance is None else tolerance,
        line_threshold=config.check.line_threshold if fail_under is None else fail_under,
        branch_threshold=config.check.branch_threshold,
    )
    reporter.print_check_result(result)
    if not result.passed:
        raise SystemExit(_EXIT_CHECK_FAILED)


@cli.group("config")
def config_group() -> None:
    """Inspect `.cobertura.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration."""
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = asdict(config)
    config_dict.pop("raw", None)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.cobertura.yml` values."""
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    console.print(f"[dim]Fix these errors in {Path(path) / '.cobertura.yml'}.[/dim]")
    raise click.Abort
