"""
azgraph CLI entry point.
"""
import logging
import os
import sys
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from azgraph import __version__
from azgraph.config import IntegrationConfig, load_config, validate_config
from azgraph.engine import ExecutionResult, StepStatus, execute_integration, with_dependencies
from azgraph.errors import IntegrationError
from azgraph.models.step import IntegrationInstance
from azgraph.recording import redact_recording_file
from azgraph.reporters import html_reporter, json_reporter, markdown
from azgraph.steps import ALL_STEPS
from azgraph.steps.start_states import get_step_start_states

console = Console(stderr=True)

_STATUS_COLORS = {
    StepStatus.SUCCESS: "green",
    StepStatus.FAILURE: "bold red",
    StepStatus.DISABLED: "dim",
    StepStatus.SKIPPED_DEPENDENCY_FAILURE: "yellow",
}

_REPORT_FILES = {
    "markdown": "report.md",
    "html": "report.html",
}


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=debug)],
        force=True,
    )
    # SDK transport logging is noisy at INFO.
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_valid_config(config_path: Optional[str]) -> IntegrationConfig:
    try:
        return validate_config(load_config(config_path))
    except IntegrationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(2)


def build_instance(config: IntegrationConfig) -> IntegrationInstance:
    return IntegrationInstance(id=config.instance_id, name=config.instance_name, config=config)


def _print_step_table(result: ExecutionResult) -> None:
    tbl = Table(title="Step Summary", show_header=True, header_style="bold")
    tbl.add_column("Step", style="dim")
    tbl.add_column("Status", width=28)
    tbl.add_column("Entities", justify="right")
    tbl.add_column("Relationships", justify="right")
    tbl.add_column("Error")

    for r in result.steps:
        color = _STATUS_COLORS.get(r.status, "")
        error = str(r.error) if r.error else ""
        tbl.add_row(
            r.id,
            f"[{color}]{r.status.value}[/{color}]" if color else r.status.value,
            str(r.entity_count),
            str(r.relationship_count),
            error[:80] + "…" if len(error) > 80 else error,
        )

    console.print(tbl)


def _write(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(content)
    console.print(f"Wrote [bold]{path}[/bold]")


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """azgraph: ingest Azure resources into an entity/relationship graph."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(), default=None,
              help="YAML config file (default: ./azgraph.yaml).")
@click.option("--output", "-o", "output_dir", type=click.Path(file_okay=False),
              default="azgraph-output", show_default=True,
              help="Directory for graph.json and the report.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["json", "markdown", "html"], case_sensitive=False),
    default="markdown",
    show_default=True,
    help="Report format written next to graph.json.",
)
@click.option("--step", "step_ids", multiple=True,
              help="Run only this step (and its dependencies). Repeatable.")
@click.option("--no-raw-data", is_flag=True, default=False,
              help="Leave _rawData out of graph.json.")
@click.option("--debug", is_flag=True, default=False, help="Verbose logging.")
def run(
    config_path: Optional[str],
    output_dir: str,
    output_format: str,
    step_ids: Tuple[str, ...],
    no_raw_data: bool,
    debug: bool,
) -> None:
    """
    Run the ingestion steps and write the collected graph.
    """
    _setup_logging(debug)
    config = _load_valid_config(config_path)
    instance = build_instance(config)

    try:
        steps = with_dependencies(ALL_STEPS, step_ids) if step_ids else list(ALL_STEPS)
    except IntegrationError as exc:
        console.print(f"[red]Step selection error:[/red] {exc}")
        sys.exit(2)

    start_states = get_step_start_states(config, steps)
    result = execute_integration(
        instance, steps, start_states, logger=logging.getLogger("azgraph")
    )

    counts = result.job_state.counts_by_type()
    console.print(
        f"Collected [bold]{sum(counts['entities'].values())}[/bold] entities and "
        f"[bold]{sum(counts['relationships'].values())}[/bold] relationships."
    )
    _print_step_table(result)

    os.makedirs(output_dir, exist_ok=True)
    _write(
        os.path.join(output_dir, "graph.json"),
        json_reporter.build_report(result, instance, include_raw_data=not no_raw_data),
    )
    fmt = output_format.lower()
    if fmt == "markdown":
        _write(os.path.join(output_dir, _REPORT_FILES[fmt]), markdown.build_report(result, instance))
    elif fmt == "html":
        _write(os.path.join(output_dir, _REPORT_FILES[fmt]), html_reporter.build_report(result, instance))

    sys.exit(1 if result.failed else 0)


@cli.command()
def steps() -> None:
    """List the registered steps in declaration order."""
    tbl = Table(title="Steps", show_header=True, header_style="bold")
    tbl.add_column("ID")
    tbl.add_column("Name")
    tbl.add_column("Depends on", style="dim")

    for step in ALL_STEPS:
        tbl.add_row(step.id, step.name, ", ".join(step.depends_on))

    Console().print(tbl)


@cli.command("validate-config")
@click.option("--config", "-c", "config_path", type=click.Path(), default=None)
def validate_config_cmd(config_path: Optional[str]) -> None:
    """Check the instance configuration and print it with secrets masked."""
    config = _load_valid_config(config_path)
    tbl = Table(title="Configuration", show_header=True, header_style="bold")
    tbl.add_column("Setting")
    tbl.add_column("Value")
    for name, value in config.masked().items():
        tbl.add_row(name, "" if value is None else str(value))
    Console().print(tbl)

    disabled: List[str] = [
        step_id for step_id, state in get_step_start_states(config).items() if state.disabled
    ]
    if disabled:
        console.print(f"[yellow]Disabled steps:[/yellow] {', '.join(disabled)}")
    console.print("[green]Configuration OK[/green]")


@cli.command("redact-recording")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", type=click.Path(), default=None)
def redact_recording(path: str, config_path: Optional[str]) -> None:
    """Strip credentials and tenant ids from a recorded HAR file in place."""
    config = load_config(config_path)
    count = redact_recording_file(path, config)
    console.print(f"Redacted [bold]{count}[/bold] entries in [bold]{path}[/bold]")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
