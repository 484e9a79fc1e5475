"""Typer-based CLI for contract graph checks and impact analysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .capabilities import load_registry
from .config_manager import DEFAULT_SETTINGS, load_config, save_config
from .errors import ContractGraphError
from .extractor import load_descriptors
from .graph import (
    ContractGraph,
    build_contract_graph,
    detect_cycles,
    find_missing_dependencies,
    impacted_by,
)
from .graph_export import export_dot, to_dot
from .impact import analyze_versions, classify_impact, should_fail
from .models import ImpactResult
from .snapshot import generate_contract_snapshot, load_specs, save_snapshot
from .versioning import bump_version, compare_versions

console = Console()

app = typer.Typer(
    help="Contract dependency graph and breaking-change analysis.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

graph_app = typer.Typer(help="Dependency graph checks and export.", no_args_is_help=True)
version_app = typer.Typer(help="Semantic version helpers.", no_args_is_help=True)
capability_app = typer.Typer(help="Capability requirement checks.", no_args_is_help=True)
config_app = typer.Typer(help="Show or change impact settings.", no_args_is_help=True)

app.add_typer(graph_app, name="graph")
app.add_typer(version_app, name="version")
app.add_typer(capability_app, name="capabilities")
app.add_typer(config_app, name="config")

EXIT_FAILED = 1
EXIT_INVALID_INPUT = 2


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"contractgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """contractgraph: decide whether contract changes are safe to ship."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str, code: int = EXIT_INVALID_INPUT) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=code)


def _load_graph(descriptors_file: Path) -> ContractGraph:
    try:
        return build_contract_graph(load_descriptors(descriptors_file))
    except (ContractGraphError, ValueError) as exc:
        _fail(f"{descriptors_file}: {exc}")


# ===================================================================
# graph
# ===================================================================

@graph_app.command("check")
def graph_check(
    descriptors_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of spec descriptors."),
    as_json: bool = typer.Option(False, "--json", help="Print findings as JSON."),
):
    """Report dependency cycles and unresolved dependencies."""
    graph = _load_graph(descriptors_file)
    cycles = detect_cycles(graph)
    missing = find_missing_dependencies(graph)

    if as_json:
        typer.echo(json.dumps({
            "nodes": len(graph),
            "cycles": cycles,
            "missing": [m.to_dict() for m in missing],
        }, indent=2))
    else:
        console.print(f"Contracts: {len(graph)} | Dependencies: {graph.edge_count()}")
        for cycle in cycles:
            console.print(f"[red]Cycle:[/red] {escape(' -> '.join(cycle))}")
        for record in missing:
            console.print(
                f"[yellow]Missing:[/yellow] {escape(record.contract)} -> {escape(', '.join(record.missing))}"
            )
        if not cycles and not missing:
            console.print("[green]No cycles or missing dependencies.[/green]")

    if cycles or missing:
        raise typer.Exit(code=EXIT_FAILED)


@graph_app.command("export")
def graph_export(
    descriptors_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of spec descriptors."),
    focus: str = typer.Option("", "--focus", "-f", help="Only export contracts matching this key and their neighbours."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output .dot file (stdout if omitted)."),
):
    """Export the dependency graph as Graphviz DOT."""
    graph = _load_graph(descriptors_file)
    if output is None:
        typer.echo(to_dot(graph, focus=focus))
        return
    export_dot(graph, output, focus=focus)
    typer.echo(f"Exported graph to {output}")


@graph_app.command("impacted")
def graph_impacted(
    descriptors_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of spec descriptors."),
    key: str = typer.Argument(..., help="Contract key whose dependents to list."),
):
    """List every contract that transitively depends on KEY."""
    graph = _load_graph(descriptors_file)
    if key not in graph:
        _fail(f"Contract '{key}' not found.", code=EXIT_FAILED)
    dependents = impacted_by(graph, key)
    if not dependents:
        typer.echo(f"No contracts depend on '{key}'.")
        return
    for dependent in dependents:
        typer.echo(dependent)


# ===================================================================
# impact / snapshot
# ===================================================================

def _render_impact(result: ImpactResult) -> None:
    colour = {"breaking": "red", "non-breaking": "yellow", "clean": "green"}[result.status]
    console.print(Panel(
        f"Status: [{colour}]{result.status}[/{colour}]\n"
        f"Breaking: {result.summary.breaking} | Non-breaking: {result.summary.non_breaking}",
        title="Contract impact",
    ))

    if result.items:
        table = Table(title="Changes")
        table.add_column("Spec", style="cyan")
        table.add_column("Path")
        table.add_column("Kind")
        table.add_column("Breaking")
        table.add_column("Description")
        for item in result.items:
            table.add_row(
                escape(item.spec_key),
                escape(item.path),
                item.kind,
                "[red]yes[/red]" if item.breaking else "no",
                escape(item.description),
            )
        console.print(table)

    if result.version_suggestions:
        table = Table(title="Suggested versions")
        table.add_column("Spec", style="cyan")
        table.add_column("Current")
        table.add_column("Suggested")
        table.add_column("Bump")
        for row in result.version_suggestions:
            table.add_row(escape(row.spec_key), row.current_version, row.suggested_version, row.bump_type)
        console.print(table)

    for ref_key in result.added_specs:
        console.print(f"[green]New:[/green] {escape(ref_key)}")


@app.command("impact")
def impact(
    baseline_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Baseline specs or snapshot JSON."),
    head_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Head specs or snapshot JSON."),
    as_json: bool = typer.Option(False, "--json", help="Print the impact result as JSON."),
    fail_on_breaking: Optional[bool] = typer.Option(
        None, "--fail-on-breaking/--no-fail-on-breaking", help="Exit non-zero on breaking changes.",
    ),
    fail_on_changes: Optional[bool] = typer.Option(
        None, "--fail-on-changes/--no-fail-on-changes", help="Exit non-zero on any change.",
    ),
):
    """Classify changes between two spec sets and suggest version bumps."""
    settings = load_config()
    if fail_on_breaking is None:
        fail_on_breaking = bool(settings["fail_on_breaking"])
    if fail_on_changes is None:
        fail_on_changes = bool(settings["fail_on_changes"])

    try:
        result = classify_impact(load_specs(baseline_file), load_specs(head_file))
    except (ContractGraphError, ValueError) as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_impact(result)
        totals = analyze_versions(result)
        console.print(f"Specs needing a bump: {totals['specs_needing_bump']}")

    if should_fail(result, fail_on_breaking=fail_on_breaking, fail_on_changes=fail_on_changes):
        raise typer.Exit(code=EXIT_FAILED)


@app.command("snapshot")
def snapshot(
    specs_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of spec declarations."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Snapshot file (stdout if omitted)."),
):
    """Capture a spec set as a hashed snapshot document."""
    try:
        captured = generate_contract_snapshot(load_specs(specs_file))
    except (ContractGraphError, ValueError) as exc:
        _fail(str(exc))
    if output is None:
        typer.echo(json.dumps(captured.to_dict(), indent=2))
        return
    save_snapshot(captured, output)
    typer.echo(f"Wrote {len(captured.specs)} specs to {output} ({captured.hash[:12]})")


# ===================================================================
# version
# ===================================================================

@version_app.command("bump")
def version_bump(
    current: str = typer.Argument(..., help="Current semantic version."),
    bump_type: str = typer.Argument(..., help="major, minor or patch."),
):
    """Print CURRENT bumped by BUMP_TYPE."""
    if bump_type not in ("major", "minor", "patch"):
        raise typer.BadParameter("Bump type must be one of: major, minor, patch")
    try:
        typer.echo(bump_version(current, bump_type))  # type: ignore[arg-type]
    except ContractGraphError as exc:
        _fail(str(exc))


@version_app.command("compare")
def version_compare(
    left: str = typer.Argument(..., help="First version."),
    right: str = typer.Argument(..., help="Second version."),
):
    """Print <, = or > comparing LEFT to RIGHT by semver precedence."""
    try:
        result = compare_versions(left, right)
    except ContractGraphError as exc:
        _fail(str(exc))
    typer.echo({-1: "<", 0: "=", 1: ">"}[result])


# ===================================================================
# capabilities
# ===================================================================

@capability_app.command("check")
def capabilities_check(
    registry_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of capability specs."),
):
    """Check that every capability's requirements are satisfied."""
    try:
        registry = load_registry(registry_file)
    except (ContractGraphError, ValueError, KeyError) as exc:
        _fail(f"{registry_file}: {exc}")

    problems = registry.validate()
    if not problems:
        console.print(f"[green]All {len(registry.list())} capabilities satisfied.[/green]")
        return

    for ref_key, missing in problems.items():
        wanted: List[str] = [f"{r.key}@{r.version}" if r.version else r.key for r in missing]
        console.print(f"[red]Unmet:[/red] {escape(ref_key)} requires {escape(', '.join(wanted))}")
    raise typer.Exit(code=EXIT_FAILED)


# ===================================================================
# config
# ===================================================================

@config_app.command("show")
def config_show():
    """Print the resolved impact settings."""
    for key, value in load_config().items():
        typer.echo(f"{key} = {value}")


@config_app.command("set")
def config_set(
    fail_on_breaking: Optional[bool] = typer.Option(None, "--fail-on-breaking/--no-fail-on-breaking"),
    fail_on_changes: Optional[bool] = typer.Option(None, "--fail-on-changes/--no-fail-on-changes"),
):
    """Save impact settings to the global config file."""
    updates = {
        key: value
        for key, value in {
            "fail_on_breaking": fail_on_breaking,
            "fail_on_changes": fail_on_changes,
        }.items()
        if value is not None
    }
    if not updates:
        raise typer.BadParameter(f"Nothing to set. Options: {', '.join(DEFAULT_SETTINGS)}")
    if not save_config(**updates):
        _fail("Could not save configuration.", code=EXIT_FAILED)
    typer.echo("Saved: " + ", ".join(f"{k}={v}" for k, v in updates.items()))


if __name__ == "__main__":
    app()
