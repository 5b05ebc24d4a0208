import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from quantiq._errors import ExpressionError
from quantiq._eval_engine import EvaluationResult, evaluate_graph
from quantiq._io import export_results_to_toml, load_graph
from quantiq._models import VariableGraph
from quantiq._units import UnitRegistry

from .config import ConfigError, QuantiqConfig, get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Quantiq CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
        force=True,
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _load(graph_path: Path | None, extra_units: list[str]) -> tuple[QuantiqConfig, UnitRegistry, VariableGraph | None]:
    """Load the configuration, register custom units, and load the graph if a path is known."""
    try:
        config = get_config()
        registry = UnitRegistry()
        config.register_units(registry)
        for symbol in extra_units:
            registry.register_unit(symbol)
    except (ConfigError, ExpressionError, ValueError) as e:
        raise _fail(str(e)) from e

    path = graph_path or config.input
    if path is None:
        return config, registry, None

    err_console.print(f"[cyan]Loading graph from:[/cyan] {path}")
    try:
        graph = load_graph(path, registry=registry)
    except ValidationError as e:
        raise _fail(f"Invalid graph file {path}:\n{e}") from e
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e
    err_console.print(f"[cyan]Variables:[/cyan] [bold]{len(graph)}[/bold]")
    return config, registry, graph


def _require_graph(graph: VariableGraph | None) -> VariableGraph:
    if graph is None:
        msg = "No graph file given and no [tool.quantiq].input configured"
        raise _fail(msg)
    return graph


def _status(result: EvaluationResult, variable_id: str) -> str:
    value = result.values[variable_id]
    unit = result.units[variable_id]
    errors = list(dict.fromkeys(error for error in (value.error, unit.error) if error is not None))
    if errors:
        return f"[red]✗ {escape('; '.join(errors))}[/red]"
    messages = list(dict.fromkeys(message for message in (value.message, unit.message) if message is not None))
    if messages:
        return f"[yellow]{escape('; '.join(messages))}[/yellow]"
    return "[green]✓[/green]"


def _results_table(graph: VariableGraph, result: EvaluationResult) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Variable", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Unit")
    table.add_column("Status")

    for variable_id in result.order:
        variable = graph[variable_id]
        label = variable.display_name or variable.name or variable_id
        table.add_row(
            escape(label),
            variable.computed_value_with_significant_digits,
            escape(result.units[variable_id].unit or ""),
            _status(result, variable_id),
        )
    return table


GraphArgument = Annotated[
    Path | None,
    typer.Argument(help="Path to the graph file (.toml or .json). Defaults to [tool.quantiq].input"),
]
UnitOption = Annotated[
    list[str] | None,
    typer.Option("-u", "--unit", help="Register a custom unit before evaluating (repeatable)"),
]


@app.command()
def calc(
    graph_path: GraphArgument = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file. Defaults to [tool.quantiq].output"),
    ] = None,
    unit: UnitOption = None,
) -> None:
    """Evaluate every variable of a graph and print the results."""
    err_console.print()
    config, _, loaded = _load(graph_path, unit or [])
    graph = _require_graph(loaded)

    err_console.print("[cyan]Evaluating graph...[/cyan]")
    result = evaluate_graph(graph)
    err_console.print()

    out_console.print(_results_table(graph, result))

    output_path = output or config.output
    if output_path is not None:
        err_console.print()
        err_console.print(f"[cyan]Exporting results to:[/cyan] {output_path}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        export_results_to_toml(graph, result, output_path)

    err_console.print()
    err_console.print("[green]✓ Calculation complete[/green]")
    err_console.print()


@app.command()
def check(
    graph_path: GraphArgument = None,
    *,
    unit: UnitOption = None,
) -> None:
    """Check a graph for errors. Exits non-zero when any variable reports an error."""
    err_console.print()
    _, _, loaded = _load(graph_path, unit or [])
    graph = _require_graph(loaded)

    cycle_members = graph.input_graph().cycle_members()
    if cycle_members:
        names = ", ".join(graph[variable_id].name or variable_id for variable_id in cycle_members)
        err_console.print(f"[yellow]⚠ Reference cycle between: {escape(names)}[/yellow]")

    result = evaluate_graph(graph)
    err_console.print()

    if result.success:
        err_console.print(f"[green]✓ All {len(graph)} variables resolved[/green]")
        err_console.print()
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Variable", style="bold")
    table.add_column("Error")
    for variable_id, error in result.errors:
        variable = graph[variable_id]
        table.add_row(escape(variable.name or variable_id), f"[red]{escape(error)}[/red]")
    err_console.print(Panel(table, title="[bold]Errors[/bold]", border_style="red"))
    err_console.print()
    err_console.print(f"[red]✗ {len(result.errors)} error(s) found[/red]")
    raise typer.Exit(code=1)


@app.command()
def units(
    graph_path: GraphArgument = None,
    *,
    unit: UnitOption = None,
) -> None:
    """List the custom units from the configuration and the graph."""
    _, registry, graph = _load(graph_path, unit or [])
    if graph is not None:
        # Units used by the graph are registered as they are read
        evaluate_graph(graph)

    custom_units = registry.custom_units()
    if not custom_units:
        err_console.print("[yellow]No custom units[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Unit", style="bold")
    table.add_column("Aliases")
    for symbol, aliases in custom_units.items():
        table.add_row(escape(symbol), escape(", ".join(aliases)))
    out_console.print(table)


def main() -> None:
    app()
