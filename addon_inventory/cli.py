"""
addon-inventory CLI: query EKS add-ons across regions.

Usage:
    addon-inventory query      List add-ons (list/get hydration across regions)
    addon-inventory columns    Show the column catalogue
    addon-inventory regions    Show the resolved region matrix
"""

import json
from typing import List, Optional

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .columns import COLUMNS
from .config import get_config
from .errors import InventoryError
from .logging import setup_logging
from .pipeline import InventoryPipeline
from .query import Query
from .regions import RegionMatrix

console = Console()
app = typer.Typer(
    name="addon-inventory",
    help="Enumerate EKS add-ons across clusters and regions.",
    no_args_is_help=True,
)


def _split_columns(columns: Optional[str]) -> List[str]:
    if not columns:
        return []
    return [c.strip() for c in columns.split(",") if c.strip()]


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


@app.command()
def query(
    regions: Optional[List[str]] = typer.Option(
        None, "--region", "-r", help="Restrict to these regions (repeatable)"
    ),
    cluster: Optional[str] = typer.Option(None, "--cluster", help="cluster_name = VALUE"),
    addon: Optional[str] = typer.Option(None, "--addon", help="addon_name = VALUE"),
    columns: Optional[str] = typer.Option(
        None, "--columns", "-c", help="Comma-separated columns (default: all)"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Stop after N rows"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON lines instead of a table"),
):
    """List EKS add-ons. Hydrates with describe_addon only when a column needs it."""
    config = get_config()
    if profile:
        config = config.model_copy(update={"aws_profile": profile})
    setup_logging(config)

    try:
        q = Query(
            columns=_split_columns(columns),
            cluster_name=cluster,
            addon_name=addon,
            regions=regions or None,
            limit=limit,
        )
    except InventoryError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    table = Table(title="EKS Add-ons", box=box.ROUNDED)
    for name in q.columns:
        table.add_column(name)

    def sink(record):
        row = record.to_row(q.columns)
        if as_json:
            typer.echo(json.dumps(row, sort_keys=False))
        else:
            table.add_row(*(_format_cell(row[name]) for name in q.columns))

    try:
        pipeline = InventoryPipeline(config=config)
        summary = pipeline.run(q, sink)
    except (ClientError, BotoCoreError, InventoryError) as e:
        if not as_json and table.row_count:
            console.print(table)
        console.print(f"[red]Query failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if not as_json:
        console.print(table)
        console.print(
            f"[green]{summary.rows} row(s)[/green] from {len(summary.regions)} region(s), "
            f"{summary.describe_calls} detail call(s)"
        )


@app.command()
def columns():
    """Show every column and whether it needs the describe_addon call."""
    table = Table(title="Columns", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Hydrated")
    table.add_column("Description")

    for column in COLUMNS:
        table.add_row(
            column.name,
            column.type,
            "[yellow]yes[/yellow]" if column.hydrate else "[green]no[/green]",
            column.description,
        )
    console.print(table)


@app.command()
def regions(
    constraint: Optional[List[str]] = typer.Option(
        None, "--region", "-r", help="Intersect with these regions (repeatable)"
    ),
):
    """Show the regions an evaluation would run in."""
    config = get_config()
    matrix = RegionMatrix(config.regions)
    resolved = matrix.resolve(constraint or None)

    table = Table(title="Region Matrix", box=box.ROUNDED)
    table.add_column("Region", style="bold")
    table.add_column("Partition")
    for context in resolved:
        table.add_row(context.region, context.partition)
    console.print(table)

    if not resolved:
        console.print("[yellow]No regions selected[/yellow]")


def main():
    app()


if __name__ == "__main__":
    main()
