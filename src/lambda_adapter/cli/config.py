"""
CLI: ``lambda-adapter config`` — configuration inspection.
"""

from __future__ import annotations

import typer

from lambda_adapter.cli.utils import console

app = typer.Typer(no_args_is_help=True)

_ENV_NAMES = {
    "runtime_api": "AWS_LAMBDA_RUNTIME_API",
    "handler": "_HANDLER",
    "task_root": "LAMBDA_TASK_ROOT",
}


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the resolved configuration."""
    from lambda_adapter.core.settings import get_settings

    settings = get_settings()
    values = settings.model_dump(mode="json")

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(values.items()):
            if value is None:
                continue
            name = _ENV_NAMES.get(key, f"LAMBDA_ADAPTER_{key.upper()}")
            console.print(f"{name}={value}", markup=False)
        return

    if format != "table":
        console.print(f"[red]Unknown format: {format}[/red]")
        raise typer.Exit(code=2)

    from rich.table import Table

    table = Table(title="lambda-adapter settings")
    table.add_column("Setting")
    table.add_column("Environment")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, _ENV_NAMES.get(key, f"LAMBDA_ADAPTER_{key.upper()}"), "" if value is None else str(value))
    console.print(table)
