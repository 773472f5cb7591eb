"""
Root Typer application for the lambda-adapter CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from lambda_adapter import __version__

app = Typer(
    name="lambda-adapter",
    help="lambda-adapter — custom runtime bootstrap for a serverless control plane.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"lambda-adapter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """lambda-adapter CLI — run the invocation loop, inspect settings."""


# ── Sub-command registration ─────────────────────────────────────────────

from lambda_adapter.cli.config import app as config_app  # noqa: E402
from lambda_adapter.cli.run import run  # noqa: E402

app.command("run")(run)
app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
