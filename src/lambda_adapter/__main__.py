"""``python -m lambda_adapter`` — same as the ``lambda-adapter`` command."""

from lambda_adapter.cli.app import app

app(prog_name="lambda-adapter")
