"""
CLI: ``lambda-adapter run`` — load the handler and start the invocation loop.
"""

from __future__ import annotations

import asyncio

import typer

from lambda_adapter.cli.utils import console, err_console


def run(
    handler: str | None = typer.Argument(None, help="Handler reference (module.attr or module:attr). Defaults to $_HANDLER."),
    runtime_api: str | None = typer.Option(None, "--runtime-api", "-r", help="Control plane host:port"),  # noqa: UP007
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="debug, info, warn or error"),  # noqa: UP007
    json_logs: bool | None = typer.Option(None, "--json-logs/--console-logs", help="Log output format"),  # noqa: UP007
    threads: int | None = typer.Option(None, "--threads", "-t", min=1, help="Worker pool size"),  # noqa: UP007
) -> None:
    """Poll the control plane and dispatch invocations to HANDLER until stopped.

    If the handler cannot be loaded, the failure is reported to
    ``/runtime/init/error`` and the command exits with status 1.

    Example::

        lambda-adapter run app.handler
        AWS_LAMBDA_RUNTIME_API=127.0.0.1:9001 lambda-adapter run pkg.mod:handler -l debug
    """
    from lambda_adapter.core.errors import HandlerNotFoundError
    from lambda_adapter.core.logging import configure_logging
    from lambda_adapter.core.settings import get_settings
    from lambda_adapter.runtime.dispatcher import LambdaEventDispatcher, report_init_error
    from lambda_adapter.runtime.handler import load_handler

    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=json_logs if json_logs is not None else settings.log_json,
    )
    api = runtime_api or settings.runtime_api

    reference = handler or settings.handler
    if not reference:
        err_console.print("[red]No handler given. Pass HANDLER or set _HANDLER.[/red]")
        raise typer.Exit(code=2)

    try:
        target = load_handler(reference, settings.task_root)
    except HandlerNotFoundError as exc:
        err_console.print(f"[red]Handler error: {exc}[/red]")
        asyncio.run(report_init_error(exc, api, timeout=settings.post_timeout))
        raise typer.Exit(code=1)

    dispatcher = LambdaEventDispatcher(target, api, settings=settings, worker_threads=threads)
    console.print(
        f"[bold green]Starting lambda-adapter[/bold green] "
        f"(handler={reference}, runtime_api={api}, threads={threads or settings.worker_threads})"
    )

    try:
        dispatcher.start()
    except KeyboardInterrupt:
        console.print("\n[yellow]Dispatcher stopped by user[/yellow]")
    finally:
        dispatcher.close()
