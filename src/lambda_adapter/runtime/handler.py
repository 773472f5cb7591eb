"""Handling capability — the contract between the loop and user code.

A handler receives the decoded event object and the invocation headers and
returns a JSON-encodable result, or raises.  Two shapes are accepted:

- an object with ``async def handle(event, headers)`` (:class:`LambdaEventHandler`)
- a plain callable ``func(event, headers)``; coroutine functions are awaited,
  ordinary functions run on the dispatcher's worker pool

Usage::

    from lambda_adapter import LambdaEventDispatcher

    async def handler(event, headers):
        return {"result": event["n"] * 2}

    LambdaEventDispatcher(handler).start()

Handler references (``_HANDLER``) are resolved by :func:`load_handler`,
either ``package.module:attr`` or the Lambda-style ``module.attr``.
"""

from __future__ import annotations

import asyncio
import functools
import importlib
import inspect
import sys
from collections.abc import Callable, Mapping
from concurrent.futures import Executor
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from lambda_adapter.core.errors import HandlerNotFoundError


@runtime_checkable
class LambdaEventHandler(Protocol):
    """Anything that can handle one decoded event."""

    async def handle(self, event: dict[str, Any], headers: Mapping[str, str]) -> Any: ...


class FunctionHandler:
    """Adapts a callable ``(event, headers)`` to :class:`LambdaEventHandler`."""

    def __init__(self, func: Callable[..., Any], executor: Executor | None = None):
        if not callable(func):
            raise TypeError(f"Handler must be callable, got {type(func).__name__}")
        self.func = func
        self.executor = executor
        self.name = getattr(func, "__qualname__", repr(func))

    async def handle(self, event: dict[str, Any], headers: Mapping[str, str]) -> Any:
        if inspect.iscoroutinefunction(self.func):
            return await self.func(event, headers)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(self.executor, functools.partial(self.func, event, headers))
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionHandler({self.name})"


def as_handler(obj: Any, executor: Executor | None = None) -> LambdaEventHandler:
    """Return *obj* as a handler, wrapping bare callables."""
    if isinstance(obj, FunctionHandler):
        if executor is not None and obj.executor is None:
            obj.executor = executor
        return obj
    handle = getattr(obj, "handle", None)
    if handle is not None and callable(handle) and not inspect.isfunction(obj):
        if inspect.iscoroutinefunction(handle):
            return obj
        return FunctionHandler(handle, executor)
    if callable(obj):
        return FunctionHandler(obj, executor)
    raise TypeError(f"Cannot use {type(obj).__name__} as a handler")


def _split_reference(reference: str) -> tuple[str, str]:
    if ":" in reference:
        module_name, _, attr = reference.partition(":")
    else:
        module_name, _, attr = reference.rpartition(".")
    return module_name.strip(), attr.strip()


def load_handler(reference: str, task_root: str | Path | None = None) -> Any:
    """Import and return the handler named by *reference*.

    Raises:
        HandlerNotFoundError: module import raised, the attribute is missing,
            or the handler class could not be instantiated
    """
    module_name, attr = _split_reference(reference or "")
    if not module_name or not attr:
        raise HandlerNotFoundError(reference, f"Malformed handler reference {reference!r}; "
                                              "expected 'module.attr' or 'module:attr'")

    if task_root is not None:
        root = str(task_root)
        if root not in sys.path:
            sys.path.insert(0, root)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise HandlerNotFoundError(reference, f"Cannot import module {module_name!r}: {e}", cause=e) from e
    except Exception as e:
        raise HandlerNotFoundError(
            reference, f"Importing module {module_name!r} failed: {type(e).__name__}: {e}", cause=e
        ) from e

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise HandlerNotFoundError(
                reference, f"Module {module_name!r} has no attribute {attr!r}", cause=e
            ) from e

    if inspect.isclass(target):
        try:
            target = target()
        except Exception as e:
            raise HandlerNotFoundError(
                reference, f"Cannot instantiate {attr!r}: {type(e).__name__}: {e}", cause=e
            ) from e
    return target


__all__ = ["LambdaEventHandler", "FunctionHandler", "as_handler", "load_handler"]
