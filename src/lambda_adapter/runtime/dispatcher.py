"""Invocation loop — polls the control plane and dispatches to the handler.

The LambdaEventDispatcher is the permanent control surface of a runtime
process.  Each cycle fetches the next invocation, decodes it, runs the
handler, and posts the outcome.  Nothing that goes wrong inside a cycle
stops the loop: failures become either a re-poll or an error report.

Usage (programmatic)::

    from lambda_adapter import LambdaEventDispatcher

    async def handler(event, headers):
        return {"result": event["n"] * 2}

    dispatcher = LambdaEventDispatcher(handler)
    dispatcher.start()  # blocks until stop() or a signal

Usage (CLI)::

    lambda-adapter run app.handler
"""

from __future__ import annotations

import asyncio
import signal
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any

from lambda_adapter.core.errors import AdapterError, HandlingError, TransportError
from lambda_adapter.core.logging import LogContext, get_logger
from lambda_adapter.core.settings import RuntimeSettings, get_settings
from lambda_adapter.runtime.backoff import BackoffStrategy, backoff_from_settings
from lambda_adapter.runtime.codec import decode_event, encode_payload
from lambda_adapter.runtime.failure import error_response
from lambda_adapter.runtime.handler import as_handler
from lambda_adapter.runtime.models import (
    ERROR_TYPE_HEADER,
    REQUEST_ID_HEADER,
    DispatcherState,
    DispatcherStats,
    Invocation,
    InvocationOutcome,
    InvocationSuccess,
    RuntimeEndpoints,
)
from lambda_adapter.runtime.transport import HttpTransport, RequestResponse, Transport

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LambdaEventDispatcher:
    """Polls ``/invocation/next`` and reports each outcome, forever.

    Architecture:
        1. ``GET /invocation/next``.  A transport failure re-polls.
        2. No request-id header means no work: re-poll.
        3. Decode the body as a JSON object.  A decode failure is posted
           to ``/invocation/{id}/error`` without calling the handler.
        4. Await the handler.  Its result goes to ``/response``, its
           exception to ``/error``.
        5. A failed post is logged and dropped; the invocation is
           abandoned, never retried.

    Concurrency:
        One cycle at a time.  Cycle N+1 is only started after cycle N has
        posted (or dropped) its outcome.  Sync handlers run on a private
        thread pool (``worker_threads``, default 3); network I/O runs on
        the event loop.  ``stop()`` may be called from any thread and is
        observed at the next cycle boundary.
    """

    def __init__(
        self,
        handler: Any,
        runtime_api: str | None = None,
        *,
        settings: RuntimeSettings | None = None,
        transport: Transport | None = None,
        backoff: BackoffStrategy | None = None,
        worker_threads: int | None = None,
        poll_timeout: float | None = None,
        post_timeout: float | None = None,
        dispatcher_id: str | None = None,
        cycle_error_delay: float = 1.0,
    ):
        """
        Args:
            handler: :class:`LambdaEventHandler` or callable ``(event, headers)``.
            runtime_api: ``host:port`` of the control plane. Defaults to
                ``AWS_LAMBDA_RUNTIME_API`` or ``localhost:8080``.
            settings: Settings to read defaults from. Falls back to
                :func:`get_settings`.
            transport: Optional :class:`Transport`. If ``None``, an
                :class:`HttpTransport` is created per run and closed after.
            backoff: Delay strategy between consecutive failed polls.
            worker_threads: Thread pool size for sync handlers.
            poll_timeout: Seconds bounding the "next" round trip.
            post_timeout: Seconds bounding a response / error post.
            dispatcher_id: Identifier used in logs and thread names.
            cycle_error_delay: Pause after a cycle fails unexpectedly.
        """
        self._settings = settings or get_settings()
        self._dispatcher_id = dispatcher_id or f"dispatcher-{uuid.uuid4().hex[:8]}"

        self.runtime_api = runtime_api or self._settings.runtime_api
        self.endpoints = RuntimeEndpoints(self.runtime_api)

        self._worker_threads = worker_threads or self._settings.worker_threads
        self._poll_timeout = poll_timeout or self._settings.poll_timeout
        self._post_timeout = post_timeout or self._settings.post_timeout
        self._backoff = backoff or backoff_from_settings(
            self._settings.poll_backoff_base, self._settings.poll_backoff_max
        )

        self._pool = ThreadPoolExecutor(
            max_workers=self._worker_threads,
            thread_name_prefix=self._dispatcher_id,
        )
        self._handler = as_handler(handler, self._pool)

        self._transport = transport
        self._owns_transport = transport is None

        # Both flags are only read at cycle boundaries
        self._active = threading.Event()
        self._stop_requested = threading.Event()

        self._cycle_error_delay = max(0.0, cycle_error_delay)
        self._stats = DispatcherStats()
        self._poll_failures = 0

    @property
    def dispatcher_id(self) -> str:
        return self._dispatcher_id

    @property
    def handler(self) -> Any:
        return self._handler

    @property
    def state(self) -> DispatcherState:
        if not self._active.is_set():
            return DispatcherState.IDLE
        if self._stop_requested.is_set():
            return DispatcherState.STOPPING
        return DispatcherState.RUNNING

    @property
    def stats(self) -> DispatcherStats:
        return self._stats

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def _mark_started(self) -> None:
        if self._active.is_set():
            raise RuntimeError(f"Dispatcher {self._dispatcher_id} is already running")
        self._stop_requested.clear()
        self._active.set()
        self._stats.started_at = _utcnow()

    async def run(self) -> None:
        """Run the loop on the current event loop until :meth:`stop`."""
        self._mark_started()
        await self._run_loop()

    def start(self) -> None:
        """Run the loop (blocking). Installs signal handlers for
        graceful shutdown on SIGINT / SIGTERM.
        """
        self._mark_started()

        try:
            signal.signal(signal.SIGINT, self._handle_signal)
            signal.signal(signal.SIGTERM, self._handle_signal)
        except (ValueError, OSError):
            pass  # not on the main thread

        asyncio.run(self._run_loop())

    def start_background(self) -> threading.Thread:
        """Start the loop in a daemon thread. Returns the thread."""
        self._mark_started()
        t = threading.Thread(
            target=asyncio.run,
            args=(self._run_loop(),),
            name=f"{self._dispatcher_id}-loop",
            daemon=True,
        )
        t.start()
        return t

    def stop(self) -> None:
        """Request shutdown.  The in-flight cycle, if any, runs to completion."""
        if self._active.is_set() and not self._stop_requested.is_set():
            logger.info("dispatcher_stopping", dispatcher=self._dispatcher_id)
        self._stop_requested.set()

    def close(self) -> None:
        """Release the worker pool.  The dispatcher cannot run afterwards."""
        self._pool.shutdown(wait=True, cancel_futures=False)

    def __enter__(self) -> LambdaEventDispatcher:
        return self

    def __exit__(self, *args) -> None:
        self.stop()
        self.close()

    def _handle_signal(self, signum, frame):
        logger.info("dispatcher_signal", dispatcher=self._dispatcher_id, signal=signum)
        self.stop()

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #

    async def _run_loop(self) -> None:
        logger.info(
            "dispatcher_starting",
            dispatcher=self._dispatcher_id,
            runtime_api=self.endpoints.base_url,
            worker_threads=self._worker_threads,
        )
        try:
            async with LogContext(dispatcher=self._dispatcher_id):
                while not self._stop_requested.is_set():
                    try:
                        await self.run_once()
                    except Exception:
                        logger.exception("cycle_failed", dispatcher=self._dispatcher_id)
                        await asyncio.sleep(self._cycle_error_delay)
                        continue
                    # yield between cycles
                    await asyncio.sleep(0)
        finally:
            await self._release_transport()
            self._active.clear()
            logger.info("dispatcher_stopped", dispatcher=self._dispatcher_id, **self._stats.to_dict())

    async def run_once(self) -> InvocationOutcome | None:
        """Run exactly one cycle.

        Returns the outcome that was posted, or ``None`` when the poll
        failed or returned no work.
        """
        res = await self._poll()
        if res is None:
            return None

        request_id = res.headers.get(REQUEST_ID_HEADER)
        if not request_id:
            self._stats.empty_polls += 1
            logger.debug("poll_empty", status_code=res.status_code)
            return None

        self._stats.invocations += 1
        self._stats.current_request_id = request_id
        try:
            async with LogContext(request_id=request_id):
                logger.debug("invocation_received", body_bytes=len(res.body))
                outcome = await self._invoke(request_id, res)
                return await self._report(request_id, outcome)
        finally:
            self._stats.current_request_id = None

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    async def _poll(self) -> RequestResponse | None:
        self._stats.polls += 1
        self._stats.last_poll_at = _utcnow()
        try:
            res = await self._get_transport().request(
                "GET", self.endpoints.next_invocation, timeout=self._poll_timeout
            )
        except TransportError as e:
            self._stats.poll_errors += 1
            self._poll_failures += 1
            logger.warning("poll_failed", error=str(e), consecutive_failures=self._poll_failures)
            delay = self._backoff.next_delay(self._poll_failures - 1)
            if delay > 0:
                await asyncio.sleep(delay)
            return None

        self._poll_failures = 0
        return res

    async def _invoke(self, request_id: str, res: RequestResponse) -> InvocationOutcome:
        try:
            event = decode_event(res.body)
        except AdapterError as e:
            e.with_context(request_id=request_id)
            logger.error("invocation_decode_failed", error=e.message)
            return error_response(e)

        invocation = Invocation(request_id=request_id, event=event, headers=res.headers)
        try:
            result = await self._handler.handle(invocation.event, invocation.headers)
        except (asyncio.CancelledError, KeyboardInterrupt):
            raise
        except BaseException as exc:
            # SystemExit from user code is a handler failure too
            error = HandlingError.from_exception(exc).with_context(request_id=request_id)
            logger.error("handler_failed", error=error.message)
            return error_response(error)

        return InvocationSuccess(result)

    async def _report(self, request_id: str, outcome: InvocationOutcome) -> InvocationOutcome:
        if isinstance(outcome, InvocationSuccess):
            try:
                body = encode_payload(outcome.payload)
            except AdapterError as e:
                e.with_context(request_id=request_id)
                logger.error("result_encode_failed", error=e.message)
                outcome = error_response(e)
            else:
                if await self._post(self.endpoints.invocation_response(request_id), body):
                    self._stats.succeeded += 1
                logger.info("invocation_succeeded")
                return outcome

        self._stats.failed += 1
        headers = {ERROR_TYPE_HEADER: outcome.error_type} if outcome.error_type else None
        await self._post(
            self.endpoints.invocation_error(request_id),
            encode_payload(outcome.to_dict()),
            headers=headers,
        )
        logger.info("invocation_failed", error_type=outcome.error_type)
        return outcome

    async def _post(self, url: str, body: bytes, headers: dict[str, str] | None = None) -> bool:
        """POST *body*; transport failures are logged and dropped."""
        try:
            res = await self._get_transport().request(
                "POST", url, body, timeout=self._post_timeout, headers=headers
            )
        except TransportError as e:
            self._stats.post_errors += 1
            logger.error("post_failed", url=url, error=str(e))
            return False

        if not res.is_success:
            logger.warning("post_rejected", url=url, status_code=res.status_code, body=res.text[:512])
        return True

    # ------------------------------------------------------------------ #
    # Transport ownership
    # ------------------------------------------------------------------ #

    def _get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpTransport(max_connections=self._worker_threads + 1)
            self._owns_transport = True
        return self._transport

    async def _release_transport(self) -> None:
        if self._owns_transport and self._transport is not None:
            transport, self._transport = self._transport, None
            await transport.aclose()


async def report_init_error(
    error: BaseException,
    runtime_api: str,
    *,
    transport: Transport | None = None,
    timeout: float = 60.0,
) -> bool:
    """Tell the control plane the runtime could not initialize.

    Posts the error payload to ``/runtime/init/error``.  Returns ``False``
    when the post itself failed; the failure is logged, never raised.
    """
    failure = error_response(error)
    headers = {ERROR_TYPE_HEADER: failure.error_type} if failure.error_type else None
    logger.error("init_failed", error=failure.error_localized_description, error_type=failure.error_type)

    owned = transport is None
    client: Transport = transport or HttpTransport(max_connections=1)
    url = RuntimeEndpoints(runtime_api).init_error
    try:
        res = await client.request("POST", url, encode_payload(failure.to_dict()), timeout=timeout, headers=headers)
    except TransportError as e:
        logger.error("post_failed", url=url, error=str(e))
        return False
    finally:
        if owned:
            await client.aclose()

    if not res.is_success:
        logger.warning("post_rejected", url=url, status_code=res.status_code, body=res.text[:512])
    return True
