# src/firecast/engine/context.py
"""Background execution contexts.

An ExecutionContext is an isolated worker: a dedicated thread consuming a
bounded request queue and dispatching each request to a handler table.
The orchestrator and the context share no mutable state. Requests go in
through a queue.Queue, responses come back through an asyncio.Queue owned
by the orchestrator's event loop, and payloads are deep-copied on the way
out.

Failure handling:
    - A handler that raises posts an ERROR message; the context keeps running.
    - An unknown request type posts ERROR("Unknown message type").
    - Anything failing outside a handler (a handler returning something
      that is not a WorkerMessage, a dispatch bug) is fatal: the context
      stops, posts an ERROR so a pending exchange ends, and notifies its
      error observer on the event loop thread.

Thread Safety:
    The request queue is the only object both threads touch. All
    asyncio objects are touched from the loop thread only; the context
    thread reaches them through loop.call_soon_threadsafe().
"""

from __future__ import annotations

import asyncio
import copy
import queue
import threading
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

import structlog

from firecast.contracts.enums import MessageType
from firecast.contracts.errors import ContextUnavailableError
from firecast.contracts.protocol import WorkerMessage, WorkerRequest, error_message, is_terminal

logger = structlog.get_logger(__name__)


class ContextStopped(Exception):
    """Raised inside a handler when its context is being terminated."""


class WorkerPort:
    """The handler's side of the channel.

    Handlers post progress messages through the port and use its sleep()
    for simulated work so that termination interrupts them promptly.
    """

    def __init__(self, post: Callable[[WorkerMessage], None], stop_event: threading.Event) -> None:
        self._post = post
        self._stop_event = stop_event

    def post(self, message: WorkerMessage) -> None:
        self._post(message)

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    def sleep(self, seconds: float) -> None:
        """Wait up to ``seconds``.

        Raises:
            ContextStopped: If the context is terminated while waiting.
        """
        if self._stop_event.wait(seconds):
            raise ContextStopped()


Handler = Callable[[Mapping[str, Any], WorkerPort], WorkerMessage]
"""Handles one request payload and returns the terminal message."""

ErrorObserver = Callable[["ExecutionContext", BaseException], None]


class ExecutionContext:
    """Thread-backed worker speaking the background request/response protocol.

    Must be constructed and driven from a running event loop. Only one
    exchange at a time is in flight per context.

    Example:
        context = ExecutionContext("data-worker", data_handlers())
        async for message in context.exchange(load_data_request(1000, 10000), timeout=30):
            ...
        context.terminate()
        await context.wait_stopped()
    """

    def __init__(
        self,
        name: str,
        handlers: Mapping[MessageType, Handler],
        *,
        queue_size: int = 16,
        shutdown_timeout: float = 1.0,
        on_error: ErrorObserver | None = None,
    ) -> None:
        self.name = name
        self._handlers = dict(handlers)
        self._shutdown_timeout = shutdown_timeout
        self._on_error = on_error
        self._loop = asyncio.get_running_loop()

        self._requests: queue.Queue[WorkerRequest | None] = queue.Queue(maxsize=queue_size)
        self._messages: asyncio.Queue[WorkerMessage] = asyncio.Queue()
        self._exchange_lock = asyncio.Lock()
        self._stop_event = threading.Event()
        self._port = WorkerPort(self._post_from_thread, self._stop_event)

        self._terminated = False
        self._crash: BaseException | None = None

        self._thread = threading.Thread(target=self._run, name=f"firecast-{name}", daemon=True)
        self._thread.start()

    @property
    def running(self) -> bool:
        return not self._terminated and self._crash is None and self._thread.is_alive()

    @property
    def crash(self) -> BaseException | None:
        """The fatal error that stopped this context, if any."""
        return self._crash

    # ------------------------------------------------------------------
    # Loop-thread API
    # ------------------------------------------------------------------

    def post_message(self, request: WorkerRequest) -> None:
        """Queue a request for the context thread.

        Raises:
            ContextUnavailableError: If the context is not running or its
                request queue is full.
        """
        if not self.running:
            raise ContextUnavailableError(self.name)
        try:
            self._requests.put_nowait(request)
        except queue.Full:
            raise ContextUnavailableError(self.name) from None

    async def exchange(self, request: WorkerRequest, *, timeout: float) -> AsyncIterator[WorkerMessage]:
        """Post ``request`` and yield responses up to and including the terminal one.

        ``timeout`` bounds the whole request, progress messages included. If
        the terminal message has not arrived by then, a synthesized ERROR
        message is yielded instead and the exchange ends.

        Raises:
            ContextUnavailableError: If the request cannot be posted.
        """
        async with self._exchange_lock:
            self._drain_stale()
            self.post_message(request)
            deadline = self._loop.time() + timeout
            while True:
                try:
                    message = await asyncio.wait_for(self._messages.get(), max(0.0, deadline - self._loop.time()))
                except TimeoutError:
                    logger.warning(
                        "Background request timed out",
                        context=self.name,
                        request_type=request.type.value,
                        timeout_seconds=timeout,
                    )
                    yield error_message(f"Timed out after {timeout:g}s waiting for {request.type.value} response")
                    return
                yield message
                if is_terminal(request.type, message):
                    return

    def terminate(self) -> None:
        """Signal the context to stop. Idempotent, never raises, never blocks.

        A pending exchange receives an ERROR message and ends. Use
        wait_stopped() to wait for the thread itself.
        """
        if self._terminated:
            return
        self._terminated = True
        self._stop_event.set()
        try:
            self._requests.put_nowait(None)
        except queue.Full:
            pass  # Loop exits on the stop flag once the current request finishes
        self._messages.put_nowait(error_message(f"Execution context '{self.name}' terminated"))
        logger.debug("Execution context terminated", context=self.name)

    async def wait_stopped(self) -> bool:
        """Wait up to the shutdown timeout for the thread to exit.

        The join runs in a worker thread so the event loop keeps serving
        other tasks meanwhile.

        Returns:
            True if the thread has exited
        """
        if self._thread.is_alive():
            await asyncio.to_thread(self._thread.join, self._shutdown_timeout)
        if self._thread.is_alive():
            logger.warning("Execution context did not stop in time", context=self.name)
            return False
        return True

    def _drain_stale(self) -> None:
        # Late messages from a timed-out exchange must not leak into this one
        while not self._messages.empty():
            self._messages.get_nowait()

    def _handle_crash(self, error: BaseException) -> None:
        self._messages.put_nowait(error_message(f"Execution context '{self.name}' crashed: {error}"))
        if self._on_error is not None:
            try:
                self._on_error(self, error)
            except Exception as e:
                logger.warning("Context error observer raised", context=self.name, error=str(e))

    # ------------------------------------------------------------------
    # Context-thread side
    # ------------------------------------------------------------------

    def _post_from_thread(self, message: WorkerMessage) -> None:
        if not isinstance(message, WorkerMessage):
            raise TypeError(f"Handlers must post WorkerMessage, got {type(message).__name__}")
        detached = WorkerMessage(type=message.type, payload=copy.deepcopy(dict(message.payload)), error=message.error)
        try:
            self._loop.call_soon_threadsafe(self._messages.put_nowait, detached)
        except RuntimeError:
            # Event loop already closed; nobody is listening any more
            self._stop_event.set()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            request = self._requests.get()
            if request is None or self._stop_event.is_set():
                break
            try:
                self._dispatch(request)
            except ContextStopped:
                break
            except Exception as e:
                logger.error("Execution context crashed", context=self.name, error=str(e))
                self._crash = e
                self._stop_event.set()
                try:
                    self._loop.call_soon_threadsafe(self._handle_crash, e)
                except RuntimeError:
                    pass
                break

    def _dispatch(self, request: WorkerRequest) -> None:
        handler = self._handlers.get(request.type)
        if handler is None:
            self._post_from_thread(error_message("Unknown message type"))
            return
        try:
            result = handler(copy.deepcopy(dict(request.payload)), self._port)
        except ContextStopped:
            raise
        except Exception as e:
            logger.debug("Handler failed", context=self.name, request_type=request.type.value, error=str(e))
            self._post_from_thread(error_message(str(e) or type(e).__name__))
            return
        # Outside the handler guard: a malformed result is a fatal context error
        self._post_from_thread(result)
