"""Callback-style delivery on top of the coroutine queries."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, TypeVar, Union

from .outcome import ErrorKind, Outcome

T = TypeVar("T")

Handler = Callable[[Outcome[T]], None]
QueryHandle = Union["asyncio.Task[Outcome[T]]", threading.Thread]

_LOG = logging.getLogger("rpistats.telemetry")

# Strong references to in-flight tasks; the loop only keeps weak ones.
_PENDING: set[asyncio.Task] = set()


def _invoke(handler: Handler, outcome: Outcome[T]) -> None:
    try:
        handler(outcome)
    except Exception:
        _LOG.exception("telemetry handler raised", extra={"event": "handler_error"})


def _crashed(exc: BaseException) -> Outcome[T]:
    _LOG.error(
        "telemetry query raised: %s",
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"event": "query_error"},
    )
    return Outcome.fail(f"query raised {type(exc).__name__}: {exc}", ErrorKind.INTERNAL)


def _finish(task: "asyncio.Task[Outcome[T]]", handler: Handler) -> None:
    _PENDING.discard(task)
    if task.cancelled():
        outcome: Outcome[T] = Outcome.fail("query cancelled", ErrorKind.CANCELLED)
    elif task.exception() is not None:
        outcome = _crashed(task.exception())  # type: ignore[arg-type]
    else:
        outcome = task.result()
    _invoke(handler, outcome)


def _run_in_thread(query: Callable[[], Awaitable[Outcome[T]]], handler: Handler) -> None:
    try:
        outcome = asyncio.run(query())  # type: ignore[arg-type]
    except Exception as exc:
        outcome = _crashed(exc)
    _invoke(handler, outcome)


def deliver(query: Callable[[], Awaitable[Outcome[T]]], handler: Handler) -> QueryHandle:
    """Start ``query`` without blocking and hand its Outcome to ``handler`` once.

    Inside a running event loop the query becomes a task on that loop and the
    task is returned; cancelling it delivers a ``CANCELLED`` outcome. Outside a
    loop the query runs on a daemon thread with its own loop and the thread is
    returned.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is None:
        thread = threading.Thread(
            target=_run_in_thread,
            args=(query, handler),
            name="rpistats-query",
            daemon=True,
        )
        thread.start()
        return thread

    task = loop.create_task(query())  # type: ignore[arg-type]
    _PENDING.add(task)
    task.add_done_callback(lambda t: _finish(t, handler))
    return task
