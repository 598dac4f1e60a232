"""Child process runner that settles on the first signal a command emits."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, Sequence, TypeVar

import psutil

from .outcome import ErrorKind, Outcome

T = TypeVar("T")

_LOG = logging.getLogger("rpistats.telemetry")
_CHUNK_SIZE = 64 * 1024


class CompletionLatch(Generic[T]):
    """Single-assignment result cell. Only the first offered outcome is kept."""

    def __init__(self) -> None:
        self._future: asyncio.Future[Outcome[T]] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def offer(self, outcome: Outcome[T]) -> bool:
        if self._future.done():
            return False
        self._future.set_result(outcome)
        return True

    def result(self) -> Outcome[T]:
        return self._future.result()

    async def wait(self) -> Outcome[T]:
        return await asyncio.shield(self._future)


def kill_process_tree(pid: int) -> None:
    try:
        parent = psutil.Process(pid)
        victims = parent.children(recursive=True) + [parent]
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return

    for proc in victims:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    _LOG.debug("killed process tree pid=%s size=%s", pid, len(victims), extra={"event": "process_killed"})


async def _pump(
    stream: asyncio.StreamReader,
    latch: CompletionLatch[str],
    on_first: Callable[[str], Outcome[str]],
) -> None:
    # Offer the first chunk, then keep draining so the child never blocks on a full pipe.
    first = True
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        if first:
            latch.offer(on_first(chunk.decode("utf-8", errors="replace")))
            first = False


async def _watch_exit(
    proc: asyncio.subprocess.Process,
    pumps: Sequence[asyncio.Task],
    latch: CompletionLatch[str],
    name: str,
) -> None:
    await asyncio.gather(*pumps)
    await proc.wait()
    latch.offer(Outcome.fail(f"no output from {name}", ErrorKind.PARSE))


async def _reap(
    proc: asyncio.subprocess.Process,
    tasks: Sequence[asyncio.Task],
    grace_s: float,
    kill_now: bool,
) -> None:
    if proc.returncode is None and not kill_now:
        try:
            await asyncio.wait_for(proc.wait(), grace_s)
        except asyncio.TimeoutError:
            pass
    if proc.returncode is None:
        kill_process_tree(proc.pid)
        await proc.wait()

    _done, pending = await asyncio.wait(tasks, timeout=max(grace_s, 0.1))
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def run_command(
    argv: Sequence[str],
    timeout: float | None = None,
    grace_s: float = 1.0,
    wait_for_exit: bool = False,
) -> Outcome[str]:
    """Run ``argv`` and return the text of its first stdout chunk.

    The outcome is settled by whichever happens first: a stdout chunk, a
    stderr chunk, the process closing its streams without output, or the
    deadline. With ``wait_for_exit`` the call additionally waits for the
    process to exit before returning. The child is always reaped before
    returning; one that outlives ``grace_s`` is killed along with its
    children.
    """
    if not argv:
        return Outcome.fail("failed to launch: empty command", ErrorKind.LAUNCH)
    name = argv[0]
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (OSError, ValueError) as exc:
        return Outcome.fail(f"failed to launch {name}: {exc}", ErrorKind.LAUNCH)

    latch: CompletionLatch[str] = CompletionLatch()
    pumps = [
        asyncio.ensure_future(_pump(proc.stdout, latch, Outcome.ok)),
        asyncio.ensure_future(
            _pump(
                proc.stderr,
                latch,
                lambda text: Outcome.fail(f"{name} reported an error: {text.strip()}", ErrorKind.STDERR),
            )
        ),
    ]
    exit_task = asyncio.ensure_future(_watch_exit(proc, pumps, latch, name))
    tasks = [*pumps, exit_task]

    timed_out = False
    try:
        awaited = asyncio.shield(exit_task) if wait_for_exit else latch.wait()
        await asyncio.wait_for(awaited, timeout)
    except asyncio.TimeoutError:
        timed_out = latch.offer(Outcome.fail(f"{name} timed out after {timeout}s", ErrorKind.TIMEOUT))
    except asyncio.CancelledError:
        if proc.returncode is None:
            kill_process_tree(proc.pid)
        for task in tasks:
            task.cancel()
        await proc.wait()
        raise

    await _reap(proc, tasks, grace_s, kill_now=timed_out)
    return latch.result()
