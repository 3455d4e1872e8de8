"""Bounded-concurrency task runner with a single completion signal."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Iterable, Optional, Set

TaskFactory = Callable[[], Awaitable[Any]]
CompletionCallback = Callable[[], Any]

_background: Set["asyncio.Future[Any]"] = set()


class CompletionSignal:
    """Invokes a callback at most once, however many times it is fired."""

    def __init__(self, callback: CompletionCallback) -> None:
        self._callback = callback
        self.fired = False
        self.task: Optional["asyncio.Future[Any]"] = None

    def fire(self) -> bool:
        """Invoke the callback if this is the first call; return whether it ran.

        An awaitable returned by the callback is scheduled on the running loop
        and exposed as :attr:`task`.
        """
        if self.fired:
            return False
        self.fired = True
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                self.task = asyncio.ensure_future(result)
                # The loop only keeps weak references to tasks.
                _background.add(self.task)
                self.task.add_done_callback(_background.discard)
        except Exception as exc:  # noqa: BLE001
            print(f"[THROTTLE] ✗ completion callback failed: {exc!r}")
        return True


async def _invoke(factory: TaskFactory) -> None:
    await factory()


def _report(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        print(f"[THROTTLE] ✗ task failed: {exc!r}")


async def run_bounded(
    tasks: Iterable[TaskFactory],
    max_concurrency: int,
    on_complete: CompletionCallback,
    timeout: Optional[float] = None,
) -> bool:
    """Run *tasks* with at most *max_concurrency* of them in flight.

    Tasks are started lazily from the iterable.  As soon as one finishes the
    next is started, so the number in flight stays at the ceiling until the
    iterable runs dry.  A task that raises is reported and otherwise ignored;
    it never cancels or delays its siblings.

    *on_complete* fires exactly once: when the last task settles, or after
    *timeout* seconds, whichever comes first.  A timeout cancels nothing;
    in-flight tasks run to completion and pending ones are still started.

    Returns:
        ``True`` if every task settled before the timeout fired.

    Raises:
        ValueError: If *max_concurrency* is less than one.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

    loop = asyncio.get_running_loop()
    signal = CompletionSignal(on_complete)
    timer = loop.call_later(timeout, signal.fire) if timeout is not None else None

    factories = iter(tasks)
    exhausted = False
    in_flight: Set["asyncio.Task[None]"] = set()
    try:
        while True:
            while not exhausted and len(in_flight) < max_concurrency:
                try:
                    factory = next(factories)
                except StopIteration:
                    exhausted = True
                    break
                in_flight.add(loop.create_task(_invoke(factory)))
            if not in_flight:
                break
            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                _report(task)
    finally:
        if timer is not None:
            timer.cancel()
    return signal.fire()
