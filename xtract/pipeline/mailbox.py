"""Multi-producer, single-consumer mailboxes.

A mailbox is the only way to mutate the state it guards: producers ``post``
messages from any thread or task, and exactly one drain task applies the
handler to them one at a time, in arrival order.  No locks are needed around
the guarded state because nothing else ever touches it.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, Optional, TypeVar

from xtract.pipeline.runtime import Runtime

T = TypeVar("T")


class Mailbox(Generic[T]):
    def __init__(
        self,
        runtime: Runtime,
        handler: Callable[[T], None],
        name: str = "mailbox",
    ) -> None:
        self.name = name
        self._runtime = runtime
        self._handler = handler
        self._queue: "asyncio.Queue[T]" = asyncio.Queue()
        self._consumer = runtime.submit(self._drain())

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                self._handler(message)
            except Exception as exc:  # noqa: BLE001
                print(f"[{self.name.upper()}] ✗ handler failed: {exc!r}")
            finally:
                self._queue.task_done()

    def post(self, message: T) -> None:
        """Enqueue *message*; never blocks."""
        self._runtime.call(self._queue.put_nowait, message)

    def pending(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        """Wait until every message posted so far has been handled."""
        await self._queue.join()

    def flush(self, timeout: Optional[float] = None) -> None:
        """Blocking :meth:`join` for callers outside the loop thread.

        On the loop thread this is a no-op: the consumer cannot make progress
        while its own thread is blocked.
        """
        if self._runtime.in_loop_thread() or self._runtime.closed:
            return
        self._runtime.run(self.join(), timeout)
