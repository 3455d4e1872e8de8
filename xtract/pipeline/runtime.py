"""Background event loop shared by a scraper's tasks and mailboxes.

Each scraper owns one :class:`Runtime`: a daemon thread running a private
asyncio loop.  Fetch tasks, throttled batches and mailbox consumers all live
on that loop, so synchronous callers can fire off work and carry on while the
loop keeps draining in the background.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Coroutine, Optional, TypeVar

T = TypeVar("T")


class Runtime:
    """A private asyncio loop on its own daemon thread."""

    def __init__(self, name: str = "xtract-runtime") -> None:
        self.loop = asyncio.new_event_loop()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self.loop.run_until_complete(self.loop.shutdown_asyncgens())
            self.loop.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def in_loop_thread(self) -> bool:
        return threading.get_ident() == self._thread.ident

    def submit(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        """Schedule *coro* on the loop from any thread."""
        if self._closed:
            coro.close()
            raise RuntimeError("Runtime is closed")
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Run *coro* on the loop and block until it finishes.

        Raises:
            RuntimeError: When called from the loop thread itself, where
                blocking would deadlock.
        """
        if self.in_loop_thread():
            coro.close()
            raise RuntimeError("Runtime.run() cannot block the loop thread")
        return self.submit(coro).result(timeout)

    def call(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run *callback* on the loop thread; immediately if already there."""
        if self.in_loop_thread():
            callback(*args)
        else:
            self.loop.call_soon_threadsafe(callback, *args)

    async def _shutdown(self) -> None:
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.loop.stop()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Cancel outstanding tasks and stop the loop."""
        if self._closed:
            return
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), self.loop)
        self._closed = True
        if not self.in_loop_thread():
            try:
                future.result(timeout)
            except (concurrent.futures.TimeoutError, concurrent.futures.CancelledError):
                self.loop.call_soon_threadsafe(self.loop.stop)
            self._thread.join(timeout)
