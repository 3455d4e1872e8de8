"""Append-only, timestamped event log fed through its own mailbox."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

from xtract.pipeline.mailbox import Mailbox
from xtract.pipeline.runtime import Runtime
from xtract.scraper.models import LogEntry


class EventLog:
    """Human-readable scrape events, in the order the consumer received them.

    ``enabled`` only controls whether entries are echoed to the console;
    every entry is retained either way.  The log has its own mailbox so that
    logging never waits on record ingestion, and vice versa.
    """

    def __init__(
        self,
        runtime: Runtime,
        enabled: bool = True,
        sink: Callable[[str], None] = print,
    ) -> None:
        self.enabled = enabled
        self._sink = sink
        self._entries: List[LogEntry] = []
        self._mailbox: Mailbox[str] = Mailbox(runtime, self._append, name="log")

    def _append(self, message: str) -> None:
        entry = LogEntry(datetime.now(), message)
        self._entries.append(entry)
        if self.enabled:
            self._sink(str(entry))

    def log(self, message: str) -> None:
        self._mailbox.post(message)

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries()]

    async def join(self) -> None:
        await self._mailbox.join()

    def flush(self, timeout: Optional[float] = None) -> None:
        self._mailbox.flush(timeout)
