"""Single-writer ingestion of extracted records into the result store."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Optional, Tuple

from xtract.pipeline.events import EventLog
from xtract.pipeline.mailbox import Mailbox
from xtract.pipeline.runtime import Runtime
from xtract.pipeline.store import ResultStore
from xtract.scraper.models import Source

RecordTransform = Callable[[Any], Any]


class IngestionPipeline:
    """Funnels records from many concurrent producers into one store.

    ``submit`` is fire-and-forget.  The mailbox consumer applies the optional
    transform and then dedup-inserts into the store, one record at a time.
    The transform runs on the consumer, so it should be quick.
    """

    def __init__(
        self,
        runtime: Runtime,
        store: ResultStore,
        key: Callable[[Any], Hashable],
        events: Optional[EventLog] = None,
    ) -> None:
        self.store = store
        self._key = key
        self._events = events
        self._transform: Optional[RecordTransform] = None
        self._mailbox: Mailbox[Tuple[Source, Any]] = Mailbox(
            runtime, self._ingest, name="pipeline"
        )

    def with_transform(self, transform: Optional[RecordTransform]) -> None:
        self._transform = transform

    def submit(self, record: Any, source: Source) -> None:
        self._mailbox.post((source, record))

    def _ingest(self, message: Tuple[Source, Any]) -> None:
        source, record = message
        try:
            if self._transform is not None:
                record = self._transform(record)
            key = self._key(record)
        except Exception as exc:  # noqa: BLE001
            # The record is dropped; the failure is reported like any other.
            if self._events is not None:
                self._events.log(f"Pipeline failed for record from {source}: {exc}")
            return
        self.store.add(source, record, key)

    async def join(self) -> None:
        await self._mailbox.join()

    def flush(self, timeout: Optional[float] = None) -> None:
        self._mailbox.flush(timeout)
