"""The deduplicated record store and the failed-request queue."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Hashable, List, Tuple

from xtract.scraper.models import Source


class ResultStore:
    """Records keyed by structural identity, plus URLs that could not be scraped.

    Records are only ever added by the ingestion pipeline's consumer.  The
    failed-request queue is append-only, so concurrent producers can push to
    it directly.
    """

    def __init__(self) -> None:
        self._records: Dict[Hashable, Tuple[Source, Any]] = {}
        self._failed: Deque[str] = deque()

    def add(self, source: Source, record: Any, key: Hashable) -> bool:
        """Store *record* unless an equal one is already present."""
        if key in self._records:
            return False
        self._records[key] = (source, record)
        return True

    def items(self) -> List[Tuple[Source, Any]]:
        """Snapshot of ``(source, record)`` pairs in first-seen order."""
        return list(self._records.values())

    def records(self) -> List[Any]:
        return [record for _, record in self.items()]

    def fail(self, url: str) -> None:
        self._failed.append(url)

    def failed(self) -> List[str]:
        return list(self._failed)

    def __len__(self) -> int:
        return len(self._records)
