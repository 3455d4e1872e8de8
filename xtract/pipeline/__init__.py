"""Concurrency core — runtime loop, mailboxes, throttler, store."""

from xtract.pipeline.events import EventLog
from xtract.pipeline.ingestion import IngestionPipeline
from xtract.pipeline.mailbox import Mailbox
from xtract.pipeline.runtime import Runtime
from xtract.pipeline.store import ResultStore
from xtract.pipeline.throttler import CompletionSignal, run_bounded

__all__ = [
    "CompletionSignal",
    "EventLog",
    "IngestionPipeline",
    "Mailbox",
    "ResultStore",
    "Runtime",
    "run_bounded",
]
