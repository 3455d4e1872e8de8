"""Exception hierarchy for XTract.

Only construction-time mistakes (bad selectors, bad schemas, bad rules files)
surface to callers as exceptions.  Per-URL problems during a scrape are
recorded in the failed-request queue and the event log instead.
"""

from __future__ import annotations


class XTractError(Exception):
    """Base class for every error raised by this package."""


class SelectorError(XTractError, ValueError):
    """A CSS or XPath selector could not be compiled."""


class SchemaError(XTractError, ValueError):
    """Extractor names do not fit the target record type."""


class DocumentError(XTractError):
    """Markup could not be parsed into a document."""


class SourceError(XTractError):
    """A document source could not produce HTML for a URL."""


class RulesError(XTractError):
    """A rules file is missing, malformed or fails validation."""


class ExtractionError(XTractError):
    """Extracted values could not be turned into a record."""
