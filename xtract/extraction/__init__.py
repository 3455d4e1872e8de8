"""Extraction package — declarative rules turned into typed records."""

from xtract.extraction.builder import RecordBuilder, make_record_type
from xtract.extraction.document import Document, Node
from xtract.extraction.models import ATTRIBUTE_SEPARATOR, Anchor, FieldExtractor
from xtract.extraction.rules import load_rules, parse_rules
from xtract.extraction.selectors import Selector, SelectorKind
from xtract.extraction.text import clean_html, normalize_text

__all__ = [
    "ATTRIBUTE_SEPARATOR",
    "Anchor",
    "Document",
    "FieldExtractor",
    "Node",
    "RecordBuilder",
    "Selector",
    "SelectorKind",
    "clean_html",
    "load_rules",
    "make_record_type",
    "normalize_text",
    "parse_rules",
]
