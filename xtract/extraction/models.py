"""Declarative field extraction rules."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Iterable, List, Optional, Tuple, Union

from xtract.errors import SelectorError
from xtract.extraction.document import Document, Node
from xtract.extraction.selectors import Selector
from xtract.extraction.text import clean_html, normalize_text

ATTRIBUTE_SEPARATOR = "; "

FieldValue = Union[str, Tuple[str, ...]]


class Anchor(IntEnum):
    """How many ancestor levels to climb from a matched node before reading it."""

    NONE = 0
    PARENT = 1
    GRAND_PARENT = 2
    THIRD_PARENT = 3


@dataclass(frozen=True)
class FieldExtractor:
    """One named field: where to find it and how to turn nodes into a value.

    ``many=False`` reads the first matched node and yields a string (or
    ``None``); ``many=True`` reads every matched node and yields a tuple of
    strings.  With ``attributes`` set, the listed attribute values are read
    and joined with :data:`ATTRIBUTE_SEPARATOR` instead of the node text.
    """

    name: str
    selector: Selector
    anchor: Anchor = Anchor.NONE
    many: bool = False
    attributes: Tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise SelectorError("Field extractor name must not be empty")
        # Keep the caller's order, drop repeats.
        object.__setattr__(self, "attributes", tuple(dict.fromkeys(self.attributes)))
        object.__setattr__(self, "anchor", Anchor(self.anchor))

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def css(cls, name: str, text: str) -> "FieldExtractor":
        return cls(name=name, selector=Selector.css(text))

    @classmethod
    def xpath(cls, name: str, text: str) -> "FieldExtractor":
        return cls(name=name, selector=Selector.xpath(text))

    def with_many(self, anchor: Anchor = Anchor.NONE) -> "FieldExtractor":
        return replace(self, many=True, anchor=anchor)

    def with_anchor(self, anchor: Anchor) -> "FieldExtractor":
        return replace(self, anchor=anchor)

    def with_attributes(self, attributes: Iterable[str]) -> "FieldExtractor":
        return replace(self, attributes=tuple(attributes))

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def read(self, node: Node) -> Optional[str]:
        """Value of a single matched node after anchoring and cleaning."""
        target = node.ancestor(int(self.anchor))
        if target is None:
            return None
        if not self.attributes:
            return clean_html(target.inner_html()) or None
        values = []
        for attribute in self.attributes:
            value = normalize_text(target.attribute(attribute))
            if value is not None:
                values.append(value)
        if not values:
            return None
        return ATTRIBUTE_SEPARATOR.join(values)

    def read_all(self, document: Document) -> List[Optional[str]]:
        """One entry per matched node; ``None`` marks a node with no value."""
        return [self.read(node) for node in document.select(self.selector)]

    def extract(self, document: Document) -> Optional[FieldValue]:
        if self.many:
            return tuple(value for value in self.read_all(document) if value is not None)
        node = document.select_one(self.selector)
        if node is None:
            return None
        return self.read(node)
