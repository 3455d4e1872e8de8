"""Parsed HTML documents and the nodes selected from them.

CSS selectors run against a BeautifulSoup tree; XPath expressions run against
an lxml tree.  Both trees are built lazily from the same markup with the same
lxml HTML parser, so fragments get the same <html><body> wrapper and an anchor
climbs the same ancestors whichever selector kind matched the node.
"""

from __future__ import annotations

import html
from abc import ABC, abstractmethod
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from lxml import etree
from lxml import html as lxml_html

from xtract.errors import DocumentError
from xtract.extraction.selectors import Selector, SelectorKind


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

class Node(ABC):
    """One element matched by a selector."""

    @abstractmethod
    def inner_html(self) -> str:
        """Markup between the element's opening and closing tags."""

    @abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """Value of attribute *name*, or ``None`` when it is absent."""

    @abstractmethod
    def parent(self) -> Optional["Node"]:
        """The enclosing element, or ``None`` at the document root."""

    def ancestor(self, levels: int) -> Optional["Node"]:
        """Walk *levels* parents up; ``None`` if the tree is not that deep."""
        node: Optional[Node] = self
        for _ in range(levels):
            if node is None:
                return None
            node = node.parent()
        return node


class SoupNode(Node):
    def __init__(self, tag: Tag) -> None:
        self.tag = tag

    def inner_html(self) -> str:
        return self.tag.decode_contents()

    def attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel, ...) come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def parent(self) -> Optional[Node]:
        parent = self.tag.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return SoupNode(parent)


class LxmlNode(Node):
    def __init__(self, element: etree._Element) -> None:
        self.element = element

    def inner_html(self) -> str:
        parts = [html.escape(self.element.text or "", quote=False)]
        parts.extend(
            lxml_html.tostring(child, encoding="unicode") for child in self.element
        )
        return "".join(parts)

    def attribute(self, name: str) -> Optional[str]:
        return self.element.get(name)

    def parent(self) -> Optional[Node]:
        parent = self.element.getparent()
        if parent is None:
            return None
        return LxmlNode(parent)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class Document:
    """Raw markup plus lazily-built parse trees."""

    def __init__(self, markup: str) -> None:
        self.markup = markup
        self._soup: Optional[BeautifulSoup] = None
        self._tree: Optional[etree._Element] = None

    @classmethod
    def parse(cls, markup: str) -> "Document":
        """Wrap *markup*, rejecting documents with no content at all.

        Raises:
            DocumentError: If *markup* is empty or whitespace only.
        """
        if not markup or not markup.strip():
            raise DocumentError("Document is empty")
        return cls(markup)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.markup, "lxml")
        return self._soup

    @property
    def tree(self) -> etree._Element:
        if self._tree is None:
            try:
                self._tree = lxml_html.document_fromstring(self.markup)
            except ValueError:
                # lxml refuses str input that carries an XML encoding declaration.
                self._tree = lxml_html.document_fromstring(self.markup.encode("utf-8"))
            except etree.ParserError as exc:
                raise DocumentError(str(exc)) from exc
        return self._tree

    def select(self, selector: Selector) -> List[Node]:
        """Return every node matched by *selector*, in document order."""
        if selector.kind is SelectorKind.CSS:
            return [SoupNode(tag) for tag in selector.compiled.select(self.soup)]

        try:
            result = selector.compiled(self.tree)
        except etree.XPathEvalError as exc:
            raise DocumentError(f"Cannot evaluate {selector!r}: {exc}") from exc
        if not isinstance(result, list):
            # Scalar XPath results (count(), string(), ...) select no nodes.
            return []
        return [
            LxmlNode(item)
            for item in result
            if isinstance(item, etree._Element) and isinstance(item.tag, str)
        ]

    def select_one(self, selector: Selector) -> Optional[Node]:
        nodes = self.select(selector)
        return nodes[0] if nodes else None
