"""CSS / XPath selectors, compiled once at construction."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

import soupsieve
from lxml import etree

from xtract.errors import SelectorError

_STRING_LITERALS = re.compile(r"'[^']*'|\"[^\"]*\"")


class SelectorKind(str, Enum):
    CSS = "css"
    XPATH = "xpath"


def _check_xpath(text: str, compiled: etree.XPath) -> None:
    """Reject XPath that compiles but can never be evaluated.

    No variables are ever bound, so any `$name` outside a string literal is
    undefined.  Unknown namespace prefixes surface on a first evaluation.
    """
    if "$" in _STRING_LITERALS.sub("", text):
        raise SelectorError(f"Invalid XPath expression {text!r}: variables are not supported")
    try:
        compiled(etree.Element("html"))
    except etree.XPathEvalError as exc:
        raise SelectorError(f"Invalid XPath expression {text!r}: {exc}") from exc


class Selector:
    """An immutable rule identifying zero or more nodes in a document.

    The selector text is compiled eagerly so that a malformed rule fails where
    it is written rather than in the middle of a scrape.
    """

    __slots__ = ("kind", "text", "compiled")

    def __init__(self, kind: SelectorKind, text: str) -> None:
        if not text or not text.strip():
            raise SelectorError(f"Empty {kind.value} selector")
        compiled: Any
        try:
            if kind is SelectorKind.CSS:
                compiled = soupsieve.compile(text)
            else:
                compiled = etree.XPath(text)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorError(f"Invalid CSS selector {text!r}: {exc}") from exc
        except etree.XPathSyntaxError as exc:
            raise SelectorError(f"Invalid XPath expression {text!r}: {exc}") from exc
        if kind is SelectorKind.XPATH:
            _check_xpath(text, compiled)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "compiled", compiled)

    @classmethod
    def css(cls, text: str) -> "Selector":
        return cls(SelectorKind.CSS, text)

    @classmethod
    def xpath(cls, text: str) -> "Selector":
        return cls(SelectorKind.XPATH, text)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Selector is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Selector):
            return NotImplemented
        return self.kind is other.kind and self.text == other.text

    def __hash__(self) -> int:
        return hash((self.kind, self.text))

    def __repr__(self) -> str:
        return f"Selector.{self.kind.value}({self.text!r})"
