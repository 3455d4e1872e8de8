"""Text cleaning for extracted values.

Every field value passes through one of these helpers before it lands in a
record, so extractors never have to deal with raw markup or entity noise.
"""

from __future__ import annotations

import html
import re
from typing import Optional

_LINE_BREAKS = re.compile(r"[\r\n]")
_WHITESPACE = re.compile(r"\s+")
_SCRIPT_STYLE = re.compile(r"<script.*?</script>|<style.*?</style>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<.+?>", re.DOTALL)
_PUNCTUATION = re.compile(r"[^\w\s]+")


def strip_spaces(value: str) -> str:
    """Replace line breaks and runs of whitespace with a single space."""
    value = _LINE_BREAKS.sub(" ", value)
    return _WHITESPACE.sub(" ", value).strip()


def strip_inline_js_css(value: str) -> str:
    """Remove ``<script>`` and ``<style>`` blocks, including their bodies."""
    return _SCRIPT_STYLE.sub("", value)


def strip_tags(value: str) -> str:
    return _TAGS.sub("", value)


def decode_entities(value: str) -> str:
    return html.unescape(value)


def remove_punctuation(value: str) -> str:
    return _PUNCTUATION.sub("", value)


def clean_html(value: str) -> str:
    """Turn an HTML fragment into readable plain text.

    Whitespace is collapsed first, then scripts/styles and tags are removed
    and entities decoded.  Decoding can reintroduce whitespace (``&nbsp;``),
    so the result is collapsed once more.
    """
    value = strip_spaces(value)
    value = strip_inline_js_css(value)
    value = strip_tags(value)
    value = decode_entities(value)
    return strip_spaces(value)


def normalize_text(value: Optional[str]) -> Optional[str]:
    """Clean *value* and return ``None`` when nothing readable is left.

    Unlike :func:`clean_html` this keeps markup tags; it is used for
    attribute values, which are plain strings already.
    """
    if not value:
        return None
    value = strip_spaces(value)
    value = strip_inline_js_css(value)
    value = decode_entities(value).strip()
    return value or None
