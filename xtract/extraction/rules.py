"""JSON rules files: field extractors declared as data.

Example::

    {
      "fields": [
        {"name": "title", "css": "h1"},
        {"name": "project", "xpath": "//nav//li[1]/a", "attributes": ["href"]},
        {"name": "owners", "css": ".owner-name", "many": true, "anchor": "third_parent"}
      ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from xtract.errors import RulesError, SelectorError
from xtract.extraction.models import Anchor, FieldExtractor
from xtract.extraction.selectors import Selector

_ANCHORS = {
    "none": Anchor.NONE,
    "parent": Anchor.PARENT,
    "grand_parent": Anchor.GRAND_PARENT,
    "grandparent": Anchor.GRAND_PARENT,
    "third_parent": Anchor.THIRD_PARENT,
}


class FieldRule(BaseModel):
    name: str = Field(min_length=1)
    css: Optional[str] = None
    xpath: Optional[str] = None
    anchor: str = "none"
    many: bool = False
    attributes: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check(self) -> "FieldRule":
        if (self.css is None) == (self.xpath is None):
            raise ValueError(f"field {self.name!r}: give exactly one of 'css' or 'xpath'")
        if self.anchor.strip().lower() not in _ANCHORS:
            raise ValueError(
                f"field {self.name!r}: unknown anchor {self.anchor!r} "
                f"(expected one of {', '.join(sorted(_ANCHORS))})"
            )
        return self

    def to_extractor(self) -> FieldExtractor:
        selector = Selector.css(self.css) if self.css is not None else Selector.xpath(self.xpath or "")
        return FieldExtractor(
            name=self.name,
            selector=selector,
            anchor=_ANCHORS[self.anchor.strip().lower()],
            many=self.many,
            attributes=tuple(self.attributes),
        )


class RulesFile(BaseModel):
    fields: List[FieldRule] = Field(min_length=1)


def parse_rules(data: Any) -> List[FieldExtractor]:
    """Validate already-decoded rules *data* and build the extractors.

    Raises:
        RulesError: If the data does not describe a valid rule set.
    """
    try:
        rules = RulesFile.model_validate(data)
        return [rule.to_extractor() for rule in rules.fields]
    except ValidationError as exc:
        raise RulesError(f"Invalid rules: {exc}") from exc
    except SelectorError as exc:
        raise RulesError(str(exc)) from exc


def load_rules(path: Union[str, Path]) -> List[FieldExtractor]:
    """Read a JSON rules file from *path*."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RulesError(f"Cannot read rules file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Rules file {path} is not valid JSON: {exc}") from exc
    return parse_rules(data)
