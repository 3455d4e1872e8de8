"""Combine field extractors into records."""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from xtract.errors import ExtractionError, SchemaError
from xtract.extraction.document import Document
from xtract.extraction.models import FieldExtractor, FieldValue

DocumentLike = Union[str, Document]


def _declared_fields(record_type: type) -> Optional[Tuple[str, ...]]:
    """Field names of a dataclass or pydantic model; ``None`` for other types."""
    if dataclasses.is_dataclass(record_type):
        return tuple(f.name for f in dataclasses.fields(record_type) if f.init)
    model_fields = getattr(record_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return tuple(model_fields)
    return None


def make_record_type(field_names: Sequence[str], name: str = "Record") -> type:
    """Generate a frozen dataclass with one field per extractor name."""
    return dataclasses.make_dataclass(name, list(field_names), frozen=True)


class RecordBuilder:
    """Builds records of one type from a fixed, ordered set of extractors.

    ``field_names`` is the explicit schema of the records this builder
    produces.  It is checked against *record_type* once, here, so that
    extraction never has to look at the record type again.
    """

    def __init__(
        self,
        extractors: Iterable[FieldExtractor],
        record_type: Optional[type] = None,
    ) -> None:
        self.extractors: Tuple[FieldExtractor, ...] = tuple(extractors)
        if not self.extractors:
            raise SchemaError("At least one field extractor is required")

        names = [e.name for e in self.extractors]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SchemaError(f"Duplicate field names: {', '.join(duplicates)}")
        self.field_names: Tuple[str, ...] = tuple(names)

        if record_type is None:
            record_type = make_record_type(self.field_names)
        else:
            declared = _declared_fields(record_type)
            if declared is not None and set(declared) != set(self.field_names):
                missing = sorted(set(declared) - set(self.field_names))
                extra = sorted(set(self.field_names) - set(declared))
                raise SchemaError(
                    f"Extractors do not match {record_type.__name__}: "
                    f"missing={missing} unknown={extra}"
                )
        self.record_type: type = record_type

    def _make(self, values: Dict[str, FieldValue]) -> Any:
        try:
            return self.record_type(**values)
        except (TypeError, ValueError) as exc:
            raise ExtractionError(f"Cannot build {self.record_type.__name__}: {exc}") from exc

    @staticmethod
    def _document(document: DocumentLike) -> Document:
        if isinstance(document, Document):
            return document
        return Document.parse(document)

    def key(self, record: Any) -> Tuple[Any, ...]:
        """Structural identity of *record*, used for deduplication."""
        values = []
        for name in self.field_names:
            value = getattr(record, name)
            if isinstance(value, list):
                value = tuple(value)
            values.append(value)
        return tuple(values)

    def build_one(self, document: DocumentLike) -> Optional[Any]:
        """Build a single record, or ``None`` if any singular field is missing.

        Fields with ``many=True`` always resolve (possibly to an empty tuple)
        and therefore never reject a record.
        """
        doc = self._document(document)
        values: Dict[str, FieldValue] = {}
        for extractor in self.extractors:
            value = extractor.extract(doc)
            if value is None:
                return None
            values[extractor.name] = value
        return self._make(values)

    def build_all(self, document: DocumentLike) -> List[Optional[Any]]:
        """Build one record per row of a listing page.

        Each singular extractor contributes a column with one value per
        matched node.  A column with a single value is a document-level field
        and is repeated on every row; ``many=True`` fields are document-level
        by definition.  Rows with a hole (an empty node or a short column)
        come back as ``None``.
        """
        doc = self._document(document)
        shared: Dict[str, FieldValue] = {}
        columns: Dict[str, List[Optional[str]]] = {}
        for extractor in self.extractors:
            if extractor.many:
                shared[extractor.name] = extractor.extract(doc) or ()
            else:
                columns[extractor.name] = extractor.read_all(doc)

        row_count = max((len(column) for column in columns.values()), default=1)
        records: List[Optional[Any]] = []
        for index in range(row_count):
            cells = {name: _cell(column, index) for name, column in columns.items()}
            if any(value is None for value in cells.values()):
                records.append(None)
                continue
            records.append(self._make({**shared, **cells}))
        return records


def _cell(column: List[Optional[str]], index: int) -> Optional[str]:
    if len(column) == 1:
        return column[0]
    if index < len(column):
        return column[index]
    return None

