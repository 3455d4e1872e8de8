"""Export scraped records to JSON, CSV, Excel or a pandas DataFrame.

Exports work from a snapshot of ``(source, record)`` pairs and the builder's
explicit field-name list; record types are never introspected here.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

import pandas as pd

from xtract.extraction.models import ATTRIBUTE_SEPARATOR
from xtract.scraper.models import Source

SOURCE_COLUMN = "source"

Item = Tuple[Source, Any]


def record_to_dict(record: Any, field_names: Sequence[str]) -> Dict[str, Any]:
    """Plain dict of *record*'s fields; tuples become lists."""
    row: Dict[str, Any] = {}
    for name in field_names:
        value = getattr(record, name)
        if isinstance(value, tuple):
            value = list(value)
        row[name] = value
    return row


def to_rows(
    items: Iterable[Item],
    field_names: Sequence[str],
    include_source: bool = True,
) -> List[Dict[str, Any]]:
    rows = []
    for source, record in items:
        row = record_to_dict(record, field_names)
        if include_source:
            row[SOURCE_COLUMN] = str(source)
        rows.append(row)
    return rows


def to_json(records: Iterable[Any], field_names: Sequence[str]) -> str:
    """Indented JSON array of records (without provenance)."""
    rows = [record_to_dict(record, field_names) for record in records]
    return json.dumps(rows, indent=2, ensure_ascii=False)


def to_data_frame(
    items: Iterable[Item],
    field_names: Sequence[str],
    include_source: bool = False,
) -> pd.DataFrame:
    columns = list(field_names) + ([SOURCE_COLUMN] if include_source else [])
    return pd.DataFrame(to_rows(items, field_names, include_source), columns=columns)


def _flat_frame(items: Iterable[Item], field_names: Sequence[str]) -> pd.DataFrame:
    """DataFrame with list-valued cells joined into strings, for flat files."""
    frame = to_data_frame(items, field_names, include_source=True)
    for column in field_names:
        frame[column] = frame[column].map(
            lambda v: ATTRIBUTE_SEPARATOR.join(v) if isinstance(v, list) else v
        )
    return frame


def save_csv(
    path: Union[str, Path],
    items: Iterable[Item],
    field_names: Sequence[str],
) -> Path:
    """Write *items* to a CSV file with a trailing ``source`` column."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _flat_frame(items, field_names).to_csv(path, index=False)
    return path


def save_excel(
    path: Union[str, Path],
    items: Iterable[Item],
    field_names: Sequence[str],
    sheet_name: str = "Data",
) -> Path:
    """Write *items* to an ``.xlsx`` workbook (openpyxl engine)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _flat_frame(items, field_names).to_excel(
        path, sheet_name=sheet_name, index=False, engine="openpyxl"
    )
    return path
