"""Tests for JSON / CSV / Excel / DataFrame export."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import pandas as pd

from xtract import export
from xtract.scraper.models import Source


@dataclass(frozen=True)
class Package:
    name: str
    owners: Tuple[str, ...]


_FIELDS = ("name", "owners")
_ITEMS = [
    (Source.from_url("https://pypi.example.com/requests"), Package("requests", ("kr", "np"))),
    (Source.html(), Package("httpx", ())),
]


class TestRows:
    def test_record_to_dict_lists_tuples(self) -> None:
        assert export.record_to_dict(_ITEMS[0][1], _FIELDS) == {
            "name": "requests",
            "owners": ["kr", "np"],
        }

    def test_rows_carry_source(self) -> None:
        rows = export.to_rows(_ITEMS, _FIELDS)
        assert [row["source"] for row in rows] == ["https://pypi.example.com/requests", "HTML"]


class TestJson:
    def test_json_array(self) -> None:
        data = json.loads(export.to_json([record for _, record in _ITEMS], _FIELDS))
        assert data == [
            {"name": "requests", "owners": ["kr", "np"]},
            {"name": "httpx", "owners": []},
        ]


class TestDataFrame:
    def test_columns_follow_field_order(self) -> None:
        frame = export.to_data_frame(_ITEMS, _FIELDS)
        assert list(frame.columns) == ["name", "owners"]
        assert frame.loc[0, "name"] == "requests"

    def test_include_source(self) -> None:
        frame = export.to_data_frame(_ITEMS, _FIELDS, include_source=True)
        assert list(frame.columns) == ["name", "owners", "source"]

    def test_empty(self) -> None:
        frame = export.to_data_frame([], _FIELDS)
        assert frame.empty
        assert list(frame.columns) == ["name", "owners"]


class TestFiles:
    def test_save_csv_joins_lists(self, tmp_path: Path) -> None:
        path = export.save_csv(tmp_path / "out" / "records.csv", _ITEMS, _FIELDS)
        frame = pd.read_csv(path, keep_default_na=False)
        assert list(frame.columns) == ["name", "owners", "source"]
        assert frame.loc[0, "owners"] == "kr; np"
        assert frame.loc[1, "owners"] == ""
        assert frame.loc[1, "source"] == "HTML"

    def test_save_excel(self, tmp_path: Path) -> None:
        path = export.save_excel(tmp_path / "records.xlsx", _ITEMS, _FIELDS)
        frame = pd.read_excel(path, sheet_name="Data", engine="openpyxl")
        assert frame["name"].tolist() == ["requests", "httpx"]
