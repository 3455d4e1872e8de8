"""Tests for selectors, documents, field extractors and the record builder.

Everything here runs on in-memory HTML; no network or event loop is involved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import pytest
from pydantic import BaseModel

from xtract.errors import DocumentError, ExtractionError, SchemaError, SelectorError
from xtract.extraction import (
    Anchor,
    Document,
    FieldExtractor,
    RecordBuilder,
    Selector,
    SelectorKind,
)


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_PACKAGE_HTML = """\
<html>
<head><title>requests · PyPI</title></head>
<body>
  <nav><ul><li><a href="/projects/">Projects</a></li></ul></nav>
  <div class="header">
    <h1 class="package-title">requests</h1>
    <h2 class="version">2.32.3</h2>
  </div>
  <div class="maintainers">
    <div class="card">
      <div class="inner">
        <span class="owner-name">Kenneth Reitz</span>
      </div>
    </div>
    <div class="card">
      <div class="inner">
        <span class="owner-name">Nate Prewitt</span>
      </div>
    </div>
  </div>
  <a class="homepage" href="https://requests.readthedocs.io" title="Docs &amp; guides">Home</a>
</body>
</html>
"""

_LISTING_HTML = """\
<html><body>
  <h1>Top packages</h1>
  <ul>
    <li class="row"><span class="name">numpy</span><span class="downloads">100</span></li>
    <li class="row"><span class="name">pandas</span><span class="downloads">80</span></li>
    <li class="row"><span class="name">httpx</span><span class="downloads"> </span></li>
  </ul>
</body></html>
"""


@dataclass(frozen=True)
class Package:
    name: str
    version: str


class PackageModel(BaseModel):
    name: str
    version: str


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------

class TestSelector:
    def test_css_and_xpath_kinds(self) -> None:
        assert Selector.css("h1").kind is SelectorKind.CSS
        assert Selector.xpath("//h1").kind is SelectorKind.XPATH

    def test_empty_selector_rejected(self) -> None:
        with pytest.raises(SelectorError):
            Selector.css("   ")

    def test_invalid_css_rejected_at_construction(self) -> None:
        with pytest.raises(SelectorError):
            Selector.css("div[")

    def test_invalid_xpath_rejected_at_construction(self) -> None:
        with pytest.raises(SelectorError):
            Selector.xpath("//div[")

    def test_selector_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Selector.xpath("")

    def test_undefined_variable_rejected_at_construction(self) -> None:
        with pytest.raises(SelectorError, match="variables"):
            Selector.xpath("//h1[@x=$v]")

    def test_unknown_namespace_prefix_rejected_at_construction(self) -> None:
        with pytest.raises(SelectorError):
            Selector.xpath("//foo:a")

    def test_dollar_inside_string_literal_is_allowed(self) -> None:
        assert Selector.xpath("//span[text()='$9.99']").text == "//span[text()='$9.99']"

    def test_immutable_and_hashable(self) -> None:
        selector = Selector.css("h1")
        with pytest.raises(AttributeError):
            selector.text = "h2"  # type: ignore[misc]
        assert selector == Selector.css("h1")
        assert len({selector, Selector.css("h1"), Selector.xpath("h1")}) == 2


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class TestDocument:
    def test_empty_markup_rejected(self) -> None:
        with pytest.raises(DocumentError):
            Document.parse("  \n ")

    def test_css_and_xpath_select_same_nodes(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        css = doc.select(Selector.css(".owner-name"))
        xpath = doc.select(Selector.xpath("//span[@class='owner-name']"))
        assert [n.inner_html() for n in css] == ["Kenneth Reitz", "Nate Prewitt"]
        assert [n.inner_html() for n in xpath] == ["Kenneth Reitz", "Nate Prewitt"]

    def test_scalar_xpath_selects_nothing(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert doc.select(Selector.xpath("count(//span)")) == []

    def test_select_one_none_when_missing(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert doc.select_one(Selector.css(".does-not-exist")) is None

    def test_ancestor_walks_up(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        node = doc.select_one(Selector.css(".owner-name"))
        assert node is not None
        card = node.ancestor(2)
        assert card is not None
        assert card.attribute("class") == "card"

    @pytest.mark.parametrize("anchor", list(Anchor))
    def test_anchor_same_for_css_and_xpath(self, anchor: Anchor) -> None:
        doc = Document.parse("<div><p><span>x</span> y</p></div>")
        css = FieldExtractor.css("v", "span").with_anchor(anchor)
        xpath = FieldExtractor.xpath("v", "//span").with_anchor(anchor)
        assert css.extract(doc) == xpath.extract(doc)

    def test_third_parent_of_fragment_is_body(self) -> None:
        doc = Document.parse("<div><p><span>x</span> y</p></div>")
        extractor = FieldExtractor.css("v", "span").with_anchor(Anchor.THIRD_PARENT)
        assert extractor.extract(doc) == "x y"

    def test_ancestor_past_root_is_none(self) -> None:
        doc = Document.parse("<p>x</p>")
        node = doc.select_one(Selector.css("p"))
        assert node is not None
        assert node.ancestor(50) is None


# ---------------------------------------------------------------------------
# FieldExtractor
# ---------------------------------------------------------------------------

class TestFieldExtractor:
    def test_empty_name_rejected(self) -> None:
        with pytest.raises(SelectorError):
            FieldExtractor.css("  ", "h1")

    def test_single_value_is_cleaned_text(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert FieldExtractor.css("name", "h1").extract(doc) == "requests"

    def test_first_match_wins(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert FieldExtractor.css("owner", ".owner-name").extract(doc) == "Kenneth Reitz"

    def test_missing_single_value_is_none(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert FieldExtractor.css("license", ".license").extract(doc) is None

    def test_many_collects_every_match(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        owners = FieldExtractor.css("owners", ".owner-name").with_many()
        assert owners.extract(doc) == ("Kenneth Reitz", "Nate Prewitt")

    def test_many_with_no_match_is_empty_tuple(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        assert FieldExtractor.css("tags", ".tag").with_many().extract(doc) == ()

    def test_anchor_reads_ancestor_text(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        extractor = FieldExtractor.css("owners", ".owner-name").with_many(Anchor.GRAND_PARENT)
        assert extractor.extract(doc) == ("Kenneth Reitz", "Nate Prewitt")

    def test_anchor_reads_ancestor_attribute(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        extractor = (
            FieldExtractor.css("card", ".owner-name")
            .with_anchor(Anchor.GRAND_PARENT)
            .with_attributes(["class"])
        )
        assert extractor.extract(doc) == "card"

    def test_attributes_joined_in_order(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        extractor = FieldExtractor.css("home", "a.homepage").with_attributes(
            ["href", "title", "href"]
        )
        assert extractor.attributes == ("href", "title")
        assert extractor.extract(doc) == "https://requests.readthedocs.io; Docs & guides"

    def test_missing_attribute_is_none(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        extractor = FieldExtractor.css("home", "a.homepage").with_attributes(["rel"])
        assert extractor.extract(doc) is None

    def test_xpath_extractor(self) -> None:
        doc = Document.parse(_PACKAGE_HTML)
        extractor = FieldExtractor.xpath("nav", "//nav//li[1]/a").with_attributes(["href"])
        assert extractor.extract(doc) == "/projects/"


# ---------------------------------------------------------------------------
# RecordBuilder
# ---------------------------------------------------------------------------

class TestRecordBuilder:
    def _extractors(self) -> Tuple[FieldExtractor, ...]:
        return (
            FieldExtractor.css("name", "h1"),
            FieldExtractor.css("version", "h2.version"),
        )

    def test_generated_record_type(self) -> None:
        builder = RecordBuilder(self._extractors())
        record = builder.build_one(_PACKAGE_HTML)
        assert builder.field_names == ("name", "version")
        assert record.name == "requests"
        assert record.version == "2.32.3"

    def test_dataclass_record_type(self) -> None:
        record = RecordBuilder(self._extractors(), Package).build_one(_PACKAGE_HTML)
        assert record == Package(name="requests", version="2.32.3")

    def test_pydantic_record_type(self) -> None:
        record = RecordBuilder(self._extractors(), PackageModel).build_one(_PACKAGE_HTML)
        assert record == PackageModel(name="requests", version="2.32.3")

    def test_missing_required_field_rejects_record(self) -> None:
        builder = RecordBuilder(
            [FieldExtractor.css("name", "h1"), FieldExtractor.css("license", ".license")]
        )
        assert builder.build_one(_PACKAGE_HTML) is None

    def test_empty_many_field_does_not_reject(self) -> None:
        builder = RecordBuilder(
            [FieldExtractor.css("name", "h1"), FieldExtractor.css("tags", ".tag").with_many()]
        )
        record = builder.build_one(_PACKAGE_HTML)
        assert record is not None
        assert record.tags == ()

    def test_no_extractors_rejected(self) -> None:
        with pytest.raises(SchemaError):
            RecordBuilder([])

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(SchemaError, match="name"):
            RecordBuilder([FieldExtractor.css("name", "h1"), FieldExtractor.css("name", "h2")])

    def test_mismatched_record_type_rejected(self) -> None:
        with pytest.raises(SchemaError, match="missing"):
            RecordBuilder([FieldExtractor.css("name", "h1")], Package)

    def test_record_type_rejecting_values(self) -> None:
        @dataclass(frozen=True)
        class Strict:
            name: str
            version: str

            def __post_init__(self) -> None:
                if not self.version[0].isdigit():
                    raise ValueError(f"bad version {self.version!r}")

        builder = RecordBuilder(self._extractors(), Strict)
        page = _PACKAGE_HTML.replace("2.32.3", "latest")
        with pytest.raises(ExtractionError, match="bad version"):
            builder.build_one(page)

    def test_key_is_hashable_for_many_fields(self) -> None:
        builder = RecordBuilder(
            [FieldExtractor.css("name", "h1"), FieldExtractor.css("owners", ".owner-name").with_many()]
        )
        record = builder.build_one(_PACKAGE_HTML)
        assert builder.key(record) == ("requests", ("Kenneth Reitz", "Nate Prewitt"))
        hash(builder.key(record))

    def test_build_all_one_record_per_row(self) -> None:
        builder = RecordBuilder(
            [
                FieldExtractor.css("name", ".row .name"),
                FieldExtractor.css("downloads", ".row .downloads"),
                FieldExtractor.css("listing", "h1"),
            ]
        )
        records = builder.build_all(_LISTING_HTML)
        assert len(records) == 3
        assert (records[0].name, records[0].downloads, records[0].listing) == (
            "numpy",
            "100",
            "Top packages",
        )
        assert records[1].name == "pandas"
        # httpx has an empty downloads cell.
        assert records[2] is None

    def test_build_all_on_empty_listing(self) -> None:
        builder = RecordBuilder([FieldExtractor.css("name", ".row .name")])
        assert builder.build_all("<html><body><p>nothing</p></body></html>") == []

    def test_build_all_accepts_parsed_document(self) -> None:
        builder = RecordBuilder([FieldExtractor.css("name", ".row .name")])
        records = builder.build_all(Document.parse(_LISTING_HTML))
        assert [r.name for r in records] == ["numpy", "pandas", "httpx"]
