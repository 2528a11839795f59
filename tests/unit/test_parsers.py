"""
Unit tests for record-level parsers.
"""

import pytest

from discoverer.dictionary import LooksLikeName
from discoverer.errors import AmbiguousContactLink, ChunkUnparsable
from discoverer.pipeline.chunks import default_chunk_handlers
from discoverer.pipeline.classifier import RecordRegion, find_record_regions
from discoverer.pipeline.contact_links import StructuredContactLinkLocator
from discoverer.pipeline.document import Document
from discoverer.pipeline.name_elements import StructuredNameElementFinder
from discoverer.pipeline.parsers import (
    EntireRecordInCellParser,
    NameElementParser,
    NameEmailPositionParser,
    default_record_parsers,
    region_lines,
)
from discoverer.pipeline.scorer import Dispatcher
from discoverer.schemas import ContactKind


def _setup(html):
    doc = Document.from_html(html)
    names = StructuredNameElementFinder(doc, LooksLikeName()).name_elements
    _, regions = find_record_regions(doc, names)
    return doc, regions


class TestRegionLines:

    def test_split_at_br_and_blocks(self):
        doc = Document.from_html("<div>Jane <b>Doe</b><br>Professor<p>jane@example.com</p>Room 4</div>")
        div = doc.elements_by_tag("div")[0]
        assert region_lines(doc, div) == ["Jane Doe", "Professor", "jane@example.com", "Room 4"]


class TestRecordParsers:

    def setup_method(self):
        self.chunks = Dispatcher(default_chunk_handlers())

    def test_name_element_parser(self):
        doc, (region,) = _setup(
            '<table><tr><td>Dr. Jane Doe</td><td><a href="mailto:jane@example.com">mail</a></td></tr></table>'
        )
        parser = NameElementParser(self.chunks, StructuredContactLinkLocator(doc))
        record = parser.parse(region)
        assert (record.first_name, record.last_name, record.title) == ("Jane", "Doe", "Dr.")
        assert record.address == "jane@example.com"
        assert record.address_kind == ContactKind.EMAIL
        assert record.strategy == "name_element:basic"

    def test_name_element_parser_without_names(self):
        doc = Document.from_html("<table><tr><td>jane@example.com</td></tr></table>")
        region = RecordRegion(doc, doc.elements_by_tag("tr")[0], "row")
        with pytest.raises(ChunkUnparsable):
            NameElementParser(self.chunks, StructuredContactLinkLocator(doc)).parse(region)

    def test_name_email_position(self):
        doc, (region,) = _setup("<ul><li>Jane Doe jane@example.com Room 12</li></ul>")
        record = NameEmailPositionParser(self.chunks).parse(region)
        assert (record.first_name, record.last_name) == ("Jane", "Doe")
        assert record.address == "jane@example.com"
        assert record.rest == "Room 12"

    def test_name_email_position_needs_email_in_text(self):
        doc, (region,) = _setup('<ul><li>Jane Doe <a href="mailto:jane@example.com">write</a></li></ul>')
        with pytest.raises(ChunkUnparsable):
            NameEmailPositionParser(self.chunks).parse(region)

    def test_name_email_position_ambiguous(self):
        doc = Document.from_html("<ul><li>Jane Doe a@example.com b@example.com</li></ul>")
        region = RecordRegion(doc, doc.elements_by_tag("li")[0], "item")
        with pytest.raises(AmbiguousContactLink):
            NameEmailPositionParser(self.chunks).parse(region)

    def test_entire_record_in_cell(self):
        doc, (region,) = _setup("<table><tr><td>Jane Doe<br>Professor<br>jane@example.com</td></tr></table>")
        record = EntireRecordInCellParser(self.chunks).parse(region)
        assert (record.first_name, record.last_name) == ("Jane", "Doe")
        assert record.address == "jane@example.com"
        assert record.rest == "Professor"

    def test_entire_record_needs_several_lines(self):
        doc = Document.from_html("<table><tr><td>Jane Doe jane@example.com</td></tr></table>")
        region = RecordRegion(doc, doc.elements_by_tag("td")[0], "cell")
        with pytest.raises(ChunkUnparsable):
            EntireRecordInCellParser(self.chunks).parse(region)

    def test_default_order(self):
        doc = Document.from_html("<p>x</p>")
        parsers = default_record_parsers(self.chunks, StructuredContactLinkLocator(doc))
        assert [p.name for p in parsers] == ["name_element", "name_email_position", "entire_record_in_cell"]
