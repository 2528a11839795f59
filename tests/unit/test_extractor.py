"""
Unit tests for the IndividualExtractor orchestrator (end to end on small pages).
"""

from unittest.mock import Mock

import pytest

from discoverer.errors import TraversalFailure
from discoverer.pipeline.classifier import PageLayout
from discoverer.pipeline.contact_links import WebLinkFollower
from discoverer.pipeline.extractor import IndividualExtractor
from discoverer.pipeline.fetchers.static import FetchResult
from discoverer.progress import ExtractionStage, StatusReporter
from discoverer.schemas import CandidateRecord, ContactKind, UnparsableRecord


FREE_TEXT_HTML = """
<div>
  <p>Jane Doe</p>
  <p>Lecturer</p>
  <p>jane@example.com</p>
  <p>John Smith</p>
  <p>john@example.com</p>
</div>
"""


class TestIndividualExtractor:

    def test_single_row_end_to_end(self):
        html = (
            "<table><tr><td>Dr. Jane Doe</td>"
            "<td><a href='mailto:jane@example.com'>jane@example.com</a></td></tr></table>"
        )
        results = IndividualExtractor().extract_html(html)
        assert len(results) == 1
        record = results[0]
        assert isinstance(record, CandidateRecord)
        assert record.first_name == "Jane"
        assert record.last_name == "Doe"
        assert record.address == "jane@example.com"
        assert record.title == "Dr."

    def test_rows_keep_document_order_with_placeholders(self):
        html = (
            "<table>"
            "<tr><td>Jane Doe</td><td>jane@example.com</td></tr>"
            "<tr><td></td><td>info@example.com</td></tr>"
            "<tr><td>John Smith</td><td>john@example.com</td></tr>"
            "</table>"
        )
        extractor = IndividualExtractor()
        results = extractor.extract_html(html)
        assert extractor.last_layout == PageLayout.ROWS
        assert [type(r) for r in results] == [CandidateRecord, UnparsableRecord, CandidateRecord]
        assert [r.address for r in results if isinstance(r, CandidateRecord)] == [
            "jane@example.com",
            "john@example.com",
        ]
        assert results[1].original_text == "info@example.com"

    def test_cards_use_name_elements(self):
        html = (
            "<div class='card'><h3>Jane Doe</h3><p>jane@example.com</p></div>"
            "<div class='card'><h3>John Smith</h3><p>john@example.com</p></div>"
        )
        results = IndividualExtractor().extract_html(html)
        assert [(r.full_name, r.address) for r in results] == [
            ("Jane Doe", "jane@example.com"),
            ("John Smith", "john@example.com"),
        ]

    def test_unstructured_fallback_in_auto_mode(self):
        results = IndividualExtractor().extract_html(FREE_TEXT_HTML)
        assert [(r.full_name, r.address) for r in results] == [
            ("Jane Doe", "jane@example.com"),
            ("John Smith", "john@example.com"),
        ]
        assert all(r.strategy.startswith("unstructured") for r in results)

    def test_structured_mode_reports_ambiguity(self):
        results = IndividualExtractor(mode="structured").extract_html(FREE_TEXT_HTML)
        assert len(results) == 2
        assert all(isinstance(r, UnparsableRecord) for r in results)
        assert "AmbiguousContactLink" in results[0].reason

    def test_layout_table_around_cards(self):
        html = (
            "<table><tr><td>"
            "<div><h3>Jane Doe</h3><p>jane@example.com</p></div>"
            "<div><h3>John Smith</h3><p>john@example.com</p></div>"
            "<div><h3>Ann Lee</h3><p>ann@example.com</p></div>"
            "</td></tr></table>"
        )
        results = IndividualExtractor().extract_html(html)
        assert [(r.full_name, r.address) for r in results] == [
            ("Jane Doe", "jane@example.com"),
            ("John Smith", "john@example.com"),
            ("Ann Lee", "ann@example.com"),
        ]

    def test_two_records_in_one_row(self):
        html = (
            "<table>"
            "<tr><td>Ann Lee</td><td>ann@example.com</td></tr>"
            "<tr><td>Jane Doe</td><td>jane@example.com</td>"
            "<td>John Smith</td><td>john@example.com</td></tr>"
            "</table>"
        )
        results = IndividualExtractor().extract_html(html)
        assert all(isinstance(r, CandidateRecord) for r in results)
        assert [(r.full_name, r.address) for r in results] == [
            ("Ann Lee", "ann@example.com"),
            ("Jane Doe", "jane@example.com"),
            ("John Smith", "john@example.com"),
        ]

    def test_name_without_link_yields_nothing(self):
        assert IndividualExtractor().extract_html("<div><h3>Jane Doe</h3></div>") == []

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            IndividualExtractor(mode="fuzzy")

    def test_traversal_failure_aborts(self):
        extractor = IndividualExtractor(is_name=Mock(side_effect=RuntimeError("broken")))
        with pytest.raises(TraversalFailure):
            extractor.extract_html("<p>Jane Doe</p>")


class TestWebLinkFollowing:

    HTML = (
        "<div class='card'><h3><a href='/people/jane'>Jane Doe</a></h3></div>"
        "<div class='card'><h3><a href='/people/john'>John Smith</a></h3></div>"
    )

    def test_weblinks_replaced_by_detail_page_email(self):
        fetcher = Mock()
        fetcher.fetch.side_effect = lambda url: FetchResult(
            url=url,
            status_code=200,
            mime="text/html",
            encoding="utf-8",
            html=f"<p>Email: {url.rsplit('/', 1)[-1]}@example.edu</p>",
        )
        stages = []
        reporter = StatusReporter([lambda e: stages.append(e["stage"]) if e["event"] == "stage" else None])
        extractor = IndividualExtractor(
            base_url="https://example.edu/staff/",
            weblink_follower=WebLinkFollower(fetcher),
            progress=reporter,
        )
        results = extractor.extract_html(self.HTML)
        assert [r.address for r in results] == ["jane@example.edu", "john@example.edu"]
        assert results[0].address_kind == ContactKind.WEB
        assert results[0].link_url == "https://example.edu/people/jane"
        assert ExtractionStage.FETCHING_EMAILS_FROM_WEBLINKS.value in stages

    def test_without_follower_web_address_is_kept(self):
        results = IndividualExtractor(base_url="https://example.edu/").extract_html(self.HTML)
        assert [r.address for r in results] == [
            "https://example.edu/people/jane",
            "https://example.edu/people/john",
        ]


class TestProgressStages:

    def test_stage_sequence(self):
        events = []
        extractor = IndividualExtractor(progress=StatusReporter([events.append]))
        extractor.extract_html("<table><tr><td>Jane Doe</td><td>jane@example.com</td></tr></table>")
        stages = [e["stage"] for e in events if e["event"] == "stage"]
        assert stages == ["parsing_html", "finding_names", "extracting_individuals", "done"]
        assert any(e["event"] == "percent" and e["percent"] == 100 for e in events)

    def test_failing_sink_does_not_stop_extraction(self):
        sink = Mock()
        sink.increment_progress.side_effect = RuntimeError("sink down")
        sink.set_stage.side_effect = RuntimeError("sink down")
        results = IndividualExtractor(progress=sink).extract_html(
            "<table><tr><td>Jane Doe</td><td>jane@example.com</td></tr></table>"
        )
        assert [r.address for r in results] == ["jane@example.com"]
        assert sink.increment_progress.called
