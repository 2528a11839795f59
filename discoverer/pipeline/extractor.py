"""
Extraction orchestrator.

IndividualExtractor runs the whole pipeline for one document:

1. flatten the document into name elements (structured finder),
2. split it into record regions (table rows, list items or name elements),
3. dispatch every region over the record parsers and keep the best record,
4. fall back to the unstructured finder/locator when the structured pass
   produced no record,
5. optionally replace web addresses by the email found on the linked page.

Output keeps document order. Regions no parser could handle become
UnparsableRecord placeholders; TraversalFailure aborts the document.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from discoverer.dictionary import EMPTY_DICTIONARY, LooksLikeName, NameDictionary, NamePredicate, SurnameLookup
from discoverer.errors import AmbiguousContactLink, NoContactLinkFound, RecordError
from discoverer.pipeline.chunks import default_chunk_handlers
from discoverer.pipeline.classifier import PageLayout, find_record_regions
from discoverer.pipeline.contact_links import (
    StructuredContactLinkLocator,
    UnstructuredContactLinkLocator,
    WebLinkFollower,
)
from discoverer.pipeline.document import Document, check_encoding
from discoverer.pipeline.name_elements import (
    NameElement,
    StructuredNameElementFinder,
    UnstructuredNameElementFinder,
)
from discoverer.pipeline.parsers import build_record, default_record_parsers
from discoverer.pipeline.scorer import Dispatcher, Strategy
from discoverer.progress import ExtractionStage, ProgressSink, guard_progress
from discoverer.schemas import CandidateRecord, ContactKind, ExtractionResult, UnparsableRecord

MODES = ("auto", "structured", "unstructured")


class IndividualExtractor:
    """Extracts candidate personal records from one document at a time.

    Instances hold configuration only; every call to `extract` builds fresh
    flatteners, finders and locators for its document.
    """

    def __init__(
        self,
        *,
        surnames: Optional[SurnameLookup] = None,
        first_names: Optional[NameDictionary] = None,
        is_name: Optional[NamePredicate] = None,
        encoding: str = "utf-8",
        progress: Optional[ProgressSink] = None,
        mode: str = "auto",
        base_url: Optional[str] = None,
        weblink_follower: Optional[WebLinkFollower] = None,
        unstructured_direction: str = "following",
        checkpoint: Optional[Callable[[], None]] = None,
        chunk_handlers: Optional[Sequence[Strategy]] = None,
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
        self.surnames = surnames if surnames is not None else EMPTY_DICTIONARY
        self.is_name = is_name or LooksLikeName(self.surnames, first_names)
        self.encoding = check_encoding(encoding)
        self.progress = guard_progress(progress)
        self.mode = mode
        self.base_url = base_url
        self.weblink_follower = weblink_follower
        self.unstructured_direction = unstructured_direction
        self.checkpoint = checkpoint
        self.chunk_dispatcher = Dispatcher(chunk_handlers or default_chunk_handlers(self.surnames))
        self.last_layout: Optional[PageLayout] = None

    # -------------------------
    # Entry points
    # -------------------------
    def extract_html(self, markup: str | bytes) -> List[ExtractionResult]:
        self.progress.set_stage(ExtractionStage.PARSING_HTML)
        document = Document.from_html(markup, encoding=self.encoding)
        return self.extract(document)

    def extract(self, document: Document) -> List[ExtractionResult]:
        results: List[ExtractionResult] = []
        if self.mode in ("auto", "structured"):
            results = self._extract_structured(document)
            if self.mode == "auto" and not _has_records(results):
                fallback = self._extract_unstructured(document)
                if _has_records(fallback):
                    results = fallback
        else:
            results = self._extract_unstructured(document)
        results = self._follow_weblinks(results)
        self.progress.set_stage(ExtractionStage.DONE)
        self.progress.report_text(
            f"{sum(isinstance(r, CandidateRecord) for r in results)} records, "
            f"{sum(isinstance(r, UnparsableRecord) for r in results)} unparsable"
        )
        return results

    # -------------------------
    # Structured pass
    # -------------------------
    def _extract_structured(self, document: Document) -> List[ExtractionResult]:
        self.progress.set_stage(ExtractionStage.FINDING_NAMES)
        finder = StructuredNameElementFinder(
            document, self.is_name, encoding=self.encoding, progress=self.progress, checkpoint=self.checkpoint
        )
        name_elements = finder.name_elements

        self.progress.set_stage(ExtractionStage.EXTRACTING_INDIVIDUALS)
        layout, regions = find_record_regions(document, name_elements)
        self.last_layout = layout
        locator = StructuredContactLinkLocator(document, base_url=self.base_url)
        dispatcher = Dispatcher(default_record_parsers(self.chunk_dispatcher, locator))

        self.progress.set_total_steps(len(regions))
        results: List[ExtractionResult] = []
        for region in regions:
            outcome = dispatcher.dispatch(region)
            self.progress.increment_progress()
            if outcome.found:
                results.append(outcome.candidate)
                continue
            if region.kind == "name" and not _any_of(outcome.failures, AmbiguousContactLink):
                # A bare name with nothing to link it to is not a record.
                continue
            results.append(
                UnparsableRecord(original_text=region.text, reason=_summarize(outcome.failures))
            )
        return results

    # -------------------------
    # Unstructured pass
    # -------------------------
    def _extract_unstructured(self, document: Document) -> List[ExtractionResult]:
        self.progress.set_stage(ExtractionStage.FINDING_NAMES)
        finder = UnstructuredNameElementFinder(
            document, self.is_name, encoding=self.encoding, progress=self.progress, checkpoint=self.checkpoint
        )
        name_elements = finder.name_elements

        self.progress.set_stage(ExtractionStage.FINDING_CONTACT_LINKS)
        locator = UnstructuredContactLinkLocator(
            document, base_url=self.base_url, direction=self.unstructured_direction
        )
        self.progress.set_total_steps(len(name_elements))
        results: List[ExtractionResult] = []
        for ne in name_elements:
            self.progress.increment_progress()
            record = self._unstructured_record(locator, ne)
            if record is not None:
                results.append(record)
        return results

    def _unstructured_record(self, locator: UnstructuredContactLinkLocator, ne: NameElement) -> Optional[ExtractionResult]:
        try:
            link = locator.locate(ne)
        except NoContactLinkFound:
            return None
        outcome = self.chunk_dispatcher.dispatch(ne.text)
        if not outcome.found:
            return UnparsableRecord(original_text=ne.text, reason=_summarize(outcome.failures))
        return build_record(outcome.candidate, link, strategy="unstructured", original_text=ne.text)

    # -------------------------
    # Web links
    # -------------------------
    def _follow_weblinks(self, results: List[ExtractionResult]) -> List[ExtractionResult]:
        if self.weblink_follower is None:
            return results
        web = [r for r in results if isinstance(r, CandidateRecord) and r.address_kind == ContactKind.WEB]
        if not web:
            return results
        self.progress.set_stage(ExtractionStage.FETCHING_EMAILS_FROM_WEBLINKS)
        self.progress.set_total_steps(len(web))
        out: List[ExtractionResult] = []
        for r in results:
            if isinstance(r, CandidateRecord) and r.address_kind == ContactKind.WEB:
                self.progress.increment_progress()
                email = self.weblink_follower.email_from_weblink(r.address)
                if email:
                    r = r.model_copy(update={"address": email, "link_url": r.link_url or r.address})
            out.append(r)
        return out


def _has_records(results: List[ExtractionResult]) -> bool:
    return any(isinstance(r, CandidateRecord) for r in results)


def _any_of(failures: List[RecordError], kind: type) -> bool:
    return any(isinstance(f, kind) for f in failures)


def _summarize(failures: List[RecordError]) -> str:
    if not failures:
        return "no strategy produced a record"
    return "; ".join(f"{type(f).__name__}: {f}" for f in failures)
