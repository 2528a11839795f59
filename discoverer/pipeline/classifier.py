"""
Page classification and record-region discovery.

A page is read as table rows when some <tr> carries an address indicator
(an email in its text or attributes), as list items when some <li> does,
and otherwise as one region per name element.

A row or item holding several name elements, or several distinct emails
next to a name, is a layout container rather than a record. Its name
elements become regions of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from discoverer.pipeline.contact_links import scope_emails
from discoverer.pipeline.document import Document
from discoverer.pipeline.name_elements import NameElement


class PageLayout(str, Enum):
    ROWS = "rows"
    ITEMS = "items"
    NAMES = "names"


@dataclass(frozen=True)
class RecordRegion:
    """One or more sibling subtrees expected to hold at most one personal record.

    `span` lists the subtrees when a record is spread over several cells;
    it is empty for the common single-subtree case rooted at `index`.
    """
    document: Document = field(repr=False, compare=False)
    index: int
    kind: str
    name_elements: Tuple[NameElement, ...] = ()
    span: Tuple[int, ...] = ()

    @property
    def nodes(self) -> Tuple[int, ...]:
        return self.span or (self.index,)

    @property
    def text(self) -> str:
        return " ".join(t for t in (self.document.text(n) for n in self.nodes) if t)

    def emails(self) -> List[str]:
        """Distinct emails over every subtree of the region."""
        return list(dict.fromkeys(e for n in self.nodes for e in scope_emails(self.document, n)))


def has_address_indicator(doc: Document, index: int) -> bool:
    return bool(scope_emails(doc, index))


def _innermost(doc: Document, candidates: List[int]) -> List[int]:
    """Drop candidates that contain another candidate (layout tables around data tables)."""
    enclosing = set()
    for c in candidates:
        enclosing.update(doc.ancestors(c, include_self=False))
    return [c for c in candidates if c not in enclosing]


def _cells(doc: Document, row: int) -> List[int]:
    return [c for c in doc.nodes[row].children if doc.nodes[c].is_element and doc.nodes[c].tag in ("td", "th")]


def _group_cells(doc: Document, cells: List[int]) -> List[Tuple[int, ...]]:
    """Each email cell with the non-email cells before it; trailing cells join the last group."""
    groups: List[List[int]] = []
    pending: List[int] = []
    for c in cells:
        pending.append(c)
        if scope_emails(doc, c):
            groups.append(pending)
            pending = []
    if pending and groups:
        groups[-1].extend(pending)
    return [tuple(g) for g in groups]


def split_multi_record_rows(doc: Document, rows: Sequence[int]) -> List[Tuple[int, str, Tuple[int, ...]]]:
    """Rows whose cells hold different emails become one region per email cell.

    Returns (root, kind, span) triples; span is empty for whole rows.
    """
    regions: List[Tuple[int, str, Tuple[int, ...]]] = []
    for row in rows:
        cells = _cells(doc, row)
        mail_cells = [c for c in cells if scope_emails(doc, c)]
        distinct = {e for c in mail_cells for e in scope_emails(doc, c)}
        if len(mail_cells) > 1 and len(distinct) > 1:
            for group in _group_cells(doc, cells):
                span = group if len(group) > 1 else ()
                regions.append((group[-1] if span else group[0], "cell", span))
        else:
            regions.append((row, "row", ()))
    return regions


def classify_page(doc: Document) -> Tuple[PageLayout, List[int]]:
    rows = _innermost(doc, [r for r in doc.elements_by_tag("tr") if has_address_indicator(doc, r)])
    if rows:
        return PageLayout.ROWS, rows
    items = _innermost(doc, [i for i in doc.elements_by_tag("li") if has_address_indicator(doc, i)])
    if items:
        return PageLayout.ITEMS, items
    return PageLayout.NAMES, []


def is_layout_container(region: RecordRegion) -> bool:
    names = len(region.name_elements)
    return names > 1 or (names == 1 and len(region.emails()) > 1)


def find_record_regions(doc: Document, name_elements: Sequence[NameElement]) -> Tuple[PageLayout, List[RecordRegion]]:
    """Record regions in document order, each with the name elements inside it."""
    layout, containers = classify_page(doc)
    if layout == PageLayout.NAMES:
        regions = [RecordRegion(doc, ne.index, "name", (ne,)) for ne in name_elements]
        return layout, regions
    if layout == PageLayout.ROWS:
        spans = split_multi_record_rows(doc, containers)
    else:
        spans = [(i, "item", ()) for i in containers]

    # subtree root -> position of the region it belongs to
    owner_of: Dict[int, int] = {}
    for pos, (root, _, span) in enumerate(spans):
        for n in span or (root,):
            owner_of[n] = pos
    owned: List[List[NameElement]] = [[] for _ in spans]
    for ne in name_elements:
        for anc in doc.ancestors(ne.index):
            if anc in owner_of:
                owned[owner_of[anc]].append(ne)
                break

    regions: List[RecordRegion] = []
    for (root, kind, span), names in zip(spans, owned):
        region = RecordRegion(doc, root, kind, tuple(names), tuple(span))
        if is_layout_container(region):
            regions.extend(RecordRegion(doc, ne.index, "name", (ne,)) for ne in names)
        else:
            regions.append(region)
    return layout, regions
