"""
Record-level parsers: each turns one RecordRegion into a CandidateRecord or
raises a RecordError. The extractor runs them through a Dispatcher in the
order returned by default_record_parsers().
"""

from __future__ import annotations

from typing import List, Optional

from discoverer.errors import (
    AmbiguousContactLink,
    ChunkUnparsable,
    NoContactLinkFound,
    RecordError,
)
from discoverer.pipeline.classifier import RecordRegion
from discoverer.pipeline.contact_links import (
    ContactLink,
    StructuredContactLinkLocator,
)
from discoverer.pipeline.document import Document
from discoverer.pipeline.scorer import Dispatcher
from discoverer.schemas import CandidateRecord, ContactKind, ParsedName
from discoverer.textutils import EMAIL_FULLMATCH

# Elements that start a new line of text.
BLOCK_TAGS = {
    "address", "article", "blockquote", "br", "dd", "div", "dl", "dt", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "ol", "p",
    "section", "table", "tbody", "td", "th", "thead", "tr", "ul",
}


def build_record(
    parsed: ParsedName,
    link: Optional[ContactLink],
    *,
    strategy: str,
    original_text: str,
    extra_rest: str = "",
) -> CandidateRecord:
    rest = " ".join(p for p in (parsed.rest, extra_rest) if p)
    return CandidateRecord(
        first_name=parsed.first_name,
        last_name=parsed.last_name,
        title=parsed.title,
        address=link.address if link else "",
        address_kind=link.kind if link else None,
        link_url=link.url if link else None,
        rest=rest,
        original_text=original_text,
        strategy=f"{strategy}:{parsed.strategy}" if parsed.strategy else strategy,
    )


def region_lines(doc: Document, index: int) -> List[str]:
    """Text of a subtree split at <br> and block element boundaries."""
    lines: List[str] = []
    current: List[str] = []

    def flush() -> None:
        line = " ".join(" ".join(current).split())
        if line:
            lines.append(line)
        current.clear()

    stack = [(index, False)]
    while stack:
        i, closing = stack.pop()
        node = doc.nodes[i]
        if closing:
            flush()
            continue
        if node.is_text:
            current.append(doc.own_text(i))
            continue
        if i != index and node.tag in BLOCK_TAGS:
            flush()
            stack.append((i, True))
        stack.extend((c, False) for c in reversed(node.children))
    flush()
    return lines


class RecordParser:
    name = "record"

    def __init__(self, chunk_dispatcher: Dispatcher) -> None:
        self.chunk_dispatcher = chunk_dispatcher

    def parse_name(self, chunk: str) -> ParsedName:
        result = self.chunk_dispatcher.dispatch(chunk)
        if not result.found:
            raise ChunkUnparsable(f"no chunk handler could split {chunk!r}")
        return result.candidate

    def parse(self, region: RecordRegion) -> CandidateRecord:
        raise NotImplementedError


class NameElementParser(RecordParser):
    """Name elements inside the region, linked by the structured ancestor climb.

    The first name element that yields both a contact link and a name wins.
    Ambiguity is raised at once; absence moves on to the next name element.
    """

    name = "name_element"

    def __init__(self, chunk_dispatcher: Dispatcher, locator: StructuredContactLinkLocator) -> None:
        super().__init__(chunk_dispatcher)
        self.locator = locator

    def parse(self, region: RecordRegion) -> CandidateRecord:
        if not region.name_elements:
            raise ChunkUnparsable("region holds no name element")
        last_error: RecordError = NoContactLinkFound("region holds no linked name element")
        for ne in region.name_elements:
            try:
                link = self.locator.locate(ne)
                parsed = self.parse_name(ne.text)
            except (NoContactLinkFound, ChunkUnparsable) as e:
                last_error = e
                continue
            return build_record(parsed, link, strategy=self.name, original_text=region.text)
        raise last_error


class NameEmailPositionParser(RecordParser):
    """Region text shaped 'name email [rest]'."""

    name = "name_email_position"

    def parse(self, region: RecordRegion) -> CandidateRecord:
        emails = region.emails()
        if len(emails) > 1:
            raise AmbiguousContactLink(f"{len(emails)} distinct emails in region", emails)
        if not emails:
            raise NoContactLinkFound("no email in region")
        email = emails[0]
        text = region.text
        pos = text.lower().find(email)
        if pos < 0:
            raise ChunkUnparsable("email is not part of the region text")
        name_part = text[:pos].strip(" ,;:-|/")
        rest = text[pos + len(email):].strip(" ,;:-|/")
        if not name_part:
            raise ChunkUnparsable("no text before the email")
        parsed = self.parse_name(name_part)
        link = ContactLink(ContactKind.EMAIL, email, region.index)
        return build_record(parsed, link, strategy=self.name, original_text=text, extra_rest=rest)


class EntireRecordInCellParser(RecordParser):
    """Multi-line region: first line with letters is the name, an email line the address."""

    name = "entire_record_in_cell"

    def parse(self, region: RecordRegion) -> CandidateRecord:
        doc = region.document
        lines = [line for n in region.nodes for line in region_lines(doc, n)]
        if len(lines) < 2:
            raise ChunkUnparsable("region is a single line")
        name_line: Optional[str] = None
        email: Optional[str] = None
        rest: List[str] = []
        for line in lines:
            if email is None and EMAIL_FULLMATCH.match(line):
                email = line.lower()
            elif name_line is None and any(ch.isalpha() for ch in line):
                name_line = line
            else:
                rest.append(line)
        if name_line is None:
            raise ChunkUnparsable("no line with letters")
        if email is None:
            emails = region.emails()
            if len(emails) == 1:
                email = emails[0]
        parsed = self.parse_name(name_line)
        link = ContactLink(ContactKind.EMAIL, email, region.index) if email else None
        return build_record(parsed, link, strategy=self.name, original_text=region.text, extra_rest=" ".join(rest))


def default_record_parsers(chunk_dispatcher: Dispatcher, locator: StructuredContactLinkLocator) -> List[RecordParser]:
    return [
        NameElementParser(chunk_dispatcher, locator),
        NameEmailPositionParser(chunk_dispatcher),
        EntireRecordInCellParser(chunk_dispatcher),
    ]
