"""
Contact link location: relate a name element to one email or web address.

StructuredContactLinkLocator climbs ancestors from the name element,
UnstructuredContactLinkLocator scans the nodes recorded around it by the
forward flattening. Email always wins over a web link; a scope holding two
distinct addresses of the same kind is ambiguous and never guessed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from urllib.parse import urljoin

import httpx

from discoverer.errors import AmbiguousContactLink, NoContactLinkFound, RecordError
from discoverer.pipeline.document import Document
from discoverer.pipeline.name_elements import NameElement
from discoverer.schemas import ContactKind
from discoverer.textutils import deobfuscate_emails, find_emails, sanitize_mailto

MAX_SCOPES = 5

_NON_WEB_PREFIXES = ("mailto:", "javascript:", "tel:", "sms:", "fax:", "data:", "#")


@dataclass(frozen=True)
class ContactLink:
    kind: ContactKind
    address: str
    node: int
    url: Optional[str] = None


def resolve_address(href: str, base_url: Optional[str] = None) -> str:
    href = (href or "").strip()
    if base_url and not href.lower().startswith(("http://", "https://")):
        return urljoin(base_url, href)
    return href


def is_web_href(href: str) -> bool:
    h = (href or "").strip().lower()
    return bool(h) and not h.startswith(_NON_WEB_PREFIXES)


def _emails_in_attributes(doc: Document, indices) -> List[str]:
    found: List[str] = []
    for i in indices:
        for value in doc.attribute_values(i):
            email = sanitize_mailto(value)
            if email:
                found.append(email)
            elif "@" in value:
                found.extend(find_emails(value))
    return found


def _distinct(values: List[str]) -> List[str]:
    seen = set()
    out = []
    for v in values:
        key = v.lower()
        if key not in seen:
            seen.add(key)
            out.append(v)
    return out


def scope_emails(doc: Document, scope: int) -> List[str]:
    """Distinct emails in a subtree's attributes and text.

    Obfuscated forms are decoded only when no plain address is present.
    """
    elements = [i for i in doc.descendants(scope) if doc.nodes[i].is_element]
    text = doc.text(scope)
    emails = _distinct(_emails_in_attributes(doc, elements) + find_emails(text))
    if not emails:
        emails = deobfuscate_emails(text)
    return emails


def scope_weblinks(doc: Document, scope: int, base_url: Optional[str] = None) -> List[str]:
    hrefs = []
    for i in doc.descendants(scope):
        node = doc.nodes[i]
        if node.is_element and node.tag in ("a", "area"):
            href = node.attr("href")
            if is_web_href(href):
                hrefs.append(resolve_address(href, base_url))
    return _distinct(hrefs)


def node_emails(doc: Document, index: int) -> List[str]:
    """Distinct emails in one node's own attributes and own text."""
    text = doc.own_text(index)
    emails = _distinct(_emails_in_attributes(doc, [index]) + find_emails(text))
    if not emails:
        emails = deobfuscate_emails(text)
    return emails


def node_weblink(doc: Document, index: int, base_url: Optional[str] = None) -> Optional[str]:
    node = doc.nodes[index]
    if node.is_element and node.tag in ("a", "area"):
        href = node.attr("href")
        if is_web_href(href):
            return resolve_address(href, base_url)
    return None


def _index_of(target: Union[NameElement, int]) -> int:
    return target.index if isinstance(target, NameElement) else int(target)


class StructuredContactLinkLocator:
    """Ancestor climb bounded to MAX_SCOPES scopes (the element plus four ancestors).

    Results, failures included, are memoized per element for this document.
    """

    def __init__(self, document: Document, base_url: Optional[str] = None, max_scopes: int = MAX_SCOPES) -> None:
        self.document = document
        self.base_url = base_url
        self.max_scopes = max_scopes
        self._cache: Dict[int, Union[ContactLink, RecordError]] = {}

    def scopes(self, index: int) -> List[int]:
        out = []
        for anc in self.document.ancestors(index):
            if len(out) >= self.max_scopes:
                break
            out.append(anc)
        return out

    def locate(self, target: Union[NameElement, int]) -> ContactLink:
        index = _index_of(target)
        if index not in self._cache:
            try:
                self._cache[index] = self._locate(index)
            except (NoContactLinkFound, AmbiguousContactLink) as e:
                self._cache[index] = e
        cached = self._cache[index]
        if isinstance(cached, RecordError):
            raise cached
        return cached

    def _locate(self, index: int) -> ContactLink:
        scopes = self.scopes(index)
        for scope in scopes:
            emails = scope_emails(self.document, scope)
            if len(emails) > 1:
                raise AmbiguousContactLink(
                    f"{len(emails)} distinct emails near {self.document.describe(index)}", emails
                )
            if emails:
                return ContactLink(ContactKind.EMAIL, emails[0], scope)
        for scope in scopes:
            links = scope_weblinks(self.document, scope, self.base_url)
            if len(links) > 1:
                raise AmbiguousContactLink(
                    f"{len(links)} distinct web links near {self.document.describe(index)}", links
                )
            if links:
                return ContactLink(ContactKind.WEB, links[0], scope, url=links[0])
        raise NoContactLinkFound(f"no contact link within {len(scopes)} scopes of {self.document.describe(index)}")


class UnstructuredContactLinkLocator:
    """Scans the nodes recorded around a name element by the forward flattening.

    With direction "preceding" the element's intermediate nodes are scanned;
    with "following" the element itself and the nodes up to the next name
    element. A node holding several distinct emails is skipped.
    """

    def __init__(self, document: Document, base_url: Optional[str] = None, direction: str = "preceding") -> None:
        if direction not in ("preceding", "following"):
            raise ValueError(f"unknown direction: {direction!r}")
        self.document = document
        self.base_url = base_url
        self.direction = direction
        self._cache: Dict[int, Union[ContactLink, RecordError]] = {}

    def candidate_nodes(self, name_element: NameElement) -> List[int]:
        if self.direction == "following":
            return [name_element.index] + list(name_element.following_nodes)
        return list(name_element.intermediate_nodes)

    def locate(self, name_element: NameElement) -> ContactLink:
        index = name_element.index
        if index not in self._cache:
            try:
                self._cache[index] = self._locate(name_element)
            except NoContactLinkFound as e:
                self._cache[index] = e
        cached = self._cache[index]
        if isinstance(cached, RecordError):
            raise cached
        return cached

    def _locate(self, name_element: NameElement) -> ContactLink:
        nodes = self.candidate_nodes(name_element)
        for n in nodes:
            emails = node_emails(self.document, n)
            if len(emails) == 1:
                return ContactLink(ContactKind.EMAIL, emails[0], n)
        for n in nodes:
            link = node_weblink(self.document, n, self.base_url)
            if link:
                return ContactLink(ContactKind.WEB, link, n, url=link)
        raise NoContactLinkFound(
            f"no contact link among {len(nodes)} nodes around {self.document.describe(name_element.index)}"
        )


class WebLinkFollower:
    """Reads the first email address from the page a web link points to.

    `fetcher` is anything with `fetch(url)` returning an object with an
    `html` attribute (StaticFetcher). Pages are fetched at most once.
    """

    def __init__(self, fetcher) -> None:
        self.fetcher = fetcher
        self._cache: Dict[str, Optional[str]] = {}

    def email_from_weblink(self, url: str) -> Optional[str]:
        if not url or url.strip().lower().startswith("javascript:"):
            return None
        if url not in self._cache:
            self._cache[url] = self._fetch_email(url)
        return self._cache[url]

    def _fetch_email(self, url: str) -> Optional[str]:
        try:
            result = self.fetcher.fetch(url)
        except httpx.HTTPError as e:
            print(f"  ⚠️  Could not follow {url}: {e}")
            return None
        if result.blocked_by_robots or not result.html:
            return None
        page = Document.from_html(result.html)
        emails = scope_emails(page, 0)
        return emails[0] if emails else None

