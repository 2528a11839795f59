from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from selectolax.parser import HTMLParser, Node

from discoverer.errors import EncodingUnsupported
from discoverer.textutils import normalize_text

ELEMENT = "element"
TEXT = "text"

# Subtrees that never carry visible record text.
SKIPPED_TAGS = {"script", "style", "noscript", "template", "head", "svg"}


@dataclass
class DocNode:
    index: int
    kind: str
    tag: str
    parent: Optional[int]
    attrs: Tuple[Tuple[str, str], ...] = ()
    children: List[int] = field(default_factory=list)
    text: str = ""

    @property
    def is_element(self) -> bool:
        return self.kind == ELEMENT

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT

    def attr(self, key: str, default: str = "") -> str:
        for k, v in self.attrs:
            if k == key:
                return v
        return default


class Document:
    """Arena of element and text nodes addressed by integer index.

    Index 0 is the root element. Parent links are indices used only for
    read-only ancestor walks; the tree is never mutated once built.
    """

    def __init__(self) -> None:
        self.nodes: List[DocNode] = []

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> DocNode:
        return self.nodes[0]

    # -------------------------
    # Building
    # -------------------------
    def add_element(self, tag: str, attrs: Optional[Dict[str, str]] = None, parent: Optional[int] = None) -> int:
        pairs = tuple((k, "" if v is None else str(v)) for k, v in (attrs or {}).items())
        return self._append(DocNode(index=len(self.nodes), kind=ELEMENT, tag=tag.lower(), parent=parent, attrs=pairs))

    def add_text(self, text: str, parent: int) -> int:
        return self._append(DocNode(index=len(self.nodes), kind=TEXT, tag="#text", parent=parent, text=text))

    def _append(self, node: DocNode) -> int:
        if node.parent is None and self.nodes:
            raise ValueError("document already has a root")
        self.nodes.append(node)
        if node.parent is not None:
            self.nodes[node.parent].children.append(node.index)
        return node.index

    @classmethod
    def from_html(cls, markup: str | bytes, encoding: str = "utf-8") -> "Document":
        """Parse markup with selectolax and copy it into an arena.

        Bytes are decoded with `encoding`; an unknown codec or undecodable
        input raises EncodingUnsupported.
        """
        check_encoding(encoding)
        if isinstance(markup, bytes):
            try:
                markup = markup.decode(encoding)
            except UnicodeDecodeError as e:
                raise EncodingUnsupported(f"cannot decode document as {encoding}: {e}") from e
        tree = HTMLParser(markup)
        root = tree.root
        doc = cls()
        if root is None:
            doc.add_element("html")
            return doc
        doc.add_element(root.tag or "html", _attributes(root))
        # (selectolax node, arena index of its parent); children pushed in reverse
        # so they are popped, and therefore numbered, in document order.
        stack: List[Tuple[Node, int]] = [(ch, 0) for ch in reversed(list(_children(root)))]
        while stack:
            sel, parent = stack.pop()
            tag = sel.tag or ""
            if tag == "-text":
                txt = sel.text(deep=False) or ""
                if txt:
                    doc.add_text(txt, parent)
                continue
            if tag.startswith("_") or tag.startswith("-") or tag.lower() in SKIPPED_TAGS:
                continue
            idx = doc.add_element(tag, _attributes(sel), parent)
            stack.extend((ch, idx) for ch in reversed(list(_children(sel))))
        return doc

    # -------------------------
    # Read-only navigation
    # -------------------------
    def node(self, index: int) -> DocNode:
        return self.nodes[index]

    def parent(self, index: int) -> Optional[int]:
        return self.nodes[index].parent

    def ancestors(self, index: int, include_self: bool = True) -> Iterator[int]:
        cur: Optional[int] = index if include_self else self.nodes[index].parent
        while cur is not None:
            yield cur
            cur = self.nodes[cur].parent

    def descendants(self, index: int, include_self: bool = True) -> Iterator[int]:
        """Pre-order walk of the subtree rooted at index."""
        stack = [index] if include_self else list(reversed(self.nodes[index].children))
        while stack:
            cur = stack.pop()
            yield cur
            stack.extend(reversed(self.nodes[cur].children))

    def elements_by_tag(self, tag: str, within: int = 0) -> List[int]:
        tag = tag.lower()
        return [i for i in self.descendants(within) if self.nodes[i].is_element and self.nodes[i].tag == tag]

    def own_text(self, index: int) -> str:
        node = self.nodes[index]
        if node.is_text:
            return normalize_text(node.text)
        parts = [self.nodes[c].text for c in node.children if self.nodes[c].is_text]
        return normalize_text(" ".join(parts))

    def text(self, index: int) -> str:
        """Whitespace-collapsed text of the whole subtree."""
        parts = [self.nodes[i].text for i in self.descendants(index) if self.nodes[i].is_text]
        return normalize_text(" ".join(parts))

    def attribute_values(self, index: int) -> List[str]:
        return [v for _, v in self.nodes[index].attrs if v]

    def describe(self, index: int) -> str:
        node = self.nodes[index]
        if node.is_text:
            return f"#text {normalize_text(node.text)[:40]!r}"
        return f"<{node.tag}> {self.own_text(index)[:40]!r}"


def check_encoding(encoding: str) -> str:
    try:
        return codecs.lookup(encoding).name
    except (LookupError, TypeError) as e:
        raise EncodingUnsupported(f"unsupported encoding: {encoding!r}") from e


def _children(node: Node) -> Iterator[Node]:
    ch = node.child
    while ch is not None:
        yield ch
        ch = ch.next


def _attributes(node: Node) -> Dict[str, str]:
    return {k: (v or "") for k, v in (node.attributes or {}).items()}
