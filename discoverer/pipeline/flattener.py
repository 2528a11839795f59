"""
Document flattening: turn a node tree into the document-ordered sequence of
elements whose own text looks like a personal name.

Two traversal directions are provided. BackwardFlattener visits children
last-to-first and prepends, ForwardFlattener visits first-to-last and
appends; both yield the same sequence. ForwardFlattener additionally
records, for each name element, the elements holding non-name text seen
since the previous name element.

Both walks use an explicit stack, so document depth is not bounded by the
interpreter's recursion limit. Visit order matches the recursive
depth-first walk exactly.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Dict, Iterator, List, Optional

from discoverer.dictionary import NamePredicate
from discoverer.errors import TraversalFailure
from discoverer.pipeline.document import Document, check_encoding
from discoverer.progress import ProgressSink, guard_progress
from discoverer.textutils import normalize_text


class NameSequenceCursor:
    """Walks a name sequence from the last element to the first."""

    def __init__(self, elements: List[int]) -> None:
        self._elements = list(elements)
        self._pos = len(self._elements)

    def size(self) -> int:
        return len(self._elements)

    def has_previous(self) -> bool:
        return self._pos > 0

    def previous(self) -> int:
        if self._pos <= 0:
            raise IndexError("cursor exhausted")
        self._pos -= 1
        return self._elements[self._pos]

    def rewind(self) -> None:
        self._pos = len(self._elements)

    def __iter__(self) -> Iterator[int]:
        while self.has_previous():
            yield self.previous()


class DocumentFlattener:
    """Shared plumbing for both traversal directions.

    One instance is scoped to one document. `flatten()` runs the walk once;
    later calls return the cached sequence.
    """

    direction = ""
    # Text leaves arrive in reverse document order.
    _reverse_leaves = False

    def __init__(
        self,
        document: Document,
        is_name: NamePredicate,
        encoding: str = "utf-8",
        progress: Optional[ProgressSink] = None,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> None:
        self.document = document
        self.is_name = is_name
        self.encoding = check_encoding(encoding)
        self.progress = guard_progress(progress)
        self.checkpoint = checkpoint
        self._elements: Optional[List[int]] = None
        self._name_texts: Dict[int, str] = {}

    @property
    def name_elements(self) -> List[int]:
        if self._elements is None:
            self.flatten()
        return list(self._elements or [])

    def size(self) -> int:
        return len(self.name_elements)

    def cursor(self) -> NameSequenceCursor:
        return NameSequenceCursor(self.name_elements)

    def flatten(self) -> List[int]:
        if self._elements is not None:
            return list(self._elements)
        doc = self.document
        self.progress.set_total_steps(len(doc))
        self._begin()
        stack = [0] if len(doc) else []
        while stack:
            idx = stack.pop()
            if self.checkpoint is not None:
                self.checkpoint()
            self.progress.increment_progress()
            node = doc.nodes[idx]
            if node.is_text:
                self._visit_text(idx, node.parent)
            else:
                stack.extend(self._push_order(node.children))
        self._elements = self._finish()
        self.progress.report_text(f"{self.direction} flattening found {len(self._elements)} name elements")
        return list(self._elements)

    def _test_text(self, text_idx: int, element_idx: int) -> Optional[bool]:
        """None for blank text, else the predicate's verdict.

        A positive verdict records the text as the element's name text,
        keeping the first run in document order for either direction.
        """
        text = normalize_text(self.document.nodes[text_idx].text)
        if not text:
            return None
        try:
            verdict = bool(self.is_name(text))
        except Exception as e:
            node = self.document.nodes[element_idx]
            raise TraversalFailure(
                f"Tree walking failed: could not test for nameness ({e})",
                node_tag=node.tag,
                node_text=text,
            ) from e
        if verdict and (self._reverse_leaves or element_idx not in self._name_texts):
            self._name_texts[element_idx] = text
        return verdict

    def name_text(self, element_idx: int) -> str:
        """First name-shaped text run of the element, in document order."""
        if self._elements is None:
            self.flatten()
        return self._name_texts.get(element_idx, "")

    def _report_name(self, element_idx: int) -> None:
        self.progress.report_text(f"Found name: {self._name_texts.get(element_idx, '')}")

    # Direction hooks
    def _begin(self) -> None:
        raise NotImplementedError

    def _push_order(self, children: List[int]) -> List[int]:
        raise NotImplementedError

    def _visit_text(self, text_idx: int, element_idx: int) -> None:
        raise NotImplementedError

    def _finish(self) -> List[int]:
        raise NotImplementedError


class BackwardFlattener(DocumentFlattener):
    """Visits children last-to-first and prepends name elements.

    Text leaves are met in reverse document order, so moving an element to
    the front on every hit leaves each element at the position of its first
    name-shaped text. No element is recorded twice.
    """

    direction = "backward"
    _reverse_leaves = True

    def _begin(self) -> None:
        self._found: "OrderedDict[int, None]" = OrderedDict()

    def _push_order(self, children: List[int]) -> List[int]:
        # Popped from the end, so the last child is visited first.
        return list(children)

    def _visit_text(self, text_idx: int, element_idx: int) -> None:
        if not self._test_text(text_idx, element_idx):
            return
        if element_idx in self._found:
            self._found.move_to_end(element_idx, last=False)
            return
        self._found[element_idx] = None
        self._found.move_to_end(element_idx, last=False)
        self._report_name(element_idx)

    def _finish(self) -> List[int]:
        return list(self._found.keys())


class ForwardFlattener(DocumentFlattener):
    """Visits children first-to-last and appends name elements.

    `intermediate_nodes(element)` lists the elements holding non-name text
    between the previous name element and `element`; `trailing` holds those
    after the last name element.
    """

    direction = "forward"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.trailing: List[int] = []
        self._intermediate: Dict[int, List[int]] = {}

    def _begin(self) -> None:
        self._found: List[int] = []
        self._found_set: set = set()
        self._intermediate: Dict[int, List[int]] = {}
        self._pending: List[int] = []
        self._pending_set: set = set()
        self.trailing: List[int] = []

    def _push_order(self, children: List[int]) -> List[int]:
        return list(reversed(children))

    def _visit_text(self, text_idx: int, element_idx: int) -> None:
        verdict = self._test_text(text_idx, element_idx)
        if verdict is None:
            return
        if verdict:
            if element_idx in self._found_set:
                return
            self._found.append(element_idx)
            self._found_set.add(element_idx)
            self._intermediate[element_idx] = self._pending
            self._pending = []
            self._pending_set = set()
            self._report_name(element_idx)
        elif element_idx not in self._pending_set and element_idx not in self._found_set:
            self._pending.append(element_idx)
            self._pending_set.add(element_idx)

    def _finish(self) -> List[int]:
        self.trailing = self._pending
        return list(self._found)

    def intermediate_nodes(self, element_idx: int) -> List[int]:
        if self._elements is None:
            self.flatten()
        return list(self._intermediate.get(element_idx, []))

    def following_nodes(self, element_idx: int) -> List[int]:
        """Non-name elements between `element_idx` and the next name element."""
        elements = self.name_elements
        pos = elements.index(element_idx)
        if pos + 1 < len(elements):
            return self.intermediate_nodes(elements[pos + 1])
        return list(self.trailing)
