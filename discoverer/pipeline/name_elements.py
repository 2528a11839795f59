from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from discoverer.dictionary import NamePredicate
from discoverer.pipeline.document import Document, DocNode
from discoverer.pipeline.flattener import BackwardFlattener, DocumentFlattener, ForwardFlattener
from discoverer.progress import ProgressSink


@dataclass(frozen=True)
class NameElement:
    """Read-only handle to an element holding a name-shaped text run.

    `intermediate_nodes` (unstructured mode only) are the elements with
    non-name text between the previous name element and this one;
    `following_nodes` those between this one and the next.
    """
    document: Document = field(repr=False, compare=False)
    index: int
    text: str
    intermediate_nodes: Tuple[int, ...] = ()
    following_nodes: Tuple[int, ...] = ()

    @property
    def node(self) -> DocNode:
        return self.document.nodes[self.index]

    @property
    def tag(self) -> str:
        return self.node.tag


class NameElementFinder:
    flattener_cls: type = DocumentFlattener

    def __init__(
        self,
        document: Document,
        is_name: NamePredicate,
        encoding: str = "utf-8",
        progress: Optional[ProgressSink] = None,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> None:
        self.document = document
        self.flattener = self.flattener_cls(
            document, is_name, encoding=encoding, progress=progress, checkpoint=checkpoint
        )
        self._name_elements: Optional[List[NameElement]] = None

    @property
    def name_elements(self) -> List[NameElement]:
        if self._name_elements is None:
            self._name_elements = self._build()
        return list(self._name_elements)

    @property
    def count(self) -> int:
        return len(self.name_elements)

    def _build(self) -> List[NameElement]:
        raise NotImplementedError


class StructuredNameElementFinder(NameElementFinder):
    """One name element per element of the backward flattening.

    Suited to pages with repeated, uniform records where climbing ancestors
    is enough to relate a name to its address.
    """

    flattener_cls = BackwardFlattener

    def _build(self) -> List[NameElement]:
        fl = self.flattener
        return [NameElement(self.document, idx, fl.name_text(idx)) for idx in fl.flatten()]


class UnstructuredNameElementFinder(NameElementFinder):
    """Name elements from the forward flattening, with their intermediate nodes."""

    flattener_cls = ForwardFlattener

    def _build(self) -> List[NameElement]:
        fl = self.flattener
        elements = fl.flatten()
        result = []
        for pos, idx in enumerate(elements):
            if pos + 1 < len(elements):
                following = fl.intermediate_nodes(elements[pos + 1])
            else:
                following = fl.trailing
            result.append(
                NameElement(
                    self.document,
                    idx,
                    fl.name_text(idx),
                    intermediate_nodes=tuple(fl.intermediate_nodes(idx)),
                    following_nodes=tuple(following),
                )
            )
        return result
