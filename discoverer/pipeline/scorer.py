from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Protocol, Sequence, TypeVar

from discoverer.errors import RecordError

T = TypeVar("T")


class Scored(Protocol):
    @property
    def score(self) -> int: ...


class Strategy(Protocol):
    name: str

    def parse(self, item: Any) -> Scored: ...


@dataclass
class DispatchResult(Generic[T]):
    """Outcome of one dispatch.

    `candidate` is None when every strategy failed or scored zero; the
    per-strategy failures are kept for diagnostics only.
    """
    candidate: Optional[T] = None
    strategy: Optional[str] = None
    failures: List[RecordError] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.candidate is not None


class Dispatcher:
    """Runs an ordered list of strategies and keeps the best-scoring result.

    A later strategy replaces the current best only with a strictly greater
    score, so equal scores go to the earlier-registered strategy.
    RecordError from a strategy is collected, never propagated.
    """

    def __init__(self, strategies: Sequence[Strategy]) -> None:
        if not strategies:
            raise ValueError("Dispatcher needs at least one strategy")
        self.strategies = list(strategies)

    def dispatch(self, item: Any) -> DispatchResult:
        result: DispatchResult = DispatchResult()
        top_score = 0
        for strategy in self.strategies:
            try:
                candidate = strategy.parse(item)
            except RecordError as e:
                result.failures.append(e)
                continue
            if candidate is None:
                continue
            score = candidate.score
            if score > top_score:
                top_score = score
                result.candidate = candidate
                result.strategy = getattr(strategy, "name", type(strategy).__name__)
        return result
