"""
Progress reporting for one extraction run.

The core pushes fire-and-forget notifications to a ProgressSink. The
StatusReporter turns raw step counts into percent-complete messages at 10%
boundaries and never lets a failing consumer interrupt extraction. Any other
sink handed to the core is wrapped in GuardedProgress for the same reason.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from discoverer.ops_logger import OpsLogger


class ExtractionStage(str, Enum):
    PARSING_HTML = "parsing_html"
    FINDING_NAMES = "finding_names"
    FINDING_CONTACT_LINKS = "finding_contact_links"
    FETCHING_EMAILS_FROM_WEBLINKS = "fetching_emails_from_weblinks"
    EXTRACTING_INDIVIDUALS = "extracting_individuals"
    DONE = "done"


class ProgressSink(Protocol):
    def set_total_steps(self, n: int) -> None: ...

    def increment_progress(self) -> None: ...

    def report_text(self, msg: str) -> None: ...

    def set_stage(self, stage: ExtractionStage) -> None: ...


class NullProgress:
    """Sink that ignores every notification."""

    def set_total_steps(self, n: int) -> None:
        pass

    def increment_progress(self) -> None:
        pass

    def report_text(self, msg: str) -> None:
        pass

    def set_stage(self, stage: ExtractionStage) -> None:
        pass


class GuardedProgress:
    """Wraps a caller-supplied sink; its errors are counted, never raised."""

    def __init__(self, sink: ProgressSink) -> None:
        self.sink = sink
        self.errors = 0

    def set_total_steps(self, n: int) -> None:
        self._call("set_total_steps", n)

    def increment_progress(self) -> None:
        self._call("increment_progress")

    def report_text(self, msg: str) -> None:
        self._call("report_text", msg)

    def set_stage(self, stage: ExtractionStage) -> None:
        self._call("set_stage", stage)

    def _call(self, method: str, *args: Any) -> None:
        try:
            getattr(self.sink, method)(*args)
        except Exception:
            self.errors += 1


class StatusReporter:
    """ProgressSink that fans out to consumers at 10% steps.

    Consumers are callables receiving an event dict with keys `event`
    ("stage", "percent", "text"), `stage` and either `percent` or `message`.
    """

    report_every_pct = 10

    def __init__(self, consumers: Optional[List[Callable[[Dict[str, Any]], None]]] = None) -> None:
        self.consumers = list(consumers or [])
        self.stage: Optional[ExtractionStage] = None
        self.total_steps = 0
        self.steps_done = 0
        self._last_reported_pct = -1
        self.consumer_errors = 0

    @property
    def percent_complete(self) -> int:
        if self.total_steps <= 0:
            return 0
        return min(100, int(self.steps_done * 100 / self.total_steps))

    def set_stage(self, stage: ExtractionStage) -> None:
        self.stage = ExtractionStage(stage)
        self.total_steps = 0
        self.steps_done = 0
        self._last_reported_pct = -1
        self._notify({"event": "stage"})

    def set_total_steps(self, n: int) -> None:
        self.total_steps = max(0, int(n))
        self.steps_done = 0
        self._last_reported_pct = -1

    def increment_progress(self) -> None:
        self.steps_done += 1
        pct = self.percent_complete
        step = pct - pct % self.report_every_pct
        if step > self._last_reported_pct:
            self._last_reported_pct = step
            self._notify({"event": "percent", "percent": step})

    def report_text(self, msg: str) -> None:
        self._notify({"event": "text", "message": msg})

    def _notify(self, event: Dict[str, Any]) -> None:
        event["stage"] = self.stage.value if self.stage else None
        for consumer in self.consumers:
            try:
                consumer(event)
            except Exception:
                # Fire-and-forget: a broken consumer must not stop extraction.
                self.consumer_errors += 1


class OpsProgressConsumer:
    """Forwards stage changes and percent steps to an OpsLogger."""

    def __init__(self, ops_logger: OpsLogger, source: str = "") -> None:
        self.ops_logger = ops_logger
        self.source = source

    def __call__(self, event: Dict[str, Any]) -> None:
        if event.get("event") == "text":
            return
        record = {"source": self.source}
        record.update(event)
        self.ops_logger.emit(record)


def print_consumer(event: Dict[str, Any]) -> None:
    """Human-readable progress lines on stderr."""
    kind = event.get("event")
    if kind == "stage":
        print(f"  ⏳ {event.get('stage')}", file=sys.stderr)
    elif kind == "percent":
        print(f"     {event.get('stage')}: {event.get('percent')}%", file=sys.stderr)


def guard_progress(sink: Optional[ProgressSink]) -> ProgressSink:
    """Sink safe to call from the extraction core."""
    if sink is None:
        return NullProgress()
    if isinstance(sink, (NullProgress, StatusReporter, GuardedProgress)):
        return sink
    return GuardedProgress(sink)
