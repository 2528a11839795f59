"""
Address Discoverer - error taxonomy

Structural errors (TraversalFailure and subclasses) are fatal for the
document being processed. RecordError subclasses are local to one record
or one strategy and are folded into "no candidate" by the dispatcher.
"""

from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for every error raised by the extraction core."""


class ConfigError(ExtractionError):
    """Configuration file missing, unreadable or invalid."""


class TraversalFailure(ExtractionError):
    """Tree walking failed; no partial result is returned for the document."""

    def __init__(self, message: str, *, node_tag: Optional[str] = None, node_text: Optional[str] = None) -> None:
        self.node_tag = node_tag
        self.node_text = node_text
        detail = message
        if node_tag is not None or node_text is not None:
            excerpt = (node_text or "")[:80]
            detail = f"{message} (node=<{node_tag or '?'}> text={excerpt!r})"
        super().__init__(detail)


class EncodingUnsupported(TraversalFailure):
    """Raw text could not be decoded with the requested encoding."""


class RecordError(ExtractionError):
    """Per-record or per-strategy failure; never aborts a document."""


class NoContactLinkFound(RecordError):
    """No address located for a name element within the search bounds."""


class AmbiguousContactLink(RecordError):
    """More than one distinct address of the same kind in one search scope."""

    def __init__(self, message: str, candidates: Optional[list[str]] = None) -> None:
        self.candidates = list(candidates or [])
        super().__init__(message)


class ChunkUnparsable(RecordError):
    """A chunk handler or record parser could not produce a split."""


class NoLastNameFound(ChunkUnparsable):
    """No token of the chunk is a known surname."""
