"""
Chunk handlers split one raw text fragment into name fields.

Every handler shares the same pre-cleaning: entities and non-breaking
spaces normalized, standalone numbers dropped, parenthesised remarks moved
to `rest` and leading honorifics moved to `title`. Surname lookup is an
injected capability that handlers only read.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from discoverer.dictionary import EMPTY_DICTIONARY, SurnameLookup
from discoverer.errors import ChunkUnparsable, NoLastNameFound
from discoverer.schemas import ParsedName
from discoverer.textutils import (
    NAME_PARTICLES,
    normalize_text,
    remove_standalone_numbers,
    split_honorifics,
    split_parenthesised,
    strip_token,
)


def tokenize(text: str) -> List[str]:
    return [t for t in (strip_token(tok) for tok in text.split()) if t]


def clean_chunk(chunk: str) -> Tuple[str, List[str]]:
    """Normalized chunk text and the parenthesised groups removed from it."""
    text = normalize_text(chunk)
    text, groups = split_parenthesised(text)
    text = remove_standalone_numbers(text)
    return text, [f"({g})" for g in groups]


class ChunkHandler:
    name = "chunk"

    def __init__(self, surnames: Optional[SurnameLookup] = None) -> None:
        self.surnames = surnames if surnames is not None else EMPTY_DICTIONARY

    def is_surname(self, token: str) -> bool:
        return bool(self.surnames.is_known_surname(token))

    def parse(self, chunk: str) -> ParsedName:
        raise NotImplementedError

    def _result(self, first: List[str], last: List[str], titles: List[str], rest: List[str]) -> ParsedName:
        return ParsedName(
            first_name=" ".join(first),
            last_name=" ".join(last),
            title=" ".join(titles),
            rest=" ".join(rest),
            strategy=self.name,
        )


class BasicNameChunkHandler(ChunkHandler):
    """'Last, First' when written that way, else surname-driven, else positional.

    Never raises NoLastNameFound: without a surname hit the tokens are split
    at n // 2 (one token becomes the last name, two become one each unless
    the first is a particle).
    """

    name = "basic"

    def parse(self, chunk: str) -> ParsedName:
        text, rest = clean_chunk(chunk)
        if text.count(",") == 1:
            left, right = (tokenize(part) for part in text.split(","))
            titles, left = split_honorifics(left)
            more_titles, right = split_honorifics(right)
            if left and right:
                return self._result(right, left, titles + more_titles, rest)
        titles, tokens = split_honorifics(tokenize(text.replace(",", " ")))
        if not tokens:
            raise ChunkUnparsable(f"nothing to split in {chunk!r}")
        first: List[str] = []
        last: List[str] = []
        for tok in tokens:
            if last or self.is_surname(tok):
                last.append(tok)
            else:
                first.append(tok)
        if not last:
            first, last = self.positional_split(tokens)
        return self._result(first, last, titles, rest)

    @staticmethod
    def positional_split(tokens: List[str]) -> Tuple[List[str], List[str]]:
        mid = len(tokens) // 2
        first, last = list(tokens[:mid]), list(tokens[mid:])
        # 'Jan van der Berg', 'de Souza': particles belong to the surname
        while first and first[-1].lower() in NAME_PARTICLES:
            last.insert(0, first.pop())
        return first, last


class LastLastNameChunkHandler(ChunkHandler):
    """Known surnames end the name; later non-surname tokens go to `rest`."""

    name = "last_last_name"

    def parse(self, chunk: str) -> ParsedName:
        text, groups = clean_chunk(chunk)
        titles, tokens = split_honorifics(tokenize(text.replace(",", " ")))
        first: List[str] = []
        last: List[str] = []
        rest: List[str] = []
        found_surname = False
        for tok in tokens:
            if self.is_surname(tok):
                last.append(tok)
                found_surname = True
            elif found_surname:
                rest.append(tok)
            else:
                first.append(tok)
        if not found_surname:
            raise NoLastNameFound(f"no known surname in {chunk!r}")
        return self._result(first, last, titles, rest + groups)


def default_chunk_handlers(surnames: Optional[SurnameLookup] = None) -> List[ChunkHandler]:
    return [BasicNameChunkHandler(surnames), LastLastNameChunkHandler(surnames)]
