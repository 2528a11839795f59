"""
Name dictionaries and the "looks like a personal name" predicate.

Both are capabilities injected into the extraction core: the flattener asks
a NamePredicate about each text run, chunk handlers ask a SurnameLookup
about each token. Neither is mutated after construction.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol, Set

from discoverer.textutils import (
    EMAIL_PATTERN,
    NAME_PARTICLES,
    fold_word,
    normalize_text,
    split_honorifics,
    split_parenthesised,
    strip_token,
)


class SurnameLookup(Protocol):
    def is_known_surname(self, word: str) -> bool: ...


NamePredicate = Callable[[str], bool]


class NameDictionary:
    """Accent- and case-insensitive word set.

    Files hold one word per line; anything after a comma or tab is ignored
    (frequency columns) and lines starting with '#' are comments.
    """

    def __init__(self, words: Optional[Iterable[str]] = None) -> None:
        self._words: Set[str] = set()
        for w in words or ():
            folded = fold_word(strip_token(w))
            if folded:
                self._words.add(folded)

    @classmethod
    def from_file(cls, path: Path | str, encoding: str = "utf-8") -> "NameDictionary":
        words = []
        for line in Path(path).read_text(encoding=encoding).splitlines():
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            words.append(re.split(r"[,\t]", s, maxsplit=1)[0])
        return cls(words)

    def __len__(self) -> int:
        return len(self._words)

    def __bool__(self) -> bool:
        return bool(self._words)

    def contains(self, word: str) -> bool:
        return fold_word(strip_token(word)) in self._words

    # SurnameLookup
    def is_known_surname(self, word: str) -> bool:
        return self.contains(word)


EMPTY_DICTIONARY = NameDictionary()


class LooksLikeName:
    """Shape heuristic for personal names.

    Accepts 2-6 name tokens (after honorifics and parenthesised remarks are
    removed), each containing a letter and starting with an uppercase letter
    unless it is a lowercase particle such as 'de' or 'van'. Text containing
    digits, emails or URLs is rejected, as are generic section headers. When
    dictionaries are supplied at least one token must be a known first name
    or surname.
    """

    stoplist = {
        "our team", "team", "people", "staff", "contact", "contacts", "contact us",
        "news", "press", "mailing address", "branch hours", "executive team",
        "support", "department", "services", "resources", "home", "about us",
        "read more", "more info", "privacy policy", "terms of use",
    }
    stop_tokens = {
        "department", "faculty", "school", "university", "office", "services",
        "team", "email", "e-mail", "phone", "tel", "fax", "contact", "home",
        "page", "website", "news", "copyright", "all", "rights", "reserved",
    }
    _allowed_chars = re.compile(r"^[^\W\d_]+(?:[.'’\-][^\W\d_]*)*\.?$")

    def __init__(
        self,
        surnames: Optional[SurnameLookup] = None,
        first_names: Optional[NameDictionary] = None,
        min_tokens: int = 2,
        max_tokens: int = 6,
    ) -> None:
        self.surnames = surnames
        self.first_names = first_names
        self.min_tokens = min_tokens
        self.max_tokens = max_tokens

    def __call__(self, text: str) -> bool:
        s = normalize_text(text)
        if not s or len(s) > 120:
            return False
        if s.lower() in self.stoplist:
            return False
        if EMAIL_PATTERN.search(s) or re.search(r"(?i)https?://|www\.", s):
            return False
        if any(ch.isdigit() for ch in s):
            return False
        s, _ = split_parenthesised(s)
        if s.count(",") > 1:
            return False
        tokens = [strip_token(t) for t in s.replace(",", " ").split()]
        tokens = [t for t in tokens if t]
        _, tokens = split_honorifics(tokens)
        if not (self.min_tokens <= len(tokens) <= self.max_tokens):
            return False
        capitalised = 0
        for tok in tokens:
            if not self._allowed_chars.match(tok):
                return False
            if fold_word(tok) in self.stop_tokens:
                return False
            if tok[0].isupper():
                capitalised += 1
            elif tok.lower() not in NAME_PARTICLES:
                return False
        if capitalised < self.min_tokens:
            return False
        if tokens[0].lower() in NAME_PARTICLES or tokens[-1].lower() in NAME_PARTICLES:
            return False
        return self._dictionary_agrees(tokens)

    def _dictionary_agrees(self, tokens) -> bool:
        have_surnames = self.surnames is not None and bool(self.surnames)
        have_first = self.first_names is not None and bool(self.first_names)
        if not (have_surnames or have_first):
            return True
        for tok in tokens:
            if have_surnames and self.surnames.is_known_surname(tok):
                return True
            if have_first and self.first_names.contains(tok):
                return True
        return False
