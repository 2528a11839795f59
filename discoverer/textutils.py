from __future__ import annotations

import html
import re
import unicodedata
from typing import List, Optional, Tuple

# local@sub.domain.tld
EMAIL_PATTERN = re.compile(r"(?:[\w+-]+\.)*[\w+-]+@(?:[\w-]+\.)+[A-Za-z]{2,}\b")
EMAIL_FULLMATCH = re.compile(r"^(?:[\w+-]+\.)*[\w+-]+@(?:[\w-]+\.)+[A-Za-z]{2,}$")

# Leading honorifics, matched case-insensitively with or without the dot.
HONORIFICS = (
    "dr", "dra", "prof", "ing", "lic", "d", "dña", "dna",
    "mr", "mrs", "ms", "sr", "sra", "srta",
)

# Lowercase particles that may sit inside a personal name.
NAME_PARTICLES = {
    "de", "del", "della", "der", "di", "da", "dos", "das", "du",
    "la", "le", "van", "von", "den", "ten", "ter", "y", "e", "i", "bin", "ibn", "al",
}

_WS_RE = re.compile(r"\s+")
_STANDALONE_NUMBER_RE = re.compile(r"(?<!\S)\d+(?:[.,]\d+)*(?!\S)")
_PAREN_RE = re.compile(r"\(([^()]*)\)")


def normalize_text(s: Optional[str]) -> str:
    """Decode entities, turn non-breaking spaces into spaces and collapse whitespace."""
    if not s:
        return ""
    s = html.unescape(s)
    s = s.replace("\u00a0", " ").replace("\u200b", "")
    return _WS_RE.sub(" ", s).strip()


def fold_word(word: str) -> str:
    """Lowercase and strip accents so 'José' and 'jose' compare equal."""
    w = (word or "").strip().lower().replace("ß", "ss")
    decomposed = unicodedata.normalize("NFD", w)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def strip_token(tok: str) -> str:
    return tok.strip(",;:()[]\"'«»")


def split_parenthesised(s: str) -> Tuple[str, List[str]]:
    """Remove '(...)' groups from s; returns the remaining text and the removed groups."""
    groups = [g.strip() for g in _PAREN_RE.findall(s) if g.strip()]
    remaining = _PAREN_RE.sub(" ", s)
    return _WS_RE.sub(" ", remaining).strip(), groups


def remove_standalone_numbers(s: str) -> str:
    return _WS_RE.sub(" ", _STANDALONE_NUMBER_RE.sub(" ", s)).strip()


def is_honorific(tok: str) -> bool:
    return fold_word(tok.rstrip(".")) in HONORIFICS


def split_honorifics(tokens: List[str]) -> Tuple[List[str], List[str]]:
    """Split leading honorific tokens off a token list.

    A single-letter honorific ('D.') only counts when written with the dot,
    otherwise an initial like 'D' would be swallowed.
    """
    titles: List[str] = []
    i = 0
    while i < len(tokens) - 1:
        tok = tokens[i]
        bare = tok.rstrip(".")
        if not is_honorific(tok):
            break
        if len(bare) == 1 and not tok.endswith("."):
            break
        titles.append(tok)
        i += 1
    return titles, tokens[i:]


def find_emails(text: str) -> List[str]:
    """Distinct emails in order of first appearance, compared case-insensitively."""
    seen = set()
    out: List[str] = []
    for m in EMAIL_PATTERN.finditer(text or ""):
        e = m.group(0).strip(".").lower()
        if e not in seen:
            seen.add(e)
            out.append(e)
    return out


def sanitize_mailto(href: str) -> Optional[str]:
    """Strip 'mailto:' and any query/fragment; returns the email or None."""
    if not href:
        return None
    s = href.strip()
    raw = s[7:] if s.lower().startswith("mailto:") else s
    email = raw.split("?", 1)[0].split("#", 1)[0].strip().lower()
    if EMAIL_FULLMATCH.match(email):
        return email
    return None


def deobfuscate_emails(text: str) -> List[str]:
    """Best-effort decoding of 'name (at) host (dot) org' style addresses."""
    if not text:
        return []
    s = html.unescape(text).replace("\u200b", "")
    if not re.search(r"(?i)[\(\[]\s*(?:at|arroba)\s*[\)\]]|\s(?:at|arroba)\s", s):
        return []
    s = re.sub(r"(?i)\s*[\(\[]\s*(?:at|arroba)\s*[\)\]]\s*", "@", s)
    s = re.sub(r"(?i)\s*[\(\[]\s*(?:dot|punto)\s*[\)\]]\s*", ".", s)
    s = re.sub(r"(?i)(\w)\s+at\s+(\w)", r"\1@\2", s)
    s = re.sub(r"(?i)(\w)\s+dot\s+(\w)", r"\1.\2", s)
    return find_emails(s)
