"""Helpers for hashtag and keyword matching.

Hashtag search is expressed as a regular expression that is handed to the
store as a bound parameter. The pattern only uses ``\\s``/``\\W`` escapes so it
is understood by Python's ``re`` (SQLite), ICU (MySQL 8) and PostgreSQL.
"""

import re
from typing import List

TAG_RE = re.compile(r"^\w+$")
WORD_RE = re.compile(r"\w+")


def normalize_tag(tag: str | None) -> str | None:
    """Strip surrounding whitespace and one leading ``#``.

    Returns ``None`` when the remainder is not a single run of word
    characters.
    """
    if tag is None:
        return None
    tag = tag.strip()
    if tag.startswith("#"):
        tag = tag[1:]
    if not TAG_RE.match(tag):
        return None
    return tag


def hashtag_pattern(tag: str, trailing_boundary: bool = True) -> str:
    """Build the regular expression matching ``#tag`` as a whole token.

    ``tag`` must already be normalized; it contains only word characters so
    it needs no escaping.
    """
    pattern = r"(^|\s)#" + tag
    if trailing_boundary:
        pattern += r"(\W|$)"
    return pattern


def tokenize(text: str | None) -> List[str]:
    """Lower-cased word tokens of ``text``."""
    if not text:
        return []
    return WORD_RE.findall(text.lower())


def fts5_any_query(keywords: str | None) -> str | None:
    """SQLite FTS5 query matching any keyword, or ``None`` without keywords.

    Each token is quoted so FTS5 operators in user input stay literal.
    """
    tokens = list(dict.fromkeys(tokenize(keywords)))
    if not tokens:
        return None
    return " OR ".join(f'"{token}"' for token in tokens)


def tsquery_any(keywords: str | None) -> str | None:
    """PostgreSQL ``to_tsquery`` text matching any keyword."""
    tokens = list(dict.fromkeys(tokenize(keywords)))
    if not tokens:
        return None
    return " | ".join(tokens)
