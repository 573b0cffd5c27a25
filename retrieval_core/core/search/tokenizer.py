"""
Keyword extraction for lexical search.

Lowercases the query, drops everything that is not a word character or
whitespace, splits on whitespace and keeps words longer than two characters.
Duplicates are removed so the score denominator counts each keyword once.
Also expands queries by swapping common abbreviations for their synonyms.

Dependencies: re (stdlib)
System role: Query normalisation for keyword search and query expansion
"""

import re

_NON_WORD = re.compile(r"[^\w\s]")
MIN_KEYWORD_LENGTH = 3


def extract_keywords(query: str) -> list[str]:
    """
    Extract distinct lowercase keywords in first-seen order.

    Args:
        query: Raw query text

    Returns:
        list[str]: Keywords; empty when nothing usable remains
    """
    cleaned = _NON_WORD.sub("", query.lower())
    seen: dict[str, None] = {}
    for word in cleaned.split():
        if len(word) >= MIN_KEYWORD_LENGTH:
            seen.setdefault(word, None)
    return list(seen)


MAX_EXPANSIONS = 5
SYNONYMS: dict[str, list[str]] = {
    "auth": ["authentication", "authorization", "login", "access"],
    "config": ["configuration", "setup", "settings"],
    "error": ["issue", "problem", "bug", "failure"],
    "api": ["endpoint", "service", "interface"],
    "db": ["database", "data store", "storage"],
    "user": ["account", "profile", "member"],
}


def expand_query(query: str) -> list[str]:
    """
    Variants of a query with known terms replaced by their synonyms.

    Only whole words are replaced, case-insensitively, one term per variant.

    Args:
        query: Raw query text

    Returns:
        list[str]: The query itself first, then up to four variants
    """
    expansions = [query]
    for word in dict.fromkeys(query.lower().split()):
        pattern = re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
        for synonym in SYNONYMS.get(word, []):
            expanded = pattern.sub(synonym, query)
            if expanded != query and expanded not in expansions:
                expansions.append(expanded)
    return expansions[:MAX_EXPANSIONS]
