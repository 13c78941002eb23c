"""Whitespace normalization, keyword extraction and word-window chunking."""

from __future__ import annotations

import re
from typing import List

DEFAULT_CHUNK_SIZE = 800
DEFAULT_OVERLAP = 120
MIN_KEYWORD_LENGTH = 3
RAW_TERM_LIMIT = 5

# English + Spanish stopwords; keyword bags are language-agnostic.
STOPWORDS = frozenset(
    {
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "can", "need", "to", "of",
        "in", "for", "on", "with", "at", "by", "from", "as", "into", "through",
        "during", "before", "after", "above", "below", "between", "under",
        "again", "further", "then", "once", "here", "there", "when", "where",
        "why", "how", "all", "each", "few", "more", "most", "other", "some",
        "such", "no", "nor", "not", "only", "own", "same", "so", "than", "too",
        "very", "just", "and", "but", "if", "or", "because", "until", "while",
        "about", "against", "this", "that", "these", "those", "what", "which",
        "who", "whom", "whose", "i", "you", "he", "she", "it", "we", "they",
        "your", "our", "their", "its", "my", "me", "us", "them",
        "que", "de", "en", "el", "la", "los", "las", "un", "una", "y", "o",
        "por", "para", "con", "sin", "sobre", "como", "es", "son", "del",
        "al", "lo", "le", "les", "se", "su", "sus", "mi", "tu", "muy", "mas",
        "pero", "ya", "esta", "este", "esto", "estos", "estas", "hay",
    }
)

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)


def normalize_whitespace(text: str | None) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def extract_keywords(text: str | None) -> List[str]:
    """Lowercased, stopword-filtered, deduplicated keywords in first-seen order."""
    cleaned = _NON_WORD.sub(" ", (text or "").lower())
    seen: set[str] = set()
    keywords: List[str] = []
    for word in cleaned.split():
        if len(word) < MIN_KEYWORD_LENGTH or word in STOPWORDS or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
    return keywords


def query_terms(query: str | None) -> List[str]:
    """
    Keywords for a retrieval query. Falls back to the first raw
    whitespace-split terms when every word was filtered out.
    """
    keywords = extract_keywords(query)
    if keywords:
        return keywords
    seen: set[str] = set()
    raw: List[str] = []
    for term in normalize_whitespace(query).lower().split(" "):
        if term and term not in seen:
            seen.add(term)
            raw.append(term)
    return raw[:RAW_TERM_LIMIT]


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> List[str]:
    """Split into overlapping word windows; consecutive windows share `overlap` words."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be in [0, chunk_size)")
    normalized = normalize_whitespace(text)
    if not normalized:
        return []
    words = normalized.split(" ")
    chunks: List[str] = []
    start = 0
    while start < len(words):
        end = min(start + chunk_size, len(words))
        chunks.append(" ".join(words[start:end]))
        if end == len(words):
            break
        start = max(0, end - overlap)
    return chunks
