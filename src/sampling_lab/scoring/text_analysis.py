"""
Text analysis functions

Segments raw text into sentences, words, keywords, and paragraphs.
All functions are pure and total: empty input yields empty output.
"""

from __future__ import annotations

import math
import re

from sampling_lab.domain.constants import PUNCTUATION_CHARS, STOPWORDS

_SENTENCE_BOUNDARY_RE = re.compile(r"[.!?]+")
_PARAGRAPH_BOUNDARY_RE = re.compile(r"\n\n+")
# Word characters are ASCII-only so scores match those stored by earlier deployments
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE_RE = re.compile(r"\s+")

# Tokens this short are treated as noise
_MIN_WORD_LENGTH = 3


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, with .5 always rounding up

    Python's round() uses banker's rounding; scores must round the same way
    regardless of parity.

    Args:
        value: Number to round

    Returns:
        Rounded integer
    """
    return int(math.floor(value + 0.5))


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences on runs of '.', '!' and '?'

    Args:
        text: Raw text

    Returns:
        Trimmed, non-empty sentences
    """
    sentences = (s.strip() for s in _SENTENCE_BOUNDARY_RE.split(text))
    return [s for s in sentences if s]


def extract_words(text: str) -> list[str]:
    """
    Extract lower-cased words, dropping punctuation and tokens of two characters or fewer

    Args:
        text: Raw text

    Returns:
        List of words (duplicates preserved)
    """
    cleaned = _NON_WORD_RE.sub("", text.lower())
    return [w for w in _WHITESPACE_RE.split(cleaned) if len(w) >= _MIN_WORD_LENGTH]


def extract_keywords(text: str) -> list[str]:
    """
    Extract words that are not stop words

    Args:
        text: Raw text

    Returns:
        List of keywords (duplicates preserved)
    """
    return [w for w in extract_words(text) if w not in STOPWORDS]


def split_paragraphs(text: str) -> list[str]:
    """
    Split text into paragraphs on two or more consecutive newlines

    Args:
        text: Raw text

    Returns:
        Non-blank paragraphs (untrimmed)
    """
    return [p for p in _PARAGRAPH_BOUNDARY_RE.split(text) if p.strip()]


def count_punctuation(text: str) -> int:
    """Count sentence and clause punctuation characters"""
    return sum(1 for char in text if char in PUNCTUATION_CHARS)
