"""
Token estimation and keyword extraction helpers used when finalizing chunks.
"""

import re
import math
from collections import Counter
from typing import List

# Fixed characters-per-token ratio used for every token approximation
CHARS_PER_TOKEN = 4

DEFAULT_KEYWORD_COUNT = 10

STOP_WORDS = frozenset([
    'a', 'an', 'the', 'and', 'in', 'is', 'it', 'of', 'for', 'on', 'with', 'to',
    'by', 'as', 'at', 'but', 'if', 'or', 'so', 'then', 'from', 'this', 'that',
    'these', 'those', 'be', 'are', 'was', 'were', 'has', 'have', 'had', 'do',
    'does', 'did', 'not', 'will', 'would', 'should', 'can', 'could', 'may',
    'might', 'must',
])

_NON_WORD_RE = re.compile(r'[^\w\s-]')
_NUMERIC_RE = re.compile(r'^[\d-]+$')


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per CHARS_PER_TOKEN characters, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _is_keyword_candidate(word: str) -> bool:
    if len(word) < 3:
        return False
    if word in STOP_WORDS:
        return False
    # Purely numeric tokens ("2024", "10-20") carry no topical meaning
    return not _NUMERIC_RE.match(word)


def extract_keywords(text: str, count: int = DEFAULT_KEYWORD_COUNT) -> List[str]:
    """
    Rank the non-trivial words of a text by frequency.

    Args:
        text: Content to analyze
        count: Maximum number of keywords to return

    Returns:
        List[str]: Up to ``count`` lower-cased words, most frequent first.
        Words with equal frequency keep the order in which they first appear.
    """
    if not text or count <= 0:
        return []

    words = _NON_WORD_RE.sub('', text.lower()).split()
    frequencies = Counter(word for word in words if _is_keyword_candidate(word))

    return [word for word, _ in frequencies.most_common(count)]
