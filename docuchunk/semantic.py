"""
Keyword-driven semantic classification of chunk content.

Each chunk receives exactly one label from a fixed taxonomy. The taxonomy is
ordered: labels are tried top to bottom and the first label with a keyword
occurring in the content wins, so the order below is also the tie-break.
"""

import logging
from typing import NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

SEMANTIC_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Functional Requirement", ("shall", "must", "required to")),
    ("Non-Functional Requirement", ("performance", "scalability", "reliability", "usability", "security")),
    ("Safety", ("safety", "sotif", "asil", "iso 26262", "hazard", "risk")),
    ("Cybersecurity", ("cybersecurity", "threat", "vulnerability", "iso 21434")),
    ("Architecture", ("component", "interface", "module", "architecture", "design")),
    ("Glossary", ("glossary", "abbreviations", "acronyms", "definitions")),
)


class SemanticLabel(NamedTuple):
    """Result of classifying a piece of content."""
    label: str
    reason: Optional[str]


def classify_content(content: str) -> SemanticLabel:
    """
    Assign a semantic label to content by case-insensitive keyword search.

    Args:
        content: Chunk text to classify

    Returns:
        SemanticLabel: The first matching label and the keyword that triggered it,
        or ("Uncategorized", None) when nothing matches
    """
    lower_content = (content or "").lower()
    for label, keywords in SEMANTIC_LABELS:
        for keyword in keywords:
            if keyword in lower_content:
                logger.debug(f"Classified content as '{label}' (keyword '{keyword}')")
                return SemanticLabel(label, f"Detected based on keyword: '{keyword}'")
    return SemanticLabel(UNCATEGORIZED, None)
