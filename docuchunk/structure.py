"""
Structural detectors for document text.

This module provides three independent, pattern-based detectors:
1. Section header detection for a single line
2. Table of contents parsing
3. Glossary / abbreviation list parsing

They are syntactic heuristics, not layout-aware parsers. The header detector
in particular prefers missing a header over mistaking a sentence for one:
numbered lines ending with a period ("1. The system shall...") are prose.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

MIN_HEADER_LENGTH = 3
MAX_HEADER_LENGTH = 200
MAX_CAPS_HEADER_LENGTH = 80

# Leading structural marker: 1 / 1. / 1.2.3, "Appendix A", or a roman numeral with a dot
SECTION_MARKER = r"(?:\d+(?:\.\d+)*\.?|Appendix\s+[A-Z0-9]+|[IVXLCDM]+\.)"
# A marker never ends inside a number ("2024" is not section "20" titled "24")
MARKER_END = r"(?!\d)"

HEADER_RE = re.compile(
    r"^(?P<id>" + SECTION_MARKER + MARKER_END + r"\s*)"
    r"(?P<title>[A-Za-z0-9\s,'\"-][A-Za-z0-9\s,'\"-]+.*)$"
)
MARKER_PREFIX_RE = re.compile(r"^" + SECTION_MARKER + MARKER_END + r"\s*")

TOC_HEADING_RE = re.compile(r"^(?:Table of Contents|Contents)\b", re.IGNORECASE | re.MULTILINE)
GLOSSARY_HEADING_RE = re.compile(r"^(?:Glossary|Abbreviations|Acronyms)\b", re.IGNORECASE | re.MULTILINE)

TOC_ENTRY_RE = re.compile(r"^(?P<title>.*?)\s*[.|_]{2,}\s*[\dIVXLCDMivxlcdm]+$")
GLOSSARY_ENTRY_RE = re.compile(
    r"^(?P<term>[A-Z0-9\s_-]{2,})(?:\s*[:–-]\s*|\s{2,})(?P<definition>.+)$"
)


@dataclass(frozen=True)
class HeaderInfo:
    """Outcome of header detection for one line."""
    is_header: bool
    id: Optional[str] = None
    title: str = ""
    raw: str = ""


NOT_A_HEADER = HeaderInfo(is_header=False)


def detect_section_header(line: str) -> HeaderInfo:
    """
    Decide whether a line is a section header.

    Args:
        line: A single line of document text

    Returns:
        HeaderInfo: ``id`` is the dotted/appendix/roman marker without a trailing
        dot (None for all-caps headers); ``title`` is the text after the marker
    """
    trimmed = line.strip()
    if len(trimmed) < MIN_HEADER_LENGTH or len(trimmed) > MAX_HEADER_LENGTH:
        return NOT_A_HEADER

    # A trailing period marks prose, for both recognition paths
    if trimmed.endswith('.'):
        return NOT_A_HEADER

    match = HEADER_RE.match(trimmed)
    if match:
        section_id = match.group('id').strip()
        if section_id.endswith('.'):
            section_id = section_id[:-1]
        return HeaderInfo(
            is_header=True,
            id=section_id,
            title=match.group('title').strip(),
            raw=trimmed,
        )

    if trimmed.isupper() and len(trimmed) < MAX_CAPS_HEADER_LENGTH:
        return HeaderInfo(is_header=True, id=None, title=trimmed, raw=trimmed)

    return NOT_A_HEADER


def strip_section_marker(title: str) -> str:
    """Remove a leading section marker ("2.1", "Appendix B", "IV.") from a title."""
    return MARKER_PREFIX_RE.sub('', title.strip(), count=1).strip()


def find_section(text: str, heading_pattern: Pattern) -> Optional[str]:
    """
    Locate a named section of the document.

    Args:
        text: Full document text
        heading_pattern: Compiled multi-line pattern matching the section's heading line

    Returns:
        Optional[str]: The text from the heading line to the end of the document,
        or None when the heading does not occur
    """
    if not text:
        return None
    match = heading_pattern.search(text)
    if not match:
        return None
    return text[match.start():]


def parse_table_of_contents(text: str) -> Dict[str, str]:
    """
    Parse table of contents entries.

    Lines such as ``2.1 Scope ........ 4`` or ``Appendix A Glossary | iv`` become
    entries keyed by the title without its section marker.

    Args:
        text: Text starting at the table of contents heading

    Returns:
        Dict[str, str]: cleaned title -> original line
    """
    toc: Dict[str, str] = {}
    if not text:
        return toc

    for line in text.split('\n'):
        match = TOC_ENTRY_RE.match(line.strip())
        if not match:
            continue
        clean_title = strip_section_marker(match.group('title'))
        if clean_title:
            toc[clean_title] = line.strip()

    logger.debug(f"Parsed {len(toc)} table of contents entries")
    return toc


def parse_glossary(text: str) -> Dict[str, str]:
    """
    Parse glossary entries of the form ``TERM: definition``.

    The separator may be a colon, a hyphen, an en dash or a run of two or more
    spaces. Only upper-case terms are accepted, which keeps ordinary
    capitalized sentences out of the glossary.

    Args:
        text: Text starting at the glossary heading

    Returns:
        Dict[str, str]: term -> definition
    """
    glossary: Dict[str, str] = {}
    if not text:
        return glossary

    for line in text.split('\n'):
        match = GLOSSARY_ENTRY_RE.match(line)
        if not match:
            continue
        term = match.group('term').strip()
        definition = match.group('definition').strip()
        if len(term) >= 2 and term.isupper() and definition:
            glossary[term] = definition

    logger.debug(f"Parsed {len(glossary)} glossary entries")
    return glossary


def build_lookup_tables(text: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Build the table of contents and glossary maps for a document.

    Args:
        text: Full (cleaned) document text

    Returns:
        Tuple[Dict[str, str], Dict[str, str]]: (toc, glossary); each is empty
        when the document has no such section
    """
    toc_section = find_section(text, TOC_HEADING_RE)
    glossary_section = find_section(text, GLOSSARY_HEADING_RE)

    toc = parse_table_of_contents(toc_section) if toc_section else {}
    glossary = parse_glossary(glossary_section) if glossary_section else {}
    return toc, glossary
