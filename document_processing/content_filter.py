"""
Content cleaning module for DocuChunk.

This module applies an ordered set of find/replace rules to extracted text
before it is chunked: repeating page headers and footers, "Page X of Y" lines,
user-defined literal or regex replacements, and whitespace normalization.
Page boundaries arrive as a ``PAGE_BREAK`` line between pages; whitespace
normalization removes them.
"""
import re
import json
import math
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PAGE_BREAK = "PAGE_BREAK"

REMOVE_HEADERS = "removeHeaders"
REMOVE_FOOTERS = "removeFooters"
REMOVE_PAGE_NUMBERS = "removePageNumbers"
NORMALIZE_WHITESPACE = "normalizeWhitespace"

# Rules whose behavior is built in rather than described by find/replace
PAGE_AWARE_RULES = (REMOVE_HEADERS, REMOVE_FOOTERS)

DEFAULT_REGEX_FLAGS = "gi"

# A line must repeat on this share of pages to count as a running header/footer
REPEATING_LINE_THRESHOLD = 0.6
MIN_PAGES_FOR_REPEAT_DETECTION = 3

_PAGE_BREAK_SPLIT_RE = re.compile(r'(^[ \t]*' + PAGE_BREAK + r'[ \t]*$)', re.MULTILINE)

_FLAG_MAP = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
}


@dataclass
class CleaningRule:
    """A find/replace rule. ``flags`` uses the letters g, i, m and s."""
    find: str
    replace: str = ""
    is_regex: bool = False
    flags: str = ""


@dataclass
class StandardRule(CleaningRule):
    """A named rule that can be switched on and off."""
    id: str = ""
    name: str = ""
    enabled: bool = True


@dataclass
class CleaningOptions:
    """Standard (toggleable) rules followed by ad-hoc custom rules."""
    standard_rules: List[StandardRule] = field(default_factory=list)
    custom_rules: List[CleaningRule] = field(default_factory=list)

    def get_rule(self, rule_id: str) -> Optional[StandardRule]:
        for rule in self.standard_rules:
            if rule.id == rule_id:
                return rule
        return None

    def is_enabled(self, rule_id: str) -> bool:
        rule = self.get_rule(rule_id)
        return bool(rule and rule.enabled)


def default_cleaning_options() -> CleaningOptions:
    """Return a fresh copy of the default rule set."""
    return CleaningOptions(
        standard_rules=[
            StandardRule(id=REMOVE_HEADERS, name="Remove Repeating Headers", find=""),
            StandardRule(id=REMOVE_FOOTERS, name="Remove Repeating Footers", find=""),
            StandardRule(
                id=REMOVE_PAGE_NUMBERS,
                name='Remove "Page X of Y"',
                find=r'^Page\s+\d+(\s+of\s+\d+)?$',
                is_regex=True,
                flags="gm",
            ),
            StandardRule(id=NORMALIZE_WHITESPACE, name="Normalize Whitespace", find=""),
        ],
        custom_rules=[],
    )


CUSTOM_RULE_KEYS = ("find", "replace", "is_regex", "flags")


def cleaning_options_from_dict(data: Dict[str, Any]) -> CleaningOptions:
    """
    Build cleaning options from their JSON form.

    The form is ``{"standard_rules": {"<rule id>": true|false, ...},
    "custom_rules": [{"find": ..., "replace": ..., "is_regex": ..., "flags": ...}]}``.
    Standard rules not listed keep their default state.

    Args:
        data: Parsed JSON object

    Returns:
        CleaningOptions: Default rules with the given toggles, followed by the custom rules

    Raises:
        ValueError: If a rule id is unknown or a custom rule is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Cleaning rules must be a JSON object")

    options = default_cleaning_options()
    for rule_id, enabled in (data.get("standard_rules") or {}).items():
        rule = options.get_rule(rule_id)
        if rule is None:
            raise ValueError(f"Unknown standard cleaning rule: {rule_id}")
        rule.enabled = bool(enabled)

    for index, raw_rule in enumerate(data.get("custom_rules") or []):
        if not isinstance(raw_rule, dict) or not raw_rule.get("find"):
            raise ValueError(f"Custom rule {index} needs a non-empty 'find' value")
        unknown_keys = set(raw_rule) - set(CUSTOM_RULE_KEYS)
        if unknown_keys:
            raise ValueError(f"Custom rule {index} has unknown keys: {sorted(unknown_keys)}")
        options.custom_rules.append(CleaningRule(**raw_rule))

    logger.debug(f"Loaded cleaning options with {len(options.custom_rules)} custom rules")
    return options


def load_cleaning_options(path: str) -> CleaningOptions:
    """
    Read cleaning options from a JSON file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON or describes invalid rules
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return cleaning_options_from_dict(data)


def compile_rule_pattern(pattern: str, flags: str) -> "re.Pattern":
    """
    Compile a rule pattern with letter flags.

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    re_flags = 0
    for letter in flags:
        re_flags |= _FLAG_MAP.get(letter, 0)
    return re.compile(pattern, re_flags)


def convert_replacement(replacement: str, group_count: Optional[int] = None) -> str:
    """
    Translate a ``$1`` / ``$&`` style replacement string into ``re.sub`` syntax.

    Backslashes are literal in stored rules, so they are escaped first. A
    ``$n`` that names no group of the pattern stays literal text; ``$nn``
    falls back to group ``n`` followed by a digit when only that group exists.

    Args:
        replacement: Replacement string as stored with the rule
        group_count: Number of groups in the rule's pattern (None skips the check)
    """
    converted = replacement.replace('\\', '\\\\')
    return re.sub(
        r'\$(\$|&|\d{1,2})',
        lambda match: _replacement_token(match.group(1), group_count),
        converted,
    )


def _is_group(number: int, group_count: Optional[int]) -> bool:
    return number >= 1 and (group_count is None or number <= group_count)


def _replacement_token(token: str, group_count: Optional[int]) -> str:
    if token == '$':
        return '$'
    if token == '&':
        return r'\g<0>'
    if _is_group(int(token), group_count):
        return r'\g<' + str(int(token)) + '>'
    if len(token) == 2 and _is_group(int(token[0]), group_count):
        return r'\g<' + token[0] + '>' + token[1]
    return '$' + token


def apply_rule(text: str, rule: CleaningRule) -> str:
    """
    Apply a single rule to text.

    Invalid regular expressions are logged and the text is returned unchanged.

    Args:
        text: Text to clean
        rule: Rule to apply

    Returns:
        str: The text after replacement
    """
    if not rule.find:
        return text

    if not rule.is_regex:
        return text.replace(rule.find, rule.replace)

    flags = rule.flags or DEFAULT_REGEX_FLAGS
    try:
        pattern = compile_rule_pattern(rule.find, flags)
        return pattern.sub(convert_replacement(rule.replace, pattern.groups), text, count=0 if 'g' in flags else 1)
    except re.error as e:
        logger.warning(f"Skipping invalid regex rule {rule.find!r}: {e}")
        return text


def normalize_whitespace(text: str) -> str:
    """Collapse runs of blanks, drop page break markers and excess blank lines."""
    text = re.sub(r'[ \t]{2,}', ' ', text)
    text = text.replace('\r\n', '\n')
    text = re.sub(r'^\s*' + PAGE_BREAK + r'\s*', '', text, flags=re.MULTILINE)
    text = re.sub(r'(\n\s*){3,}', '\n\n', text)
    return text


def _normalize_for_repeat(line: str) -> str:
    # Running headers often differ only in the page number
    return re.sub(r'\d+', '#', line.strip())


def _edge_line_index(lines: List[str], from_end: bool) -> Optional[int]:
    indices = range(len(lines) - 1, -1, -1) if from_end else range(len(lines))
    for index in indices:
        if lines[index].strip():
            return index
    return None


def remove_repeating_lines(text: str, headers: bool = True, footers: bool = True) -> str:
    """
    Remove running headers and/or footers from page-delimited text.

    The first (header) or last (footer) non-empty line of each page is removed
    when, ignoring digits, the same line is found in that position on at least
    60% of the pages. Documents with fewer than three pages are left unchanged.

    Args:
        text: Text whose pages are separated by PAGE_BREAK lines
        headers: Remove repeating first lines
        footers: Remove repeating last lines

    Returns:
        str: Text with the repeating lines removed, page markers preserved
    """
    parts = _PAGE_BREAK_SPLIT_RE.split(text)
    pages = [part.split('\n') for part in parts[0::2]]
    if len(pages) < MIN_PAGES_FOR_REPEAT_DETECTION:
        return text

    min_repeats = max(2, math.ceil(len(pages) * REPEATING_LINE_THRESHOLD))
    removed = 0

    for enabled, from_end in ((headers, False), (footers, True)):
        if not enabled:
            continue
        edge_indices = [_edge_line_index(lines, from_end) for lines in pages]
        counts = Counter(
            _normalize_for_repeat(lines[index])
            for lines, index in zip(pages, edge_indices)
            if index is not None
        )
        repeating = {line for line, count in counts.items() if count >= min_repeats}
        if not repeating:
            continue
        for lines, index in zip(pages, edge_indices):
            if index is not None and _normalize_for_repeat(lines[index]) in repeating:
                lines[index] = ""
                removed += 1

    if removed:
        logger.debug(f"Removed {removed} repeating header/footer lines across {len(pages)} pages")

    parts[0::2] = ['\n'.join(lines) for lines in pages]
    return ''.join(parts)


def apply_cleaning_rules(text: str, options: Optional[CleaningOptions] = None) -> str:
    """
    Clean extracted text with the given rule set.

    Order: repeating header/footer removal, enabled standard rules, custom
    rules, then whitespace normalization. A rule with an invalid regular
    expression is skipped without stopping the others.

    Args:
        text: Raw extracted text
        options: Rule set (defaults to ``default_cleaning_options()``)

    Returns:
        str: Cleaned, stripped text
    """
    if not text:
        return ""

    options = options or default_cleaning_options()
    original_length = len(text)
    cleaned_text = text

    if options.is_enabled(REMOVE_HEADERS) or options.is_enabled(REMOVE_FOOTERS):
        cleaned_text = remove_repeating_lines(
            cleaned_text,
            headers=options.is_enabled(REMOVE_HEADERS),
            footers=options.is_enabled(REMOVE_FOOTERS),
        )

    for rule in options.standard_rules:
        if not rule.enabled or rule.id == NORMALIZE_WHITESPACE or rule.id in PAGE_AWARE_RULES:
            continue
        cleaned_text = apply_rule(cleaned_text, rule)

    for rule in options.custom_rules:
        cleaned_text = apply_rule(cleaned_text, rule)

    if options.is_enabled(NORMALIZE_WHITESPACE):
        cleaned_text = normalize_whitespace(cleaned_text)

    cleaned_text = cleaned_text.strip()

    reduction_percentage = ((original_length - len(cleaned_text)) / original_length) * 100
    logger.info(f"Text cleaning complete. Original length: {original_length}, Cleaned length: {len(cleaned_text)}, "
                f"Reduction: {reduction_percentage:.2f}%")

    return cleaned_text
