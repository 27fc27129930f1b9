"""
Tests for rule-based text cleaning.
"""

import json
import logging
import unittest

from document_processing.content_filter import (
    NORMALIZE_WHITESPACE,
    PAGE_BREAK,
    REMOVE_FOOTERS,
    REMOVE_HEADERS,
    REMOVE_PAGE_NUMBERS,
    CleaningOptions,
    CleaningRule,
    apply_cleaning_rules,
    apply_rule,
    cleaning_options_from_dict,
    convert_replacement,
    default_cleaning_options,
    load_cleaning_options,
    normalize_whitespace,
    remove_repeating_lines,
)


class TestDefaultOptions(unittest.TestCase):
    """Tests for the default rule set."""

    def test_standard_rules(self):
        options = default_cleaning_options()
        self.assertEqual(
            [rule.id for rule in options.standard_rules],
            [REMOVE_HEADERS, REMOVE_FOOTERS, REMOVE_PAGE_NUMBERS, NORMALIZE_WHITESPACE],
        )
        self.assertTrue(all(rule.enabled for rule in options.standard_rules))
        self.assertEqual(options.custom_rules, [])

    def test_copies_are_independent(self):
        first = default_cleaning_options()
        first.get_rule(REMOVE_PAGE_NUMBERS).enabled = False
        self.assertTrue(default_cleaning_options().is_enabled(REMOVE_PAGE_NUMBERS))

    def test_unknown_rule_is_disabled(self):
        self.assertFalse(default_cleaning_options().is_enabled("removeEverything"))


class TestApplyRule(unittest.TestCase):
    """Tests for single rule application."""

    def test_literal_rule_replaces_all(self):
        rule = CleaningRule(find="DRAFT", replace="")
        self.assertEqual(apply_rule("DRAFT one DRAFT two", rule), " one  two")

    def test_literal_rule_is_case_sensitive(self):
        rule = CleaningRule(find="draft", replace="x")
        self.assertEqual(apply_rule("DRAFT draft", rule), "DRAFT x")

    def test_regex_defaults_to_global_case_insensitive(self):
        rule = CleaningRule(find="draft", replace="x", is_regex=True)
        self.assertEqual(apply_rule("DRAFT draft Draft", rule), "x x x")

    def test_regex_without_global_flag_replaces_first(self):
        rule = CleaningRule(find="a", replace="b", is_regex=True, flags="i")
        self.assertEqual(apply_rule("aAa", rule), "bAa")

    def test_group_references(self):
        rule = CleaningRule(find=r"(\w+)@example\.com", replace="<$1> [$&]", is_regex=True)
        self.assertEqual(apply_rule("mail bob@example.com", rule), "mail <bob> [bob@example.com]")

    def test_invalid_regex_is_skipped(self):
        rule = CleaningRule(find="(unclosed", replace="", is_regex=True)
        with self.assertLogs("document_processing.content_filter", level=logging.WARNING) as logs:
            self.assertEqual(apply_rule("text (unclosed", rule), "text (unclosed")
        self.assertIn("Skipping invalid regex rule", logs.output[0])

    def test_empty_find_is_a_no_op(self):
        self.assertEqual(apply_rule("text", CleaningRule(find="")), "text")

    def test_convert_replacement(self):
        self.assertEqual(convert_replacement("$1-$&"), r"\g<1>-\g<0>")
        self.assertEqual(convert_replacement("$$5"), "$5")
        self.assertEqual(convert_replacement("a\\b"), "a\\\\b")

    def test_missing_group_stays_literal(self):
        rule = CleaningRule(find="b", replace="[$1]", is_regex=True)
        self.assertEqual(apply_rule("abc", rule), "a[$1]c")

    def test_two_digit_reference_falls_back_to_one_group(self):
        rule = CleaningRule(find="(b)", replace="$10", is_regex=True)
        self.assertEqual(apply_rule("abc", rule), "ab0c")

    def test_convert_replacement_checks_group_count(self):
        self.assertEqual(convert_replacement("$2 $1 $0", group_count=1), r"$2 \g<1> $0")


class TestRepeatingLines(unittest.TestCase):
    """Tests for running header and footer removal."""

    def _pages(self, count):
        pages = [f"Company Header\nContent {number}\nFooter page {number}" for number in range(1, count + 1)]
        return f"\n\n{PAGE_BREAK}\n\n".join(pages)

    def test_headers_and_footers_removed(self):
        cleaned = remove_repeating_lines(self._pages(3))
        self.assertNotIn("Company Header", cleaned)
        self.assertNotIn("Footer page", cleaned)
        for number in range(1, 4):
            self.assertIn(f"Content {number}", cleaned)
        self.assertEqual(cleaned.count(PAGE_BREAK), 2)

    def test_headers_only(self):
        cleaned = remove_repeating_lines(self._pages(3), headers=True, footers=False)
        self.assertNotIn("Company Header", cleaned)
        self.assertIn("Footer page 2", cleaned)

    def test_too_few_pages(self):
        text = self._pages(2)
        self.assertEqual(remove_repeating_lines(text), text)

    def test_line_below_threshold_is_kept(self):
        pages = ["Alpha\nbody", "Alpha\nbody", "Beta\nbody", "Gamma\nbody", "Delta\nbody"]
        cleaned = remove_repeating_lines(f"\n{PAGE_BREAK}\n".join(pages))
        # two of five pages is below 60%
        self.assertEqual(cleaned.count("Alpha"), 2)


class TestCleaningOptionsFromDict(unittest.TestCase):
    """Tests for loading rule sets from their JSON form."""

    def test_toggles_and_custom_rules(self):
        options = cleaning_options_from_dict({
            "standard_rules": {REMOVE_PAGE_NUMBERS: False},
            "custom_rules": [
                {"find": "DRAFT", "replace": ""},
                {"find": r"REQ-(\d+)", "replace": "Requirement $1", "is_regex": True, "flags": "g"},
            ],
        })

        self.assertFalse(options.is_enabled(REMOVE_PAGE_NUMBERS))
        self.assertTrue(options.is_enabled(REMOVE_HEADERS))
        self.assertEqual(len(options.custom_rules), 2)
        self.assertTrue(options.custom_rules[1].is_regex)
        self.assertEqual(
            apply_cleaning_rules("DRAFT REQ-12 holds\nPage 1 of 3", options),
            "Requirement 12 holds\nPage 1 of 3",
        )

    def test_empty_object_gives_defaults(self):
        self.assertEqual(cleaning_options_from_dict({}), default_cleaning_options())

    def test_invalid_rule_sets(self):
        with self.assertRaises(ValueError):
            cleaning_options_from_dict({"standard_rules": {"removeEverything": True}})
        with self.assertRaises(ValueError):
            cleaning_options_from_dict({"custom_rules": [{"replace": "x"}]})
        with self.assertRaises(ValueError):
            cleaning_options_from_dict({"custom_rules": [{"find": "a", "isRegex": True}]})
        with self.assertRaises(ValueError):
            cleaning_options_from_dict(["not", "an", "object"])


class TestApplyCleaningRules(unittest.TestCase):
    """Tests for the full cleaning pipeline."""

    def test_empty_text(self):
        self.assertEqual(apply_cleaning_rules(""), "")

    def test_normalize_whitespace(self):
        self.assertEqual(normalize_whitespace("a    b\r\n\n\n\nc"), "a b\n\nc")
        # the marker takes its surrounding blank lines with it
        self.assertEqual(normalize_whitespace(f"one\n\n{PAGE_BREAK}\n\ntwo"), "one\ntwo")

    def test_disabled_page_number_rule(self):
        options = default_cleaning_options()
        options.get_rule(REMOVE_PAGE_NUMBERS).enabled = False
        self.assertEqual(apply_cleaning_rules("Intro\nPage 2 of 9\nBody", options), "Intro\nPage 2 of 9\nBody")

    def test_page_number_rule(self):
        self.assertEqual(apply_cleaning_rules("Intro\nPage 2 of 9\nBody\nPage 3"), "Intro\n\nBody")

    def test_custom_rules_run_before_normalization(self):
        options = default_cleaning_options()
        options.custom_rules.append(CleaningRule(find="CONFIDENTIAL", replace="   "))
        self.assertEqual(apply_cleaning_rules("a CONFIDENTIAL b", options), "a b")

    def test_no_rules(self):
        text = "  keep   spacing  "
        self.assertEqual(apply_cleaning_rules(text, CleaningOptions()), "keep   spacing")


def test_paged_document_is_cleaned(paged_raw_text):
    cleaned = apply_cleaning_rules(paged_raw_text)

    assert "ACME Corp Confidential" not in cleaned
    assert "Revision 3" not in cleaned
    assert "of 4" not in cleaned
    assert PAGE_BREAK not in cleaned
    for number in range(1, 5):
        assert f"Body text of page {number} with extra spaces." in cleaned
    assert cleaned.index("page 1 ") < cleaned.index("page 4 ")
    assert cleaned == cleaned.strip()


def test_load_cleaning_options_from_file(tmp_path):
    rules_path = tmp_path / "rules.json"
    rules_path.write_text(json.dumps({"custom_rules": [{"find": "ACME", "replace": "Company"}]}), encoding="utf-8")

    options = load_cleaning_options(str(rules_path))

    assert options.custom_rules == [CleaningRule(find="ACME", replace="Company")]
    assert apply_cleaning_rules("ACME brakes", options) == "Company brakes"
