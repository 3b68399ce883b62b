"""
Unit tests for pattern-based contact extraction.
"""

import pytest

from data_models import PersonalInfo
from field_heuristics import extract_personal_info, find_email, find_name, find_phone


def test_extracts_scenario_cv():
    info = extract_personal_info("Jane Doe\njane.doe@example.com\n+1 555-123-4567")

    assert info == PersonalInfo(
        first_name="Jane",
        last_name="Doe",
        email="jane.doe@example.com",
        phone="+1 555-123-4567",
        address="",
    )


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Contact me at john.smith+jobs@mail.example.org today", "john.smith+jobs@mail.example.org"),
        ("first: a_b@x.io, second: c@d.com", "a_b@x.io"),
        ("EMAIL:Jane.DOE@Example.COM", "Jane.DOE@Example.COM"),
    ],
)
def test_email_is_first_match_exactly(text, expected):
    assert find_email(text) == expected


def test_missing_email_returns_empty_string():
    assert find_email("No contact details here, just words.") == ""
    assert extract_personal_info("Jane Doe\nSoftware Engineer").email == ""


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Phone: +1 555-123-4567", "+1 555-123-4567"),
        ("Phone: (555) 123-4567", "(555) 123-4567"),
        ("Tel +33 6 12 34 56 78", "+33 6 12 34 56 78"),
        ("Call 555.123.4567", "555.123.4567"),
    ],
)
def test_phone_formats(text, expected):
    assert find_phone(text) == expected


def test_phone_whitespace_is_normalized():
    assert find_phone("Phone:\n555\n123\n4567") == "555 123 4567"


def test_missing_phone_returns_empty_string():
    assert find_phone("Jane Doe, jane@example.com") == ""


def test_name_line_with_contact_details_is_cleaned():
    first, last = find_name("John Smith john@example.com +1 555 123 4567\nEngineer")

    assert (first, last) == ("John", "Smith")


def test_single_character_tokens_are_discarded():
    assert find_name("Jane R Doe") == ("Jane", "Doe")


def test_last_name_is_stripped_of_punctuation():
    assert find_name("Jane O'Neil-Smith,") == ("Jane", "ONeil-Smith")


def test_single_token_line_sets_first_name_only():
    assert find_name("Curriculum\njane@example.com") == ("Curriculum", "")


def test_plus_sign_repair_keeps_prefix():
    info = extract_personal_info("Jane+33\njane@example.com")

    assert info.first_name == "Jane"
    assert info.last_name == ""


def test_name_scan_is_limited_to_first_fifteen_lines():
    text = "\n".join(["x"] * 15 + ["Jane Doe"])

    assert find_name(text) == ("", "")


def test_blank_lines_do_not_count_towards_scan_limit():
    text = "\n\n" * 20 + "Jane Doe"

    assert find_name(text) == ("Jane", "Doe")


def test_address_is_never_extracted():
    assert extract_personal_info("Jane Doe\n12 Main Street, Springfield").address == ""


def test_empty_text_returns_empty_info():
    assert extract_personal_info("") == PersonalInfo()
