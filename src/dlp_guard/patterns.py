"""Regex rule table for structured PII.

The table is ordered: masking runs category by category in this order, so
a span masked by an earlier rule can no longer be matched by a later one.
Patterns are compiled with re.ASCII so that \\b, \\d and \\D only consider
ASCII word characters and digits (Hangul next to a number is a boundary).
"""

from __future__ import annotations
import re

from .types import Category

# Each rule: (category, compiled_regex).  Address is handled by address.py.
RULES: list[tuple[Category, re.Pattern]] = [
    # 010-1234-5678, 02 123 4567, 01012345678
    (Category.PHONE, re.compile(
        r"\b0\d{1,2}\D*\d{3,4}\D*\d{4}\b", re.ASCII
    )),

    # Top-level domain may be Hangul (e.g. example.한국)
    (Category.EMAIL, re.compile(
        r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z가-힣]{2,}\b", re.ASCII
    )),

    (Category.IPV4, re.compile(
        r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}"
        r"(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b", re.ASCII
    )),

    # Full eight-group form only
    (Category.IPV6, re.compile(
        r"\b(?:[A-Fa-f0-9]{1,4}:){7}[A-Fa-f0-9]{1,4}\b", re.ASCII
    )),

    # Resident registration number: 6 digits, separator, 7 digits
    (Category.SSN, re.compile(
        r"\b\d{6}\D*\d{7}\b", re.ASCII
    )),

    (Category.CREDIT_CARD, re.compile(
        r"\b(?:\d{4}[- ]?){3}\d{4}\b", re.ASCII
    )),

    # Business registration number: 3-2-5
    (Category.BUSINESS_NUMBER, re.compile(
        r"\b\d{3}[- ]?\d{2}[- ]?\d{5}\b", re.ASCII
    )),

    (Category.BANK_ACCOUNT, re.compile(
        r"\b\d{8,14}\b", re.ASCII
    )),

    (Category.POSTAL_CODE, re.compile(
        r"\b\d{5}\b", re.ASCII
    )),

    (Category.MAC_ADDRESS, re.compile(
        r"\b([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})\b", re.ASCII
    )),
]


def find_all(pattern: re.Pattern, text: str) -> list[str]:
    """All non-overlapping whole matches, in order of appearance.

    Uses the full match even when the pattern has capture groups.
    """
    return [m.group(0) for m in pattern.finditer(text)]


def scan_rules(text: str) -> dict[Category, list[str]]:
    """Run every rule against the original text."""
    return {category: find_all(pattern, text) for category, pattern in RULES}
