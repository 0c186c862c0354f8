"""Analyzer — structured PII detection and masking.

Usage:
    from dlp_guard import Analyzer

    analyzer = Analyzer()        # reusable, thread-safe
    result = analyzer.analyze("내 번호는 010-1234-5678 입니다")
    print(result.masked_text)    # "내 번호는 *** 입니다"
    print(result.detected["phone"])   # ["010-1234-5678"]
    print(result.status)         # Status.DANGER
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Iterable

from .address import detect_addresses
from .errors import InvalidInputError
from .patterns import scan_rules
from .types import AnalysisResult, Category, Status, empty_detected

MASK_TOKEN = "***"


@dataclass
class AnalyzerConfig:
    """Configuration for the Analyzer."""
    mask_token: str = MASK_TOKEN
    # Categories to never report (they stay in the map, empty)
    skip_categories: set[str] = field(default_factory=set)
    # Allow-list: values that should NEVER be reported or masked
    allow_list: set[str] = field(default_factory=set)


def mask(text: str, matches: Iterable[str], token: str = MASK_TOKEN) -> str:
    """Replace every literal occurrence of each match with the token.

    Matches are applied in order against the progressively masked text.
    """
    masked = text
    for match in matches:
        # Callable replacement: the token is inserted literally
        masked = re.sub(re.escape(match), lambda _: token, masked)
    return masked


class Analyzer:
    """Rule-table PII detector.

    Every category is scanned against the original text; masking is then
    applied category by category, in table order, to one working copy.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()

    def analyze(self, text: str) -> AnalysisResult:
        if not isinstance(text, str) or not text:
            raise InvalidInputError("text must be a non-empty string")

        found = list(scan_rules(text).items())
        found.append((Category.ADDRESS, detect_addresses(text)))

        detected = empty_detected()
        masked = text
        for category, matches in found:
            matches = self._filter(category, matches)
            if not matches:
                continue
            detected[category.value] = matches
            masked = mask(masked, matches, self.config.mask_token)

        danger = any(detected.values())
        return AnalysisResult(
            masked_text=masked,
            detected=detected,
            status=Status.DANGER if danger else Status.SAFE,
        )

    def _filter(self, category: Category, matches: list[str]) -> list[str]:
        if category.value in self.config.skip_categories:
            return []
        if self.config.allow_list:
            return [m for m in matches if m not in self.config.allow_list]
        return matches
