"""Heuristic detector for free-form Korean addresses.

A broad four-way regex proposes candidates; a keyword floor then throws
away anything that does not look like an address (the optional province
alternation on its own matches a lot of ordinary prose).
"""

from __future__ import annotations
import re

from .patterns import find_all

_PROVINCES = (
    "서울특별시|부산광역시|대구광역시|인천광역시|광주광역시|"
    "대전광역시|울산광역시|세종특별자치시|경기도|강원도|"
    "충청북도|충청남도|전라북도|전라남도|경상북도|"
    "경상남도|제주특별자치도"
)
_FILLER_SHORT = r"[\s가-힣\d\-~.,]{0,20}?"
_FILLER_LONG = r"[\s가-힣\d\-~.,]{0,30}?"
_UNIT = r"(시|군|구|읍|면|동|리)"
_NUMBER = r"\s*\d{1,5}(-\d{1,5})?"

_SHAPES = [
    # Road-name address: [province] ... 구 ... 로 12-3
    f"(?:{_PROVINCES})?{_FILLER_SHORT}{_UNIT}{_FILLER_LONG}"
    f"(로|길|대로|번길|번지|건물|아파트){_NUMBER}",
    # Lot-number address: [province] ... 동 123-4
    f"(?:{_PROVINCES})?{_FILLER_SHORT}{_UNIT}{_NUMBER}",
    # Abbreviated road address, runs to end of line
    r"[가-힣]+(로|길|대로|번길)\s*\d{1,5}(-\d{1,5})?.*",
    # Bare road name
    r"[가-힣]+로\s*\d{1,5}",
]

ADDRESS_PATTERN = re.compile("|".join(_SHAPES))

ADDRESS_KEYWORDS = (
    "도", "시", "군", "구", "동", "읍", "면", "리",
    "로", "길", "대로", "번지", "건물", "아파트", "호",
)

MIN_KEYWORDS = 2


def has_address_keywords(candidate: str, minimum: int = MIN_KEYWORDS) -> bool:
    """True if the candidate contains at least `minimum` distinct keywords."""
    count = 0
    for kw in ADDRESS_KEYWORDS:
        if kw in candidate:
            count += 1
            if count >= minimum:
                return True
    return False


def detect_addresses(text: str) -> list[str]:
    """Return address-like substrings of text, in order of discovery."""
    return [c for c in find_all(ADDRESS_PATTERN, text) if has_address_keywords(c)]
