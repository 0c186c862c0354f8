"""Tests for pattern analysis: rule table, address heuristic, masking."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from dlp_guard import Analyzer, AnalyzerConfig, Category, Status, mask, detect_addresses
from dlp_guard.address import has_address_keywords
from dlp_guard.errors import InvalidInputError
from dlp_guard.patterns import RULES, scan_rules


# ── Rule table ───────────────────────────────────────────────────────

def test_rule_table_order():
    order = [c for c, _ in RULES] + [Category.ADDRESS]
    assert order == list(Category)


def test_phone_rule():
    found = scan_rules("전화 010-1234-5678")
    assert found[Category.PHONE] == ["010-1234-5678"]


def test_mac_rule_returns_whole_match():
    found = scan_rules("mac aa:bb:cc:dd:ee:ff")
    assert found[Category.MAC_ADDRESS] == ["aa:bb:cc:dd:ee:ff"]


def test_ipv6_rule():
    addr = "2001:0db8:85a3:0000:0000:8a2e:0370:7334"
    assert scan_rules(f"host {addr}")[Category.IPV6] == [addr]


# ── Address heuristic ────────────────────────────────────────────────

def test_road_name_address():
    text = "서울특별시 강남구 테헤란로 123에 있어요"
    assert detect_addresses(text) == ["서울특별시 강남구 테헤란로 123"]


def test_address_needs_two_keywords():
    # Matches the bare road-name shape but only contains "로"
    assert detect_addresses("가나로 5") == []


def test_keyword_floor():
    assert has_address_keywords("강남구 역삼동")
    assert not has_address_keywords("테헤란로")
    assert not has_address_keywords("hello")


def test_no_address_in_plain_text():
    assert detect_addresses("오늘 날씨가 좋네요") == []


# ── Masker ───────────────────────────────────────────────────────────

def test_mask_escapes_metacharacters():
    assert mask("a.b a.b axb", ["a.b"]) == "*** *** axb"


def test_mask_is_global_per_value():
    assert mask("x 1.2.3.4 y 1.2.3.4", ["1.2.3.4"]) == "x *** y ***"


def test_mask_custom_token():
    assert mask("id 42", ["42"], token="[X]") == "id [X]"


# ── Analyzer ─────────────────────────────────────────────────────────

def test_phone_scenario():
    result = Analyzer().analyze("내 번호는 010-1234-5678 입니다")
    assert result.detected["phone"] == ["010-1234-5678"]
    assert result.masked_text == "내 번호는 *** 입니다"
    assert result.status == Status.DANGER


def test_email_scenario():
    result = Analyzer().analyze("연락처 test@example.com")
    assert result.detected["email"] == ["test@example.com"]
    assert result.masked_text == "연락처 ***"
    assert result.status == Status.DANGER


def test_all_categories_present():
    result = Analyzer().analyze("연락처 test@example.com")
    assert list(result.detected) == [c.value for c in Category]
    assert all(v == [] for k, v in result.detected.items() if k != "email")


def test_safe_text():
    text = "오늘 날씨가 좋네요"
    result = Analyzer().analyze(text)
    assert result.status == Status.SAFE
    assert result.masked_text == text
    assert not any(result.detected.values())


def test_repeated_value_masked_everywhere():
    result = Analyzer().analyze("서버 192.168.0.1 과 192.168.0.1")
    assert result.detected["ipv4"] == ["192.168.0.1", "192.168.0.1"]
    assert result.masked_text == "서버 *** 과 ***"


def test_credit_card():
    result = Analyzer().analyze("카드 1234-5678-9012-3456")
    assert result.detected["creditCard"] == ["1234-5678-9012-3456"]
    assert result.masked_text == "카드 ***"


def test_earlier_category_masks_first():
    # The postal-code pass runs before the address pass, so the address
    # literal no longer exists when its turn comes.
    text = "서울특별시 강남구 테헤란로 12345"
    result = Analyzer().analyze(text)
    assert result.detected["postalCode"] == ["12345"]
    assert result.detected["address"] == [text]
    assert result.masked_text == "서울특별시 강남구 테헤란로 ***"


def test_masking_is_idempotent():
    analyzer = Analyzer()
    for text in ["내 번호는 010-1234-5678 입니다", "연락처 test@example.com"]:
        again = analyzer.analyze(analyzer.analyze(text).masked_text)
        assert again.status == Status.SAFE


def test_status_matches_detections():
    analyzer = Analyzer()
    for text in ["hello", "mail a@b.com", "서버 10.0.0.1", "평범한 문장"]:
        r = analyzer.analyze(text)
        assert (r.status == Status.DANGER) == any(r.detected.values())


@pytest.mark.parametrize("bad", ["", None, 123, b"bytes"])
def test_invalid_input(bad):
    with pytest.raises(InvalidInputError):
        Analyzer().analyze(bad)


def test_skip_categories():
    analyzer = Analyzer(AnalyzerConfig(skip_categories={"email"}))
    result = analyzer.analyze("연락처 test@example.com")
    assert result.detected["email"] == []
    assert result.masked_text == "연락처 test@example.com"
    assert result.status == Status.SAFE


def test_allow_list():
    analyzer = Analyzer(AnalyzerConfig(allow_list={"help@example.com"}))
    result = analyzer.analyze("help@example.com 또는 me@example.com")
    assert result.detected["email"] == ["me@example.com"]
    assert result.masked_text == "help@example.com 또는 ***"


def test_to_dict_wire_shape():
    d = Analyzer().analyze("내 번호는 010-1234-5678 입니다").to_dict()
    assert d["result"] == "내 번호는 *** 입니다"
    assert d["status"] == "danger"
    assert d["detected"]["phone"] == ["010-1234-5678"]
