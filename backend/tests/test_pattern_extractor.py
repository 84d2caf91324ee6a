from __future__ import annotations

from datetime import datetime

from linesheets.modules.extraction import PatternExtractor


def test_labeled_entities_are_extracted():
    text = "氏名：山田太郎\nメール: taro@example.co.jp\n電話：03-1234-5678\n会社：ACME株式会社"
    data = PatternExtractor().extract(text)
    assert data["name"] == "山田太郎"
    assert data["email"] == "taro@example.co.jp"
    assert data["phone"] == "03-1234-5678"
    assert data["company"] == "ACME株式会社"
    assert data["message"] == text
    assert data["urgency"] == "medium"


def test_missing_entities_are_absent():
    data = PatternExtractor().extract("こんにちは")
    assert set(data) == {"message", "timestamp", "urgency"}


def test_timestamp_is_iso8601():
    data = PatternExtractor().extract("hello")
    parsed = datetime.fromisoformat(data["timestamp"])
    assert parsed.tzinfo is not None


def test_urgent_keyword_marks_high():
    assert PatternExtractor().extract("至急ご連絡ください")["urgency"] == "high"
    assert PatternExtractor().extract("すぐに対応をお願いします")["urgency"] == "high"


def test_tel_label_is_case_insensitive():
    data = PatternExtractor().extract("tel: (03) 1111-2222")
    assert data["phone"] == "(03) 1111-2222"


def test_internal_error_returns_minimal_result():
    class _Boom:
        def search(self, text):
            raise RuntimeError("boom")

    data = PatternExtractor(patterns={"name": _Boom()}).extract("緊急です")
    assert data["message"] == "緊急です"
    assert data["urgency"] == "medium"
    assert "name" not in data
