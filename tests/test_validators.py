# tests/test_validators.py
"""Unit tests for format checks and normalisation helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
from datetime import datetime, timedelta, timezone
from app.services.protocol import generate_protocol, is_protocol
from app.utils.timezone import to_naive_utc
from app.utils.validators import (
    clean_text, is_valid_license, is_valid_phone, is_valid_plate,
    normalize_name, normalize_phone, normalize_plate,
)


class TestPlates:
    def test_accepted_formats(self):
        for plate in ("ABC1234", "abc-1234", "ABC 1D23", "abc1d23"):
            assert is_valid_plate(plate), plate

    def test_rejected_formats(self):
        for plate in ("", "AB1234", "ABCD123", "ABC12345", "1BC1234"):
            assert not is_valid_plate(plate), plate

    def test_normalize(self):
        assert normalize_plate("abc1234") == "ABC-1234"
        assert normalize_plate("abc 1d23") == "ABC-1D23"


class TestLicenseAndPhone:
    def test_license_ignores_punctuation(self):
        assert is_valid_license("123.456.789-01")
        assert not is_valid_license("1234567890")

    def test_phone(self):
        assert is_valid_phone("(11) 99999-9999")
        assert not is_valid_phone("999-9999")
        assert normalize_phone("11999999999") == "(11) 99999-9999"
        assert normalize_phone("1133334444") == "(11) 3333-4444"


class TestText:
    def test_normalize_name(self):
        assert normalize_name("  maria OLIVEIRA costa ") == "Maria Oliveira Costa"

    def test_clean_text(self):
        assert clean_text("  ") is None
        assert clean_text(None) is None
        assert clean_text(" hi ") == "hi"


class TestProtocol:
    def test_format(self):
        protocol = generate_protocol(datetime(2025, 7, 4, 15, 31, 12), random.Random(1))
        assert protocol.startswith("20250704153112")
        assert 100 <= int(protocol[-3:]) <= 999
        assert is_protocol(protocol)

    def test_is_protocol(self):
        assert not is_protocol("2025")
        assert not is_protocol(None)


class TestTimezone:
    def test_aware_converted(self):
        dt = datetime(2025, 7, 1, 6, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert to_naive_utc(dt) == datetime(2025, 7, 1, 9, 0)

    def test_naive_kept(self):
        dt = datetime(2025, 7, 1, 9, 0)
        assert to_naive_utc(dt) is dt
