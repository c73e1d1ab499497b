"""Tests for day-key utilities."""

from datetime import date, datetime, timedelta, timezone

import pytest

from goalstore.engine.dates import (
    add_days_key,
    days_between,
    from_key,
    is_valid_key,
    last_7_keys,
    to_key,
    today_key,
    weekday_index,
)
from goalstore.engine.errors import InvalidDateKey


class TestRoundTrip:
    def test_every_day_over_several_years(self):
        d = date(1999, 1, 1)
        while d < date(2031, 1, 1):
            assert from_key(to_key(d)) == d
            d += timedelta(days=1)

    def test_zero_padding(self):
        assert to_key(date(2025, 3, 7)) == "2025-03-07"

    def test_aware_datetime_uses_local_day(self, monkeypatch):
        from goalstore.config import settings

        monkeypatch.setattr(settings, "default_tz", "Pacific/Auckland")
        # 20:00 UTC on the 1st is already the 2nd in Auckland
        assert to_key(datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc)) == "2025-06-02"

    def test_naive_datetime_taken_at_face_value(self):
        assert to_key(datetime(2025, 6, 1, 23, 59)) == "2025-06-01"


class TestInvalidKeys:
    @pytest.mark.parametrize(
        "key",
        ["2025-02-30", "2025-13-01", "abcd", "2025-2-03", "2025-00-10", "", "2025-06-01T00:00"],
    )
    def test_rejected(self, key):
        with pytest.raises(InvalidDateKey):
            from_key(key)
        assert is_valid_key(key) is False

    def test_non_string(self):
        assert is_valid_key(None) is False
        assert is_valid_key(20250601) is False

    def test_leap_day(self):
        assert from_key("2024-02-29") == date(2024, 2, 29)
        assert is_valid_key("2023-02-29") is False

    def test_invalid_key_is_value_error(self):
        with pytest.raises(ValueError):
            from_key("2025-04-31")


class TestArithmetic:
    def test_leap_year_boundary(self):
        assert add_days_key("2024-02-28", 1) == "2024-02-29"

    def test_non_leap_boundary(self):
        assert add_days_key("2023-02-28", 1) == "2023-03-01"

    def test_year_boundary_backwards(self):
        assert add_days_key("2025-01-01", -1) == "2024-12-31"

    def test_across_dst_change(self, monkeypatch):
        from goalstore.config import settings

        monkeypatch.setattr(settings, "default_tz", "Europe/Berlin")
        assert add_days_key("2025-03-29", 1) == "2025-03-30"
        assert add_days_key("2025-03-30", 1) == "2025-03-31"
        assert add_days_key("2025-10-26", -1) == "2025-10-25"

    def test_days_between_signed(self):
        assert days_between("2025-06-05", "2025-06-10") == 5
        assert days_between("2025-06-10", "2025-06-05") == -5
        assert days_between("2025-06-05", "2025-06-05") == 0
        assert days_between("2024-12-31", "2025-03-01") == 60


class TestHelpers:
    def test_lexicographic_order_is_chronological(self):
        keys = [to_key(date(2024, 12, 31) + timedelta(days=i * 37)) for i in range(20)]
        assert keys == sorted(keys)

    def test_weekday_index_sunday_zero(self):
        assert weekday_index("2025-06-01") == 0  # Sunday
        assert weekday_index("2025-06-02") == 1  # Monday
        assert weekday_index("2025-06-07") == 6  # Saturday

    def test_last_7_keys_oldest_first(self):
        assert last_7_keys("2025-03-02") == [
            "2025-02-24",
            "2025-02-25",
            "2025-02-26",
            "2025-02-27",
            "2025-02-28",
            "2025-03-01",
            "2025-03-02",
        ]

    def test_today_key_from_given_now(self):
        assert today_key(datetime(2025, 6, 5, 12, 0, tzinfo=timezone.utc)) == "2025-06-05"
