"""
Unit Tests for Time Utilities

Run with:
    pytest tests/unit/test_time_utils.py -v
"""

from datetime import datetime, timezone

import pytest

from core.utils.time import datetime_to_timestamp, export_timestamp, to_iso_utc, to_utc_datetime


class TestToUtcDatetime:
    """Tests for seconds / milliseconds detection"""

    def test_seconds(self):
        assert to_utc_datetime(1700000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_milliseconds(self):
        assert to_utc_datetime(1740038400000) == datetime(2025, 2, 20, 8, 0, tzinfo=timezone.utc)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_utc_datetime(-1)


class TestFormatting:
    """Tests for string renderings"""

    def test_iso_utc_has_milliseconds(self):
        assert to_iso_utc(1700000000) == "2023-11-14T22:13:20.000Z"

    def test_naive_datetime_treated_as_utc(self):
        assert datetime_to_timestamp(datetime(2025, 2, 20, 8), milliseconds=True) == 1740038400000

    def test_export_timestamp_is_filename_safe(self):
        now = datetime(2025, 2, 20, 8, 30, 5, tzinfo=timezone.utc)

        assert export_timestamp(now) == "2025-02-20T08-30-05"
