"""Tests for shared helpers."""

from datetime import datetime, timezone

import pytest

from devmem.types import RecordKind, ValidationError, parse_datetime, parse_kind
from devmem.utils import format_bytes, format_time_ago

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestFormatTimeAgo:
    @pytest.mark.parametrize(
        "timestamp,expected",
        [
            ("2025-06-01T11:59:45+00:00", "just now"),
            ("2025-06-01T11:15:00+00:00", "45m ago"),
            ("2025-06-01T07:00:00+00:00", "5h ago"),
            ("2025-05-29 12:00:00", "3d ago"),
            ("2025-05-01T00:00:00Z", "2025-05-01"),
        ],
    )
    def test_buckets(self, timestamp, expected):
        assert format_time_ago(timestamp, now=NOW) == expected

    def test_unparseable(self):
        assert format_time_ago(None) == "unknown"
        assert format_time_ago("yesterday-ish") == "unknown"


class TestFormatBytes:
    @pytest.mark.parametrize(
        "size,expected",
        [(512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB"), (3 * 1024**4, "3072.0 GB")],
    )
    def test_units(self, size, expected):
        assert format_bytes(size) == expected


class TestParsing:
    def test_naive_timestamp_is_utc(self):
        assert parse_datetime("2024-01-01 00:00:00").tzinfo == timezone.utc

    def test_parse_kind(self):
        assert parse_kind("learning") == RecordKind.LEARNING
        with pytest.raises(ValidationError, match="Invalid type: note"):
            parse_kind("note")
