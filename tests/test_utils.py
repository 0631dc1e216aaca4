"""Unit tests for utility functions."""

import os
from datetime import timezone

from drimesync.utils import (
    iso_to_millis,
    millis_to_iso,
    mtime_millis,
    parse_iso_timestamp,
)


class TestParseIsoTimestamp:
    """Tests for parse_iso_timestamp function."""

    def test_zulu_suffix(self):
        """Test that a trailing Z is parsed as UTC."""
        dt = parse_iso_timestamp("2025-01-15T10:30:00.000000Z")
        assert dt is not None
        assert dt.tzinfo is not None
        assert dt.utcoffset().total_seconds() == 0
        assert (dt.year, dt.month, dt.day, dt.hour) == (2025, 1, 15, 10)

    def test_naive_timestamp_is_utc(self):
        """Test that timestamps without offset are treated as UTC."""
        dt = parse_iso_timestamp("2025-01-15T10:30:00")
        assert dt is not None
        assert dt.tzinfo == timezone.utc

    def test_explicit_offset(self):
        """Test that an explicit offset is honored."""
        dt = parse_iso_timestamp("2025-01-15T12:30:00+02:00")
        assert dt is not None
        assert dt.utcoffset().total_seconds() == 7200

    def test_empty_and_none(self):
        """Test that missing values yield None."""
        assert parse_iso_timestamp(None) is None
        assert parse_iso_timestamp("") is None

    def test_garbage(self):
        """Test that unparseable values yield None."""
        assert parse_iso_timestamp("yesterday") is None


class TestIsoToMillis:
    """Tests for iso_to_millis function."""

    def test_epoch_plus_fraction(self):
        """Test millisecond precision is kept."""
        assert iso_to_millis("1970-01-01T00:00:01.500000Z") == 1500

    def test_offset_is_normalized(self):
        """Test that equal instants in different zones map to equal values."""
        assert iso_to_millis("2025-01-15T12:30:00+02:00") == iso_to_millis(
            "2025-01-15T10:30:00Z"
        )

    def test_ordering(self):
        """Test that later timestamps map to larger values."""
        earlier = iso_to_millis("2025-01-15T10:30:00.000Z")
        later = iso_to_millis("2025-01-15T10:30:00.001Z")
        assert earlier is not None and later is not None
        assert later - earlier == 1

    def test_unknown(self):
        """Test that an unknown timestamp stays unknown."""
        assert iso_to_millis(None) is None


class TestMillisToIso:
    """Tests for millis_to_iso function."""

    def test_epoch(self):
        assert millis_to_iso(0) == "1970-01-01T00:00:00+00:00"

    def test_round_trip_through_iso(self):
        """Test that formatting and parsing agree."""
        assert iso_to_millis(millis_to_iso(1_736_937_000_123)) == 1_736_937_000_123


class TestMtimeMillis:
    """Tests for mtime_millis function."""

    def test_reads_nanosecond_mtime(self, tmp_path):
        """Test conversion of a stat result to milliseconds."""
        path = tmp_path / "a.txt"
        path.write_text("x")
        os.utime(path, ns=(1_000_000_000, 1_234_567_891_234))

        assert mtime_millis(path.stat()) == 1_234_567
