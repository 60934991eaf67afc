"""Tests for the UTC helpers."""

from datetime import datetime, timedelta, timezone

from fuel_delivery_core.utils.time_utils import ensure_utc, utc_now


def test_utc_now_is_aware():
    now = utc_now()

    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_ensure_utc_none():
    assert ensure_utc(None) is None


def test_ensure_utc_naive_is_taken_as_utc():
    result = ensure_utc(datetime(2030, 1, 15, 10))

    assert result == datetime(2030, 1, 15, 10, tzinfo=timezone.utc)


def test_ensure_utc_converts_offsets():
    plus_two = timezone(timedelta(hours=2))

    result = ensure_utc(datetime(2030, 1, 15, 12, tzinfo=plus_two))

    assert result == datetime(2030, 1, 15, 10, tzinfo=timezone.utc)
    assert result.utcoffset() == timedelta(0)
