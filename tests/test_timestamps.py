"""Unit tests for timestamp normalization."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone

import pytest

from services.timestamps import TimestampNormalizer, UnparseableTimestamp

JAKARTA = timezone(timedelta(hours=7))


def _ms(moment: datetime) -> float:
    return moment.timestamp() * 1000


@pytest.fixture()
def normalizer() -> TimestampNormalizer:
    return TimestampNormalizer(tz=JAKARTA)


def test_seconds_and_milliseconds_resolve_to_same_instant(normalizer: TimestampNormalizer) -> None:
    from_seconds = normalizer.parse(1_700_000_000)
    from_millis = normalizer.parse(1_700_000_000_000)

    assert from_seconds == 1_700_000_000_000
    assert from_millis == 1_700_000_000_000


def test_seconds_threshold_boundary(normalizer: TimestampNormalizer) -> None:
    assert normalizer.parse(99_999_999_999) == 99_999_999_999_000
    assert normalizer.parse(100_000_000_000) == 100_000_000_000
    assert normalizer.parse(1_700_000_000.5) == 1_700_000_000_500
    assert normalizer.parse(-5) == -5000


@pytest.mark.parametrize("raw", [None, "", "   ", True, float("nan"), float("inf"), "garbage", object()])
def test_unparseable_inputs_fail(normalizer: TimestampNormalizer, raw) -> None:
    with pytest.raises(UnparseableTimestamp):
        normalizer.parse(raw)
    assert normalizer.try_parse(raw) is None


def test_native_datetimes(normalizer: TimestampNormalizer) -> None:
    aware = datetime(2024, 1, 15, 3, 30, tzinfo=timezone.utc)
    naive = datetime(2024, 1, 15, 10, 30)

    assert normalizer.parse(aware) == _ms(aware)
    assert normalizer.parse(naive) == _ms(aware)
    assert normalizer.parse(date(2024, 1, 15)) == _ms(datetime(2024, 1, 15, tzinfo=JAKARTA))


def test_spreadsheet_and_day_first_forms_agree(normalizer: TimestampNormalizer) -> None:
    expected = _ms(datetime(2024, 1, 15, 10, 30, tzinfo=JAKARTA))

    assert normalizer.parse("Date(2024,0,15,10,30,0)") == expected
    assert normalizer.parse("15/01/2024 10.30.00") == expected
    assert normalizer.parse("15/01/2024, 10:30:00") == expected
    assert normalizer.parse("15-01-2024T10:30") == expected


def test_forms_agree_in_host_zone() -> None:
    host = TimestampNormalizer()
    expected = _ms(datetime(2024, 1, 15, 10, 30))

    assert host.parse("Date(2024,0,15,10,30,0)") == expected
    assert host.parse("15/01/2024 10.30.00") == expected
    assert host.parse("15/01/2024, 10:30:00") == expected


def test_spreadsheet_constructor_variants(normalizer: TimestampNormalizer) -> None:
    midnight = _ms(datetime(2024, 1, 15, tzinfo=JAKARTA))

    assert normalizer.parse("Date(2024,0,15)") == midnight
    assert normalizer.parse("new date( 2024 , 0 , 15 )") == midnight
    assert normalizer.parse("Date(2024,12,1)") == _ms(datetime(2025, 1, 1, tzinfo=JAKARTA))
    assert normalizer.parse("Date(99,0,1)") == _ms(datetime(1999, 1, 1, tzinfo=JAKARTA))


def test_day_first_ordering_and_rollover(normalizer: TimestampNormalizer) -> None:
    assert normalizer.parse("01/02/2024") == _ms(datetime(2024, 2, 1, tzinfo=JAKARTA))
    assert normalizer.parse("31/02/2024") == _ms(datetime(2024, 3, 2, tzinfo=JAKARTA))
    assert normalizer.parse(" 5/3/2024 7.05 ") == _ms(datetime(2024, 3, 5, 7, 5, tzinfo=JAKARTA))


def test_iso_and_textual_fallbacks(normalizer: TimestampNormalizer) -> None:
    expected = _ms(datetime(2024, 1, 15, 10, 30, tzinfo=JAKARTA))

    assert normalizer.parse("2024-01-15T03:30:00Z") == expected
    assert normalizer.parse("2024-01-15T10:30:00+07:00") == expected
    assert normalizer.parse("2024-01-15T10:30:00") == expected
    assert normalizer.parse("January 15, 2024 10:30:00") == expected
    assert normalizer.parse("2024-01-15") == _ms(datetime(2024, 1, 15, tzinfo=timezone.utc))


def test_results_are_finite_floats(normalizer: TimestampNormalizer) -> None:
    value = normalizer.parse("15/01/2024 10:30")

    assert isinstance(value, float)
    assert math.isfinite(value)


def test_labels(normalizer: TimestampNormalizer) -> None:
    instant = _ms(datetime(2024, 1, 15, 10, 30, 5, tzinfo=JAKARTA))

    assert normalizer.format_label(instant) == "10.30.05"
    assert normalizer.label_for("15/01/2024 10:30:05") == "10.30.05"
    assert normalizer.label_for("garbage") == "garbage"
    assert normalizer.label_for(None) == "--"


def test_label_format_is_configurable() -> None:
    normalizer = TimestampNormalizer(tz=timezone.utc, label_format="%Y-%m-%d %H:%M")

    assert normalizer.label_for(1_700_000_000) == "2023-11-14 22:13"


def test_out_of_range_label_falls_back_to_raw(normalizer: TimestampNormalizer) -> None:
    with pytest.raises(UnparseableTimestamp):
        normalizer.format_label(1e20)
    assert normalizer.label_for(1e20) == str(1e20)
