"""Unit tests for the interval aggregation logic."""

from __future__ import annotations

import pytest

from models.records import HydroponicReading, IrrigationReading
from services.aggregator import IntervalBucketAggregator, bucket_start, resolve_bucket_ms

T0 = 1_700_000_000_000  # multiple of 5000


def _reading(offset_ms: int, **values) -> HydroponicReading:
    """Helper to build deterministic hydroponic readings."""

    return HydroponicReading(timestamp=T0 + offset_ms, **values)


def test_aggregate_empty_iterable_returns_no_buckets() -> None:
    aggregator = IntervalBucketAggregator()

    assert aggregator.aggregate([]) == []


def test_aggregate_skips_unparseable_timestamps() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        HydroponicReading(timestamp="garbage", temperature=20.0),
        HydroponicReading(timestamp=None, temperature=21.0),
    ]

    result = aggregator.aggregate_with_stats(readings)

    assert result.buckets == []
    assert result.unparseable_count == 2


def test_aggregate_averages_readings_in_same_bucket() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        HydroponicReading.from_mapping({"timestamp": T0, "suhu": 20}),
        HydroponicReading.from_mapping({"timestamp": T0 + 1000, "suhu": 30}),
    ]

    buckets = aggregator.aggregate(readings, 5000)

    assert len(buckets) == 1
    assert buckets[0].timestamp == T0
    assert buckets[0].temperature == 25.0
    assert buckets[0].ph is None
    assert buckets[0].flow_rate is None


def test_missing_values_only_affect_their_own_field() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        _reading(0, temperature=20.0, ph=6.0, flow_rate="n/a"),
        _reading(1000, temperature=None, ph=7.0, flow_rate=1.5),
        _reading(2000, temperature=float("nan"), ph=True, flow_rate=2.5),
    ]

    (bucket,) = aggregator.aggregate(readings)

    assert bucket.temperature == 20.0
    assert bucket.ph == 6.5
    assert bucket.flow_rate == 2.0


def test_integers_beyond_float_range_are_skipped() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        _reading(0, temperature=10**400, ph=6.0),
        _reading(1000, temperature=22.0, ph=7.0),
    ]

    (bucket,) = aggregator.aggregate(readings)

    assert bucket.temperature == 22.0
    assert bucket.ph == 6.5


def test_buckets_are_strictly_ascending_and_unique() -> None:
    aggregator = IntervalBucketAggregator()
    offsets = [12_000, 0, 4_999, 5_000, 30_000, 12_500, 9_999]
    readings = [_reading(offset, temperature=float(offset)) for offset in offsets]

    buckets = aggregator.aggregate(readings)
    starts = [bucket.timestamp for bucket in buckets]

    assert starts == [T0, T0 + 5_000, T0 + 10_000, T0 + 30_000]
    assert all(earlier < later for earlier, later in zip(starts, starts[1:]))
    assert all(start % 5_000 == 0 for start in starts)


def test_bucket_mean_matches_readings_sharing_the_key() -> None:
    aggregator = IntervalBucketAggregator()
    offsets = [0, 700, 1_400, 2_100, 2_800, 3_500, 4_200, 4_900, 5_600, 6_300]
    readings = [_reading(offset, flow_rate=offset / 100) for offset in offsets]

    buckets = {bucket.timestamp: bucket for bucket in aggregator.aggregate(readings)}

    for start, bucket in buckets.items():
        members = [
            reading.flow_rate
            for reading in readings
            if bucket_start(reading.timestamp, 5_000) == start
        ]
        assert bucket.flow_rate == pytest.approx(sum(members) / len(members))


def test_seconds_timestamps_are_bucketed_in_milliseconds() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        HydroponicReading(timestamp=1_700_000_003, ph=6.0),
        HydroponicReading(timestamp=1_700_000_004_500, ph=7.0),
    ]

    (bucket,) = aggregator.aggregate(readings)

    assert bucket.timestamp == T0
    assert bucket.ph == 6.5


@pytest.mark.parametrize("width", [0, -5, 2.5, "5000", None, True, float("nan")])
def test_invalid_bucket_width_falls_back_to_default(width) -> None:
    assert resolve_bucket_ms(width) == 5000


def test_custom_bucket_width() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [_reading(offset, temperature=1.0) for offset in (0, 1_000, 2_000, 3_000)]

    buckets = aggregator.aggregate(readings, bucket_ms=2_000)

    assert [bucket.timestamp for bucket in buckets] == [T0, T0 + 2_000]
    assert resolve_bucket_ms(2_000.0) == 2_000


def test_extended_variant_keeps_all_fields() -> None:
    aggregator = IntervalBucketAggregator()
    readings = [
        IrrigationReading.from_mapping(
            {"timestamp": T0, "temperature": 24, "temperatureAir": 30, "humidity": 70}
        ),
        IrrigationReading.from_mapping(
            {"timestamp": T0 + 500, "soilMoisture": 40, "ph": 6.5, "flowRate": 1.2}
        ),
    ]

    (bucket,) = aggregator.aggregate(readings)

    assert isinstance(bucket, IrrigationReading)
    assert bucket.as_dict() == {
        "soil_temperature": 24.0,
        "air_temperature": 30.0,
        "air_humidity": 70.0,
        "soil_moisture": 40.0,
        "ph": 6.5,
        "flow_rate": 1.2,
    }
