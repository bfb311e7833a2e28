"""Bounded chart series for the dashboard."""

from __future__ import annotations

from numbers import Integral
from typing import Any, List, Optional, Sequence

from models.records import ChartPoint, Reading, is_finite_number
from services.timestamps import TimestampNormalizer

DEFAULT_MAX_POINTS = 20


def resolve_max_points(value: Any, default: int = DEFAULT_MAX_POINTS) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral) or value <= 0:
        return default
    return int(value)


class ChartSeriesProjector:
    """Tail of the bucketed series, or of the raw series when no bucket exists."""

    def __init__(self, normalizer: Optional[TimestampNormalizer] = None) -> None:
        self.normalizer = normalizer or TimestampNormalizer()

    def project(
        self,
        buckets: Sequence[Reading],
        raw_chrono: Sequence[Reading],
        max_points: Any = DEFAULT_MAX_POINTS,
    ) -> List[ChartPoint]:
        limit = resolve_max_points(max_points)
        if buckets:
            # Bucket starts are already epoch ms; re-parsing small values
            # would apply the seconds heuristic a second time.
            return [self._to_point(bucket, float(bucket.timestamp)) for bucket in buckets[-limit:]]
        return [
            self._to_point(reading, self.normalizer.try_parse(reading.timestamp))
            for reading in raw_chrono[-limit:]
        ]

    def _to_point(self, item: Reading, epoch_ms: Optional[float]) -> ChartPoint:
        label = self.normalizer.label_for(item.timestamp, epoch_ms)
        cleaned = {
            name: value if is_finite_number(value) else None
            for name, value in item.as_dict().items()
        }
        return ChartPoint(
            time=label,
            timestamp_ms=epoch_ms,
            values=type(item)(timestamp=item.timestamp, **cleaned),
        )
