"""Fixed-width interval aggregation for sensor readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any, Dict, Iterable, List, Optional, Type

from models.records import Reading, is_finite_number
from services.timestamps import TimestampNormalizer

DEFAULT_BUCKET_MS = 5000

logger = logging.getLogger(__name__)


def resolve_bucket_ms(value: Any, default: int = DEFAULT_BUCKET_MS) -> int:
    """Return ``value`` as a positive integer width, else ``default``."""

    if isinstance(value, bool) or not isinstance(value, Real):
        return default
    if isinstance(value, Integral):
        return int(value) if value > 0 else default
    if is_finite_number(value) and value > 0 and float(value).is_integer():
        return int(value)
    return default


def bucket_start(epoch_ms: float, bucket_ms: int) -> int:
    return int(math.floor(epoch_ms / bucket_ms)) * bucket_ms


@dataclass
class _FieldTotals:
    """Running sums and counts, one slot per schema field."""

    sums: List[float]
    counts: List[int]

    @classmethod
    def sized(cls, width: int) -> "_FieldTotals":
        return cls(sums=[0.0] * width, counts=[0] * width)


@dataclass
class AggregationResult:
    """Buckets plus bookkeeping about what was left out."""

    buckets: List[Reading] = field(default_factory=list)
    unparseable_count: int = 0


class IntervalBucketAggregator:
    """Pure aggregation component that can be unit tested in isolation.

    A bucket is a record of the readings' own variant whose ``timestamp`` is
    the integer bucket start and whose fields hold per-field means, or
    ``None`` when no reading in the interval carried a finite value.
    """

    def __init__(self, normalizer: Optional[TimestampNormalizer] = None) -> None:
        self.normalizer = normalizer or TimestampNormalizer()

    def aggregate(
        self,
        readings: Iterable[Reading],
        bucket_ms: Any = DEFAULT_BUCKET_MS,
        record_type: Optional[Type[Reading]] = None,
    ) -> List[Reading]:
        return self.aggregate_with_stats(readings, bucket_ms, record_type).buckets

    def aggregate_with_stats(
        self,
        readings: Iterable[Reading],
        bucket_ms: Any = DEFAULT_BUCKET_MS,
        record_type: Optional[Type[Reading]] = None,
    ) -> AggregationResult:
        width = resolve_bucket_ms(bucket_ms)
        if width != bucket_ms:
            logger.debug(
                "Replaced invalid bucket width",
                extra={"bucket_ms": width, "reason": f"invalid value {bucket_ms!r}"},
            )

        result = AggregationResult()
        totals: Dict[int, _FieldTotals] = {}

        for reading in readings:
            if record_type is None:
                record_type = type(reading)
            epoch_ms = self.normalizer.try_parse(reading.timestamp)
            if epoch_ms is None:
                result.unparseable_count += 1
                continue

            key = bucket_start(epoch_ms, width)
            slot = totals.get(key)
            if slot is None:
                slot = totals[key] = _FieldTotals.sized(len(record_type.FIELDS))

            for position, name in enumerate(record_type.FIELDS):
                value = getattr(reading, name, None)
                if is_finite_number(value):
                    slot.sums[position] += value
                    slot.counts[position] += 1

        if record_type is None:
            return result

        for key in sorted(totals):
            slot = totals[key]
            means = {
                name: slot.sums[position] / slot.counts[position]
                if slot.counts[position]
                else None
                for position, name in enumerate(record_type.FIELDS)
            }
            result.buckets.append(record_type(timestamp=key, **means))

        return result
