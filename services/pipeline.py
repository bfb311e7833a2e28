"""End-to-end processing of one reading snapshot."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Union

from models.records import (
    ChartPoint,
    HydroponicReading,
    Reading,
    SchemaVariant,
    reading_type_for,
)
from services.aggregator import DEFAULT_BUCKET_MS, IntervalBucketAggregator, resolve_bucket_ms
from services.projector import DEFAULT_MAX_POINTS, ChartSeriesProjector, resolve_max_points
from services.sequencer import ChronologicalSequencer
from services.summary import (
    ALL,
    DEFAULT_WINDOW_FALLBACK,
    Window,
    WindowedSummaryEngine,
    select_source,
)
from services.timestamps import TimestampNormalizer
from settings import get_settings

logger = logging.getLogger(__name__)


def parse_option_text(value: Optional[str]) -> Any:
    """Turn a textual run option (query string, CLI flag) into a number where possible."""
    if value is None:
        return None
    candidate = value.strip()
    for cast in (int, float):
        try:
            return cast(candidate)
        except ValueError:
            continue
    return candidate.lower()


class SummarySource(str, Enum):
    """Series the summaries were averaged over."""

    buckets = "buckets"
    raw = "raw"


@dataclass
class SeriesSnapshot:
    """Everything the dashboard needs for one refresh."""

    variant: SchemaVariant
    summary_source: SummarySource
    reading_count: int = 0
    bucket_count: int = 0
    unparseable_count: int = 0
    summaries: Dict[str, Optional[float]] = field(default_factory=dict)
    chart: List[ChartPoint] = field(default_factory=list)


class SeriesPipeline:
    """Coordinates ordering, bucketing, summaries and chart projection.

    The pipeline holds configuration only; every ``run`` is a pure function
    of the snapshot it receives.
    """

    def __init__(
        self,
        normalizer: Optional[TimestampNormalizer] = None,
        bucket_ms: int = DEFAULT_BUCKET_MS,
        max_points: int = DEFAULT_MAX_POINTS,
        window: Window = ALL,
        window_fallback: int = DEFAULT_WINDOW_FALLBACK,
    ) -> None:
        self.normalizer = normalizer or TimestampNormalizer()
        self.sequencer = ChronologicalSequencer(self.normalizer)
        self.aggregator = IntervalBucketAggregator(self.normalizer)
        self.summary_engine = WindowedSummaryEngine(default_window=window_fallback)
        self.projector = ChartSeriesProjector(self.normalizer)
        self.bucket_ms = resolve_bucket_ms(bucket_ms)
        self.max_points = resolve_max_points(max_points)
        self.window = window

    def run(
        self,
        readings: Sequence[Reading],
        variant: Union[SchemaVariant, str, None] = None,
        bucket_ms: Any = None,
        max_points: Any = None,
        window: Any = None,
    ) -> SeriesSnapshot:
        start_time = time.perf_counter()

        if variant is not None:
            record_type = reading_type_for(variant)
        elif readings:
            record_type = type(readings[0])
        else:
            record_type = HydroponicReading

        width = self.bucket_ms if bucket_ms is None else resolve_bucket_ms(bucket_ms, self.bucket_ms)
        limit = self.max_points if max_points is None else resolve_max_points(max_points, self.max_points)
        averaging_window = self.window if window is None else window

        ordered = self.sequencer.order(readings)
        aggregation = self.aggregator.aggregate_with_stats(ordered, width, record_type)
        buckets = aggregation.buckets

        source = select_source(buckets, ordered)
        summaries = self.summary_engine.summarize(source, averaging_window, record_type)
        chart = self.projector.project(buckets, ordered, limit)

        snapshot = SeriesSnapshot(
            variant=record_type.VARIANT,
            summary_source=SummarySource.buckets if buckets else SummarySource.raw,
            reading_count=len(ordered),
            bucket_count=len(buckets),
            unparseable_count=aggregation.unparseable_count,
            summaries=summaries,
            chart=chart,
        )

        logger.info(
            "Processed reading snapshot",
            extra={
                "variant": snapshot.variant.value,
                "reading_count": snapshot.reading_count,
                "bucket_count": snapshot.bucket_count,
                "unparseable_count": snapshot.unparseable_count,
                "bucket_ms": width,
                "window": averaging_window,
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return snapshot


@lru_cache
def build_default_pipeline() -> SeriesPipeline:
    """Factory that wires the pipeline from environment settings."""
    settings = get_settings()
    normalizer = TimestampNormalizer(
        tz=settings.tzinfo,
        label_format=settings.time_label_format,
    )
    return SeriesPipeline(
        normalizer=normalizer,
        bucket_ms=settings.bucket_ms,
        max_points=settings.max_chart_points,
        window=settings.average_window,
        window_fallback=settings.window_fallback,
    )
