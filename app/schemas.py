"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.records import SchemaVariant
from services.pipeline import SeriesSnapshot, SummarySource


class SeriesRequest(BaseModel):
    """A complete snapshot of readings plus optional processing settings.

    Options are deliberately untyped: invalid values fall back to the
    configured defaults instead of failing validation.
    """

    variant: str = Field(
        default=SchemaVariant.hydroponic.value,
        description="Schema variant of the readings: 'hydroponic' or 'irrigation'.",
    )
    readings: List[Any] = Field(
        default_factory=list,
        description="Reading objects with a 'timestamp' key and sensor fields.",
    )
    bucket_ms: Optional[Any] = Field(default=None, description="Bucket width in milliseconds.")
    max_points: Optional[Any] = Field(default=None, description="Maximum chart points returned.")
    window: Optional[Any] = Field(
        default=None, description="'all' or the number of most recent elements to average."
    )


class ChartPointOut(BaseModel):
    """One chart point with per-field values."""

    time: str
    timestamp_ms: Optional[float] = None
    values: Dict[str, Optional[float]] = Field(default_factory=dict)


class SeriesResponse(BaseModel):
    """Chart series and live summaries computed for a snapshot."""

    variant: SchemaVariant
    summary_source: SummarySource
    reading_count: int = Field(..., ge=0)
    bucket_count: int = Field(..., ge=0)
    unparseable_count: int = Field(..., ge=0)
    summaries: Dict[str, Optional[float]] = Field(default_factory=dict)
    chart: List[ChartPointOut] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: SeriesSnapshot) -> "SeriesResponse":
        return cls(
            variant=snapshot.variant,
            summary_source=snapshot.summary_source,
            reading_count=snapshot.reading_count,
            bucket_count=snapshot.bucket_count,
            unparseable_count=snapshot.unparseable_count,
            summaries=dict(snapshot.summaries),
            chart=[
                ChartPointOut(
                    time=point.time,
                    timestamp_ms=point.timestamp_ms,
                    values=point.values.as_dict(),
                )
                for point in snapshot.chart
            ],
        )
