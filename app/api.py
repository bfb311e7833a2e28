"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import SeriesRequest, SeriesResponse
from services.loader import readings_from_csv, readings_from_rows
from services.pipeline import SeriesPipeline, build_default_pipeline, parse_option_text

router = APIRouter()


def get_pipeline() -> SeriesPipeline:
    return build_default_pipeline()


@router.post(
    "/series",
    response_model=SeriesResponse,
    summary="Bucket a reading snapshot and compute chart points and summaries.",
)
async def process_series(
    payload: SeriesRequest,
    pipeline: SeriesPipeline = Depends(get_pipeline),
) -> SeriesResponse:
    try:
        readings = readings_from_rows(payload.readings, payload.variant)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    snapshot = pipeline.run(
        readings,
        variant=payload.variant,
        bucket_ms=payload.bucket_ms,
        max_points=payload.max_points,
        window=payload.window,
    )
    return SeriesResponse.from_snapshot(snapshot)


@router.post(
    "/series/csv",
    response_model=SeriesResponse,
    summary="Process a CSV spreadsheet export of readings.",
)
async def process_series_csv(
    file: UploadFile = File(..., description="CSV file containing sensor readings."),
    variant: str = Query("hydroponic", description="Schema variant of the readings."),
    bucket_ms: Optional[str] = Query(None, description="Bucket width in milliseconds."),
    max_points: Optional[str] = Query(None, description="Maximum chart points returned."),
    window: Optional[str] = Query(None, description="'all' or a number of recent elements."),
    pipeline: SeriesPipeline = Depends(get_pipeline),
) -> SeriesResponse:
    try:
        contents = await file.read()
        readings = readings_from_csv(contents.decode("utf-8-sig"), variant)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()

    snapshot = pipeline.run(
        readings,
        variant=variant,
        bucket_ms=parse_option_text(bucket_ms),
        max_points=parse_option_text(max_points),
        window=parse_option_text(window),
    )
    return SeriesResponse.from_snapshot(snapshot)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
