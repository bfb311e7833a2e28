from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from functools import lru_cache
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_BUCKET_MS_ENV = "SERIES_BUCKET_MS"
_MAX_POINTS_ENV = "SERIES_MAX_CHART_POINTS"
_WINDOW_ENV = "SERIES_AVERAGE_WINDOW"
_WINDOW_FALLBACK_ENV = "SERIES_WINDOW_FALLBACK"
_TIMEZONE_ENV = "SERIES_TIMEZONE"
_LABEL_FORMAT_ENV = "SERIES_TIME_LABEL_FORMAT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    bucket_ms: int
    max_chart_points: int
    average_window: Union[str, int]
    window_fallback: int
    timezone: Optional[str]
    time_label_format: str
    log_level: str

    @property
    def tzinfo(self) -> Optional[tzinfo]:
        if self.timezone is None:
            return None
        return ZoneInfo(self.timezone)


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_window(default: Union[str, int]) -> Union[str, int]:
    value = os.getenv(_WINDOW_ENV)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate == "all":
        return "all"
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_timezone() -> Optional[str]:
    value = os.getenv(_TIMEZONE_ENV)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return candidate


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        bucket_ms=_read_positive_int(_BUCKET_MS_ENV, 5000),
        max_chart_points=_read_positive_int(_MAX_POINTS_ENV, 20),
        average_window=_read_window("all"),
        window_fallback=_read_positive_int(_WINDOW_FALLBACK_ENV, 5),
        timezone=_read_timezone(),
        time_label_format=_read_str_env(_LABEL_FORMAT_ENV, "%H.%M.%S"),
        log_level=_read_log_level("INFO"),
    )
