"""Scalar averages for live summary tiles."""

from __future__ import annotations

from numbers import Integral, Real
from typing import Any, Dict, Optional, Sequence, Type, Union

from models.records import Reading, is_finite_number

ALL = "all"
DEFAULT_WINDOW_FALLBACK = 5

Window = Union[str, int, float]


def resolve_window(window: Any, default: int = DEFAULT_WINDOW_FALLBACK) -> Optional[int]:
    """Return the number of trailing elements to average, ``None`` for all.

    Fractional windows are truncated and clamped to at least one element.
    Anything that is neither ``"all"`` nor a positive number yields
    ``default``.
    """

    if window == ALL:
        return None
    if isinstance(window, bool) or not isinstance(window, Real):
        return max(1, int(default))
    if isinstance(window, Integral):
        return int(window) if window > 0 else max(1, int(default))
    if not is_finite_number(window) or window <= 0:
        return max(1, int(default))
    return max(1, int(window))


def select_source(buckets: Sequence[Reading], raw: Sequence[Reading]) -> Sequence[Reading]:
    """Prefer buckets; fall back to raw readings before the first bucket forms."""

    return buckets if buckets else raw


class WindowedSummaryEngine:
    """Per-field means over a whole series or its most recent elements."""

    def __init__(self, default_window: int = DEFAULT_WINDOW_FALLBACK) -> None:
        self.default_window = default_window

    def window_slice(self, series: Sequence[Reading], window: Window) -> Sequence[Reading]:
        count = resolve_window(window, self.default_window)
        if count is None:
            return series
        return series[-count:]

    def compute_mean(
        self,
        series: Sequence[Reading],
        field: str,
        window: Window = ALL,
    ) -> Optional[float]:
        selected = self.window_slice(series, window)
        total = 0.0
        count = 0
        for item in selected:
            if field not in item.FIELDS:
                raise ValueError(
                    f"Field {field!r} is not part of the {type(item).__name__} schema."
                )
            value = getattr(item, field)
            if is_finite_number(value):
                total += value
                count += 1
        if not count:
            return None
        return total / count

    def summarize(
        self,
        series: Sequence[Reading],
        window: Window = ALL,
        record_type: Optional[Type[Reading]] = None,
    ) -> Dict[str, Optional[float]]:
        """Compute every field's mean.

        An empty series yields ``None`` per field of ``record_type``, or ``{}``
        when no type is given.
        """

        if record_type is None:
            if not series:
                return {}
            record_type = type(series[0])
        return {
            name: self.compute_mean(series, name, window) for name in record_type.FIELDS
        }
