"""Timestamp normalization for heterogeneous sensor sources.

Readings arrive from spreadsheets, simulators and microcontrollers, each with
its own idea of what a timestamp looks like. ``TimestampNormalizer.parse`` is
the single place where those encodings are resolved to epoch milliseconds.
Forms are tried in a fixed order and the first structural match wins:

1. numbers: seconds below ``SECONDS_THRESHOLD``, milliseconds otherwise;
2. ``datetime``/``date`` values;
3. spreadsheet constructor strings such as ``Date(2024,0,15,10,30,0)``;
4. day-first ``dd/mm/yyyy[ hh:mm[:ss]]`` strings;
5. ISO-8601 and other textual forms understood by ``dateutil``.

Forms 3 and 4 must run before the generic parser, which would otherwise read
``01/02/2024`` month-first and cannot read the constructor syntax at all.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from numbers import Real
from typing import Optional

from dateutil import parser as dtparser

from models.records import EpochMs, RawTimestamp

SECONDS_THRESHOLD = 1e11
DEFAULT_LABEL_FORMAT = "%H.%M.%S"
NO_LABEL = "--"

_SHEETS_DATE = re.compile(
    r"Date\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)"
    r"(?:\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+))?\s*\)",
    re.IGNORECASE | re.ASCII,
)
_DAY_FIRST = re.compile(
    r"^\s*(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})"
    r"(?:[ ,T]+(\d{1,2})[:.](\d{1,2})(?:[:.](\d{1,2}))?)?\s*$",
    re.ASCII,
)
_ISO_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_FALLBACK_DEFAULT = datetime(1970, 1, 1)


class UnparseableTimestamp(ValueError):
    """Raised when no supported encoding matches a raw timestamp."""

    def __init__(self, raw: object, reason: str = "unrecognized format") -> None:
        super().__init__(f"Cannot parse timestamp {raw!r}: {reason}.")
        self.raw = raw
        self.reason = reason


class TimestampNormalizer:
    """Resolve raw timestamps to epoch milliseconds.

    Wall-clock forms (constructor strings, day-first strings, naive datetimes
    and offset-less ISO strings) are read in ``tz``; ``None`` means the host's
    local zone.
    """

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        label_format: str = DEFAULT_LABEL_FORMAT,
    ) -> None:
        self.tz = tz
        self.label_format = label_format

    def parse(self, raw: RawTimestamp) -> EpochMs:
        if raw is None:
            raise UnparseableTimestamp(raw, "missing")

        if isinstance(raw, bool):
            raise UnparseableTimestamp(raw, "boolean is not a timestamp")

        if isinstance(raw, Real):
            return self._from_number(raw)

        if isinstance(raw, datetime):
            return self._finite(raw, self._instant_ms(raw))

        if isinstance(raw, date):
            return self._finite(raw, self._instant_ms(datetime(raw.year, raw.month, raw.day)))

        if isinstance(raw, str):
            return self._from_string(raw)

        raise UnparseableTimestamp(raw, f"unsupported type {type(raw).__name__}")

    def try_parse(self, raw: RawTimestamp) -> Optional[EpochMs]:
        try:
            return self.parse(raw)
        except UnparseableTimestamp:
            return None

    def format_label(self, epoch_ms: EpochMs) -> str:
        """Render ``epoch_ms`` as a wall-clock label in the configured zone."""

        try:
            if self.tz is None:
                moment = datetime.fromtimestamp(epoch_ms / 1000)
            else:
                moment = datetime.fromtimestamp(epoch_ms / 1000, self.tz)
            return moment.strftime(self.label_format)
        except (OverflowError, OSError, ValueError) as exc:
            raise UnparseableTimestamp(epoch_ms, "instant out of range") from exc

    def label_for(self, raw: RawTimestamp, epoch_ms: Optional[EpochMs] = None) -> str:
        """Label an instant, falling back to the raw value's string form.

        ``epoch_ms`` skips re-parsing when the caller already resolved ``raw``.
        """

        try:
            if epoch_ms is None:
                epoch_ms = self.parse(raw)
            return self.format_label(epoch_ms)
        except UnparseableTimestamp:
            return NO_LABEL if raw is None else str(raw)

    def _from_number(self, raw: Real) -> EpochMs:
        try:
            value = float(raw)
        except (OverflowError, ValueError) as exc:
            raise UnparseableTimestamp(raw, "number out of range") from exc
        if abs(value) < SECONDS_THRESHOLD:
            value *= 1000
        return self._finite(raw, value)

    def _from_string(self, raw: str) -> EpochMs:
        text = raw.strip()
        if not text:
            raise UnparseableTimestamp(raw, "empty string")

        match = _SHEETS_DATE.search(text)
        if match:
            year, month, day, hour, minute, second = (
                int(group) if group is not None else 0 for group in match.groups()
            )
            return self._finite(raw, self._wall_clock_ms(raw, year, month, day, hour, minute, second))

        match = _DAY_FIRST.match(text)
        if match:
            day, month, year, hour, minute, second = (
                int(group) if group is not None else 0 for group in match.groups()
            )
            return self._finite(
                raw, self._wall_clock_ms(raw, year, month - 1, day, hour, minute, second)
            )

        if _ISO_DATE_ONLY.match(text):
            try:
                parsed = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
            except ValueError as exc:
                raise UnparseableTimestamp(raw, "invalid calendar date") from exc
            return self._finite(raw, parsed.timestamp() * 1000)

        try:
            parsed = dtparser.isoparse(text)
        except (ValueError, OverflowError):
            try:
                parsed = dtparser.parse(text, default=_FALLBACK_DEFAULT)
            except (ValueError, OverflowError) as exc:
                raise UnparseableTimestamp(raw) from exc
        return self._finite(raw, self._instant_ms(parsed))

    def _wall_clock_ms(
        self,
        raw: str,
        year: int,
        month_index: int,
        day: int,
        hour: int,
        minute: int,
        second: int,
    ) -> EpochMs:
        # Components overflow into the next unit, so month 12 is January of
        # the following year and day 0 is the last day of the previous month.
        if 0 <= year <= 99:
            year += 1900
        year += month_index // 12
        try:
            wall = datetime(year, month_index % 12 + 1, 1) + timedelta(
                days=day - 1, hours=hour, minutes=minute, seconds=second
            )
        except (ValueError, OverflowError) as exc:
            raise UnparseableTimestamp(raw, "calendar components out of range") from exc
        return self._instant_ms(wall, raw)

    def _instant_ms(self, moment: datetime, raw: object = None) -> EpochMs:
        if moment.tzinfo is None and self.tz is not None:
            moment = moment.replace(tzinfo=self.tz)
        try:
            return moment.timestamp() * 1000
        except (OverflowError, OSError, ValueError) as exc:
            raise UnparseableTimestamp(raw if raw is not None else moment, "instant out of range") from exc

    @staticmethod
    def _finite(raw: object, value: float) -> EpochMs:
        if not math.isfinite(value):
            raise UnparseableTimestamp(raw, "not a finite instant")
        return value
