"""Build typed reading snapshots from JSON rows and spreadsheet CSV exports."""

from __future__ import annotations

import csv
import io
import re
from typing import Any, Iterable, List, Mapping, Optional, Type, Union

from models.records import Reading, SchemaVariant, reading_type_for

_NUMERIC_TIMESTAMP = re.compile(r"^[+-]?\d+(?:\.\d+)?$", re.ASCII)


def readings_from_rows(
    rows: Iterable[Mapping[str, Any]],
    variant: Union[SchemaVariant, str],
) -> List[Reading]:
    """Convert mapping rows into records of ``variant``; non-mappings are skipped."""

    record_type = reading_type_for(variant)
    return [record_type.from_mapping(row) for row in rows if isinstance(row, Mapping)]


def readings_from_csv(text: str, variant: Union[SchemaVariant, str]) -> List[Reading]:
    """Parse a CSV export whose header names the timestamp and sensor columns."""

    record_type = reading_type_for(variant)
    if not text.strip():
        raise ValueError("Uploaded file is empty.")

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    columns = _map_columns(reader.fieldnames, record_type)
    if "timestamp" not in columns.values():
        raise ValueError("CSV missing required columns: timestamp")

    readings: List[Reading] = []
    for row in reader:
        values: dict[str, Any] = {}
        timestamp: Any = None
        for column, target in columns.items():
            cell = row.get(column)
            if target == "timestamp":
                timestamp = _coerce_timestamp(cell)
            else:
                values[target] = _coerce_cell(cell)
        readings.append(record_type(timestamp=timestamp, **values))
    return readings


def _map_columns(fieldnames: Iterable[str], record_type: Type[Reading]) -> dict[str, str]:
    columns: dict[str, str] = {}
    claimed: set[str] = set()
    for name in fieldnames:
        if name is None:
            continue
        if name.strip().lower() == "timestamp":
            target: Optional[str] = "timestamp"
        else:
            target = record_type.resolve_field(name.strip())
        if target is None or target in claimed:
            continue
        columns[name] = target
        claimed.add(target)
    return columns


def _coerce_timestamp(cell: Optional[str]) -> Any:
    if cell is None:
        return None
    candidate = cell.strip()
    if not candidate:
        return None
    if _NUMERIC_TIMESTAMP.match(candidate):
        return float(candidate) if "." in candidate else int(candidate)
    return candidate


def _coerce_cell(cell: Optional[str]) -> Any:
    if cell is None:
        return None
    candidate = cell.strip()
    if not candidate:
        return None
    try:
        return float(candidate)
    except ValueError:
        return candidate
