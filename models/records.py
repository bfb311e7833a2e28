"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from numbers import Real
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

RawTimestamp = Union[int, float, datetime, date, str, None]
"""Every timestamp encoding a data source may hand us."""

EpochMs = float


def is_finite_number(value: Any) -> bool:
    """True for real numbers that are neither booleans nor NaN/inf."""

    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


class SchemaVariant(str, Enum):
    """Monitored system variants, each with its own fixed field set."""

    hydroponic = "hydroponic"
    irrigation = "irrigation"


@dataclass(frozen=True, slots=True)
class Reading:
    """Base record: a raw timestamp plus the variant's sensor fields.

    Subclasses declare their fields as dataclass attributes and list them in
    ``FIELDS``. ``ALIASES`` maps source column names onto those attributes.
    """

    FIELDS: ClassVar[Tuple[str, ...]] = ()
    ALIASES: ClassVar[Dict[str, str]] = {}
    VARIANT: ClassVar[SchemaVariant]

    timestamp: RawTimestamp

    def as_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.FIELDS}

    @classmethod
    def resolve_field(cls, name: str) -> Optional[str]:
        """Map a source key (field name or alias) onto a field name."""

        if name in cls.FIELDS:
            return name
        if name in cls.ALIASES:
            return cls.ALIASES[name]
        lowered = name.strip().lower()
        for candidate in cls.FIELDS:
            if candidate.lower() == lowered:
                return candidate
        for alias, target in cls.ALIASES.items():
            if alias.lower() == lowered:
                return target
        return None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Reading":
        """Build a record from a source row, ignoring unknown keys.

        Exact field names win over aliases when both are present.
        """

        values: Dict[str, Any] = {}
        exact: set[str] = set()
        timestamp: RawTimestamp = None
        for key, value in payload.items():
            if not isinstance(key, str):
                continue
            if key.strip().lower() == "timestamp":
                timestamp = value
                continue
            target = cls.resolve_field(key)
            if target is None:
                continue
            if key == target:
                values[target] = value
                exact.add(target)
            elif target not in exact:
                values[target] = value
        return cls(timestamp=timestamp, **values)


@dataclass(frozen=True, slots=True)
class HydroponicReading(Reading):
    """Simple variant: water temperature, acidity and flow rate."""

    FIELDS: ClassVar[Tuple[str, ...]] = ("temperature", "ph", "flow_rate")
    ALIASES: ClassVar[Dict[str, str]] = {
        "suhu": "temperature",
        "pH": "ph",
        "flowRate": "flow_rate",
        "flow": "flow_rate",
    }
    VARIANT: ClassVar[SchemaVariant] = SchemaVariant.hydroponic

    temperature: Any = None
    ph: Any = None
    flow_rate: Any = None


@dataclass(frozen=True, slots=True)
class IrrigationReading(Reading):
    """Extended variant used by the drip irrigation rig."""

    FIELDS: ClassVar[Tuple[str, ...]] = (
        "soil_temperature",
        "air_temperature",
        "air_humidity",
        "soil_moisture",
        "ph",
        "flow_rate",
    )
    ALIASES: ClassVar[Dict[str, str]] = {
        "temperature": "soil_temperature",
        "suhuTanah": "soil_temperature",
        "temperatureAir": "air_temperature",
        "suhuUdara": "air_temperature",
        "humidity": "air_humidity",
        "kelembabanUdara": "air_humidity",
        "soilMoisture": "soil_moisture",
        "kelembapanTanah": "soil_moisture",
        "flowRate": "flow_rate",
    }
    VARIANT: ClassVar[SchemaVariant] = SchemaVariant.irrigation

    soil_temperature: Any = None
    air_temperature: Any = None
    air_humidity: Any = None
    soil_moisture: Any = None
    ph: Any = None
    flow_rate: Any = None


READING_TYPES: Dict[SchemaVariant, Type[Reading]] = {
    SchemaVariant.hydroponic: HydroponicReading,
    SchemaVariant.irrigation: IrrigationReading,
}


def reading_type_for(variant: Union[SchemaVariant, str]) -> Type[Reading]:
    try:
        return READING_TYPES[SchemaVariant(variant)]
    except ValueError as exc:
        raise ValueError(f"Unknown schema variant {variant!r}.") from exc


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """Display-ready projection of one bucket or raw reading."""

    time: str
    timestamp_ms: Optional[EpochMs]
    values: Reading
