"""Chronological ordering of reading snapshots."""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.records import Reading
from services.timestamps import TimestampNormalizer


class ChronologicalSequencer:
    """Stable time ordering that never drops unparseable readings.

    The sort key is the parsed epoch ms, or the reading's arrival index when
    the timestamp cannot be parsed. Equal keys keep arrival order.

    Both kinds of key share one number line, so the ordering is only
    idempotent while parsed instants lie well above the arrival indices.
    Instants within the first few ms of the epoch can interleave with
    unparseable readings differently on a second pass.
    """

    def __init__(self, normalizer: Optional[TimestampNormalizer] = None) -> None:
        self.normalizer = normalizer or TimestampNormalizer()

    def order(self, readings: Sequence[Reading]) -> List[Reading]:
        keyed = []
        for index, reading in enumerate(readings):
            epoch_ms = self.normalizer.try_parse(reading.timestamp)
            keyed.append((index if epoch_ms is None else epoch_ms, reading))
        keyed.sort(key=lambda pair: pair[0])
        return [reading for _, reading in keyed]
