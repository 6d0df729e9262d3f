"""
Record Normalizer Module

Converts raw shark, manta and vessel rows into a uniform ActorEvent.

Each raw row is decoded as a closed tagged union. Variants are tried in
order (vessel, shark, manta); the first whose required fields are all
present wins. Rows that match no variant, or that carry values we cannot
map, are rejected: logged, recorded in the report, and dropped.
"""

import logging
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple, Iterable, Union
from dataclasses import dataclass, field

from ..common.config import Config, ActorKind
from ..common.timeutils import (
    parse_utc_ms,
    parse_vessel_time,
    SHARK_TIME_FORMAT,
    MANTA_TIME_FORMAT,
)
from .stations import StationRegistry, round_coord

logger = logging.getLogger(__name__)

NO_MOVEMENT = "NA"
VESSEL_ACTOR_ID = 1

VESSEL_FIELDS = ("Date", "lat", "long")
SHARK_FIELDS = ("datetime", "animal_id", "species", "From", "To", "Movement")
MANTA_FIELDS = ("detect_date", "receiver", "From", "To", "Movement")


class RecordShape(Enum):
    """Raw row variants, in decode precedence order."""
    VESSEL = "vessel"
    SHARK = "shark"
    MANTA = "manta"


RECORD_VARIANTS: Tuple[Tuple[RecordShape, Tuple[str, ...]], ...] = (
    (RecordShape.VESSEL, VESSEL_FIELDS),
    (RecordShape.SHARK, SHARK_FIELDS),
    (RecordShape.MANTA, MANTA_FIELDS),
)


class RejectReason(Enum):
    UNKNOWN_SHAPE = "unknown_shape"
    UNMAPPED_SPECIES = "unmapped_species"
    UNKNOWN_STATION = "unknown_station"
    BAD_VALUE = "bad_value"


class RecordRejected(ValueError):
    """A source row that cannot become an ActorEvent."""

    def __init__(self, reason: RejectReason, detail: str):
        super().__init__(f"{reason.value}: {detail}")
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class Movement:
    """Displacement between two stations (registry indices)."""
    from_station: int
    to_station: int


@dataclass(frozen=True)
class Position:
    """GPS fix, rounded to 4 decimals."""
    lng: float
    lat: float


@dataclass(frozen=True)
class ActorEvent:
    """
    One timestamped sample for one actor.

    Exactly one of movement / position is set: vessels carry a position,
    every other kind carries a movement.
    """
    actor_kind: ActorKind
    actor_id: Union[str, int]
    timestamp_ms: int
    movement: Optional[Movement] = None
    position: Optional[Position] = None

    def __post_init__(self):
        if self.actor_kind.has_position:
            if self.position is None or self.movement is not None:
                raise ValueError(f"{self.actor_kind.name} event requires a position only")
        elif self.movement is None or self.position is not None:
            raise ValueError(f"{self.actor_kind.name} event requires a movement only")

    @property
    def actor_key(self) -> str:
        return f"{self.actor_kind.code}_{self.actor_id}"

    @property
    def sample(self) -> List[Union[int, float]]:
        """[from, to] for movements, [lng, lat] for positions."""
        if self.position is not None:
            return [self.position.lng, self.position.lat]
        return [self.movement.from_station, self.movement.to_station]


@dataclass(frozen=True)
class RejectedRecord:
    """A dropped row, with enough context to find it in the source."""
    source: str
    row_number: int
    reason: RejectReason
    detail: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "row_number": self.row_number,
            "reason": self.reason.value,
            "detail": self.detail,
        }


@dataclass
class NormalizationReport:
    """Outcome counts for one normalization run."""
    n_rows: int = 0
    n_events: int = 0
    n_no_movement: int = 0
    rejected: List[RejectedRecord] = field(default_factory=list)

    @property
    def n_rejected(self) -> int:
        return len(self.rejected)

    def counts_by_reason(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for r in self.rejected:
            counts[r.reason.value] = counts.get(r.reason.value, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n_rows": self.n_rows,
            "n_events": self.n_events,
            "n_no_movement": self.n_no_movement,
            "n_rejected": self.n_rejected,
            "rejected_by_reason": self.counts_by_reason(),
            "rejected": [r.to_dict() for r in self.rejected],
        }


def classify_record(record: Dict[str, Any]) -> Optional[RecordShape]:
    """First variant whose required fields are all present, else None."""
    for shape, required in RECORD_VARIANTS:
        if all(name in record for name in required):
            return shape
    return None


class RecordNormalizer:
    """
    Per-row transform plus filter: raw record -> ActorEvent or nothing.

    Output order follows input order; callers sort afterwards.
    """

    def __init__(self, config: Config, stations: StationRegistry):
        """
        Args:
            config: Supplies the species -> kind table
            stations: Resolves From/To station codes to indices
        """
        self.species_codes = dict(config.species_codes)
        self.stations = stations

    def normalize_all(
        self,
        sources: Iterable[Tuple[str, Iterable[Dict[str, Any]]]]
    ) -> Tuple[List[ActorEvent], NormalizationReport]:
        """
        Normalize every row of every named source.

        Args:
            sources: (source_name, rows) pairs

        Returns:
            (events, report)
        """
        events: List[ActorEvent] = []
        report = NormalizationReport()

        for source, rows in sources:
            for i, record in enumerate(rows, start=1):
                report.n_rows += 1
                event = self.normalize(record, source, i, report)
                if event is not None:
                    events.append(event)

        report.n_events = len(events)
        logger.info(
            f"Normalized {report.n_events}/{report.n_rows} rows "
            f"({report.n_no_movement} without movement, {report.n_rejected} rejected)"
        )
        return events, report

    def normalize(
        self,
        record: Dict[str, Any],
        source: str = "<record>",
        row_number: int = 0,
        report: Optional[NormalizationReport] = None
    ) -> Optional[ActorEvent]:
        """
        Normalize a single row.

        Returns None for "no movement" samples and for rejected rows.
        Rejections are logged and, if a report is given, recorded there.
        """
        try:
            shape = classify_record(record)
            if shape is None:
                raise RecordRejected(
                    RejectReason.UNKNOWN_SHAPE,
                    f"columns {sorted(record)} match no known record shape"
                )

            if shape is not RecordShape.VESSEL and str(record["Movement"]).strip() == NO_MOVEMENT:
                if report is not None:
                    report.n_no_movement += 1
                return None

            if shape is RecordShape.VESSEL:
                return self._decode_vessel(record)
            if shape is RecordShape.SHARK:
                return self._decode_shark(record)
            return self._decode_manta(record)

        except RecordRejected as e:
            logger.warning(f"Dropped {source} row {row_number}: {e}")
            if report is not None:
                report.rejected.append(RejectedRecord(
                    source=source,
                    row_number=row_number,
                    reason=e.reason,
                    detail=e.detail,
                ))
            return None

    def _decode_vessel(self, record: Dict[str, Any]) -> ActorEvent:
        try:
            timestamp_ms = parse_vessel_time(str(record["Date"]))
            position = Position(lng=round_coord(record["long"]), lat=round_coord(record["lat"]))
        except ValueError as e:
            raise RecordRejected(RejectReason.BAD_VALUE, str(e)) from e

        return ActorEvent(
            actor_kind=ActorKind.VESSEL,
            actor_id=VESSEL_ACTOR_ID,
            timestamp_ms=timestamp_ms,
            position=position,
        )

    def _decode_shark(self, record: Dict[str, Any]) -> ActorEvent:
        species = str(record["species"]).strip()
        kind = self.species_codes.get(species)
        if kind is None:
            raise RecordRejected(
                RejectReason.UNMAPPED_SPECIES,
                f"species {species!r} (animal {record['animal_id']!r}) has no kind code"
            )

        return ActorEvent(
            actor_kind=kind,
            actor_id=str(record["animal_id"]).strip(),
            timestamp_ms=self._parse_time(record["datetime"], SHARK_TIME_FORMAT),
            movement=self._resolve_movement(record),
        )

    def _decode_manta(self, record: Dict[str, Any]) -> ActorEvent:
        return ActorEvent(
            actor_kind=ActorKind.MANTA,
            actor_id=str(record["receiver"]).strip(),
            timestamp_ms=self._parse_time(record["detect_date"], MANTA_TIME_FORMAT),
            movement=self._resolve_movement(record),
        )

    def _parse_time(self, value: Any, fmt: str) -> int:
        try:
            return parse_utc_ms(str(value), fmt)
        except ValueError as e:
            raise RecordRejected(RejectReason.BAD_VALUE, str(e)) from e

    def _resolve_movement(self, record: Dict[str, Any]) -> Movement:
        indices = []
        for column in ("From", "To"):
            code = str(record[column]).strip()
            index = self.stations.find(code)
            if index is None:
                raise RecordRejected(
                    RejectReason.UNKNOWN_STATION,
                    f"{column} station {code!r} is not in the registry"
                )
            indices.append(index)
        return Movement(from_station=indices[0], to_station=indices[1])
