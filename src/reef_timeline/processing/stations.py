"""
Station Registry Module

Ordered list of receiver stations. A station's position in the list is its
identifier everywhere downstream, so order must match the source rows.
"""

import math
import logging
from typing import List, Dict, Any, Optional, Tuple, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

COORD_DECIMALS = 4


def round_coord(value: Any) -> float:
    """
    Round a coordinate to the authoritative 4-decimal precision.

    Raises:
        ValueError: If value is not a finite number ('NaN', 'inf', text)
    """
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Coordinate is not finite: {value!r}")
    return float(f"{number:.{COORD_DECIMALS}f}")


def format_coord(value: float) -> str:
    """Fixed 4-decimal string, trailing zeros kept (1.5 -> '1.5000')."""
    return f"{float(value):.{COORD_DECIMALS}f}"


@dataclass(frozen=True)
class StationRecord:
    """A fixed monitoring point."""
    code: str
    position: Tuple[float, float]

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]


class StationRegistry:
    """
    Station sequence plus code lookup.

    Duplicate codes are not rejected. Lookup always returns the first
    matching index.
    """

    def __init__(self, stations: Iterable[StationRecord]):
        self._stations: Tuple[StationRecord, ...] = tuple(stations)
        self._index: Dict[str, int] = {}
        for i, station in enumerate(self._stations):
            if station.code in self._index:
                logger.debug(
                    f"Duplicate station code {station.code!r} at row {i}; "
                    f"lookups resolve to index {self._index[station.code]}"
                )
                continue
            self._index[station.code] = i

    @classmethod
    def from_records(cls, rows: Iterable[Dict[str, Any]]) -> "StationRegistry":
        """
        Build registry from raw rows with 'station', 'x', 'y'.

        Args:
            rows: Station rows in source order

        Returns:
            StationRegistry with one entry per row
        """
        stations = [
            StationRecord(
                code=str(row["station"]).strip(),
                position=(round_coord(row["x"]), round_coord(row["y"])),
            )
            for row in rows
        ]
        logger.info(f"Stations: {len(stations)}")
        return cls(stations)

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self):
        return iter(self._stations)

    def __getitem__(self, index: int) -> StationRecord:
        return self._stations[index]

    @property
    def codes(self) -> List[str]:
        return [s.code for s in self._stations]

    def find(self, code: str) -> Optional[int]:
        """First index with this code, or None."""
        return self._index.get(str(code).strip())

    def index_of(self, code: str) -> int:
        """First index with this code. Raises KeyError if unknown."""
        index = self.find(code)
        if index is None:
            raise KeyError(f"Unknown station code: {code!r}")
        return index

    def to_output(self) -> List[List[str]]:
        """[[x, y], ...] as fixed 4-decimal strings, in registry order."""
        return [[format_coord(s.x), format_coord(s.y)] for s in self._stations]
