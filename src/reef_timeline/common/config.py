"""
Configuration and constants for timeline generation.

Binning Model (must be chosen explicitly):
- CALENDAR_DAY: one bucket per UTC calendar day
- FIXED_INCREMENT: one bucket per configured millisecond increment
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any
from pathlib import Path
import yaml


DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_TIME_INCREMENT_MS = 48 * 60 * 60 * 1000


class ActorKind(Enum):
    """
    Tracked actor kinds. The value is the single-letter code used in
    actor keys and in the legend shipped to the client.
    """
    SHARK_SPECIES_A = "s"
    SHARK_SPECIES_B = "g"
    MANTA = "m"
    VESSEL = "v"

    @property
    def code(self) -> str:
        return self.value

    @property
    def has_position(self) -> bool:
        """Vessels carry GPS positions; everything else moves between stations."""
        return self is ActorKind.VESSEL

    @property
    def is_shark(self) -> bool:
        return self in (ActorKind.SHARK_SPECIES_A, ActorKind.SHARK_SPECIES_B)


class BinningStrategy(Enum):
    """
    How events are distributed into time buckets.

    CALENDAR_DAY:
        bucket width = 1 day
        bucket count = whole days between day-floor(first) and day-ceil(last)

    FIXED_INCREMENT:
        bucket width = Config.time_increment_ms
        bucket count = ceil((last - first) / increment)
    """
    CALENDAR_DAY = "calendar_day"
    FIXED_INCREMENT = "fixed_increment"


DEFAULT_SPECIES_CODES: Dict[str, ActorKind] = {
    "Carcharhinus albimarginatus": ActorKind.SHARK_SPECIES_A,
    "Carcharhinus amblyrhynchos": ActorKind.SHARK_SPECIES_B,
}

DEFAULT_ACTOR_LEGEND: Dict[str, Dict[str, str]] = {
    ActorKind.MANTA.code: {"name": "manta", "color": "#f01eff"},
    ActorKind.SHARK_SPECIES_A.code: {"name": "silvertip", "color": "#ff8c00"},
    ActorKind.SHARK_SPECIES_B.code: {"name": "greyreef", "color": "#eae600"},
    ActorKind.VESSEL.code: {"name": "vessel", "color": "#ffffff"},
}


@dataclass(frozen=True)
class Config:
    """
    Global configuration for timeline generation.

    Passed by value into the normalizer, extent calculator, binner and
    emitter. Nothing downstream reads module-level settings.
    """

    # Binning (default: one bucket per calendar day)
    binning: BinningStrategy = BinningStrategy.CALENDAR_DAY

    # Only used if binning == FIXED_INCREMENT
    time_increment_ms: int = DEFAULT_TIME_INCREMENT_MS

    # Scientific name -> shark kind. Species not listed are rejected.
    species_codes: Dict[str, ActorKind] = field(
        default_factory=lambda: dict(DEFAULT_SPECIES_CODES)
    )

    # Kind code -> {name, color} for the visualization client
    actor_legend: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_ACTOR_LEGEND.items()}
    )

    # Global variable the browser client reads
    output_var_name: str = "BERTARELLI_DATA"

    # Paths (relative to working directory)
    data_dir: Path = field(default_factory=lambda: Path("csv"))
    output_path: Path = field(default_factory=lambda: Path("data") / "data.js")

    def __post_init__(self):
        if not isinstance(self.binning, BinningStrategy):
            raise ValueError(f"Unknown binning strategy: {self.binning!r}")
        if self.time_increment_ms <= 0:
            raise ValueError(f"time_increment_ms must be positive, got {self.time_increment_ms}")
        # Buckets are anchored on the day floor of the first event, which is
        # up to one day earlier than the event itself.
        if self.binning is BinningStrategy.FIXED_INCREMENT and self.time_increment_ms < DAY_MS:
            raise ValueError(
                f"time_increment_ms must be at least one day ({DAY_MS}) "
                f"for fixed-increment binning, got {self.time_increment_ms}"
            )
        for species, kind in self.species_codes.items():
            if not isinstance(kind, ActorKind) or not kind.is_shark:
                raise ValueError(
                    f"species_codes[{species!r}] must be a shark kind "
                    f"('{ActorKind.SHARK_SPECIES_A.code}' or '{ActorKind.SHARK_SPECIES_B.code}'), got {kind!r}"
                )
        if not self.output_var_name.isidentifier():
            raise ValueError(f"output_var_name is not a valid identifier: {self.output_var_name!r}")

    @property
    def bucket_width_ms(self) -> int:
        """Span of one timeline bucket in milliseconds."""
        if self.binning is BinningStrategy.CALENDAR_DAY:
            return DAY_MS
        return self.time_increment_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "binning": self.binning.value,
            "time_increment_ms": self.time_increment_ms,
            "species_codes": {name: kind.value for name, kind in self.species_codes.items()},
            "actor_legend": self.actor_legend,
            "output_var_name": self.output_var_name,
            "data_dir": str(self.data_dir),
            "output_path": str(self.output_path),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        data = dict(data)
        if "binning" in data:
            data["binning"] = BinningStrategy(data["binning"])
        if "time_increment_hours" in data:
            hours = data.pop("time_increment_hours")
            data["time_increment_ms"] = int(float(hours) * 60 * 60 * 1000)
        if "species_codes" in data:
            data["species_codes"] = {
                name: ActorKind(code) for name, code in data["species_codes"].items()
            }
        if "data_dir" in data:
            data["data_dir"] = Path(data["data_dir"])
        if "output_path" in data:
            data["output_path"] = Path(data["output_path"])
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        """Save config to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)


# Global default config
DEFAULT_CONFIG = Config()
