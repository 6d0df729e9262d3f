"""
Data I/O utilities.

Handles loading the four raw CSV sources and writing the output artifact.
Every cell is read as a string; the literal "NA" is preserved so the
normalizer can recognise "no movement" samples.
"""

import os
import re
import logging
import tempfile
from pathlib import Path
from typing import List, Dict, Any, Optional
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor
import pandas as pd

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Column subsets per source (full-name match)
STATION_COLUMNS = r"station|x|y"
VESSEL_COLUMNS = r"Date|lat|long"
SHARK_COLUMNS = r"datetime|animal_id|species|From|To|Movement"
MANTA_COLUMNS = r"detect_date|receiver|From|To|Movement"


@dataclass(frozen=True)
class SourcePaths:
    """Locations of the four raw CSV sources."""
    stations: Path
    vessel: Path
    sharks: Path
    mantas: Path

    @classmethod
    def from_dir(
        cls,
        csv_dir: Path,
        stations: Optional[Path] = None,
        vessel: Optional[Path] = None,
        sharks: Optional[Path] = None,
        mantas: Optional[Path] = None
    ) -> "SourcePaths":
        """Default to <csv_dir>/{stations,vessel,sharks,mantas}.csv."""
        csv_dir = Path(csv_dir)
        return cls(
            stations=Path(stations) if stations else csv_dir / "stations.csv",
            vessel=Path(vessel) if vessel else csv_dir / "vessel.csv",
            sharks=Path(sharks) if sharks else csv_dir / "sharks.csv",
            mantas=Path(mantas) if mantas else csv_dir / "mantas.csv",
        )


@dataclass
class SourceTables:
    """Raw rows of every source, as plain dict records."""
    stations: List[Record]
    vessel: List[Record]
    sharks: List[Record]
    mantas: List[Record]

    @property
    def n_actor_rows(self) -> int:
        return len(self.vessel) + len(self.sharks) + len(self.mantas)


def read_records(path: Path, column_pattern: str) -> List[Record]:
    """
    Read a CSV file into a list of dict records.

    Args:
        path: CSV file
        column_pattern: Regex; only columns whose full name matches are kept

    Returns:
        One dict per data row, values as strings

    Raises:
        FileNotFoundError: If path does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")

    matcher = re.compile(column_pattern)
    df = pd.read_csv(
        path,
        dtype=str,
        keep_default_na=False,
        usecols=lambda c: matcher.fullmatch(c.strip()) is not None,
    )
    df.columns = [c.strip() for c in df.columns]

    logger.info(f"Loaded {len(df)} rows from {path}")
    return df.to_dict(orient="records")


def load_sources(paths: SourcePaths, max_workers: int = 4) -> SourceTables:
    """
    Read all four sources concurrently.

    The sources are independent; every read finishes before this returns.
    The first failure (in source order) is re-raised.
    """
    jobs = {
        "stations": (paths.stations, STATION_COLUMNS),
        "vessel": (paths.vessel, VESSEL_COLUMNS),
        "sharks": (paths.sharks, SHARK_COLUMNS),
        "mantas": (paths.mantas, MANTA_COLUMNS),
    }

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            name: executor.submit(read_records, path, pattern)
            for name, (path, pattern) in jobs.items()
        }

    return SourceTables(**{name: fut.result() for name, fut in futures.items()})


def current_umask() -> int:
    """Process umask (os.umask can only be read by setting it)."""
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_text_atomic(text: str, path: Path) -> Path:
    """
    Write text to path via a temporary sibling file.

    The target is either fully written or left untouched. It gets the
    same permissions a plain open(path, 'w') would give (0o666 & ~umask),
    not mkstemp's owner-only 0o600.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.chmod(tmp_name, 0o666 & ~current_umask())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Wrote {len(text)} bytes to {path}")
    return path
