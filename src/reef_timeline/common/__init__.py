"""
Common modules shared by every pipeline stage.

Time Model:
- Every timestamp is UTC epoch milliseconds (whole seconds)
- Coordinates are rounded to 4 decimal digits on ingest and emitted as
  fixed 4-decimal strings
"""

from .config import Config, ActorKind, BinningStrategy, DEFAULT_CONFIG, DAY_MS
from .io import SourcePaths, SourceTables, load_sources, read_records, write_text_atomic
from .timeutils import parse_utc_ms, parse_vessel_time, day_floor_ms, day_ceil_ms

__all__ = [
    'Config', 'ActorKind', 'BinningStrategy', 'DEFAULT_CONFIG', 'DAY_MS',
    'SourcePaths', 'SourceTables', 'load_sources', 'read_records', 'write_text_atomic',
    'parse_utc_ms', 'parse_vessel_time', 'day_floor_ms', 'day_ceil_ms',
]
