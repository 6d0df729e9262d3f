"""
Processing modules: stations, normalization, extent, binning.
"""

from .stations import StationRegistry, StationRecord, format_coord, round_coord
from .normalizer import (
    ActorEvent,
    Movement,
    Position,
    RecordNormalizer,
    NormalizationReport,
    RejectReason,
)
from .extent import Extent, EmptyEventSetError, compute_extent, sort_events, sort_and_compute_extent
from .binner import TimelineConsistencyError, bin_events, compute_bucket_indices

__all__ = [
    "StationRegistry", "StationRecord", "format_coord", "round_coord",
    "ActorEvent", "Movement", "Position",
    "RecordNormalizer", "NormalizationReport", "RejectReason",
    "Extent", "EmptyEventSetError", "compute_extent", "sort_events", "sort_and_compute_extent",
    "TimelineConsistencyError", "bin_events", "compute_bucket_indices",
]
