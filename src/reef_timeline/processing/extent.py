"""
Temporal Extent Module

Sorts the normalized events and derives the global observation window
and the number of timeline buckets for the configured binning strategy.
"""

import math
import logging
from typing import List, Dict, Any, Sequence, Tuple
from dataclasses import dataclass

from ..common.config import Config, BinningStrategy, DAY_MS
from ..common.timeutils import day_floor_ms, day_ceil_ms, format_utc
from .normalizer import ActorEvent

logger = logging.getLogger(__name__)


class EmptyEventSetError(ValueError):
    """No events survived normalization; there is no extent to compute."""


@dataclass(frozen=True)
class Extent:
    """
    Global time window.

    The timeline holds bucket_count + 1 buckets, each bucket_width_ms wide,
    starting at start_ms.
    """
    start_ms: int
    end_ms: int
    bucket_count: int
    strategy: BinningStrategy
    bucket_width_ms: int

    @property
    def n_buckets(self) -> int:
        return self.bucket_count + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_ms": self.start_ms,
            "end_ms": self.end_ms,
            "bucket_count": self.bucket_count,
            "strategy": self.strategy.value,
            "bucket_width_ms": self.bucket_width_ms,
        }


def sort_events(events: Sequence[ActorEvent]) -> List[ActorEvent]:
    """Ascending by timestamp. Stable, so ties keep input order."""
    return sorted(events, key=lambda e: e.timestamp_ms)


def compute_extent(sorted_events: Sequence[ActorEvent], config: Config) -> Extent:
    """
    Compute the extent of an already sorted event list.

    Args:
        sorted_events: Events ascending by timestamp
        config: Supplies binning strategy and increment

    Returns:
        Extent

    Raises:
        EmptyEventSetError: If sorted_events is empty
    """
    if not sorted_events:
        raise EmptyEventSetError("No events to bin: every row was filtered or rejected")

    first_ms = sorted_events[0].timestamp_ms
    last_ms = sorted_events[-1].timestamp_ms

    start_ms = day_floor_ms(first_ms)
    end_ms = day_ceil_ms(last_ms)

    if config.binning is BinningStrategy.CALENDAR_DAY:
        bucket_count = (end_ms - start_ms) // DAY_MS
    else:
        bucket_count = math.ceil((last_ms - first_ms) / config.time_increment_ms)

    extent = Extent(
        start_ms=start_ms,
        end_ms=end_ms,
        bucket_count=int(bucket_count),
        strategy=config.binning,
        bucket_width_ms=config.bucket_width_ms,
    )

    logger.info(f"Start date: {format_utc(extent.start_ms)}")
    logger.info(f"End date: {format_utc(extent.end_ms)}")
    logger.info(f"Bucket count: {extent.bucket_count} ({extent.strategy.value})")

    return extent


def sort_and_compute_extent(
    events: Sequence[ActorEvent],
    config: Config
) -> Tuple[List[ActorEvent], Extent]:
    """Sort events, then compute their extent."""
    if not events:
        raise EmptyEventSetError("No events to bin: every row was filtered or rejected")
    sorted_events = sort_events(events)
    return sorted_events, compute_extent(sorted_events, config)
