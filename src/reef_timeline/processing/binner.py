"""
Timeline Binner Module

Distributes sorted events into bucket_count + 1 time buckets. Each bucket
maps an actor key to that actor's samples, in chronological order.
"""

import logging
from typing import List, Dict, Sequence, Union
import numpy as np

from ..common.config import Config
from .extent import Extent
from .normalizer import ActorEvent

logger = logging.getLogger(__name__)

Sample = List[Union[int, float]]
Bucket = Dict[str, List[Sample]]
Timeline = List[Bucket]


class TimelineConsistencyError(RuntimeError):
    """An event fell outside the allocated buckets (extent/binner disagree)."""


def compute_bucket_indices(
    timestamps_ms: Sequence[int],
    start_ms: int,
    bucket_width_ms: int
) -> np.ndarray:
    """
    Bucket index per timestamp: floor((t - start) / width).

    Args:
        timestamps_ms: Epoch milliseconds
        start_ms: Timeline origin
        bucket_width_ms: Span of one bucket

    Returns:
        int64 array of indices (may be out of range; caller checks)
    """
    t = np.asarray(timestamps_ms, dtype=np.int64)
    return np.floor_divide(t - np.int64(start_ms), np.int64(bucket_width_ms))


def allocate_timeline(extent: Extent) -> Timeline:
    """All buckets up front; actor keys are added lazily."""
    return [{} for _ in range(extent.n_buckets)]


def bin_events(
    sorted_events: Sequence[ActorEvent],
    extent: Extent,
    config: Config
) -> Timeline:
    """
    Append each event's sample to its bucket under its actor key.

    Samples are never merged or reordered, so per-key order equals the
    order of sorted_events.

    Args:
        sorted_events: Events ascending by timestamp
        extent: Extent computed for the same events and strategy
        config: Binning configuration

    Returns:
        Timeline of extent.bucket_count + 1 buckets

    Raises:
        TimelineConsistencyError: If any index is outside [0, bucket_count],
            or if extent was computed for a different strategy
    """
    if extent.strategy is not config.binning or extent.bucket_width_ms != config.bucket_width_ms:
        raise TimelineConsistencyError(
            f"Extent computed for {extent.strategy.value} "
            f"(width {extent.bucket_width_ms} ms) but binning with "
            f"{config.binning.value} (width {config.bucket_width_ms} ms)"
        )

    timeline = allocate_timeline(extent)
    if not sorted_events:
        return timeline

    indices = compute_bucket_indices(
        [e.timestamp_ms for e in sorted_events],
        extent.start_ms,
        extent.bucket_width_ms
    )

    # Check everything before touching any bucket
    bad = np.flatnonzero((indices < 0) | (indices > extent.bucket_count))
    if len(bad) > 0:
        first = sorted_events[int(bad[0])]
        raise TimelineConsistencyError(
            f"{len(bad)} event(s) outside buckets 0..{extent.bucket_count}; "
            f"first is {first.actor_key} at {first.timestamp_ms} -> index {int(indices[bad[0]])}"
        )

    logger.info("Mapping data to timeline...")

    for event, index in zip(sorted_events, indices.tolist()):
        timeline[index].setdefault(event.actor_key, []).append(event.sample)

    n_occupied = sum(1 for bucket in timeline if bucket)
    logger.info(f"Binned {len(sorted_events)} events into {n_occupied}/{len(timeline)} non-empty buckets")

    return timeline
