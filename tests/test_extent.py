"""
Tests for the Temporal Extent Calculator.

Tests cover:
- Stable sorting
- Day floor / ceil boundaries
- Calendar-day and fixed-increment bucket counts
- Empty input
"""

import pytest
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reef_timeline.common.config import Config, ActorKind, BinningStrategy, DAY_MS
from reef_timeline.common.timeutils import day_floor_ms, day_ceil_ms, format_utc
from reef_timeline.processing.normalizer import ActorEvent, Movement
from reef_timeline.processing.extent import (
    EmptyEventSetError,
    compute_extent,
    sort_events,
    sort_and_compute_extent,
)

JAN_1_2020_MS = 1577836800000
HOUR_MS = 60 * 60 * 1000


def manta(actor_id, t_ms):
    return ActorEvent(ActorKind.MANTA, actor_id, t_ms, movement=Movement(0, 1))


# ============== Fixtures ==============

@pytest.fixture
def calendar_config():
    return Config(binning=BinningStrategy.CALENDAR_DAY)


@pytest.fixture
def fixed_config():
    return Config(binning=BinningStrategy.FIXED_INCREMENT, time_increment_ms=48 * HOUR_MS)


@pytest.fixture
def scenario_events():
    """2020-01-01T00:00:00Z .. 2020-01-03T12:00:00Z"""
    return [
        manta("b", JAN_1_2020_MS + 2 * DAY_MS + 12 * HOUR_MS),
        manta("a", JAN_1_2020_MS),
        manta("c", JAN_1_2020_MS + 30 * HOUR_MS),
    ]


# ============== Time Boundary Tests ==============

class TestDayBoundaries:

    def test_floor(self):
        assert day_floor_ms(JAN_1_2020_MS + 5 * HOUR_MS) == JAN_1_2020_MS
        assert day_floor_ms(JAN_1_2020_MS) == JAN_1_2020_MS

    def test_ceil_is_last_whole_second(self):
        assert day_ceil_ms(JAN_1_2020_MS) == JAN_1_2020_MS + DAY_MS - 1000
        assert day_ceil_ms(JAN_1_2020_MS + DAY_MS - 1) == JAN_1_2020_MS + DAY_MS - 1000

    def test_ceil_renders_as_235959(self):
        assert format_utc(day_ceil_ms(JAN_1_2020_MS)) == "2020-01-01T23:59:59+00:00"


# ============== Sorting Tests ==============

class TestSortEvents:

    def test_ascending(self, scenario_events):
        ordered = sort_events(scenario_events)
        assert [e.actor_id for e in ordered] == ["a", "c", "b"]

    def test_stable_on_ties(self):
        events = [manta("x", 10), manta("y", 5), manta("z", 10)]
        assert [e.actor_id for e in sort_events(events)] == ["y", "x", "z"]

    def test_does_not_mutate_input(self, scenario_events):
        before = list(scenario_events)
        sort_events(scenario_events)
        assert scenario_events == before


# ============== Extent Tests ==============

class TestCalendarDayExtent:

    def test_scenario_three_days(self, scenario_events, calendar_config):
        _, extent = sort_and_compute_extent(scenario_events, calendar_config)

        assert extent.start_ms == JAN_1_2020_MS
        assert extent.end_ms == JAN_1_2020_MS + 3 * DAY_MS - 1000
        assert extent.bucket_count == 2
        assert extent.n_buckets == 3
        assert extent.bucket_width_ms == DAY_MS
        assert extent.strategy is BinningStrategy.CALENDAR_DAY

    def test_single_event(self, calendar_config):
        extent = compute_extent([manta("a", JAN_1_2020_MS + 5 * HOUR_MS)], calendar_config)
        assert extent.bucket_count == 0
        assert extent.start_ms == JAN_1_2020_MS

    def test_whole_day_difference(self, calendar_config):
        first = JAN_1_2020_MS + 23 * HOUR_MS
        last = JAN_1_2020_MS + 9 * DAY_MS + HOUR_MS
        extent = compute_extent([manta("a", first), manta("a", last)], calendar_config)

        expected = (day_ceil_ms(last) - day_floor_ms(first)) // DAY_MS
        assert extent.bucket_count == expected == 9


class TestFixedIncrementExtent:

    def test_ceil_of_span(self, fixed_config):
        events = [manta("a", JAN_1_2020_MS + 6 * HOUR_MS), manta("a", JAN_1_2020_MS + 60 * HOUR_MS)]
        extent = compute_extent(events, fixed_config)

        # 54h / 48h -> 2
        assert extent.bucket_count == 2
        assert extent.bucket_width_ms == 48 * HOUR_MS
        assert extent.start_ms == JAN_1_2020_MS

    def test_exact_multiple(self, fixed_config):
        events = [manta("a", JAN_1_2020_MS), manta("a", JAN_1_2020_MS + 96 * HOUR_MS)]
        assert compute_extent(events, fixed_config).bucket_count == 2

    def test_strategies_differ(self, scenario_events, calendar_config, fixed_config):
        _, cal = sort_and_compute_extent(scenario_events, calendar_config)
        _, fixed = sort_and_compute_extent(scenario_events, fixed_config)
        # 60h span: 2 calendar days vs ceil(60/48) = 2 increments, different widths
        assert cal.bucket_width_ms != fixed.bucket_width_ms
        assert cal.to_dict()["strategy"] == "calendar_day"
        assert fixed.to_dict()["strategy"] == "fixed_increment"


class TestEmptyInput:

    def test_compute_extent_raises(self, calendar_config):
        with pytest.raises(EmptyEventSetError):
            compute_extent([], calendar_config)

    def test_sort_and_compute_raises(self, calendar_config):
        with pytest.raises(EmptyEventSetError):
            sort_and_compute_extent([], calendar_config)

    def test_is_value_error(self):
        assert issubclass(EmptyEventSetError, ValueError)
