"""
Tests for the pinned-POI distance tracker.
"""

import pytest

from poiguide.live_display import MemoryActivityChannel
from poiguide.models import Location
from poiguide.tracker import ProximityTracker

from conftest import PARIS, candidate


# ~1.11 m of latitude
METER = 0.00001


def north(meters_x10: int) -> Location:
    """PARIS moved north by roughly meters_x10 / 10 * 1.11 m"""
    return Location(lat=PARIS.lat + METER * meters_x10 / 10, lon=PARIS.lon)


@pytest.fixture
def channel():
    return MemoryActivityChannel()


@pytest.fixture
def tracker(channel):
    return ProximityTracker(channel, threshold_m=10)


def test_pin_with_location_starts_activity(tracker, channel):
    chez_paul = candidate("Chez Paul", 48.8568, 2.3523, phone="+33 1 23 45 67 89")
    tracker.pin(chez_paul, PARIS)

    assert channel.count("start") == 1
    assert channel.attributes.poi_name == "Chez Paul"
    assert channel.attributes.poi_category == "Restaurant"
    assert channel.attributes.phone == "+33 1 23 45 67 89"
    assert channel.state.distance_m == pytest.approx(23.4, abs=1.0)
    assert channel.state.user_lat == PARIS.lat
    assert tracker.last_tracked_location == PARIS


def test_first_location_after_pin_sets_baseline(tracker, channel):
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523))
    assert channel.events == []

    assert tracker.on_location(PARIS) is True
    assert channel.count("start") == 1
    assert tracker.last_tracked_location == PARIS


def test_small_moves_are_dropped(tracker, channel):
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523), PARIS)

    # Jitter around the baseline, always under 10 m from it
    for offset in (40, -40, 60, -70, 85, 0, -85):
        assert tracker.on_location(north(offset)) is False

    assert channel.count("update") == 0
    assert tracker.last_tracked_location == PARIS


def test_move_past_threshold_pushes_once_and_resets_baseline(tracker, channel):
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523), PARIS)

    moved = north(100)  # ~11 m
    assert tracker.on_location(moved) is True
    assert channel.count("update") == 1
    assert tracker.last_tracked_location == moved

    # 5 m from the new baseline: nothing
    assert tracker.on_location(north(145)) is False
    assert channel.count("update") == 1


def test_distance_recomputed_from_scratch(tracker, channel):
    poi = candidate("Chez Paul", 48.8568, 2.3523)
    tracker.pin(poi, PARIS)
    tracker.on_location(poi.location)
    assert channel.state.distance_m == 0


def test_new_pin_ends_previous_activity_first(tracker, channel):
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523), PARIS)
    tracker.pin(candidate("Café Marly", 48.8600, 2.3360, term="café"), PARIS)

    assert [e[0] for e in channel.events] == ["start", "end", "start"]
    assert channel.attributes.poi_name == "Café Marly"


def test_locations_without_pin_are_ignored(tracker, channel):
    assert tracker.on_location(PARIS) is False
    assert channel.events == []


def test_unpin_ends_activity(tracker, channel):
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523), PARIS)
    tracker.unpin()

    assert channel.count("end") == 1
    assert not channel.active
    assert tracker.pinned is None
    assert tracker.on_location(north(500)) is False


def test_channel_failure_does_not_raise(logger, log_records):
    class BrokenChannel(MemoryActivityChannel):
        def start(self, attributes, state):
            raise ConnectionError("display gone")

    tracker = ProximityTracker(BrokenChannel(), threshold_m=10, logger=logger)
    tracker.pin(candidate("Chez Paul", 48.8568, 2.3523))

    assert tracker.on_location(PARIS) is False
    assert tracker.last_tracked_location is None
    assert any(message == "Live activity push failed" for message, _ in log_records)
