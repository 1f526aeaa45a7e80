"""
Tests for location feeds.
"""

import json

import pytest

from poiguide.gps import FixedGPS, GPS, GPSPlayback
from poiguide.models import Location


@pytest.fixture
def trace_file(tmp_path):
    path = tmp_path / "trace.json"
    path.write_text(json.dumps({
        "recorded_at": "2025-10-24T10:00:00",
        "trace": [
            {"elapsed": 0.0, "location": {"lat": 48.8566, "lon": 2.3522, "accuracy": 5.0, "timestamp": None}},
            {"elapsed": 3.0, "location": None, "status": "GPS: 1 consecutive failures"},
            {"elapsed": 6.0, "location": {"lat": 48.8567, "lon": 2.3522, "accuracy": 4.0, "timestamp": None}},
        ],
    }))
    return str(path)


def test_playback_reads_entries_in_order(trace_file):
    playback = GPSPlayback(trace_file)

    assert playback.get_location().lat == 48.8566
    assert playback.get_location() is None
    assert playback.consecutive_failures == 1
    assert "1 failures" in playback.get_status()
    assert playback.get_location().lat == 48.8567
    assert playback.is_finished()
    assert playback.current_position() == Location(lat=48.8567, lon=2.3522, accuracy=4.0)


def test_playback_poll_interval_follows_trace_and_speed(trace_file):
    playback = GPSPlayback(trace_file, speed=2.0)
    playback.get_location()
    assert playback.get_poll_interval() == pytest.approx(1.5)


@pytest.mark.asyncio
async def test_stream_skips_gaps(trace_file):
    playback = GPSPlayback(trace_file, speed=1000.0)
    locations = [loc async for loc in playback.stream()]
    assert [loc.lat for loc in locations] == [48.8566, 48.8567]


def test_fixed_gps():
    gps = FixedGPS(48.8566, 2.3522)
    location = gps.get_location()
    assert (location.lat, location.lon) == (48.8566, 2.3522)
    assert gps.current_position() == location


def test_termux_gps_missing_binary_counts_as_failure(monkeypatch):
    import poiguide.gps as gps_module

    def missing(*args, **kwargs):
        raise FileNotFoundError("termux-location")

    monkeypatch.setattr(gps_module.subprocess, "run", missing)
    gps = GPS()

    assert gps.get_location() is None
    assert gps.get_status() == "GPS: 1 consecutive failures"
