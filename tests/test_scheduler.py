"""
Tests for the periodic announcement scheduler, driven by simulated time.
"""

import asyncio

import pytest

from poiguide.announcer import NOTHING_NEARBY, VoiceAnnouncer
from poiguide.discovery import DiscoveryEngine
from poiguide.models import Location
from poiguide.scheduler import AnnouncementScheduler, RepeatingTimer

from conftest import PARIS, FakeProvider, candidate


TERMS = ["restaurant", "café"]


def make_scheduler(provider, speech, clock, **kwargs):
    engine = DiscoveryEngine(provider, terms=TERMS)
    announcer = VoiceAnnouncer(speech)
    return AnnouncementScheduler(
        engine, announcer, interval=30, radius_m=500,
        timer_factory=clock.timer_factory, clock=clock, **kwargs
    )


@pytest.mark.asyncio
async def test_start_runs_immediately_and_every_interval(speech, clock):
    """61 simulated seconds after start: cycles at t=0, 30 and 60."""
    scheduler = make_scheduler(FakeProvider(), speech, clock)

    scheduler.start(PARIS)
    await scheduler.drain()
    clock.advance(61)
    await scheduler.drain()

    assert scheduler.session.cycles == 3
    assert len(speech.spoken) == 3
    scheduler.stop()


@pytest.mark.asyncio
async def test_start_twice_registers_one_timer_and_one_cycle(speech, clock):
    provider = FakeProvider()
    scheduler = make_scheduler(provider, speech, clock)

    first = scheduler.start(PARIS)
    second = scheduler.start(Location(lat=0.0, lon=0.0))
    await scheduler.drain()

    assert first is second
    assert len(clock.timers) == 1
    assert len(speech.spoken) == 1
    assert len(provider.calls) == len(TERMS)
    assert scheduler.session.last_location == PARIS
    scheduler.stop()


@pytest.mark.asyncio
async def test_stop_cancels_timer_and_speech(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)
    scheduler.start(PARIS)
    await scheduler.drain()

    scheduler.stop()
    clock.advance(120)
    await scheduler.drain()

    assert not scheduler.is_running
    assert not clock.timers[0].active
    assert speech.current is None
    assert len(speech.spoken) == 1


@pytest.mark.asyncio
async def test_stop_when_idle_is_noop(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)
    scheduler.stop()
    assert speech.calls == []


@pytest.mark.asyncio
async def test_update_location_is_silent_and_used_on_next_tick(speech, clock):
    provider = FakeProvider()
    scheduler = make_scheduler(provider, speech, clock)
    scheduler.start(PARIS)
    await scheduler.drain()

    moved = Location(lat=48.8600, lon=2.3400)
    scheduler.update_location(moved)
    await scheduler.drain()
    assert len(speech.spoken) == 1

    clock.advance(30)
    await scheduler.drain()
    assert len(speech.spoken) == 2
    assert provider.calls[-1][1].center == moved
    scheduler.stop()


@pytest.mark.asyncio
async def test_results_arriving_after_stop_are_discarded(speech, clock):
    gate = asyncio.Event()
    scheduler = make_scheduler(FakeProvider(gate=gate), speech, clock)

    scheduler.start(PARIS)
    await asyncio.sleep(0)
    scheduler.stop()
    gate.set()
    await scheduler.drain()

    assert speech.spoken == []
    assert "cancel" in speech.calls


@pytest.mark.asyncio
async def test_no_results_announces_nothing_nearby_once(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)
    scheduler.start(PARIS)
    await scheduler.drain()

    assert speech.spoken == [(NOTHING_NEARBY, "fr-FR")]
    assert scheduler.session.last_announcement_at == 0.0
    scheduler.stop()


@pytest.mark.asyncio
async def test_last_results_published_after_announcement(speech, clock):
    chez_paul = candidate("Chez Paul", 48.8568, 2.3523)
    scheduler = make_scheduler(FakeProvider(results={"restaurant": [chez_paul]}), speech, clock)
    seen = []
    scheduler.last_results.subscribe(seen.append)

    scheduler.start(PARIS)
    await scheduler.drain()

    assert [p.name for p in seen[0]] == ["Chez Paul"]
    scheduler.stop()


@pytest.mark.asyncio
async def test_toggle(speech, clock, logger, log_records):
    scheduler = make_scheduler(FakeProvider(), speech, clock, logger=logger)

    assert scheduler.toggle(None) is None
    assert not scheduler.is_running
    assert any("no location" in message for message, _ in log_records)

    assert scheduler.toggle(PARIS) is not None
    assert scheduler.is_running
    await scheduler.drain()

    scheduler.toggle(PARIS)
    assert not scheduler.is_running


def test_start_without_location_is_logged_noop(speech, clock, logger, log_records):
    provider = FakeProvider()
    scheduler = make_scheduler(provider, speech, clock, logger=logger)

    assert scheduler.start(None) is None

    assert not scheduler.is_running
    assert clock.timers == []
    assert provider.calls == []
    assert log_records == [("Cannot start announcements: no location available", None)]


@pytest.mark.asyncio
async def test_handle_stops_scheduler_on_exit(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)

    async with scheduler.start(PARIS):
        assert scheduler.is_running

    assert not scheduler.is_running
    assert scheduler.enabled.value is False


@pytest.mark.asyncio
async def test_handle_stops_scheduler_on_error(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)

    with pytest.raises(RuntimeError):
        with scheduler.start(PARIS):
            raise RuntimeError("boom")

    assert not scheduler.is_running
    await scheduler.drain()


@pytest.mark.asyncio
async def test_restart_after_stop(speech, clock):
    scheduler = make_scheduler(FakeProvider(), speech, clock)
    scheduler.start(PARIS)
    await scheduler.drain()
    scheduler.stop()

    scheduler.start(PARIS)
    await scheduler.drain()

    assert len(clock.timers) == 2
    assert len(speech.spoken) == 2
    scheduler.stop()


@pytest.mark.asyncio
async def test_repeating_timer_fires_until_cancelled():
    fired = []
    timer = RepeatingTimer(0.02, lambda: fired.append(1))
    await asyncio.sleep(0.15)
    timer.cancel()
    count = len(fired)
    await asyncio.sleep(0.06)

    assert count >= 2
    assert len(fired) == count
