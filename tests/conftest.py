"""
Shared fakes for the announcement pipeline: search provider, speech engine,
manually driven timers and a recording logger.
"""

import asyncio

import pytest

from poiguide.logger import Logger
from poiguide.models import Category, Location, POICandidate


PARIS = Location(lat=48.8566, lon=2.3522)


def candidate(name, lat, lon, term="restaurant", phone=None):
    return POICandidate(
        name=name,
        category=Category.from_term(term),
        location=Location(lat=lat, lon=lon),
        phone=phone,
        source_term=term,
    )


class FakeProvider:
    """Returns canned results per term; terms in `errors` raise instead."""

    def __init__(self, results=None, errors=None, delays=None, gate=None):
        self.results = results or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.gate = gate
        self.calls = []

    async def search(self, term, region):
        self.calls.append((term, region))
        if self.gate is not None:
            await self.gate.wait()
        if term in self.delays:
            await asyncio.sleep(self.delays[term])
        if term in self.errors:
            raise self.errors[term]
        return list(self.results.get(term, []))


class FakeSpeech:
    """Speech engine with one in-flight utterance that tests finish by hand."""

    def __init__(self, fail=False):
        self.fail = fail
        self.current = None
        self.spoken = []
        self.completed = []
        self.cancelled = []
        self.calls = []

    def speak(self, text, locale):
        self.calls.append("speak")
        if self.fail:
            raise RuntimeError("no audio device")
        self.current = text
        self.spoken.append((text, locale))

    def cancel(self):
        self.calls.append("cancel")
        if self.current is not None:
            self.cancelled.append(self.current)
            self.current = None

    def finish(self):
        if self.current is not None:
            self.completed.append(self.current)
            self.current = None


class ManualTimer:
    def __init__(self, clock, interval, callback):
        self.clock = clock
        self.interval = interval
        self.callback = callback
        self.next_at = clock.now + interval
        self.active = True

    def cancel(self):
        self.active = False


class ManualClock:
    """Simulated time; timers fire only when advance() passes their deadline."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self):
        return self.now

    def timer_factory(self, interval, callback):
        timer = ManualTimer(self, interval, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if t.active and t.next_at <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.next_at)
            self.now = timer.next_at
            timer.next_at += timer.interval
            timer.callback()
        self.now = target


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def log_records():
    return []


@pytest.fixture
def logger(log_records):
    return Logger(echo=False, callback=lambda message, data: log_records.append((message, data)))
