"""Periodic discovery and announcement of nearby POIs."""

import asyncio
import time
from typing import Callable, Optional, Protocol

from .announcer import VoiceAnnouncer
from .config import CONFIG
from .discovery import DiscoveryEngine
from .logger import Logger, NullLogger
from .models import AnnouncementSession, Location
from .observable import Observable


class Timer(Protocol):
    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


class RepeatingTimer:
    """Calls callback every `interval` seconds on the running event loop"""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._loop = asyncio.get_running_loop()
        self._next_at = self._loop.time() + interval
        self._handle: Optional[asyncio.TimerHandle] = self._loop.call_at(self._next_at, self._fire)

    def _fire(self):
        # Schedule from the planned time, not from now, so ticks don't drift
        self._next_at += self.interval
        self._handle = self._loop.call_at(self._next_at, self._fire)
        self.callback()

    def cancel(self):
        if self._handle:
            self._handle.cancel()
            self._handle = None


class SchedulerHandle:
    """Returned by AnnouncementScheduler.start(); the owner must stop it"""

    def __init__(self, scheduler: "AnnouncementScheduler"):
        self.scheduler = scheduler

    def stop(self):
        self.scheduler.stop()

    def __enter__(self) -> "SchedulerHandle":
        return self

    def __exit__(self, *exc):
        self.stop()
        return False

    async def __aenter__(self) -> "SchedulerHandle":
        return self

    async def __aexit__(self, *exc):
        self.stop()
        await self.scheduler.drain()
        return False


class AnnouncementScheduler:
    """Idle/Running state machine driving discovery+announce cycles.

    start() runs one cycle immediately and then one every `interval` seconds
    from the most recent location given to start() or update_location().
    """

    def __init__(self, engine: DiscoveryEngine, announcer: VoiceAnnouncer,
                 interval: Optional[float] = None, radius_m: Optional[float] = None,
                 timer_factory: Optional[TimerFactory] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[Logger] = None):
        self.engine = engine
        self.announcer = announcer
        self.interval = interval if interval is not None else CONFIG["announcement_interval"]
        self.radius_m = radius_m if radius_m is not None else CONFIG["search_radius"]
        self.timer_factory = timer_factory or RepeatingTimer
        self.clock = clock
        self.logger = logger or NullLogger()

        self.session = AnnouncementSession()
        self.enabled: Observable[bool] = Observable(False)
        self.last_results: Observable[list] = Observable()
        self._timer: Optional[Timer] = None
        self._handle: Optional[SchedulerHandle] = None
        self._cycles: set[asyncio.Task] = set()
        self._run_id = 0

    @property
    def is_running(self) -> bool:
        return self.session.enabled

    def start(self, location: Optional[Location]) -> Optional[SchedulerHandle]:
        """Start periodic announcements; returns the existing handle if already running"""
        if self.session.enabled:
            return self._handle
        if location is None:
            self.logger.log("Cannot start announcements: no location available")
            return None

        self.logger.log("Starting periodic announcements", {
            "lat": location.lat, "lon": location.lon, "interval": self.interval
        })
        self.session.enabled = True
        self.session.last_location = location
        self._run_id += 1
        self.enabled.set(True)
        self._handle = SchedulerHandle(self)

        self._spawn_cycle()
        self._timer = self.timer_factory(self.interval, self._tick)
        return self._handle

    def update_location(self, location: Location):
        """Use this location for the next tick without announcing now"""
        self.session.last_location = location

    def stop(self):
        if not self.session.enabled:
            return

        self.logger.log("Stopping periodic announcements", {"cycles": self.session.cycles})
        if self._timer:
            self._timer.cancel()
            self._timer = None
        self.session.enabled = False
        self.enabled.set(False)
        self._handle = None
        self.announcer.cancel()

    def toggle(self, location: Optional[Location] = None) -> Optional[SchedulerHandle]:
        if self.session.enabled:
            self.stop()
            return None
        return self.start(location)

    async def drain(self):
        """Wait for cycles already in flight"""
        while True:
            pending = [t for t in self._cycles if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _tick(self):
        if not self.session.enabled:
            return
        self._spawn_cycle()

    def _spawn_cycle(self):
        location = self.session.last_location
        if location is None:
            return
        task = asyncio.ensure_future(self._run_cycle(location, self._run_id))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _run_cycle(self, location: Location, run_id: int):
        self.session.cycles += 1
        pois = await self.engine.discover(location, self.radius_m)

        # Results that arrive after stop() are dropped, even if restarted since
        if not self.session.enabled or run_id != self._run_id:
            self.logger.log("Discarding results after stop", {"count": len(pois)})
            return

        self.announcer.announce(pois, location)
        self.session.last_announcement_at = self.clock()
        self.last_results.set(pois, force=True)
