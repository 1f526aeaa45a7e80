"""Main poiguide application."""

import asyncio
import time
from typing import Optional

from .announcer import VoiceAnnouncer
from .audio import Audio
from .config import CONFIG
from .discovery import DiscoveryEngine
from .gps import GPS, GPSPlayback, LocationFeed
from .live_display import LiveDisplayServer, MemoryActivityChannel
from .logger import Logger
from .models import Location, RankedPOI
from .osm import OverpassSearchProvider, SearchProvider
from .scheduler import AnnouncementScheduler
from .tracker import ProximityTracker


class Guide:
    """Wires the location feed to the announcement loop and the POI tracker"""

    def __init__(self, log_path: Optional[str] = None,
                 provider: Optional[SearchProvider] = None,
                 radius: Optional[float] = None,
                 interval: Optional[float] = None,
                 speech: bool = True,
                 live_display: bool = False,
                 ws_port: Optional[int] = None,
                 pin: Optional[str] = None):
        self.radius = radius if radius is not None else CONFIG["search_radius"]
        self.pin_request = pin

        # Live display server
        self.live_server: Optional[LiveDisplayServer] = None
        if live_display:
            self.live_server = LiveDisplayServer(port=ws_port)
            Audio.set_callback(self.live_server.send_announcement)

        log_callback = self.live_server.send_log if self.live_server else None
        self.logger = Logger(log_path, callback=log_callback)

        self.provider = provider or OverpassSearchProvider()
        self.engine = DiscoveryEngine(self.provider, logger=self.logger)

        self.announcer = VoiceAnnouncer(None, logger=self.logger)
        self.audio = Audio(
            on_start=self.announcer.speech_started,
            on_finish=self.announcer.speech_finished,
            on_cancel=self.announcer.speech_cancelled,
            on_error=self.announcer.speech_failed,
            enabled=speech,
        )
        self.announcer.engine = self.audio

        self.scheduler = AnnouncementScheduler(
            self.engine, self.announcer,
            interval=interval, radius_m=self.radius, logger=self.logger,
        )
        self.scheduler.last_results.subscribe(self._on_results)

        channel = self.live_server if self.live_server else MemoryActivityChannel()
        self.tracker = ProximityTracker(channel, logger=self.logger)

        self.current_location: Optional[Location] = None
        self.last_log_update = 0.0
        self.start_time = 0.0

        # GPS source (can be swapped for playback or live display positions)
        self.gps_source: LocationFeed = GPS()

    def set_gps_source(self, source: LocationFeed):
        """Set GPS source (GPS, FixedGPS, GPSPlayback or WebSocketGPS)"""
        self.gps_source = source

    def get_state(self) -> dict:
        """Get current state as dict for logging"""
        session = self.scheduler.session
        state = {
            "announcing": session.enabled,
            "cycles": session.cycles,
            "last_announcement": self.announcer.last_text.value,
            "gps_status": self.gps_source.get_status(),
        }
        if self.current_location:
            state["location"] = {
                "lat": self.current_location.lat,
                "lon": self.current_location.lon,
                "accuracy": self.current_location.accuracy,
            }
        if self.tracker.pinned and self.current_location:
            state["pinned"] = self.tracker.pinned.name
            state["pinned_distance"] = int(self.tracker.distance_to_pin(self.current_location))
        return state

    def periodic_update(self):
        """Log state every log_interval seconds"""
        now = time.time()
        if now - self.last_log_update >= CONFIG["log_interval"]:
            self.logger.log("STATE", self.get_state())
            self.last_log_update = now

    def _on_results(self, pois: list[RankedPOI]):
        """Pin the requested POI the first time it shows up in an announcement"""
        if not self.pin_request or self.tracker.pinned:
            return
        match = select_poi(pois, self.pin_request)
        if match:
            self.tracker.pin(match.candidate, self.current_location)

    def handle_location(self, location: Location):
        self.current_location = location
        self.scheduler.update_location(location)
        self.tracker.on_location(location)
        self.periodic_update()

    async def run_once(self, location: Location) -> list[RankedPOI]:
        """Single discovery+announce cycle, printed as a list"""
        self.audio.loop = asyncio.get_running_loop()
        pois = await self.engine.discover(location, self.radius)
        print_pois(pois, self.radius)
        self.announcer.announce(pois, location)
        return pois

    async def wait_for_speech(self, timeout: float = 60):
        """Wait until the current utterance ends (or timeout)"""
        deadline = time.time() + timeout
        while self.audio.is_speaking and time.time() < deadline:
            await asyncio.sleep(0.2)

    async def run(self):
        """Announce nearby POIs until the location feed ends or the user interrupts"""
        print("\n=== poiguide ===")
        print(f"Search radius: {self.radius:.0f}m, every {self.scheduler.interval:.0f}s")
        if isinstance(self.gps_source, GPSPlayback):
            print(f"Playback mode: {self.gps_source.speed}x speed")
        print("Press Ctrl+C to stop\n")

        if self.live_server:
            await self.live_server.start_server()

        # Speech notifications from worker threads are handed back to this loop
        self.audio.loop = asyncio.get_running_loop()
        self.start_time = time.time()
        handle = None
        try:
            async for location in self.gps_source.stream():
                if handle is None:
                    self.logger.log("Got GPS fix", {"lat": location.lat, "lon": location.lon,
                                                    "accuracy": location.accuracy})
                    self.current_location = location
                    handle = self.scheduler.start(location)
                self.handle_location(location)

            if isinstance(self.gps_source, GPSPlayback):
                print("\nPlayback finished")
                self.logger.log("Playback finished")
                # Let the last cycle finish speaking its results
                await self.scheduler.drain()
                await self.wait_for_speech()
        finally:
            if handle:
                handle.stop()
            self.tracker.unpin()
            self.audio.cancel()

            summary = {
                "cycles": self.scheduler.session.cycles,
                "duration": time.time() - self.start_time,
            }
            self.logger.log("Session summary", summary)
            print("\nSession summary:")
            print(f"  Announcement cycles: {summary['cycles']}")
            print(f"  Duration: {summary['duration']/60:.1f} minutes")

            if self.live_server:
                await self.live_server.stop_server()
            self.logger.close()


def select_poi(pois: list[RankedPOI], request: str) -> Optional[RankedPOI]:
    """Find a POI by 1-based rank ("2") or case-insensitive name fragment"""
    if not pois:
        return None
    if request.isdigit():
        index = int(request) - 1
        return pois[index] if 0 <= index < len(pois) else None
    needle = request.lower()
    for poi in pois:
        if needle in poi.name.lower():
            return poi
    return None


def print_pois(pois: list[RankedPOI], radius: float):
    print("\n" + "=" * 60)
    print(f"NEARBY POIS (within {radius:.0f}m)")
    print("=" * 60)
    if not pois:
        print("\nNothing found")
    for i, poi in enumerate(pois, 1):
        print(f"\n{i}. {poi.category.label} {poi.name} - {poi.distance_m:.0f}m")
        if poi.candidate.phone:
            print(f"   tel: {poi.candidate.phone}")
        if poi.candidate.url:
            print(f"   {poi.candidate.url}")
    print("\n" + "=" * 60)
