"""Location feeds: GPS, fixed position, trace playback, WebSocket clients."""

import asyncio
import json
import subprocess
import time
from typing import AsyncIterator, Optional

from .config import CONFIG
from .models import Location


class LocationFeed:
    """Base for location sources.

    Subclasses implement get_location(); stream() turns it into an endless
    async sequence of positions, silently skipping failed fixes.
    """

    def __init__(self):
        self.last_location: Optional[Location] = None
        self.consecutive_failures = 0

    def current_position(self) -> Optional[Location]:
        return self.last_location

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        raise NotImplementedError

    def get_poll_interval(self) -> float:
        return CONFIG["gps_poll_interval"]

    def is_finished(self) -> bool:
        return False

    def _record(self, location: Optional[Location]) -> Optional[Location]:
        if location:
            self.last_location = location
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
        return location

    async def next_location(self) -> Optional[Location]:
        return await asyncio.to_thread(self.get_location)

    async def stream(self) -> AsyncIterator[Location]:
        while not self.is_finished():
            location = await self.next_location()
            if location:
                yield location
            await asyncio.sleep(self.get_poll_interval())

    def get_status(self) -> str:
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_location.accuracy:.0f}m" if self.last_location and self.last_location.accuracy else ""
            return f"GPS OK{acc}"
        return f"GPS: {self.consecutive_failures} consecutive failures"


class GPS(LocationFeed):
    """GPS access via Termux API"""

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        """Get current location using termux-location"""
        try:
            result = subprocess.run(
                ["termux-location", "-p", "gps", "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return self._record(None)

        if result.returncode != 0 or not result.stdout or not result.stdout.strip():
            return self._record(None)

        try:
            data = json.loads(result.stdout)
            location = Location(
                lat=data["latitude"],
                lon=data["longitude"],
                accuracy=data.get("accuracy"),
                timestamp=time.time()
            )
        except (json.JSONDecodeError, KeyError):
            return self._record(None)
        return self._record(location)


class FixedGPS(LocationFeed):
    """Always reports the same position (testing without GPS)"""

    def __init__(self, lat: float, lon: float):
        super().__init__()
        self.location = Location(lat=lat, lon=lon, accuracy=0)

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        return self._record(Location(
            lat=self.location.lat, lon=self.location.lon, accuracy=0, timestamp=time.time()
        ))

    async def next_location(self) -> Optional[Location]:
        return self.get_location()

    def get_status(self) -> str:
        return "Fixed location"


class GPSPlayback(LocationFeed):
    """Plays back a GPS trace from file.

    Trace format: {"trace": [{"elapsed": s, "location": {"lat", "lon", ...} | null}, ...]}
    """

    def __init__(self, playback_path: str, speed: float = 1.0):
        super().__init__()
        self.playback_path = playback_path
        self.speed = speed
        self.index = 0

        with open(playback_path) as f:
            data = json.load(f)
            self.trace: list[dict] = data["trace"]
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        """Get next location from trace sequentially"""
        if self.index >= len(self.trace):
            return None

        entry = self.trace[self.index]
        self.index += 1

        if entry.get("location"):
            return self._record(Location.from_dict(entry["location"]))
        return self._record(None)

    async def next_location(self) -> Optional[Location]:
        return self.get_location()

    def get_poll_interval(self) -> float:
        """Get the interval to wait between polls based on trace timing and speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return CONFIG["gps_poll_interval"] / self.speed

        prev_elapsed = self.trace[self.index - 1].get("elapsed", 0)
        curr_elapsed = self.trace[self.index].get("elapsed", 0)
        delta = curr_elapsed - prev_elapsed

        # Apply speed multiplier and clamp to reasonable range
        interval = delta / self.speed
        return max(0.0, min(interval, 60.0))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress})"


class WebSocketGPS(LocationFeed):
    """GPS source fed by positions that live display clients send"""

    def __init__(self, server):
        super().__init__()
        self.server = server

    async def next_location(self) -> Optional[Location]:
        return self._record(await self.server.get_location(timeout=CONFIG["gps_poll_interval"] * 10))

    def get_poll_interval(self) -> float:
        return 0

    def get_status(self) -> str:
        return "Live display (positions from clients)"
