"""Live distance display channels.

LiveDisplayServer broadcasts the pinned POI's distance (and each spoken
announcement) to WebSocket clients, and accepts positions from them.
"""

import asyncio
import json
import time
from typing import Optional

import websockets

from .config import CONFIG
from .models import LiveActivityAttributes, LiveActivityState, Location


class LiveDisplayServer:
    """WebSocket server acting as the live activity channel.

    Messages sent: {"type": "activity_start" | "activity_update" |
    "activity_end" | "announcement" | "log", "data": {...}}.
    Messages accepted: {"type": "location", "data": {"lat": .., "lon": ..}}.
    """

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None):
        self.host = host or CONFIG["ws_host"]
        self.port = port if port is not None else CONFIG["ws_port"]
        self.location_queue: asyncio.Queue = asyncio.Queue()
        self.connected_clients: set = set()
        self.attributes: Optional[LiveActivityAttributes] = None
        self.state: Optional[LiveActivityState] = None
        self._server = None

    async def start_server(self):
        self._server = await websockets.serve(self._handler, self.host, self.port)
        if not self.port:
            self.port = self._server.sockets[0].getsockname()[1]
        print(f"Live display available at: ws://{self.host}:{self.port}")

    async def stop_server(self):
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handler(self, websocket):
        self.connected_clients.add(websocket)
        try:
            # Bring late joiners up to date
            if self.attributes and self.state:
                await websocket.send(self._encode("activity_start", self._activity_payload()))
            async for message in websocket:
                try:
                    data = json.loads(message)
                    if data.get("type") == "location":
                        loc_data = data.get("data", {})
                        location = Location(
                            lat=float(loc_data["lat"]),
                            lon=float(loc_data["lon"]),
                            accuracy=0,
                            timestamp=time.time(),
                        )
                        self.location_queue.put_nowait(location)
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    pass
        finally:
            self.connected_clients.discard(websocket)

    @staticmethod
    def _encode(msg_type: str, data: dict) -> str:
        return json.dumps({"type": msg_type, "data": data}, ensure_ascii=False)

    def _activity_payload(self) -> dict:
        return {
            "attributes": self.attributes.to_dict() if self.attributes else None,
            "state": self.state.to_dict() if self.state else None,
        }

    def _send_message(self, msg_type: str, data: dict):
        """Send a message to all connected WebSocket clients"""
        if not self.connected_clients:
            return
        websockets.broadcast(self.connected_clients, self._encode(msg_type, data))

    # ActivityChannel
    def start(self, attributes: LiveActivityAttributes, state: LiveActivityState):
        self.attributes = attributes
        self.state = state
        self._send_message("activity_start", self._activity_payload())

    def update(self, state: LiveActivityState):
        self.state = state
        self._send_message("activity_update", self._activity_payload())

    def end(self):
        self._send_message("activity_end", self._activity_payload())
        self.attributes = None
        self.state = None

    def send_announcement(self, text: str):
        self._send_message("announcement", {"text": text})

    def send_log(self, message: str, data: Optional[dict] = None):
        self._send_message("log", {"message": message, "data": data})

    async def get_location(self, timeout: float = 30) -> Optional[Location]:
        """Wait for a client to send a position"""
        try:
            return await asyncio.wait_for(self.location_queue.get(), timeout)
        except asyncio.TimeoutError:
            return None


class MemoryActivityChannel:
    """Channel that keeps every call in memory"""

    def __init__(self):
        self.events: list[tuple] = []
        self.attributes: Optional[LiveActivityAttributes] = None
        self.state: Optional[LiveActivityState] = None

    @property
    def active(self) -> bool:
        return self.attributes is not None

    def start(self, attributes: LiveActivityAttributes, state: LiveActivityState):
        self.attributes = attributes
        self.state = state
        self.events.append(("start", attributes, state))

    def update(self, state: LiveActivityState):
        self.state = state
        self.events.append(("update", state))

    def end(self):
        self.events.append(("end",))
        self.attributes = None
        self.state = None

    def count(self, kind: str) -> int:
        return sum(1 for e in self.events if e[0] == kind)
