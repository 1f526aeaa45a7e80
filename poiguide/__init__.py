"""poiguide - Spoken nearby points of interest for pedestrians."""

from .config import CONFIG
from .models import (
    Location,
    Category,
    POICandidate,
    RankedPOI,
    AnnouncementSession,
    PinnedPOI,
    LiveActivityAttributes,
    LiveActivityState,
    SearchRegion,
)
from .logger import Logger, NullLogger
from .observable import Observable
from .geo import haversine_distance, distance_between, bounding_box
from .gps import LocationFeed, GPS, FixedGPS, GPSPlayback, WebSocketGPS
from .osm import OverpassSearchProvider, SearchError, parse_elements
from .discovery import DiscoveryEngine, deduplicate, rank
from .audio import Audio
from .announcer import VoiceAnnouncer, build_announcement, format_distance
from .scheduler import AnnouncementScheduler, RepeatingTimer, SchedulerHandle
from .tracker import ProximityTracker
from .live_display import LiveDisplayServer, MemoryActivityChannel
from .app import Guide
from .__main__ import main

__all__ = [
    "CONFIG",
    "Location",
    "Category",
    "POICandidate",
    "RankedPOI",
    "AnnouncementSession",
    "PinnedPOI",
    "LiveActivityAttributes",
    "LiveActivityState",
    "SearchRegion",
    "Logger",
    "NullLogger",
    "Observable",
    "haversine_distance",
    "distance_between",
    "bounding_box",
    "LocationFeed",
    "GPS",
    "FixedGPS",
    "GPSPlayback",
    "WebSocketGPS",
    "OverpassSearchProvider",
    "SearchError",
    "parse_elements",
    "DiscoveryEngine",
    "deduplicate",
    "rank",
    "Audio",
    "VoiceAnnouncer",
    "build_announcement",
    "format_distance",
    "AnnouncementScheduler",
    "RepeatingTimer",
    "SchedulerHandle",
    "ProximityTracker",
    "LiveDisplayServer",
    "MemoryActivityChannel",
    "Guide",
    "main",
]
