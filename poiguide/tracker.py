"""Live distance tracking for a single pinned POI."""

from typing import Optional, Protocol

from .config import CONFIG
from .geo import distance_between
from .logger import Logger, NullLogger
from .models import (
    LiveActivityAttributes,
    LiveActivityState,
    Location,
    PinnedPOI,
    POICandidate,
)


class ActivityChannel(Protocol):
    """External display showing the distance to one POI"""

    def start(self, attributes: LiveActivityAttributes, state: LiveActivityState) -> None:
        ...

    def update(self, state: LiveActivityState) -> None:
        ...

    def end(self) -> None:
        ...


class ProximityTracker:
    """Pushes the distance to the pinned POI, debounced on user movement.

    An update is pushed only when the user has moved at least threshold_m
    since the last pushed position.
    """

    def __init__(self, channel: ActivityChannel, threshold_m: Optional[float] = None,
                 logger: Optional[Logger] = None):
        self.channel = channel
        self.threshold_m = threshold_m if threshold_m is not None else CONFIG["tracking_threshold"]
        self.logger = logger or NullLogger()
        self.pinned: Optional[PinnedPOI] = None
        self.last_tracked_location: Optional[Location] = None
        self._activity_started = False
        self.updates_pushed = 0

    def pin(self, candidate: POICandidate, location: Optional[Location] = None) -> PinnedPOI:
        """Track a new POI, ending any previous one first"""
        self.unpin()
        self.pinned = PinnedPOI.from_candidate(candidate)
        self.logger.log("Pinned POI", {
            "name": self.pinned.name,
            "category": self.pinned.category.label,
        })
        if location is not None:
            self.on_location(location)
        return self.pinned

    def unpin(self):
        if self.pinned is None:
            return
        if self._activity_started:
            try:
                self.channel.end()
            except Exception as e:
                self.logger.log("Live activity end failed", {"error": repr(e)})
        self.logger.log("Unpinned POI", {"name": self.pinned.name, "updates": self.updates_pushed})
        self.pinned = None
        self.last_tracked_location = None
        self._activity_started = False
        self.updates_pushed = 0

    def distance_to_pin(self, location: Location) -> Optional[float]:
        if self.pinned is None:
            return None
        return distance_between(location, self.pinned.location)

    def on_location(self, location: Location) -> bool:
        """Handle a position update; returns True if an update was pushed"""
        if self.pinned is None:
            return False

        if self.last_tracked_location is not None:
            moved = distance_between(self.last_tracked_location, location)
            if moved < self.threshold_m:
                return False

        state = LiveActivityState(
            distance_m=self.distance_to_pin(location),
            user_lat=location.lat,
            user_lon=location.lon,
        )
        try:
            if self._activity_started:
                self.channel.update(state)
            else:
                self.channel.start(LiveActivityAttributes.from_pin(self.pinned), state)
                self._activity_started = True
        except Exception as e:
            self.logger.log("Live activity push failed", {"error": repr(e)})
            return False

        self.last_tracked_location = location
        self.updates_pushed += 1
        self.logger.log("Live distance", {"name": self.pinned.name, "distance": int(state.distance_m)})
        return True
