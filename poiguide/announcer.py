"""Spoken announcements of nearby POIs."""

from typing import Optional, Sequence

from .audio import SpeechEngine
from .config import CONFIG
from .logger import Logger, NullLogger
from .models import Location, RankedPOI
from .observable import Observable

NOTHING_NEARBY = "Aucun point d'intérêt trouvé à proximité"
LEAD_IN = "Points d'intérêt à proximité:"
SEPARATOR = ". "


def format_distance(distance_m: float) -> str:
    """Spoken distance: whole meters below 1 km, kilometers with one decimal above"""
    if distance_m < 1000:
        return f"{int(distance_m)} mètres"
    return f"{distance_m / 1000:.1f} kilomètres"


def build_announcement(pois: Sequence[RankedPOI]) -> str:
    """'Restaurant Chez Paul à 27 mètres' clauses after a lead-in, nearest first"""
    if not pois:
        return NOTHING_NEARBY
    parts = [LEAD_IN]
    for poi in pois:
        parts.append(f"{poi.category.label} {poi.name} à {format_distance(poi.distance_m)}")
    return SEPARATOR.join(parts)


class VoiceAnnouncer:
    """Speaks ranked POIs, newest announcement always interrupting the previous one"""

    def __init__(self, engine: SpeechEngine, locale: Optional[str] = None,
                 logger: Optional[Logger] = None):
        self.engine = engine
        self.locale = locale or CONFIG["locale"]
        self.logger = logger or NullLogger()
        self.last_text: Observable[str] = Observable()
        self.is_speaking: Observable[bool] = Observable(False)

    # Speech engine notifications
    def speech_started(self, text: str):
        self.is_speaking.set(True)

    def speech_finished(self, text: str):
        self.is_speaking.set(False)

    def speech_cancelled(self, text: str):
        self.is_speaking.set(False)

    def speech_failed(self, text: str, error: str):
        self.is_speaking.set(False)
        self.logger.log("Speech failed", {"text": text, "error": error})

    def announce(self, pois: Sequence[RankedPOI], from_location: Optional[Location] = None):
        text = build_announcement(pois)
        self.last_text.set(text, force=True)
        data = {"text": text, "count": len(pois)}
        if from_location:
            data["lat"] = from_location.lat
            data["lon"] = from_location.lon
        self.logger.log("AUDIO", data)

        try:
            self.engine.cancel()
            self.engine.speak(text, self.locale)
        except Exception as e:
            self.logger.log("Speech failed", {"error": repr(e)})

    def cancel(self):
        try:
            self.engine.cancel()
        except Exception as e:
            self.logger.log("Speech cancel failed", {"error": repr(e)})
