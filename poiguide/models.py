"""Data classes for poiguide."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional


UNKNOWN_NAME = "Lieu inconnu"


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Location":
        return cls(**d)


class Category(Enum):
    """Controlled POI vocabulary. Values are the French spoken labels."""
    RESTAURANT = "Restaurant"
    CAFE = "Café"
    PHARMACY = "Pharmacie"
    BUS_STOP = "Arrêt de bus"
    BAKERY = "Boulangerie"
    SUPERMARKET = "Supermarché"
    BANK = "Banque"
    HOTEL = "Hôtel"
    MUSEUM = "Musée"
    PARK = "Parc"
    UNKNOWN = "Lieu"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_term(cls, term: Optional[str]) -> "Category":
        """Map a search term (any case, with or without accents) to a category"""
        if not term:
            return cls.UNKNOWN
        return _TERM_CATEGORIES.get(term.strip().lower(), cls.UNKNOWN)


_TERM_CATEGORIES = {
    "restaurant": Category.RESTAURANT,
    "café": Category.CAFE,
    "cafe": Category.CAFE,
    "pharmacie": Category.PHARMACY,
    "arrêt de bus": Category.BUS_STOP,
    "arret de bus": Category.BUS_STOP,
    "boulangerie": Category.BAKERY,
    "supermarché": Category.SUPERMARKET,
    "supermarche": Category.SUPERMARKET,
    "banque": Category.BANK,
    "hôtel": Category.HOTEL,
    "hotel": Category.HOTEL,
    "musée": Category.MUSEUM,
    "musee": Category.MUSEUM,
    "parc": Category.PARK,
}


@dataclass
class POICandidate:
    """A place returned by a search provider for one discovery cycle"""
    name: Optional[str]
    category: Category
    location: Location
    phone: Optional[str] = None
    url: Optional[str] = None
    source_term: Optional[str] = None  # diagnostics only

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return UNKNOWN_NAME


@dataclass
class RankedPOI:
    candidate: POICandidate
    distance_m: float

    @property
    def name(self) -> str:
        return self.candidate.display_name

    @property
    def category(self) -> Category:
        return self.candidate.category


@dataclass
class AnnouncementSession:
    """State of the periodic announcement loop (one per app session)"""
    enabled: bool = False
    last_location: Optional[Location] = None
    last_announcement_at: Optional[float] = None
    cycles: int = 0


@dataclass(frozen=True)
class PinnedPOI:
    """Snapshot of the POI selected for live distance tracking"""
    name: str
    category: Category
    location: Location
    phone: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: POICandidate) -> "PinnedPOI":
        return cls(
            name=candidate.display_name,
            category=candidate.category,
            location=candidate.location,
            phone=candidate.phone,
        )


@dataclass(frozen=True)
class LiveActivityAttributes:
    """Static part of the live distance display"""
    poi_name: str
    poi_category: str
    poi_lat: float
    poi_lon: float
    phone: Optional[str] = None

    @classmethod
    def from_pin(cls, pin: PinnedPOI) -> "LiveActivityAttributes":
        return cls(
            poi_name=pin.name,
            poi_category=pin.category.label,
            poi_lat=pin.location.lat,
            poi_lon=pin.location.lon,
            phone=pin.phone,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class LiveActivityState:
    """Dynamic part of the live distance display"""
    distance_m: float
    user_lat: float
    user_lon: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SearchRegion:
    """Square search area of side span_m centered on center"""
    center: Location
    span_m: float
