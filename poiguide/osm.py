"""POI search via the OpenStreetMap Overpass API."""

import asyncio
import re
from typing import Optional, Protocol

import requests

from .config import CONFIG
from .geo import bounding_box
from .models import Category, Location, POICandidate, SearchRegion


class SearchError(Exception):
    """A single search request failed (network, quota, malformed response)"""


class SearchProvider(Protocol):
    async def search(self, term: str, region: SearchRegion) -> list[POICandidate]:
        ...


# OSM tag filter for each search term
TERM_TAGS = {
    "restaurant": ("amenity", "restaurant"),
    "café": ("amenity", "cafe"),
    "pharmacie": ("amenity", "pharmacy"),
    "arrêt de bus": ("highway", "bus_stop"),
    "boulangerie": ("shop", "bakery"),
    "supermarché": ("shop", "supermarket"),
    "banque": ("amenity", "bank"),
    "hôtel": ("tourism", "hotel"),
    "musée": ("tourism", "museum"),
    "parc": ("leisure", "park"),
}


class OverpassSearchProvider:
    """Search OSM for places matching a term inside a square region"""

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        self.url = url or CONFIG["overpass_url"]
        self.timeout = timeout or CONFIG["overpass_timeout"]
        self.session = session or requests.Session()

    def build_query(self, term: str, region: SearchRegion) -> str:
        """Overpass QL for one term. Unknown terms fall back to a name match."""
        south, west, north, east = bounding_box(region.center, region.span_m)
        bbox = f"({south:.6f},{west:.6f},{north:.6f},{east:.6f})"
        tag = TERM_TAGS.get(term.strip().lower())
        if tag:
            selector = f'["{tag[0]}"="{tag[1]}"]'
        else:
            selector = f'["name"~"{re.escape(term)}",i]'
        return f"""
        [out:json][timeout:{self.timeout}];
        (
          node{selector}{bbox};
          way{selector}{bbox};
        );
        out center tags;
        """

    def query(self, term: str, region: SearchRegion) -> list[POICandidate]:
        """Blocking search for one term"""
        query = self.build_query(term, region)
        try:
            response = self.session.post(self.url, data={"data": query}, timeout=self.timeout + 10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise SearchError(f"search for {term!r} failed: {e}") from e
        except ValueError as e:
            raise SearchError(f"search for {term!r} returned invalid JSON") from e

        return parse_elements(data.get("elements", []), term)

    async def search(self, term: str, region: SearchRegion) -> list[POICandidate]:
        return await asyncio.to_thread(self.query, term, region)


def parse_elements(elements: list[dict], term: str) -> list[POICandidate]:
    """Convert Overpass elements into candidates, skipping those without coordinates"""
    category = Category.from_term(term)
    candidates = []
    for element in elements:
        if element.get("type") == "node":
            lat, lon = element.get("lat"), element.get("lon")
        else:
            center = element.get("center") or {}
            lat, lon = center.get("lat"), center.get("lon")
        if lat is None or lon is None:
            continue

        tags = element.get("tags", {})
        candidates.append(POICandidate(
            name=tags.get("name"),
            category=category,
            location=Location(lat=lat, lon=lon),
            phone=tags.get("phone") or tags.get("contact:phone"),
            url=tags.get("website") or tags.get("contact:website"),
            source_term=term,
        ))
    return candidates
