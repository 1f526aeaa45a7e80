"""POI discovery: fan-out search, dedupe, rank."""

import asyncio
from typing import Optional, Sequence

from .config import CONFIG
from .geo import distance_between
from .logger import Logger, NullLogger
from .models import Location, POICandidate, RankedPOI, SearchRegion
from .osm import SearchProvider


def deduplicate(candidates: Sequence[POICandidate], threshold_m: float) -> list[POICandidate]:
    """Drop candidates that repeat an earlier one.

    Two candidates are the same place when their names match
    case-insensitively (ignoring surrounding spaces) and they are less than
    threshold_m apart. Candidates without a name, or with a blank one, never
    match anything.
    """
    unique: list[POICandidate] = []
    for candidate in candidates:
        name = _name_key(candidate)
        is_duplicate = name is not None and any(
            _name_key(existing) == name
            and distance_between(existing.location, candidate.location) < threshold_m
            for existing in unique
        )
        if not is_duplicate:
            unique.append(candidate)
    return unique


def _name_key(candidate: POICandidate) -> Optional[str]:
    name = candidate.name.strip().lower() if candidate.name else ""
    return name or None


def rank(candidates: Sequence[POICandidate], origin: Location,
         radius_m: float, limit: int) -> list[RankedPOI]:
    """Distances from origin, radius cutoff (inclusive), nearest first, top `limit`"""
    ranked = [
        RankedPOI(candidate=c, distance_m=distance_between(origin, c.location))
        for c in candidates
    ]
    ranked = [r for r in ranked if r.distance_m <= radius_m]
    # sorted() is stable, so equal distances keep first-seen order
    ranked = sorted(ranked, key=lambda r: r.distance_m)
    return ranked[:limit]


class DiscoveryEngine:
    """Runs one discovery cycle across every category term"""

    def __init__(self, provider: SearchProvider, terms: Optional[Sequence[str]] = None,
                 max_results: Optional[int] = None, dedupe_distance: Optional[float] = None,
                 search_timeout: Optional[float] = None, logger: Optional[Logger] = None):
        self.provider = provider
        self.terms = list(terms if terms is not None else CONFIG["category_terms"])
        self.max_results = max_results if max_results is not None else CONFIG["max_results"]
        self.dedupe_distance = (dedupe_distance if dedupe_distance is not None
                                else CONFIG["dedupe_distance"])
        self.search_timeout = (search_timeout if search_timeout is not None
                               else CONFIG["search_timeout"])
        self.logger = logger or NullLogger()

    async def _search_term(self, term: str, region: SearchRegion) -> list[POICandidate]:
        if self.search_timeout:
            return await asyncio.wait_for(self.provider.search(term, region), self.search_timeout)
        return await self.provider.search(term, region)

    async def discover(self, location: Location, radius_m: float) -> list[RankedPOI]:
        """Return up to max_results POIs within radius_m of location, nearest first.

        Never raises: a failing term contributes no candidates.
        """
        # Search a wider square than the acceptance radius to get enough raw candidates
        region = SearchRegion(center=location, span_m=2 * radius_m)
        results = await asyncio.gather(
            *(self._search_term(term, region) for term in self.terms),
            return_exceptions=True,
        )

        merged: list[POICandidate] = []
        for term, result in zip(self.terms, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                self.logger.log("Search failed", {"term": term, "error": repr(result)})
                continue
            self.logger.log("Search results", {"term": term, "count": len(result)})
            merged.extend(result)

        unique = deduplicate(merged, self.dedupe_distance)
        ranked = rank(unique, location, radius_m, self.max_results)

        self.logger.log("Discovery complete", {
            "lat": location.lat,
            "lon": location.lon,
            "raw": len(merged),
            "unique": len(unique),
            "returned": [{"name": r.name, "distance": int(r.distance_m)} for r in ranked],
        })
        return ranked
