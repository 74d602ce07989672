# tests/conftest.py
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    Coordinate,
    PlaceSearchFailure,
    PlaceSearchResult,
    PlaceSearchSuccess,
    RawPlace,
)

Answer = Union[PlaceSearchResult, List[RawPlace], Exception]

class FakePlaceSearch:
    """
    Scripted PlaceSearchProvider.

    `answers` maps a query term to a result, a bare list of places, or an
    exception to raise. Unknown terms return an empty success.
    """

    def __init__(self, answers: Optional[Dict[str, Answer]] = None):
        self.answers: Dict[str, Answer] = answers or {}
        self.calls: List[Tuple[str, Coordinate, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call: Optional[Callable[[str], None]] = None

    async def search(self, query: str, center: Coordinate, radius_meters: float) -> PlaceSearchResult:
        self.calls.append((query, center, radius_meters))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call:
                self.on_call(query)
            answer = self.answers.get(query, PlaceSearchSuccess())
            if isinstance(answer, Exception):
                raise answer
            if isinstance(answer, list):
                return PlaceSearchSuccess(places=answer)
            return answer
        finally:
            self.in_flight -= 1

    @property
    def queries(self) -> List[str]:
        return [q for q, _, _ in self.calls]

def place(name: str, lat: float, lon: float, address: Optional[str] = "1 Main St", **extra) -> RawPlace:
    return RawPlace(name=name, formatted_address=address, lat=lat, lon=lon, **extra)

def unreachable(error: str = "PROVIDER_UNAVAILABLE") -> PlaceSearchFailure:
    return PlaceSearchFailure(error=error, detail="provider down", transport=True)

@pytest.fixture
def fake_provider() -> FakePlaceSearch:
    return FakePlaceSearch()

@pytest.fixture
def make_place():
    return place

@pytest.fixture
def make_unreachable():
    return unreachable

@pytest.fixture
def no_pacing(monkeypatch):
    monkeypatch.setattr(settings, "SEARCH_PACING_SECONDS", 0.0)
    yield
