"""Shared fakes and fixtures for trip planner tests."""

from typing import Any

import pytest
import requests

from api_adapters import Geocoder, PostalCodeLookup, Router
from trip_repository import InMemoryStore, TripRepository
from trip_structures import GeoPoint, ResolvedAddress


class FakeGeocoder(Geocoder):
    """Answers from a dict of query -> GeoPoint and records every query."""

    def __init__(self, points: dict[str, GeoPoint] | None = None):
        self.points = points or {}
        self.calls: list[str] = []

    def geocode(self, query: str) -> GeoPoint | None:
        self.calls.append(query)
        return self.points.get(query)


class FakePostalLookup(PostalCodeLookup):
    def __init__(self, addresses: dict[str, ResolvedAddress] | None = None):
        self.addresses = addresses or {}
        self.calls: list[str] = []

    def resolve_postal_code(self, code: str) -> ResolvedAddress | None:
        self.calls.append(code)
        return self.addresses.get(code)


class FakeRouter(Router):
    def __init__(self, kilometers: float | None = None):
        self.kilometers = kilometers
        self.calls: list[tuple[GeoPoint, GeoPoint]] = []

    def route_distance(self, start: GeoPoint, end: GeoPoint) -> float | None:
        self.calls.append((start, end))
        return self.kilometers


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeGet:
    """Replacement for requests.get returning a canned response or raising."""

    def __init__(self, response: FakeResponse | Exception):
        self.response = response
        self.calls: list[dict] = []

    def __call__(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({'url': url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def fake_get(monkeypatch: pytest.MonkeyPatch):
    """Install a FakeGet built from the given response; returns the installer."""

    def install(response: FakeResponse | Exception) -> FakeGet:
        fake = FakeGet(response)
        monkeypatch.setattr(requests, 'get', fake)
        return fake

    return install


@pytest.fixture
def sao_paulo() -> GeoPoint:
    return GeoPoint(
        latitude=-23.5505,
        longitude=-46.6333,
        raw_address={'city': 'São Paulo', 'state': 'São Paulo', 'postcode': '01000-000'},
        display_name='São Paulo, Região Metropolitana de São Paulo, Brasil',
    )


@pytest.fixture
def paulista() -> GeoPoint:
    return GeoPoint(
        latitude=-23.5614,
        longitude=-46.6559,
        raw_address={'suburb': 'Bela Vista', 'city': 'São Paulo', 'state': 'São Paulo'},
        display_name='Avenida Paulista, Bela Vista, São Paulo, Brasil',
    )


@pytest.fixture
def paulista_postal_address() -> ResolvedAddress:
    return ResolvedAddress(
        postal_code='01310100',
        neighborhood='Bela Vista',
        city='São Paulo',
        region='SP',
        full_text='Avenida Paulista, Bela Vista, São Paulo, SP',
    )


@pytest.fixture
def repository() -> TripRepository:
    return TripRepository(InMemoryStore())
