# Persists trips and the user profile in a simple key-value store.

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod

from trip_structures import Expense, Trip, UserProfile

logger = logging.getLogger(__name__)

TRIPS_KEY = "pv_trips_local"
PROFILE_KEY = "pv_user_local"


class KeyValueStore(ABC):
    """Blueprint for the local storage the repository writes through."""
    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class InMemoryStore(KeyValueStore):
    """Keeps everything in a dict; used by tests and throwaway sessions."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """Keeps every key in a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read store %s, treating it as empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        # Swap in a complete file so a crash mid-write leaves the old one intact.
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(prefix=".trips-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise


class TripRepository:
    """
    Trip collection and user profile on top of a KeyValueStore.

    Every write reads the whole trip list, changes it and writes it back, so
    the last writer wins.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def list_trips(self) -> list[Trip]:
        raw = self.store.get(TRIPS_KEY)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except ValueError:
            logger.warning("Stored trips are not valid JSON, ignoring them")
            return []
        if not isinstance(records, list):
            return []

        trips = []
        for record in records:
            try:
                trips.append(Trip.from_dict(record))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed trip record %r: %s", record, e)
        return trips

    def get_trip(self, trip_id: int) -> Trip | None:
        for trip in self.list_trips():
            if trip.id == trip_id:
                return trip
        return None

    def search(self, text: str = "") -> list[Trip]:
        """Trips whose destination or origin contains `text`, ignoring case."""
        needle = text.strip().lower()
        trips = self.list_trips()
        if not needle:
            return trips
        return [t for t in trips if needle in t.destination.lower() or needle in t.origin.lower()]

    def upsert_trip(self, trip: Trip) -> Trip:
        """Replaces the trip with the same id, or appends it with a new id."""
        trips = self.list_trips()
        if trip.id is None:
            trip.id = self._new_id(trips)
            trips.append(trip)
        else:
            for index, existing in enumerate(trips):
                if existing.id == trip.id:
                    trips[index] = trip
                    break
            else:
                trips.append(trip)
        self._write(trips)
        logger.info("Saved trip %s to '%s'", trip.id, trip.destination)
        return trip

    def delete_trip(self, trip_id: int) -> bool:
        trips = self.list_trips()
        remaining = [t for t in trips if t.id != trip_id]
        self._write(remaining)
        return len(remaining) != len(trips)

    def record_expenses(self, trip_id: int, items: list[Expense]) -> Trip | None:
        trip = self.get_trip(trip_id)
        if trip is None:
            return None
        trip.expenses = list(items)
        return self.upsert_trip(trip)

    def set_completed(self, trip_id: int, completed: bool) -> Trip | None:
        trip = self.get_trip(trip_id)
        if trip is None:
            return None
        trip.completed = completed
        return self.upsert_trip(trip)

    def get_profile(self) -> UserProfile | None:
        raw = self.store.get(PROFILE_KEY)
        if not raw:
            return None
        try:
            return UserProfile.from_dict(json.loads(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Stored user profile is malformed, ignoring it: %s", e)
            return None

    def set_profile(self, profile: UserProfile) -> None:
        self.store.set(PROFILE_KEY, json.dumps(profile.to_dict()))

    def _write(self, trips: list[Trip]) -> None:
        self.store.set(TRIPS_KEY, json.dumps([t.to_dict() for t in trips], ensure_ascii=False))

    @staticmethod
    def _new_id(trips: list[Trip]) -> int:
        # Creation timestamp in milliseconds, bumped past any id already taken.
        new_id = int(time.time() * 1000)
        taken = {t.id for t in trips}
        while new_id in taken:
            new_id += 1
        return new_id
