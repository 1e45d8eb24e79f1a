# Defines the standardized, internal data structures for the trip planner.

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class TransportMode(str, Enum):
    """How the traveller gets to the destination."""
    VEHICLE = "vehicle"
    TICKET = "ticket"


class ResolutionError(str, Enum):
    """Why a distance calculation came back without a full result."""
    POSTAL_CODE_UNRESOLVED = "postal_code_unresolved"
    ADDRESS_UNRESOLVED = "address_unresolved"
    ROUTE_UNAVAILABLE = "route_unavailable"


@dataclass
class ResolvedAddress:
    """A display-ready summary of where a trip endpoint actually is."""
    postal_code: str | None = None
    neighborhood: str = ""
    city: str = ""
    region: str = ""
    full_text: str = ""

    @property
    def short_text(self) -> str:
        return ", ".join(part for part in (self.neighborhood, self.city, self.region) if part)

    def to_dict(self) -> dict:
        return {
            'postal_code': self.postal_code,
            'neighborhood': self.neighborhood,
            'city': self.city,
            'region': self.region,
            'full_text': self.full_text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResolvedAddress":
        return cls(
            postal_code=data.get('postal_code'),
            neighborhood=data.get('neighborhood') or "",
            city=data.get('city') or "",
            region=data.get('region') or "",
            full_text=data.get('full_text') or "",
        )


@dataclass
class GeoPoint:
    """A standardized representation of a geocoded place."""
    latitude: float
    longitude: float
    raw_address: dict = field(default_factory=dict)
    display_name: str = ""

    def in_range(self) -> bool:
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180


@dataclass(frozen=True)
class DistanceResult:
    """The outcome of one distance calculation between two free-text locations."""
    kilometers: float | None = None
    origin_resolved: ResolvedAddress | None = None
    destination_resolved: ResolvedAddress | None = None
    error: ResolutionError | None = None

    @property
    def succeeded(self) -> bool:
        """True when both endpoints were identified, even if no route was found."""
        return self.origin_resolved is not None and self.destination_resolved is not None


@dataclass
class Expense:
    """A single ad-hoc cost attached to a trip."""
    name: str
    value: float

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Expense '{self.name}' cannot be negative: {self.value}")


@dataclass
class UserProfile:
    """The fuel figures used for every vehicle trip estimate."""
    fuel_economy_km_per_liter: float
    fuel_price_per_liter: float
    tank_capacity_liters: float | None = None

    def to_dict(self) -> dict:
        return {
            'fuel_economy_km_per_liter': self.fuel_economy_km_per_liter,
            'fuel_price_per_liter': self.fuel_price_per_liter,
            'tank_capacity_liters': self.tank_capacity_liters,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        return cls(
            fuel_economy_km_per_liter=float(data['fuel_economy_km_per_liter']),
            fuel_price_per_liter=float(data['fuel_price_per_liter']),
            tank_capacity_liters=data.get('tank_capacity_liters'),
        )


@dataclass
class Trip:
    """
    A recorded trip. Only `destination` is required; everything the distance
    pipeline produces (distance, fuel cost, resolved addresses) stays None
    until a calculation succeeds.
    """
    destination: str
    origin: str = ""
    photo_url: str = ""
    transport_mode: TransportMode = TransportMode.VEHICLE
    destination_postal_code: str | None = None
    expenses: list[Expense] = field(default_factory=list)
    departure_date: date | None = None
    return_date: date | None = None
    trip_length_days: int | None = None
    distance_km: float | None = None
    fuel_cost: float | None = None
    resolved_origin: ResolvedAddress | None = None
    resolved_destination: ResolvedAddress | None = None
    completed: bool | None = None
    id: int | None = None

    def __post_init__(self):
        # Raises ValueError for anything other than the two known modes.
        self.transport_mode = TransportMode(self.transport_mode)

    def to_dict(self) -> dict:
        resolved = None
        if self.resolved_origin or self.resolved_destination:
            resolved = {
                'origin': self.resolved_origin.to_dict() if self.resolved_origin else None,
                'destination': self.resolved_destination.to_dict() if self.resolved_destination else None,
            }
        return {
            'id': self.id,
            'destination': self.destination,
            'origin': self.origin,
            'photo_url': self.photo_url,
            'transport_mode': self.transport_mode.value,
            'destination_postal_code': self.destination_postal_code,
            'expenses': [{'name': e.name, 'value': e.value} for e in self.expenses],
            'departure_date': self.departure_date.isoformat() if self.departure_date else None,
            'return_date': self.return_date.isoformat() if self.return_date else None,
            'trip_length_days': self.trip_length_days,
            'distance_km': self.distance_km,
            'fuel_cost': self.fuel_cost,
            'resolved': resolved,
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Trip":
        resolved = data.get('resolved') or {}
        origin = resolved.get('origin')
        destination = resolved.get('destination')
        departure = data.get('departure_date')
        return_ = data.get('return_date')
        if not isinstance(data['destination'], str):
            raise ValueError(f"Trip destination must be text, got {data['destination']!r}")
        origin_text = data.get('origin') or ""
        if not isinstance(origin_text, str):
            raise ValueError(f"Trip origin must be text, got {origin_text!r}")
        return cls(
            id=data.get('id'),
            destination=data['destination'],
            origin=origin_text,
            photo_url=data.get('photo_url') or "",
            transport_mode=data.get('transport_mode', TransportMode.VEHICLE.value),
            destination_postal_code=data.get('destination_postal_code'),
            expenses=[Expense(name=e['name'], value=float(e['value'])) for e in data.get('expenses') or []],
            departure_date=date.fromisoformat(departure) if departure else None,
            return_date=date.fromisoformat(return_) if return_ else None,
            trip_length_days=data.get('trip_length_days'),
            distance_km=data.get('distance_km'),
            fuel_cost=data.get('fuel_cost'),
            resolved_origin=ResolvedAddress.from_dict(origin) if origin else None,
            resolved_destination=ResolvedAddress.from_dict(destination) if destination else None,
            completed=data.get('completed'),
        )
