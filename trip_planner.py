# Main script to record trips and estimate their road distance and fuel cost.

import argparse
import logging
import os
import sys
from datetime import date

from dotenv import load_dotenv

from api_adapters import NominatimAdapter, OsrmAdapter, ViaCepAdapter
from distance_resolver import DistanceResolutionEngine
from trip_costs import estimate_fuel_cost, estimated_total, total_expenses, trip_length_days
from trip_repository import JsonFileStore, TripRepository
from trip_structures import Expense, ResolutionError, TransportMode, Trip, UserProfile

logger = logging.getLogger(__name__)

GUIDANCE_MESSAGES = {
    ResolutionError.POSTAL_CODE_UNRESOLVED:
        "Postal code not found. Check it or enter the address instead.",
    ResolutionError.ADDRESS_UNRESOLVED:
        "Could not locate origin/destination. Try entering only the city.",
    ResolutionError.ROUTE_UNAVAILABLE:
        "Could not compute a road route. Check the address/postal code and try again.",
}
NO_PROFILE_MESSAGE = "No fuel profile saved yet. Fuel cost was not estimated."

DEFAULT_FUEL_ECONOMY = 10.0
DEFAULT_FUEL_PRICE = 5.50


# --- Core Logic ---

def plan_trip(trip: Trip, engine: DistanceResolutionEngine,
              repository: TripRepository) -> tuple[Trip, str | None]:
    """
    Fills in the derived fields of a trip and saves it.

    Vehicle trips get a distance and fuel cost when the stored profile and
    the external services allow it. The trip is saved whatever happens; the
    second element of the returned tuple is a message for the user when
    something could not be calculated.
    """
    trip.trip_length_days = trip_length_days(trip.departure_date, trip.return_date)
    # Results of an earlier plan never carry over to this one.
    trip.distance_km = None
    trip.fuel_cost = None
    trip.resolved_origin = None
    trip.resolved_destination = None
    message = None

    if trip.transport_mode == TransportMode.VEHICLE:
        profile = repository.get_profile()
        if profile is None:
            message = NO_PROFILE_MESSAGE
        else:
            # A destination postal code pins the route more precisely than the title.
            destination_query = trip.destination_postal_code or trip.destination
            result = engine.resolve_distance(trip.origin, destination_query)
            if result.succeeded:
                trip.resolved_origin = result.origin_resolved
                trip.resolved_destination = result.destination_resolved
            if result.kilometers is not None:
                trip.distance_km = result.kilometers
                trip.fuel_cost = estimate_fuel_cost(
                    result.kilometers,
                    profile.fuel_economy_km_per_liter,
                    profile.fuel_price_per_liter,
                )
            if result.error is not None:
                message = GUIDANCE_MESSAGES[result.error]
                logger.info("Trip to '%s' has no fuel estimate: %s", trip.destination, result.error.value)

    return repository.upsert_trip(trip), message


def build_engine() -> DistanceResolutionEngine:
    return DistanceResolutionEngine(
        geocoder=NominatimAdapter(),
        postal_lookup=ViaCepAdapter(),
        router=OsrmAdapter(),
    )


def format_trip(trip: Trip) -> str:
    """Formats one trip as a few readable lines."""
    mode = "Own vehicle" if trip.transport_mode == TransportMode.VEHICLE else "Ticket"
    lines = [f"[{trip.id}] {trip.origin or '?'} -> {trip.destination} ({mode})"]
    if trip.resolved_origin:
        lines.append(f"    From: {trip.resolved_origin.full_text}")
    if trip.resolved_destination:
        lines.append(f"    To:   {trip.resolved_destination.full_text}")
        if trip.resolved_destination.postal_code:
            lines.append(f"    Postal code: {trip.resolved_destination.postal_code}"
                         f" ({trip.resolved_destination.short_text})")
    if trip.departure_date:
        days = f" ({trip.trip_length_days} days)" if trip.trip_length_days else ""
        lines.append(f"    Dates: {trip.departure_date} to {trip.return_date or '?'}{days}")
    if trip.distance_km is not None:
        lines.append(f"    Distance: {trip.distance_km:.1f} km, fuel: {trip.fuel_cost or 0:.2f}")
    if trip.expenses:
        lines.append(f"    Expenses: {total_expenses(trip.expenses):.2f} ({len(trip.expenses)} items)")
    lines.append(f"    Estimated total: {estimated_total(trip):.2f}"
                 + ("  [completed]" if trip.completed else ""))
    return "\n".join(lines)


def display_trips(trips: list[Trip]):
    if not trips:
        print("\nNo trips found.")
        return
    print()
    for trip in trips:
        print(format_trip(trip))


# --- Interactive prompts ---

def ask_float(prompt: str, default: float | None = None, minimum: float = 0) -> float | None:
    while True:
        raw = input(prompt).strip()
        if not raw:
            return default
        try:
            value = float(raw.replace(",", "."))
        except ValueError:
            print("Invalid input. Please enter a number.")
            continue
        if value < minimum:
            print("Please enter a positive number.")
            continue
        return value


def ask_text(prompt: str, current: str | None = None) -> str | None:
    """Empty input keeps `current`; a single '-' clears it."""
    hint = f" [{current}]" if current else ""
    raw = input(f"{prompt}{hint}: ").strip()
    if raw == "-":
        return None
    return raw or current


def ask_date(prompt: str, current: date | None = None) -> date | None:
    while True:
        raw = ask_text(prompt, current.isoformat() if current else None)
        if not raw:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            print("Invalid date. Please use YYYY-MM-DD.")


def ask_expenses(current: list[Expense] | None = None) -> list[Expense]:
    if current:
        answer = input(f"Replace the {len(current)} current expenses? [y/N]: ").strip().lower()
        if answer != "y":
            return list(current)
    expenses = []
    print("Enter expenses (leave the name empty to finish).")
    while True:
        name = input("  Expense name: ").strip()
        if not name:
            return expenses
        value = ask_float("  Value [0.00]: ", default=0.0)
        expenses.append(Expense(name=name, value=value))


def prompt_trip(current: Trip | None = None) -> Trip:
    """Asks for every trip field, offering the values of `current` as defaults."""
    current = current or Trip(destination="")
    destination = ""
    while not destination:
        destination = ask_text("Destination", current.destination) or ""
    origin = ask_text("Origin (address, city or postal code)", current.origin) or ""
    default_mode = "2" if current.transport_mode == TransportMode.TICKET else "1"
    mode = input(f"Transport: 1. Own vehicle  2. Ticket [{default_mode}]: ").strip() or default_mode
    transport = TransportMode.TICKET if mode == "2" else TransportMode.VEHICLE
    postal_code = None
    if transport == TransportMode.VEHICLE:
        postal_code = ask_text("Destination postal code (optional)", current.destination_postal_code)
    return Trip(
        id=current.id,
        destination=destination,
        origin=origin,
        photo_url=ask_text("Photo URL (optional)", current.photo_url) or "",
        transport_mode=transport,
        destination_postal_code=postal_code,
        departure_date=ask_date("Departure date (YYYY-MM-DD, optional)", current.departure_date),
        return_date=ask_date("Return date (YYYY-MM-DD, optional)", current.return_date),
        expenses=ask_expenses(current.expenses),
        completed=current.completed,
    )


def prompt_profile(current: UserProfile | None) -> UserProfile:
    economy = current.fuel_economy_km_per_liter if current else DEFAULT_FUEL_ECONOMY
    price = current.fuel_price_per_liter if current else DEFAULT_FUEL_PRICE
    tank = current.tank_capacity_liters if current else None
    return UserProfile(
        fuel_economy_km_per_liter=ask_float(f"Fuel economy in km/l [{economy}]: ", default=economy),
        fuel_price_per_liter=ask_float(f"Fuel price per liter [{price:.2f}]: ", default=price),
        tank_capacity_liters=ask_float(f"Tank capacity in liters [{tank or '-'}]: ", default=tank),
    )


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Trip Cost Planner: record trips and estimate fuel costs.")
    parser.add_argument('command', choices=['plan', 'edit', 'list', 'delete', 'complete', 'profile'],
                        help="What to do.")
    parser.add_argument('query', nargs='?', default="",
                        help="Search text for 'list', or a trip id for 'edit'/'delete'/'complete'.")
    parser.add_argument('--store', default=os.getenv("TRIPS_FILE", "trips.json"),
                        help="JSON file holding trips and the user profile.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="   > %(levelname)s %(name)s: %(message)s",
    )
    repository = TripRepository(JsonFileStore(args.store))

    if args.command == 'list':
        display_trips(repository.search(args.query))
        return 0

    current = None
    if args.command in ('edit', 'delete', 'complete'):
        try:
            trip_id = int(args.query)
        except ValueError:
            print("Please give the numeric id of the trip.")
            return 1
        if args.command == 'edit':
            current = repository.get_trip(trip_id)
            if current is None:
                print(f"No trip with id {trip_id}.")
                return 1

    if args.command in ('delete', 'complete'):
        if args.command == 'delete':
            found = repository.delete_trip(trip_id)
        else:
            found = repository.set_completed(trip_id, True) is not None
        print("Done." if found else f"No trip with id {trip_id}.")
        return 0 if found else 1

    if args.command == 'profile':
        profile = prompt_profile(repository.get_profile())
        repository.set_profile(profile)
        print("User profile saved.")
        return 0

    try:
        engine = build_engine()
    except ValueError as e:
        print(e)
        return 1

    trip = prompt_trip(current)
    if trip.transport_mode == TransportMode.VEHICLE:
        print("\nCalculating distance. This may take a few moments...")
    saved, message = plan_trip(trip, engine, repository)
    if message:
        print(f"\n! {message} The trip was saved anyway.")
    print("\nTrip saved.")
    print(format_trip(saved))
    return 0


if __name__ == '__main__':
    sys.exit(main())
