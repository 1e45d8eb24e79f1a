# Pure cost and duration helpers used when recording a trip.

import math
from datetime import date

from trip_structures import Expense, Trip


def estimate_fuel_cost(distance_km: float, fuel_economy_km_per_liter: float | None,
                       fuel_price_per_liter: float | None) -> float:
    """
    Estimates the fuel cost of driving `distance_km`, rounded to cents.

    A zero or missing fuel economy is replaced by 1 km/l rather than failing.
    """
    # TODO: reject a zero fuel economy once the profile form validates it.
    effective_economy = fuel_economy_km_per_liter or 1
    liters = distance_km / effective_economy
    return round(liters * (fuel_price_per_liter or 0), 2)


def trip_length_days(departure: date | None, return_date: date | None) -> int | None:
    """Inclusive number of days between two dates, or None if unknown or reversed."""
    if departure is None or return_date is None:
        return None
    diff = math.ceil((return_date - departure).total_seconds() / 86400)
    return diff + 1 if diff >= 0 else None


def total_expenses(expenses: list[Expense]) -> float:
    return round(sum(expense.value for expense in expenses), 2)


def estimated_total(trip: Trip) -> float:
    """Expenses plus fuel cost, treating an unset fuel cost as zero."""
    return round(total_expenses(trip.expenses) + (trip.fuel_cost or 0), 2)
