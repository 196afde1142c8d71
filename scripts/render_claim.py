#!/usr/bin/env python3
"""
Render a Reisekostenabrechnung PDF from a YAML trip description.

Usage:
    python scripts/render_claim.py trip.yaml [--logo logo.png]
        [--output-dir out/] [--verbose]

Trip file layout:

    traveler_name: Erika Mustermann
    purpose: Kundentermin
    destination: Paris
    country: France|Paris          # rate key, falls back to Germany
    departure: {date: 2026-03-10, time: "07:30"}
    arrival:   {date: 2026-03-12, time: "21:15"}
    is_expat: false
    transport: {mode: car, route: Köln - Paris, kilometers: 500}
    meals:                         # one entry per trip day, in order
      - {breakfast: false, lunch: true, dinner: false}
    other_expenses:
      - {id: "1", description: Hotel, amount: "240.00", receipt: hotel.pdf}

Exit codes: 0 written, 1 trip incomplete or dates out of order.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

import yaml

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from travel_kernel.logging_config import configure_logging
from travel_modules.expense.models import (
    DayMeals,
    OtherExpense,
    TransportInfo,
    TransportMode,
    TravelInfo,
)
from travel_modules.expense.service import ExpenseClaimService


def _parse_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _endpoint(data: dict[str, Any], key: str, default_time: str) -> tuple[date | None, str]:
    block = data.get(key) or {}
    return _parse_date(block.get("date")), str(block.get("time") or default_time)


def load_trip(
    data: dict[str, Any],
) -> tuple[TravelInfo, TransportInfo | None, list[DayMeals], list[OtherExpense]]:
    """Turn a parsed trip document into the engine's value objects."""
    departure_date, departure_time = _endpoint(data, "departure", "00:00")
    arrival_date, arrival_time = _endpoint(data, "arrival", "23:59")
    travel_info = TravelInfo(
        traveler_name=str(data.get("traveler_name", "")),
        purpose=str(data.get("purpose", "")),
        destination=str(data.get("destination", "")),
        country=str(data.get("country", "")),
        departure_date=departure_date,
        departure_time=departure_time,
        arrival_date=arrival_date,
        arrival_time=arrival_time,
        is_expat=bool(data.get("is_expat", False)),
    )

    transport_info = None
    transport = data.get("transport")
    if transport:
        transport_info = TransportInfo(
            mode=TransportMode(transport.get("mode", "car")),
            route=transport.get("route"),
            kilometers=transport.get("kilometers"),
            other_costs=transport.get("other_costs"),
        )

    day_meals = [
        DayMeals(
            breakfast=bool(meal.get("breakfast", False)),
            lunch=bool(meal.get("lunch", False)),
            dinner=bool(meal.get("dinner", False)),
        )
        for meal in data.get("meals") or []
    ]

    other_expenses = [
        OtherExpense(
            expense_id=str(item.get("id", index)),
            description=str(item.get("description", "")),
            amount=item.get("amount"),
            receipt_file_name=item.get("receipt"),
        )
        for index, item in enumerate(data.get("other_expenses") or [], start=1)
    ]
    return travel_info, transport_info, day_meals, other_expenses


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render a German travel expense claim as PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("trip", type=Path, help="YAML trip description.")
    parser.add_argument("--logo", type=Path, help="Company logo image (PNG/JPEG).")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the PDF (default: current directory).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    with open(args.trip, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    travel_info, transport_info, day_meals, other_expenses = load_trip(data)

    service = ExpenseClaimService()
    calculation = service.calculate(travel_info, transport_info, day_meals, other_expenses)
    if calculation is None:
        print("Error: trip dates are missing or out of order.", file=sys.stderr)
        return 1

    logo = args.logo.read_bytes() if args.logo else None
    path = service.export(
        calculation,
        travel_info,
        transport_info,
        other_expenses,
        logo=logo,
        output_dir=args.output_dir,
    )
    print(f"Gesamtbetrag: {calculation.total_amount} {calculation.currency}")
    print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
