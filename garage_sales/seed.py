"""Seed dataset of Yellowknife garage sales.

Served as the non-live fallback when the listing store is unreachable, and
loaded into an empty database by `load_seed.py`. Sale dates are relative to
the day the dataset is built.
"""
from datetime import date, time, timedelta

from .schemas import ListingOut

SEED_SALES = [
    {
        "id": "seed-1",
        "user_id": "seed-host-1",
        "title": "Moving Sale - Everything Must Go!",
        "description": "We're moving south! Furniture, appliances, tools, winter gear.",
        "address": "50 Street, Yellowknife, NT",
        "latitude": 62.4540,
        "longitude": -114.3718,
        "days_ahead": 2,
        "start_time": time(9, 0),
        "end_time": time(17, 0),
        "tags": ["furniture", "appliances", "tools", "winter gear"],
        "items_description": "Couch, dining table, snow blower, skis",
        "cash_only": True,
        "early_birds_welcome": False,
    },
    {
        "id": "seed-2",
        "user_id": "seed-host-2",
        "title": "Multi-Family Garage Sale",
        "description": "Three families! Kids toys, clothes, household items.",
        "address": "Bretzlaff Drive, Yellowknife, NT",
        "latitude": 62.4620,
        "longitude": -114.3950,
        "location_details": "Driveway and garage",
        "days_ahead": 3,
        "start_time": time(10, 0),
        "end_time": time(16, 0),
        "tags": ["kids", "toys", "clothes", "household"],
        "items_description": "Baby gear, toys, books, kitchen items",
        "cash_only": False,
        "early_birds_welcome": True,
    },
    {
        "id": "seed-3",
        "user_id": "seed-host-3",
        "title": "Tools & Equipment Sale",
        "description": "Downsizing workshop. Power tools, hand tools, fishing gear.",
        "address": "Lessard Drive, Yellowknife, NT",
        "latitude": 62.4450,
        "longitude": -114.3600,
        "days_ahead": 5,
        "start_time": time(8, 0),
        "end_time": time(14, 0),
        "tags": ["tools", "fishing", "outdoor"],
        "items_description": "Dewalt drill set, fishing rods, canoe paddles",
        "cash_only": True,
        "early_birds_welcome": True,
    },
]


def seed_records(today=None):
    """Seed sales as plain dicts with concrete sale dates."""
    today = today or date.today()
    records = []
    for sale in SEED_SALES:
        record = {k: v for k, v in sale.items() if k != "days_ahead"}
        record["sale_date"] = today + timedelta(days=sale["days_ahead"])
        records.append(record)
    return records


def seed_listings(today=None):
    return [ListingOut(**record) for record in seed_records(today)]
