import os

# must be set before garage_sales.db builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("STORE_RETRY_DELAY", "0")
os.environ.setdefault("SCHEDULER_ENABLED", "0")

from datetime import date, time, timedelta

import pytest

from garage_sales import schemas, services
from garage_sales.db import Base, SessionLocal, engine


@pytest.fixture
def make_listing():
    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        data = {
            "id": f"sale-{counter['n']}",
            "user_id": "owner-1",
            "title": f"Garage sale {counter['n']}",
            "description": "Assorted household goods",
            "address": "Franklin Avenue, Yellowknife, NT",
            "latitude": 62.454,
            "longitude": -114.3718,
            "sale_date": date.today() + timedelta(days=1),
            "start_time": time(9, 0),
            "end_time": time(15, 0),
            "tags": ["household"],
            "cash_only": False,
            "early_birds_welcome": False,
        }
        data.update(overrides)
        return schemas.ListingOut(**data)

    return factory


@pytest.fixture
def listing_payload():
    def factory(**overrides):
        data = {
            "title": "Spring Cleaning Sale",
            "description": "Books, bikes and camping gear",
            "address": "Range Lake Road, Yellowknife, NT",
            "latitude": 62.4460,
            "longitude": -114.4010,
            "sale_date": date.today() + timedelta(days=2),
            "start_time": time(9, 0),
            "end_time": time(14, 0),
            "tags": ["books", "bikes", "camping"],
            "cash_only": True,
            "early_birds_welcome": False,
        }
        data.update(overrides)
        return data

    return factory


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    services.reset_snapshot()
