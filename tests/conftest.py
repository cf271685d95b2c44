from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tripsplit.main import create_app
from tripsplit.models import Expense, ExpenseItem, Person
from tripsplit.services.share import ShareStore
from tripsplit.services.trips import TripStore, now_ms


class InMemoryTripStore(TripStore):
    """TripStore with the SQL swapped for a dict."""

    def __init__(self):
        super().__init__(database=None)
        self.trips = {}

    def get_all_trips(self):
        return sorted(self.trips.values(), key=lambda t: t.updated_at, reverse=True)

    def get_trip(self, trip_id):
        return self.trips.get(trip_id)

    def get_trip_by_name(self, name):
        return next((t for t in self.get_all_trips() if t.name == name), None)

    def save_trip(self, trip):
        trip = trip.model_copy(update={"updated_at": now_ms()})
        self.trips[trip.id] = trip
        return trip

    def delete_trip(self, trip_id):
        return self.trips.pop(trip_id, None) is not None


class InMemoryShareStore(ShareStore):
    """ShareStore with the shared_trips table swapped for a dict of rows."""

    def __init__(self):
        super().__init__(database=None)
        self.rows = {}

    def insert_share(self, share):
        self.rows[share.id] = {
            "trip_data": share.trip.model_dump_json(by_alias=True),
            "expires_at": share.expires_at,
        }

    def fetch_share(self, share_id):
        return self.rows.get(share_id)

    def delete_share(self, share_id):
        self.rows.pop(share_id, None)

    def cleanup_expired(self):
        expired = [k for k, row in self.rows.items() if row["expires_at"] < now_ms()]
        for k in expired:
            del self.rows[k]
        return len(expired)


@pytest.fixture
def mock_db():
    """A Database double whose cursor() context yields a MagicMock cursor."""
    db = MagicMock()
    cursor = MagicMock()
    db.cursor.return_value.__enter__.return_value = cursor
    return db, cursor


@pytest.fixture
def trip_store():
    return InMemoryTripStore()


@pytest.fixture
def share_store():
    return InMemoryShareStore()


@pytest.fixture
def client(trip_store, share_store):
    app = create_app(trip_store=trip_store, share_store=share_store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def three_friends():
    return [Person(name="Alice"), Person(name="Bob"), Person(name="Charlie")]


@pytest.fixture
def restaurant_bill():
    """Alice pays 100 for three separately ordered dishes."""
    return Expense(
        id="1",
        description="Restaurant",
        payer="Alice",
        amount=100,
        consumers=["Alice", "Bob", "Charlie"],
        items=[
            ExpenseItem(description="Steak", amount=50, consumers=["Alice"]),
            ExpenseItem(description="Salad", amount=20, consumers=["Bob"]),
            ExpenseItem(description="Pizza", amount=30, consumers=["Charlie"]),
        ],
    )


@pytest.fixture
def sample_trip(trip_store, three_friends, restaurant_bill):
    trip = trip_store.create_trip("Kaptai", "BDT")
    return trip_store.save_trip(trip.model_copy(update={
        "people": three_friends,
        "expenses": [restaurant_bill],
    }))
