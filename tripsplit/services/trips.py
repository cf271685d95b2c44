import time
import uuid
from typing import List, Optional

from psycopg2.extras import Json

from tripsplit.errors import TripNotFound
from tripsplit.models import Trip


def now_ms() -> int:
    return int(time.time() * 1000)


def row_to_trip(row) -> Trip:
    return Trip(
        id=row["id"],
        name=row["name"],
        currency=row["currency"],
        people=row["people"] or [],
        expenses=row["expenses"] or [],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class TripStore:
    """Trips persisted in PostgreSQL, one row per trip."""

    def __init__(self, database):
        self.database = database

    def create_trip(self, name: str, currency: str = "BDT") -> Trip:
        now = now_ms()
        trip = Trip(
            id=str(uuid.uuid4()),
            name=name,
            currency=currency,
            people=[],
            expenses=[],
            created_at=now,
            updated_at=now,
        )
        return self.save_trip(trip)

    def get_all_trips(self) -> List[Trip]:
        with self.database.cursor() as cursor:
            cursor.execute("""
                SELECT id, name, currency, people, expenses, created_at, updated_at
                FROM trips
                ORDER BY updated_at DESC
            """)
            rows = cursor.fetchall()
        return [row_to_trip(r) for r in rows]

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        with self.database.cursor() as cursor:
            cursor.execute("""
                SELECT id, name, currency, people, expenses, created_at, updated_at
                FROM trips
                WHERE id = %s
            """, (trip_id,))
            row = cursor.fetchone()
        return row_to_trip(row) if row else None

    def require_trip(self, trip_id: str) -> Trip:
        trip = self.get_trip(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    def get_trip_by_name(self, name: str) -> Optional[Trip]:
        with self.database.cursor() as cursor:
            cursor.execute("""
                SELECT id, name, currency, people, expenses, created_at, updated_at
                FROM trips
                WHERE name = %s
                ORDER BY updated_at DESC
                LIMIT 1
            """, (name,))
            row = cursor.fetchone()
        return row_to_trip(row) if row else None

    def trip_exists_with_name(self, name: str) -> bool:
        """True for an exact match, its "(Shared)" copy, or any "name (...)" variant."""
        return any(
            t.name == name or t.name == f"{name} (Shared)" or t.name.startswith(f"{name} (")
            for t in self.get_all_trips()
        )

    def save_trip(self, trip: Trip) -> Trip:
        """Insert or overwrite the trip, stamping updated_at."""
        trip = trip.model_copy(update={"updated_at": now_ms()})
        with self.database.cursor() as cursor:
            cursor.execute("""
                INSERT INTO trips (id, name, currency, people, expenses, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE
                SET name = EXCLUDED.name,
                    currency = EXCLUDED.currency,
                    people = EXCLUDED.people,
                    expenses = EXCLUDED.expenses,
                    updated_at = EXCLUDED.updated_at
            """, (
                trip.id,
                trip.name,
                trip.currency,
                Json([p.model_dump() for p in trip.people]),
                Json([e.model_dump() for e in trip.expenses]),
                trip.created_at,
                trip.updated_at,
            ))
        return trip

    def import_trip(self, trip: Trip) -> Trip:
        # Overwrites any trip with the same id
        return self.save_trip(trip)

    def delete_trip(self, trip_id: str) -> bool:
        with self.database.cursor() as cursor:
            cursor.execute("DELETE FROM trips WHERE id = %s", (trip_id,))
            return cursor.rowcount > 0
