import json
import random
import string
from datetime import timedelta

from pydantic import ValidationError

from tripsplit import config
from tripsplit.errors import InvalidTripData, ShareExpired, ShareNotFound
from tripsplit.models import ShareData, Trip
from tripsplit.services.trips import now_ms

SHARE_ID_LENGTH = 8


def generate_share_id(length=SHARE_ID_LENGTH):
    """Generate an 8-character alphanumeric share id."""
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


def share_url(share_id: str, base_url: str = None) -> str:
    return f"{base_url or config.FRONTEND_BASE_URL}/share/{share_id}"


class ShareStore:
    """Trip snapshots stored under short ids that expire."""

    def __init__(self, database, expiration: timedelta = None):
        self.database = database
        self.expiration = expiration or timedelta(days=config.SHARE_EXPIRATION_DAYS)

    @property
    def expiration_ms(self) -> int:
        return int(self.expiration.total_seconds() * 1000)

    def create_share(self, trip_data) -> ShareData:
        if not trip_data or not trip_data.get("id"):
            raise InvalidTripData("Invalid trip data")
        try:
            trip = Trip.model_validate(trip_data)
        except ValidationError:
            raise InvalidTripData("Invalid trip data")

        now = now_ms()
        share = ShareData(id=generate_share_id(), trip=trip, created_at=now,
                          expires_at=now + self.expiration_ms)
        self.insert_share(share)
        return share

    def get_shared_trip(self, share_id: str) -> Trip:
        row = self.fetch_share(share_id)
        if not row:
            raise ShareNotFound()

        if now_ms() > row["expires_at"]:
            self.delete_share(share_id)
            raise ShareExpired()
        return Trip.model_validate(json.loads(row["trip_data"]))

    # ------------------ STORAGE ------------------
    def insert_share(self, share: ShareData):
        with self.database.cursor() as cursor:
            cursor.execute("""
                INSERT INTO shared_trips (id, trip_data, created_at, expires_at)
                VALUES (%s, %s, %s, %s)
            """, (share.id, share.trip.model_dump_json(by_alias=True),
                  share.created_at, share.expires_at))

    def fetch_share(self, share_id: str):
        """Row with trip_data (JSON text) and expires_at, or None."""
        with self.database.cursor() as cursor:
            cursor.execute("""
                SELECT trip_data, expires_at
                FROM shared_trips
                WHERE id = %s
            """, (share_id,))
            return cursor.fetchone()

    def delete_share(self, share_id: str):
        with self.database.cursor() as cursor:
            cursor.execute("DELETE FROM shared_trips WHERE id = %s", (share_id,))

    def cleanup_expired(self) -> int:
        with self.database.cursor() as cursor:
            cursor.execute("DELETE FROM shared_trips WHERE expires_at < %s", (now_ms(),))
            return cursor.rowcount
