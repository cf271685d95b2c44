"""
Compact trip encoding for sharing without the server.

A trip is reduced to short-keyed JSON, Brotli compressed and base64url
encoded so it fits in a link such as ``/import?d=<data>``:

    {"n": name, "c": currency,
     "p": [{"n": name, "c": weight}],
     "e": [{"d": description, "a": amount, "pb": payer, "pf": consumers,
            "i": [{"d": ..., "a": ..., "pf": [...]}]}]}
"""
import base64
import binascii
import json
import uuid

import brotli
from pydantic import ValidationError

from tripsplit.errors import ImportFailed
from tripsplit.models import CompressedSizeInfo, Expense, ExpenseItem, Person, Trip
from tripsplit.services.trips import now_ms


def compress_trip(trip: Trip) -> dict:
    expenses = []
    for e in trip.expenses:
        entry = {"d": e.description, "a": e.amount, "pb": e.payer, "pf": e.consumers}
        if e.items is not None:
            entry["i"] = [{"d": i.description, "a": i.amount, "pf": i.consumers} for i in e.items]
        expenses.append(entry)

    return {
        "n": trip.name,
        "c": trip.currency,
        "p": [{"n": p.name, "c": p.weight} for p in trip.people],
        "e": expenses,
    }


def decompress_trip(data: dict) -> dict:
    """Expand short keys; ids, timestamps are left to the caller."""
    people = [Person(name=p["n"], weight=p.get("c") or 1) for p in data["p"]]

    expenses = []
    for e in data["e"]:
        items = None
        if e.get("i") is not None:
            items = [ExpenseItem(description=i["d"], amount=i["a"], consumers=i["pf"]) for i in e["i"]]
        expenses.append(Expense(
            id=str(uuid.uuid4()),
            description=e["d"],
            amount=e["a"],
            payer=e["pb"],
            consumers=e["pf"],
            items=items,
        ))

    return {
        "name": data["n"],
        "currency": data.get("c") or "BDT",
        "people": people,
        "expenses": expenses,
    }


def create_trip_from_shared_data(data: dict, trip_id: str = None) -> Trip:
    trip = decompress_trip(data)
    now = now_ms()
    return Trip(
        id=trip_id or str(uuid.uuid4()),
        name=f"{trip['name']} (Shared)",
        currency=trip["currency"],
        people=trip["people"],
        expenses=trip["expenses"],
        created_at=now,
        updated_at=now,
    )


def _to_json_bytes(trip: Trip) -> bytes:
    return json.dumps(compress_trip(trip), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compress_trip_data(trip: Trip) -> bytes:
    return brotli.compress(_to_json_bytes(trip))


def decompress_trip_data(compressed: bytes) -> dict:
    return json.loads(brotli.decompress(compressed).decode("utf-8"))


def compress_and_measure(trip: Trip):
    raw = _to_json_bytes(trip)
    compressed = brotli.compress(raw)
    info = CompressedSizeInfo(
        original_size=len(raw),
        compressed_size=len(compressed),
        ratio=len(compressed) / len(raw) * 100 if raw else 0,
    )
    return compressed, info


def decompress_and_measure(compressed: bytes):
    raw = brotli.decompress(compressed)
    info = CompressedSizeInfo(
        original_size=len(raw),
        compressed_size=len(compressed),
        ratio=len(raw) / len(compressed) * 100 if compressed else 0,
    )
    return json.loads(raw.decode("utf-8")), info


def to_base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def from_base64url(text: str) -> bytes:
    padding = -len(text) % 4
    return base64.urlsafe_b64decode(text + "=" * padding)


def encode_trip(trip: Trip) -> str:
    return to_base64url(compress_trip_data(trip))


def decode_trip(text: str, trip_id: str = None) -> Trip:
    """Rebuild a trip from an import link payload."""
    try:
        data = decompress_trip_data(from_base64url(text))
        return create_trip_from_shared_data(data, trip_id)
    except (binascii.Error, brotli.error, ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
        print(f"❌ Failed to import trip: {e}")
        raise ImportFailed()
