from tripsplit.services import compression


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_calculate_is_stateless(client):
    res = client.post("/calculate", json={
        "people": [{"name": "Couple", "weight": 2}, {"name": "Single"}],
        "expenses": [{
            "id": "1", "description": "Hotel", "amount": 300,
            "payer": "Single", "consumers": ["Couple", "Single"],
        }],
    })

    assert res.status_code == 200
    assert res.json() == {
        "totalCost": 300,
        "individualCosts": [{"person": "Couple", "cost": 200}, {"person": "Single", "cost": 100}],
        "transactions": [{"from": "Couple", "to": "Single", "amount": 200}],
    }


def test_trip_lifecycle(client):
    trip = client.post("/add_trip", json={"name": "Sajek", "currency": "USD"}).json()["trip"]
    trip_id = trip["id"]
    assert trip["people"] == [] and "createdAt" in trip

    client.post(f"/add_person/{trip_id}", json={"name": "Alice"})
    client.post(f"/add_person/{trip_id}", json={"name": "Bob"})
    res = client.post(f"/add_expense/{trip_id}", json={
        "description": "Jeep", "amount": 100, "payer": "Alice", "consumers": ["Alice", "Bob"],
    })
    assert res.status_code == 200

    settlement = client.get(f"/settlement/{trip_id}").json()
    assert settlement["transactions"] == [{"from": "Bob", "to": "Alice", "amount": 50}]

    expense_id = res.json()["trip"]["expenses"][0]["id"]
    client.delete(f"/delete_expense/{trip_id}/{expense_id}")
    assert client.get(f"/settlement/{trip_id}").json()["transactions"] == []

    assert client.delete(f"/delete_trip/{trip_id}").status_code == 200
    assert client.get(f"/trip/{trip_id}").status_code == 404


def test_trips_listing(client, sample_trip):
    trips = client.get("/trips").json()["trips"]
    assert [t["id"] for t in trips] == [sample_trip.id]


def test_invalid_person_is_rejected(client, sample_trip):
    res = client.post(f"/add_person/{sample_trip.id}", json={"name": "Alice"})
    assert res.status_code == 400
    assert res.json()["detail"] == "A person with this name already exists"


def test_invalid_expense_is_rejected(client, sample_trip):
    res = client.post(f"/add_expense/{sample_trip.id}", json={
        "description": "Boat", "amount": 50, "payer": "Alice", "consumers": ["Alice"],
        "items": [{"description": "Fare", "amount": 20, "consumers": ["Alice"]}],
    })
    assert res.status_code == 400
    assert "doesn't match" in res.json()["detail"]


def test_missing_trip(client):
    assert client.get("/settlement/nope").status_code == 404
    assert client.delete("/delete_trip/nope").status_code == 404


def test_rename_person_via_api(client, sample_trip):
    res = client.put(f"/update_person/{sample_trip.id}/2", json={"name": "Charles"})
    trip = res.json()["trip"]
    assert trip["people"][2]["name"] == "Charles"
    assert trip["expenses"][0]["items"][2]["consumers"] == ["Charles"]


def test_report_download(client, sample_trip):
    res = client.get(f"/report/{sample_trip.id}")
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")


def test_export_then_import(client, sample_trip):
    exported = client.get(f"/export/{sample_trip.id}").json()
    assert exported["url"].endswith(f"/import?d={exported['d']}")
    assert exported["info"]["compressedSize"] > 0

    imported = client.post("/import", json={"d": exported["d"]}).json()["trip"]
    assert imported["name"] == "Kaptai (Shared)"
    assert imported["id"] != sample_trip.id
    assert client.get(f"/trip/{imported['id']}").status_code == 200


def test_import_garbage(client):
    res = client.post("/import", json={"d": compression.to_base64url(b"nope")})
    assert res.status_code == 400
    assert res.json()["detail"] == "Failed to import trip data"


def test_share_round_trip(client, sample_trip):
    payload = {"trip": sample_trip.model_dump(by_alias=True)}
    created = client.post("/api/share", json=payload).json()
    assert len(created["id"]) == 8
    assert created["url"].endswith(f"/share/{created['id']}")

    fetched = client.get(f"/api/share/{created['id']}").json()["trip"]
    assert fetched["id"] == sample_trip.id
    assert fetched["people"][0]["name"] == "Alice"


def test_share_requires_trip_id(client):
    res = client.post("/api/share", json={"trip": {"name": "No id"}})
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid trip data"


def test_expired_share(client, share_store, sample_trip):
    share = share_store.create_share(sample_trip.model_dump(by_alias=True))
    share_store.rows[share.id]["expires_at"] = 0

    res = client.get(f"/api/share/{share.id}")
    assert res.status_code == 404
    assert res.json()["detail"] == "This share link has expired"
    assert client.get(f"/api/share/{share.id}").json()["detail"] == "Share not found"


def test_calculate_huge_amount(client):
    res = client.post("/calculate", json={
        "people": [{"name": "A"}, {"name": "B"}],
        "expenses": [{"id": "1", "description": "Yacht", "amount": 1e307, "payer": "A", "consumers": ["A", "B"]}],
    })

    assert res.status_code == 200
    assert res.json()["transactions"] == [{"from": "B", "to": "A", "amount": 1e307 / 2}]


def test_cleanup_removes_only_expired_shares(client, share_store, sample_trip):
    fresh = share_store.create_share(sample_trip.model_dump(by_alias=True))
    stale = share_store.create_share(sample_trip.model_dump(by_alias=True))
    share_store.rows[stale.id]["expires_at"] = 0

    assert share_store.cleanup_expired() == 1
    assert client.get(f"/api/share/{fresh.id}").status_code == 200
    assert client.get(f"/api/share/{stale.id}").json()["detail"] == "Share not found"
