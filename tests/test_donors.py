from errors import StoreError


def test_create_donor_returns_record_with_id(client, donor_payload):
    resp = client.post("/api/donors", json=donor_payload)
    assert resp.status_code == 201
    data = resp.get_json()
    assert data["success"] is True
    donor = data["donor"]
    assert donor["_id"]
    assert donor["createdAt"].endswith("Z")
    assert donor["lastDonation"] is None
    assert donor["name"] == "Rahul Sharma"


def test_created_donor_appears_in_list(client, create_donor):
    donor = create_donor()

    resp = client.get("/api/donors")
    assert resp.status_code == 200
    listed = resp.get_json()
    assert [d["_id"] for d in listed] == [donor["_id"]]
    assert listed[0]["createdAt"] == donor["createdAt"]


def test_create_donor_missing_blood_type_is_rejected(client, donor_payload, store):
    payload = dict(donor_payload)
    del payload["bloodType"]

    resp = client.post("/api/donors", json=payload)
    assert resp.status_code == 400
    data = resp.get_json()
    assert data["success"] is False
    assert "bloodType" in data["message"]
    assert store.find_all("donors") == []


def test_create_donor_empty_required_field_is_rejected(client, donor_payload):
    resp = client.post("/api/donors", json={**donor_payload, "email": ""})
    assert resp.status_code == 400
    assert "email" in resp.get_json()["message"]


def test_create_donor_without_body_lists_every_missing_field(client):
    resp = client.post("/api/donors")
    assert resp.status_code == 400
    message = resp.get_json()["message"]
    assert message.startswith("Donor validation failed")
    for field in ("name", "bloodType", "phone", "email", "address"):
        assert field in message


def test_create_donor_malformed_json_is_rejected(client):
    resp = client.post("/api/donors", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_client_supplied_created_at_and_unknown_fields_are_ignored(client, donor_payload):
    resp = client.post(
        "/api/donors",
        json={**donor_payload, "createdAt": "1999-01-01", "favouriteColour": "red"},
    )
    donor = resp.get_json()["donor"]
    assert not donor["createdAt"].startswith("1999")
    assert "favouriteColour" not in donor


def test_list_donors_newest_first(client, store):
    for name, created in [("old", "2024-01-01T00:00:00.000Z"),
                          ("newest", "2024-03-01T00:00:00.000Z"),
                          ("middle", "2024-02-01T00:00:00.000Z")]:
        store.insert("donors", {"name": name, "createdAt": created})

    names = [d["name"] for d in client.get("/api/donors").get_json()]
    assert names == ["newest", "middle", "old"]


def test_delete_donor(client, create_donor, store):
    donor = create_donor()

    resp = client.delete(f"/api/donors/{donor['_id']}")
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "message": "Donor deleted successfully"}
    assert store.find_all("donors") == []


def test_delete_missing_donor_returns_404(client, create_donor, store):
    create_donor()

    resp = client.delete("/api/donors/does-not-exist")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Donor not found"}
    assert len(store.find_all("donors")) == 1


def test_delete_donor_leaves_inventory_references(client, create_donor, store):
    donor = create_donor()
    client.post(
        "/api/inventory",
        json={"bloodType": "O+", "donorId": donor["_id"], "collectionDate": "2024-01-01"},
    )

    client.delete(f"/api/donors/{donor['_id']}")
    units = client.get("/api/inventory").get_json()
    assert units[0]["donorId"] == donor["_id"]


def test_list_donors_store_failure_returns_500(client, store, monkeypatch):
    def broken(collection):
        raise StoreError("connection refused")

    monkeypatch.setattr(store, "find_all", broken)

    resp = client.get("/api/donors")
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "connection refused"}
