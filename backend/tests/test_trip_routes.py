"""Tests for trip CRUD, bookings and sharing."""
import pytest


def create_trip(client, user, **fields):
    body = {"name": "Rome"}
    body.update(fields)
    res = client.post("/api/trips", json=body, headers=user["headers"])
    assert res.status_code == 201, res.get_json()
    return res.get_json()


class TestTripCrud:
    def test_create_sets_owner_and_lists(self, client, alice):
        trip = create_trip(client, alice, startDate="2025-05-01", userId="someone-else")
        assert trip["id"].startswith("trip-")
        assert trip["userId"] == alice["id"]
        assert trip["userName"] == "Alice"
        assert trip["startDate"] == "2025-05-01"
        for name in ("flights", "hotels", "rides", "attractions", "expenses", "sharedWith"):
            assert trip[name] == []

    def test_name_required(self, client, alice):
        res = client.post("/api/trips", json={}, headers=alice["headers"])
        assert res.status_code == 400
        assert res.get_json()["error"] == "name is required"

    def test_body_must_be_object(self, client, alice, shared_trip):
        res = client.post("/api/trips", json=["Rome"], headers=alice["headers"])
        assert res.status_code == 400
        assert res.get_json()["error"] == "Trip must be an object"

        res = client.put(f"/api/trips/{shared_trip['id']}", json=["Roma"], headers=alice["headers"])
        assert res.status_code == 400

        res = client.post(f"/api/trips/{shared_trip['id']}/share", json=["bob@example.com"], headers=alice["headers"])
        assert res.status_code == 400

    def test_list_only_own_and_shared(self, client, alice, bob, shared_trip):
        create_trip(client, bob, name="Bob's own")
        create_trip(client, alice, name="Alice private")

        bob_names = {t["name"] for t in client.get("/api/trips", headers=bob["headers"]).get_json()}
        assert bob_names == {"Lisbon", "Bob's own"}

    def test_get_reports_permission(self, client, alice, bob, shared_trip):
        res = client.get(f"/api/trips/{shared_trip['id']}", headers=alice["headers"])
        assert res.get_json()["permission"] == "edit"

    def test_stranger_gets_not_found(self, client, carol, shared_trip):
        res = client.get(f"/api/trips/{shared_trip['id']}", headers=carol["headers"])
        assert res.status_code == 404
        assert res.get_json()["error"] == "Trip not found"

    def test_update_ignores_protected_fields(self, client, alice):
        trip = create_trip(client, alice)
        res = client.put(
            f"/api/trips/{trip['id']}",
            json={"name": "Roma", "userId": "hijack", "expenses": [{"id": "x"}]},
            headers=alice["headers"],
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["name"] == "Roma"
        assert body["userId"] == alice["id"]
        assert body["expenses"] == []

    def test_only_owner_deletes(self, client, alice, bob, shared_trip):
        res = client.delete(f"/api/trips/{shared_trip['id']}", headers=bob["headers"])
        assert res.status_code == 403

        res = client.delete(f"/api/trips/{shared_trip['id']}", headers=alice["headers"])
        assert res.status_code == 200
        assert client.get(f"/api/trips/{shared_trip['id']}", headers=alice["headers"]).status_code == 404


class TestBookings:
    @pytest.mark.parametrize("kind,item", [
        ("flights", {"flightNumber": "TP123", "departureDateTime": "2025-05-01T08:00", "arrivalDateTime": "2025-05-01T11:00"}),
        ("hotels", {"name": "Hotel Avenida", "checkIn": "2025-05-01", "checkOut": "2025-05-05"}),
        ("rides", {"pickup": "Airport", "dropoff": "Hotel Avenida", "type": "taxi"}),
        ("attractions", {"name": "Belem Tower", "scheduledDate": "2025-05-02"}),
    ])
    def test_add_booking(self, client, alice, kind, item):
        trip = create_trip(client, alice)
        res = client.post(f"/api/trips/{trip['id']}/{kind}", json=item, headers=alice["headers"])
        assert res.status_code == 201
        assert res.get_json()[kind] == [item]

    def test_missing_booking_fields(self, client, alice):
        trip = create_trip(client, alice)
        res = client.post(f"/api/trips/{trip['id']}/hotels", json={"name": "X"}, headers=alice["headers"])
        assert res.status_code == 400
        assert res.get_json()["error"] == "name, checkIn and checkOut are required"

    def test_remove_booking_by_index(self, client, alice):
        trip = create_trip(client, alice)
        for name in ("A", "B"):
            client.post(
                f"/api/trips/{trip['id']}/attractions",
                json={"name": name, "scheduledDate": "2025-05-02"},
                headers=alice["headers"],
            )
        res = client.delete(f"/api/trips/{trip['id']}/attractions/0", headers=alice["headers"])
        assert res.status_code == 200
        assert [a["name"] for a in res.get_json()["attractions"]] == ["B"]

    @pytest.mark.parametrize("path", ["boats/0", "hotels/5", "hotels/x", "hotels/-1"])
    def test_remove_booking_bad_type_or_index(self, client, alice, path):
        trip = create_trip(client, alice)
        res = client.delete(f"/api/trips/{trip['id']}/{path}", headers=alice["headers"])
        assert res.status_code == 400


class TestSharing:
    def test_share_adds_user(self, client, alice, bob, shared_trip):
        trip = client.get(f"/api/trips/{shared_trip['id']}", headers=alice["headers"]).get_json()
        assert len(trip["sharedWith"]) == 1
        entry = trip["sharedWith"][0]
        assert entry["userId"] == bob["id"]
        assert entry["name"] == "Bob"
        assert entry["permission"] == "edit"

    def test_share_again_replaces_entry(self, client, alice, bob, shared_trip):
        res = client.post(
            f"/api/trips/{shared_trip['id']}/share",
            json={"email": bob["email"], "permission": "view"},
            headers=alice["headers"],
        )
        assert res.status_code == 201
        assert [(s["userId"], s["permission"]) for s in res.get_json()["sharedWith"]] == [(bob["id"], "view")]

    def test_share_unknown_email(self, client, alice, shared_trip):
        res = client.post(
            f"/api/trips/{shared_trip['id']}/share",
            json={"email": "nobody@example.com"},
            headers=alice["headers"],
        )
        assert res.status_code == 404

    def test_only_owner_shares(self, client, bob, carol, shared_trip):
        res = client.post(
            f"/api/trips/{shared_trip['id']}/share",
            json={"email": carol["email"]},
            headers=bob["headers"],
        )
        assert res.status_code == 403

    def test_view_only_user_cannot_edit(self, client, alice, carol):
        trip = create_trip(client, alice)
        client.post(
            f"/api/trips/{trip['id']}/share",
            json={"email": carol["email"], "permission": "view"},
            headers=alice["headers"],
        )
        assert client.get(f"/api/trips/{trip['id']}", headers=carol["headers"]).get_json()["permission"] == "view"

        res = client.put(f"/api/trips/{trip['id']}", json={"name": "Mine now"}, headers=carol["headers"])
        assert res.status_code == 403

    def test_unshare(self, client, alice, bob, shared_trip):
        res = client.delete(f"/api/trips/{shared_trip['id']}/share/{bob['id']}", headers=alice["headers"])
        assert res.status_code == 200
        assert res.get_json()["sharedWith"] == []
        assert client.get(f"/api/trips/{shared_trip['id']}", headers=bob["headers"]).status_code == 404
