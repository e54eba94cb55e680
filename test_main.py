# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the GigCalendar HTTP API and live-update channel.
"""

import pytest
from fastapi.testclient import TestClient

from gigcalendar.core.config import Settings
from gigcalendar.core.security import is_hashed
from gigcalendar.repositories import MemoryStore
from main import create_app

app = create_app(Settings(STORAGE_BACKEND="memory", SEED_DEFAULT_ADMIN=False))
client = TestClient(app)
state = app.state.calendar

ROCK_NIGHT = {
    "title": "Rock Night",
    "date": "2024-04-15T20:00",
    "venue": "The Blue Room",
    "status": "proposed",
}


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Empty every collection before each test."""
    state.store.clear()
    yield


def seed_admin(member_id="admin-1", email="admin@band.test"):
    return state.calendar.create(
        "members",
        {"id": member_id, "name": "Admin", "email": email, "password": "s3cret", "role": "admin"},
    )


def seed_member(member_id="m-1", email="drums@band.test"):
    return state.calendar.create(
        "members",
        {"id": member_id, "name": "Drummer", "email": email, "password": "sticks"},
    )


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok_status(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "gigcalendar"
        assert data["storage"] == "memory"
        assert "timestamp" in data

    def test_health_counts_live_subscribers(self):
        assert client.get("/health").json()["live_subscribers"] == 0
        with client.websocket_connect("/ws"):
            assert client.get("/health").json()["live_subscribers"] == 1

    def test_readiness_ready(self):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestRequestID:
    def test_response_has_request_id_header(self):
        response = client.get("/health")
        assert "X-Request-ID" in response.headers

    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_unsafe_request_id_replaced(self):
        response = client.get("/health", headers={"X-Request-ID": "spaces are not allowed"})
        assert response.headers["X-Request-ID"] != "spaces are not allowed"

    def test_error_body_carries_request_id(self):
        response = client.put("/api/gigs/nope", json={"title": "x"}, headers={"X-Request-ID": "req-7"})
        assert response.json()["request_id"] == "req-7"


class TestMetrics:
    def test_metrics_returns_prometheus_text(self):
        client.get("/api/gigs")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "gigcalendar_requests_total" in response.text

    def test_mutation_counter_exposed(self):
        client.post("/api/gigs", json=ROCK_NIGHT)
        assert "gigcalendar_mutations_total" in client.get("/metrics").text


# ============================================
# Gigs
# ============================================
class TestGigs:
    def test_list_empty(self):
        response = client.get("/api/gigs")
        assert response.status_code == 200
        assert response.json() == {"gigs": []}

    def test_create_then_list_includes_defaults(self):
        response = client.post("/api/gigs", json=ROCK_NIGHT)
        assert response.status_code == 201
        created = response.json()
        assert created["id"]
        assert created["status"] == "proposed"
        assert created["assignedMembers"] == []

        gigs = client.get("/api/gigs").json()["gigs"]
        assert len(gigs) == 1
        assert gigs[0]["title"] == "Rock Night"
        assert gigs[0]["venue"] == "The Blue Room"
        assert gigs[0]["status"] == "proposed"
        assert gigs[0]["assignedMembers"] == []

    def test_create_keeps_client_id(self):
        response = client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        assert response.json()["id"] == "g1"

    def test_create_duplicate_id_rejected(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        response = client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        assert response.status_code == 400
        assert response.json()["error"] == "Gig already exists"

    def test_create_missing_title_is_422(self):
        response = client.post("/api/gigs", json={"date": "2024-04-15", "venue": "X"})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Invalid request"
        assert "request_id" in body
        assert "detail" not in body

    def test_create_invalid_status_is_422(self):
        response = client.post("/api/gigs", json={**ROCK_NIGHT, "status": "maybe"})
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"

    def test_assigned_members_deduplicated(self):
        response = client.post(
            "/api/gigs", json={**ROCK_NIGHT, "assignedMembers": ["a", "b", "a"]}
        )
        assert response.json()["assignedMembers"] == ["a", "b"]

    def test_update_merges_fields(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        response = client.put("/api/gigs/g1", json={"status": "confirmed", "payment": 250})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["payment"] == 250
        assert data["title"] == "Rock Night"

    def test_update_cannot_change_id(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        response = client.put("/api/gigs/g1", json={"id": "other", "title": "Renamed"})
        assert response.json()["id"] == "g1"
        assert [g["id"] for g in client.get("/api/gigs").json()["gigs"]] == ["g1"]

    def test_update_unknown_gig_404(self):
        response = client.put("/api/gigs/missing", json={"title": "x"})
        assert response.status_code == 404
        assert response.json()["error"] == "Gig not found"

    def test_delete_returns_204(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        response = client.delete("/api/gigs/g1")
        assert response.status_code == 204
        assert client.get("/api/gigs").json()["gigs"] == []

    def test_delete_unknown_gig_404(self):
        assert client.delete("/api/gigs/missing").status_code == 404

    def test_delete_cascades_commitments(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g2"})
        client.post(
            "/api/commitments",
            json=[
                {"gigId": "g1", "userId": "u1", "status": "confirmed"},
                {"gigId": "g2", "userId": "u1", "status": "declined"},
                {"gigId": "g1", "userId": "u2", "status": "pending"},
            ],
        )
        client.delete("/api/gigs/g1")
        commitments = client.get("/api/commitments").json()
        assert commitments == [{"gigId": "g2", "userId": "u1", "status": "declined"}]


class TestPublicGigs:
    def test_only_confirmed_sorted_by_date(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "late", "date": "2024-06-01T20:00", "status": "confirmed"})
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "early", "date": "2024-05-01T20:00", "status": "confirmed"})
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "maybe", "date": "2024-04-01T20:00"})
        gigs = client.get("/api/gigs/public").json()["gigs"]
        assert [g["id"] for g in gigs] == ["early", "late"]

    def test_public_view_hides_internal_fields(self):
        client.post(
            "/api/gigs",
            json={**ROCK_NIGHT, "status": "confirmed", "payment": 500, "assignedMembers": ["m1"]},
        )
        gig = client.get("/api/gigs/public").json()["gigs"][0]
        assert "payment" not in gig
        assert "assignedMembers" not in gig


class TestCsv:
    def test_export_has_header_and_rows(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "payment": 100})
        response = client.get("/api/gigs/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert lines[0] == "title,date,venue,address,description,payment,requirements"
        assert lines[1].startswith("Rock Night,2024-04-15T20:00,The Blue Room")

    def test_import_creates_gigs(self):
        body = (
            "title,date,venue,address,description,payment,requirements\n"
            "Jazz Brunch,2024-05-05T11:00,Cafe Nord,Main St 1,Acoustic set,120,Piano\n"
            "\n"
            "Summer Fest,2024-07-20T18:00,Park Stage,,,,\n"
        )
        response = client.post(
            "/api/gigs/import", content=body, headers={"Content-Type": "text/csv"}
        )
        assert response.status_code == 201
        created = response.json()["gigs"]
        assert [g["title"] for g in created] == ["Jazz Brunch", "Summer Fest"]
        assert created[0]["payment"] == 120
        assert created[1]["status"] == "proposed"
        assert len(client.get("/api/gigs").json()["gigs"]) == 2

    def test_import_invalid_row_writes_nothing(self):
        body = (
            "title,date,venue\n"
            "Jazz Brunch,2024-05-05T11:00,Cafe Nord\n"
            "No Venue,2024-05-06T11:00,\n"
        )
        response = client.post(
            "/api/gigs/import", content=body, headers={"Content-Type": "text/csv"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid gig on row 2"
        assert client.get("/api/gigs").json()["gigs"] == []

    def test_import_rejects_non_utf8(self):
        response = client.post(
            "/api/gigs/import", content=b"title\n\xff\xfe\xfa", headers={"Content-Type": "text/csv"}
        )
        assert response.status_code == 400


# ============================================
# Members
# ============================================
class TestMembers:
    def test_create_member_hides_password(self):
        response = client.post(
            "/api/members",
            json={"name": "Ann", "email": "Ann@Band.test", "password": "pw", "role": "admin"},
        )
        assert response.status_code == 201
        data = response.json()
        assert "password" not in data
        assert data["email"] == "ann@band.test"
        assert data["role"] == "admin"

    def test_password_stored_hashed(self):
        client.post("/api/members", json={"id": "m1", "name": "Ann", "email": "a@b.c", "password": "pw"})
        stored = state.store.get("members", "m1")
        assert is_hashed(stored["password"])

    def test_list_members_hides_passwords(self):
        seed_admin()
        members = client.get("/api/members").json()
        assert len(members) == 1
        assert "password" not in members[0]

    def test_duplicate_email_rejected(self):
        seed_admin(email="x@band.test")
        response = client.post(
            "/api/members", json={"name": "Other", "email": "X@band.test", "password": "pw"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Email already in use"

    def test_update_member(self):
        seed_admin()
        seed_member()
        response = client.put("/api/members/m-1", json={"phone": "555-0100"})
        assert response.status_code == 200
        assert response.json()["phone"] == "555-0100"

    def test_update_unknown_member_404(self):
        assert client.put("/api/members/ghost", json={"name": "x"}).status_code == 404

    def test_demoting_last_admin_rejected(self):
        seed_admin()
        response = client.put("/api/members/admin-1", json={"role": "member"})
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot remove the last admin"
        assert state.store.get("members", "admin-1")["role"] == "admin"

    def test_delete_member(self):
        seed_admin()
        seed_member()
        response = client.delete("/api/members/m-1")
        assert response.status_code == 200
        assert response.json() == {"message": "Member deleted successfully"}
        assert [m["id"] for m in client.get("/api/members").json()] == ["admin-1"]

    def test_delete_last_admin_rejected(self):
        seed_admin()
        seed_member()
        response = client.delete("/api/members/admin-1")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete the last admin"
        assert len(client.get("/api/members").json()) == 2

    def test_delete_admin_when_another_admin_remains(self):
        seed_admin("admin-1", "a1@band.test")
        seed_admin("admin-2", "a2@band.test")
        assert client.delete("/api/members/admin-1").status_code == 200

    def test_delete_unknown_member_404(self):
        seed_admin()
        assert client.delete("/api/members/ghost").status_code == 404


# ============================================
# Commitments
# ============================================
class TestCommitments:
    def test_bulk_replace_returns_collection(self):
        payload = [{"gigId": "g1", "userId": "u1", "status": "confirmed"}]
        response = client.post("/api/commitments", json=payload)
        assert response.status_code == 200
        assert response.json() == payload
        assert client.get("/api/commitments").json() == payload

    def test_bulk_replace_keeps_last_per_key(self):
        response = client.post(
            "/api/commitments",
            json=[
                {"gigId": "g1", "userId": "u1", "status": "confirmed"},
                {"gigId": "g1", "userId": "u1", "status": "declined"},
            ],
        )
        assert response.json() == [{"gigId": "g1", "userId": "u1", "status": "declined"}]

    def test_bulk_replace_invalid_status_422(self):
        response = client.post(
            "/api/commitments", json=[{"gigId": "g1", "userId": "u1", "status": "maybe"}]
        )
        assert response.status_code == 422

    def test_confirm_then_decline_leaves_one_record(self):
        client.put("/api/commitments/g1/u1", json={"status": "confirmed"})
        response = client.put("/api/commitments/g1/u1", json={"status": "declined"})
        assert response.status_code == 200
        commitments = client.get("/api/commitments").json()
        assert commitments == [{"gigId": "g1", "userId": "u1", "status": "declined"}]

    def test_upsert_moves_record_to_end(self):
        client.put("/api/commitments/g1/u1", json={"status": "confirmed"})
        client.put("/api/commitments/g2/u1", json={"status": "confirmed"})
        client.put("/api/commitments/g1/u1", json={"status": "declined", "notes": "sick"})
        commitments = client.get("/api/commitments").json()
        assert [(c["gigId"], c["status"]) for c in commitments] == [
            ("g2", "confirmed"), ("g1", "declined"),
        ]
        assert commitments[1]["notes"] == "sick"


# ============================================
# Login
# ============================================
class TestLogin:
    def test_login_success(self):
        seed_admin()
        response = client.post("/api/login", json={"email": "ADMIN@band.test", "password": "s3cret"})
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == "admin-1"
        assert "password" not in user

    def test_login_wrong_password(self):
        seed_admin()
        response = client.post("/api/login", json={"email": "admin@band.test", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_login_unknown_email(self):
        response = client.post("/api/login", json={"email": "who@band.test", "password": "x"})
        assert response.status_code == 401

    def test_login_upgrades_plaintext_password(self):
        state.store.insert(
            "members",
            {"id": "old", "name": "Old", "email": "old@band.test", "password": "legacy", "role": "admin"},
        )
        response = client.post("/api/login", json={"email": "old@band.test", "password": "legacy"})
        assert response.status_code == 200
        assert is_hashed(state.store.get("members", "old")["password"])


# ============================================
# Live updates
# ============================================
class TestLiveUpdates:
    def test_create_broadcasts_full_collection(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g0"})
        with client.websocket_connect("/ws") as ws:
            client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1", "title": "Second"})
            message = ws.receive_json()
        assert message["event"] == "dataUpdate"
        assert message["type"] == "gigs"
        assert [g["id"] for g in message["data"]] == ["g0", "g1"]

    def test_two_clients_receive_same_snapshot(self):
        with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
            client.post("/api/gigs", json=ROCK_NIGHT)
            message_a = ws_a.receive_json()
            message_b = ws_b.receive_json()
        assert message_b["type"] == "gigs"
        assert message_b["data"][0]["title"] == "Rock Night"
        assert message_a == message_b

    def test_member_broadcast_hides_passwords(self):
        with client.websocket_connect("/ws") as ws:
            client.post("/api/members", json={"name": "Ann", "email": "a@b.c", "password": "pw"})
            message = ws.receive_json()
        assert message["type"] == "members"
        assert "password" not in message["data"][0]

    def test_gig_delete_broadcasts_gigs_then_commitments(self):
        client.post("/api/gigs", json={**ROCK_NIGHT, "id": "g1"})
        client.put("/api/commitments/g1/u1", json={"status": "confirmed"})
        with client.websocket_connect("/ws") as ws:
            client.delete("/api/gigs/g1")
            first = ws.receive_json()
            second = ws.receive_json()
        assert (first["type"], first["data"]) == ("gigs", [])
        assert (second["type"], second["data"]) == ("commitments", [])

    def test_messages_arrive_in_write_order(self):
        with client.websocket_connect("/ws") as ws:
            for n in range(3):
                client.put(f"/api/commitments/g{n}/u1", json={"status": "pending"})
            sizes = [len(ws.receive_json()["data"]) for _ in range(3)]
        assert sizes == [1, 2, 3]

    def test_failed_write_broadcasts_nothing(self):
        seed_admin()
        with client.websocket_connect("/ws") as ws:
            assert client.delete("/api/members/admin-1").status_code == 400
            client.post("/api/gigs", json=ROCK_NIGHT)
            message = ws.receive_json()
        assert message["type"] == "gigs"

    def test_disconnect_unsubscribes(self):
        with client.websocket_connect("/ws"):
            pass
        assert state.broadcaster.subscriber_count() == 0


# ============================================
# Startup & error handling
# ============================================
class TestLifespan:
    def test_startup_seeds_default_admin(self):
        seeded = create_app(
            Settings(
                STORAGE_BACKEND="memory",
                SEED_DEFAULT_ADMIN=True,
                SEED_ADMIN_EMAIL="boss@band.test",
                SEED_ADMIN_PASSWORD="pw",
            )
        )
        with TestClient(seeded) as c:
            members = c.get("/api/members").json()
            assert [(m["email"], m["role"]) for m in members] == [("boss@band.test", "admin")]
            assert c.post("/api/login", json={"email": "boss@band.test", "password": "pw"}).status_code == 200

    def test_startup_does_not_seed_when_members_exist(self):
        store = MemoryStore()
        store.insert("members", {"id": "x", "name": "X", "email": "x@y.z", "password": "p", "role": "admin"})
        seeded = create_app(Settings(STORAGE_BACKEND="memory", SEED_DEFAULT_ADMIN=True), store=store)
        with TestClient(seeded) as c:
            assert [m["id"] for m in c.get("/api/members").json()] == ["x"]


class TestErrorHandling:
    def test_unexpected_error_is_generic_500(self):
        class BrokenStore(MemoryStore):
            def get_all(self, collection):
                raise RuntimeError("disk on fire")

        broken = create_app(Settings(STORAGE_BACKEND="memory", SEED_DEFAULT_ADMIN=False), store=BrokenStore())
        c = TestClient(broken, raise_server_exceptions=False)
        response = c.get("/api/gigs")
        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
        assert "disk on fire" not in response.text
