# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Python client: optimistic cache, broadcast replacement and the
live listener's failure handling.
"""

import socket

import pytest
from fastapi.testclient import TestClient

from gigcalendar.client import ClientStore, LiveUpdates
from gigcalendar.core.config import Settings
from gigcalendar.core.errors import StorageError
from gigcalendar.repositories import MemoryStore
from main import create_app

app = create_app(Settings(STORAGE_BACKEND="memory", SEED_DEFAULT_ADMIN=False))
client = TestClient(app)
state = app.state.calendar

ROCK_NIGHT = {"title": "Rock Night", "date": "2024-04-15T20:00", "venue": "The Blue Room"}


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    state.store.clear()
    yield


@pytest.fixture
def store():
    return ClientStore(http_client=client)


def seed_admin():
    state.calendar.create(
        "members",
        {"id": "a1", "name": "Admin", "email": "a1@band.test", "password": "pw", "role": "admin"},
    )


# ============================================
# Load
# ============================================
class TestLoad:
    def test_load_fetches_every_collection(self, store):
        seed_admin()
        state.calendar.create("gigs", {**ROCK_NIGHT, "id": "g1"})
        state.calendar.upsert_commitment("g1", "a1", "confirmed")

        assert store.load() is True
        assert [g["id"] for g in store.gigs] == ["g1"]
        assert [m["id"] for m in store.members] == ["a1"]
        assert store.commitments == [{"gigId": "g1", "userId": "a1", "status": "confirmed"}]
        assert store.error is None

    def test_load_failure_sets_error(self):
        class UnavailableStore(MemoryStore):
            def get_all(self, collection):
                raise StorageError("disk gone")

        broken = create_app(
            Settings(STORAGE_BACKEND="memory", SEED_DEFAULT_ADMIN=False), store=UnavailableStore()
        )
        store = ClientStore(http_client=TestClient(broken))
        assert store.load() is False
        assert store.error == "Failed to load gigs"
        assert store.gigs == []


# ============================================
# Gig mutations
# ============================================
class TestGigMutations:
    def test_add_gig_is_optimistic_and_persisted(self, store):
        record = store.add_gig(ROCK_NIGHT)
        assert store.gigs == [record]
        assert record["status"] == "proposed"
        assert record["assignedMembers"] == []
        server = client.get("/api/gigs").json()["gigs"]
        assert [g["id"] for g in server] == [record["id"]]
        assert store.error is None

    def test_update_gig(self, store):
        record = store.add_gig(ROCK_NIGHT)
        store.update_gig(record["id"], {"status": "confirmed"})
        assert store.gigs[0]["status"] == "confirmed"
        assert state.store.get("gigs", record["id"])["status"] == "confirmed"

    def test_delete_gig_drops_local_commitments(self, store):
        record = store.add_gig(ROCK_NIGHT)
        store.update_commitment(record["id"], "u1", "confirmed")
        store.delete_gig(record["id"])
        assert store.gigs == []
        assert store.commitments == []
        assert client.get("/api/commitments").json() == []

    def test_failed_mutation_keeps_optimistic_state(self, store):
        store.update_gig("ghost", {"title": "Nope"})
        assert store.error == "Failed to update gig"

        store.add_gig({**ROCK_NIGHT, "id": "g1"})
        store.add_gig({**ROCK_NIGHT, "id": "g1"})
        assert store.error == "Failed to add gig"
        assert [g["id"] for g in store.gigs] == ["g1", "g1"]

    def test_success_clears_previous_error(self, store):
        store.delete_gig("ghost")
        assert store.error == "Failed to delete gig"
        store.add_gig(ROCK_NIGHT)
        assert store.error is None


# ============================================
# Member mutations
# ============================================
class TestMemberMutations:
    def test_add_member_never_caches_password(self, store):
        cached = store.add_member({"name": "Ann", "email": "ann@band.test", "password": "pw"})
        assert "password" not in cached
        assert "password" not in store.members[0]
        assert state.store.get("members", cached["id"]) is not None

    def test_update_member(self, store):
        seed_admin()
        store.load()
        store.update_member("a1", {"phone": "555", "password": "new"})
        assert store.members[0]["phone"] == "555"
        assert "password" not in store.members[0]
        assert store.error is None

    def test_remove_last_admin_is_not_rolled_back(self, store):
        seed_admin()
        store.load()
        store.remove_member("a1")
        assert store.members == []
        assert store.error == "Failed to delete member"
        assert [m["id"] for m in client.get("/api/members").json()] == ["a1"]

        store.load()
        assert [m["id"] for m in store.members] == ["a1"]


# ============================================
# Commitments
# ============================================
class TestCommitments:
    def test_update_commitment_replaces_existing(self, store):
        store.update_commitment("g1", "u1", "confirmed")
        store.update_commitment("g1", "u1", "declined", notes="Away")
        assert store.commitments == [
            {"gigId": "g1", "userId": "u1", "status": "declined", "notes": "Away"}
        ]
        assert client.get("/api/commitments").json() == store.commitments

    def test_update_commitment_uses_server_collection(self, store):
        state.calendar.upsert_commitment("g9", "u9", "pending")
        store.update_commitment("g1", "u1", "confirmed")
        # the cache was empty, so the bulk POST drops the server-only record
        assert store.commitments == [{"gigId": "g1", "userId": "u1", "status": "confirmed"}]
        assert client.get("/api/commitments").json() == store.commitments


# ============================================
# Broadcast replacement
# ============================================
class TestApplyUpdate:
    def test_replaces_named_collection(self, store):
        store.gigs = [{"id": "stale"}]
        assert store.apply_update({"event": "dataUpdate", "type": "gigs", "data": [{"id": "g1"}]})
        assert store.gigs == [{"id": "g1"}]

    def test_last_message_wins(self, store):
        store.apply_update({"type": "members", "data": [{"id": "a"}]})
        store.apply_update({"type": "members", "data": [{"id": "b"}]})
        assert store.members == [{"id": "b"}]

    def test_unknown_collection_ignored(self, store):
        assert store.apply_update({"type": "setlists", "data": []}) is False
        assert store.apply_update({"type": "gigs", "data": "oops"}) is False
        assert store.gigs == []

    def test_two_sessions_converge_through_broadcast(self):
        session_a = ClientStore(http_client=client)
        session_b = ClientStore(http_client=client)
        with client.websocket_connect("/ws") as ws_b:
            session_a.add_gig(ROCK_NIGHT)
            session_b.apply_update(ws_b.receive_json())
        assert session_b.gigs == client.get("/api/gigs").json()["gigs"]
        assert session_b.gigs[0]["title"] == "Rock Night"


# ============================================
# Live listener
# ============================================
def _unused_port():
    # bound but never listening, so connections are refused
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    return sock, sock.getsockname()[1]


class TestLiveUpdates:
    def test_handle_feeds_store(self, store):
        live = LiveUpdates(store, url="ws://unused")
        assert live.handle('{"event": "dataUpdate", "type": "gigs", "data": [{"id": "g1"}]}')
        assert store.gigs == [{"id": "g1"}]

    def test_handle_skips_malformed_frames(self, store):
        live = LiveUpdates(store, url="ws://unused")
        assert live.handle("not json") is False
        assert live.handle("[1, 2]") is False
        assert store.gigs == []

    def test_gives_up_after_reconnect_attempts(self, store):
        sock, port = _unused_port()
        try:
            live = LiveUpdates(
                store, url=f"ws://127.0.0.1:{port}/ws", reconnect_attempts=2, reconnect_delay=0
            )
            live.start()
            live.join(timeout=10)
            assert not live.is_alive()
            assert not live.connected.is_set()
        finally:
            sock.close()

    def test_stop_before_connect(self, store):
        sock, port = _unused_port()
        try:
            live = LiveUpdates(
                store, url=f"ws://127.0.0.1:{port}/ws", reconnect_attempts=100, reconnect_delay=5
            )
            live.start()
            live.stop(timeout=10)
            assert not live.is_alive()
        finally:
            sock.close()
