import asyncio
import json

import pytest

from src.api.errors import DuplicateEmailError, InvalidCredentialsError
from src.api.identity import IdentityStore, actor_to_json, landing_route, registration_route
from src.api.models import ActorRole
from src.api.session_storage import (
    SESSION_USER_KEY,
    InMemorySessionStorage,
    SQLiteSessionStorage,
)


def new_store(storage=None, latency=0.0):
    return IdentityStore(storage or InMemorySessionStorage(), latency_seconds=latency)


class TestLogin:
    def test_login_known_actor(self):
        storage = InMemorySessionStorage()
        store = new_store(storage)
        outcome = asyncio.run(store.login("receiver@example.com", "anything"))
        assert outcome.actor["id"] == "2"
        assert outcome.redirect_to == "/receiver"
        assert store.current["email"] == "receiver@example.com"
        assert store.is_authenticated
        persisted = json.loads(storage.get_item(SESSION_USER_KEY))
        assert persisted["role"] == "receiver"
        assert persisted["organization"] == "Food for All NGO"

    def test_login_unknown_email_leaves_state_alone(self):
        storage = InMemorySessionStorage()
        store = new_store(storage)
        with pytest.raises(InvalidCredentialsError) as exc_info:
            asyncio.run(store.login("nobody@example.com", "pw"))
        assert exc_info.value.message == "Invalid credentials"
        assert store.current is None
        assert not store.is_authenticated
        assert storage.get_item(SESSION_USER_KEY) is None

    def test_failed_login_keeps_previous_actor(self):
        store = new_store()
        asyncio.run(store.login("donor@example.com", "pw"))
        with pytest.raises(InvalidCredentialsError):
            asyncio.run(store.login("ghost@example.com", "pw"))
        assert store.current["id"] == "1"

    def test_landing_routes(self):
        assert landing_route(ActorRole.DONOR) == "/donor"
        assert landing_route(ActorRole.RECEIVER) == "/receiver"
        assert landing_route(ActorRole.ADMIN) == "/admin"
        assert landing_route(None) == "/dashboard"

    def test_registration_routes(self):
        assert registration_route(ActorRole.DONOR) == "/donor"
        assert registration_route(ActorRole.RECEIVER) == "/receiver"
        assert registration_route(ActorRole.ADMIN) == "/dashboard"


class TestRegister:
    def test_register_sets_current_and_persists(self):
        storage = InMemorySessionStorage()
        store = new_store(storage)
        outcome = asyncio.run(store.register("Bakery", "bakery@example.com", "pw", ActorRole.DONOR, "Bakery Ltd"))
        assert outcome.actor["id"] == "4"
        assert outcome.redirect_to == "/donor"
        assert store.current == outcome.actor
        assert json.loads(storage.get_item(SESSION_USER_KEY))["email"] == "bakery@example.com"

    def test_duplicate_email_fails_and_keeps_current(self):
        store = new_store()
        first = asyncio.run(store.register("X", "x@example.com", "pw", ActorRole.RECEIVER))
        with pytest.raises(DuplicateEmailError) as exc_info:
            asyncio.run(store.register("X again", "x@example.com", "pw", ActorRole.DONOR))
        assert exc_info.value.message == "Email already registered"
        assert store.current == first.actor

    def test_seed_email_is_taken(self):
        store = new_store()
        with pytest.raises(DuplicateEmailError):
            asyncio.run(store.register("Fake", "admin@example.com", "pw", ActorRole.ADMIN))
        assert store.current is None

    def test_registered_actor_can_log_in_again(self):
        store = new_store()
        registered = asyncio.run(store.register("Shelter", "shelter@example.com", "pw", ActorRole.RECEIVER))
        store.logout()
        outcome = asyncio.run(store.login("shelter@example.com", "pw"))
        assert outcome.actor == registered.actor

    def test_ids_stay_unique(self):
        store = new_store()
        a = asyncio.run(store.register("A", "a@example.com", "pw", ActorRole.DONOR))
        b = asyncio.run(store.register("B", "b@example.com", "pw", ActorRole.DONOR))
        assert a.actor["id"] == "4"
        assert b.actor["id"] == "5"

    def test_reserved_ids_are_skipped(self):
        store = IdentityStore(InMemorySessionStorage(), reserved_ids={"4", "7", "guest"})
        outcome = asyncio.run(store.register("C", "c@example.com", "pw", ActorRole.DONOR))
        assert outcome.actor["id"] == "8"

    def test_restored_actor_id_is_not_reused(self):
        storage = InMemorySessionStorage()
        ghost = {"id": "9", "name": "Ghost", "email": "ghost@example.com", "role": ActorRole.DONOR, "organization": None}
        storage.set_item(SESSION_USER_KEY, actor_to_json(ghost))
        store = new_store(storage)
        outcome = asyncio.run(store.register("D", "d@example.com", "pw", ActorRole.RECEIVER))
        assert outcome.actor["id"] == "10"


class TestLogoutAndRestore:
    def test_logout_clears_session(self):
        storage = InMemorySessionStorage()
        store = new_store(storage)
        asyncio.run(store.login("admin@example.com", "pw"))
        outcome = store.logout()
        assert outcome.actor is None
        assert outcome.redirect_to == "/"
        assert store.current is None
        assert storage.get_item(SESSION_USER_KEY) is None

    def test_restores_persisted_actor_without_revalidation(self):
        storage = InMemorySessionStorage()
        ghost = {"id": "77", "name": "Ghost", "email": "ghost@example.com", "role": ActorRole.DONOR, "organization": None}
        storage.set_item(SESSION_USER_KEY, actor_to_json(ghost))
        store = new_store(storage)
        assert store.current == ghost

    def test_unreadable_record_is_ignored(self):
        storage = InMemorySessionStorage()
        storage.set_item(SESSION_USER_KEY, "{not json")
        assert new_store(storage).current is None

        storage.set_item(SESSION_USER_KEY, json.dumps({"id": "1", "name": "x", "email": "e", "role": "chef"}))
        assert new_store(storage).current is None

    def test_current_is_a_copy(self):
        store = new_store()
        asyncio.run(store.login("donor@example.com", "pw"))
        store.current["name"] = "Changed"
        assert store.current["name"] == "Restaurant Owner"


class TestSQLiteSessionStorage:
    def test_session_survives_new_store(self, tmp_path):
        db_path = str(tmp_path / "nested" / "session.db")
        store = new_store(SQLiteSessionStorage(db_path))
        asyncio.run(store.login("donor@example.com", "pw"))

        restored = new_store(SQLiteSessionStorage(db_path))
        assert restored.current["id"] == "1"
        assert restored.current["role"] is ActorRole.DONOR

        restored.logout()
        assert new_store(SQLiteSessionStorage(db_path)).current is None

    def test_set_item_overwrites(self, tmp_path):
        storage = SQLiteSessionStorage(str(tmp_path / "s.db"))
        storage.set_item("k", "one")
        storage.set_item("k", "two")
        assert storage.get_item("k") == "two"
        storage.remove_item("k")
        storage.remove_item("k")
        assert storage.get_item("k") is None


class TestLatency:
    def test_login_is_observable_while_pending(self):
        store = new_store(latency=0.05)

        async def scenario():
            task = asyncio.ensure_future(store.login("donor@example.com", "pw"))
            await asyncio.sleep(0)
            assert not task.done()
            assert store.current is None
            await task
            return task

        task = asyncio.run(scenario())
        assert task.done()
        assert task.exception() is None
        assert store.current["id"] == "1"
