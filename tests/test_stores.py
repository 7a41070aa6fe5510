"""Tests for burrow.sessions.stores — memory, file and function backends."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from burrow.config import SessionConfig, StoreFunctions, StoreMethod
from burrow.errors import SessionBackendError
from burrow.sessions.body import SessionBody
from burrow.sessions.manager import Session
from burrow.sessions.stores import (
    FileStore,
    FunctionStore,
    MemoryStore,
    SessionCollection,
    create_store,
)
from burrow.sessions.tokens import TokenSigner

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
SID = "0b7c4a1e-2f3d-4c5b-9a8e-7f6d5c4b3a21"
OTHER = "1c8d5b2f-3a4e-4d6c-8b9f-8a7e6d5c4b32"


def _body(last_check: datetime = NOW, **data: Any) -> SessionBody:
    return SessionBody(
        ip="10.0.0.1",
        hostname="example.com",
        user_agent="Mozilla/5.0",
        last_check=last_check,
        data=dict(data),
    )


class TestMemoryStore:
    async def test_save_and_get(self) -> None:
        store = MemoryStore(SessionCollection())
        await store.save(SID, _body(visits=1))
        body = await store.get(SID)
        assert body is not None
        assert body.data == {"visits": 1}

    async def test_missing(self) -> None:
        assert await MemoryStore(SessionCollection()).get(SID) is None

    async def test_bodies_are_copies(self) -> None:
        store = MemoryStore(SessionCollection())
        original = _body(cart=[1])
        await store.save(SID, original)
        original.data["cart"].append(2)
        body = await store.get(SID)
        assert body is not None
        assert body.data == {"cart": [1]}

    async def test_malformed_entry_is_dropped(self) -> None:
        collection = SessionCollection()
        collection.set(SID, "{not json")
        store = MemoryStore(collection)
        assert await store.get(SID) is None
        assert SID not in collection

    async def test_exists_and_delete(self) -> None:
        store = MemoryStore(SessionCollection())
        await store.save(SID, _body())
        assert await store.exists(SID)
        await store.delete(SID)
        assert not await store.exists(SID)

    async def test_unserializable_data(self) -> None:
        store = MemoryStore(SessionCollection())
        with pytest.raises(SessionBackendError, match="not JSON serializable"):
            await store.save(SID, _body(handle=object()))

    async def test_delete_expired(self) -> None:
        collection = SessionCollection()
        store = MemoryStore(collection)
        await store.save(SID, _body(last_check=NOW - timedelta(minutes=31)))
        await store.save(OTHER, _body(last_check=NOW - timedelta(minutes=5)))
        collection.set("broken", "[]")
        removed = await store.delete_expired(30, now=NOW)
        assert removed == 2
        assert list(collection) == [OTHER]


class TestFileStore:
    async def test_save_writes_one_file_per_session(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path / "sessions")
        await store.save(SID, _body(visits=2))
        path = tmp_path / "sessions" / f"{SID}.json"
        assert path.is_file()
        assert json.loads(path.read_text())["data"] == {"visits": 2}

    async def test_compact_by_default(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.save(SID, _body())
        assert "\n" not in (tmp_path / f"{SID}.json").read_text()

    async def test_pretty_uses_tabs(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path, pretty=True)
        await store.save(SID, _body())
        assert '\n\t"ip": "10.0.0.1"' in (tmp_path / f"{SID}.json").read_text()

    async def test_get_round_trip(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.save(SID, _body(name="ada"))
        body = await store.get(SID)
        assert body is not None
        assert body.data == {"name": "ada"}
        assert body.last_check == NOW

    async def test_missing(self, tmp_path: Path) -> None:
        assert await FileStore(tmp_path).get(SID) is None

    async def test_malformed_file_is_discarded(self, tmp_path: Path) -> None:
        path = tmp_path / f"{SID}.json"
        path.write_text('{"ip": "only"}')
        assert await FileStore(tmp_path).get(SID) is None
        assert not path.exists()

    async def test_exists_and_delete(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.save(SID, _body())
        assert await store.exists(SID)
        await store.delete(SID)
        assert not await store.exists(SID)
        await store.delete(SID)

    async def test_delete_expired(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.save(SID, _body(last_check=NOW - timedelta(hours=1)))
        await store.save(OTHER, _body(last_check=NOW))
        (tmp_path / "garbage.json").write_text("nope")
        (tmp_path / "notes.txt").write_text("left alone")
        removed = await store.delete_expired(30, now=NOW)
        assert removed == 2
        assert sorted(p.name for p in tmp_path.iterdir()) == [f"{OTHER}.json", "notes.txt"]

    async def test_delete_expired_without_directory(self, tmp_path: Path) -> None:
        assert await FileStore(tmp_path / "missing").delete_expired(30, now=NOW) == 0

    async def test_write_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where the directory should be")
        with pytest.raises(SessionBackendError, match="Cannot write session"):
            await FileStore(blocker / "sessions").save(SID, _body())


class _Backend:
    """In-memory stand-in for an external session service."""

    def __init__(self) -> None:
        self.bodies: dict[str, dict[str, Any]] = {}
        self.deleted: list[str] = []
        self.swept: list[float] = []
        self.fail_get = False
        self.fail_save = False
        self.fail_delete = False

    async def get(self, session_id: str) -> dict[str, Any] | None:
        if self.fail_get:
            raise ConnectionError("backend down")
        return self.bodies.get(session_id)

    async def save(self, session_id: str, body: dict[str, Any]) -> None:
        if self.fail_save:
            raise ConnectionError("backend down")
        self.bodies[session_id] = body

    async def delete(self, session_id: str) -> None:
        if self.fail_delete:
            raise ConnectionError("backend down")
        self.deleted.append(session_id)
        self.bodies.pop(session_id, None)

    async def delete_expired(self, minutes: float) -> None:
        self.swept.append(minutes)

    def functions(self) -> StoreFunctions:
        return StoreFunctions(get=self.get, save=self.save, delete=self.delete, delete_expired=self.delete_expired)


class TestFunctionStore:
    async def test_save_passes_the_camel_case_mapping(self) -> None:
        backend = _Backend()
        store = FunctionStore(backend.functions())
        await store.save(SID, _body(visits=1))
        assert backend.bodies[SID]["userAgent"] == "Mozilla/5.0"
        body = await store.get(SID)
        assert body is not None
        assert body.data == {"visits": 1}

    async def test_failing_get_is_a_missing_session(self) -> None:
        backend = _Backend()
        backend.fail_get = True
        store = FunctionStore(backend.functions())
        assert await store.get(SID) is None
        assert backend.deleted == [SID]
        assert not await store.exists(SID)

    async def test_failing_delete_after_failing_get_is_swallowed(self, caplog) -> None:
        backend = _Backend()
        backend.fail_get = True
        backend.fail_delete = True
        store = FunctionStore(backend.functions())
        assert await store.get(SID) is None
        assert "'delete' failed" in caplog.text

        signer = TokenSigner("secret")
        session = Session(
            store,
            signer,
            token=signer.sign(SID),
            ip="10.0.0.1",
            hostname="example.com",
            user_agent="Mozilla/5.0",
            minutes_expiration=30,
            clock=lambda: NOW,
        )
        await session.start()
        assert session.started
        assert session.id != SID
        assert session.id in backend.bodies

    async def test_exists_does_not_delete_on_failure(self) -> None:
        backend = _Backend()
        backend.fail_get = True
        store = FunctionStore(backend.functions())
        assert not await store.exists(OTHER)
        assert backend.deleted == []

    async def test_malformed_body_is_discarded(self) -> None:
        backend = _Backend()
        backend.bodies[SID] = {"ip": "x"}
        store = FunctionStore(backend.functions())
        assert await store.get(SID) is None
        assert SID not in backend.bodies

    async def test_failing_save_raises(self) -> None:
        backend = _Backend()
        backend.fail_save = True
        with pytest.raises(SessionBackendError, match="'save' failed"):
            await FunctionStore(backend.functions()).save(SID, _body())

    async def test_delete_expired_calls_the_callback(self) -> None:
        backend = _Backend()
        assert await FunctionStore(backend.functions()).delete_expired(15) == 0
        assert backend.swept == [15]

    async def test_delete_expired_is_optional(self) -> None:
        backend = _Backend()
        functions = StoreFunctions(get=backend.get, save=backend.save, delete=backend.delete)
        assert await FunctionStore(functions).delete_expired(15) == 0


class TestCreateStore:
    def test_memory_by_default(self) -> None:
        collection = SessionCollection()
        store = create_store(SessionConfig(secret_key="s"), collection)
        assert isinstance(store, MemoryStore)
        assert store.collection is collection

    def test_files(self, tmp_path: Path) -> None:
        store = create_store(SessionConfig(secret_key="s", store=StoreMethod.FILES, path=tmp_path, pretty=True))
        assert isinstance(store, FileStore)
        assert store.pretty

    def test_functions(self) -> None:
        store = create_store(SessionConfig(secret_key="s", store=_Backend().functions()))
        assert isinstance(store, FunctionStore)
