"""Tests for the notes example."""

import json

from burrow.testing import TestClient


class TestHome:
    async def test_counts_visits(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await client.get("/")
            response = await client.get("/")
            assert json.loads(response.text) == {"visits": 2, "notes": 0}


class TestNotes:
    async def test_create_list_and_show(self, example_app) -> None:
        async with TestClient(example_app) as client:
            created = await client.post("/notes", json={"title": "Buy milk"})
            assert json.loads(created.text) == {"id": 1, "title": "Buy milk"}

            listing = await client.get("/notes")
            assert json.loads(listing.text) == {"notes": [{"id": 1, "title": "Buy milk"}]}

            one = await client.get("/notes/1")
            assert json.loads(one.text)["title"] == "Buy milk"

    async def test_notes_are_per_visitor(self, example_app) -> None:
        async with TestClient(example_app) as alice:
            await alice.post("/notes", json={"title": "private"})
        async with TestClient(example_app) as bob:
            response = await bob.get("/notes")
            assert json.loads(response.text) == {"notes": []}

    async def test_missing_note(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/notes/42")
            assert response.status == 404
            assert json.loads(response.text) == {"error": "No note 42"}

    async def test_title_is_required(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/notes", json={"title": "  "})
            assert response.status == 422

    async def test_clear_redirects(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await client.post("/notes", json={"title": "one"})
            response = await client.post("/notes/clear")
            assert response.status == 302
            assert response.header("location") == "/notes"
            listing = await client.get("/notes")
            assert json.loads(listing.text) == {"notes": []}


class TestHooks:
    async def test_read_only_mode(self, example_app, monkeypatch) -> None:
        monkeypatch.setenv("NOTES_READ_ONLY", "1")
        async with TestClient(example_app) as client:
            response = await client.post("/notes", json={"title": "nope"})
            assert response.status == 503

    async def test_json_not_found_under_notes(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/notes.py")
            assert response.status == 404
            assert json.loads(response.text) == {"error": "Not found", "path": "/notes.py"}
