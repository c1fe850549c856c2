"""Tests for the in-memory and PostgREST note stores."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from research_notes.checklists import ChecklistError, DuplicateItemError
from research_notes.project_models import Checklist, ChecklistItem, Note, Project
from research_notes.storage import InMemoryNoteStore, NotFoundError, RestNoteStore, StorageError


@pytest.fixture
def memory_store() -> InMemoryNoteStore:
    return InMemoryNoteStore(
        projects=[Project(id="p1", name="Survey")],
        notes=[
            Note(id="old", project_id="p1", title="Old", content="a", date="2024-01-01"),
            Note(id="new", project_id="p1", title="New", content="b", date="2024-03-01"),
            Note(id="other", project_id="p2", title="Other", content="c", date="2024-02-01"),
        ],
    )


def test_memory_store_lists_newest_first(memory_store: InMemoryNoteStore) -> None:
    notes = asyncio.run(memory_store.list_notes("p1"))

    assert [note.id for note in notes] == ["new", "old"]


def test_memory_store_save_and_load(memory_store: InMemoryNoteStore) -> None:
    asyncio.run(memory_store.save("old", "[]"))

    assert asyncio.run(memory_store.load("old")) == "[]"


def test_memory_store_missing_records(memory_store: InMemoryNoteStore) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(memory_store.get_project("missing"))
    with pytest.raises(NotFoundError):
        asyncio.run(memory_store.list_notes("missing"))
    with pytest.raises(NotFoundError):
        asyncio.run(memory_store.save("missing", "x"))


def _rest_store(handler) -> RestNoteStore:
    return RestNoteStore("http://datastore.test/", "secret", transport=httpx.MockTransport(handler))


def test_rest_store_queries_notes_by_project() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"id": 7, "project_id": "p1", "title": "T", "content": None, "date": "2024-05-01"}],
        )

    notes = asyncio.run(_rest_store(handler).list_notes("p1"))

    assert notes == [Note(id="7", project_id="p1", title="T", content="", date="2024-05-01")]
    request = seen[0]
    assert request.url.path == "/rest/v1/notes"
    assert request.url.params["project_id"] == "eq.p1"
    assert request.url.params["order"] == "date.desc"
    assert request.headers["apikey"] == "secret"
    assert request.headers["Authorization"] == "Bearer secret"


def test_rest_store_get_project() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["id"] == "eq.p1"
        return httpx.Response(200, json=[{"id": "p1", "name": "Survey", "description": None}])

    project = asyncio.run(_rest_store(handler).get_project("p1"))

    assert project == Project(id="p1", name="Survey", description="")


def test_rest_store_missing_note_raises_not_found() -> None:
    store = _rest_store(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(NotFoundError):
        asyncio.run(store.get_note("n1"))
    with pytest.raises(NotFoundError):
        asyncio.run(store.save("n1", "[]"))


def test_rest_store_save_patches_content() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "n1"}])

    asyncio.run(_rest_store(handler).save("n1", "[]"))

    request = seen[0]
    assert request.method == "PATCH"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == {"content": "[]"}


def test_rest_store_wraps_http_errors() -> None:
    store = _rest_store(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(StorageError, match="status 500"):
        asyncio.run(store.get_project("p1"))


def test_rest_store_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StorageError, match="Failed to reach datastore"):
        asyncio.run(_rest_store(handler).list_notes("p1"))


def test_rest_store_rejects_non_json_body() -> None:
    store = _rest_store(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(StorageError, match="invalid JSON"):
        asyncio.run(store.list_notes("p1"))


def test_rest_store_rejects_rows_without_id() -> None:
    store = _rest_store(lambda request: httpx.Response(200, json=[{"name": "Survey"}]))

    with pytest.raises(StorageError, match="malformed row"):
        asyncio.run(store.get_project("p1"))
    with pytest.raises(StorageError, match="malformed row"):
        asyncio.run(store.list_notes("p1"))


@pytest.fixture
def checklist_store() -> InMemoryNoteStore:
    return InMemoryNoteStore(
        projects=[Project(id="p1", name="Survey")],
        checklists=[
            Checklist(
                id="c1",
                project_id="p1",
                title="Lab Supplies",
                items=[ChecklistItem(id="i1", checklist_id="c1", text="Pipettes")],
            )
        ],
    )


def test_memory_store_adds_and_toggles_items(checklist_store: InMemoryNoteStore) -> None:
    item = asyncio.run(checklist_store.add_item("c1", "  Gloves  "))

    assert item.text == "Gloves"
    assert item.completed is False
    assert asyncio.run(checklist_store.toggle_item(item.id)).completed is True
    assert asyncio.run(checklist_store.toggle_item(item.id)).completed is False

    checklist = asyncio.run(checklist_store.get_checklist("c1"))
    assert [entry.text for entry in checklist.items] == ["Pipettes", "Gloves"]


def test_memory_store_rejects_duplicate_and_empty_items(checklist_store: InMemoryNoteStore) -> None:
    with pytest.raises(DuplicateItemError):
        asyncio.run(checklist_store.add_item("c1", "PIPETTES"))
    with pytest.raises(ChecklistError):
        asyncio.run(checklist_store.add_item("c1", "   "))

    assert len(asyncio.run(checklist_store.get_checklist("c1")).items) == 1


def test_memory_store_checklist_lifecycle(checklist_store: InMemoryNoteStore) -> None:
    created = asyncio.run(checklist_store.add_checklist("p1", " Field kit "))

    assert created.title == "Field kit"
    assert created.id != "c1"
    assert [c.id for c in asyncio.run(checklist_store.list_checklists("p1"))] == ["c1", created.id]

    asyncio.run(checklist_store.delete_item("i1"))
    asyncio.run(checklist_store.delete_checklist("c1"))

    assert [c.id for c in asyncio.run(checklist_store.list_checklists("p1"))] == [created.id]
    with pytest.raises(NotFoundError):
        asyncio.run(checklist_store.toggle_item("i1"))
    with pytest.raises(NotFoundError):
        asyncio.run(checklist_store.delete_checklist("c1"))
    with pytest.raises(NotFoundError):
        asyncio.run(checklist_store.add_checklist("missing", "Kit"))


def test_rest_store_lists_checklists_with_items() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/projects"):
            return httpx.Response(200, json=[{"id": "p1", "name": "Survey"}])
        return httpx.Response(
            200,
            json=[
                {
                    "id": 3,
                    "project_id": "p1",
                    "title": "Lab Supplies",
                    "items": [{"id": 9, "checklist_id": 3, "text": "Pipettes", "completed": 1}],
                }
            ],
        )

    checklists = asyncio.run(_rest_store(handler).list_checklists("p1"))

    assert checklists == [
        Checklist(
            id="3",
            project_id="p1",
            title="Lab Supplies",
            items=[ChecklistItem(id="9", checklist_id="3", text="Pipettes", completed=True)],
        )
    ]
    assert seen[1].url.params["select"] == "*,items:checklist_items(*)"
    assert seen[1].url.params["project_id"] == "eq.p1"


def test_rest_store_add_item_rejects_duplicate_without_posting() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"id": "c1", "project_id": "p1", "title": "Kit", "items": [{"id": "i1", "text": "Gloves"}]}],
        )

    with pytest.raises(DuplicateItemError):
        asyncio.run(_rest_store(handler).add_item("c1", "gloves "))

    assert [request.method for request in seen] == ["GET"]


def test_rest_store_delete_checklist_removes_items_first() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": "c1", "project_id": "p1", "title": "Kit", "items": []}])
        return httpx.Response(204)

    asyncio.run(_rest_store(handler).delete_checklist("c1"))

    assert [(request.method, request.url.path) for request in seen] == [
        ("GET", "/rest/v1/checklists"),
        ("DELETE", "/rest/v1/checklist_items"),
        ("DELETE", "/rest/v1/checklists"),
    ]
    assert seen[1].url.params["checklist_id"] == "eq.c1"
    assert seen[2].url.params["id"] == "eq.c1"


def test_rest_store_toggle_item_flips_completed() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": "i1", "checklist_id": "c1", "text": "Gloves", "completed": 0}])
        return httpx.Response(200, json=[{"id": "i1", "checklist_id": "c1", "text": "Gloves", "completed": 1}])

    item = asyncio.run(_rest_store(handler).toggle_item("i1"))

    assert item.completed is True
    assert seen[1].method == "PATCH"
    assert json.loads(seen[1].content) == {"completed": True}
