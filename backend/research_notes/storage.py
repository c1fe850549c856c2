"""Storage collaborators for projects, notes and checklists."""
from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, TypeVar

import httpx

from .checklists import clean_item_text, clean_title
from .project_models import Checklist, ChecklistItem, Note, Project

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(RuntimeError):
    """Base class for storage failures."""


class NotFoundError(StoreError):
    """Raised when a project, note, checklist or item does not exist."""


class StorageError(StoreError):
    """Raised when the datastore cannot be reached or answers unexpectedly."""


class NoteStore(Protocol):
    async def get_project(self, project_id: str) -> Project: ...

    async def list_notes(self, project_id: str) -> list[Note]: ...

    async def get_note(self, note_id: str) -> Note: ...

    async def load(self, note_id: str) -> str: ...

    async def save(self, note_id: str, content: str) -> None: ...


class ChecklistStore(Protocol):
    async def list_checklists(self, project_id: str) -> list[Checklist]: ...

    async def get_checklist(self, checklist_id: str) -> Checklist: ...

    async def add_checklist(self, project_id: str, title: str) -> Checklist: ...

    async def delete_checklist(self, checklist_id: str) -> None: ...

    async def add_item(self, checklist_id: str, text: str) -> ChecklistItem: ...

    async def toggle_item(self, item_id: str) -> ChecklistItem: ...

    async def delete_item(self, item_id: str) -> None: ...


def _sort_notes(notes: list[Note]) -> list[Note]:
    """Newest first, as the notes are listed to the user."""

    return sorted(notes, key=lambda note: note.date, reverse=True)


class InMemoryNoteStore:
    """Dictionary backed store used for local runs and tests."""

    def __init__(
        self,
        projects: list[Project] | None = None,
        notes: list[Note] | None = None,
        checklists: list[Checklist] | None = None,
    ) -> None:
        self._projects: dict[str, Project] = {project.id: project for project in projects or []}
        self._notes: dict[str, Note] = {note.id: note for note in notes or []}
        self._checklists: dict[str, Checklist] = {checklist.id: checklist for checklist in checklists or []}
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        while True:
            candidate = str(next(self._ids))
            if candidate not in self._checklists and self._find_item(candidate) is None:
                return candidate

    def add_project(self, project: Project) -> None:
        self._projects[project.id] = project

    def add_note(self, note: Note) -> None:
        self._notes[note.id] = note

    async def get_project(self, project_id: str) -> Project:
        try:
            return self._projects[project_id]
        except KeyError:
            raise NotFoundError(f"Project {project_id} not found") from None

    async def list_notes(self, project_id: str) -> list[Note]:
        await self.get_project(project_id)
        return _sort_notes([note for note in self._notes.values() if note.project_id == project_id])

    async def get_note(self, note_id: str) -> Note:
        try:
            return self._notes[note_id]
        except KeyError:
            raise NotFoundError(f"Note {note_id} not found") from None

    async def load(self, note_id: str) -> str:
        return (await self.get_note(note_id)).content

    async def save(self, note_id: str, content: str) -> None:
        note = await self.get_note(note_id)
        note.content = content

    # ------------------------------------------------------------------
    # Checklists
    # ------------------------------------------------------------------
    def _find_item(self, item_id: str) -> tuple[Checklist, ChecklistItem] | None:
        for checklist in self._checklists.values():
            for item in checklist.items:
                if item.id == item_id:
                    return checklist, item
        return None

    async def list_checklists(self, project_id: str) -> list[Checklist]:
        await self.get_project(project_id)
        return [checklist for checklist in self._checklists.values() if checklist.project_id == project_id]

    async def get_checklist(self, checklist_id: str) -> Checklist:
        try:
            return self._checklists[checklist_id]
        except KeyError:
            raise NotFoundError(f"Checklist {checklist_id} not found") from None

    async def add_checklist(self, project_id: str, title: str) -> Checklist:
        await self.get_project(project_id)
        checklist = Checklist(
            id=self._next_id(),
            project_id=project_id,
            title=clean_title(title),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._checklists[checklist.id] = checklist
        return checklist

    async def delete_checklist(self, checklist_id: str) -> None:
        await self.get_checklist(checklist_id)
        del self._checklists[checklist_id]

    async def add_item(self, checklist_id: str, text: str) -> ChecklistItem:
        checklist = await self.get_checklist(checklist_id)
        item = ChecklistItem(id=self._next_id(), checklist_id=checklist_id, text=clean_item_text(checklist, text))
        checklist.items.append(item)
        return item

    async def toggle_item(self, item_id: str) -> ChecklistItem:
        found = self._find_item(item_id)
        if found is None:
            raise NotFoundError(f"Checklist item {item_id} not found")
        _, item = found
        item.completed = not item.completed
        return item

    async def delete_item(self, item_id: str) -> None:
        found = self._find_item(item_id)
        if found is None:
            raise NotFoundError(f"Checklist item {item_id} not found")
        checklist, item = found
        checklist.items.remove(item)


class RestNoteStore:
    """PostgREST client for the ``projects``, ``notes`` and checklist tables."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        extra_headers: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        url = f"{self.base_url}/rest/v1/{path}"
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, params=params, json=json, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Datastore returned HTTP %s: %s", exc.response.status_code, exc.response.text)
            raise StorageError(f"Datastore {method} {path} failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Error talking to datastore: %s", exc)
            raise StorageError(f"Failed to reach datastore at {url}: {exc}") from exc
        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Datastore returned a non-JSON body for %s %s", method, path)
            raise StorageError(f"Datastore {method} {path} returned invalid JSON") from exc
        return data if isinstance(data, list) else [data]

    async def _mutate(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> list[dict[str, Any]]:
        return await self._request(
            method,
            path,
            params=params,
            json=json,
            extra_headers={"Prefer": "return=representation"},
        )

    @staticmethod
    def _convert(rows: list[dict[str, Any]], factory: Callable[[dict[str, Any]], T]) -> list[T]:
        try:
            return [factory(row) for row in rows]
        except (KeyError, TypeError, AttributeError) as exc:
            logger.error("Datastore returned a malformed row: %r", exc)
            raise StorageError(f"Datastore returned a malformed row: {exc!r}") from exc

    async def get_project(self, project_id: str) -> Project:
        rows = await self._request("GET", "projects", params={"id": f"eq.{project_id}", "select": "*"})
        if not rows:
            raise NotFoundError(f"Project {project_id} not found")
        return self._convert(rows[:1], self._project_from_row)[0]

    async def list_notes(self, project_id: str) -> list[Note]:
        rows = await self._request(
            "GET",
            "notes",
            params={"project_id": f"eq.{project_id}", "select": "*", "order": "date.desc"},
        )
        return self._convert(rows, self._note_from_row)

    async def get_note(self, note_id: str) -> Note:
        rows = await self._request("GET", "notes", params={"id": f"eq.{note_id}", "select": "*"})
        if not rows:
            raise NotFoundError(f"Note {note_id} not found")
        return self._convert(rows[:1], self._note_from_row)[0]

    async def load(self, note_id: str) -> str:
        return (await self.get_note(note_id)).content

    async def save(self, note_id: str, content: str) -> None:
        rows = await self._mutate("PATCH", "notes", params={"id": f"eq.{note_id}"}, json={"content": content})
        if not rows:
            raise NotFoundError(f"Note {note_id} not found")

    # ------------------------------------------------------------------
    # Checklists
    # ------------------------------------------------------------------
    async def list_checklists(self, project_id: str) -> list[Checklist]:
        await self.get_project(project_id)
        rows = await self._request(
            "GET",
            "checklists",
            params={"project_id": f"eq.{project_id}", "select": "*,items:checklist_items(*)"},
        )
        return self._convert(rows, self._checklist_from_row)

    async def get_checklist(self, checklist_id: str) -> Checklist:
        rows = await self._request(
            "GET",
            "checklists",
            params={"id": f"eq.{checklist_id}", "select": "*,items:checklist_items(*)"},
        )
        if not rows:
            raise NotFoundError(f"Checklist {checklist_id} not found")
        return self._convert(rows[:1], self._checklist_from_row)[0]

    async def add_checklist(self, project_id: str, title: str) -> Checklist:
        cleaned = clean_title(title)
        await self.get_project(project_id)
        rows = await self._mutate("POST", "checklists", json={"project_id": project_id, "title": cleaned})
        if not rows:
            raise StorageError("Datastore did not return the created checklist")
        return self._convert(rows[:1], self._checklist_from_row)[0]

    async def delete_checklist(self, checklist_id: str) -> None:
        await self.get_checklist(checklist_id)
        # Items reference the checklist and go first.
        await self._request("DELETE", "checklist_items", params={"checklist_id": f"eq.{checklist_id}"})
        await self._request("DELETE", "checklists", params={"id": f"eq.{checklist_id}"})

    async def add_item(self, checklist_id: str, text: str) -> ChecklistItem:
        checklist = await self.get_checklist(checklist_id)
        cleaned = clean_item_text(checklist, text)
        rows = await self._mutate("POST", "checklist_items", json={"checklist_id": checklist_id, "text": cleaned})
        if not rows:
            raise StorageError("Datastore did not return the created checklist item")
        return self._convert(rows[:1], self._item_from_row)[0]

    async def toggle_item(self, item_id: str) -> ChecklistItem:
        rows = await self._request("GET", "checklist_items", params={"id": f"eq.{item_id}", "select": "*"})
        if not rows:
            raise NotFoundError(f"Checklist item {item_id} not found")
        item = self._convert(rows[:1], self._item_from_row)[0]
        updated = await self._mutate(
            "PATCH",
            "checklist_items",
            params={"id": f"eq.{item_id}"},
            json={"completed": not item.completed},
        )
        if not updated:
            raise NotFoundError(f"Checklist item {item_id} not found")
        return self._convert(updated[:1], self._item_from_row)[0]

    async def delete_item(self, item_id: str) -> None:
        rows = await self._mutate("DELETE", "checklist_items", params={"id": f"eq.{item_id}"})
        if not rows:
            raise NotFoundError(f"Checklist item {item_id} not found")

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------
    @staticmethod
    def _project_from_row(row: dict[str, Any]) -> Project:
        return Project(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            created_at=row.get("created_at"),
        )

    @staticmethod
    def _note_from_row(row: dict[str, Any]) -> Note:
        return Note(
            id=str(row["id"]),
            project_id=str(row.get("project_id", "")),
            title=row.get("title") or "",
            content=row.get("content") or "",
            date=str(row.get("date") or ""),
            created_at=row.get("created_at"),
        )

    @staticmethod
    def _item_from_row(row: dict[str, Any]) -> ChecklistItem:
        return ChecklistItem(
            id=str(row["id"]),
            checklist_id=str(row.get("checklist_id", "")),
            text=row.get("text") or "",
            completed=bool(row.get("completed")),
        )

    @classmethod
    def _checklist_from_row(cls, row: dict[str, Any]) -> Checklist:
        return Checklist(
            id=str(row["id"]),
            project_id=str(row.get("project_id", "")),
            title=row.get("title") or "",
            items=[cls._item_from_row(item) for item in row.get("items") or []],
            created_at=row.get("created_at"),
        )


__all__ = [
    "ChecklistStore",
    "InMemoryNoteStore",
    "NoteStore",
    "NotFoundError",
    "RestNoteStore",
    "StorageError",
    "StoreError",
]
