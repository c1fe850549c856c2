"""Records handed over by the storage collaborator."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Project:
    """A named collection of notes; the unit of export."""

    id: str
    name: str
    description: str = ""
    created_at: str | None = None


@dataclass(slots=True)
class Note:
    """A single dated note of a project.

    Parameters
    ----------
    content:
        Persisted body as produced by :func:`research_notes.serializer.encode`
        or a legacy plain-text string.
    date:
        Calendar date of the note in ``YYYY-MM-DD`` form.
    """

    id: str
    project_id: str
    title: str
    content: str
    date: str
    created_at: str | None = None


@dataclass(slots=True)
class ChecklistItem:
    id: str
    checklist_id: str
    text: str
    completed: bool = False


@dataclass(slots=True)
class Checklist:
    """A titled to-do list attached to a project."""

    id: str
    project_id: str
    title: str
    items: list[ChecklistItem] = field(default_factory=list)
    created_at: str | None = None

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.items if item.completed)


__all__ = ["Checklist", "ChecklistItem", "Note", "Project"]
