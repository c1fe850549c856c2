"""Validation rules for project checklists, shared by every store."""
from __future__ import annotations

from .project_models import Checklist, ChecklistItem


class ChecklistError(ValueError):
    """Raised when a checklist or item request is rejected."""


class DuplicateItemError(ChecklistError):
    """Raised when an item with the same text is already in the checklist."""


def clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise ChecklistError("Checklist title must not be empty")
    return cleaned


def find_duplicate(checklist: Checklist, text: str) -> ChecklistItem | None:
    """Return the item whose text matches ``text`` ignoring case, if any."""

    needle = text.strip().casefold()
    for item in checklist.items:
        if item.text.strip().casefold() == needle:
            return item
    return None


def clean_item_text(checklist: Checklist, text: str) -> str:
    """Return the text to store for a new item of ``checklist``.

    Surrounding whitespace is dropped. Empty text and text already present
    in the checklist (compared case-insensitively) are rejected.
    """

    cleaned = text.strip()
    if not cleaned:
        raise ChecklistError("Checklist item text must not be empty")
    if find_duplicate(checklist, cleaned) is not None:
        raise DuplicateItemError(f"'{cleaned}' is already in the checklist")
    return cleaned


__all__ = ["ChecklistError", "DuplicateItemError", "clean_item_text", "clean_title", "find_duplicate"]
