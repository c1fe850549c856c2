"""Tests for checklist title and item validation."""

from __future__ import annotations

import pytest

from research_notes.checklists import ChecklistError, DuplicateItemError, clean_item_text, clean_title, find_duplicate
from research_notes.project_models import Checklist, ChecklistItem


@pytest.fixture
def checklist() -> Checklist:
    return Checklist(
        id="c1",
        project_id="p1",
        title="Lab Supplies",
        items=[
            ChecklistItem(id="i1", checklist_id="c1", text="Pipettes", completed=True),
            ChecklistItem(id="i2", checklist_id="c1", text="Nitrile gloves"),
        ],
    )


def test_clean_title_trims_and_rejects_empty() -> None:
    assert clean_title("  Field kit ") == "Field kit"
    with pytest.raises(ChecklistError):
        clean_title("   ")


@pytest.mark.parametrize("text", ["pipettes", "PIPETTES", "  Pipettes  ", "nitrile GLOVES"])
def test_duplicates_are_detected_ignoring_case(checklist: Checklist, text: str) -> None:
    assert find_duplicate(checklist, text) is not None
    with pytest.raises(DuplicateItemError):
        clean_item_text(checklist, text)


def test_new_item_text_is_trimmed(checklist: Checklist) -> None:
    assert find_duplicate(checklist, "Beakers") is None
    assert clean_item_text(checklist, "  Beakers ") == "Beakers"


def test_empty_item_text_is_rejected(checklist: Checklist) -> None:
    with pytest.raises(ChecklistError) as excinfo:
        clean_item_text(checklist, " \t ")

    assert not isinstance(excinfo.value, DuplicateItemError)


def test_completed_count(checklist: Checklist) -> None:
    assert checklist.completed_count == 1
    assert Checklist(id="c2", project_id="p1", title="Empty").completed_count == 0
