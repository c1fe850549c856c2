"""Plain-text views of persisted notes for search and previews."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .document_models import ImageBlock, TextBlock
from .project_models import Note
from .serializer import decode, decode_structured

_TAG_RE = re.compile(r"<[^>]*>")


@dataclass(slots=True)
class NoteSummary:
    """Card preview of a note: leading prose and the first image."""

    text: str
    image: str | None = None


def plain_text(raw: str) -> str:
    """Return the searchable text of a persisted note.

    Text blocks are joined by a single space; image, table and chart blocks
    do not contribute. Legacy notes are returned as they are.
    """

    document = decode(raw)
    return " ".join(block.content for block in document.blocks if isinstance(block, TextBlock))


def note_matches(note: Note, query: str) -> bool:
    needle = query.casefold()
    if needle in note.title.casefold():
        return True
    return needle in plain_text(note.content).casefold()


def filter_notes(notes: Iterable[Note], query: str | None) -> list[Note]:
    """Keep notes whose title or text contains ``query``, in the given order."""

    if not query or not query.strip():
        return list(notes)
    return [note for note in notes if note_matches(note, query.strip())]


def summarize(raw: str) -> NoteSummary:
    document = decode_structured(raw)
    if document is None:
        return NoteSummary(text=_TAG_RE.sub("", raw))

    first_text = next((block.content for block in document.blocks if isinstance(block, TextBlock)), "")
    first_image = next((block.content for block in document.blocks if isinstance(block, ImageBlock)), None)
    return NoteSummary(text=first_text, image=first_image)


__all__ = ["NoteSummary", "filter_notes", "note_matches", "plain_text", "summarize"]
