"""Case data model and JSON (de)serialization for the Case Organizer.

A case owns six ordered sub-collections: documents, evidence, timeline
events, FOIA requests, witnesses and tasks. Every entity is a frozen
dataclass and every collection is a tuple, so a new snapshot can share any
untouched case or sub-collection with the previous one by reference.

Serialized shape (one JSON array per account partition)::

    [{"id", "title", "description",
      "documents": [{"id", "name", "content"?}],
      "evidence":  [{"id", "name", "content"?, "tags"?}],
      "timeline":  [{"id", "date", "title", "description"}],
      "foia":      [{"id", "subject", "description"}],
      "witnesses": [{"id", "name", "description"}],
      "tasks":     [{"id", "title", "status"}]}]
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import date
from typing import ClassVar

logger = logging.getLogger(__name__)

# ── Id generation ────────────────────────────────────────────────────────────

def new_entity_id() -> str:
    """Millisecond timestamp in hex followed by 8 random hex chars."""
    return f"{time.time_ns() // 1_000_000:x}{uuid.uuid4().hex[:8]}"


def today_iso() -> str:
    return date.today().isoformat()


def clean(text: str | None) -> str:
    """Trim free text; ``None`` becomes the empty string."""
    return (text or "").strip()


def _required(d: dict, key: str) -> str:
    """Read a required text field; null or blank counts as missing."""
    value = d.get(key)
    text = clean(str(value)) if value is not None else ""
    if not text:
        raise KeyError(key)
    return text


# ── Sub-entities ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Document:
    """A named document, optionally with an attached file."""

    kind: ClassVar[str] = "document"
    required_field: ClassVar[str] = "name"

    id: str
    name: str
    content: str | None = None   # opaque content reference (data URL)

    def to_dict(self) -> dict:
        d = {"id": self.id, "name": self.name}
        if self.content is not None:
            d["content"] = self.content
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Document:
        return cls(id=_required(d, "id"), name=_required(d, "name"), content=d.get("content"))


@dataclass(frozen=True)
class EvidenceItem:
    """A piece of evidence with an optional file and free-form tags."""

    kind: ClassVar[str] = "evidence"
    required_field: ClassVar[str] = "name"

    id: str
    name: str
    content: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d = {"id": self.id, "name": self.name}
        if self.content is not None:
            d["content"] = self.content
        if self.tags:
            d["tags"] = list(self.tags)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> EvidenceItem:
        raw_tags = d.get("tags") or []
        return cls(
            id=_required(d, "id"),
            name=_required(d, "name"),
            content=d.get("content"),
            tags=normalize_tags(raw_tags if isinstance(raw_tags, list) else []),
        )


@dataclass(frozen=True)
class TimelineEvent:
    """A dated event. ``date`` is an ISO calendar date (YYYY-MM-DD)."""

    kind: ClassVar[str] = "timeline"
    required_field: ClassVar[str] = "title"

    id: str
    date: str
    title: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "date": self.date, "title": self.title, "description": self.description}

    @classmethod
    def from_dict(cls, d: dict) -> TimelineEvent:
        return cls(
            id=_required(d, "id"),
            date=str(d.get("date") or ""),
            title=_required(d, "title"),
            description=str(d.get("description") or ""),
        )


@dataclass(frozen=True)
class FoiaRequest:
    kind: ClassVar[str] = "foia"
    required_field: ClassVar[str] = "subject"

    id: str
    subject: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "subject": self.subject, "description": self.description}

    @classmethod
    def from_dict(cls, d: dict) -> FoiaRequest:
        return cls(id=_required(d, "id"), subject=_required(d, "subject"), description=str(d.get("description") or ""))


@dataclass(frozen=True)
class Witness:
    kind: ClassVar[str] = "witness"
    required_field: ClassVar[str] = "name"

    id: str
    name: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, d: dict) -> Witness:
        return cls(id=_required(d, "id"), name=_required(d, "name"), description=str(d.get("description") or ""))


TASK_STATUSES = ("open", "in progress", "done")


@dataclass(frozen=True)
class Task:
    """A to-do item on a case. New tasks start out ``open``."""

    kind: ClassVar[str] = "task"
    required_field: ClassVar[str] = "title"

    id: str
    title: str
    status: str = "open"

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "status": self.status}

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        return cls(id=_required(d, "id"), title=_required(d, "title"), status=clean(str(d.get("status") or "")) or "open")


SubEntity = Document | EvidenceItem | TimelineEvent | FoiaRequest | Witness | Task

# kind -> (entity class, Case attribute holding the collection)
ENTITY_KINDS: dict[str, tuple[type, str]] = {
    "document": (Document, "documents"),
    "evidence": (EvidenceItem, "evidence"),
    "timeline": (TimelineEvent, "timeline"),
    "foia": (FoiaRequest, "foia"),
    "witness": (Witness, "witnesses"),
    "task": (Task, "tasks"),
}


def normalize_tags(tags) -> tuple[str, ...]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    seen: list[str] = []
    for tag in tags:
        t = clean(str(tag))
        if t and t not in seen:
            seen.append(t)
    return tuple(seen)


# ── Case ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Case:
    """Top-level aggregate. Sub-collections are never None."""

    id: str
    title: str
    description: str = ""
    documents: tuple[Document, ...] = ()
    evidence: tuple[EvidenceItem, ...] = ()
    timeline: tuple[TimelineEvent, ...] = ()
    foia: tuple[FoiaRequest, ...] = ()
    witnesses: tuple[Witness, ...] = ()
    tasks: tuple[Task, ...] = ()

    def collection(self, kind: str) -> tuple:
        return getattr(self, ENTITY_KINDS[kind][1])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "documents": [d.to_dict() for d in self.documents],
            "evidence": [e.to_dict() for e in self.evidence],
            "timeline": [t.to_dict() for t in self.timeline],
            "foia": [f.to_dict() for f in self.foia],
            "witnesses": [w.to_dict() for w in self.witnesses],
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, d: dict) -> Case:
        return cls(
            id=_required(d, "id"),
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            documents=_load_entities(Document, d.get("documents")),
            evidence=_load_entities(EvidenceItem, d.get("evidence")),
            timeline=_load_entities(TimelineEvent, d.get("timeline")),
            foia=_load_entities(FoiaRequest, d.get("foia")),
            witnesses=_load_entities(Witness, d.get("witnesses")),
            tasks=_load_entities(Task, d.get("tasks")),
        )


def _load_entities(cls: type, raw) -> tuple:
    """Rebuild one sub-collection, skipping entries that are not usable."""
    if not isinstance(raw, list):
        return ()
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(cls.from_dict(entry))
        except KeyError:
            logger.warning("Skipping %s entry without id or %s", cls.kind, cls.required_field)
    return tuple(items)


# ── Collection serialization ─────────────────────────────────────────────────


def cases_to_json(cases: tuple[Case, ...] | list[Case]) -> str:
    return json.dumps([c.to_dict() for c in cases], indent=2, ensure_ascii=False)


def cases_from_json(text: str | None) -> tuple[Case, ...]:
    """Parse a stored collection.

    Anything that is not a JSON array (missing value, invalid JSON, a single
    object) is an empty collection. Array entries that are not case objects
    are skipped.
    """
    if not text:
        return ()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Stored case collection is not valid JSON: %s", exc)
        return ()
    if not isinstance(data, list):
        logger.warning("Stored case collection is a %s, not an array", type(data).__name__)
        return ()
    cases = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed case entry")
            continue
        try:
            cases.append(Case.from_dict(entry))
        except KeyError:
            logger.warning("Skipping case entry without an id")
    return tuple(cases)
