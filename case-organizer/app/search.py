"""Cross-case search and plain-text case summaries.

Search is case-insensitive substring matching over every case and its
sub-collections. Hits come back in scan order: cases in collection order,
and within a case the title first, then documents, evidence, timeline, FOIA
requests, witnesses and tasks, each in insertion order. There is no ranking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from shared.config_store import get_config_value

from app.config import TOOL_NAME
from app.models import (
    Case,
    Document,
    EvidenceItem,
    FoiaRequest,
    SubEntity,
    Task,
    TimelineEvent,
    Witness,
)

_DEFAULT_NO_SELECTION_MESSAGE = "Select a case first to generate a summary."


class HitType(str, Enum):
    CASE = "Case"
    DOCUMENT = "Document"
    EVIDENCE = "Evidence"
    TIMELINE = "Timeline"
    FOIA = "FOIA"
    WITNESS = "Witness"
    TASK = "Task"


@dataclass(frozen=True)
class SearchHit:
    type: HitType
    label: str
    case_id: str

    def to_dict(self) -> dict:
        return {"type": self.type.value, "label": self.label, "case_id": self.case_id}


def _contains(text: str | None, needle: str) -> bool:
    return bool(text) and needle in text.lower()


def _match_entity(entity: SubEntity, needle: str) -> tuple[HitType, str] | None:
    """Return (type, label) if *entity* matches, else None. One hit per entity."""
    if isinstance(entity, Document):
        return (HitType.DOCUMENT, entity.name) if _contains(entity.name, needle) else None
    if isinstance(entity, EvidenceItem):
        return (HitType.EVIDENCE, entity.name) if _contains(entity.name, needle) else None
    if isinstance(entity, TimelineEvent):
        if _contains(entity.title, needle) or _contains(entity.description, needle):
            return HitType.TIMELINE, f"{entity.date}: {entity.title}"
        return None
    if isinstance(entity, FoiaRequest):
        if _contains(entity.subject, needle) or _contains(entity.description, needle):
            return HitType.FOIA, entity.subject
        return None
    if isinstance(entity, Witness):
        if _contains(entity.name, needle) or _contains(entity.description, needle):
            return HitType.WITNESS, entity.name
        return None
    if isinstance(entity, Task):
        return (HitType.TASK, entity.title) if _contains(entity.title, needle) else None
    raise TypeError(f"Unknown entity type: {type(entity).__name__}")


def search_cases(cases, query: str | None) -> list[SearchHit]:
    """Find every case and sub-entity whose text contains *query*.

    A blank query returns no hits.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return []
    hits: list[SearchHit] = []
    for case in cases:
        if _contains(case.title, needle):
            hits.append(SearchHit(HitType.CASE, case.title, case.id))
        for collection in (case.documents, case.evidence, case.timeline, case.foia, case.witnesses, case.tasks):
            for entity in collection:
                found = _match_entity(entity, needle)
                if found is not None:
                    hits.append(SearchHit(found[0], found[1], case.id))
    return hits


# ── Summaries ────────────────────────────────────────────────────────────────


def no_selection_message() -> str:
    return get_config_value(TOOL_NAME, "no_selection_message", _DEFAULT_NO_SELECTION_MESSAGE)


def timeline_in_display_order(case: Case) -> list[TimelineEvent]:
    """Events sorted ascending by date; equal dates keep insertion order."""
    return sorted(case.timeline, key=lambda ev: ev.date)


def _with_description(head: str, description: str) -> str:
    return f"{head} ({description})" if description else head


def summarize_case(case: Case | None) -> str:
    """Render a fixed-order plain-text summary of one case.

    Each line ends with a period and is omitted when its source is empty.
    With no case, returns the instruction to select one.
    """
    if case is None:
        return no_selection_message()

    lines: list[str] = []
    if case.title:
        lines.append(f"Case Title: {case.title}.")
    if case.description:
        lines.append(f"Description: {case.description}.")
    if case.documents:
        lines.append(f"Documents: {', '.join(d.name for d in case.documents)}.")
    if case.evidence:
        lines.append(f"Evidence: {', '.join(e.name for e in case.evidence)}.")
    if case.timeline:
        entries = [_with_description(f"{ev.date}: {ev.title}", ev.description) for ev in timeline_in_display_order(case)]
        lines.append(f"Timeline: {'; '.join(entries)}.")
    if case.foia:
        entries = [_with_description(fr.subject, fr.description) for fr in case.foia]
        lines.append(f"FOIA Requests: {'; '.join(entries)}.")
    if case.witnesses:
        entries = [_with_description(w.name, w.description) for w in case.witnesses]
        lines.append(f"Witnesses: {'; '.join(entries)}.")
    if case.tasks:
        entries = [f"{t.title} [{t.status}]" for t in case.tasks]
        lines.append(f"Tasks: {'; '.join(entries)}.")
    return "".join(line + "\n" for line in lines)
