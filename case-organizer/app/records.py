"""Pure mutation functions over a case collection snapshot.

Every operation takes a ``CaseState`` and returns a ``CaseState``. Nothing is
mutated in place: the target case is rebuilt with ``dataclasses.replace`` and
the new collection reuses every other case object, and the rebuilt case
reuses every sub-collection it did not touch.

Rejected intents (blank required text, unknown case or entity id) return the
input state object unchanged. The store reports nothing for them; surfaces
that want to show an error check the identity of the returned state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from app.models import (
    ENTITY_KINDS,
    TASK_STATUSES,
    Case,
    Document,
    EvidenceItem,
    FoiaRequest,
    Task,
    TimelineEvent,
    Witness,
    clean,
    new_entity_id,
    normalize_tags,
    today_iso,
)


@dataclass(frozen=True)
class CaseState:
    """The visible collection (newest first) and the selected case id."""

    cases: tuple[Case, ...] = ()
    selected_id: str | None = None


EMPTY_STATE = CaseState()


def enter_partition(cases: tuple[Case, ...]) -> CaseState:
    """State for a freshly loaded partition: the newest case is selected."""
    return CaseState(cases=tuple(cases), selected_id=cases[0].id if cases else None)


def find_case(state: CaseState, case_id: str | None) -> Case | None:
    for case in state.cases:
        if case.id == case_id:
            return case
    return None


def current_case(state: CaseState) -> Case | None:
    """Resolve the selection. A dangling selection resolves to None."""
    return find_case(state, state.selected_id)


def select_case(state: CaseState, case_id: str | None) -> CaseState:
    return replace(state, selected_id=case_id)


# ── Case-level operations ────────────────────────────────────────────────────


def create_case(state: CaseState, title: str, description: str = "") -> CaseState:
    title = clean(title)
    if not title:
        return state
    case = Case(id=new_entity_id(), title=title, description=clean(description))
    return CaseState(cases=(case, *state.cases), selected_id=case.id)


def _replace_case(state: CaseState, case_id: str, rebuild) -> CaseState:
    """Swap the case with *case_id* for ``rebuild(case)``.

    *rebuild* returns None to reject. Every other case is carried over as
    the same object.
    """
    for idx, case in enumerate(state.cases):
        if case.id != case_id:
            continue
        new_case = rebuild(case)
        if new_case is None or new_case == case:
            return state
        cases = state.cases[:idx] + (new_case,) + state.cases[idx + 1:]
        return replace(state, cases=cases)
    return state


def update_case(
    state: CaseState,
    case_id: str,
    title: str | None = None,
    description: str | None = None,
) -> CaseState:
    """Edit a case's title and/or description. A blank title is rejected."""
    changes = {}
    if title is not None:
        changes["title"] = clean(title)
        if not changes["title"]:
            return state
    if description is not None:
        changes["description"] = clean(description)
    if not changes:
        return state
    return _replace_case(state, case_id, lambda case: replace(case, **changes))


def delete_case(state: CaseState, case_id: str) -> CaseState:
    """Remove a case. Clears the selection if it pointed at that case."""
    remaining = tuple(c for c in state.cases if c.id != case_id)
    if len(remaining) == len(state.cases):
        return state
    selected = None if state.selected_id == case_id else state.selected_id
    return CaseState(cases=remaining, selected_id=selected)


# ── Appends ──────────────────────────────────────────────────────────────────


def _append(state: CaseState, case_id: str, entity) -> CaseState:
    attr = ENTITY_KINDS[entity.kind][1]
    return _replace_case(
        state,
        case_id,
        lambda case: replace(case, **{attr: (*getattr(case, attr), entity)}),
    )


def append_document(state: CaseState, case_id: str, name: str, content: str | None = None) -> CaseState:
    name = clean(name)
    if not name:
        return state
    return _append(state, case_id, Document(id=new_entity_id(), name=name, content=content or None))


def append_evidence(
    state: CaseState,
    case_id: str,
    name: str,
    content: str | None = None,
    tags=(),
) -> CaseState:
    name = clean(name)
    if not name:
        return state
    item = EvidenceItem(id=new_entity_id(), name=name, content=content or None, tags=normalize_tags(tags))
    return _append(state, case_id, item)


def append_timeline_event(
    state: CaseState,
    case_id: str,
    title: str,
    date: str | None = None,
    description: str = "",
) -> CaseState:
    """Append a timeline event. A missing or blank date means today."""
    title = clean(title)
    if not title:
        return state
    event = TimelineEvent(
        id=new_entity_id(),
        date=clean(date) or today_iso(),
        title=title,
        description=clean(description),
    )
    return _append(state, case_id, event)


def append_foia_request(state: CaseState, case_id: str, subject: str, description: str = "") -> CaseState:
    subject = clean(subject)
    if not subject:
        return state
    return _append(state, case_id, FoiaRequest(id=new_entity_id(), subject=subject, description=clean(description)))


def append_witness(state: CaseState, case_id: str, name: str, description: str = "") -> CaseState:
    name = clean(name)
    if not name:
        return state
    return _append(state, case_id, Witness(id=new_entity_id(), name=name, description=clean(description)))


def append_task(state: CaseState, case_id: str, title: str, status: str = "open") -> CaseState:
    """Append a task. The status must be one of ``TASK_STATUSES``."""
    title = clean(title)
    status = clean(status)
    if not title or status not in TASK_STATUSES:
        return state
    return _append(state, case_id, Task(id=new_entity_id(), title=title, status=status))


# ── Sub-entity edit / delete ─────────────────────────────────────────────────

# Text fields that may be edited per kind; content, tags and task status have
# their own paths.
_EDITABLE_FIELDS: dict[str, tuple[str, ...]] = {
    "document": ("name",),
    "evidence": ("name",),
    "timeline": ("date", "title", "description"),
    "foia": ("subject", "description"),
    "witness": ("name", "description"),
    "task": ("title",),
}


def _rebuild_entity(state: CaseState, case_id: str, kind: str, entity_id: str, rebuild) -> CaseState:
    """Replace one sub-entity with ``rebuild(entity)``; None rejects."""
    if kind not in ENTITY_KINDS:
        return state
    attr = ENTITY_KINDS[kind][1]

    def rebuild_case(case: Case) -> Case | None:
        items = getattr(case, attr)
        for idx, entity in enumerate(items):
            if entity.id != entity_id:
                continue
            new_entity = rebuild(entity)
            if new_entity is None or new_entity == entity:
                return None
            return replace(case, **{attr: items[:idx] + (new_entity,) + items[idx + 1:]})
        return None

    return _replace_case(state, case_id, rebuild_case)


def update_entity(state: CaseState, case_id: str, kind: str, entity_id: str, **changes) -> CaseState:
    """Edit text fields of one sub-entity. The id never changes.

    Unknown fields are ignored. A change that blanks the required field is
    rejected; a blank timeline date keeps the existing date.
    """
    allowed = _EDITABLE_FIELDS.get(kind, ())
    cleaned = {k: clean(v) for k, v in changes.items() if k in allowed and v is not None}
    if kind == "timeline" and cleaned.get("date") == "":
        cleaned.pop("date")
    if not cleaned:
        return state

    def rebuild(entity):
        if entity.required_field in cleaned and not cleaned[entity.required_field]:
            return None
        return replace(entity, **cleaned)

    return _rebuild_entity(state, case_id, kind, entity_id, rebuild)


def delete_entity(state: CaseState, case_id: str, kind: str, entity_id: str) -> CaseState:
    if kind not in ENTITY_KINDS:
        return state
    attr = ENTITY_KINDS[kind][1]

    def rebuild_case(case: Case) -> Case | None:
        items = getattr(case, attr)
        kept = tuple(e for e in items if e.id != entity_id)
        if len(kept) == len(items):
            return None
        return replace(case, **{attr: kept})

    return _replace_case(state, case_id, rebuild_case)


# ── Evidence tags ────────────────────────────────────────────────────────────


def add_evidence_tag(state: CaseState, case_id: str, evidence_id: str, tag: str) -> CaseState:
    tag = clean(tag)
    if not tag:
        return state

    def rebuild(item: EvidenceItem) -> EvidenceItem | None:
        if tag in item.tags:
            return None
        return replace(item, tags=(*item.tags, tag))

    return _rebuild_entity(state, case_id, "evidence", evidence_id, rebuild)


def remove_evidence_tag(state: CaseState, case_id: str, evidence_id: str, tag: str) -> CaseState:
    tag = clean(tag)

    def rebuild(item: EvidenceItem) -> EvidenceItem | None:
        if tag not in item.tags:
            return None
        return replace(item, tags=tuple(t for t in item.tags if t != tag))

    return _rebuild_entity(state, case_id, "evidence", evidence_id, rebuild)


# ── Task status ──────────────────────────────────────────────────────────────


def set_task_status(state: CaseState, case_id: str, task_id: str, status: str) -> CaseState:
    status = clean(status)
    if status not in TASK_STATUSES:
        return state
    return _rebuild_entity(state, case_id, "task", task_id, lambda task: replace(task, status=status))
