"""FastAPI backend for the Case Organizer tool.

Exposes the workspace intents over local HTTP: account login/sign-up,
case CRUD and selection, appending and editing documents, evidence, timeline
events, FOIA requests, witnesses and tasks, cross-case search, and plain-text
or Word summaries. The dashboard works without this server; both drive the same
``CaseWorkspace``.

The record store itself drops invalid intents silently. This layer turns
those no-ops into HTTP errors so API clients can tell what happened.
"""

from __future__ import annotations

import io
import re
from datetime import date
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel

from shared.kv_store import JsonFileStore

from app.config import configure_logging, get_settings
from app.ingest import from_content_ref
from app.models import ENTITY_KINDS, TASK_STATUSES, Case
from app.search import summarize_case, timeline_in_display_order
from app.workspace import CaseWorkspace

app = FastAPI(title="Case Organizer API", version="1.0.0")

_workspace: CaseWorkspace | None = None


def get_workspace() -> CaseWorkspace:
    """Return the process-wide workspace, rehydrating it on first use."""
    global _workspace
    if _workspace is None:
        settings = get_settings()
        configure_logging(settings)
        _workspace = CaseWorkspace(JsonFileStore(settings.data_dir)).start()
    return _workspace


# ── Request schemas ──────────────────────────────────────────────────────────


class Credentials(BaseModel):
    username: str
    password: str


class CaseIn(BaseModel):
    title: str
    description: str = ""


class CaseUpdate(BaseModel):
    title: str | None = None
    description: str | None = None


class TimelineIn(BaseModel):
    title: str
    date: str | None = None
    description: str = ""


class FoiaIn(BaseModel):
    subject: str
    description: str = ""


class WitnessIn(BaseModel):
    name: str
    description: str = ""


class EntityUpdate(BaseModel):
    name: str | None = None
    date: str | None = None
    title: str | None = None
    subject: str | None = None
    description: str | None = None


class TaskIn(BaseModel):
    title: str
    status: str = "open"


class TaskStatusIn(BaseModel):
    status: str


class TagIn(BaseModel):
    tag: str


# ── Helpers ──────────────────────────────────────────────────────────────────


def _require_account() -> CaseWorkspace:
    ws = get_workspace()
    if ws.account_id is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return ws


def _require_case(ws: CaseWorkspace, case_id: str) -> Case:
    case = ws.find_case(case_id)
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


# URL collection name -> entity kind
_COLLECTIONS: dict[str, str] = {attr: kind for kind, (_cls, attr) in ENTITY_KINDS.items()}


def _require_kind(collection: str) -> str:
    if collection not in _COLLECTIONS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown collection '{collection}'. Must be one of: {', '.join(_COLLECTIONS)}",
        )
    return _COLLECTIONS[collection]


def _require_entity(case: Case, kind: str, entity_id: str):
    for entity in case.collection(kind):
        if entity.id == entity_id:
            return entity
    raise HTTPException(status_code=404, detail="Entry not found")


def _appended(ws: CaseWorkspace, case_id: str, ok: bool, field: str) -> dict:
    if not ok:
        raise HTTPException(status_code=422, detail=f"'{field}' must not be blank")
    return ws.find_case(case_id).to_dict()


def _require_status(status: str) -> None:
    if status.strip() not in TASK_STATUSES:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown status '{status}'. Must be one of: {', '.join(TASK_STATUSES)}",
        )


def _attachment(filename: str) -> str:
    """Content-Disposition value with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = re.sub(r"[^A-Za-z0-9.-]+", "_", filename).strip("_") or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# ── Accounts ─────────────────────────────────────────────────────────────────


@app.post("/api/accounts/signup", status_code=201)
def api_sign_up(body: Credentials) -> dict:
    ws = get_workspace()
    if not body.username.strip() or not body.password:
        raise HTTPException(status_code=422, detail="Username and password are required")
    if not ws.sign_up(body.username, body.password):
        raise HTTPException(status_code=409, detail="Username already exists")
    return {"account": ws.account_id}


@app.post("/api/accounts/login")
def api_login(body: Credentials) -> dict:
    ws = get_workspace()
    if not ws.login(body.username, body.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return {"account": ws.account_id}


@app.post("/api/accounts/logout")
def api_logout() -> dict:
    get_workspace().logout()
    return {"account": None}


@app.get("/api/accounts/current")
def api_current_account() -> dict:
    return {"account": get_workspace().account_id}


# ── Cases ────────────────────────────────────────────────────────────────────


@app.get("/api/cases")
def api_list_cases() -> dict:
    """Return the active account's cases (newest first) and the selection."""
    ws = _require_account()
    return {
        "cases": [c.to_dict() for c in ws.cases],
        "selected_id": ws.state.selected_id,
    }


@app.post("/api/cases", status_code=201)
def api_create_case(body: CaseIn) -> dict:
    ws = _require_account()
    case = ws.create_case(body.title, body.description)
    if case is None:
        raise HTTPException(status_code=422, detail="'title' must not be blank")
    return case.to_dict()


@app.get("/api/cases/current")
def api_current_case() -> dict:
    ws = _require_account()
    case = ws.current_case
    if case is None:
        raise HTTPException(status_code=404, detail="No case selected")
    return case.to_dict()


@app.get("/api/cases/{case_id}")
def api_get_case(case_id: str) -> dict:
    ws = _require_account()
    return _require_case(ws, case_id).to_dict()


@app.put("/api/cases/{case_id}")
def api_update_case(case_id: str, body: CaseUpdate) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    if body.title is not None and not body.title.strip():
        raise HTTPException(status_code=422, detail="'title' must not be blank")
    ws.update_case(case_id, title=body.title, description=body.description)
    return ws.find_case(case_id).to_dict()


@app.delete("/api/cases/{case_id}")
def api_delete_case(case_id: str) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    ws.delete_case(case_id)
    return {"deleted": True, "id": case_id, "selected_id": ws.state.selected_id}


@app.post("/api/cases/{case_id}/select")
def api_select_case(case_id: str) -> dict:
    """Select a case. Unknown ids are accepted and resolve to no current case."""
    ws = _require_account()
    ws.select_case(case_id)
    current = ws.current_case
    return {"selected_id": case_id, "case": current.to_dict() if current else None}


# ── Sub-collections ──────────────────────────────────────────────────────────


@app.post("/api/cases/{case_id}/documents", status_code=201)
async def api_add_document(
    case_id: str,
    name: str = Form(...),
    file: UploadFile | None = File(None),
) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    data = await file.read() if file is not None else None
    ok = ws.add_document(case_id, name, data, file.filename if file is not None else "")
    return _appended(ws, case_id, ok, "name")


@app.post("/api/cases/{case_id}/evidence", status_code=201)
async def api_add_evidence(
    case_id: str,
    name: str = Form(...),
    tags: str = Form(""),
    file: UploadFile | None = File(None),
) -> dict:
    """Add evidence. ``tags`` is a comma-separated list."""
    ws = _require_account()
    _require_case(ws, case_id)
    data = await file.read() if file is not None else None
    ok = ws.add_evidence(
        case_id,
        name,
        data,
        file.filename if file is not None else "",
        tags=tags.split(","),
    )
    return _appended(ws, case_id, ok, "name")


@app.post("/api/cases/{case_id}/timeline", status_code=201)
def api_add_timeline_event(case_id: str, body: TimelineIn) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    ok = ws.add_timeline_event(case_id, body.title, date=body.date, description=body.description)
    return _appended(ws, case_id, ok, "title")


@app.post("/api/cases/{case_id}/foia", status_code=201)
def api_add_foia_request(case_id: str, body: FoiaIn) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    ok = ws.add_foia_request(case_id, body.subject, body.description)
    return _appended(ws, case_id, ok, "subject")


@app.post("/api/cases/{case_id}/witnesses", status_code=201)
def api_add_witness(case_id: str, body: WitnessIn) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    ok = ws.add_witness(case_id, body.name, body.description)
    return _appended(ws, case_id, ok, "name")


@app.post("/api/cases/{case_id}/tasks", status_code=201)
def api_add_task(case_id: str, body: TaskIn) -> dict:
    ws = _require_account()
    _require_case(ws, case_id)
    _require_status(body.status)
    ok = ws.add_task(case_id, body.title, body.status)
    return _appended(ws, case_id, ok, "title")


@app.put("/api/cases/{case_id}/tasks/{task_id}/status")
def api_set_task_status(case_id: str, task_id: str, body: TaskStatusIn) -> dict:
    ws = _require_account()
    _require_entity(_require_case(ws, case_id), "task", task_id)
    _require_status(body.status)
    ws.set_task_status(case_id, task_id, body.status)
    return _require_entity(ws.find_case(case_id), "task", task_id).to_dict()


@app.put("/api/cases/{case_id}/{collection}/{entity_id}")
def api_update_entity(case_id: str, collection: str, entity_id: str, body: EntityUpdate) -> dict:
    ws = _require_account()
    kind = _require_kind(collection)
    entity = _require_entity(_require_case(ws, case_id), kind, entity_id)
    changes = body.model_dump(exclude_none=True)
    required = changes.get(entity.required_field)
    if required is not None and not required.strip():
        raise HTTPException(status_code=422, detail=f"'{entity.required_field}' must not be blank")
    ws.update_entity(case_id, kind, entity_id, **changes)
    return ws.find_case(case_id).to_dict()


@app.delete("/api/cases/{case_id}/{collection}/{entity_id}")
def api_delete_entity(case_id: str, collection: str, entity_id: str) -> dict:
    ws = _require_account()
    kind = _require_kind(collection)
    _require_entity(_require_case(ws, case_id), kind, entity_id)
    ws.delete_entity(case_id, kind, entity_id)
    return {"deleted": True, "id": entity_id}


@app.post("/api/cases/{case_id}/evidence/{entity_id}/tags")
def api_add_tag(case_id: str, entity_id: str, body: TagIn) -> dict:
    ws = _require_account()
    _require_entity(_require_case(ws, case_id), "evidence", entity_id)
    ws.add_evidence_tag(case_id, entity_id, body.tag)
    return _require_entity(ws.find_case(case_id), "evidence", entity_id).to_dict()


@app.delete("/api/cases/{case_id}/evidence/{entity_id}/tags/{tag}")
def api_remove_tag(case_id: str, entity_id: str, tag: str) -> dict:
    ws = _require_account()
    _require_entity(_require_case(ws, case_id), "evidence", entity_id)
    ws.remove_evidence_tag(case_id, entity_id, tag)
    return _require_entity(ws.find_case(case_id), "evidence", entity_id).to_dict()


@app.get("/api/cases/{case_id}/{collection}/{entity_id}/content")
def api_download_content(case_id: str, collection: str, entity_id: str) -> Response:
    """Return the attached file of a document or evidence item."""
    ws = _require_account()
    entity = _require_entity(_require_case(ws, case_id), _require_kind(collection), entity_id)
    content = getattr(entity, "content", None)
    if not content:
        raise HTTPException(status_code=404, detail="No file attached")
    try:
        mime, data = from_content_ref(content)
    except ValueError:
        raise HTTPException(status_code=422, detail="Stored file reference is not a data URL")
    return Response(content=data, media_type=mime)


# ── Search & summaries ───────────────────────────────────────────────────────


@app.get("/api/search")
def api_search(q: str = Query("")) -> list[dict]:
    ws = _require_account()
    return [hit.to_dict() for hit in ws.set_search_query(q)]


@app.get("/api/summary")
def api_current_summary() -> dict:
    """Summary of the selected case, or the instruction to select one."""
    ws = _require_account()
    return {"case_id": ws.state.selected_id, "summary": ws.summary()}


@app.get("/api/cases/{case_id}/summary")
def api_case_summary(case_id: str) -> dict:
    ws = _require_account()
    return {"case_id": case_id, "summary": summarize_case(_require_case(ws, case_id))}


@app.get("/api/cases/{case_id}/summary/docx")
def api_export_summary_docx(case_id: str):
    """Export a case summary as a Word document with a chronological table."""
    from docx import Document
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.shared import Inches, Pt

    ws = _require_account()
    case = _require_case(ws, case_id)

    doc = Document()
    for section in doc.sections:
        section.top_margin = Inches(1)
        section.bottom_margin = Inches(1)
        section.left_margin = Inches(1)
        section.right_margin = Inches(1)

    def _run(para, text: str, size: int = 11, bold: bool = False, italic: bool = False):
        r = para.add_run(text)
        r.font.name = "Times New Roman"
        r.font.size = Pt(size)
        r.bold = bold
        r.italic = italic
        return r

    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _run(p, "CASE SUMMARY", size=14, bold=True)

    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _run(p, f"Prepared {date.today().strftime('%B %d, %Y')}", size=9, italic=True)

    for line in summarize_case(case).splitlines():
        _run(doc.add_paragraph(), line)

    events = timeline_in_display_order(case)
    if events:
        doc.add_paragraph()
        table = doc.add_table(rows=1, cols=3)
        table.style = "Table Grid"
        for i, header_text in enumerate(["Date", "Event", "Description"]):
            cell = table.rows[0].cells[i]
            cell.text = ""
            _run(cell.paragraphs[0], header_text, size=10, bold=True)
        for ev in events:
            row = table.add_row()
            for i, val in enumerate([ev.date, ev.title, ev.description]):
                cell = row.cells[i]
                cell.text = ""
                _run(cell.paragraphs[0], val, size=10)

    buf = io.BytesIO()
    doc.save(buf)
    buf.seek(0)

    filename = f"Summary_{case.title or 'case'}.docx".replace(" ", "_")
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": _attachment(filename)},
    )
