"""Case Organizer — Streamlit dashboard.

Single-device case records: each account keeps its own cases, and each case
collects documents, evidence, timeline events, FOIA requests, witnesses and
tasks. Includes cross-case search and a plain-text case summary.

Run with ``streamlit run case-organizer/app/dashboard.py``.
"""

from __future__ import annotations

import html as html_mod
import sys
from pathlib import Path

import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from shared.kv_store import JsonFileStore

from app.config import configure_logging, get_settings
from app.ingest import download_filename, from_content_ref
from app.models import TASK_STATUSES
from app.search import summarize_case, timeline_in_display_order
from app.workspace import CaseWorkspace

# ── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Case Organizer",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap');
#MainMenu, footer,
div[data-testid="stToolbar"] { display: none !important; }
.stApp { font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif; }
.section-header {
    color: #1a2744;
    font-size: 1.05rem;
    font-weight: 700;
    margin-bottom: 12px;
    padding-bottom: 8px;
    border-bottom: 2px solid #e2e8f0;
}
.hit-type {
    background: #f0f4fa;
    border-radius: 10px;
    padding: 1px 7px;
    font-size: 0.72rem;
    font-weight: 600;
    color: #4a7ddb;
    margin-right: 6px;
}
</style>
""",
    unsafe_allow_html=True,
)

# ── Workspace ────────────────────────────────────────────────────────────────


def _workspace() -> CaseWorkspace:
    """One workspace per browser session, rehydrated on first load."""
    if "workspace" not in st.session_state:
        settings = get_settings()
        configure_logging(settings)
        st.session_state.workspace = CaseWorkspace(JsonFileStore(settings.data_dir)).start()
    return st.session_state.workspace


ws = _workspace()


def _section(title: str) -> None:
    st.markdown(f'<div class="section-header">{html_mod.escape(title)}</div>', unsafe_allow_html=True)


def _entry_with_download(label: str, name: str, content: str | None, key: str) -> None:
    """List entry with a download button when a file is attached."""
    c1, c2 = st.columns([5, 1])
    with c1:
        st.markdown(f"- {html_mod.escape(label)}")
    if not content:
        return
    with c2:
        try:
            mime, data = from_content_ref(content)
        except ValueError:
            st.caption("File unavailable")
            return
        st.download_button(
            "Download",
            data=data,
            file_name=download_filename(name, mime),
            mime=mime,
            key=key,
            use_container_width=True,
        )


# ── Login / sign-up ──────────────────────────────────────────────────────────


def _render_auth() -> None:
    st.markdown("## Case Organizer")
    mode = st.radio("Account", ["Log In", "Sign Up"], horizontal=True, label_visibility="collapsed")
    _l, col, _r = st.columns([1, 1, 1])
    with col:
        with st.form("_account_form"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button(mode, use_container_width=True)
        if submitted:
            if mode == "Sign Up":
                if ws.sign_up(username, password):
                    st.rerun()
                st.error("Choose a username and password that are not already taken.")
            else:
                if ws.login(username, password):
                    st.rerun()
                st.error("Invalid username or password.")


if ws.account_id is None:
    _render_auth()
    st.stop()


# ── Sidebar: account, new case, case list ────────────────────────────────────

with st.sidebar:
    st.caption(f"Logged in as **{ws.account_id}**")
    if st.button("Log Out", type="tertiary"):
        ws.logout()
        st.rerun()

    _section("New Case")
    with st.form("_new_case", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description", height=80)
        if st.form_submit_button("Add Case", use_container_width=True):
            ws.create_case(title, description)

    _section("Cases")
    if not ws.cases:
        st.caption("No cases yet")
    for case in ws.cases:
        label = case.title or "Untitled case"
        is_current = case.id == ws.state.selected_id
        if st.button(label, key=f"case_{case.id}", type="primary" if is_current else "secondary", use_container_width=True):
            ws.select_case(case.id)
            st.rerun()

# ── Search ───────────────────────────────────────────────────────────────────

query = st.text_input("Search", placeholder="Search cases, documents, evidence, timeline, FOIA, witnesses")
hits = ws.set_search_query(query)
for idx, hit in enumerate(hits):
    c1, c2 = st.columns([6, 1])
    with c1:
        st.markdown(
            f'<span class="hit-type">{hit.type.value}</span>{html_mod.escape(hit.label)}',
            unsafe_allow_html=True,
        )
    with c2:
        if st.button("Open", key=f"hit_{idx}"):
            ws.select_case(hit.case_id)
            st.rerun()

# ── Current case ─────────────────────────────────────────────────────────────

current = ws.current_case
if current is None:
    st.info("Select or create a case to get started.")
    st.stop()

st.markdown(f"### {html_mod.escape(current.title or 'Untitled case')}")
if current.description:
    st.caption(current.description)
if st.button("Delete Case", type="tertiary"):
    ws.delete_case(current.id)
    st.rerun()

tab_docs, tab_ev, tab_tl, tab_foia, tab_wit, tab_task, tab_sum = st.tabs(
    ["Documents", "Evidence", "Timeline", "FOIA", "Witnesses", "Tasks", "Summary"]
)

with tab_docs:
    for doc in current.documents:
        _entry_with_download(doc.name, doc.name, doc.content, key=f"dl_doc_{doc.id}")
    if not current.documents:
        st.caption("No documents.")
    with st.form("_add_doc", clear_on_submit=True):
        name = st.text_input("Document name")
        upload = st.file_uploader("File", key="doc_file")
        if st.form_submit_button("Add Document"):
            data = upload.getvalue() if upload is not None else None
            ws.add_document(current.id, name, data, upload.name if upload is not None else "")
            st.rerun()

with tab_ev:
    for item in current.evidence:
        tags = f" — {', '.join(item.tags)}" if item.tags else ""
        _entry_with_download(item.name + tags, item.name, item.content, key=f"dl_ev_{item.id}")
    if not current.evidence:
        st.caption("No evidence.")
    with st.form("_add_ev", clear_on_submit=True):
        name = st.text_input("Evidence name")
        tags_text = st.text_input("Tags (comma separated)")
        upload = st.file_uploader("File", key="ev_file")
        if st.form_submit_button("Add Evidence"):
            data = upload.getvalue() if upload is not None else None
            ws.add_evidence(current.id, name, data, upload.name if upload is not None else "", tags=tags_text.split(","))
            st.rerun()

with tab_tl:
    for ev in timeline_in_display_order(current):
        suffix = f" — {ev.description}" if ev.description else ""
        st.markdown(f"- **{ev.date}**: {html_mod.escape(ev.title)}{html_mod.escape(suffix)}")
    if not current.timeline:
        st.caption("No events.")
    with st.form("_add_tl", clear_on_submit=True):
        ev_date = st.date_input("Date", value=None)
        ev_title = st.text_input("Event title")
        ev_desc = st.text_input("Description")
        if st.form_submit_button("Add Event"):
            ws.add_timeline_event(
                current.id,
                ev_title,
                date=ev_date.isoformat() if ev_date else None,
                description=ev_desc,
            )
            st.rerun()

with tab_foia:
    for fr in current.foia:
        suffix = f" — {fr.description}" if fr.description else ""
        st.markdown(f"- {html_mod.escape(fr.subject)}{html_mod.escape(suffix)}")
    if not current.foia:
        st.caption("No FOIA requests.")
    with st.form("_add_foia", clear_on_submit=True):
        subject = st.text_input("Subject")
        foia_desc = st.text_input("Description")
        if st.form_submit_button("Add FOIA Request"):
            ws.add_foia_request(current.id, subject, foia_desc)
            st.rerun()

with tab_wit:
    for w in current.witnesses:
        suffix = f" — {w.description}" if w.description else ""
        st.markdown(f"- {html_mod.escape(w.name)}{html_mod.escape(suffix)}")
    if not current.witnesses:
        st.caption("No witnesses.")
    with st.form("_add_wit", clear_on_submit=True):
        w_name = st.text_input("Witness name")
        w_desc = st.text_input("Notes")
        if st.form_submit_button("Add Witness"):
            ws.add_witness(current.id, w_name, w_desc)
            st.rerun()

with tab_task:
    for task in current.tasks:
        c1, c2 = st.columns([4, 2])
        with c1:
            st.markdown(f"- {html_mod.escape(task.title)}")
        options = TASK_STATUSES if task.status in TASK_STATUSES else (task.status, *TASK_STATUSES)
        with c2:
            status = st.selectbox(
                "Status",
                options,
                index=options.index(task.status),
                key=f"task_status_{task.id}",
                label_visibility="collapsed",
            )
            if status != task.status:
                ws.set_task_status(current.id, task.id, status)
                st.rerun()
    if not current.tasks:
        st.caption("No tasks.")
    with st.form("_add_task", clear_on_submit=True):
        task_title = st.text_input("Task")
        if st.form_submit_button("Add Task"):
            ws.add_task(current.id, task_title)
            st.rerun()

with tab_sum:
    if st.button("Generate Summary"):
        st.session_state["_summary"] = (current.id, summarize_case(current))
    cached = st.session_state.get("_summary")
    if cached and cached[0] == current.id:
        st.code(cached[1], language=None)
