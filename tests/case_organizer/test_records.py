"""Tests for case-organizer/app/records.py — pure copy-on-write mutations.

Covers case creation and selection, appends to every sub-collection,
structural sharing of untouched state, edits, deletes, evidence tags and
task status.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest

from app import records
from app.models import Case
from app.records import CaseState


@pytest.fixture()
def two_cases():
    """Newest first: 'Insurance Claim' then 'Smith v. Jones' with one of everything."""
    state = records.create_case(records.EMPTY_STATE, "Smith v. Jones", "Contract dispute")
    sid = state.cases[0].id
    state = records.append_document(state, sid, "contract.pdf")
    state = records.append_evidence(state, sid, "receipt.png")
    state = records.append_timeline_event(state, sid, "Filed", date="2024-01-05")
    state = records.append_foia_request(state, sid, "Police report")
    state = records.append_witness(state, sid, "Ana Ruiz")
    state = records.append_task(state, sid, "Serve subpoena")
    state = records.create_case(state, "Insurance Claim")
    return state


# ── create / select ──────────────────────────────────────────────────────


class TestCreateCase:
    @pytest.mark.parametrize("title", ["Smith v. Jones", "  padded  ", "x"])
    def test_prepends_trimmed_and_selects(self, title):
        before = records.create_case(records.EMPTY_STATE, "Existing")
        after = records.create_case(before, title, "  desc ")
        assert len(after.cases) == len(before.cases) + 1
        assert after.cases[0].title == title.strip()
        assert after.cases[0].description == "desc"
        assert after.selected_id == after.cases[0].id
        assert after.cases[1] is before.cases[0]

    @pytest.mark.parametrize("title", ["", "   ", "\t\n", None])
    def test_blank_title_is_noop(self, title):
        before = records.create_case(records.EMPTY_STATE, "Existing")
        assert records.create_case(before, title) is before

    def test_new_case_is_empty(self):
        case = records.create_case(records.EMPTY_STATE, "New").cases[0]
        assert case.documents == case.evidence == case.timeline == case.foia == case.witnesses == case.tasks == ()


class TestSelection:
    def test_select_does_not_validate(self, two_cases):
        state = records.select_case(two_cases, "missing")
        assert state.selected_id == "missing"
        assert records.current_case(state) is None

    def test_current_case_resolves(self, two_cases):
        target = two_cases.cases[1]
        state = records.select_case(two_cases, target.id)
        assert records.current_case(state) is target

    def test_enter_partition_selects_newest(self, two_cases):
        state = records.enter_partition(two_cases.cases)
        assert state.selected_id == two_cases.cases[0].id

    def test_enter_empty_partition(self):
        assert records.enter_partition(()) == CaseState()


# ── appends & structural sharing ─────────────────────────────────────────


class TestAppendDocument:
    def test_grows_only_documents(self, two_cases):
        other, target = two_cases.cases
        after = records.append_document(two_cases, target.id, "  brief.docx ", "data:text/plain;base64,aGk=")
        new_target = after.cases[1]
        assert len(new_target.documents) == len(target.documents) + 1
        assert new_target.documents[-1].name == "brief.docx"
        assert new_target.documents[-1].content == "data:text/plain;base64,aGk="
        assert new_target.documents[0] is target.documents[0]
        assert new_target.evidence is target.evidence
        assert new_target.timeline is target.timeline
        assert new_target.foia is target.foia
        assert new_target.witnesses is target.witnesses
        assert new_target.tasks is target.tasks
        assert after.cases[0] is other
        assert two_cases.cases[1] is target
        assert len(target.documents) == 1

    def test_blank_name_is_noop(self, two_cases):
        target = two_cases.cases[1]
        assert records.append_document(two_cases, target.id, "   ") is two_cases

    def test_unknown_case_is_noop(self, two_cases):
        assert records.append_document(two_cases, "nope", "a.pdf") is two_cases

    def test_ids_unique_within_collection(self, two_cases):
        cid = two_cases.cases[0].id
        state = two_cases
        for i in range(20):
            state = records.append_document(state, cid, f"doc {i}")
        ids = [d.id for d in state.cases[0].documents]
        assert len(set(ids)) == 20


class TestAppendOthers:
    def test_evidence_with_tags(self, two_cases):
        cid = two_cases.cases[0].id
        state = records.append_evidence(two_cases, cid, "photo.jpg", tags=["damage", " damage", ""])
        assert state.cases[0].evidence[0].tags == ("damage",)
        assert state.cases[0].documents is two_cases.cases[0].documents

    def test_timeline_defaults_to_today(self, two_cases):
        cid = two_cases.cases[0].id
        state = records.append_timeline_event(two_cases, cid, "Hearing")
        assert state.cases[0].timeline[0].date == date.today().isoformat()

    def test_timeline_blank_date_defaults_to_today(self, two_cases):
        cid = two_cases.cases[0].id
        with patch("app.records.today_iso", return_value="2030-02-02"):
            state = records.append_timeline_event(two_cases, cid, "Hearing", date="  ")
        assert state.cases[0].timeline[0].date == "2030-02-02"

    def test_timeline_keeps_insertion_order(self, two_cases):
        cid = two_cases.cases[0].id
        state = records.append_timeline_event(two_cases, cid, "Later", date="2024-05-01")
        state = records.append_timeline_event(state, cid, "Earlier", date="2023-01-01")
        assert [e.title for e in state.cases[0].timeline] == ["Later", "Earlier"]

    def test_blank_timeline_title_is_noop(self, two_cases):
        assert records.append_timeline_event(two_cases, two_cases.cases[0].id, " ", date="2024-01-01") is two_cases

    def test_foia_trims(self, two_cases):
        cid = two_cases.cases[0].id
        state = records.append_foia_request(two_cases, cid, " Records ", " all of them ")
        fr = state.cases[0].foia[0]
        assert (fr.subject, fr.description) == ("Records", "all of them")

    def test_blank_foia_subject_is_noop(self, two_cases):
        assert records.append_foia_request(two_cases, two_cases.cases[0].id, "") is two_cases

    def test_witness(self, two_cases):
        cid = two_cases.cases[0].id
        state = records.append_witness(two_cases, cid, "Bo Chen", "Adjuster")
        assert state.cases[0].witnesses[0].name == "Bo Chen"
        assert state.cases[0].foia is two_cases.cases[0].foia


# ── edit / delete ────────────────────────────────────────────────────────


class TestUpdateCase:
    def test_edits_title_keeps_id_and_collections(self, two_cases):
        target = two_cases.cases[1]
        state = records.update_case(two_cases, target.id, title=" Smith v. Jones (2024) ")
        updated = state.cases[1]
        assert updated.id == target.id
        assert updated.title == "Smith v. Jones (2024)"
        assert updated.documents is target.documents
        assert state.cases[0] is two_cases.cases[0]

    def test_blank_title_rejected(self, two_cases):
        assert records.update_case(two_cases, two_cases.cases[0].id, title="  ") is two_cases

    def test_unchanged_values_are_noop(self, two_cases):
        target = two_cases.cases[0]
        assert records.update_case(two_cases, target.id, title=target.title) is two_cases


class TestDeleteCase:
    def test_clears_selection_when_selected(self, two_cases):
        selected = two_cases.selected_id
        state = records.delete_case(two_cases, selected)
        assert [c.id for c in state.cases] == [two_cases.cases[1].id]
        assert state.selected_id is None

    def test_keeps_other_selection(self, two_cases):
        state = records.delete_case(two_cases, two_cases.cases[1].id)
        assert state.selected_id == two_cases.selected_id
        assert state.cases[0] is two_cases.cases[0]

    def test_unknown_is_noop(self, two_cases):
        assert records.delete_case(two_cases, "nope") is two_cases


class TestEntityEdits:
    def test_update_timeline_event(self, two_cases):
        target = two_cases.cases[1]
        ev = target.timeline[0]
        state = records.update_entity(two_cases, target.id, "timeline", ev.id, title="Complaint filed", description="Superior Court")
        new_ev = state.cases[1].timeline[0]
        assert new_ev.id == ev.id
        assert (new_ev.date, new_ev.title, new_ev.description) == ("2024-01-05", "Complaint filed", "Superior Court")
        assert state.cases[1].documents is target.documents

    def test_update_cannot_blank_required(self, two_cases):
        target = two_cases.cases[1]
        doc = target.documents[0]
        assert records.update_entity(two_cases, target.id, "document", doc.id, name="  ") is two_cases

    def test_update_ignores_unknown_fields(self, two_cases):
        target = two_cases.cases[1]
        doc = target.documents[0]
        assert records.update_entity(two_cases, target.id, "document", doc.id, id="hijack") is two_cases

    def test_update_unknown_kind_or_id(self, two_cases):
        target = two_cases.cases[1]
        assert records.update_entity(two_cases, target.id, "notes", "x", name="y") is two_cases
        assert records.update_entity(two_cases, target.id, "document", "x", name="y") is two_cases

    def test_delete_entity(self, two_cases):
        target = two_cases.cases[1]
        wid = target.witnesses[0].id
        state = records.delete_entity(two_cases, target.id, "witness", wid)
        assert state.cases[1].witnesses == ()
        assert state.cases[1].evidence is target.evidence

    def test_delete_unknown_entity_is_noop(self, two_cases):
        assert records.delete_entity(two_cases, two_cases.cases[1].id, "foia", "nope") is two_cases


class TestEvidenceTags:
    def test_add_and_remove(self, two_cases):
        target = two_cases.cases[1]
        eid = target.evidence[0].id
        state = records.add_evidence_tag(two_cases, target.id, eid, " receipt ")
        assert state.cases[1].evidence[0].tags == ("receipt",)
        state = records.remove_evidence_tag(state, target.id, eid, "receipt")
        assert state.cases[1].evidence[0].tags == ()

    def test_duplicate_tag_is_noop(self, two_cases):
        target = two_cases.cases[1]
        eid = target.evidence[0].id
        state = records.add_evidence_tag(two_cases, target.id, eid, "receipt")
        assert records.add_evidence_tag(state, target.id, eid, "receipt") is state

    def test_remove_missing_tag_is_noop(self, two_cases):
        target = two_cases.cases[1]
        assert records.remove_evidence_tag(two_cases, target.id, target.evidence[0].id, "x") is two_cases


class TestTasks:
    def test_append_defaults_to_open(self, two_cases):
        task = two_cases.cases[1].tasks[0]
        assert (task.title, task.status) == ("Serve subpoena", "open")

    @pytest.mark.parametrize("title,status", [("  ", "open"), ("Call client", "someday"), ("Call client", "")])
    def test_append_rejects_blank_title_or_unknown_status(self, two_cases, title, status):
        assert records.append_task(two_cases, two_cases.cases[1].id, title, status) is two_cases

    def test_set_status_keeps_id_and_shares_siblings(self, two_cases):
        target = two_cases.cases[1]
        task = target.tasks[0]
        state = records.set_task_status(two_cases, target.id, task.id, " done ")
        new_task = state.cases[1].tasks[0]
        assert (new_task.id, new_task.title, new_task.status) == (task.id, task.title, "done")
        assert state.cases[1].witnesses is target.witnesses
        assert state.cases[0] is two_cases.cases[0]

    def test_set_same_status_is_noop(self, two_cases):
        target = two_cases.cases[1]
        assert records.set_task_status(two_cases, target.id, target.tasks[0].id, "open") is two_cases

    def test_set_unknown_status_or_task_is_noop(self, two_cases):
        target = two_cases.cases[1]
        assert records.set_task_status(two_cases, target.id, target.tasks[0].id, "blocked") is two_cases
        assert records.set_task_status(two_cases, target.id, "missing", "done") is two_cases

    def test_update_entity_edits_title_not_status(self, two_cases):
        target = two_cases.cases[1]
        tid = target.tasks[0].id
        state = records.update_entity(two_cases, target.id, "task", tid, title="Serve amended subpoena", status="done")
        assert state.cases[1].tasks[0].title == "Serve amended subpoena"
        assert state.cases[1].tasks[0].status == "open"

    def test_delete_task(self, two_cases):
        target = two_cases.cases[1]
        state = records.delete_entity(two_cases, target.id, "task", target.tasks[0].id)
        assert state.cases[1].tasks == ()

def test_inputs_are_never_mutated(two_cases):
    snapshot = tuple(Case.from_dict(c.to_dict()) for c in two_cases.cases)
    cid = two_cases.cases[1].id
    records.append_document(two_cases, cid, "x")
    records.update_case(two_cases, cid, description="changed")
    records.delete_case(two_cases, cid)
    assert two_cases.cases == snapshot
