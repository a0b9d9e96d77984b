"""Tests for case-organizer/app/models.py — entities, ids and JSON shape."""

from __future__ import annotations

import json
import re

import pytest

from app.models import (
    Case,
    Document,
    EvidenceItem,
    Task,
    TimelineEvent,
    cases_from_json,
    cases_to_json,
    new_entity_id,
    normalize_tags,
)


class TestNewEntityId:
    def test_hex_only(self):
        assert re.fullmatch(r"[0-9a-f]+", new_entity_id())

    def test_has_random_suffix(self):
        assert len(new_entity_id()) > 8

    def test_unique_in_a_burst(self):
        ids = {new_entity_id() for _ in range(500)}
        assert len(ids) == 500


class TestNormalizeTags:
    def test_trims_and_dedupes(self):
        assert normalize_tags([" photo", "photo ", "damage", ""]) == ("photo", "damage")

    def test_empty(self):
        assert normalize_tags([]) == ()


class TestEntityDicts:
    def test_document_without_content_omits_key(self):
        assert Document(id="d1", name="a.pdf").to_dict() == {"id": "d1", "name": "a.pdf"}

    def test_evidence_tags_serialized_as_list(self):
        item = EvidenceItem(id="e1", name="photo", tags=("a", "b"))
        assert item.to_dict() == {"id": "e1", "name": "photo", "tags": ["a", "b"]}

    def test_timeline_missing_description_defaults_empty(self):
        ev = TimelineEvent.from_dict({"id": "t1", "date": "2024-01-05", "title": "Filed"})
        assert ev.description == ""

    def test_task_round_trip(self):
        task = Task(id="k1", title="Serve subpoena", status="done")
        assert task.to_dict() == {"id": "k1", "title": "Serve subpoena", "status": "done"}
        assert Task.from_dict(task.to_dict()) == task

    @pytest.mark.parametrize("status", [None, "", "  "])
    def test_task_blank_status_loads_as_open(self, status):
        assert Task.from_dict({"id": "k1", "title": "Call", "status": status}).status == "open"


class TestCaseFromDict:
    def test_missing_collections_are_empty(self):
        case = Case.from_dict({"id": "c1", "title": "Bare"})
        assert case.documents == ()
        assert case.evidence == ()
        assert case.timeline == ()
        assert case.foia == ()
        assert case.witnesses == ()
        assert case.tasks == ()

    def test_null_collection_is_empty(self):
        case = Case.from_dict({"id": "c1", "title": "Bare", "documents": None})
        assert case.documents == ()

    def test_skips_entries_without_required_field(self):
        case = Case.from_dict({
            "id": "c1",
            "title": "T",
            "documents": [{"id": "d1"}, {"id": "d2", "name": "ok.pdf"}, "junk"],
        })
        assert [d.name for d in case.documents] == ["ok.pdf"]

    @pytest.mark.parametrize("bad", [None, "", "   "])
    def test_null_or_blank_required_field_is_skipped(self, bad):
        case = Case.from_dict({
            "id": "c1",
            "title": "T",
            "documents": [{"id": "d1", "name": bad}],
            "evidence": [{"id": "e1", "name": bad}],
            "timeline": [{"id": "t1", "date": "2024-01-05", "title": bad}],
            "foia": [{"id": "f1", "subject": bad}],
            "witnesses": [{"id": "w1", "name": bad}],
            "tasks": [{"id": "k1", "title": bad}],
        })
        assert case.documents == case.evidence == case.timeline == case.foia == case.witnesses == case.tasks == ()

    def test_null_entity_id_is_skipped(self):
        case = Case.from_dict({"id": "c1", "title": "T", "witnesses": [{"id": None, "name": "Ana"}]})
        assert case.witnesses == ()


class TestCollectionJson:
    def test_round_trip_deep_equal(self, sample_case_dict):
        cases = (Case.from_dict(sample_case_dict), Case(id="c2", title="Empty case"))
        assert cases_from_json(cases_to_json(cases)) == cases

    def test_serialized_shape(self, sample_case_dict):
        case = Case.from_dict(sample_case_dict)
        assert json.loads(cases_to_json((case,))) == [sample_case_dict]

    def test_single_object_is_empty(self, sample_case_dict):
        assert cases_from_json(json.dumps(sample_case_dict)) == ()

    def test_invalid_json_is_empty(self):
        assert cases_from_json("{not json") == ()

    def test_none_is_empty(self):
        assert cases_from_json(None) == ()

    def test_skips_non_case_entries(self, sample_case_dict):
        loaded = cases_from_json(json.dumps([sample_case_dict, 42, {"title": "no id"}, {"id": None, "title": "null id"}]))
        assert [c.id for c in loaded] == [sample_case_dict["id"]]
