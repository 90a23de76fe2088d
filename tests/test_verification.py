from __future__ import annotations

from conftest import custom_field

from ytbulk.models import VerificationStatus
from ytbulk.verification import MISMATCH_MESSAGE, VerificationEngine
from ytbulk.youtrack_rest import LINKS_SELECTOR, VERIFY_FIELDS_SELECTOR


def test_all_expected_fields_match(backend):
    backend.issues["PROJ-1"] = {
        "customFields": [
            custom_field("Priority", name="Critical"),
            custom_field("Assignee", login="jdoe"),
            custom_field("Build", id="12-3"),
        ]
    }
    result = VerificationEngine(backend).verify_fields(
        "PROJ-1", {"Priority": "Critical", "Assignee": "jdoe", "Build": "12-3"}
    )
    assert result.success
    assert result.status is VerificationStatus.VERIFIED
    assert result.applied_fields == {"Priority": "Critical", "Assignee": "jdoe", "Build": "12-3"}
    assert result.mismatches == []
    assert backend.calls == [("fetch", "PROJ-1", VERIFY_FIELDS_SELECTOR)]


def test_single_mismatch_reported(backend):
    backend.issues["PROJ-1"] = {
        "customFields": [
            custom_field("Priority", name="Major"),
            custom_field("State", name="Open"),
        ]
    }
    result = VerificationEngine(backend).verify_fields(
        "PROJ-1", {"Priority": "Critical", "State": "Open"}
    )
    assert not result.success
    assert result.status is VerificationStatus.MISMATCH
    assert result.message == MISMATCH_MESSAGE
    assert len(result.mismatches) == 1
    assert result.mismatches[0].to_dict() == {"field": "Priority", "expected": "Critical", "actual": "Major"}


def test_missing_or_empty_field_is_a_mismatch_without_actual(backend):
    backend.issues["PROJ-1"] = {"customFields": [custom_field("Assignee")]}
    result = VerificationEngine(backend).verify_fields("PROJ-1", {"Assignee": "jdoe", "Type": "Bug"})
    assert [m.to_dict() for m in result.mismatches] == [
        {"field": "Assignee", "expected": "jdoe"},
        {"field": "Type", "expected": "Bug"},
    ]


def test_fetch_failure_is_indeterminate_not_mismatch(backend):
    result = VerificationEngine(backend).verify_fields("PROJ-404", {"Priority": "Critical"})
    assert not result.success
    assert result.status is VerificationStatus.INDETERMINATE
    assert result.mismatches == []
    assert result.message and result.message.startswith("Verification error:")


def _linked(*issues):
    return {"links": [{"linkType": {"name": "Relates"}, "issues": list(issues)}]}


def test_verify_link_matches_readable_id(backend):
    backend.issues["PROJ-1"] = _linked({"id": "2-5", "idReadable": " PROJ-5 "})
    assert VerificationEngine(backend).verify_link("PROJ-1", "PROJ-5 ")
    assert backend.calls == [("fetch", "PROJ-1", LINKS_SELECTOR)]


def test_verify_link_matches_internal_id(backend):
    backend.issues["PROJ-1"] = {"links": [{"issues": []}, {"issues": [{"id": "2-5"}]}]}
    assert VerificationEngine(backend).verify_link("PROJ-1", "2-5")


def test_verify_link_false_when_absent_or_unreadable(backend):
    backend.issues["PROJ-1"] = _linked({"id": "2-6", "idReadable": "PROJ-6"})
    engine = VerificationEngine(backend)
    assert not engine.verify_link("PROJ-1", "PROJ-5")
    assert not engine.verify_link("PROJ-404", "PROJ-5")
