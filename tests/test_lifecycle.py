"""
tests/test_lifecycle.py
=======================

Unit tests for filingdesk.lifecycle.advance_stage
"""

from datetime import datetime, timedelta, timezone

import pytest

from filingdesk.lifecycle import advance_stage, new_workflow, out_of_order_milestones
from filingdesk.stages import VATStage, WorkflowType

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_new_workflow_starts_at_first_stage():
    assert new_workflow(WorkflowType.LTD).current_stage == "WAITING_FOR_YEAR_END"
    assert new_workflow(WorkflowType.VAT, "ab-01").current_stage == "PAPERWORK_PENDING_CHASE"


def test_advance_stamps_milestone_and_history():
    wf = new_workflow(WorkflowType.VAT, client_code="AB-01")
    change = advance_stage(wf, VATStage.PAPERWORK_CHASED, "Sam", at=T0)
    assert wf.current_stage == "PAPERWORK_CHASED"
    assert wf.milestones["PAPERWORK_CHASED"].by == "Sam"
    assert wf.milestones["PAPERWORK_CHASED"].at == T0
    assert change.from_stage == "PAPERWORK_PENDING_CHASE"
    assert change.days_in_previous_stage is None
    assert change.notes == "Stage updated to: Paperwork chased"

    later = advance_stage(wf, "PAPERWORK_RECEIVED", "Sam", at=T0 + timedelta(days=3))
    assert later.days_in_previous_stage == 3
    assert len(wf.history) == 2


def test_final_stage_completes_and_regression_reopens():
    wf = new_workflow(WorkflowType.LTD)
    advance_stage(wf, "FILED_TO_HMRC", at=T0)
    assert wf.is_completed
    assert wf.stage_label == "Filed to HMRC"
    advance_stage(wf, "WORK_IN_PROGRESS", at=T0)
    assert not wf.is_completed


def test_regression_clears_later_milestones():
    wf = new_workflow(WorkflowType.VAT)
    for stage in ("PAPERWORK_CHASED", "PAPERWORK_RECEIVED", "WORK_IN_PROGRESS", "REVIEW_PENDING_MANAGER"):
        advance_stage(wf, stage, at=T0)
    advance_stage(wf, "PAPERWORK_RECEIVED", "Priya", at=T0 + timedelta(days=1))
    assert set(wf.milestones) == {"PAPERWORK_CHASED", "PAPERWORK_RECEIVED"}
    assert wf.milestones["PAPERWORK_RECEIVED"].by == "Priya"


def test_leaving_self_filing_backwards_clears_it():
    wf = new_workflow(WorkflowType.VAT)
    advance_stage(wf, "CLIENT_SELF_FILING", at=T0)
    advance_stage(wf, "WORK_IN_PROGRESS", at=T0)
    assert "CLIENT_SELF_FILING" not in wf.milestones


def test_unknown_stage_raises():
    wf = new_workflow(WorkflowType.NON_LTD)
    with pytest.raises(ValueError):
        advance_stage(wf, "FILED_TO_COMPANIES_HOUSE")


def test_guarded_transition():
    """Skipping stages is rejected only when the caller asks for the check."""
    wf = new_workflow(WorkflowType.VAT)
    with pytest.raises(ValueError, match="PAPERWORK_PENDING_CHASE → FILED_TO_HMRC"):
        advance_stage(wf, "FILED_TO_HMRC", allow_arbitrary=False)
    assert wf.current_stage == "PAPERWORK_PENDING_CHASE"
    assert not wf.history

    advance_stage(wf, "PAPERWORK_CHASED", allow_arbitrary=False, at=T0)
    assert wf.current_stage == "PAPERWORK_CHASED"


def test_out_of_order_milestones():
    wf = new_workflow(WorkflowType.VAT)
    advance_stage(wf, "FILED_TO_HMRC", at=T0)
    assert out_of_order_milestones(wf) == ["FILED_TO_HMRC"]

    tidy = new_workflow(WorkflowType.VAT)
    advance_stage(tidy, "PAPERWORK_CHASED", at=T0)
    assert out_of_order_milestones(tidy) == []
