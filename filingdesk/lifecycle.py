"""
filingdesk.lifecycle
====================

Stage bookkeeping for a single workflow instance (one VAT quarter, one set
of annual accounts).

:func:`advance_stage` mutates a :class:`WorkflowInstance` **in-place**:
it moves the current stage, stamps that stage's milestone with who/when,
flips ``is_completed`` on terminal stages and appends a history entry.

Any stage may be set from any other by default (staff routinely correct
mistakes by hand).  Pass ``allow_arbitrary=False`` to enforce the
sequential rules from :func:`filingdesk.stages.validate_transition`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .dates import london_now
from .stages import (
    StageLike,
    StageSet,
    WorkflowType,
    stage_code,
    stage_label,
    stage_set,
    validate_transition,
)

logger = logging.getLogger(__name__)


@dataclass
class Milestone:
    """When a stage was reached, and by whom."""
    at: datetime
    by: Optional[str] = None


@dataclass
class StageChange:
    """One row of a workflow's history."""
    from_stage: Optional[str]
    to_stage: str
    at: datetime
    days_in_previous_stage: Optional[int] = None
    user_name: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class WorkflowInstance:
    """
    A VAT quarter or accounts period moving through its stages.

    Parameters
    ----------
    workflow_type : WorkflowType
        Which stage registry applies.
    current_stage : str
        Persisted stage code.
    client_code : str | None
        Owning client.
    period_label : str | None
        e.g. ``"2024-01-01_to_2024-03-31"`` for a VAT quarter.
    assigned_user : str | None
        Staff member working on it.
    is_completed : bool
        True once a terminal stage is reached.
    milestones : dict[str, Milestone]
        Stage code -> when it was reached.
    history : list[StageChange]
        Every stage move, oldest first.
    """
    workflow_type: WorkflowType
    current_stage: str
    client_code: Optional[str] = None
    period_label: Optional[str] = None
    assigned_user: Optional[str] = None
    is_completed: bool = False
    milestones: Dict[str, Milestone] = field(default_factory=dict)
    history: List[StageChange] = field(default_factory=list)
    id: Optional[int] = None

    @property
    def stage_label(self) -> str:
        return stage_label(self.current_stage, self.workflow_type)


def new_workflow(
    workflow_type: WorkflowType,
    client_code: Optional[str] = None,
    period_label: Optional[str] = None,
    assigned_user: Optional[str] = None,
) -> WorkflowInstance:
    """Start a workflow at the first stage of its order."""
    ws = _require_stage_set(workflow_type)
    return WorkflowInstance(
        workflow_type=workflow_type,
        current_stage=ws.order[0],
        client_code=client_code,
        period_label=period_label,
        assigned_user=assigned_user,
    )


def _require_stage_set(workflow_type: WorkflowType) -> StageSet:
    ws = stage_set(workflow_type)
    if ws is None:
        raise ValueError(f"unknown workflow type {workflow_type!r}")
    return ws


def _position(code: str, ws: StageSet) -> int:
    # off-track terminal stages sit after the ordered ones
    if code in ws.order:
        return ws.order.index(code)
    return len(ws.order)


def _clear_later_milestones(instance: WorkflowInstance, target: str, ws: StageSet) -> None:
    """Moving backwards undoes the milestones between *target* and the old stage."""
    current = instance.current_stage
    if target not in ws.order:
        return
    from_idx, to_idx = _position(current, ws), ws.order.index(target)
    if from_idx <= to_idx:
        return
    for code in ws.order[to_idx + 1:from_idx + 1]:
        instance.milestones.pop(code, None)
    if current in ws.extras:
        instance.milestones.pop(current, None)


def advance_stage(
    instance: WorkflowInstance,
    new_stage: StageLike,
    user_name: Optional[str] = None,
    *,
    at: Optional[datetime] = None,
    allow_arbitrary: bool = True,
    notes: Optional[str] = None,
) -> StageChange:
    """
    Move *instance* to *new_stage* and record the change.

    Raises :class:`ValueError` for a stage code the workflow does not know,
    or, with ``allow_arbitrary=False``, for a move the sequential rules reject.

    Examples
    --------
    >>> wf = new_workflow(WorkflowType.VAT)
    >>> advance_stage(wf, "PAPERWORK_CHASED", "Sam").to_stage
    'PAPERWORK_CHASED'
    >>> advance_stage(wf, "FILED_TO_HMRC", allow_arbitrary=False)
    Traceback (most recent call last):
        ...
    ValueError: illegal transition PAPERWORK_CHASED → FILED_TO_HMRC: Cannot skip stages: ...
    """
    ws = _require_stage_set(instance.workflow_type)
    code = stage_code(new_stage)
    if code not in ws.all_codes:
        raise ValueError(f"unknown {instance.workflow_type.name} stage {new_stage!r}")

    current = instance.current_stage
    if not allow_arbitrary:
        check = validate_transition(current, code, instance.workflow_type)
        if not check.valid:
            raise ValueError(f"illegal transition {current} → {code}: {check.message}")

    at = at or london_now()
    days_in_previous: Optional[int] = None
    if instance.history:
        days_in_previous = (at.date() - instance.history[-1].at.date()).days

    _clear_later_milestones(instance, code, ws)
    instance.milestones[code] = Milestone(at=at, by=user_name)
    instance.current_stage = code
    instance.is_completed = code in ws.final

    change = StageChange(
        from_stage=current,
        to_stage=code,
        at=at,
        days_in_previous_stage=days_in_previous,
        user_name=user_name,
        notes=notes or f"Stage updated to: {stage_label(code, instance.workflow_type)}",
    )
    instance.history.append(change)
    logger.info(
        f"{instance.workflow_type.name} workflow {instance.client_code or '-'} "
        f"{current} → {code} by {user_name or 'unknown user'}"
    )
    return change


def out_of_order_milestones(instance: WorkflowInstance) -> List[str]:
    """
    Required milestones that are stamped while an earlier one is missing.

    Reported, never enforced: manual corrections legitimately produce gaps.
    """
    ws = _require_stage_set(instance.workflow_type)
    flagged: List[str] = []
    gap = False
    for code in ws.milestones:
        if code not in instance.milestones:
            gap = True
        elif gap:
            flagged.append(code)
    return flagged
