"""
filingdesk.stages
=================

Static registry of workflow stages for the three filing workflows the
practice runs:

* ``VAT``      – quarterly VAT return
* ``LTD``      – limited-company annual accounts (Companies House + HMRC)
* ``NON_LTD``  – sole trader / partnership accounts (HMRC only)

Each workflow has an ordered list of stage codes, display labels, terminal
stages and the stages that stamp a required milestone.  Lookups never raise:
unknown codes fall back to a humanised label so legacy rows still render.

Any stage may be set from any other; :func:`validate_transition` is an
advisory check that callers opt into (see :mod:`filingdesk.lifecycle`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Type, Union


class WorkflowType(Enum):
    VAT = "VAT"
    LTD = "LTD"
    NON_LTD = "NON_LTD"

    def __str__(self) -> str:
        return self.name


class VATStage(Enum):
    """Stages of a VAT quarter."""
    PAPERWORK_PENDING_CHASE = "PAPERWORK_PENDING_CHASE"
    PAPERWORK_CHASED = "PAPERWORK_CHASED"
    PAPERWORK_RECEIVED = "PAPERWORK_RECEIVED"
    WORK_IN_PROGRESS = "WORK_IN_PROGRESS"
    QUERIES_PENDING = "QUERIES_PENDING"
    REVIEW_PENDING_MANAGER = "REVIEW_PENDING_MANAGER"
    REVIEWED_BY_MANAGER = "REVIEWED_BY_MANAGER"
    REVIEW_PENDING_PARTNER = "REVIEW_PENDING_PARTNER"
    REVIEWED_BY_PARTNER = "REVIEWED_BY_PARTNER"
    EMAILED_TO_PARTNER = "EMAILED_TO_PARTNER"
    EMAILED_TO_CLIENT = "EMAILED_TO_CLIENT"
    CLIENT_APPROVED = "CLIENT_APPROVED"
    FILED_TO_HMRC = "FILED_TO_HMRC"
    CLIENT_SELF_FILING = "CLIENT_SELF_FILING"

    def __str__(self) -> str:
        return self.name


class LtdStage(Enum):
    """Stages of a limited company's annual accounts."""
    WAITING_FOR_YEAR_END = "WAITING_FOR_YEAR_END"
    PAPERWORK_PENDING_CHASE = "PAPERWORK_PENDING_CHASE"
    PAPERWORK_CHASED = "PAPERWORK_CHASED"
    PAPERWORK_RECEIVED = "PAPERWORK_RECEIVED"
    WORK_IN_PROGRESS = "WORK_IN_PROGRESS"
    DISCUSS_WITH_MANAGER = "DISCUSS_WITH_MANAGER"
    REVIEWED_BY_MANAGER = "REVIEWED_BY_MANAGER"
    REVIEW_BY_PARTNER = "REVIEW_BY_PARTNER"
    REVIEWED_BY_PARTNER = "REVIEWED_BY_PARTNER"
    REVIEW_DONE_HELLO_SIGN = "REVIEW_DONE_HELLO_SIGN"
    SENT_TO_CLIENT_HELLO_SIGN = "SENT_TO_CLIENT_HELLO_SIGN"
    APPROVED_BY_CLIENT = "APPROVED_BY_CLIENT"
    SUBMISSION_APPROVED_PARTNER = "SUBMISSION_APPROVED_PARTNER"
    FILED_TO_COMPANIES_HOUSE = "FILED_TO_COMPANIES_HOUSE"
    FILED_TO_HMRC = "FILED_TO_HMRC"
    CLIENT_SELF_FILING = "CLIENT_SELF_FILING"

    def __str__(self) -> str:
        return self.name


class NonLtdStage(Enum):
    """Stages of a non-Ltd client's accounts (no Companies House filing)."""
    WAITING_FOR_YEAR_END = "WAITING_FOR_YEAR_END"
    PAPERWORK_PENDING_CHASE = "PAPERWORK_PENDING_CHASE"
    PAPERWORK_CHASED = "PAPERWORK_CHASED"
    PAPERWORK_RECEIVED = "PAPERWORK_RECEIVED"
    WORK_IN_PROGRESS = "WORK_IN_PROGRESS"
    DISCUSS_WITH_MANAGER = "DISCUSS_WITH_MANAGER"
    REVIEWED_BY_MANAGER = "REVIEWED_BY_MANAGER"
    REVIEW_BY_PARTNER = "REVIEW_BY_PARTNER"
    REVIEWED_BY_PARTNER = "REVIEWED_BY_PARTNER"
    REVIEW_DONE_HELLO_SIGN = "REVIEW_DONE_HELLO_SIGN"
    SENT_TO_CLIENT_HELLO_SIGN = "SENT_TO_CLIENT_HELLO_SIGN"
    APPROVED_BY_CLIENT = "APPROVED_BY_CLIENT"
    SUBMISSION_APPROVED_PARTNER = "SUBMISSION_APPROVED_PARTNER"
    FILED_TO_HMRC = "FILED_TO_HMRC"
    CLIENT_SELF_FILING = "CLIENT_SELF_FILING"

    def __str__(self) -> str:
        return self.name


StageLike = Union[str, Enum, None]


@dataclass(frozen=True)
class StageSet:
    """Everything the registry knows about one workflow type."""
    stage_enum: Type[Enum]
    order: Tuple[str, ...]
    labels: Dict[str, str]
    final: FrozenSet[str]
    milestones: Tuple[str, ...]
    extras: Tuple[str, ...] = field(default=())

    @property
    def all_codes(self) -> Tuple[str, ...]:
        return self.order + self.extras


# ---------------------------------------------------------------------
# Stage data
# ---------------------------------------------------------------------
_VAT = StageSet(
    stage_enum=VATStage,
    order=tuple(s.value for s in VATStage if s is not VATStage.CLIENT_SELF_FILING),
    labels={
        "PAPERWORK_PENDING_CHASE": "Pending to chase",
        "PAPERWORK_CHASED": "Paperwork chased",
        "PAPERWORK_RECEIVED": "Paperwork received",
        "WORK_IN_PROGRESS": "Work in progress",
        "QUERIES_PENDING": "Queries pending",
        "REVIEW_PENDING_MANAGER": "Review pending by manager",
        "REVIEWED_BY_MANAGER": "Reviewed by manager",
        "REVIEW_PENDING_PARTNER": "Review pending by partner",
        "REVIEWED_BY_PARTNER": "Reviewed by partner",
        "EMAILED_TO_PARTNER": "Emailed to partner",
        "EMAILED_TO_CLIENT": "Emailed to client",
        "CLIENT_APPROVED": "Client approved",
        "FILED_TO_HMRC": "Filed to HMRC",
        "CLIENT_SELF_FILING": "Client self-filing",
    },
    final=frozenset({"FILED_TO_HMRC", "CLIENT_SELF_FILING"}),
    milestones=(
        "PAPERWORK_CHASED",
        "PAPERWORK_RECEIVED",
        "WORK_IN_PROGRESS",
        "REVIEW_PENDING_MANAGER",
        "EMAILED_TO_CLIENT",
        "CLIENT_APPROVED",
        "FILED_TO_HMRC",
    ),
    extras=("CLIENT_SELF_FILING",),
)

_LTD = StageSet(
    stage_enum=LtdStage,
    order=tuple(s.value for s in LtdStage if s is not LtdStage.CLIENT_SELF_FILING),
    labels={
        "WAITING_FOR_YEAR_END": "Waiting for Year End",
        "PAPERWORK_PENDING_CHASE": "Pending to Chase Paperwork",
        "PAPERWORK_CHASED": "Paperwork Chased",
        "PAPERWORK_RECEIVED": "Paperwork Received",
        "WORK_IN_PROGRESS": "Work in Progress",
        "DISCUSS_WITH_MANAGER": "To Discuss with Manager",
        "REVIEWED_BY_MANAGER": "Reviewed by Manager",
        "REVIEW_BY_PARTNER": "To Review by Partner",
        "REVIEWED_BY_PARTNER": "Reviewed by Partner",
        "REVIEW_DONE_HELLO_SIGN": "Review Done - Hello Sign to Client",
        "SENT_TO_CLIENT_HELLO_SIGN": "Sent to client on Hello Sign",
        "APPROVED_BY_CLIENT": "Approved by Client",
        "SUBMISSION_APPROVED_PARTNER": "Submission Approved by Partner",
        "FILED_TO_COMPANIES_HOUSE": "Filed to Companies House",
        "FILED_TO_HMRC": "Filed to HMRC",
        "CLIENT_SELF_FILING": "Client Self-Filing",
    },
    final=frozenset({"FILED_TO_HMRC", "CLIENT_SELF_FILING"}),
    milestones=(
        "PAPERWORK_CHASED",
        "PAPERWORK_RECEIVED",
        "WORK_IN_PROGRESS",
        "DISCUSS_WITH_MANAGER",
        "REVIEW_BY_PARTNER",
        "REVIEW_DONE_HELLO_SIGN",
        "SENT_TO_CLIENT_HELLO_SIGN",
        "APPROVED_BY_CLIENT",
        "SUBMISSION_APPROVED_PARTNER",
        "FILED_TO_COMPANIES_HOUSE",
        "FILED_TO_HMRC",
    ),
    extras=("CLIENT_SELF_FILING",),
)

_NON_LTD = StageSet(
    stage_enum=NonLtdStage,
    order=tuple(s.value for s in NonLtdStage if s is not NonLtdStage.CLIENT_SELF_FILING),
    labels={
        "WAITING_FOR_YEAR_END": "Waiting for Year End",
        "PAPERWORK_PENDING_CHASE": "Paperwork Pending Chase",
        "PAPERWORK_CHASED": "Paperwork Chased",
        "PAPERWORK_RECEIVED": "Paperwork Received",
        "WORK_IN_PROGRESS": "Work in Progress",
        "DISCUSS_WITH_MANAGER": "Discuss with Manager",
        "REVIEWED_BY_MANAGER": "Reviewed by Manager",
        "REVIEW_BY_PARTNER": "Review by Partner",
        "REVIEWED_BY_PARTNER": "Reviewed by Partner",
        "REVIEW_DONE_HELLO_SIGN": "Review Done (HelloSign)",
        "SENT_TO_CLIENT_HELLO_SIGN": "Sent to Client (HelloSign)",
        "APPROVED_BY_CLIENT": "Approved by Client",
        "SUBMISSION_APPROVED_PARTNER": "Submission Approved by Partner",
        "FILED_TO_HMRC": "Filed to HMRC",
        "CLIENT_SELF_FILING": "Client Self-Filing",
    },
    final=frozenset({"FILED_TO_HMRC", "CLIENT_SELF_FILING"}),
    milestones=(
        "PAPERWORK_CHASED",
        "PAPERWORK_RECEIVED",
        "WORK_IN_PROGRESS",
        "DISCUSS_WITH_MANAGER",
        "REVIEW_BY_PARTNER",
        "REVIEW_DONE_HELLO_SIGN",
        "SENT_TO_CLIENT_HELLO_SIGN",
        "APPROVED_BY_CLIENT",
        "SUBMISSION_APPROVED_PARTNER",
        "FILED_TO_HMRC",
    ),
    extras=("CLIENT_SELF_FILING",),
)

REGISTRY: Dict[WorkflowType, StageSet] = {
    WorkflowType.VAT: _VAT,
    WorkflowType.LTD: _LTD,
    WorkflowType.NON_LTD: _NON_LTD,
}

# set by the review sign-off, never picked from a dropdown
AUTO_SET_STAGES = frozenset({"REVIEWED_BY_MANAGER", "REVIEWED_BY_PARTNER"})

# earlier stages a workflow may be sent back to for rework
REWORK_STAGES = (
    "PAPERWORK_PENDING_CHASE",
    "PAPERWORK_CHASED",
    "PAPERWORK_RECEIVED",
    "WORK_IN_PROGRESS",
)


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------
def parse_workflow_type(value: Union[str, WorkflowType, None]) -> Optional[WorkflowType]:
    """``"vat"``, ``"ltd"``, ``"non-ltd"`` or a :class:`WorkflowType` -> member."""
    if isinstance(value, WorkflowType):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().upper().replace("-", "_")
    return WorkflowType.__members__.get(key)


def stage_set(workflow_type: Union[str, WorkflowType, None]) -> Optional[StageSet]:
    wt = parse_workflow_type(workflow_type)
    return REGISTRY.get(wt) if wt else None


def stage_code(stage: StageLike) -> Optional[str]:
    """Normalise an enum member or raw string to its persisted code."""
    if isinstance(stage, Enum):
        stage = stage.value
    if not isinstance(stage, str):
        return None
    code = stage.strip().upper()
    return code or None


def humanize(code: str) -> str:
    """``"CLIENT_BOOKKEEPING"`` -> ``"Client Bookkeeping"``."""
    words = code.replace("_", " ").split()
    return " ".join(words).title() if words else "Unknown"


def stage_label(stage: StageLike, workflow_type: Union[str, WorkflowType, None]) -> str:
    """Display label for a persisted stage code; never raises."""
    code = stage_code(stage)
    if code is None:
        return "Unknown"
    ws = stage_set(workflow_type)
    if ws is not None and code in ws.labels:
        return ws.labels[code]
    return humanize(code)


def parse_stage(stage: StageLike, workflow_type: Union[str, WorkflowType, None]) -> Optional[Enum]:
    """Return the enum member for *stage* in this workflow, or ``None``."""
    code = stage_code(stage)
    ws = stage_set(workflow_type)
    if code is None or ws is None or code not in ws.all_codes:
        return None
    return ws.stage_enum(code)


def stages_for(workflow_type: Union[str, WorkflowType]) -> List[Tuple[str, str]]:
    """Ordered ``(code, label)`` pairs, terminal off-track stages last."""
    ws = stage_set(workflow_type)
    if ws is None:
        return []
    return [(code, ws.labels[code]) for code in ws.all_codes]


def selectable_stages(workflow_type: Union[str, WorkflowType]) -> List[str]:
    """Stages a user may pick for bulk updates (auto-set ones excluded)."""
    ws = stage_set(workflow_type)
    if ws is None:
        return []
    return [code for code in ws.all_codes if code not in AUTO_SET_STAGES]


def is_final_stage(stage: StageLike, workflow_type: Union[str, WorkflowType]) -> bool:
    ws = stage_set(workflow_type)
    return ws is not None and stage_code(stage) in ws.final


def _index(code: Optional[str], ws: StageSet) -> int:
    return ws.order.index(code) if code in ws.order else -1


def next_stage(stage: StageLike, workflow_type: Union[str, WorkflowType]) -> Optional[str]:
    ws = stage_set(workflow_type)
    if ws is None:
        return None
    idx = _index(stage_code(stage), ws)
    if idx == -1 or idx == len(ws.order) - 1:
        return None
    return ws.order[idx + 1]


def previous_stage(stage: StageLike, workflow_type: Union[str, WorkflowType]) -> Optional[str]:
    ws = stage_set(workflow_type)
    if ws is None:
        return None
    idx = _index(stage_code(stage), ws)
    return ws.order[idx - 1] if idx > 0 else None


def progress(stage: StageLike, workflow_type: Union[str, WorkflowType]) -> float:
    """Percentage through the workflow (100 for any terminal stage)."""
    ws = stage_set(workflow_type)
    if ws is None:
        return 0.0
    code = stage_code(stage)
    if code in ws.final:
        return 100.0
    idx = _index(code, ws)
    if idx == -1:
        return 0.0
    return round((idx + 1) / len(ws.order) * 100, 1)


# ---------------------------------------------------------------------
# Advisory transition check
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class TransitionCheck:
    valid: bool
    message: str
    skipping: bool = False
    skipped: Tuple[str, ...] = ()
    allowed_next: Tuple[str, ...] = ()


def allowed_next_stages(stage: StageLike, workflow_type: Union[str, WorkflowType]) -> Tuple[str, ...]:
    """Next stage in order plus any earlier rework stage."""
    ws = stage_set(workflow_type)
    if ws is None:
        return ()
    code = stage_code(stage)
    idx = _index(code, ws)
    if code in ws.extras:
        idx = len(ws.order)
    elif idx == -1:
        return ()

    allowed: List[str] = []
    if idx < len(ws.order) - 1:
        allowed.append(ws.order[idx + 1])
    for rework in REWORK_STAGES:
        rework_idx = _index(rework, ws)
        if rework_idx != -1 and rework_idx < idx and rework not in allowed:
            allowed.append(rework)
    return tuple(allowed)


def validate_transition(
    from_stage: StageLike,
    to_stage: StageLike,
    workflow_type: Union[str, WorkflowType],
) -> TransitionCheck:
    """
    Check a stage move against the sequential progression rules.

    Forward moves must be one step at a time; backward moves may only land on
    a rework stage; client self-filing may be chosen at any point.  A brand
    new workflow (``from_stage`` is ``None``) may start anywhere.
    """
    ws = stage_set(workflow_type)
    to_code = stage_code(to_stage)
    from_code = stage_code(from_stage)
    if ws is None or to_code not in ws.all_codes:
        return TransitionCheck(False, "Invalid stage detected")

    if from_code is None:
        return TransitionCheck(
            True, "Valid initial stage selection",
            allowed_next=allowed_next_stages(to_code, workflow_type),
        )
    if from_code not in ws.all_codes:
        return TransitionCheck(False, "Invalid stage detected")

    if from_code == to_code:
        return TransitionCheck(
            True, "No stage change",
            allowed_next=allowed_next_stages(to_code, workflow_type),
        )

    if to_code in ws.extras:
        return TransitionCheck(True, "Client self-filing can be set at any stage")

    from_idx = len(ws.order) if from_code in ws.extras else _index(from_code, ws)
    to_idx = _index(to_code, ws)

    if to_idx < from_idx:
        if to_code in REWORK_STAGES:
            return TransitionCheck(
                True, "Valid regression for rework",
                allowed_next=allowed_next_stages(to_code, workflow_type),
            )
        return TransitionCheck(
            False, "Regression not allowed to this stage",
            allowed_next=allowed_next_stages(from_code, workflow_type),
        )

    if to_idx == from_idx + 1:
        return TransitionCheck(
            True, "Valid stage progression",
            allowed_next=allowed_next_stages(to_code, workflow_type),
        )

    skipped = ws.order[from_idx + 1:to_idx]
    return TransitionCheck(
        False,
        f"Cannot skip stages: {', '.join(skipped)}",
        skipping=True,
        skipped=tuple(skipped),
        allowed_next=allowed_next_stages(from_code, workflow_type),
    )
