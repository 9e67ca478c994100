"""Multi-manager approval chains shared by leave and correction requests.

Levels come from the employee's active managers ordered by rank (rank 0
is N1, rank 1 is N2), capped by the workflow. An employee without managers
and the ``hr`` workflow both go to a single HR level, which only holders of
``hr.leaves.approve_all`` (or admins) can act on.
"""
from datetime import datetime, timezone
from typing import List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from backoffice.models.auth import Profile
from backoffice.models.hr import EmployeeManager
from backoffice.services.permissions import has_permission

logger = logging.getLogger(__name__)

HR_LEVEL = "hr"
APPROVE_ALL = "hr.leaves.approve_all"
OPEN_STATUSES = ("pending", "approved_n1", "approved_n2")
WORKFLOW_DEPTH = {"n1": 1, "n1_n2": 2}


def active_managers(db: Session, employee_id: uuid.UUID) -> List[EmployeeManager]:
    return (
        db.query(EmployeeManager)
        .filter(
            EmployeeManager.employee_id == employee_id,
            EmployeeManager.is_active.is_(True),
        )
        .order_by(EmployeeManager.rank)
        .all()
    )


def level_name(index: int) -> str:
    return f"n{index + 1}"


class ApprovalChain:
    def __init__(self, db: Session, employee_id: uuid.UUID, workflow: str = "n1"):
        self.db = db
        self.employee_id = employee_id
        self.workflow = workflow or "n1"
        self.levels = self._build_levels()

    def _build_levels(self) -> list:
        if self.workflow == HR_LEVEL:
            return [HR_LEVEL]
        chain = [m.manager for m in active_managers(self.db, self.employee_id)]
        chain = chain[: WORKFLOW_DEPTH.get(self.workflow, 1)]
        return chain or [HR_LEVEL]

    def __len__(self):
        return len(self.levels)

    def approver_at(self, index: int):
        if index >= len(self.levels):
            return HR_LEVEL
        return self.levels[index]

    def can_act(self, profile: Profile, index: int) -> bool:
        if has_permission(self.db, profile, APPROVE_ALL):
            return True
        approver = self.approver_at(index)
        if approver == HR_LEVEL:
            return False
        return approver.profile_id is not None and approver.profile_id == profile.id

    def _check(self, request, profile: Profile) -> int:
        if request.status not in OPEN_STATUSES:
            raise ValueError(f"Request is already {request.status}")
        index = request.current_level or 0
        if not self.can_act(profile, index):
            raise PermissionError("You are not the approver of this request at its current level")
        return index

    def _stamp(self, request, index: int, profile: Profile, comment: Optional[str]) -> None:
        if self.approver_at(index) == HR_LEVEL:
            name = HR_LEVEL
        else:
            name = level_name(min(index, 1))
        setattr(request, f"{name}_approver_id", profile.id)
        setattr(request, f"{name}_comment", comment)
        setattr(request, f"{name}_action_at", datetime.now(timezone.utc))

    def approve(self, request, profile: Profile, comment: Optional[str] = None) -> bool:
        """Approve at the current level. Returns True on final approval."""
        index = self._check(request, profile)
        self._stamp(request, index, profile, comment)
        total = request.approval_levels or 1
        if index + 1 >= total:
            request.status = "approved"
            logger.info("Request %s approved (level %s of %s)", request.id, index + 1, total)
            return True
        request.status = f"approved_{level_name(index)}"
        request.current_level = index + 1
        return False

    def reject(self, request, profile: Profile, comment: str) -> None:
        index = self._check(request, profile)
        self._stamp(request, index, profile, comment)
        request.status = "rejected"
        request.rejection_comment = comment


def awaiting(db: Session, profile: Profile, requests, workflow_of) -> list:
    """Open requests the profile can act on at their current level."""
    result = []
    for request in requests:
        if request.status not in OPEN_STATUSES:
            continue
        chain = ApprovalChain(db, request.employee_id, workflow_of(request))
        if chain.can_act(profile, request.current_level or 0):
            result.append(request)
    return result
