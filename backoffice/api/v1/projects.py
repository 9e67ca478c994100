from datetime import date, timedelta
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.projects import (
    ActionStatus,
    Project,
    ProjectAction,
    ProjectPriority,
    ProjectStatus,
)
from backoffice.schemas.projects import (
    ActionCreate,
    ActionResponse,
    ActionUpdate,
    LinkActions,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()
actions_router = APIRouter()

PROJECT_STATUSES = {s.value for s in ProjectStatus}
PROJECT_PRIORITIES = {p.value for p in ProjectPriority}
ACTION_STATUSES = {s.value for s in ActionStatus}
DUE_SOON_DAYS = 3


def project_progress(project: Project) -> dict:
    total = len(project.actions)
    done = sum(1 for a in project.actions if a.status == ActionStatus.termine.value)
    return {
        "total_actions": total,
        "completed_actions": done,
        "progress": round(done * 100 / total) if total else 0,
    }


def project_payload(project: Project) -> dict:
    data = ProjectResponse.model_validate(project).model_dump()
    data.update(project_progress(project))
    return data


def get_project_or_404(db: Session, project_id: uuid.UUID) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def check_project_fields(data: dict) -> None:
    if "status" in data and data["status"] not in PROJECT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid project status")
    if "priority" in data and data["priority"] not in PROJECT_PRIORITIES:
        raise HTTPException(status_code=400, detail="Invalid project priority")


# --- Projects ---


@router.get("/")
def list_projects(
    project_status: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    manager_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.projects.view_page")),
):
    query = db.query(Project)
    if project_status:
        query = query.filter(Project.status == project_status)
    if priority:
        query = query.filter(Project.priority == priority)
    if manager_id:
        query = query.filter(Project.manager_id == manager_id)
    if search:
        query = query.filter(Project.name.ilike(f"%{search}%"))
    projects = query.order_by(Project.created_at.desc()).all()
    return {"success": True, "projects": [project_payload(p) for p in projects]}


@router.get("/{project_id}")
def get_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.projects.view_page")),
):
    project = get_project_or_404(db, project_id)
    actions = sorted(project.actions, key=lambda a: (a.deadline is None, a.deadline or date.max))
    return {
        "success": True,
        "project": project_payload(project),
        "actions": [ActionResponse.model_validate(a) for a in actions],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("accounting.projects.create")),
):
    if not project_in.name or not project_in.name.strip():
        raise HTTPException(status_code=400, detail="Project name is required")
    if project_in.start_date and project_in.end_date and project_in.end_date < project_in.start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    data = {k: v for k, v in project_in.model_dump().items() if v is not None}
    check_project_fields(data)
    data["name"] = data["name"].strip()

    project = Project(created_by=current_user.id, **data)
    db.add(project)
    db.commit()
    db.refresh(project)
    return {"success": True, "project": project_payload(project)}


@router.put("/{project_id}")
def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.projects.update")),
):
    project = get_project_or_404(db, project_id)
    data = project_in.model_dump(exclude_unset=True)
    if "name" in data and not (data["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Project name is required")
    check_project_fields(data)
    start = data.get("start_date", project.start_date)
    end = data.get("end_date", project.end_date)
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    for key, value in data.items():
        setattr(project, key, value)
    db.commit()
    db.refresh(project)
    return {"success": True, "project": project_payload(project)}


@router.delete("/{project_id}")
def delete_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.projects.delete")),
):
    project = get_project_or_404(db, project_id)
    # Actions outlive their project
    db.query(ProjectAction).filter(ProjectAction.project_id == project.id).update(
        {ProjectAction.project_id: None}, synchronize_session="fetch"
    )
    db.delete(project)
    db.commit()
    return {"success": True, "message": "Project deleted"}


@router.put("/{project_id}/link-actions")
def link_actions(
    project_id: uuid.UUID,
    payload: LinkActions,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.projects.update")),
):
    project = get_project_or_404(db, project_id)
    if not payload.action_ids:
        raise HTTPException(status_code=400, detail="action_ids must be a non-empty list")
    actions = db.query(ProjectAction).filter(ProjectAction.id.in_(payload.action_ids)).all()
    for action in actions:
        action.project_id = project.id
    db.commit()
    return {"success": True, "linked_count": len(actions)}


# --- Actions ---


@actions_router.get("/stats")
def action_stats(
    pilote_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.actions.view_page")),
):
    query = db.query(ProjectAction)
    if pilote_id:
        query = query.filter(ProjectAction.pilote_id == pilote_id)
    actions = query.all()

    today = date.today()
    soon = today + timedelta(days=DUE_SOON_DAYS)
    by_status = {s: 0 for s in ACTION_STATUSES}
    overdue = due_soon = 0
    for action in actions:
        by_status[action.status] = by_status.get(action.status, 0) + 1
        if action.status == ActionStatus.termine.value or not action.deadline:
            continue
        if action.deadline < today:
            overdue += 1
        elif action.deadline <= soon:
            due_soon += 1

    return {
        "success": True,
        "stats": {
            "total": len(actions),
            "by_status": by_status,
            "overdue": overdue,
            "due_soon": due_soon,
        },
    }


@actions_router.get("/")
def list_actions(
    project_id: Optional[uuid.UUID] = None,
    pilote_id: Optional[uuid.UUID] = None,
    action_status: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.actions.view_page")),
):
    query = db.query(ProjectAction)
    if project_id:
        query = query.filter(ProjectAction.project_id == project_id)
    if pilote_id:
        query = query.filter(ProjectAction.pilote_id == pilote_id)
    if action_status:
        query = query.filter(ProjectAction.status == action_status)
    actions = query.order_by(ProjectAction.created_at.desc()).all()
    return {"success": True, "actions": [ActionResponse.model_validate(a) for a in actions]}


def get_action_or_404(db: Session, action_id: uuid.UUID) -> ProjectAction:
    action = db.query(ProjectAction).filter(ProjectAction.id == action_id).first()
    if not action:
        raise HTTPException(status_code=404, detail="Action not found")
    return action


@actions_router.get("/{action_id}")
def get_action(
    action_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.actions.view_page")),
):
    return {"success": True, "action": ActionResponse.model_validate(get_action_or_404(db, action_id))}


@actions_router.post("/", status_code=status.HTTP_201_CREATED)
def create_action(
    action_in: ActionCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("accounting.actions.create")),
):
    if not action_in.description or not action_in.description.strip():
        raise HTTPException(status_code=400, detail="Action description is required")
    if action_in.status and action_in.status not in ACTION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid action status")
    if action_in.project_id:
        get_project_or_404(db, action_in.project_id)

    data = {k: v for k, v in action_in.model_dump().items() if v is not None}
    data["description"] = data["description"].strip()
    data.setdefault("date_assignment", date.today())
    action = ProjectAction(assigned_by=current_user.id, **data)
    db.add(action)
    db.commit()
    db.refresh(action)
    return {"success": True, "action": ActionResponse.model_validate(action)}


@actions_router.put("/{action_id}")
def update_action(
    action_id: uuid.UUID,
    action_in: ActionUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.actions.update")),
):
    action = get_action_or_404(db, action_id)
    data = action_in.model_dump(exclude_unset=True)
    if "description" in data and not (data["description"] or "").strip():
        raise HTTPException(status_code=400, detail="Action description is required")
    if "status" in data and data["status"] not in ACTION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid action status")
    if data.get("project_id"):
        get_project_or_404(db, data["project_id"])

    for key, value in data.items():
        setattr(action, key, value)
    db.commit()
    db.refresh(action)
    return {"success": True, "action": ActionResponse.model_validate(action)}


@actions_router.delete("/{action_id}")
def delete_action(
    action_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.actions.delete")),
):
    action = get_action_or_404(db, action_id)
    db.delete(action)
    db.commit()
    return {"success": True, "message": "Action deleted"}
