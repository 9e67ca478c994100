from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from uuid import UUID


class ProjectCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = Field(default=None, ge=0)
    manager_id: Optional[UUID] = None
    segment_id: Optional[UUID] = None
    city: Optional[str] = None


class ProjectUpdate(ProjectCreate):
    pass


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    status: str
    priority: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None
    manager_id: Optional[UUID] = None
    manager_name: Optional[str] = None
    segment_id: Optional[UUID] = None
    city: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActionCreate(BaseModel):
    project_id: Optional[UUID] = None
    description: Optional[str] = None
    description_detail: Optional[str] = None
    pilote_id: Optional[UUID] = None
    date_assignment: Optional[date] = None
    deadline: Optional[date] = None
    status: Optional[str] = None
    commentaire: Optional[str] = None


class ActionUpdate(ActionCreate):
    pass


class ActionResponse(BaseModel):
    id: UUID
    project_id: Optional[UUID] = None
    project_name: Optional[str] = None
    description: str
    description_detail: Optional[str] = None
    pilote_id: Optional[UUID] = None
    pilote_name: Optional[str] = None
    assigned_by: Optional[UUID] = None
    date_assignment: Optional[date] = None
    deadline: Optional[date] = None
    status: str
    commentaire: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LinkActions(BaseModel):
    action_ids: List[UUID] = []
