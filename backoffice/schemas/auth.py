from typing import Optional, List
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class Login(BaseModel):
    username: str
    password: str


class ChangePassword(BaseModel):
    current_password: str
    new_password: str


class ProfileResponse(BaseModel):
    id: UUID
    username: str
    full_name: str
    email: Optional[str] = None
    role_id: Optional[UUID] = None
    role_name: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    username: str = Field(min_length=3)
    password: str
    full_name: str = Field(min_length=1)
    email: Optional[str] = None
    role_id: UUID


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[UUID] = None
    is_active: Optional[bool] = None


# --- Roles & Permissions ---


class PermissionResponse(BaseModel):
    id: UUID
    code: str
    module: str
    menu: str
    action: str
    label: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permission_ids: List[UUID] = []


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permission_ids: Optional[List[UUID]] = None


class RoleResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_system_role: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleSummary(RoleResponse):
    permission_count: int = 0
    user_count: int = 0


class RoleDetail(RoleResponse):
    permissions: List[PermissionResponse] = []
    users: List[ProfileResponse] = []


class RolePermissionsUpdate(BaseModel):
    permissionIds: List[UUID]


class AssignRole(BaseModel):
    role_id: UUID
