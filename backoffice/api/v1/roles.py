from collections import defaultdict
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Permission, Profile, Role, RolePermission, UserRole
from backoffice.schemas.auth import (
    AssignRole,
    PermissionResponse,
    ProfileResponse,
    RoleCreate,
    RoleDetail,
    RoleSummary,
    RoleUpdate,
)
from backoffice.services.permissions import ADMIN_ROLE

logger = logging.getLogger(__name__)

router = APIRouter()


def replace_role_permissions(db: Session, role: Role, permission_ids) -> None:
    ids = set(permission_ids)
    if ids:
        found = db.query(Permission.id).filter(Permission.id.in_(ids)).count()
        if found != len(ids):
            raise HTTPException(status_code=400, detail="Unknown permission id")
    db.query(RolePermission).filter(RolePermission.role_id == role.id).delete()
    for permission_id in ids:
        db.add(RolePermission(role_id=role.id, permission_id=permission_id))


def role_users(db: Session, role: Role):
    via_user_roles = select(UserRole.user_id).where(UserRole.role_id == role.id)
    return (
        db.query(Profile)
        .filter((Profile.role_id == role.id) | (Profile.id.in_(via_user_roles)))
        .order_by(Profile.full_name)
        .all()
    )


@router.get("/")
def list_roles(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.view_page")),
):
    permission_counts = dict(
        db.query(RolePermission.role_id, func.count(RolePermission.id))
        .group_by(RolePermission.role_id)
        .all()
    )
    roles = db.query(Role).order_by(Role.name).all()
    result = []
    for role in roles:
        summary = RoleSummary.model_validate(role)
        summary.permission_count = permission_counts.get(role.id, 0)
        summary.user_count = len(role_users(db, role))
        result.append(summary)
    return {"success": True, "roles": result}


@router.get("/permissions/all")
def list_permissions_grouped(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.view_page")),
):
    grouped = defaultdict(list)
    for permission in db.query(Permission).order_by(
        Permission.module, Permission.menu, Permission.sort_order
    ):
        grouped[permission.module].append(PermissionResponse.model_validate(permission))
    return {"success": True, "permissions": dict(grouped)}


@router.get("/{role_id}")
def get_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.view_page")),
):
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    detail = RoleDetail.model_validate(role)
    detail.users = [ProfileResponse.model_validate(u) for u in role_users(db, role)]
    return {"success": True, "role": detail}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_role(
    role_in: RoleCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.create")),
):
    name = (role_in.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Role name is required")
    if db.query(Role).filter(func.lower(Role.name) == name.lower()).first():
        raise HTTPException(status_code=400, detail="A role with this name already exists")

    try:
        role = Role(name=name, description=role_in.description, is_system_role=False)
        db.add(role)
        db.flush()
        replace_role_permissions(db, role, role_in.permission_ids)
        db.commit()
        db.refresh(role)
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create role: {str(e)}")

    logger.info("Role %s created with %d permission(s)", role.name, len(role_in.permission_ids))
    return {"success": True, "role": RoleDetail.model_validate(role)}


@router.put("/{role_id}")
def update_role(
    role_id: uuid.UUID,
    role_in: RoleUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.update")),
):
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    if role_in.permission_ids is not None and role.name == ADMIN_ROLE:
        raise HTTPException(
            status_code=403, detail="The admin role permissions cannot be modified"
        )

    if role_in.name is not None and role_in.name.strip() != role.name:
        new_name = role_in.name.strip()
        if role.is_system_role:
            raise HTTPException(status_code=400, detail="System roles cannot be renamed")
        if not new_name:
            raise HTTPException(status_code=400, detail="Role name is required")
        duplicate = (
            db.query(Role)
            .filter(func.lower(Role.name) == new_name.lower(), Role.id != role.id)
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=400, detail="A role with this name already exists"
            )
        role.name = new_name

    try:
        if role_in.description is not None:
            role.description = role_in.description
        if role_in.permission_ids is not None:
            replace_role_permissions(db, role, role_in.permission_ids)
        db.commit()
        db.refresh(role)
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update role: {str(e)}")

    return {"success": True, "role": RoleDetail.model_validate(role)}


@router.delete("/{role_id}")
def delete_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.delete")),
):
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    if role.is_system_role:
        raise HTTPException(status_code=400, detail="System roles cannot be deleted")
    users = role_users(db, role)
    if users:
        raise HTTPException(
            status_code=400,
            detail={
                "error": f"Cannot delete role: {len(users)} user(s) still assigned",
                "user_count": len(users),
            },
        )

    db.query(RolePermission).filter(RolePermission.role_id == role.id).delete()
    db.delete(role)
    db.commit()
    return {"success": True, "message": "Role deleted"}


@router.put("/user/{user_id}/role")
def assign_user_role(
    user_id: uuid.UUID,
    payload: AssignRole,
    db: Session = Depends(get_db),
    _: Profile = Depends(
        PermissionChecker("accounting.roles.update", "accounting.users.assign_roles")
    ),
):
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    role = db.query(Role).filter(Role.id == payload.role_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")

    db.query(UserRole).filter(UserRole.user_id == user.id).delete()
    db.add(UserRole(user_id=user.id, role_id=role.id))
    user.role_id = role.id
    db.commit()
    db.refresh(user)
    return {"success": True, "user": ProfileResponse.model_validate(user)}
