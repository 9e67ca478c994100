from collections import defaultdict
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Permission, Profile, Role, RolePermission
from backoffice.schemas.auth import PermissionResponse, RolePermissionsUpdate
from backoffice.services.permissions import ADMIN_ROLE, get_user_permissions, is_admin
from backoffice.api.v1.roles import replace_role_permissions

router = APIRouter()

view_roles = PermissionChecker("accounting.roles.view_page")


def ordered_permissions(db: Session):
    return (
        db.query(Permission)
        .order_by(Permission.module, Permission.menu, Permission.sort_order)
        .all()
    )


@router.get("/")
def list_permissions(db: Session = Depends(get_db), _: Profile = Depends(view_roles)):
    return {
        "success": True,
        "permissions": [PermissionResponse.model_validate(p) for p in ordered_permissions(db)],
    }


@router.get("/tree")
def permission_tree(db: Session = Depends(get_db), _: Profile = Depends(view_roles)):
    tree = defaultdict(lambda: defaultdict(list))
    for permission in ordered_permissions(db):
        tree[permission.module][permission.menu].append(
            PermissionResponse.model_validate(permission)
        )
    return {
        "success": True,
        "tree": {module: dict(menus) for module, menus in tree.items()},
    }


@router.get("/by-role")
def permissions_by_role(db: Session = Depends(get_db), _: Profile = Depends(view_roles)):
    roles = db.query(Role).order_by(Role.name).all()
    return {
        "success": True,
        "roles": [
            {
                "id": role.id,
                "name": role.name,
                "is_system_role": role.is_system_role,
                "permissions": [p.code for p in role.permissions],
            }
            for role in roles
        ],
    }


@router.put("/role/{role_id}")
def update_role_permissions(
    role_id: uuid.UUID,
    payload: RolePermissionsUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.roles.update")),
):
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    if role.name == ADMIN_ROLE:
        raise HTTPException(
            status_code=403, detail="The admin role permissions cannot be modified"
        )

    try:
        replace_role_permissions(db, role, payload.permissionIds)
        db.commit()
    except HTTPException:
        db.rollback()
        raise

    db.refresh(role)
    return {
        "success": True,
        "message": "Permissions updated",
        "permissions": [p.code for p in role.permissions],
    }


@router.get("/user/{user_id}")
def user_permissions(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(view_roles),
):
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "success": True,
        "user_id": user.id,
        "role": user.role_name,
        "is_admin": is_admin(db, user),
        "permissions": sorted(get_user_permissions(db, user)),
    }


@router.get("/stats")
def permission_stats(db: Session = Depends(get_db), _: Profile = Depends(view_roles)):
    per_module = dict(
        db.query(Permission.module, func.count(Permission.id))
        .group_by(Permission.module)
        .all()
    )
    return {
        "success": True,
        "stats": {
            "total_permissions": sum(per_module.values()),
            "total_roles": db.query(Role).count(),
            "total_assignments": db.query(RolePermission).count(),
            "by_module": per_module,
        },
    }
