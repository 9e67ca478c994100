from typing import Any
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core import security
from backoffice.core.database import get_db
from backoffice.models.auth import Profile, Role, UserRole
from backoffice.schemas.auth import ProfileResponse, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_single_role(db: Session, user: Profile, role_id: uuid.UUID) -> None:
    db.query(UserRole).filter(UserRole.user_id == user.id).delete()
    db.add(UserRole(user_id=user.id, role_id=role_id))
    user.role_id = role_id


@router.get("/")
def list_users(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.users.view_page")),
):
    users = db.query(Profile).order_by(Profile.full_name).all()
    return {"success": True, "users": [ProfileResponse.model_validate(u) for u in users]}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.users.create")),
) -> Any:
    if len(user_in.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    if db.query(Profile).filter(Profile.username == user_in.username).first():
        raise HTTPException(status_code=409, detail="Username already exists")
    if not db.query(Role).filter(Role.id == user_in.role_id).first():
        raise HTTPException(status_code=404, detail="Role not found")

    try:
        user = Profile(
            username=user_in.username,
            password_hash=security.get_password_hash(user_in.password),
            full_name=user_in.full_name,
            email=user_in.email,
        )
        db.add(user)
        db.flush()
        _set_single_role(db, user, user_in.role_id)
        db.commit()
        db.refresh(user)
        return {"success": True, "user": ProfileResponse.model_validate(user)}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create user: {str(e)}")


@router.put("/{user_id}")
def update_user(
    user_id: uuid.UUID,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("accounting.users.update")),
):
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    data = user_in.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    role_id = data.pop("role_id", None)
    if password is not None:
        if len(password) < 6:
            raise HTTPException(
                status_code=400, detail="Password must be at least 6 characters"
            )
        user.password_hash = security.get_password_hash(password)
    if role_id is not None:
        if not db.query(Role).filter(Role.id == role_id).first():
            raise HTTPException(status_code=404, detail="Role not found")
        _set_single_role(db, user, role_id)
    for key, value in data.items():
        setattr(user, key, value)

    db.commit()
    db.refresh(user)
    return {"success": True, "user": ProfileResponse.model_validate(user)}


@router.delete("/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(PermissionChecker("accounting.users.delete")),
):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    db.query(UserRole).filter(UserRole.user_id == user.id).delete()
    db.delete(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("User %s is still referenced and was not deleted", user_id)
        raise HTTPException(
            status_code=409,
            detail={
                "error": "This user is referenced by other records; deactivate it instead",
                "code": "USER_IN_USE",
            },
        )
    return {"success": True, "message": "User deleted"}
