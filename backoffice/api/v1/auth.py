from datetime import datetime, timezone
from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from backoffice.api import deps
from backoffice.core import security
from backoffice.core.config import settings
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.schemas.auth import ChangePassword, Login, ProfileResponse
from backoffice.services.permissions import get_user_permissions

logger = logging.getLogger(__name__)

router = APIRouter()


def issue_token(user: Profile) -> str:
    return security.create_access_token(
        user.id,
        claims={
            "username": user.username,
            "role": user.role_name,
            "role_id": str(user.role_id) if user.role_id else None,
            "full_name": user.full_name,
        },
    )


def session_payload(db: Session, user: Profile, token: str) -> dict:
    return {
        "success": True,
        "token": token,
        "user": {
            "id": str(user.id),
            "username": user.username,
            "full_name": user.full_name,
            "role": user.role_name,
            "role_id": str(user.role_id) if user.role_id else None,
        },
        "permissions": sorted(get_user_permissions(db, user)),
    }


@router.post("/login")
def login(credentials: Login, response: Response, db: Session = Depends(get_db)) -> Any:
    user = db.query(Profile).filter(Profile.username == credentials.username).first()
    if not user or not security.verify_password(credentials.password, user.password_hash):
        logger.info("Failed login for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    token = issue_token(user)
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return session_payload(db, user, token)


@router.get("/me")
def read_me(
    current_user: Profile = Depends(deps.get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "user": ProfileResponse.model_validate(current_user),
        "permissions": sorted(get_user_permissions(db, current_user)),
    }


@router.post("/refresh")
def refresh_token(
    current_user: Profile = Depends(deps.get_current_user),
    db: Session = Depends(get_db),
):
    return session_payload(db, current_user, issue_token(current_user))


@router.post("/change-password")
def change_password(
    payload: ChangePassword,
    current_user: Profile = Depends(deps.get_current_user),
    db: Session = Depends(get_db),
):
    if not security.verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if len(payload.new_password) < 6:
        raise HTTPException(
            status_code=400, detail="New password must be at least 6 characters"
        )
    current_user.password_hash = security.get_password_hash(payload.new_password)
    db.commit()
    return {"success": True, "message": "Password updated"}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie("access_token")
    return {"success": True, "message": "Logged out"}
