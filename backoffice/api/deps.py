from typing import Optional
import logging
import uuid

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from backoffice.core import security
from backoffice.core.config import settings
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.hr import Employee
from backoffice.services.permissions import has_permission

logger = logging.getLogger(__name__)

# OAuth2PasswordBearer allows for token extraction from header
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,  # Don't error if header is missing, we check cookies
)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
) -> Profile:
    if not token:
        # Fallback to cookie
        token = request.cookies.get("access_token")

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Access denied. No token provided.", "code": "NO_TOKEN"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = security.decode_access_token(token)
        profile_id = uuid.UUID(str(payload.get("sub")))
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Token expired", "code": "TOKEN_EXPIRED"},
        )
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Invalid token", "code": "INVALID_TOKEN"},
        )

    user = db.query(Profile).filter(Profile.id == profile_id).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "User not found or inactive", "code": "USER_NOT_FOUND"},
        )
    return user


class PermissionChecker:
    """Passes when the user is admin, holds ``*``, or holds any of the codes."""

    def __init__(self, *codes: str):
        self.codes = codes

    def __call__(
        self,
        current_user: Profile = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Profile:
        if not has_permission(db, current_user, *self.codes):
            logger.info(
                "Permission denied for %s, required one of %s",
                current_user.username,
                ", ".join(self.codes),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "Insufficient permissions",
                    "code": "INSUFFICIENT_PERMISSION",
                    "required": list(self.codes),
                },
            )
        return current_user


def get_current_employee(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Employee:
    """Employee record linked to the logged-in profile."""
    employee = db.query(Employee).filter(Employee.profile_id == current_user.id).first()
    if not employee:
        raise HTTPException(
            status_code=404, detail="No employee record for this user"
        )
    return employee
