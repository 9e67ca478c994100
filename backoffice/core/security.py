from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union
from jose import jwt
import bcrypt
import uuid

from backoffice.core.config import settings

ALGORITHM = settings.ALGORITHM
SECRET_KEY = settings.SECRET_KEY


def create_access_token(
    subject: Union[str, Any],
    claims: Optional[Dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode = dict(claims or {})
    to_encode.update({"exp": expire, "sub": str(subject), "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jose's ExpiredSignatureError or JWTError on a bad token."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(12)).decode("utf-8")


def validate_file_extension(filename: str, allowed_extensions: list) -> bool:
    """Validate file extension to prevent malicious uploads"""
    if not filename:
        return False

    ext = filename.split(".")[-1].lower() if "." in filename else ""
    return ext in [e.lower().lstrip(".") for e in allowed_extensions]


def generate_secure_filename(original_filename: str) -> str:
    """Generate a random filename while preserving extension"""
    if not original_filename:
        return str(uuid.uuid4())

    parts = original_filename.rsplit(".", 1)
    ext = parts[-1].lower() if len(parts) > 1 else ""
    secure_name = str(uuid.uuid4())

    return f"{secure_name}.{ext}" if ext else secure_name
