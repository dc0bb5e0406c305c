import datetime
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db
from .exceptions import AuthenticationRequired, Forbidden

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# auto_error=False so a missing header reaches our own 401 instead of the framework's
api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_user_id(token: Optional[str]) -> Optional[int]:
    """
    Extracts the user ID from an 'Authorization: Bearer ...' header value.
    Returns None for a missing, malformed or expired token.
    """
    try:
        scheme, jwt_token = token.split()
        if scheme.lower() != "bearer":
            return None
        payload = jwt.decode(jwt_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return int(payload.get("sub"))
    except (JWTError, ValueError, AttributeError, TypeError):
        return None


def get_optional_user(
        token: Annotated[Optional[str], Depends(api_key_header)],
        db: Session = Depends(get_db),
) -> Optional[models.User]:
    user_id = decode_user_id(token)
    if user_id is None:
        return None
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_current_user(
        user: Annotated[Optional[models.User], Depends(get_optional_user)],
) -> models.User:
    if user is None:
        raise AuthenticationRequired()
    return user


def is_owner(user: Optional[models.User], owner_id: int) -> bool:
    """An operation on a resource is permitted only to the user who owns it."""
    return user is not None and user.id == owner_id


def ensure_owner(user: Optional[models.User], owner_id: int) -> None:
    if not is_owner(user, owner_id):
        raise Forbidden()
