import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas
from ..database import get_db
from ..exceptions import AuthenticationRequired, ValidationFailed
from ..limits import session_limiter

logger = logging.getLogger("spotbnb.auth")

router = APIRouter(tags=["Session"])


def _session_for(user: models.User) -> schemas.SessionRead:
    return schemas.SessionRead(
        user=schemas.UserRead.model_validate(user),
        token=auth.create_access_token(user.id),
    )


@router.post(
    "/users",
    response_model=schemas.SessionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(session_limiter)],
)
def sign_up(user: schemas.UserCreate, db: Session = Depends(get_db)):
    duplicates = crud.find_duplicate_user_fields(db, user)
    if duplicates:
        raise ValidationFailed("User already exists", errors=duplicates)

    db_user = crud.create_user(db=db, user=user)
    logger.info(f"Registered user {db_user.id} ({db_user.username})")
    return _session_for(db_user)


@router.post("/session", response_model=schemas.SessionRead, dependencies=[Depends(session_limiter)])
def log_in(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    db_user = crud.get_user_by_credential(db, credentials.credential)
    if db_user is None or not auth.verify_password(credentials.password, db_user.hashed_password):
        raise AuthenticationRequired("Invalid credentials")
    return _session_for(db_user)


@router.get("/session", response_model=schemas.SessionRead)
def read_session(user: Annotated[Optional[models.User], Depends(auth.get_optional_user)]):
    if user is None:
        return schemas.SessionRead()
    return schemas.SessionRead(user=schemas.UserRead.model_validate(user))
