from fastapi import Depends
from sqlalchemy.orm import Session

from . import auth, crud, models
from .database import get_db
from .exceptions import SpotNotFound


def find_spot(db: Session, spot_id: int, for_update: bool = False) -> models.Spot:
    db_spot = crud.get_spot(db, spot_id=spot_id, for_update=for_update)
    if db_spot is None:
        raise SpotNotFound()
    return db_spot


def find_owned_spot(db: Session, spot_id: int, current_user: models.User) -> models.Spot:
    """
    The spot with the given id, provided ``current_user`` owns it (404 before
    403). Handlers call this after the request body has been validated.
    """
    db_spot = find_spot(db, spot_id)
    auth.ensure_owner(current_user, db_spot.owner_id)
    return db_spot


def get_existing_spot(spot_id: int, db: Session = Depends(get_db)) -> models.Spot:
    # Only for routes with neither authentication nor a request body
    return find_spot(db, spot_id)
