import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas
from ..database import get_db
from ..deps import find_spot
from ..exceptions import BookingConflict, Forbidden, ValidationFailed
from ..limits import booking_limiter

logger = logging.getLogger("spotbnb.bookings")

router = APIRouter(tags=["Bookings"])


@router.get("/bookings/current", response_model=schemas.UserBookingList)
def read_my_bookings(
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
):
    """
    Get all bookings made by the authenticated user.
    """
    return schemas.UserBookingList(bookings=crud.get_bookings_by_user(db, user_id=current_user.id))


@router.get("/spots/{spot_id}/bookings", response_model=None)
def read_spot_bookings(
        spot_id: int,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
) -> dict:
    """
    Get all bookings for a spot. The owner sees who booked; everybody else
    only sees which dates are taken.
    """
    db_spot = find_spot(db, spot_id)
    bookings = crud.get_bookings_for_spot(db, spot_id=db_spot.id)
    view = schemas.BookingWithGuest if auth.is_owner(current_user, db_spot.owner_id) else schemas.BookingDates
    return {
        "Bookings": [view.model_validate(b).model_dump(mode="json", by_alias=True) for b in bookings]
    }


@router.post(
    "/spots/{spot_id}/bookings",
    response_model=schemas.BookingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter)],
)
def create_booking(
        spot_id: int,
        booking: schemas.BookingCreate,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
):
    """
    Book a spot for the authenticated user.
    """
    date_errors = crud.validate_booking_dates(booking.start_date, booking.end_date)
    if date_errors:
        raise ValidationFailed(errors=date_errors)

    # Lock the spot row so concurrent requests for it run check-then-insert one at a time
    db_spot = find_spot(db, spot_id, for_update=True)

    if auth.is_owner(current_user, db_spot.owner_id):
        raise Forbidden()

    conflicts = crud.find_booking_conflicts(
        db=db,
        spot_id=spot_id,
        start_date=booking.start_date,
        end_date=booking.end_date,
    )
    if conflicts:
        raise BookingConflict(errors=conflicts)

    db_booking = crud.create_booking(db=db, spot_id=spot_id, user_id=current_user.id, booking=booking)
    logger.info(f"User {current_user.id} booked spot {spot_id} from {booking.start_date} to {booking.end_date}")
    return db_booking
