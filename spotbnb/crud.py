import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from . import auth, models, schemas
from .exceptions import FIELD_MESSAGES

MAX_PAGE_SIZE = 20


# --- Users ---

def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_credential(db: Session, credential: str):
    """Looks a user up by username or email."""
    return db.query(models.User).filter(
        or_(models.User.username == credential, models.User.email == credential)
    ).first()


def find_duplicate_user_fields(db: Session, user: schemas.UserCreate) -> dict:
    errors = {}
    if db.query(models.User).filter(models.User.email == user.email).first():
        errors["email"] = "User with that email already exists"
    if db.query(models.User).filter(models.User.username == user.username).first():
        errors["username"] = "User with that username already exists"
    return errors


def create_user(db: Session, user: schemas.UserCreate):
    db_user = models.User(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        username=user.username,
        hashed_password=auth.hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


# --- Spot listing ---

def _avg_rating_subquery():
    return (
        select(func.avg(models.Review.stars))
        .where(models.Review.spot_id == models.Spot.id)
        .correlate(models.Spot)
        .scalar_subquery()
    )


def _num_reviews_subquery():
    return (
        select(func.count(models.Review.id))
        .where(models.Review.spot_id == models.Spot.id)
        .correlate(models.Spot)
        .scalar_subquery()
    )


def _preview_image_subquery():
    # First image flagged as preview; nothing stops a spot from having several
    return (
        select(models.SpotImage.url)
        .where(models.SpotImage.spot_id == models.Spot.id, models.SpotImage.preview.is_(True))
        .order_by(models.SpotImage.id)
        .limit(1)
        .correlate(models.Spot)
        .scalar_subquery()
    )


def _as_float(value) -> Optional[float]:
    # AVG() comes back as Decimal on PostgreSQL
    return float(value) if value is not None else None


def clamp_pagination(page: int, size: int) -> tuple[int, int]:
    page = max(page, 1)
    size = min(max(size, 1), MAX_PAGE_SIZE)
    return page, size


def _summary_query(db: Session):
    return db.query(
        models.Spot,
        _avg_rating_subquery().label("avg_rating"),
        _preview_image_subquery().label("preview_image"),
    )


def _to_summaries(rows) -> list[schemas.SpotSummary]:
    return [
        schemas.SpotSummary.model_validate(spot).model_copy(
            update={"avg_rating": _as_float(avg_rating), "preview_image": preview_image}
        )
        for spot, avg_rating, preview_image in rows
    ]


def get_spots(
        db: Session,
        page: int = 1,
        size: int = MAX_PAGE_SIZE,
        min_lat: Optional[float] = None,
        max_lat: Optional[float] = None,
        min_lng: Optional[float] = None,
        max_lng: Optional[float] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
) -> list[schemas.SpotSummary]:
    """
    Returns one page of spots, narrowed by the inclusive range filters that
    were supplied. Filters left as None impose no constraint.
    """
    query = _summary_query(db)

    bounds = (
        (models.Spot.lat, min_lat, max_lat),
        (models.Spot.lng, min_lng, max_lng),
        (models.Spot.price, min_price, max_price),
    )
    for column, low, high in bounds:
        if low is not None:
            query = query.filter(column >= low)
        if high is not None:
            query = query.filter(column <= high)

    rows = query.order_by(models.Spot.id).offset((page - 1) * size).limit(size).all()
    return _to_summaries(rows)


def get_spots_by_owner(db: Session, owner_id: int) -> list[schemas.SpotSummary]:
    rows = _summary_query(db).filter(models.Spot.owner_id == owner_id).order_by(models.Spot.id).all()
    return _to_summaries(rows)


def get_spot(db: Session, spot_id: int, for_update: bool = False):
    query = db.query(models.Spot).filter(models.Spot.id == spot_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def get_spot_detail(db: Session, spot_id: int) -> Optional[schemas.SpotDetail]:
    row = (
        db.query(
            models.Spot,
            _avg_rating_subquery().label("avg_rating"),
            _num_reviews_subquery().label("num_reviews"),
        )
        .options(joinedload(models.Spot.owner), selectinload(models.Spot.images))
        .filter(models.Spot.id == spot_id)
        .first()
    )
    if row is None:
        return None

    spot, avg_rating, num_reviews = row
    preview = next((image.url for image in spot.images if image.preview), None)
    return schemas.SpotDetail.model_validate(spot).model_copy(
        update={
            "avg_rating": _as_float(avg_rating),
            "num_reviews": num_reviews or 0,
            "preview_image": preview,
        }
    )


# --- Spot mutation ---

def create_spot(db: Session, spot: schemas.SpotCreate, owner_id: int):
    db_spot = models.Spot(**spot.model_dump(), owner_id=owner_id)
    db.add(db_spot)
    db.commit()
    db.refresh(db_spot)
    return db_spot


def update_spot(db: Session, db_spot: models.Spot, spot: schemas.SpotUpdate):
    for field, value in spot.model_dump().items():
        setattr(db_spot, field, value)
    db.commit()
    db.refresh(db_spot)
    return db_spot


def delete_spot(db: Session, db_spot: models.Spot):
    db.delete(db_spot)
    db.commit()


def add_spot_image(db: Session, db_spot: models.Spot, image: schemas.SpotImageCreate):
    db_image = models.SpotImage(spot_id=db_spot.id, url=image.url, preview=image.preview)
    db.add(db_image)
    db.commit()
    db.refresh(db_image)
    return db_image


# --- Bookings ---

def validate_booking_dates(
        start_date: Optional[datetime.date],
        end_date: Optional[datetime.date],
        today: Optional[datetime.date] = None,
) -> dict:
    """
    Returns a per-field error map for a requested stay; empty when the
    range is acceptable. A date of None is reported as invalid or missing.
    """
    today = today or datetime.date.today()
    errors = {}
    if start_date is None:
        errors["startDate"] = FIELD_MESSAGES["startDate"]
    elif start_date < today:
        errors["startDate"] = "startDate cannot be in the past"
    if end_date is None:
        errors["endDate"] = FIELD_MESSAGES["endDate"]
    elif start_date is not None and end_date <= start_date:
        errors["endDate"] = "endDate cannot be on or before startDate"
    return errors


def _booking_exists(db: Session, spot_id: int, *conditions) -> bool:
    return db.query(models.Booking.id).filter(
        models.Booking.spot_id == spot_id, *conditions
    ).first() is not None


def find_booking_conflicts(db: Session, spot_id: int, start_date: datetime.date, end_date: datetime.date) -> dict:
    """
    Checks a requested stay against the spot's existing bookings.

    A date conflicts when it falls inside an existing booking, bounds
    included, so a stay may not begin on the day another one ends. A stay
    that swallows a whole existing booking conflicts on both dates.

    Returns a map of ``startDate``/``endDate`` to conflict messages, each
    key present only when that date conflicts.
    """
    Booking = models.Booking
    errors = {}

    if _booking_exists(db, spot_id, Booking.start_date <= start_date, Booking.end_date >= start_date):
        errors["startDate"] = "Start date conflicts with an existing booking"
    if _booking_exists(db, spot_id, Booking.start_date <= end_date, Booking.end_date >= end_date):
        errors["endDate"] = "End date conflicts with an existing booking"

    if not errors and _booking_exists(db, spot_id, Booking.start_date > start_date, Booking.end_date < end_date):
        errors["startDate"] = "Start date conflicts with an existing booking"
        errors["endDate"] = "End date conflicts with an existing booking"

    return errors


def create_booking(db: Session, spot_id: int, user_id: int, booking: schemas.BookingCreate):
    db_booking = models.Booking(
        spot_id=spot_id,
        user_id=user_id,
        start_date=booking.start_date,
        end_date=booking.end_date,
    )
    db.add(db_booking)
    db.commit()
    db.refresh(db_booking)
    return db_booking


def get_bookings_for_spot(db: Session, spot_id: int):
    return (
        db.query(models.Booking)
        .options(joinedload(models.Booking.user))
        .filter(models.Booking.spot_id == spot_id)
        .order_by(models.Booking.start_date)
        .all()
    )


def get_bookings_by_user(db: Session, user_id: int) -> list[schemas.BookingWithSpot]:
    rows = (
        db.query(models.Booking, _preview_image_subquery().label("preview_image"))
        .join(models.Spot, models.Booking.spot_id == models.Spot.id)
        .options(joinedload(models.Booking.spot))
        .filter(models.Booking.user_id == user_id)
        .order_by(models.Booking.start_date)
        .all()
    )
    bookings = []
    for booking, preview_image in rows:
        item = schemas.BookingWithSpot.model_validate(booking)
        item.spot.preview_image = preview_image
        bookings.append(item)
    return bookings


# --- Reviews ---

def get_reviews_for_spot(db: Session, spot_id: int):
    return (
        db.query(models.Review)
        .options(joinedload(models.Review.user), selectinload(models.Review.images))
        .filter(models.Review.spot_id == spot_id)
        .order_by(models.Review.id)
        .all()
    )


def get_review_by_user(db: Session, spot_id: int, user_id: int):
    return db.query(models.Review).filter(
        models.Review.spot_id == spot_id,
        models.Review.user_id == user_id,
    ).first()


def create_review(db: Session, db_spot: models.Spot, user_id: int, review: schemas.ReviewCreate):
    """
    Inserts a review and refreshes the spot's cached aggregates in the same
    transaction. Raises IntegrityError if the user already reviewed the spot.
    """
    db_review = models.Review(
        spot_id=db_spot.id,
        user_id=user_id,
        review=review.review,
        stars=review.stars,
    )
    db.add(db_review)
    db.flush()
    refresh_spot_rating(db, db_spot)
    db.commit()
    db.refresh(db_review)
    db.refresh(db_spot)
    return db_review


def refresh_spot_rating(db: Session, db_spot: models.Spot):
    """
    Recomputes ``num_reviews`` and ``avg_rating`` for a spot from all of its
    reviews and stores them on the spot. Does NOT commit.
    """
    stars = [s for (s,) in db.query(models.Review.stars).filter(models.Review.spot_id == db_spot.id).all()]
    db_spot.num_reviews = len(stars)
    db_spot.avg_rating = sum(stars) / len(stars) if stars else None
    return db_spot
