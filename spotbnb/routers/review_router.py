import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import auth, cache, crud, models, schemas
from ..database import get_db, get_redis_client
from ..deps import find_spot, get_existing_spot
from ..exceptions import DuplicateReview
from ..limits import review_limiter

logger = logging.getLogger("spotbnb.reviews")

router = APIRouter(prefix="/spots/{spot_id}/reviews", tags=["Reviews"])


@router.get("", response_model=schemas.ReviewList)
def read_spot_reviews(
        db_spot: Annotated[models.Spot, Depends(get_existing_spot)],
        db: Session = Depends(get_db),
):
    reviews = crud.get_reviews_for_spot(db, spot_id=db_spot.id)
    return schemas.ReviewList(reviews=[schemas.ReviewDetail.model_validate(r) for r in reviews])


@router.post(
    "",
    response_model=schemas.ReviewCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(review_limiter)],
)
def create_review(
        spot_id: int,
        review: schemas.ReviewCreate,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    """
    Review a spot. Each user may review a given spot once; the spot's
    review count and average rating are refreshed with the new review.
    """
    db_spot = find_spot(db, spot_id)
    if crud.get_review_by_user(db, spot_id=db_spot.id, user_id=current_user.id):
        raise DuplicateReview()

    try:
        db_review = crud.create_review(db=db, db_spot=db_spot, user_id=current_user.id, review=review)
    except IntegrityError:
        # Lost a race against a concurrent review from the same user
        db.rollback()
        raise DuplicateReview()

    cache.invalidate_spot(redis_client, db_spot.id)
    logger.info(f"User {current_user.id} reviewed spot {db_spot.id} with {review.stars} stars")
    return schemas.ReviewCreated(
        new_review=schemas.ReviewRead.model_validate(db_review),
        spot=schemas.SpotRating.model_validate(db_spot),
    )
