import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from redis import Redis
from sqlalchemy.orm import Session

from .. import auth, cache, crud, models, schemas
from ..database import get_db, get_redis_client
from ..deps import find_owned_spot
from ..exceptions import SpotNotFound

logger = logging.getLogger("spotbnb.spots")

router = APIRouter(prefix="/spots", tags=["Spots"])


@router.get("", response_model=schemas.SpotPage)
def read_spots(
        db: Session = Depends(get_db),
        page: int = Query(1),
        size: int = Query(crud.MAX_PAGE_SIZE),
        min_lat: Optional[float] = Query(None, alias="minLat"),
        max_lat: Optional[float] = Query(None, alias="maxLat"),
        min_lng: Optional[float] = Query(None, alias="minLng"),
        max_lng: Optional[float] = Query(None, alias="maxLng"),
        min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
        max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
):
    # Out-of-range paging is clamped rather than rejected
    page, size = crud.clamp_pagination(page, size)
    spots = crud.get_spots(
        db,
        page=page,
        size=size,
        min_lat=min_lat,
        max_lat=max_lat,
        min_lng=min_lng,
        max_lng=max_lng,
        min_price=min_price,
        max_price=max_price,
    )
    return schemas.SpotPage(spots=spots, page=page, size=size)


@router.get("/current", response_model=schemas.SpotCollection)
def read_my_spots(
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
):
    return schemas.SpotCollection(spots=crud.get_spots_by_owner(db, owner_id=current_user.id))


@router.get("/{spot_id}", response_model=schemas.SpotDetail)
def read_spot(
        spot_id: int,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    cached_spot = cache.get_cached_spot(redis_client, spot_id)
    if cached_spot:
        return cached_spot

    spot = crud.get_spot_detail(db, spot_id=spot_id)
    if spot is None:
        raise SpotNotFound()

    cache.cache_spot(redis_client, spot_id, spot.model_dump(mode="json", by_alias=True))
    return spot


@router.post("", response_model=schemas.SpotRead, status_code=status.HTTP_201_CREATED)
def create_spot(
        spot: schemas.SpotCreate,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
):
    db_spot = crud.create_spot(db=db, spot=spot, owner_id=current_user.id)
    logger.info(f"User {current_user.id} listed spot {db_spot.id}")
    return db_spot


@router.put("/{spot_id}", response_model=schemas.SpotRead)
def update_spot(
        spot_id: int,
        spot: schemas.SpotUpdate,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    db_spot = find_owned_spot(db, spot_id, current_user)
    db_spot = crud.update_spot(db=db, db_spot=db_spot, spot=spot)
    cache.invalidate_spot(redis_client, db_spot.id)
    return db_spot


@router.delete("/{spot_id}", response_model=schemas.MessageRead)
def delete_spot(
        spot_id: int,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    db_spot = find_owned_spot(db, spot_id, current_user)
    crud.delete_spot(db=db, db_spot=db_spot)
    cache.invalidate_spot(redis_client, spot_id)
    logger.info(f"Spot {spot_id} deleted")
    return {"message": "Successfully deleted"}


@router.post("/{spot_id}/images", response_model=schemas.SpotImageRead, status_code=status.HTTP_201_CREATED)
def add_spot_image(
        spot_id: int,
        image: schemas.SpotImageCreate,
        current_user: Annotated[models.User, Depends(auth.get_current_user)],
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
):
    db_spot = find_owned_spot(db, spot_id, current_user)
    db_image = crud.add_spot_image(db=db, db_spot=db_spot, image=image)
    cache.invalidate_spot(redis_client, db_spot.id)
    return db_image
