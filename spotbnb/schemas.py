import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    # Wire format is camelCase; Python attributes stay snake_case
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# --- Users & session ---

class UserSummary(APIModel):
    id: int
    first_name: str
    last_name: str


class UserRead(UserSummary):
    email: str
    username: str


class UserCreate(APIModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    username: str = Field(min_length=4, max_length=30)
    password: str = Field(min_length=6)


class LoginRequest(APIModel):
    credential: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SessionRead(APIModel):
    user: Optional[UserRead] = None
    token: Optional[str] = None


# --- Spots ---

class SpotBase(APIModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)


class SpotCreate(SpotBase):
    pass


class SpotUpdate(SpotBase):
    pass


class SpotRead(SpotBase):
    id: int
    owner_id: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class SpotSummary(SpotRead):
    avg_rating: Optional[float] = None
    preview_image: Optional[str] = None


class SpotPage(APIModel):
    spots: List[SpotSummary] = Field(alias="Spots")
    page: int
    size: int


class SpotCollection(APIModel):
    spots: List[SpotSummary] = Field(alias="Spots")


class SpotImageCreate(APIModel):
    url: str = Field(min_length=1)
    preview: bool = False


class SpotImageRead(APIModel):
    id: int
    url: str
    preview: bool


class SpotDetail(SpotRead):
    num_reviews: int = 0
    avg_rating: Optional[float] = None
    preview_image: Optional[str] = None
    images: List[SpotImageRead] = Field(default_factory=list, alias="SpotImages")
    owner: UserSummary = Field(alias="Owner")


class SpotRating(APIModel):
    id: int
    num_reviews: int
    avg_rating: Optional[float] = None


class MessageRead(BaseModel):
    message: str


# --- Reviews ---

class ReviewCreate(APIModel):
    review: str = Field(min_length=1)
    stars: int = Field(ge=1, le=5)


class ReviewRead(APIModel):
    id: int
    user_id: int
    spot_id: int
    review: str
    stars: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ReviewImageRead(APIModel):
    id: int
    url: str


class ReviewDetail(ReviewRead):
    user: Optional[UserSummary] = Field(default=None, alias="User")
    images: List[ReviewImageRead] = Field(default_factory=list, alias="ReviewImages")


class ReviewList(APIModel):
    reviews: List[ReviewDetail] = Field(alias="Reviews")


class ReviewCreated(APIModel):
    new_review: ReviewRead
    spot: SpotRating


# --- Bookings ---

class BookingCreate(APIModel):
    # Missing or unparseable dates arrive as None and are reported by
    # crud.validate_booking_dates alongside the other date rules
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None

    @field_validator("start_date", "end_date", mode="wrap")
    @classmethod
    def unparseable_as_missing(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None


class BookingDates(APIModel):
    """What a guest may see of somebody else's booking."""
    spot_id: int
    start_date: datetime.date
    end_date: datetime.date


class BookingRead(BookingDates):
    id: int
    user_id: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class BookingWithGuest(BookingRead):
    user: UserSummary = Field(alias="User")


class BookingSpot(APIModel):
    id: int
    owner_id: int
    address: str
    city: str
    state: str
    country: str
    lat: float
    lng: float
    name: str
    price: float
    preview_image: Optional[str] = None


class BookingWithSpot(BookingRead):
    spot: BookingSpot = Field(alias="Spot")


class UserBookingList(APIModel):
    bookings: List[BookingWithSpot] = Field(alias="Bookings")
