import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    created_at = Column(TIMESTAMP, default=_utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=_utcnow, onupdate=_utcnow, nullable=False)


# --- User Model ---
class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(256), unique=True, index=True, nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    spots = relationship("Spot", back_populates="owner")
    bookings = relationship("Booking", back_populates="user")
    reviews = relationship("Review", back_populates="user")


# --- Spot Model (a rentable listing) ---
class Spot(TimestampMixin, Base):
    __tablename__ = "spots"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    address = Column(String, nullable=False)
    city = Column(String, index=True, nullable=False)
    state = Column(String, nullable=False)
    country = Column(String, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)

    # Denormalized review aggregates, refreshed by crud.refresh_spot_rating()
    num_reviews = Column(Integer, default=0, nullable=False)
    avg_rating = Column(Float, nullable=True)

    owner = relationship("User", back_populates="spots")
    images = relationship(
        "SpotImage", back_populates="spot", cascade="all, delete-orphan", order_by="SpotImage.id"
    )
    reviews = relationship("Review", back_populates="spot", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="spot", cascade="all, delete-orphan")


class SpotImage(TimestampMixin, Base):
    __tablename__ = "spot_images"

    id = Column(Integer, primary_key=True, index=True)
    spot_id = Column(Integer, ForeignKey("spots.id", ondelete="CASCADE"), index=True, nullable=False)
    url = Column(String, nullable=False)
    preview = Column(Boolean, default=False, nullable=False)

    spot = relationship("Spot", back_populates="images")


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    spot_id = Column(Integer, ForeignKey("spots.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    spot = relationship("Spot", back_populates="bookings")
    user = relationship("User", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_bookings_end_after_start"),
    )


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    spot_id = Column(Integer, ForeignKey("spots.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    review = Column(Text, nullable=False)
    stars = Column(Integer, nullable=False)

    spot = relationship("Spot", back_populates="reviews")
    user = relationship("User", back_populates="reviews")
    images = relationship(
        "ReviewImage", back_populates="review", cascade="all, delete-orphan", order_by="ReviewImage.id"
    )

    __table_args__ = (
        UniqueConstraint("spot_id", "user_id", name="uq_reviews_spot_user"),
        CheckConstraint("stars BETWEEN 1 AND 5", name="ck_reviews_stars_range"),
    )


class ReviewImage(TimestampMixin, Base):
    __tablename__ = "review_images"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), index=True, nullable=False)
    url = Column(String, nullable=False)

    review = relationship("Review", back_populates="images")
