"""
shared/models/models.py
All SQLAlchemy ORM models for the Find My Pandit platform.
UUID primary keys generated application-side so the same models run on
PostgreSQL and SQLite.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from config.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# JSONB on PostgreSQL (supports containment queries), plain JSON elsewhere
StringList = JSON().with_variant(JSONB(), "postgresql")


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    FAMILY = "FAMILY"
    PANDIT = "PANDIT"


class BookingStatus(str, PyEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# ── Mixins ────────────────────────────────────────────────────

class TimestampMixin:
    """Adds created_at and updated_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ── Models ────────────────────────────────────────────────────

class User(TimestampMixin, Base):
    """Account for a family (customer) or a pandit (officiant)."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.FAMILY
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    pandit_profile: Mapped[Optional["PanditProfile"]] = relationship(
        back_populates="user", uselist=False
    )
    bookings: Mapped[List["Booking"]] = relationship(
        back_populates="user", foreign_keys="Booking.user_id"
    )
    reviews: Mapped[List["Review"]] = relationship(back_populates="user")

    __table_args__ = (Index("ix_users_role", "role"),)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Service(TimestampMixin, Base):
    """Global catalog of ceremony types."""
    __tablename__ = "services"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name_hindi: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_services_category", "category"),)


class PanditProfile(TimestampMixin, Base):
    """
    Pandit's professional profile. One-to-one with a PANDIT user.
    rating / total_reviews are denormalized from the reviews table and
    rewritten by the review service on every new review.
    """
    __tablename__ = "pandit_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    experience_years: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    languages: Mapped[List[str]] = mapped_column(StringList, default=list, nullable=False)
    specializations: Mapped[List[str]] = mapped_column(StringList, default=list, nullable=False)

    # Pricing band
    price_min: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    price_max: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    # Location
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    pincode: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Rating (denormalized for query performance)
    rating: Mapped[Decimal] = mapped_column(Numeric(2, 1), default=0, nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="pandit_profile")
    services: Mapped[List["PanditService"]] = relationship(back_populates="pandit")
    availability: Mapped[List["PanditAvailability"]] = relationship(
        back_populates="pandit", order_by="PanditAvailability.date"
    )
    bookings: Mapped[List["Booking"]] = relationship(back_populates="pandit")
    reviews: Mapped[List["Review"]] = relationship(back_populates="pandit")

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_pandit_rating_range"),
        Index("ix_pandit_profiles_city", "city"),
        Index("ix_pandit_profiles_rating", "rating"),
    )


class PanditService(TimestampMixin, Base):
    """A pandit's own price and duration for a catalog service."""
    __tablename__ = "pandit_services"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pandit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pandit_profiles.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # "2 hours"

    pandit: Mapped["PanditProfile"] = relationship(back_populates="services")
    service: Mapped["Service"] = relationship()

    __table_args__ = (
        UniqueConstraint("pandit_id", "service_id", name="uq_pandit_service"),
    )


class PanditAvailability(Base):
    """Pandit's available time windows."""
    __tablename__ = "pandit_availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pandit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pandit_profiles.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(8), nullable=False)  # "09:00"
    end_time: Mapped[str] = mapped_column(String(8), nullable=False)    # "12:00"
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    pandit: Mapped["PanditProfile"] = relationship(back_populates="availability")

    __table_args__ = (Index("ix_availability_pandit_date", "pandit_id", "date"),)


class Booking(TimestampMixin, Base):
    """
    A family's booking of one pandit for one service.
    Status transitions: PENDING → CONFIRMED → COMPLETED, with CANCELLED
    reachable from PENDING and CONFIRMED.
    """
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    pandit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pandit_profiles.id"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id"), nullable=False
    )

    # Schedule
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(8), nullable=False)
    end_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    # Location (where the ceremony will be performed)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    pincode: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Status
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING
    )
    cancelled_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="bookings", foreign_keys=[user_id])
    pandit: Mapped["PanditProfile"] = relationship(back_populates="bookings")
    service: Mapped["Service"] = relationship()
    review: Mapped[Optional["Review"]] = relationship(back_populates="booking", uselist=False)
    audit_logs: Mapped[List["BookingAuditLog"]] = relationship(
        back_populates="booking", order_by="BookingAuditLog.created_at"
    )

    __table_args__ = (
        Index("ix_bookings_user_id", "user_id"),
        Index("ix_bookings_pandit_id", "pandit_id"),
        Index("ix_bookings_status", "status"),
        Index("ix_bookings_booking_date", "booking_date"),
    )


class BookingAuditLog(Base):
    """Immutable log of all booking status transitions."""
    __tablename__ = "booking_audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), nullable=False
    )
    from_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    to_status: Mapped[str] = mapped_column(String(30), nullable=False)
    changed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    booking: Mapped["Booking"] = relationship(back_populates="audit_logs")

    __table_args__ = (Index("ix_booking_audit_booking_id", "booking_id"),)


class Review(TimestampMixin, Base):
    """Post-booking review. One per booking (enforced by unique constraint)."""
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), unique=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    pandit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pandit_profiles.id"), nullable=False
    )
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="reviews")
    pandit: Mapped["PanditProfile"] = relationship(back_populates="reviews")
    booking: Mapped["Booking"] = relationship(back_populates="review")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        Index("ix_reviews_pandit_id", "pandit_id"),
        Index("ix_reviews_user_id", "user_id"),
    )
