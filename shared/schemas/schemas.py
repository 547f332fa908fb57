"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
Wire format is camelCase; request bodies also accept snake_case names.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ErrorResponse(BaseSchema):
    error: str


# ── User ──────────────────────────────────────────────────────

class UserResponse(BaseSchema):
    id: uuid.UUID
    email: str
    name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    created_at: datetime


class UserPublic(BaseSchema):
    id: uuid.UUID
    name: str
    avatar_url: Optional[str] = None


class UserContact(BaseSchema):
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None


class UserEnvelope(BaseSchema):
    user: UserResponse


# ── Auth ──────────────────────────────────────────────────────

class RegisterRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(BaseSchema):
    message: str
    user: UserResponse
    token: str


# ── Catalog ───────────────────────────────────────────────────

class ServiceResponse(BaseSchema):
    id: uuid.UUID
    name: str
    name_hindi: Optional[str] = None
    category: str
    description: Optional[str] = None
    is_active: bool


class ServiceListResponse(BaseSchema):
    services: List[ServiceResponse]


class SeedResponse(BaseSchema):
    message: str
    created: int
    existing: int


class PanditServiceCreate(BaseSchema):
    service_id: uuid.UUID
    price: Decimal = Field(..., gt=0)
    duration: Optional[str] = Field(None, max_length=50)


class PanditServiceResponse(BaseSchema):
    id: uuid.UUID
    pandit_id: uuid.UUID
    service_id: uuid.UUID
    price: float
    duration: Optional[str] = None
    service: ServiceResponse


class PanditServiceEnvelope(BaseSchema):
    message: str
    pandit_service: PanditServiceResponse


# ── Review ────────────────────────────────────────────────────

class ReviewCreateRequest(BaseSchema):
    booking_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5, strict=True)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseSchema):
    id: uuid.UUID
    booking_id: uuid.UUID
    user_id: uuid.UUID
    pandit_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: UserPublic


class ReviewEnvelope(BaseSchema):
    message: str
    review: ReviewResponse


class ReviewListResponse(BaseSchema):
    reviews: List[ReviewResponse]


# ── Pandit ────────────────────────────────────────────────────

class PanditAvailabilityResponse(BaseSchema):
    id: uuid.UUID
    date: date
    start_time: str
    end_time: str
    is_booked: bool


class PanditProfileCreate(BaseSchema):
    bio: Optional[str] = Field(None, max_length=2000)
    experience_years: int = Field(0, ge=0, le=80)
    languages: List[str] = Field(default_factory=list)
    specializations: List[str] = Field(default_factory=list)
    price_min: Decimal = Field(Decimal("0"), ge=0)
    price_max: Decimal = Field(Decimal("0"), ge=0)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)

    @model_validator(mode="after")
    def check_price_band(self):
        if self.price_min > self.price_max:
            raise ValueError("priceMin cannot be greater than priceMax")
        return self


class PanditProfileUpdate(BaseSchema):
    """
    Patch document: a field left out of the body is not touched, an explicit
    null clears it. Only nullable columns may be cleared.
    """
    CLEARABLE: ClassVar[FrozenSet[str]] = frozenset({"bio", "pincode"})

    bio: Optional[str] = Field(None, max_length=2000)
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    languages: Optional[List[str]] = None
    specializations: Optional[List[str]] = None
    price_min: Optional[Decimal] = Field(None, ge=0)
    price_max: Optional[Decimal] = Field(None, ge=0)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    is_available: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_for_required(self):
        for field in self.model_fields_set:
            if field not in self.CLEARABLE and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class PanditProfileResponse(BaseSchema):
    id: uuid.UUID
    user_id: uuid.UUID
    bio: Optional[str] = None
    experience_years: int
    languages: List[str]
    specializations: List[str]
    price_min: float
    price_max: float
    city: str
    state: str
    pincode: Optional[str] = None
    is_available: bool
    rating: float
    total_reviews: int
    created_at: datetime
    user: UserPublic


class PanditSearchItem(PanditProfileResponse):
    services: List[PanditServiceResponse] = []


class PanditDetailResponse(PanditSearchItem):
    reviews: List[ReviewResponse] = []
    availability: List[PanditAvailabilityResponse] = []


class PanditEnvelope(BaseSchema):
    message: Optional[str] = None
    pandit: PanditProfileResponse


class PanditDetailEnvelope(BaseSchema):
    pandit: PanditDetailResponse


class Pagination(BaseSchema):
    page: int
    limit: int
    total: int
    total_pages: int


class PanditSearchResponse(BaseSchema):
    pandits: List[PanditSearchItem]
    pagination: Pagination


# ── Booking ───────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    pandit_id: uuid.UUID
    service_id: uuid.UUID
    booking_date: date
    start_time: str = Field(..., min_length=1, max_length=8)
    end_time: Optional[str] = Field(None, max_length=8)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    special_requests: Optional[str] = Field(None, max_length=1000)
    total_amount: Decimal = Field(..., gt=0)


class BookingStatusUpdate(BaseSchema):
    status: str
    cancel_reason: Optional[str] = Field(None, max_length=500)


class BookingPandit(BaseSchema):
    id: uuid.UUID
    city: str
    rating: float
    user: UserPublic


class BookingResponse(BaseSchema):
    id: uuid.UUID
    user_id: uuid.UUID
    pandit_id: uuid.UUID
    service_id: uuid.UUID
    booking_date: date
    start_time: str
    end_time: Optional[str] = None
    address: str
    city: str
    pincode: Optional[str] = None
    special_requests: Optional[str] = None
    total_amount: float
    status: str
    cancelled_by: Optional[uuid.UUID] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # Joined
    user: UserContact
    pandit: BookingPandit
    service: ServiceResponse


class BookingEnvelope(BaseSchema):
    message: str
    booking: BookingResponse


class BookingListResponse(BaseSchema):
    bookings: List[BookingResponse]
