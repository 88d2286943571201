import datetime as dt
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from backend.app.db.models import BookingStatus, UserRole


def _zero_pad(value: str) -> str:
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


# "9:30" and "09:30" name the same slot; store the padded form.
TimeOfDay = Annotated[
    str,
    Field(pattern=r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$", examples=["19:00"]),
    AfterValidator(_zero_pad),
]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


# --- auth -----------------------------------------------------------------

class RegisterIn(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=8, max_length=72)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    role: UserRole = UserRole.CUSTOMER


class LoginIn(BaseModel):
    email: str
    password: str


class ProfileUpdateIn(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=32)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None
    role: UserRole
    created_at: dt.datetime


class AuthOut(BaseModel):
    user: UserOut
    token: str


# --- restaurants ----------------------------------------------------------

class RestaurantUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    address: str | None = Field(default=None, min_length=1, max_length=255)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, min_length=1, max_length=32)
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=254)
    website: str | None = Field(default=None, max_length=500)
    cuisine: str | None = Field(default=None, max_length=100)
    price_range: int | None = Field(default=None, ge=1, le=4)
    image_url: str | None = Field(default=None, max_length=500)
    opening_time: TimeOfDay | None = None
    closing_time: TimeOfDay | None = None
    total_tables: int | None = Field(default=None, gt=0)
    capacity: int | None = Field(default=None, gt=0)


class RestaurantIn(RestaurantUpdateIn):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=32)
    price_range: int = Field(default=2, ge=1, le=4)
    opening_time: TimeOfDay
    closing_time: TimeOfDay
    total_tables: int = Field(default=20, gt=0)
    capacity: int = Field(default=80, gt=0)


class RestaurantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    description: str | None
    address: str
    city: str
    state: str | None
    zip_code: str | None
    phone: str
    email: str | None
    website: str | None
    cuisine: str | None
    price_range: int
    image_url: str | None
    opening_time: str
    closing_time: str
    total_tables: int
    capacity: int
    rating: float
    review_count: int
    booking_count: int
    created_at: dt.datetime


class OwnerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    first_name: str
    last_name: str


class RestaurantDetailOut(RestaurantOut):
    owner: OwnerSummary


class RestaurantListOut(BaseModel):
    restaurants: list[RestaurantOut]
    pagination: Pagination


class AvailabilityOut(BaseModel):
    date: dt.date
    party_size: int
    available_slots: list[str]
    total_slots: int


class TableIn(BaseModel):
    table_number: str = Field(min_length=1, max_length=20)
    capacity: int = Field(ge=1, le=20)
    is_active: bool = True


class TableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    restaurant_id: UUID
    table_number: str
    capacity: int
    is_active: bool


# --- bookings -------------------------------------------------------------

class BookingCreateIn(BaseModel):
    restaurant_id: UUID
    date: dt.date
    time: TimeOfDay
    party_size: int = Field(ge=1, le=20)
    special_requests: str | None = Field(default=None, max_length=500)


class BookingUpdateIn(BaseModel):
    date: dt.date | None = None
    time: TimeOfDay | None = None
    party_size: int | None = Field(default=None, ge=1, le=20)
    special_requests: str | None = Field(default=None, max_length=500)


class BookingStatusIn(BaseModel):
    status: BookingStatus


class BookedRestaurant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: str
    city: str
    phone: str
    cuisine: str | None
    image_url: str | None


class BookingGuest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    restaurant_id: UUID
    table_id: UUID | None
    date: dt.date
    time: str
    party_size: int
    status: BookingStatus
    special_requests: str | None
    created_at: dt.datetime
    updated_at: dt.datetime
    restaurant: BookedRestaurant
    user: BookingGuest


class BookingListOut(BaseModel):
    bookings: list[BookingOut]
    pagination: Pagination


# --- reviews --------------------------------------------------------------

class ReviewIn(BaseModel):
    restaurant_id: UUID
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=1000)


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    restaurant_id: UUID
    rating: int
    comment: str | None
    created_at: dt.datetime
