from pydantic import AnyUrl, BaseModel, TypeAdapter, ValidationError, field_validator
from typing import Optional
import datetime
import math

from .models import HotelStatus

_url_adapter = TypeAdapter(AnyUrl)


class Hotel(BaseModel):
    id: str
    name: str
    location: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    price_per_night: Optional[float] = None
    rating: Optional[float] = None
    status: HotelStatus = HotelStatus.PENDING
    user_id: Optional[str] = None
    created_at: Optional[datetime.datetime] = None


class HotelCreate(BaseModel):
    """
    A submission from the public form. Fields are checked in declaration
    order, so the first error reported is the first rule broken.
    """
    name: str
    location: str
    description: str
    image_url: str = ""
    price_per_night: float = 0

    @field_validator("name")
    @classmethod
    def name_min_length(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("Hotel name must be at least 2 characters")
        return value

    @field_validator("location")
    @classmethod
    def location_min_length(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("Location must be at least 2 characters")
        return value

    @field_validator("description")
    @classmethod
    def description_min_length(cls, value: str) -> str:
        if len(value) < 10:
            raise ValueError("Description must be at least 10 characters")
        return value

    @field_validator("image_url")
    @classmethod
    def image_url_is_url(cls, value: str) -> str:
        if value == "":
            return value
        try:
            _url_adapter.validate_python(value)
        except ValidationError:
            raise ValueError("Must be a valid URL")
        return value

    @field_validator("price_per_night")
    @classmethod
    def price_is_positive(cls, value: float) -> float:
        # Zero means "no price given"; NaN and infinity are not prices
        if value != 0 and not (math.isfinite(value) and value > 0):
            raise ValueError("Price must be positive")
        return value

    def to_row(self, user_id: str) -> dict:
        return {
            "name": self.name,
            "location": self.location,
            "description": self.description,
            "image_url": self.image_url or None,
            "price_per_night": self.price_per_night or None,
            "user_id": user_id,
            "status": HotelStatus.PENDING.value,
        }


class HotelUpdate(BaseModel):
    # Admin edit buffer; written back as typed, blanks stored as null
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price_per_night: Optional[float] = None

    @field_validator("description", "image_url", "price_per_night", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("price_per_night")
    @classmethod
    def price_is_finite(cls, value: Optional[float]) -> Optional[float]:
        # Rows travel as JSON, which has no NaN or infinity
        if value is not None and not math.isfinite(value):
            raise ValueError("Price must be a finite number")
        return value

    @classmethod
    def from_hotel(cls, hotel: Hotel) -> "HotelUpdate":
        return cls(**hotel.model_dump(include=set(cls.model_fields)))


class UserSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user_id: str
    email: Optional[str] = None

    @classmethod
    def from_auth_response(cls, data: dict) -> "UserSession":
        user = data.get("user") or {}
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            user_id=user["id"],
            email=user.get("email"),
        )


def first_error_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    # Messages raised from our validators carry the original ValueError
    ctx_error = error.get("ctx", {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return error["msg"]
