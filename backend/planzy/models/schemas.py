from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ORMBaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PlaceCategory(StrEnum):
    """Provider category names used by nearby searches."""

    HOTEL = "hotels"
    RESTAURANT = "restaurants"
    ATTRACTION = "attractions"


class CategoryQuotas(BaseModel):
    model_config = ConfigDict(frozen=True)

    hotel_count: int = Field(default=1, ge=0)
    restaurant_count: int = Field(default=6, ge=0)
    attraction_count: int = Field(default=3, ge=0)
    nightlife_count: int = Field(default=0, ge=0)
    category_filter: str | None = None


class TravelIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: str = Field(..., min_length=1, max_length=255)
    duration_days: int = Field(default=3, ge=1)
    theme: str | None = None
    preferences: CategoryQuotas = Field(default_factory=CategoryQuotas)

    @field_validator("destination")
    @classmethod
    def strip_destination(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "destination must not be empty"
            raise ValueError(msg)
        return value


class SearchTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: PlaceCategory
    sub_filter: str | None = None
    quota: int = Field(default=0, ge=0)


class SearchResultStub(BaseModel):
    location_id: str
    name: str = ""
    rating: float | None = None
    num_reviews: int | None = None


class GeoLocation(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    address: str = ""


class ContactInfo(BaseModel):
    phone: str | None = None
    website: str | None = None


class CandidatePlace(BaseModel):
    id: str | None = None
    name: str
    location: GeoLocation = Field(default_factory=GeoLocation)
    rating: float = 0.0
    reviews_count: int = 0
    description: str | None = None
    photo_url: str | None = None
    category: str | None = None
    contact: ContactInfo | None = None


class Itinerary(BaseModel):
    id: str
    owner_id: str
    title: str
    created_at: datetime
    places: list[CandidatePlace] = Field(default_factory=list)


class StoredPlaceSchema(ORMBaseSchema):
    location_id: str
    name: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    rating: float | None = None
    description: str | None = None
    photo_url: str | None = None
    category: str | None = None


class VacationPlaceSchema(ORMBaseSchema):
    place_id: str
    order_index: int = Field(ge=0)
    place: StoredPlaceSchema | None = None


class VacationSchema(ORMBaseSchema):
    id: str
    user_id: str
    title: str
    created_at: datetime
    places_count: int = 0


class VacationDetailSchema(VacationSchema):
    places: list[VacationPlaceSchema] = Field(default_factory=list)


class PlanVacationPayload(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    text: str = Field(default="", max_length=2000)


class PlanVacationResult(BaseModel):
    vacation: VacationSchema
    places_added: int = Field(ge=0)
    message: str
