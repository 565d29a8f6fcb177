from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    location: str | None = None
    genre: str | None = None
    budget: str | None = None


class PlacePhoto(BaseModel):
    photo_reference: str | None = None


class PlaceResult(BaseModel):
    """Read-only view of a Text Search result; unknown fields are ignored."""

    name: str = ""
    rating: float | None = None
    formatted_address: str | None = None
    price_level: int | None = None
    photos: list[PlacePhoto] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)


class PlacesSearchResponse(BaseModel):
    status: str
    results: list[PlaceResult] = Field(default_factory=list)
    error_message: str | None = None


class FormattedRestaurant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    rating: float = 0
    address: str
    genre: str
    price_level: int = 0
    photo_url: str = ""
    maps_link: str


class ErrorResponse(BaseModel):
    error: str
