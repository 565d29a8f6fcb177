from __future__ import annotations

import secrets
from enum import Enum
from urllib.parse import urlencode

from pydantic import BaseModel, Field, field_validator

from ..places.models import FormattedRestaurant

UNSPECIFIED = "指定なし"

GENRES: list[str] = [UNSPECIFIED, "和食", "中華", "イタリアン", "フレンチ", "ラーメン", "カフェ", "居酒屋"]

BUDGET_TIERS: dict[str, str] = {
    UNSPECIFIED: UNSPECIFIED,
    "1": "¥（〜999円）",
    "2": "¥¥（1,000円〜2,999円）",
    "3": "¥¥¥（3,000円〜5,999円）",
    "4": "¥¥¥¥（6,000円〜）",
}


class SearchForm(BaseModel):
    location: str = Field(..., min_length=1, description="Station or area name")
    genre: str = UNSPECIFIED
    budget: str = UNSPECIFIED

    @field_validator("location")
    @classmethod
    def _location_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("location must not be blank")
        return v

    @field_validator("genre")
    @classmethod
    def _known_genre(cls, v: str) -> str:
        if v not in GENRES:
            raise ValueError(f"genre must be one of {GENRES}")
        return v

    @field_validator("budget")
    @classmethod
    def _known_budget(cls, v: str) -> str:
        if v not in BUDGET_TIERS:
            raise ValueError(f"budget must be one of {list(BUDGET_TIERS)}")
        return v

    def results_url(self) -> str:
        query = urlencode({"location": self.location, "genre": self.genre, "budget": self.budget})
        return f"/results?{query}"


class SearchSessionState(BaseModel):
    session_id: str = Field(default_factory=lambda: secrets.token_urlsafe(16))
    request_count: int = Field(default=0, ge=0)
    result_links: list[str] = Field(default_factory=list)
    selected_links: list[str] = Field(default_factory=list)

    def cookie_payload(self) -> dict:
        """The part of the state kept in the session cookie; the rest stays server-side."""
        return self.model_dump(include={"session_id"})


class CopyScope(str, Enum):
    all = "all"
    selected = "selected"


class SelectionRequest(BaseModel):
    link: str = Field(..., min_length=1)


class CopyRequest(BaseModel):
    scope: CopyScope = CopyScope.all


class CopyResponse(BaseModel):
    text: str | None = None
    copied: bool = False
    acknowledge_seconds: float = 0.0


class ResultsState(BaseModel):
    restaurants: list[FormattedRestaurant] = Field(default_factory=list)
    error: str | None = None
    request_count: int = 0
    remaining: int = 0
    limit_reached: bool = False
    selected_links: list[str] = Field(default_factory=list)
