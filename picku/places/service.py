"""
Restaurant search over Google Places.

``search_restaurants`` is the only entry point used by the HTTP layer and the
results view. It validates input, makes exactly one outbound call, and either
returns up to ``max_results`` formatted restaurants in shuffled order or raises
``PlacesSearchError`` carrying the HTTP status and a user-facing message.
"""
from __future__ import annotations

import logging
import random
from typing import Sequence

import requests
from pydantic import ValidationError

from .client import build_maps_link, build_photo_url, text_search
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .models import FormattedRestaurant, PlaceResult, SearchRequest
from .query import NO_ADDRESS, NO_GENRE, build_search_params, map_status_error

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred."


class PlacesSearchError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def sample_places(
    places: Sequence[PlaceResult],
    limit: int,
    rng: random.Random | None = None,
) -> list[PlaceResult]:
    """Shuffle a copy of ``places`` and keep the first ``limit`` entries."""
    shuffled = list(places)
    (rng or random).shuffle(shuffled)
    return shuffled[:limit]


def format_place(place: PlaceResult, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> FormattedRestaurant:
    address = place.formatted_address or NO_ADDRESS
    photo_reference = place.photos[0].photo_reference if place.photos else None
    return FormattedRestaurant(
        name=place.name,
        rating=place.rating or 0,
        address=address,
        genre=place.types[0] if place.types else NO_GENRE,
        price_level=place.price_level or 0,
        photo_url=build_photo_url(photo_reference, config) if photo_reference else "",
        maps_link=build_maps_link(place.name, address, config),
    )


def search_restaurants(
    request: SearchRequest,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
    rng: random.Random | None = None,
) -> list[FormattedRestaurant]:
    if not request.location or not request.location.strip():
        raise PlacesSearchError(400, "Location is required")

    if not config.api_key:
        raise PlacesSearchError(500, "API key is not configured")

    params = build_search_params(request, config)

    try:
        data = text_search(params, config)
    except (requests.RequestException, ValueError, ValidationError):
        logger.warning("Places text search failed for query %r", params["query"], exc_info=True)
        raise PlacesSearchError(500, UNEXPECTED_ERROR) from None

    if data.status != "OK":
        logger.error("Google Places API Error: %s - %s", data.status, data.error_message or "")
        status_code, message = map_status_error(data.status, data.error_message)
        raise PlacesSearchError(status_code, message)

    selected = sample_places(data.results, config.max_results, rng)
    return [format_place(place, config) for place in selected]
