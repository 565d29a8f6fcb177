from __future__ import annotations

import logging
from urllib.parse import quote, urlencode

import requests

from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .models import PlacesSearchResponse

logger = logging.getLogger(__name__)


def text_search(
    params: dict,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> PlacesSearchResponse:
    """
    Call the Places Text Search endpoint once.

    Transport errors, non-JSON bodies and malformed payloads propagate to the
    caller (``requests.RequestException``, ``ValueError`` or
    ``pydantic.ValidationError``).
    """
    logger.debug("Places text search: query=%r maxprice=%s", params.get("query"), params.get("maxprice"))
    response = requests.get(config.text_search_url, params=params, timeout=config.timeout)
    return PlacesSearchResponse.model_validate(response.json())


def build_photo_url(photo_reference: str, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> str:
    query = urlencode({
        "maxwidth": config.photo_max_width,
        "photoreference": photo_reference,
        "key": config.api_key,
    })
    return f"{config.photo_url}?{query}"


def build_maps_link(name: str, address: str, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> str:
    query = urlencode({"api": 1, "query": f"{name}, {address}"}, quote_via=quote)
    return f"{config.maps_search_url}?{query}"
