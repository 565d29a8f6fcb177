from __future__ import annotations

from typing import Any

from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .models import SearchRequest

NO_ADDRESS = "住所情報なし"
NO_GENRE = "ジャンル情報なし"
UNKNOWN_ERROR = "不明なエラーが発生しました。"

# Places status -> (HTTP status, user-facing message)
STATUS_ERRORS: dict[str, tuple[int, str]] = {
    "ZERO_RESULTS": (404, "条件に合うお店が見つかりませんでした。"),
    "INVALID_REQUEST": (400, "検索条件が無効です。場所を正しく入力してください。"),
    "OVER_QUERY_LIMIT": (429, "一時的に利用が集中しています。しばらくしてから再度お試しください。"),
    "REQUEST_DENIED": (403, "APIキーが無効か、権限がありません。"),
}


def is_unspecified(value: str | None, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> bool:
    """True when ``value`` is missing, blank or one of the "no filter" sentinels."""
    if value is None:
        return True
    value = value.strip()
    return not value or value in config.unspecified_values


def build_query_text(
    location: str,
    genre: str | None = None,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> str:
    category = config.default_category if is_unspecified(genre, config) else genre.strip()
    return f"{category} {location.strip()}".strip()


def parse_budget(budget: str | None, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> int | None:
    """Return the price level 1-4, or ``None`` when no price filter applies."""
    if is_unspecified(budget, config):
        return None
    try:
        level = int(budget.strip())
    except ValueError:
        return None
    if 1 <= level <= 4:
        return level
    return None


def build_search_params(
    request: SearchRequest,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "query": build_query_text(request.location or "", request.genre, config),
        "key": config.api_key,
        "language": config.language,
    }
    max_price = parse_budget(request.budget, config)
    if max_price is not None:
        params["maxprice"] = max_price
    return params


def map_status_error(status: str, error_message: str | None = None) -> tuple[int, str]:
    if status in STATUS_ERRORS:
        return STATUS_ERRORS[status]
    return 500, error_message or UNKNOWN_ERROR
