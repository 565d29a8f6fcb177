from __future__ import annotations

from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from picku.app import app, get_places_config
from picku.places.config import PlacesConfig
from picku.session.store import begin_search, clear_store, end_search, get_entry, put_entry

TEST_CONFIG = PlacesConfig(api_key="test-key")


def _place(i: int) -> dict:
    return {
        "name": f"Restaurant {i}",
        "rating": 3.5,
        "formatted_address": f"{i} Chome, Shinjuku",
        "types": ["restaurant"],
    }


def _ok(n: int) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"status": "OK", "results": [_place(i) for i in range(n)]}
    return response


@pytest.fixture(autouse=True)
def places_config():
    app.dependency_overrides[get_places_config] = lambda: TEST_CONFIG
    clear_store()
    yield
    app.dependency_overrides.clear()
    clear_store()


# ── Public endpoints ─────────────────────────────────────────────────────


def test_health():
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata():
    body = TestClient(app).get("/metadata").json()
    assert body["genres"][0] == "指定なし"
    assert "ラーメン" in body["genres"]
    assert [b["value"] for b in body["budgets"]] == ["指定なし", "1", "2", "3", "4"]
    assert body["search_limit"] == 3


# ── Query service ────────────────────────────────────────────────────────


@patch("picku.places.client.requests.get")
def test_restaurants_missing_location(mock_get):
    resp = TestClient(app).get("/api/restaurants")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Location is required"}
    mock_get.assert_not_called()


@patch("picku.places.client.requests.get")
def test_restaurants_missing_api_key(mock_get):
    app.dependency_overrides[get_places_config] = lambda: PlacesConfig(api_key="")
    resp = TestClient(app).get("/api/restaurants", params={"location": "Shinjuku"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "API key is not configured"}
    mock_get.assert_not_called()


@patch("picku.places.client.requests.get")
def test_restaurants_success(mock_get):
    mock_get.return_value = _ok(15)

    resp = TestClient(app).get(
        "/api/restaurants",
        params={"location": "Shinjuku", "genre": "指定なし", "budget": "指定なし"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 9
    assert set(body[0]) == {"name", "rating", "address", "genre", "price_level", "photo_url", "maps_link"}
    assert mock_get.call_args.kwargs["params"]["query"] == "飲食店 Shinjuku"
    assert "maxprice" not in mock_get.call_args.kwargs["params"]


@patch("picku.places.client.requests.get")
def test_restaurants_budget_filter(mock_get):
    mock_get.return_value = _ok(2)

    resp = TestClient(app).get("/api/restaurants", params={"location": "Shinjuku", "budget": "2"})

    assert resp.status_code == 200
    assert len(resp.json()) == 2
    assert mock_get.call_args.kwargs["params"]["maxprice"] == 2


@patch("picku.places.client.requests.get")
def test_restaurants_over_query_limit(mock_get):
    mock_get.return_value.json.return_value = {"status": "OVER_QUERY_LIMIT", "results": []}

    resp = TestClient(app).get("/api/restaurants", params={"location": "Shinjuku"})

    assert resp.status_code == 429
    assert "error" in resp.json()


# ── Form ─────────────────────────────────────────────────────────────────


def test_search_form_redirects_to_results():
    resp = TestClient(app).post(
        "/search",
        json={"location": "新宿駅", "genre": "ラーメン", "budget": "3"},
        follow_redirects=False,
    )

    assert resp.status_code == 303
    url = urlparse(resp.headers["location"])
    assert url.path == "/results"
    assert parse_qs(url.query) == {"location": ["新宿駅"], "genre": ["ラーメン"], "budget": ["3"]}


def test_search_form_defaults_to_unspecified():
    resp = TestClient(app).post("/search", json={"location": "渋谷"}, follow_redirects=False)
    query = parse_qs(urlparse(resp.headers["location"]).query)
    assert query["genre"] == ["指定なし"]
    assert query["budget"] == ["指定なし"]


def test_search_form_rejects_blank_location():
    resp = TestClient(app).post("/search", json={"location": "   "}, follow_redirects=False)
    assert resp.status_code == 422


def test_search_form_rejects_unknown_genre():
    resp = TestClient(app).post(
        "/search", json={"location": "渋谷", "genre": "Tex-Mex"}, follow_redirects=False,
    )
    assert resp.status_code == 422


# ── Results view ─────────────────────────────────────────────────────────


PARAMS = {"location": "Shinjuku", "genre": "指定なし", "budget": "指定なし"}


@patch("picku.places.client.requests.get")
def test_session_limit(mock_get):
    mock_get.return_value = _ok(12)
    client = TestClient(app)

    first = client.get("/results", params=PARAMS).json()
    assert first["request_count"] == 1
    assert first["remaining"] == 2
    assert len(first["restaurants"]) == 9

    client.post("/results/shuffle", params=PARAMS)
    third = client.post("/results/shuffle", params=PARAMS).json()
    assert third["limit_reached"] is True
    assert len(third["restaurants"]) == 9

    fourth = client.post("/results/shuffle", params=PARAMS)
    assert fourth.status_code == 200
    body = fourth.json()
    assert body["error"] == "検索回数の上限に達しました。同じセッションでは3回まで検索できます。"
    assert body["request_count"] == 3
    assert body["restaurants"] == []
    assert mock_get.call_count == 3


@patch("picku.places.client.requests.get")
def test_sessions_are_independent(mock_get):
    mock_get.return_value = _ok(3)
    first = TestClient(app)
    for _ in range(3):
        first.get("/results", params=PARAMS)

    body = TestClient(app).get("/results", params=PARAMS).json()

    assert body["request_count"] == 1
    assert body["error"] is None


@patch("picku.places.client.requests.get")
def test_failed_search_does_not_count(mock_get):
    mock_get.return_value.json.return_value = {"status": "ZERO_RESULTS", "results": []}
    client = TestClient(app)

    body = client.get("/results", params=PARAMS).json()

    assert body["error"] == "条件に合うお店が見つかりませんでした。"
    assert body["request_count"] == 0
    assert body["remaining"] == 3


@patch("picku.places.client.requests.get")
def test_copy_all_after_search(mock_get):
    mock_get.return_value = _ok(2)
    client = TestClient(app)
    links = [r["maps_link"] for r in client.get("/results", params=PARAMS).json()["restaurants"]]

    body = client.post("/results/copy", json={"scope": "all"}).json()

    assert body["copied"] is True
    assert body["text"] == "\n".join(links)
    assert body["acknowledge_seconds"] == 2.0


def test_copy_all_without_results_is_noop():
    body = TestClient(app).post("/results/copy", json={"scope": "all"}).json()
    assert body == {"text": None, "copied": False, "acknowledge_seconds": 0.0}


@patch("picku.places.client.requests.get")
def test_selection_copy_and_reset_on_new_search(mock_get):
    mock_get.return_value = _ok(3)
    client = TestClient(app)
    restaurants = client.get("/results", params=PARAMS).json()["restaurants"]
    link = restaurants[1]["maps_link"]

    state = client.post("/results/selection", json={"link": link}).json()
    assert state["selected_links"] == [link]

    shuffled = client.post("/results/shuffle", params=PARAMS).json()
    assert shuffled["selected_links"] == [link]

    body = client.post("/results/copy", json={"scope": "selected"}).json()
    assert body["text"] == link
    assert body["copied"] is True

    client.post("/search", json={"location": "Shibuya"}, follow_redirects=False)
    assert client.post("/results/copy", json={"scope": "selected"}).json()["copied"] is False
    assert client.post("/results/copy", json={"scope": "all"}).json()["copied"] is False


def _japanese_place(i: int) -> dict:
    return {
        "name": f"ラーメン 一蘭 新宿中央東口店 {i}",
        "rating": 4.1,
        "formatted_address": f"日本、〒160-0022 東京都新宿区新宿３丁目３４−１１ ピースビルB1F {i}",
        "price_level": 2,
        "photos": [{"photo_reference": "Aap_uEA7vb0DDYVJWEaX3O-AtYp77AaswQKSGtDaimt3gt7QCNpdjp1BkdM6acJ96xTec3tsV_ZJNL_JP-lqsVxydG3nh739RE_hepOOL05tfJh2_ranjMadb3VoBYFvF0ma6S24qZ6QJUuV6sSRrhCskSBP5C1myCzsebztMfGvm7ij3gZT"}],
        "types": ["restaurant", "food"],
    }


@patch("picku.places.client.requests.get")
def test_session_cookie_stays_small(mock_get):
    mock_get.return_value.json.return_value = {
        "status": "OK", "results": [_japanese_place(i) for i in range(12)],
    }
    client = TestClient(app)

    resp = client.get("/results", params={"location": "新宿"})
    assert len(resp.headers["set-cookie"]) <= 4096
    restaurants = resp.json()["restaurants"]
    assert len(restaurants) == 9

    for r in restaurants:
        resp = client.post("/results/selection", json={"link": r["maps_link"]})
        assert len(resp.headers["set-cookie"]) <= 4096
    assert len(resp.json()["selected_links"]) == 9

    # The counter survives even though the links never go into the cookie.
    assert client.get("/results", params={"location": "新宿"}).json()["request_count"] == 2


@patch("picku.places.client.requests.get")
def test_unknown_link_is_not_selected(mock_get):
    mock_get.return_value = _ok(3)
    client = TestClient(app)
    client.get("/results", params=PARAMS)

    body = client.post("/results/selection", json={"link": "https://evil.example/x" * 50}).json()

    assert body["selected_links"] == []
    assert client.post("/results/copy", json={"scope": "selected"}).json()["copied"] is False


@patch("picku.places.client.requests.get")
@patch("picku.app.session_store.begin_search", return_value=False)
def test_concurrent_search_in_same_session_is_skipped(mock_begin, mock_get):
    mock_get.return_value = _ok(3)

    body = TestClient(app).get("/results", params=PARAMS).json()

    mock_get.assert_not_called()
    assert body["request_count"] == 0
    assert body["restaurants"] == []


# ── Session store ────────────────────────────────────────────────────────


def test_store_guard_allows_one_search_per_session():
    assert begin_search("sid-1") is True
    assert begin_search("sid-1") is False
    assert begin_search("sid-2") is True

    end_search("sid-1")

    assert begin_search("sid-1") is True


def test_store_round_trip_and_clear():
    put_entry("sid-1", 2, ["a", "b"], ["b"])

    assert get_entry("sid-1") == {"request_count": 2, "result_links": ["a", "b"], "selected_links": ["b"]}
    assert get_entry("missing") is None

    clear_store()

    assert get_entry("sid-1") is None
