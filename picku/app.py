from __future__ import annotations

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware

from .places.config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .places.models import ErrorResponse, FormattedRestaurant, SearchRequest
from .places.service import PlacesSearchError, search_restaurants
from .session.config import DEFAULT_SESSION_CONFIG
from .session.models import (
    BUDGET_TIERS,
    GENRES,
    CopyRequest,
    CopyResponse,
    CopyScope,
    ResultsState,
    SearchForm,
    SearchSessionState,
    SelectionRequest,
)
from .session import store as session_store
from .session.view import ResultsView


def get_places_config() -> PlacesConfig:
    return DEFAULT_PLACES_CONFIG


app = FastAPI(title="Picku Restaurant Search API", version="1.0.0")
# max_age=None: the cookie (and the search counter) ends with the browser session
app.add_middleware(
    SessionMiddleware,
    secret_key=DEFAULT_SESSION_CONFIG.secret_key,
    session_cookie=DEFAULT_SESSION_CONFIG.cookie_name,
    max_age=None,
)


@app.exception_handler(PlacesSearchError)
def places_search_error_handler(request: Request, exc: PlacesSearchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _load_state(request: Request) -> SearchSessionState:
    raw = request.session.get(DEFAULT_SESSION_CONFIG.state_key)
    try:
        state = SearchSessionState.model_validate(raw) if raw else SearchSessionState()
    except ValidationError:
        state = SearchSessionState()
    # Pin the id so later loads in the same request see the same session.
    request.session[DEFAULT_SESSION_CONFIG.state_key] = state.cookie_payload()
    entry = session_store.get_entry(state.session_id)
    if entry:
        state.request_count = entry["request_count"]
        state.result_links = entry["result_links"]
        state.selected_links = entry["selected_links"]
    return state


def _save_state(request: Request, state: SearchSessionState) -> None:
    # Only the session id goes in the cookie; the rest is kept server-side.
    request.session[DEFAULT_SESSION_CONFIG.state_key] = state.cookie_payload()
    session_store.put_entry(
        state.session_id, state.request_count, state.result_links, state.selected_links,
    )


def _results_view(
    state: SearchSessionState,
    config: PlacesConfig,
    location: str | None = None,
    genre: str | None = None,
    budget: str | None = None,
    in_flight: bool = False,
) -> ResultsView:
    return ResultsView(
        state=state,
        search=lambda req: search_restaurants(req, config),
        request=SearchRequest(location=location, genre=genre, budget=budget),
        in_flight=in_flight,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "genres": GENRES,
        "budgets": [{"value": value, "label": label} for value, label in BUDGET_TIERS.items()],
        "search_limit": DEFAULT_SESSION_CONFIG.search_limit,
    }


@app.get(
    "/api/restaurants",
    response_model=list[FormattedRestaurant],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse},
               404: {"model": ErrorResponse}, 429: {"model": ErrorResponse},
               500: {"model": ErrorResponse}},
)
def restaurants(
    location: str | None = Query(default=None, description="Station or area name"),
    genre: str | None = Query(default=None),
    budget: str | None = Query(default=None, description="Price level 1-4"),
    config: PlacesConfig = Depends(get_places_config),
) -> list[FormattedRestaurant]:
    return search_restaurants(SearchRequest(location=location, genre=genre, budget=budget), config)


# ── Form + results view ──────────────────────────────────────────────────


@app.post("/search")
def submit_search(form: SearchForm, request: Request) -> RedirectResponse:
    # A fresh navigation starts a new result set; the counter is kept.
    state = _load_state(request)
    state.result_links = []
    state.selected_links = []
    _save_state(request, state)
    return RedirectResponse(url=form.results_url(), status_code=303)


@app.get("/results", response_model=ResultsState)
def results(
    request: Request,
    location: str | None = None,
    genre: str | None = None,
    budget: str | None = None,
    config: PlacesConfig = Depends(get_places_config),
) -> ResultsState:
    session_id = _load_state(request).session_id
    if not session_store.begin_search(session_id):
        # Another request of this session is searching; it owns the state.
        view = _results_view(_load_state(request), config, location, genre, budget, in_flight=True)
        view.refresh()
        return view.snapshot()
    try:
        # Re-read under the guard so the counter reflects the finished search.
        view = _results_view(_load_state(request), config, location, genre, budget)
        view.refresh()
        _save_state(request, view.state)
    finally:
        session_store.end_search(session_id)
    return view.snapshot()


@app.post("/results/shuffle", response_model=ResultsState)
def shuffle(
    request: Request,
    location: str | None = None,
    genre: str | None = None,
    budget: str | None = None,
    config: PlacesConfig = Depends(get_places_config),
) -> ResultsState:
    return results(request, location, genre, budget, config)


@app.post("/results/selection", response_model=ResultsState)
def toggle_selection(
    body: SelectionRequest,
    request: Request,
    config: PlacesConfig = Depends(get_places_config),
) -> ResultsState:
    view = _results_view(_load_state(request), config)
    view.toggle_selection(body.link)
    _save_state(request, view.state)
    return view.snapshot()


@app.post("/results/copy", response_model=CopyResponse)
def copy_links(
    body: CopyRequest,
    request: Request,
    config: PlacesConfig = Depends(get_places_config),
) -> CopyResponse:
    view = _results_view(_load_state(request), config)
    if body.scope == CopyScope.selected:
        text = view.copy_selected()
    else:
        text = view.copy_all()
    if text is None:
        return CopyResponse()
    return CopyResponse(text=text, copied=True, acknowledge_seconds=DEFAULT_SESSION_CONFIG.copy_ack_seconds)
