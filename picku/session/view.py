from __future__ import annotations

import logging
from typing import Callable

from ..places.models import FormattedRestaurant, SearchRequest
from ..places.service import PlacesSearchError
from .config import DEFAULT_SESSION_CONFIG, SessionConfig
from .models import ResultsState, SearchSessionState

logger = logging.getLogger(__name__)

SearchFn = Callable[[SearchRequest], list[FormattedRestaurant]]


class ResultsView:
    """
    View-model for the results page.

    ``state`` is the per-session search state; the caller persists it after
    each operation. ``refresh`` runs on mount and on every shuffle.
    ``in_flight`` is True when another request of the same session is already
    searching; the caller owns that guard.
    """

    def __init__(
        self,
        state: SearchSessionState,
        search: SearchFn,
        request: SearchRequest,
        config: SessionConfig = DEFAULT_SESSION_CONFIG,
        in_flight: bool = False,
    ) -> None:
        self.state = state
        self.request = request
        self.config = config
        self._search = search
        self.restaurants: list[FormattedRestaurant] = []
        self.error: str | None = None
        self.in_flight = in_flight

    @property
    def limit_reached(self) -> bool:
        return self.state.request_count >= self.config.search_limit

    @property
    def remaining(self) -> int:
        return max(0, self.config.search_limit - self.state.request_count)

    def refresh(self) -> bool:
        """Run one search if allowed. Returns True when a search was made."""
        if self.in_flight:
            logger.info("Search already in flight, ignoring refresh")
            return False

        if self.limit_reached:
            logger.info("Session search limit reached (%d)", self.state.request_count)
            self.error = self.config.limit_message
            self.restaurants = []
            self.state.result_links = []
            return False

        self.in_flight = True
        self.error = None
        try:
            restaurants = self._search(self.request)
        except PlacesSearchError as exc:
            self.error = exc.message or self.config.fallback_error
            return True
        finally:
            self.in_flight = False

        self.restaurants = restaurants
        self.state.result_links = [r.maps_link for r in restaurants]
        self.state.request_count = min(self.state.request_count + 1, self.config.search_limit)
        return True

    def toggle_selection(self, link: str) -> bool:
        """
        Add ``link`` to the selection or remove it. Returns the new checked state.

        Only links of the displayed results can be added, up to
        ``config.max_selected``; removal is always allowed.
        """
        if link in self.state.selected_links:
            self.state.selected_links.remove(link)
            return False
        if link not in self.state.result_links:
            logger.info("Ignoring selection of a link outside the current results")
            return False
        if len(self.state.selected_links) >= self.config.max_selected:
            logger.info("Selection is full (%d links)", len(self.state.selected_links))
            return False
        self.state.selected_links.append(link)
        return True

    def copy_all(self) -> str | None:
        if not self.state.result_links:
            return None
        return "\n".join(self.state.result_links)

    def copy_selected(self) -> str | None:
        if not self.state.selected_links:
            return None
        return "\n".join(self.state.selected_links)

    def snapshot(self) -> ResultsState:
        return ResultsState(
            restaurants=self.restaurants,
            error=self.error,
            request_count=self.state.request_count,
            remaining=self.remaining,
            limit_reached=self.limit_reached,
            selected_links=list(self.state.selected_links),
        )
