from __future__ import annotations

import threading
from typing import Any, Callable

from app.errors import QuoteLookupError
from app.schemas.search import SymbolSearchResponse, SymbolSuggestion

MIN_QUERY_CHARS = 2
SEARCH_DEBOUNCE_SEC = 0.3
MAX_SUGGESTIONS = 5


class SymbolSearchService:
    def __init__(self, *, search_client, min_chars: int = MIN_QUERY_CHARS) -> None:
        self.search_client = search_client
        self.min_chars = min_chars

    def search(self, query: str) -> SymbolSearchResponse:
        value = str(query or "").strip()
        if len(value) < self.min_chars:
            return SymbolSearchResponse(suggestions=[])

        try:
            rows = self.search_client.search_symbols(value)
        except QuoteLookupError as exc:
            print(f"[SEARCH][search_error] query={value!r} kind={exc.kind} error={exc}", flush=True)
            return SymbolSearchResponse(suggestions=[], error=str(exc) if exc.fatal else None)

        return SymbolSearchResponse(
            suggestions=[
                SymbolSuggestion(symbol=row["symbol"], name=row.get("name", ""))
                for row in rows[:MAX_SUGGESTIONS]
            ]
        )


class SearchDebouncer:
    """Delays a search until input has been quiet for ``delay_sec``.

    Each ``submit`` cancels the pending search. Queries shorter than
    ``min_chars`` clear the results immediately instead of searching.
    Results of a search superseded while it was running are dropped.
    """

    def __init__(
        self,
        search: Callable[[str], Any],
        on_results: Callable[[Any], None],
        *,
        delay_sec: float = SEARCH_DEBOUNCE_SEC,
        min_chars: int = MIN_QUERY_CHARS,
        timer_factory: Callable[..., threading.Timer] | None = None,
        empty_result: Callable[[], Any] = list,
    ) -> None:
        self._search = search
        self._on_results = on_results
        self.delay_sec = delay_sec
        self.min_chars = min_chars
        self._timer_factory = timer_factory or threading.Timer
        self._empty_result = empty_result
        self._lock = threading.RLock()
        self._timer = None
        self._generation = 0

    def submit(self, query: str) -> None:
        value = str(query or "").strip()
        with self._lock:
            self._cancel_pending()
            if len(value) < self.min_chars:
                self._on_results(self._empty_result())
                return
            timer = self._timer_factory(self.delay_sec, self._fire, args=(value, self._generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_pending()

    def _cancel_pending(self) -> None:
        # a timer whose callback already started cannot be cancelled; the
        # generation bump makes its results stale instead
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, query: str, generation: int) -> None:
        results = self._search(query)
        with self._lock:
            if generation != self._generation:
                print(f"[SEARCH][stale_results_dropped] query={query!r}", flush=True)
                return
            self._timer = None
            self._on_results(results)
