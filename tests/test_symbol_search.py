import unittest

from app.errors import QuoteAccessDeniedError, QuoteRateLimitedError, QuoteTransientError
from app.schemas.search import SymbolSuggestion
from app.services.symbol_search import SearchDebouncer, SymbolSearchService


class StubSearchClient:
    def __init__(self, rows=None, error=None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls: list[str] = []

    def search_symbols(self, keywords: str) -> list[dict]:
        self.calls.append(keywords)
        if self.error is not None:
            raise self.error
        return list(self.rows)


class FakeTimer:
    created: list["FakeTimer"] = []

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


class SymbolSearchServiceTest(unittest.TestCase):
    def test_short_query_skips_api(self):
        client = StubSearchClient(rows=[{"symbol": "A", "name": "Agilent"}])

        response = SymbolSearchService(search_client=client).search(" a ")

        self.assertEqual(response.suggestions, [])
        self.assertIsNone(response.error)
        self.assertEqual(client.calls, [])

    def test_returns_suggestions_for_trimmed_query(self):
        client = StubSearchClient(rows=[{"symbol": "CSPX.L", "name": "iShares Core S&P 500"}])

        rows = SymbolSearchService(search_client=client).search("  cspx ").suggestions

        self.assertEqual(client.calls, ["cspx"])
        self.assertEqual(rows, [SymbolSuggestion(symbol="CSPX.L", name="iShares Core S&P 500")])

    def test_caps_suggestions_at_five(self):
        client = StubSearchClient(rows=[{"symbol": f"S{i}", "name": ""} for i in range(7)])

        self.assertEqual(len(SymbolSearchService(search_client=client).search("ss").suggestions), 5)

    def test_rate_limit_reported_in_response(self):
        client = StubSearchClient(error=QuoteRateLimitedError("Alpha Vantage API rate limit: wait"))

        response = SymbolSearchService(search_client=client).search("aapl")

        self.assertEqual(response.suggestions, [])
        self.assertEqual(response.error, "Alpha Vantage API rate limit: wait")

    def test_access_denied_reported_in_response(self):
        service = SymbolSearchService(search_client=StubSearchClient(error=QuoteAccessDeniedError("denied")))

        self.assertEqual(service.search("aapl").error, "denied")

    def test_transient_error_returns_empty_without_banner(self):
        service = SymbolSearchService(search_client=StubSearchClient(error=QuoteTransientError("500")))

        response = service.search("aapl")

        self.assertEqual(response.suggestions, [])
        self.assertIsNone(response.error)

    def test_error_does_not_leak_into_next_search(self):
        client = StubSearchClient(error=QuoteRateLimitedError("limited"))
        service = SymbolSearchService(search_client=client)
        service.search("aapl")

        client.error = None
        client.rows = [{"symbol": "AAPL", "name": "Apple Inc"}]

        self.assertIsNone(service.search("aapl").error)


class SearchDebouncerTest(unittest.TestCase):
    def setUp(self):
        FakeTimer.created = []
        self.results: list = []
        self.searched: list[str] = []

    def _search(self, query):
        self.searched.append(query)
        return [SymbolSuggestion(symbol=query.upper(), name="")]

    def _debouncer(self):
        return SearchDebouncer(self._search, self.results.append, timer_factory=FakeTimer)

    def test_schedules_search_after_delay(self):
        debouncer = self._debouncer()

        debouncer.submit(" aap ")

        timer = FakeTimer.created[-1]
        self.assertEqual(timer.interval, 0.3)
        self.assertTrue(timer.started)
        self.assertTrue(timer.daemon)
        self.assertEqual(self.searched, [])

        timer.fire()
        self.assertEqual(self.searched, ["aap"])
        self.assertEqual(self.results, [[SymbolSuggestion(symbol="AAP", name="")]])

    def test_new_input_cancels_pending_search(self):
        debouncer = self._debouncer()

        debouncer.submit("aa")
        debouncer.submit("aap")

        self.assertTrue(FakeTimer.created[0].cancelled)
        self.assertFalse(FakeTimer.created[1].cancelled)

    def test_short_query_clears_results_and_cancels(self):
        debouncer = self._debouncer()

        debouncer.submit("aa")
        debouncer.submit("a")

        self.assertTrue(FakeTimer.created[0].cancelled)
        self.assertEqual(len(FakeTimer.created), 1)
        self.assertEqual(self.results, [[]])

    def test_cancel_stops_pending_search(self):
        debouncer = self._debouncer()

        debouncer.submit("msft")
        debouncer.cancel()

        self.assertTrue(FakeTimer.created[0].cancelled)

    def test_superseded_search_results_are_dropped(self):
        debouncer = self._debouncer()

        debouncer.submit("aa")
        first = FakeTimer.created[0]
        debouncer.submit("aap")
        second = FakeTimer.created[1]

        # the first callback was already running when the new input arrived
        first.fire()
        second.fire()

        self.assertEqual(self.searched, ["aa", "aap"])
        self.assertEqual(self.results, [[SymbolSuggestion(symbol="AAP", name="")]])

    def test_search_running_during_cancel_is_dropped(self):
        debouncer = self._debouncer()

        debouncer.submit("msft")
        debouncer.cancel()
        FakeTimer.created[0].fire()

        self.assertEqual(self.results, [])


if __name__ == "__main__":
    unittest.main()
