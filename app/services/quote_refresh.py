from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from app.errors import NoSymbolsError
from app.schemas.quote import LookupFailure, Quote, RefreshResult
from app.services.quote_lookup import normalize_symbol

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_SEC = 2.0


def partition_batches(symbols: list[str], batch_size: int) -> list[list[str]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [symbols[i:i + batch_size] for i in range(0, len(symbols), batch_size)]


class QuoteRefreshService:
    """Batched quote refresh with a fixed pause between batches.

    Lookups inside a batch run concurrently and are joined before the next
    batch starts. Failed symbols are left out of the quote map; each call's
    failures and banner message travel in its own ``RefreshResult``.
    Counters in ``metrics()`` aggregate over all calls.
    """

    def __init__(
        self,
        *,
        lookup_service,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_sec: float = DEFAULT_BATCH_DELAY_SEC,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.lookup_service = lookup_service
        self.batch_size = batch_size
        self.batch_delay_sec = batch_delay_sec
        self.sleep = sleep or time.sleep

        self._lock = threading.Lock()
        self.refresh_count = 0
        self.batches_dispatched = 0
        self.lookup_failures = 0
        self.rate_limited_count = 0
        self.access_denied_count = 0
        self.last_target_count = 0
        self.last_final_count = 0
        self.last_error: str | None = None

    def _lookup(self, symbol: str) -> Quote | LookupFailure | None:
        return self.lookup_service.lookup_quote(symbol)

    def _run_batch(self, executor: ThreadPoolExecutor, batch: list[str]) -> list[Quote | LookupFailure | None]:
        futures = [executor.submit(self._lookup, symbol) for symbol in batch]
        results: list[Quote | LookupFailure | None] = []
        for symbol, future in zip(batch, futures):
            try:
                results.append(future.result())
            except Exception as exc:
                print(f"[QUOTE][lookup_exception] symbol={symbol} error={exc!r}", flush=True)
                with self._lock:
                    self.lookup_failures += 1
                results.append(None)
        return results

    def _count_failure(self, failure: LookupFailure) -> None:
        with self._lock:
            self.lookup_failures += 1
            if failure.kind == "RATE_LIMITED":
                self.rate_limited_count += 1
            elif failure.kind == "ACCESS_DENIED":
                self.access_denied_count += 1

    def refresh(self, symbols: list[str]) -> RefreshResult:
        if not symbols:
            raise NoSymbolsError("No assets to fetch prices for")

        requested = [s for s in (normalize_symbol(raw) for raw in symbols) if s]
        batches = partition_batches(requested, self.batch_size)
        quote_map: dict[str, Quote] = {}
        failures: list[LookupFailure] = []

        if batches:
            with ThreadPoolExecutor(
                max_workers=self.batch_size, thread_name_prefix="quote-refresh"
            ) as executor:
                for index, batch in enumerate(batches):
                    with self._lock:
                        self.batches_dispatched += 1
                    print(
                        f"[QUOTE][batch_dispatch] batch={index + 1}/{len(batches)} symbols={','.join(batch)}",
                        flush=True,
                    )
                    for symbol, result in zip(batch, self._run_batch(executor, batch)):
                        if isinstance(result, Quote):
                            quote_map[symbol] = result
                        elif isinstance(result, LookupFailure):
                            failures.append(result)
                            self._count_failure(result)

                    if index < len(batches) - 1:
                        self.sleep(self.batch_delay_sec)

        # most recent reportable failure wins the banner
        error = failures[-1].message if failures else None
        with self._lock:
            self.refresh_count += 1
            self.last_target_count = len(requested)
            self.last_final_count = len(quote_map)
            self.last_error = error

        print(
            "[QUOTE][refresh_resolve] "
            f"target_count={len(requested)} batch_count={len(batches)} "
            f"final_count={len(quote_map)} failure_count={len(failures)} "
            f"error={error!r}",
            flush=True,
        )
        return RefreshResult(quotes=quote_map, failures=failures, error=error)

    def refresh_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        return self.refresh(symbols).quotes

    def metrics(self) -> dict[str, int | str | None]:
        with self._lock:
            return {
                "refresh_count": self.refresh_count,
                "batches_dispatched": self.batches_dispatched,
                "lookup_failures": self.lookup_failures,
                "rate_limited_count": self.rate_limited_count,
                "access_denied_count": self.access_denied_count,
                "last_target_count": self.last_target_count,
                "last_final_count": self.last_final_count,
                "last_error": self.last_error,
            }
