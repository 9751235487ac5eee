from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import requests

from app.errors import (
    QuoteAccessDeniedError,
    QuoteNotFoundError,
    QuoteRateLimitedError,
    QuoteTransientError,
)


class AlphaVantageClient:
    """Alpha Vantage quote/search client that classifies provider failures."""

    DEFAULT_BASE_URL = "https://www.alphavantage.co"
    API_KEY_URL = "https://www.alphavantage.co/support/#api-key"
    MAX_SUGGESTIONS = 5

    def __init__(
        self,
        api_key: str,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")

        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def _to_decimal(value: Any) -> Optional[Decimal]:
        if value is None:
            return None
        text = str(value).strip().rstrip("%").strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
        return result if result.is_finite() else None

    def _query(self, params: Dict[str, str], *, label: str) -> Dict[str, Any]:
        try:
            response = self.session.get(
                f"{self.base_url}/query",
                params={**params, "apikey": self.api_key},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise QuoteTransientError(f"Alpha Vantage request failed for {label}: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise QuoteAccessDeniedError(
                f"Alpha Vantage API access denied ({status}). "
                f"Please verify your API key is correct. Get a free key at {self.API_KEY_URL}"
            )
        if status == 429:
            raise QuoteRateLimitedError(
                "Alpha Vantage API rate limit exceeded. Please wait and try again later."
            )
        if not 200 <= status < 300:
            raise QuoteTransientError(f"Alpha Vantage returned {status}: {response.text}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise QuoteTransientError(f"Alpha Vantage returned a non-JSON body for {label}") from exc
        if not isinstance(payload, dict):
            raise QuoteTransientError(f"Alpha Vantage returned an unexpected payload for {label}")

        if payload.get("Error Message"):
            raise QuoteTransientError(str(payload["Error Message"]))

        # the provider reports quota exhaustion with HTTP 200 and a note field
        note = payload.get("Note") or payload.get("Information")
        if note:
            raise QuoteRateLimitedError(f"Alpha Vantage API rate limit: {note}")

        return payload

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        payload = self._query({"function": "GLOBAL_QUOTE", "symbol": symbol}, label=symbol)

        quote = payload.get("Global Quote")
        if not isinstance(quote, dict):
            raise QuoteNotFoundError(f"No price data for {symbol}")

        price = self._to_decimal(quote.get("05. price"))
        if price is None:
            raise QuoteNotFoundError(f"No price data for {symbol}")

        return {
            "symbol": str(quote.get("01. symbol") or symbol),
            "price": price,
            "change": self._to_decimal(quote.get("09. change")),
            "change_percent": self._to_decimal(quote.get("10. change percent")),
        }

    def search_symbols(self, keywords: str) -> List[Dict[str, str]]:
        payload = self._query({"function": "SYMBOL_SEARCH", "keywords": keywords}, label=keywords)

        matches = payload.get("bestMatches")
        if not isinstance(matches, list):
            return []

        out: List[Dict[str, str]] = []
        for match in matches:
            if not isinstance(match, dict) or not match.get("1. symbol"):
                continue
            out.append({"symbol": str(match["1. symbol"]), "name": str(match.get("2. name") or "")})
            if len(out) >= self.MAX_SUGGESTIONS:
                break
        return out
