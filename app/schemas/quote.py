from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: Decimal
    change: Decimal | None = None
    change_percent: Decimal | None = None


class LookupFailure(BaseModel):
    symbol: str
    variant: str
    kind: Literal["ACCESS_DENIED", "RATE_LIMITED", "TRANSIENT_ERROR"]
    message: str


class QuoteRefreshRequest(BaseModel):
    symbols: list[str]


class QuoteRefreshResponse(BaseModel):
    quotes: dict[str, Quote]
    missing: list[str]
    error: str | None = None


class RefreshResult(BaseModel):
    quotes: dict[str, Quote]
    failures: list[LookupFailure] = []
    error: str | None = None
