from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, field_validator


class Asset(BaseModel):
    id: str
    wallet_id: str
    symbol: str
    asset_type: Literal["stock", "etf", "crypto", "other"] = "etf"
    quantity: Decimal
    average_price: Decimal | None = None
    notes: str | None = None
    current_price: Decimal | None = None
    total_value: Decimal | None = None
    gain_loss: Decimal | None = None
    gain_loss_percent: Decimal | None = None

    @field_validator("quantity")
    @classmethod
    def _quantity_not_negative(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("quantity must be >= 0")
        return value


class PortfolioSummary(BaseModel):
    total_value: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal


class PortfolioValuationRequest(BaseModel):
    assets: list[Asset]


class PortfolioValuationResponse(BaseModel):
    assets: list[Asset]
    summary: PortfolioSummary
    error: str | None = None
