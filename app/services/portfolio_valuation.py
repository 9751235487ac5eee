from __future__ import annotations

from decimal import Decimal

from app.schemas.asset import Asset, PortfolioSummary
from app.schemas.quote import Quote
from app.services.quote_lookup import normalize_symbol

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _cost_basis(asset: Asset) -> Decimal:
    return asset.quantity * (asset.average_price or ZERO)


def _gain_loss_percent(gain_loss: Decimal, cost_basis: Decimal) -> Decimal:
    if cost_basis > 0:
        return gain_loss / cost_basis * HUNDRED
    return ZERO


def value_assets(assets: list[Asset], quotes: dict[str, Quote]) -> list[Asset]:
    """Attach current price, total value and gain/loss to assets that have a quote.

    Assets without a quote are returned unchanged so the caller can show a
    "no data" placeholder for them.
    """
    out: list[Asset] = []
    for asset in assets:
        quote = quotes.get(normalize_symbol(asset.symbol))
        if quote is None:
            out.append(asset)
            continue
        total_value = asset.quantity * quote.price
        cost_basis = _cost_basis(asset)
        gain_loss = total_value - cost_basis
        out.append(
            asset.model_copy(
                update={
                    "current_price": quote.price,
                    "total_value": total_value,
                    "gain_loss": gain_loss,
                    "gain_loss_percent": _gain_loss_percent(gain_loss, cost_basis),
                }
            )
        )
    return out


def summarize_portfolio(assets: list[Asset]) -> PortfolioSummary:
    # unpriced assets add nothing to the value but still count toward cost basis
    total_value = sum((asset.total_value or ZERO for asset in assets), ZERO)
    cost_basis = sum((_cost_basis(asset) for asset in assets), ZERO)
    gain_loss = total_value - cost_basis
    return PortfolioSummary(
        total_value=total_value,
        cost_basis=cost_basis,
        gain_loss=gain_loss,
        gain_loss_percent=_gain_loss_percent(gain_loss, cost_basis),
    )
