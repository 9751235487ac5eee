from __future__ import annotations

from app.errors import (
    QuoteAccessDeniedError,
    QuoteNotFoundError,
    QuoteRateLimitedError,
    QuoteTransientError,
)
from app.schemas.quote import LookupFailure, Quote

EXCHANGE_SUFFIX_DELIMITER = "."


def normalize_symbol(raw: str | None) -> str:
    return str(raw or "").strip().upper()


def symbol_variants(symbol: str) -> list[str]:
    """Return lookup candidates: the symbol itself, then its base without exchange suffix."""
    normalized = normalize_symbol(symbol)
    if not normalized:
        return []
    variants = [normalized]
    if EXCHANGE_SUFFIX_DELIMITER in normalized:
        base = normalized.split(EXCHANGE_SUFFIX_DELIMITER, 1)[0]
        if base:
            variants.append(base)
    return variants


class QuoteLookupService:
    """Per-symbol resolution over the quote API with exchange-suffix fallback."""

    def __init__(self, *, quote_client) -> None:
        self.quote_client = quote_client

    def lookup_quote(self, symbol: str) -> Quote | LookupFailure | None:
        normalized = normalize_symbol(symbol)
        variants = symbol_variants(normalized)

        for index, variant in enumerate(variants):
            is_last = index == len(variants) - 1
            try:
                payload = self.quote_client.get_quote(variant)
            except (QuoteAccessDeniedError, QuoteRateLimitedError) as exc:
                print(
                    f"[QUOTE][lookup_fatal] symbol={normalized} variant={variant} kind={exc.kind}",
                    flush=True,
                )
                return LookupFailure(symbol=normalized, variant=variant, kind=exc.kind, message=str(exc))
            except QuoteNotFoundError:
                if not is_last:
                    print(f"[QUOTE][variant_fallback] symbol={normalized} variant={variant}", flush=True)
                continue
            except QuoteTransientError as exc:
                print(
                    f"[QUOTE][lookup_error] symbol={normalized} variant={variant} error={exc}",
                    flush=True,
                )
                if is_last:
                    return LookupFailure(
                        symbol=normalized,
                        variant=variant,
                        kind=exc.kind,
                        message=f"Failed to fetch price for {normalized}: {exc}",
                    )
                continue

            return Quote(
                symbol=normalized,
                price=payload["price"],
                change=payload.get("change"),
                change_percent=payload.get("change_percent"),
            )

        if variants:
            print(f"[QUOTE][no_data] symbol={normalized} variants={','.join(variants)}", flush=True)
        return None
