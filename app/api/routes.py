from fastapi import APIRouter, HTTPException, Request

from app.errors import NoSymbolsError
from app.schemas.asset import PortfolioValuationRequest, PortfolioValuationResponse
from app.schemas.quote import LookupFailure, QuoteRefreshRequest, QuoteRefreshResponse
from app.schemas.search import SymbolSearchResponse
from app.services.portfolio_valuation import summarize_portfolio, value_assets
from app.services.quote_lookup import normalize_symbol

router = APIRouter()

_FAILURE_STATUS = {
    'RATE_LIMITED': (503, 'QUOTE_RATE_LIMITED'),
    'ACCESS_DENIED': (502, 'QUOTE_ACCESS_DENIED'),
    'TRANSIENT_ERROR': (502, 'QUOTE_LOOKUP_FAILED'),
}


def _service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail={
                'code': 'QUOTE_API_NOT_CONFIGURED',
                'message': getattr(request.app.state, 'config_error', None),
            },
        )
    return service


@router.get('/quotes/{symbol}')
def get_quote(symbol: str, request: Request):
    service = _service(request, 'quote_lookup_service')
    result = service.lookup_quote(symbol)
    if result is None:
        raise HTTPException(status_code=404, detail='NO_DATA')
    if isinstance(result, LookupFailure):
        status_code, detail = _FAILURE_STATUS[result.kind]
        raise HTTPException(status_code=status_code, detail=detail)
    return result.model_dump(mode='json')


@router.post('/quotes/refresh', response_model=QuoteRefreshResponse)
def refresh_quotes(req: QuoteRefreshRequest, request: Request):
    service = _service(request, 'quote_refresh_service')
    try:
        result = service.refresh(req.symbols)
    except NoSymbolsError as exc:
        raise HTTPException(status_code=400, detail='NO_SYMBOLS') from exc

    missing = []
    for raw in req.symbols:
        symbol = normalize_symbol(raw)
        if symbol and symbol not in result.quotes and symbol not in missing:
            missing.append(symbol)
    return QuoteRefreshResponse(quotes=result.quotes, missing=missing, error=result.error)


@router.get('/symbols/search', response_model=SymbolSearchResponse)
def search_symbols(q: str, request: Request):
    return _service(request, 'symbol_search_service').search(q)


@router.post('/portfolio/valuation', response_model=PortfolioValuationResponse)
def value_portfolio(req: PortfolioValuationRequest, request: Request):
    if not req.assets:
        raise HTTPException(status_code=400, detail='NO_ASSETS')
    service = _service(request, 'quote_refresh_service')

    symbols = [asset.symbol for asset in req.assets if asset.symbol.strip()]
    if not symbols:
        return PortfolioValuationResponse(assets=req.assets, summary=summarize_portfolio(req.assets))

    result = service.refresh(symbols)
    assets = value_assets(req.assets, result.quotes)
    return PortfolioValuationResponse(assets=assets, summary=summarize_portfolio(assets), error=result.error)


@router.get('/metrics/quote')
def quote_metrics(request: Request):
    return _service(request, 'quote_refresh_service').metrics()
