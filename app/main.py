from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from app.api.routes import router
from app.config.settings import Settings, get_settings
from app.integrations.alpha_vantage import AlphaVantageClient
from app.services.quote_lookup import QuoteLookupService
from app.services.quote_refresh import QuoteRefreshService
from app.services.symbol_search import SymbolSearchService

MISSING_API_KEY_MESSAGE = (
    "Alpha Vantage API key not configured. Please set ALPHA_VANTAGE_API_KEY in the environment."
)


def _bind_runtime_clients(app: FastAPI, settings: Settings) -> None:
    client = AlphaVantageClient(
        api_key=settings.ALPHA_VANTAGE_API_KEY,
        base_url=settings.ALPHA_VANTAGE_BASE_URL,
        timeout=settings.QUOTE_HTTP_TIMEOUT_SEC,
    )
    lookup_service = QuoteLookupService(quote_client=client)
    app.state.quote_lookup_service = lookup_service
    app.state.quote_refresh_service = QuoteRefreshService(
        lookup_service=lookup_service,
        batch_size=settings.QUOTE_BATCH_SIZE,
        batch_delay_sec=settings.QUOTE_BATCH_DELAY_SEC,
    )
    app.state.symbol_search_service = SymbolSearchService(search_client=client)
    app.state.config_error = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # services injected before startup (tests) are left in place
    if app.state.quote_refresh_service is None:
        try:
            settings = app.state.get_settings()
        except ValidationError as exc:
            missing = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
            if "ALPHA_VANTAGE_API_KEY" in missing:
                app.state.config_error = MISSING_API_KEY_MESSAGE
            else:
                app.state.config_error = f"Invalid quote configuration: {', '.join(missing)}"
            print(f"[CONFIG][settings_invalid] fields={','.join(missing)}", flush=True)
        else:
            _bind_runtime_clients(app, settings)
            print(
                "[CONFIG][settings_loaded] "
                f"batch_size={settings.QUOTE_BATCH_SIZE} batch_delay_sec={settings.QUOTE_BATCH_DELAY_SEC}",
                flush=True,
            )
    yield


app = FastAPI(title="Portfolio Quote Refresh", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.config_error = MISSING_API_KEY_MESSAGE
app.state.quote_lookup_service = None
app.state.quote_refresh_service = None
app.state.symbol_search_service = None
