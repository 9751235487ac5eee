from pydantic import BaseModel


class SymbolSuggestion(BaseModel):
    symbol: str
    name: str


class SymbolSearchResponse(BaseModel):
    suggestions: list[SymbolSuggestion]
    error: str | None = None
