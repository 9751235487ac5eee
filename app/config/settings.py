import os
from functools import lru_cache

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    ALPHA_VANTAGE_API_KEY: str
    ALPHA_VANTAGE_BASE_URL: str = "https://www.alphavantage.co"
    QUOTE_BATCH_SIZE: int = 5
    QUOTE_BATCH_DELAY_SEC: float = 2.0
    QUOTE_HTTP_TIMEOUT_SEC: float = 10.0

    @field_validator("ALPHA_VANTAGE_API_KEY")
    @classmethod
    def _api_key_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("ALPHA_VANTAGE_API_KEY must not be blank")
        return value

    @field_validator("QUOTE_BATCH_SIZE")
    @classmethod
    def _batch_size_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("QUOTE_BATCH_SIZE must be >= 1")
        return value

    @field_validator("QUOTE_BATCH_DELAY_SEC")
    @classmethod
    def _delay_not_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("QUOTE_BATCH_DELAY_SEC must be >= 0")
        return value

    @field_validator("QUOTE_HTTP_TIMEOUT_SEC")
    @classmethod
    def _timeout_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("QUOTE_HTTP_TIMEOUT_SEC must be > 0")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "ALPHA_VANTAGE_API_KEY": os.getenv("ALPHA_VANTAGE_API_KEY"),
            "ALPHA_VANTAGE_BASE_URL": os.getenv("ALPHA_VANTAGE_BASE_URL"),
            "QUOTE_BATCH_SIZE": os.getenv("QUOTE_BATCH_SIZE"),
            "QUOTE_BATCH_DELAY_SEC": os.getenv("QUOTE_BATCH_DELAY_SEC"),
            "QUOTE_HTTP_TIMEOUT_SEC": os.getenv("QUOTE_HTTP_TIMEOUT_SEC"),
        }
        # unset optional values fall back to the model defaults
        required = {"ALPHA_VANTAGE_API_KEY"}
        return cls.model_validate(
            {k: v for k, v in raw.items() if k in required or (v is not None and v.strip())}
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
