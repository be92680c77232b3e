from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "FinCast API"
    api_prefix: str = "/api/v1"
    debug: bool = False
    auto_create_schema: bool = True

    database_url: str = "sqlite+pysqlite:///./fincast.db"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    currency: str = "EUR"

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    mitigation_temperature: float = 0.3
    mitigation_max_output_tokens: int = 200
    text_generation_timeout_seconds: float = 10.0

    monte_carlo_trials: int = 1000
    revenue_history_months: int = 24
    expense_history_months: int = 18
    cash_flow_history_months: int = 24
    liquidity_horizon_days: int = 90

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
