# stockroom/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./stockroom.db"

    # Frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True

    # Gemini (reorder suggestions). Without a key the rule-based advisor is used.
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"

    # Reorder advisor
    REORDER_SCORER_TIMEOUT_SECONDS: float = 15.0
    REORDER_LOOKBACK_MONTHS: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
