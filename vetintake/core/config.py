from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PRACTICE_API_BASE_URL: str | None = None
    PRACTICE_API_TOKEN: str | None = None
    PRACTICE_ID: int = 1
    PRACTICE_TIMEZONE: str = "America/New_York"

    HTTP_TIMEOUT_SECONDS: float = 10.0
    ENRICHMENT_DEBOUNCE_MS: int = 500

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
