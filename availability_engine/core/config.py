from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DEFAULT_TIMEZONE: str = "UTC"
    BUSINESS_HOURS_START: str = "09:00"
    BUSINESS_HOURS_END: str = "18:00"

    SUGGESTION_STEP_MINUTES: int = 30
    SUGGESTION_SEARCH_DAYS: int = 7
    MAX_SUGGESTIONS: int = 5
    MAX_RANGE_DAYS: int = 31

    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    PROVIDER_MAX_WORKERS: int = 8

    CREDENTIAL_ENCRYPTION_KEY: str | None = None
    CREDENTIAL_KDF_SALT: str = "availability-engine-credential-salt"

    GOOGLE_CALENDAR_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    MICROSOFT_GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"

    STORE_PROVIDER: str = "memory"
    DATA_DIR: str = "./data/owners"


settings = Settings()
