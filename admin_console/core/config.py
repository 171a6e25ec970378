from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_NAME: str = "Your Salon"
    BUSINESS_TIMEZONE: str = "Asia/Colombo"

    DOCUMENT_STORE_BASE_URL: str | None = None
    DOCUMENT_STORE_API_KEY: str | None = None
    DOCUMENT_STORE_TIMEOUT_SECONDS: float = 10.0
    DOCUMENT_STORE_POLL_SECONDS: float = 5.0

    BOOKINGS_COLLECTION: str = "bookings"
    SERVICES_COLLECTION: str = "services"
    CATEGORIES_COLLECTION: str = "categories"

    SUBSCRIPTION_LIVENESS_SECONDS: float = 300.0
    WATCHDOG_INTERVAL_SECONDS: float = 30.0

    NETWORK_PROBE_URL: str | None = None
    NETWORK_PROBE_INTERVAL_SECONDS: float = 15.0


settings = Settings()
