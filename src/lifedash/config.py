from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./lifedash.db"
    db_echo: bool = False
    db_timeout_seconds: float = 10.0
    auto_create_tables: bool = True

    # Ingestion credential shared with trusted callers (x-api-key header)
    api_secret_key: str | None = None

    # Providers
    http_timeout_seconds: float = 30.0
    capitalone_api_url: str = "https://api.capitalone.com"
    quickbooks_api_url: str = "https://sandbox-quickbooks.api.intuit.com"
    dexcom_api_url: str = "https://sandbox-api.dexcom.com"
    google_fit_api_url: str = "https://www.googleapis.com/fitness/v1"

    # OAuth clients, used to refresh expired access tokens
    capitalone_token_url: str = "https://api.capitalone.com/oauth2/token"
    capitalone_client_id: str | None = None
    capitalone_client_secret: str | None = None
    quickbooks_token_url: str = "https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer"
    quickbooks_client_id: str | None = None
    quickbooks_client_secret: str | None = None
    dexcom_token_url: str = "https://sandbox-api.dexcom.com/v2/oauth2/token"
    dexcom_client_id: str | None = None
    dexcom_client_secret: str | None = None
    google_fit_token_url: str = "https://oauth2.googleapis.com/token"
    google_fit_client_id: str | None = None
    google_fit_client_secret: str | None = None

    # Money / amounts
    currency: str = "USD"


settings = Settings()
