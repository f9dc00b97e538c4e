from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below

    The hostname fields are only defaults: values persisted in the
    settings table override them at startup.
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "golinks"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 80

    # Database (single SQLite file)
    db_file: str = "urls.db"
    db_busy_timeout: float = 5.0  # seconds a request waits on a locked database

    # Hostnames
    base_url: str = "http://localhost"  # public base URL, e.g. https://pmh.codes
    ui_host: str = "links.localhost"
    internal_host: str = "go"
    alias_host: str = ""  # alternate public redirect host, e.g. pmh.so
    public_api_host: str = ""  # serves /pass/ and /qr/ for public pages

    # Short codes
    short_code_length: int = 6
    max_retries: int = 16

    # Cache settings
    cache_backend: str = "memory"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 300  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
