from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # API settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True

    # Version and environment
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Graph backend settings
    BACKEND_TYPE: str = "http"  # "http" or "memory"
    BACKEND_URL: str = "http://localhost:8787"
    BACKEND_TOKEN: str = ""
    REQUEST_TIMEOUT_SECONDS: float = 15.0

    # Editor behaviour
    AUTOSAVE_DELAY_MS: int = 2000
    USAGE_POLL_INTERVAL_MS: int = 30000
    DEFAULT_USAGE_LIMIT: int = 100
    TRIGGER_NODE_TYPE: str = "ContractEvent"

    class Config:
        env_file = ".env"

settings = Settings()
