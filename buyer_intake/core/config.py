from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    DATABASE_URL: str
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS configuration: comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Bearer token signing
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    # Single demo credential accepted by the default credential verifier
    DEMO_USER_EMAIL: str = "demo@example.com"
    DEMO_USER_PASSWORD: str = "demo123"
    DEMO_USER_NAME: str = "Demo User"

    # Bulk import limits
    IMPORT_MAX_ROWS: int = 200
    IMPORT_MAX_BYTES: int = 5 * 1024 * 1024

    # Number of history entries embedded in the buyer detail view
    HISTORY_PREVIEW_LIMIT: int = 5

    IMPORT_RATE_LIMIT: str = "5/minute"
    LOGIN_RATE_LIMIT: str = "10/minute"


settings = Settings()
