"""
Core settings and environment variables for UrbanFix AI.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "UrbanFix AI"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - mobile dev servers (Expo) and local web builds
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development and tests (no Firebase credentials needed)
    USE_MOCK_DB: bool = False

    # Push notifications (Firebase Cloud Messaging)
    PUSH_ENABLED: bool = True

    # Auth - tokens are issued by the auth provider, this service only verifies them
    JWT_SECRET: str = "dev-only-urbanfix-jwt-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = 30

    # Municipal feed page size
    FEED_DEFAULT_LIMIT: int = 100
    FEED_MAX_LIMIT: int = 200

    # Upper bound for a single read against the backing store
    STORE_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
