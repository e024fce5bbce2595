from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    FRONTEND_BASE_URL: str = "http://localhost:5173"

    # Redis settings
    REDIS_URL: str
    TRIP_CACHE_TTL_SECONDS: int = 1800

    # Activity log queue
    ACTIVITY_LOG_QUEUE_SIZE: int = 1000
    ACTIVITY_LOG_MAX_RETRIES: int = 5
    ACTIVITY_LOG_RETRY_BASE_DELAY: float = 0.5
    ACTIVITY_LOG_RETRY_MAX_DELAY: float = 30.0

    PROJECT_NAME: str = "TripCollab API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Collaborative trip planning API"

    # Account that is always an admin and alone may grant or revoke admin rights
    ADMIN_EMAIL: Optional[str] = None

    PASSWORD_MIN_LENGTH: int = 8
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
