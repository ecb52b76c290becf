from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = os.getenv("APP_NAME", "BusinessHours")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # MongoDB Settings
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "business_hours_db")
    MONGO_TIMEOUT_MS: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

    # JWT Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your_secret_key_here")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8081",  # Expo dev server
    ]

    # Scheduling rules
    MIN_WINDOW_MINUTES: int = int(os.getenv("MIN_WINDOW_MINUTES", "30"))
    DEFAULT_OPEN_TIME: str = os.getenv("DEFAULT_OPEN_TIME", "09:00:00")
    DEFAULT_CLOSE_TIME: str = os.getenv("DEFAULT_CLOSE_TIME", "17:00:00")
    SLOT_STEP_MINUTES: int = int(os.getenv("SLOT_STEP_MINUTES", "30"))
    EXCEPTION_REASON_MIN_LENGTH: int = int(os.getenv("EXCEPTION_REASON_MIN_LENGTH", "3"))
    MAX_RESOLVE_RANGE_DAYS: int = int(os.getenv("MAX_RESOLVE_RANGE_DAYS", "62"))

    # Applied around each write; expiry is reported as a persistence failure
    PERSISTENCE_TIMEOUT_SECONDS: float = float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "10"))

    # Local schedule view: least recently used businesses are evicted past the size,
    # entries older than the TTL are refetched
    SCHEDULE_CACHE_SIZE: int = int(os.getenv("SCHEDULE_CACHE_SIZE", "1024"))
    SCHEDULE_CACHE_TTL_SECONDS: float = float(os.getenv("SCHEDULE_CACHE_TTL_SECONDS", "300"))

    # Snapshot sessions need a replica set; disable for a standalone mongod
    MONGO_SNAPSHOT_READS: bool = os.getenv("MONGO_SNAPSHOT_READS", "true").lower() == "true"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
