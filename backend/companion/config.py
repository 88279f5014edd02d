from pydantic_settings import BaseSettings
import os


class Settings(BaseSettings):
    # Application Info
    APP_NAME: str = "Ramadan Companion API"
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Remote store (optional). Empty means local-only mode.
    DATABASE_URL: str | None = os.getenv("DATABASE_URL") or None

    # Local device store
    LOCAL_STORE_PATH: str = os.getenv("LOCAL_STORE_PATH", "~/.ramadan-companion/store.json")
    LOCAL_STORAGE_KEY: str = "ramadan-companion"
    MIGRATED_KEY: str = "ramadan-migrated-to-supabase"
    TOUR_DONE_KEY: str = "ramadan-tour-done"

    # Calendar
    HIJRI_CALENDAR: str = os.getenv("HIJRI_CALENDAR", "islamic-umalqura")

    # Entries & reports
    STREAK_CAP: int = 365
    QURAN_PAGES_MAX: int = 1000
    # Older behaviour: the dhikr flag follows the adhkar sub-flags
    DHIKR_FOLLOWS_ADHKAR: bool = os.getenv("DHIKR_FOLLOWS_ADHKAR", "false").lower() in ("true", "1", "yes")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ACCESS_TOKEN_EXPIRES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", "2592000"))  # 30 days
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Admin overview and notifications
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
    NOTIFICATIONS_LIMIT: int = 20
    HIGH_STREAK_MIN: int = 3
    LOW_ENGAGEMENT_MAX: int = 2
    NEW_USER_DAYS: int = 3

    # CORS
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
