from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "SIRANA Disaster Health Surveillance"
    VERSION: str = "1.0.0"

    DATABASE_URL: str = "sqlite:///./sirana.db"
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = True  # Use Alembic migrations in production

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # Listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: Optional[int] = None  # None = no upper bound

    # Statistics
    TREND_DAYS: int = 7
    TOP_N: int = 10
    RECENT_LIMIT: int = 5
    WEEK_STARTS_ON: int = 6  # datetime.weekday(): 0 = Monday, 6 = Sunday
    STATS_MAX_WORKERS: int = 4

    # Reports
    EXPORT_FILENAME_PREFIX: str = "SIRANA"
    EXPORT_BATCH_SIZE: int = 500


settings = Settings()
