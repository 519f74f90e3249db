"""
Application settings.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/pos_closing.db"

    # Loyverse API
    LOYVERSE_API_BASE_URL: str = "https://api.loyverse.com/v1.0"
    LOYVERSE_API_TOKEN: str = ""
    LOYVERSE_TIMEZONE: str = "Asia/Bangkok"
    LOYVERSE_MONEY_DIVISOR: int = 1
    LOYVERSE_TIMEOUT: float = 30.0
    LOYVERSE_PAGE_LIMIT: int = 250

    # Safe box
    SAFE_BOX_DENOMINATION: int = 1000
    SAFE_BOX_DEFAULT_LABEL: str = "1K Bill"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # File storage
    DATA_DIR: str = "./data"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
