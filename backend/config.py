from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_autospa.db"

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Used to build nextPageUrl in paginated responses
    APP_BASE_URL: str = "http://localhost:3001"

    # Maximum rows returned by free-text searches (sells and reports)
    SEARCH_LIMIT: int = 30

    # Decreasing a sale line also requires a free unit in stock (observed rule)
    DECREASE_REQUIRES_AVAILABLE_STOCK: bool = True

    FONT_DIR: str = "assets/fonts"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
