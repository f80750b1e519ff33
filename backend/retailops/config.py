from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./retailops.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:5173"]
    DEFAULT_REORDER_LEVEL: int = 10
    STOCK_LOCK_TIMEOUT_SECONDS: int = 10
    LOW_STOCK_SCAN_SECONDS: int = 300  # 0 disables the sweep
    SEED_DEMO_DATA: bool = True
    RESET_DB: bool = False
    LOG_LEVEL: str = "INFO"
    DEFAULT_ROLE: str = "admin"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
