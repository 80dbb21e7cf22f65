from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # required: no fallback values for the store or the token secret
    DATABASE_URL: str
    SECRET_KEY: str

    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_SECONDS: int = 7 * 24 * 3600

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_STATEMENT_TIMEOUT_MS: int = 5000

    NOTIFY_DELAY_MS: int = 0
    NOTIFY_SENDER: str = "orders@uncommonroom.example"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
