"""
Thinkify settings, read from the environment (and a .env file when present).
"""
import json
from pathlib import Path
from typing import Any, List

from pydantic_settings import BaseSettings, SettingsConfigDict


def split_origins(raw: Any) -> List[str]:
    """Accept a JSON array or a comma separated string of origins"""
    if isinstance(raw, (list, tuple)):
        return [str(origin) for origin in raw]
    if not isinstance(raw, str):
        return []
    raw = raw.strip()
    if raw.startswith('['):
        try:
            return [str(origin) for origin in json.loads(raw)]
        except json.JSONDecodeError:
            raw = raw.strip('[]')
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=True)

    # --- service ---
    APP_NAME: str = "Thinkify"
    API_VERSION: str = "v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    SECRET_KEY: str = "CHANGE_ME"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    PROJECT_ROOT: Path = Path(__file__).resolve().parents[2]

    # --- storage ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./thinkify.db"
    DB_ECHO: bool = False

    # --- tokens and passwords ---
    JWT_SECRET_KEY: str = "CHANGE_ME"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    BCRYPT_ROUNDS: int = 12

    # --- browser clients ---
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"

    # --- throttling ---
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    LOGIN_RATE_LIMIT: str = "5/minute"
    REGISTER_RATE_LIMIT: str = "3/minute"

    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/thinkify.log"

    # How many recent assignments/polls the teacher dashboard shows
    RECENT_ITEMS_LIMIT: int = 5

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return split_origins(self.CORS_ORIGINS_STR)

    def is_dev_mode(self) -> bool:
        """Error details are exposed to callers only in development"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
