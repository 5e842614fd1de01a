import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_DEFAULT_BACKEND = "http://localhost:8000"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    BACKEND_URL: str = _DEFAULT_BACKEND
    BACKEND_TIMEOUT: float = 10.0
    SESSION_COOKIE_NAME: str = "session"
    QUERY_STALE_SECONDS: float = 300.0  # 5 min, stejně jako staleTime ve frontendu
    MAX_CACHED_SESSIONS: int = 256
    LOCATION_INDENT: str = "└ "
    MAX_LOCATION_DEPTH: int = 64

    class Config:
        env_file = ".env"


settings = Settings()

if settings.BACKEND_URL == _DEFAULT_BACKEND:
    if settings.APP_ENV == "production":
        logger.warning("⚠️  BACKEND_URL má výchozí hodnotu %s, nastavte ji v .env!", _DEFAULT_BACKEND)
    else:
        logger.info("BACKEND_URL nenastaveno, používám %s", _DEFAULT_BACKEND)
