import logging
import sys
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from the environment (or a local .env file)."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    PROJECT_NAME: str = "Scholarship Portal API"
    ENVIRONMENT: str = "development"
    DATABASE_URL: str = "sqlite:///./scholarship_portal.db"
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"
    TOKEN_TTL_HOURS: int = 24
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]


settings = Settings()


class ContextFormatter(logging.Formatter):
    """Appends the `extra={...}` context of a record to the log line."""

    _reserved = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in record.__dict__.items() if k not in self._reserved}
        if context:
            line += " | " + " ".join(f"{k}={v!r}" for k, v in context.items())
        return line


def _build_logger() -> logging.Logger:
    log = logging.getLogger("scholarship_portal")
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        log.addHandler(handler)
    log.setLevel(settings.LOG_LEVEL.upper())
    log.propagate = False
    return log


logger = _build_logger()
