import logging
import sys
from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s [%(levelname)s] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class Settings(BaseSettings):
    db: str = "access.db"
    ip: str = "127.0.0.1"
    blog_host: str = "comments.example.com"
    blog_asset: str = "/js/embed.min.js"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    # Read LOGDASH_* variables (and the .env file); never mutated after startup
    model_config = SettingsConfigDict(
        env_prefix="LOGDASH_", env_file=".env", extra="ignore", frozen=True
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class QueryContext:
    """Read-only values a single query needs from the process configuration."""

    db: str
    ip: str
    blog_host: str
    blog_asset: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueryContext":
        return cls(
            db=settings.db,
            ip=settings.ip,
            blog_host=settings.blog_host,
            blog_asset=settings.blog_asset,
        )


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stdout as `<time> [<LEVEL>] - <message>`."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
