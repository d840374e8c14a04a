"""Application settings and configuration."""

import json
import logging
import sys
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


class Settings(BaseSettings):
    """Application settings loaded from arguments, environment variables and .env.

    The object is frozen: it is built once at startup and handed to the
    application factory, the blob store and the origin client.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application metadata
    app_name: str = Field(
        default="HTTP Cat Cache",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Server Configuration (required, no defaults)
    host: str = Field(
        ...,
        min_length=1,
        description="Hostname or address the server binds to"
    )
    port: int = Field(
        ...,
        ge=1,
        le=65535,
        description="Port the server listens on"
    )

    # Cache Configuration
    cache_dir: Path = Field(
        ...,
        description="Directory holding cached images, one file per status code"
    )

    @field_validator("cache_dir", mode="before")
    @classmethod
    def resolve_cache_dir(cls, v: str | Path) -> Path:
        """Resolve the cache directory to an absolute path."""
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("cache_dir cannot be empty")
            v = Path(v)
        return v.expanduser().resolve()

    # Origin Configuration
    origin_url: str = Field(
        default="https://http.cat",
        description="Base URL of the upstream image origin"
    )
    origin_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for origin requests (seconds)"
    )

    @field_validator("origin_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so ids can be appended with a single '/'."""
        return v.rstrip("/")

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to log file (if None, logs to stdout only)"
    )

    @property
    def log_level_numeric(self) -> int:
        """Get numeric log level."""
        return getattr(logging, self.log_level)

    def origin_url_for(self, status_code: str) -> str:
        """Build the upstream URL for a status code."""
        return f"{self.origin_url}/{status_code}"

    def log_handlers(self) -> list[logging.Handler]:
        """Build the stdout handler plus the optional file handler."""
        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file))
        return handlers

    def configure_logging(self) -> None:
        """Configure the root logger from the logging settings."""
        formatter = JSONFormatter() if self.log_json else logging.Formatter(self.log_format)
        handlers = self.log_handlers()
        for handler in handlers:
            handler.setFormatter(formatter)

        logging.basicConfig(level=self.log_level_numeric, handlers=handlers, force=True)

        if self.debug:
            logging.getLogger("http_cat_cache").setLevel(logging.DEBUG)
            return
        # Quiet third-party request logs
        for name in ("httpx", "httpcore", "uvicorn.access"):
            logging.getLogger(name).setLevel(logging.WARNING)
