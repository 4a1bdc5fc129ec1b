"""
ASCII Video Configuration
=========================

This module handles configuration loading for the ASCII video service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ASCII_VIDEO_BASE_URL        -> server.public_base_url
    ASCII_VIDEO_PORT            -> server.port
    ASCII_VIDEO_FRAME_RATE_CAP  -> pipeline.frame_rate_cap
    ASCII_VIDEO_MAX_FRAMES      -> pipeline.max_frames
    ASCII_VIDEO_STREAM_TTL      -> store.ttl_seconds
    ASCII_VIDEO_RESOLVER_URL    -> resolver.api_url
    ASCII_VIDEO_LOG_LEVEL       -> logging.level
    ASCII_VIDEO_CONFIG          -> path of the YAML file
    PORT                        -> server.port (container platforms)

Example:
    from ascii_video.config import settings

    print(settings.pipeline.frame_rate_cap)
    print(settings.store.ttl_seconds)
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from ascii_video.ascii.glyphs import DetailLevel


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="ascii-video-stream", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Externally reachable base URL used in share links",
    )


class PipelineConfig(BaseModel):
    """Frame pipeline configuration."""

    default_width: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Default columns per ASCII frame",
    )
    default_detail_level: DetailLevel = Field(
        default=DetailLevel.MEDIUM,
        description="Default glyph ramp",
    )
    frame_rate_cap: float = Field(
        default=15.0,
        gt=0,
        description="Upper bound on the sampling rate (frames per second)",
    )
    max_frames: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of frames produced per conversion",
    )
    batch_size: int = Field(
        default=10,
        ge=1,
        description="Frames rasterized concurrently per batch",
    )
    batch_delay_seconds: float = Field(
        default=0.01,
        ge=0,
        description="Pause between batches to keep the host responsive",
    )


class StoreConfig(BaseModel):
    """Stream session store configuration."""

    ttl_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Lifetime of a shared stream",
    )
    reap_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Delay between reaper passes",
    )
    default_frame_rate: float = Field(
        default=24.0,
        gt=0,
        description="Frame rate used when a share request omits it",
    )


class UploadConfig(BaseModel):
    """Upload validation configuration."""

    max_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Maximum accepted video upload size",
    )


class ResolverConfig(BaseModel):
    """Third-party URL resolver configuration."""

    api_url: str = Field(
        default="https://api.cobalt.tools/api/json",
        description="Resolver endpoint receiving {url} as JSON",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout",
    )
    max_download_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Maximum size of a fetched video",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the ASCII video service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

# (env var, section, key, parser); earlier entries win for the same key
_ENV_OVERRIDES = (
    ("PORT", "server", "port", int),
    ("ASCII_VIDEO_PORT", "server", "port", int),
    ("ASCII_VIDEO_BASE_URL", "server", "public_base_url", str),
    ("ASCII_VIDEO_FRAME_RATE_CAP", "pipeline", "frame_rate_cap", float),
    ("ASCII_VIDEO_MAX_FRAMES", "pipeline", "max_frames", int),
    ("ASCII_VIDEO_STREAM_TTL", "store", "ttl_seconds", float),
    ("ASCII_VIDEO_RESOLVER_URL", "resolver", "api_url", str),
    ("ASCII_VIDEO_LOG_LEVEL", "logging", "level", str),
)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _find_config_file() -> Optional[Path]:
    explicit = os.environ.get("ASCII_VIDEO_CONFIG")
    if explicit:
        return Path(explicit)

    for candidate in (Path("config.yaml"), Path("config.yml"), _PROJECT_ROOT / "config.yaml"):
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from defaults, a YAML file and the environment.

    Args:
        config_path: Explicit YAML path. If None, ASCII_VIDEO_CONFIG is used,
            then config.yaml in the working directory or project root.

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    path = Path(config_path) if config_path else _find_config_file()

    raw: dict = {}
    if path is not None and path.is_file():
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        logger.info(f"Loaded config file {path}")
    else:
        logger.info("No config file, using defaults and ASCII_VIDEO_* environment")

    _apply_env_overrides(raw)
    return Settings.model_validate(raw)


def _apply_env_overrides(raw: dict) -> None:
    """Overlay ASCII_VIDEO_* (and PORT) values onto the raw config dict."""
    applied = set()
    for env_name, section, key, parse in _ENV_OVERRIDES:
        value = os.environ.get(env_name)
        if not value or (section, key) in applied:
            continue
        raw.setdefault(section, {})[key] = parse(value)
        applied.add((section, key))


# =============================================================================
# Logging
# =============================================================================

class JsonLogFormatter(logging.Formatter):
    """One JSON object per line; message text is escaped by json.dumps."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from the logging section."""
    handler = logging.StreamHandler()
    if settings.logging.format == "json":
        handler.setFormatter(JsonLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        ))

    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        handlers=[handler],
    )


settings = load_config()
setup_logging(settings)
