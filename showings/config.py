"""
Centralized configuration with environment variable overrides.

Values are read once at import time (a ``.env`` file is honoured) and exposed
through the ``settings`` singleton.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = os.getenv("DATABASE_URL", "sqlite:///./showings.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass(frozen=True)
class SchedulingConfig:
    """Neighbourhoods used by conflict detection and ranking, in minutes."""

    travel_window_minutes: int = _safe_int("TRAVEL_WINDOW_MINUTES", "180")
    ranking_window_minutes: int = _safe_int("RANKING_WINDOW_MINUTES", "90")


@dataclass(frozen=True)
class RoutingConfig:
    """OpenRouteService access and client-side rate limiting."""

    api_key: str = os.getenv("OPENROUTESERVICE_API_KEY", "")
    base_url: str = os.getenv("OPENROUTESERVICE_BASE_URL", "https://api.openrouteservice.org")
    timeout_sec: float = _safe_float("ROUTING_TIMEOUT_SEC", "10.0")
    min_interval_sec: float = _safe_float("ROUTING_MIN_INTERVAL_SEC", "1.0")


@dataclass(frozen=True)
class AuthConfig:
    secret_key: str = os.getenv("SECRET_KEY", "change-me-later")
    algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = _safe_int("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
    admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "change-me-later")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "Property Showings API")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.scheduling.travel_window_minutes < 0:
        raise ValueError(
            f"TRAVEL_WINDOW_MINUTES must be >= 0, got {config.scheduling.travel_window_minutes}"
        )
    if config.scheduling.ranking_window_minutes < 0:
        raise ValueError(
            f"RANKING_WINDOW_MINUTES must be >= 0, got {config.scheduling.ranking_window_minutes}"
        )
    if config.routing.timeout_sec <= 0:
        raise ValueError(
            f"ROUTING_TIMEOUT_SEC must be > 0, got {config.routing.timeout_sec}"
        )
    if config.routing.min_interval_sec < 0:
        raise ValueError(
            f"ROUTING_MIN_INTERVAL_SEC must be >= 0, got {config.routing.min_interval_sec}"
        )
    if config.auth.access_token_expire_minutes < 1:
        raise ValueError(
            "ACCESS_TOKEN_EXPIRE_MINUTES must be >= 1, "
            f"got {config.auth.access_token_expire_minutes}"
        )


def configure_logging(level: str) -> None:
    from showings.logging_context import RequestIdFilter

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    configure_logging(config.log_level)
    if not config.routing.api_key:
        logger.warning("OPENROUTESERVICE_API_KEY not set, travel-time checks are disabled")
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
