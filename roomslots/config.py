"""
Centralized configuration with environment variable overrides.

Timezone, fallback restrictions for unconfigured rooms, and the bounds
applied to administrative policy updates are configurable here. Nothing
is hardcoded in engine or source logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from roomslots.logging_context import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var (true/false, yes/no, 1/0, on/off)."""
    raw = os.getenv(env_var, default)
    normalized = str(raw).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class EngineConfig:
    """System-wide conventions for turning instants into dates and times of day."""

    timezone: str = os.getenv("ENGINE_TIMEZONE", "UTC")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class FallbackRestrictionConfig:
    """Restrictions reported for rooms without availability settings."""

    min_duration: int = _safe_int("FALLBACK_MIN_DURATION", "30")
    max_duration: int = _safe_int("FALLBACK_MAX_DURATION", "480")
    buffer_time: int = _safe_int("FALLBACK_BUFFER_TIME", "0")
    advance_booking_days: int = _safe_int("FALLBACK_ADVANCE_DAYS", "30")
    same_day_booking_enabled: bool = _safe_bool("FALLBACK_SAME_DAY_ENABLED", "true")


@dataclass(frozen=True)
class PolicyLimitsConfig:
    """Bounds enforced when an administrator submits new availability settings."""

    min_duration_floor: int = _safe_int("POLICY_MIN_DURATION_FLOOR", "15")
    min_duration_ceiling: int = _safe_int("POLICY_MIN_DURATION_CEILING", "480")
    max_duration_floor: int = _safe_int("POLICY_MAX_DURATION_FLOOR", "30")
    max_duration_ceiling: int = _safe_int("POLICY_MAX_DURATION_CEILING", "1440")
    buffer_ceiling: int = _safe_int("POLICY_BUFFER_CEILING", "60")
    advance_days_floor: int = _safe_int("POLICY_ADVANCE_DAYS_FLOOR", "1")
    advance_days_ceiling: int = _safe_int("POLICY_ADVANCE_DAYS_CEILING", "365")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    fallback: FallbackRestrictionConfig = field(default_factory=FallbackRestrictionConfig)
    limits: PolicyLimitsConfig = field(default_factory=PolicyLimitsConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    data_file: Optional[str] = os.getenv("ROOMSLOTS_DATA_FILE")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        config.engine.tzinfo
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"ENGINE_TIMEZONE is not a known timezone: {config.engine.timezone!r}"
        ) from None

    fallback = config.fallback
    if fallback.min_duration < 1:
        raise ValueError(
            f"FALLBACK_MIN_DURATION must be >= 1, got {fallback.min_duration}"
        )
    if fallback.max_duration < fallback.min_duration:
        raise ValueError(
            "FALLBACK_MAX_DURATION must be >= FALLBACK_MIN_DURATION, "
            f"got {fallback.max_duration}"
        )
    if fallback.buffer_time < 0:
        raise ValueError(
            f"FALLBACK_BUFFER_TIME must be >= 0, got {fallback.buffer_time}"
        )
    if fallback.advance_booking_days < 0:
        raise ValueError(
            f"FALLBACK_ADVANCE_DAYS must be >= 0, got {fallback.advance_booking_days}"
        )

    limits = config.limits
    for name, floor, ceiling in [
        ("POLICY_MIN_DURATION", limits.min_duration_floor, limits.min_duration_ceiling),
        ("POLICY_MAX_DURATION", limits.max_duration_floor, limits.max_duration_ceiling),
        ("POLICY_ADVANCE_DAYS", limits.advance_days_floor, limits.advance_days_ceiling),
    ]:
        if floor < 0 or ceiling < floor:
            raise ValueError(
                f"{name}_FLOOR/{name}_CEILING must satisfy 0 <= floor <= ceiling, "
                f"got {floor}..{ceiling}"
            )
    if limits.buffer_ceiling < 0:
        raise ValueError(
            f"POLICY_BUFFER_CEILING must be >= 0, got {limits.buffer_ceiling}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    configure_logging(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.info("Configuration loaded (timezone=%s)", config.engine.timezone)
    return config


# Singleton instance
settings = load_config()
