# File: parking_engine/config.py
"""
Engine configuration and logging setup

Settings come from environment variables; every value has a default so the
engine runs against a local SQLite file out of the box.
"""

from dataclasses import dataclass
from typing import Optional, Mapping
import logging
import os
import sys

from .domain.exceptions import InvalidInput


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class EngineConfig:
    database_url: str = "sqlite:///./parking.db"
    redis_url: Optional[str] = None
    facility_cache_ttl: int = 300
    currency: str = "USD"
    sqlite_busy_timeout: float = 30.0
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        env = os.environ if environ is None else environ
        defaults = cls()

        try:
            config = cls(
                database_url=env.get("DATABASE_URL", defaults.database_url),
                redis_url=env.get("REDIS_URL") or None,
                facility_cache_ttl=int(env.get("FACILITY_CACHE_TTL", defaults.facility_cache_ttl)),
                currency=env.get("CURRENCY", defaults.currency).upper(),
                sqlite_busy_timeout=float(env.get("SQLITE_BUSY_TIMEOUT", defaults.sqlite_busy_timeout)),
                log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
                log_file=env.get("LOG_FILE") or None
            )
        except ValueError as e:
            raise InvalidInput(f"Invalid configuration value: {e}")

        config.validate()
        return config

    def validate(self) -> None:
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise InvalidInput(f"CURRENCY must be a 3-letter code, got: {self.currency}")
        if self.facility_cache_ttl <= 0:
            raise InvalidInput("FACILITY_CACHE_TTL must be positive")
        if self.sqlite_busy_timeout < 0:
            raise InvalidInput("SQLITE_BUSY_TIMEOUT cannot be negative")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise InvalidInput(f"Unknown LOG_LEVEL: {self.log_level}")


def setup_logging(config: Optional[EngineConfig] = None, stream=None) -> logging.Logger:
    """Setup application logging configuration"""
    config = config or EngineConfig()

    handlers = [logging.StreamHandler(stream or sys.stdout)]
    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT,
        handlers=handlers
    )
    return logging.getLogger("parking_engine")
