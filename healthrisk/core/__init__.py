"""Core services"""

from .config import AppSettings, get_config
from .logging import setup_logging, get_logger
from .database import Database, fetch_frame
from .cache import LookupCache, RedisLookupCache, create_cache
from .errors import (
    HealthRiskError,
    InvalidArgumentError,
    NotFoundError,
    UnsafeIdentifierError,
)

__all__ = [
    "AppSettings",
    "get_config",
    "setup_logging",
    "get_logger",
    "Database",
    "fetch_frame",
    "LookupCache",
    "RedisLookupCache",
    "create_cache",
    "HealthRiskError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnsafeIdentifierError",
]
