"""Run configuration and inclusion rules for call-site records."""

from rules.config import (
    ConfigError,
    FilterConfig,
    ScanConfig,
    load_config,
)
from rules.filters import accept

__all__ = [
    "ConfigError",
    "FilterConfig",
    "ScanConfig",
    "accept",
    "load_config",
]
