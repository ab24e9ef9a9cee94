"""Configuration schema and loader."""

from tripguard.config.loader import get_config_path, load_config, save_config
from tripguard.config.schema import (
    APIConfig,
    GatewayConfig,
    RateLimitConfig,
    RateLimitRule,
    TripguardConfig,
    UploadConfig,
)

__all__ = [
    "APIConfig",
    "GatewayConfig",
    "RateLimitConfig",
    "RateLimitRule",
    "TripguardConfig",
    "UploadConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
