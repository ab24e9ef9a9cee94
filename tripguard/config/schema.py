"""Pydantic configuration models for tripguard.

All config is loaded from ~/.tripguard/config.json and can be overridden
via TRIPGUARD_ prefixed environment variables.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, JsonConfigSettingsSource, SettingsConfigDict

from tripguard.api.rate_limit import RateLimitCategory, RateLimitPolicy
from tripguard.security.uploads import (
    ALLOWED_ATTACHMENT_TYPES,
    DEFAULT_MAX_UPLOAD_BYTES,
    UploadPolicy,
)


class RateLimitRule(BaseModel):
    """Budget for one route category."""

    max_requests: int = Field(ge=1, le=100_000)
    window_seconds: int = Field(default=60, ge=1, le=86_400)

    def to_policy(self) -> RateLimitPolicy:
        return RateLimitPolicy(
            max_requests=self.max_requests,
            window_ms=self.window_seconds * 1000,
        )


class RateLimitConfig(BaseModel):
    """Per-category request budgets.

    Read once when the API app is built; changing them needs a restart.
    The sweep interval is raised to the longest window if set lower.
    """

    auth: RateLimitRule = Field(default_factory=lambda: RateLimitRule(max_requests=10))
    read: RateLimitRule = Field(default_factory=lambda: RateLimitRule(max_requests=60))
    write: RateLimitRule = Field(default_factory=lambda: RateLimitRule(max_requests=30))
    sensitive: RateLimitRule = Field(default_factory=lambda: RateLimitRule(max_requests=5))
    sweep_interval_seconds: int = Field(
        default=60,
        ge=1,
        le=86_400,
        description="Minimum time between sweeps of expired client keys.",
    )

    def to_policies(self) -> Mapping[RateLimitCategory, RateLimitPolicy]:
        return MappingProxyType(
            {category: getattr(self, category.value).to_policy() for category in RateLimitCategory}
        )


class UploadConfig(BaseModel):
    """Attachment upload screening limits."""

    max_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, ge=1024, le=104_857_600)
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: sorted(ALLOWED_ATTACHMENT_TYPES),
    )

    def to_policy(self) -> UploadPolicy:
        return UploadPolicy(
            max_bytes=self.max_bytes,
            allowed_mime_types=frozenset(self.allowed_mime_types),
        )


class APIConfig(BaseModel):
    """REST API hardening settings.

    enforce_same_origin rejects cross-origin POST/PUT/PATCH/DELETE on /api/
    paths. hsts should only be enabled behind a TLS-terminating proxy.
    """

    cors_allowed_origins: list[str] = Field(default_factory=list)
    max_request_body_bytes: int = Field(default=1_048_576, ge=1024, le=52_428_800)
    enforce_same_origin: bool = True
    hsts: bool = False


class GatewayConfig(BaseModel):
    """Network settings for the API server."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1024, le=65535)
    api: APIConfig = Field(default_factory=APIConfig)


class TripguardConfig(BaseSettings):
    """Root configuration.

    Loaded from ~/.tripguard/config.json with TRIPGUARD_ env var overrides.
    Uses JsonConfigSettingsSource so pydantic-settings reads the JSON file
    and merges it with environment variable overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIPGUARD_",
        env_nested_delimiter="__",
        json_file=Path("~/.tripguard/config.json").expanduser(),
        json_file_encoding="utf-8",
        extra="ignore",
    )

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    uploads: UploadConfig = Field(default_factory=UploadConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Enable JSON file loading alongside env vars and init kwargs."""
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
        )
