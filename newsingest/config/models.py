"""Configuration models."""

from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator


class FrozenModel(BaseModel):
    """Read-only after load."""

    class Config:
        """Pydantic config."""

        frozen = True


class PostgresConfig(FrozenModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsingest", description="Database name")
    user: str = Field("newsingest", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    min_pool_size: int = Field(1, ge=1, le=32)
    max_pool_size: int = Field(10, ge=1, le=64)


class RetryConfig(FrozenModel):
    """Retry policy for API requests."""

    times: int = Field(3, description="Total attempts per fetch", ge=1, le=10)
    sleep_ms: int = Field(1000, description="Delay before the second attempt", ge=0)
    exponential_backoff: bool = Field(True, description="Double the delay after each attempt")
    max_sleep_ms: int = Field(30000, description="Upper bound for a single delay", ge=0)


class MediastackConfig(FrozenModel):
    """MediaStack API configuration."""

    api_url: str = Field("http://api.mediastack.com/v1/news", description="News endpoint")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    api_key_env: Optional[str] = Field("MEDIASTACK_API_KEY", description="Environment variable for API key")
    timeout: float = Field(30.0, description="Per-attempt timeout in seconds", gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    default_params: Dict[str, Union[str, int]] = Field(
        default_factory=lambda: {
            "limit": 100,
            "languages": "en",
            "countries": "us,gb,ca,au",
            "categories": "general,business,entertainment,health,science,sports,technology",
            "sort": "published_desc",
        },
        description="Query parameters applied to every request",
    )

    @field_validator("default_params")
    @classmethod
    def validate_default_params(cls, v: Dict[str, Union[str, int]]) -> Dict[str, Union[str, int]]:
        """The credential is injected by the client, never configured as a parameter."""
        if "access_key" in v:
            raise ValueError("access_key must be set via api_key or api_key_env")
        return v


class PipelineConfig(FrozenModel):
    """Record processing settings."""

    max_workers: int = Field(1, description="Records processed in parallel", ge=1, le=16)
    slug_attempts: int = Field(3, description="Inserts tried after slug conflicts", ge=1, le=10)
    partial_failure_threshold: int = Field(
        1,
        description="Failed records that turn a successful fetch into partial_success",
        ge=1,
    )


class FetchProfile(FrozenModel):
    """Named parameter set a run can be triggered with."""

    description: str = Field("", description="What this profile fetches")
    params: Dict[str, Union[str, int]] = Field(default_factory=dict)


class LoggingConfig(FrozenModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("rich", description="Console format (rich, text)")
    file: Optional[str] = Field(None, description="Optional rotating log file")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("rich", "text"):
            raise ValueError(f"Unknown log format: {v}")
        return v


class ConfigModel(FrozenModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    mediastack: MediastackConfig = Field(default_factory=MediastackConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    profiles: Dict[str, FetchProfile] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
