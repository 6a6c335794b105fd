"""Centralized configuration for docstore-search using Pydantic Settings."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every value has a default so the engine works without any environment.
    Values set here are per-process defaults; ``FullTextSearch`` accepts an
    explicit ``Settings`` instance when several indexes need different values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Index layout
    index_shard_count: int = Field(
        default=3,
        ge=1,
        description="Number of shards per counter; fixed once an index has been written",
    )
    reserved_field_prefix: str = Field(
        default="__",
        min_length=1,
        description="Document fields starting with this prefix are never tokenized",
    )

    # Search settings
    search_default_limit: int = Field(default=100, ge=1, description="Page size when a search gives no limit")
    search_max_limit: int = Field(default=500, ge=1, description="Upper bound applied to search limits")

    # Store settings
    batch_write_limit: int = Field(
        default=500,
        ge=1,
        le=500,
        description="Maximum operations committed in one store batch",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Telemetry
    service_name: str = Field(default="docstore-search", description="Service name reported in traces and logs")

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        if self.search_default_limit > self.search_max_limit:
            raise ValueError(
                "SEARCH_DEFAULT_LIMIT must not exceed SEARCH_MAX_LIMIT "
                f"({self.search_default_limit} > {self.search_max_limit})"
            )
        return self

    def clamp_limit(self, limit: int | None) -> int:
        """Return ``limit`` bounded to ``[1, search_max_limit]``.

        Args:
            limit: Requested page size, or None for the configured default

        Returns:
            Effective page size
        """
        if limit is None:
            limit = self.search_default_limit
        return max(1, min(limit, self.search_max_limit))
