"""
Pydantic models for autoindex configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ListingConfig(BaseModel):
    """Listing generation configuration."""

    embed_readme: bool = Field(
        default=True,
        description="Embed a sanitized README/README.txt/README.html below the file table",
    )
    allow_nofiles: bool = Field(
        default=True,
        description=(
            "Honour .nofiles files, whose contents replace the file table. "
            "Disable when the served tree is not trusted."
        ),
    )
    template: Path | None = Field(
        default=None,
        description="Custom HTML template. None uses the bundled template.",
    )
    exclude: list[str] = Field(
        default_factory=lambda: [".git", ".gitkeep"],
        description="Entry names never shown in generated listings",
    )

    model_config = {"extra": "forbid"}


class ServerConfig(BaseModel):
    """HTTP server configuration (serve mode)."""

    host: str = "0.0.0.0"
    port: int = Field(default=6660, ge=1, le=65535)
    fs_cache_ttl: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between full clears of the stat/listdir cache",
    )
    page_cache_ttl: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between full clears of the rendered listing cache",
    )

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    # "human" shows progress events (index written, server listening)
    level: Literal["debug", "info", "human", "warn", "error"] = "human"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}

    @field_validator("verbose")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("verbose must be >= 0")
        return v


class AppConfig(BaseModel):
    """Complete application configuration.

    This is the root of the configuration tree. It combines all sections
    and is the entry point for validation.
    """

    listing: ListingConfig = Field(default_factory=ListingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
