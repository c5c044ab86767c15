"""
Configuration data models for landfall.

These models define the structure of .landfall.json and
~/.config/landfall/config.json files, with validation via Pydantic.
"""

import os
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


def default_cache_dir() -> Path:
    """$XDG_CACHE_HOME/landfall/repos (defaults to ~/.cache/landfall/repos)."""
    if xdg_cache := os.environ.get("XDG_CACHE_HOME"):
        return Path(xdg_cache) / "landfall" / "repos"
    return Path.home() / ".cache" / "landfall" / "repos"


class DestinationConfig(BaseModel):
    """
    Destination repository settings.

    The URL is optional here so it can come from the command line instead.
    """
    url: Optional[str] = Field(
        default=None,
        description="Destination repository URL (must include a protocol)"
    )
    fetch: str = Field(
        default="default",
        min_length=1,
        description="Reference to pull and start from"
    )
    push: str = Field(
        default="default",
        min_length=1,
        description="Reference to push"
    )
    vcs: Literal["hg", "git"] = Field(
        default="hg",
        description="Version control system of the destination: 'hg' or 'git'"
    )
    force: bool = Field(
        default=False,
        description="Write even if the fetch reference doesn't exist in the destination"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Require a protocol (https://, ssh://, file://...)."""
        if v is not None and not urlsplit(v).scheme:
            raise ValueError(f"Cannot find the protocol for {v}")
        return v


class MessageConfig(BaseModel):
    """Commit message settings."""
    origin_label_separator: str = Field(
        default=": ",
        min_length=1,
        description="Separator between the origin label name and its value"
    )


class RepositoryConfig(BaseModel):
    """
    Local checkout cache and version control binaries.
    """
    cache_dir: Path = Field(
        default_factory=default_cache_dir,
        description="Directory holding one cached checkout per destination URL"
    )
    hg_binary: str = Field(
        default="hg",
        description="Mercurial executable"
    )
    git_binary: str = Field(
        default="git",
        description="Git executable used for credential lookups"
    )
    command_timeout: int = Field(
        default=600,
        ge=1,
        description="Seconds before a version control command is killed"
    )

    @field_validator("cache_dir")
    @classmethod
    def expand_cache_dir(cls, v: Path) -> Path:
        return v.expanduser()


class CredentialsConfig(BaseModel):
    """Credential helper settings."""
    timeout_seconds: int = Field(
        default=60,
        ge=1,
        description="Seconds to wait for 'git credential fill'"
    )


class LandfallConfig(BaseModel):
    """
    Top-level landfall configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = LandfallConfig(
        ...     destination=DestinationConfig(url="https://hg.example.com/repo"),
        ... )
        >>> config.destination.fetch
        'default'
    """
    destination: DestinationConfig = Field(
        default_factory=DestinationConfig,
        description="Destination repository"
    )
    message: MessageConfig = Field(
        default_factory=MessageConfig,
        description="Commit message settings"
    )
    repository: RepositoryConfig = Field(
        default_factory=RepositoryConfig,
        description="Checkout cache and binaries"
    )
    credentials: CredentialsConfig = Field(
        default_factory=CredentialsConfig,
        description="Credential helper settings"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
