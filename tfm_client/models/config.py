"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from tfm_client.exceptions import ConfigurationError


def default_cache_dir() -> Path:
    """Returns the per-user directory used for cached tracks."""
    if os.name == "nt":
        base_dir = Path(os.getenv("LOCALAPPDATA", "~\\AppData\\Local"))
    else:
        base_dir = Path(os.getenv("XDG_CACHE_HOME", "~/.cache"))
    return base_dir.expanduser() / "tfm-client" / "tfm_tracks"


class ClientConfig(BaseModel):
    """A validated configuration model for the catalog client."""

    # Server
    server_url: str = ""
    # Root used when a local mirror listing names no folder
    local_folder: str = ""

    # Listing
    page_size: int = 100
    search_page_size: int = 50
    api_timeout: float = 60.0

    # Download cache
    cache_dir: Path = Field(default_factory=default_cache_dir)
    download_timeout: float = 60.0
    min_cache_size: int = 1000
    size_tolerance: float = 0.99

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slashes(cls, v: str) -> str:
        """Normalizes the base URL so endpoint paths can be appended directly."""
        return v.rstrip("/")

    @field_validator("page_size", "search_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Ensures a page size the server will accept."""
        if v < 1 or v > 1000:
            raise ValueError("Page size must be between 1 and 1000.")
        return v

    @field_validator("api_timeout", "download_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive.")
        return v

    @field_validator("size_tolerance")
    @classmethod
    def validate_tolerance(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("Size tolerance must be in the range (0, 1].")
        return v

    def require_server_url(self) -> str:
        """
        Returns the server URL, or raises if it has not been configured.

        Raises:
            ConfigurationError: If no server URL is set.
        """
        if not self.server_url:
            raise ConfigurationError("TFM server URL is not configured.")
        return self.server_url

    def require_cache_dir(self) -> Path:
        """
        Returns the cache directory, creating it if necessary.

        Raises:
            ConfigurationError: If the path is empty or cannot be created.
        """
        if not str(self.cache_dir).strip() or str(self.cache_dir) == ".":
            raise ConfigurationError("TFM cache directory is not configured.")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create cache directory '{self.cache_dir}': {e}"
            ) from e
        return self.cache_dir

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Builds a configuration from TFM_* environment variables.

        Keyword overrides that are not None take precedence over the environment.

        Raises:
            ConfigurationError: If validation fails.
        """
        settings = {
            key: value
            for key, value in {
                "server_url": os.getenv("TFM_SERVER_URL"),
                "cache_dir": os.getenv("TFM_CACHE_DIR"),
                "local_folder": os.getenv("TFM_LOCAL_FOLDER"),
                "page_size": os.getenv("TFM_PAGE_SIZE"),
            }.items()
            if value
        }
        settings.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
