"""Configuration management for Brand Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the BRANDSTUDIO_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (BRANDSTUDIO_* prefix)
2. .env file in the project root
3. Default values defined in BrandStudioConfig

Example .env file:
    BRANDSTUDIO_GEMINI_API_KEY=...
    BRANDSTUDIO_IMAGE_MODEL=gemini-2.5-flash-image
    BRANDSTUDIO_GENERATION_RETRIES=2
    BRANDSTUDIO_DATA_DIR=data

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from brandstudio.core.config import config

    print(config.image_model)
    print(config.state_path)

Generation Constraints
----------------------
- The generation call always requests a single aspect ratio (1:1 by default)
- Generation is retried ``generation_retries`` times with a fixed delay
- Analysis sends at most ``max_analysis_images`` reference images
- Suggestions see only the first ``suggestion_context_chars`` characters of
  each profile description
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrandStudioConfig(BaseSettings):
    """Main configuration for Brand Studio.

    Values are loaded from environment variables with the BRANDSTUDIO_ prefix,
    with fallback to defaults defined here. ``data_dir`` is created on
    initialisation if it doesn't exist.

    Attributes
    ----------
    Gemini Settings:
        gemini_api_key : str | None
            API key for the Gemini API. ``None`` lets the SDK fall back to
            its own environment lookup (GOOGLE_API_KEY / GEMINI_API_KEY).
        analysis_model : str
            Model used to describe reference photos
        text_model : str
            Model used for prompt refinement and suggestions
        image_model : str
            Model used for image generation

    Generation Settings:
        generation_retries : int
            Retries after the first failed generation attempt
        retry_delay_seconds : float
            Fixed wait between generation attempts
        aspect_ratio : str
            Aspect ratio requested from the image model

    Limits:
        max_analysis_images : int
            Reference images sent with an analysis request
        max_profile_images : int
            Images accepted per profile at onboarding/studio time
        suggestion_context_chars : int
            Characters of each description sent with suggestion requests

    Storage:
        data_dir : Path
            Directory holding the persisted studio state
        state_file : str
            File name of the studio state inside ``data_dir``
        storage_quota_bytes : int
            Maximum size of a persisted state snapshot

    Server Settings:
        server_host : str
            uvicorn bind address
        server_port : int
            uvicorn port (1024-65535)
        log_level : str
            Root logging level used by the CLI entry point
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BRANDSTUDIO_",
        case_sensitive=False,
    )

    # Gemini settings
    gemini_api_key: str | None = Field(
        default=None,
        description="API key for the Gemini API",
    )
    analysis_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used to describe reference photos",
    )
    text_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for prompt refinement and suggestions",
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Model used for image generation",
    )

    # Generation settings
    generation_retries: int = Field(
        default=2,
        description="Retries after the first failed generation attempt",
        ge=0,
        le=10,
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        description="Fixed delay between generation attempts",
        ge=0.0,
    )
    aspect_ratio: str = Field(
        default="1:1",
        description="Aspect ratio requested from the image model",
    )

    # Limits
    max_analysis_images: int = Field(default=5, ge=1, le=16)
    max_profile_images: int = Field(default=20, ge=1, le=100)
    suggestion_context_chars: int = Field(default=100, ge=1)

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the persisted studio state",
    )
    state_file: str = Field(
        default="studio_state.json",
        description="File name of the studio state inside data_dir",
    )
    storage_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum size of a persisted state snapshot",
        ge=1024,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level for the CLI entry point",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def state_path(self) -> Path:
        """Full path of the persisted studio state file."""
        return self.data_dir / self.state_file


# Global configuration instance
# Loads values from environment variables (BRANDSTUDIO_* prefix) and .env file.
config = BrandStudioConfig()
