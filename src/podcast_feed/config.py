"""
Configuration management for the podcast feed append step.

Provides centralized configuration using Pydantic for validation and
environment variable support. Supports feed.yaml for per-project settings
and default step parameters.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Storage segments below this size are rejected by S3 multipart uploads
# (only the final part may be smaller).
MIN_PART_SIZE = 5 * 1024 * 1024

DEFAULT_PART_SIZE = 5242880
DEFAULT_WRITE_CHUNK_SIZE = 4194304

DEFAULT_IMAGE_URL = "https://rundexter.com/images/favicons/android-chrome-192x192.png"


def load_feed_yaml(search_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load feed.yaml configuration file.

    Searches for feed.yaml starting from search_dir (or the current working
    directory) and walking up to 3 parent directories.

    Args:
        search_dir: Directory to start searching from

    Returns:
        Dictionary with feed.yaml contents, or empty dict if not found
    """
    start = search_dir or Path.cwd()
    for parent in [start] + list(start.parents)[:3]:
        candidate = parent / "feed.yaml"
        if candidate.exists():
            with open(candidate, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
    return {}


class Config(BaseSettings):
    """
    Application configuration with environment variable support.

    Configuration can be provided via:
    1. Environment variables (prefixed with PODCAST_FEED_)
    2. .env file
    3. the ``settings`` section of feed.yaml
    4. Default values

    Example:
        export PODCAST_FEED_BUCKET="my-podcast-bucket"
        export PODCAST_FEED_PUBLIC_BASE_URL="https://cdn.example.com"
    """

    model_config = SettingsConfigDict(
        env_prefix="PODCAST_FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    bucket: str = Field(
        default="",
        description="Bucket holding the feed XML files"
    )
    region: Optional[str] = Field(
        default=None,
        description="Storage region (e.g. 'us-east-1')"
    )
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible services"
    )
    access_key_id: Optional[str] = Field(
        default=None,
        description="Access key; falls back to the boto3 credential chain"
    )
    secret_access_key: Optional[str] = Field(
        default=None,
        description="Secret key paired with access_key_id"
    )
    session_token: Optional[str] = Field(
        default=None,
        description="Optional session token for temporary credentials"
    )
    public_base_url: Optional[str] = Field(
        default=None,
        description="Public base URL of the bucket; presigned URLs are used when unset"
    )
    url_expiry_seconds: int = Field(
        default=7 * 24 * 3600,
        description="Lifetime of presigned feed URLs"
    )

    # Upload
    part_size: int = Field(
        default=DEFAULT_PART_SIZE,
        description="Buffered bytes that trigger an upload segment"
    )
    write_chunk_size: int = Field(
        default=DEFAULT_WRITE_CHUNK_SIZE,
        description="Slice size used when streaming the rendered XML"
    )

    # Feed defaults
    site_url: str = Field(
        default="https://rundexter.com",
        description="Channel link used when no site_url parameter is given"
    )
    image_url: str = Field(
        default=DEFAULT_IMAGE_URL,
        description="Channel and iTunes image (must end in .jpg or .png)"
    )
    language: str = Field(
        default="en",
        description="Feed language (ISO 639-1 code)"
    )
    author: str = Field(
        default="Dexter",
        description="Channel and item author"
    )
    itunes_summary: str = Field(
        default="Automated playlist generated by Dexter",
    )
    itunes_subtitle: str = Field(
        default="Automated playlist generated by Dexter",
    )
    itunes_explicit: bool = Field(
        default=False,
    )
    itunes_duration: int = Field(
        default=12345,
        description="Duration in seconds reported for items"
    )
    default_item_type: str = Field(
        default="audio/mpeg",
        description="Enclosure MIME type used when no item_type is given"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    @field_validator("part_size")
    @classmethod
    def _check_part_size(cls, value: int) -> int:
        if value < MIN_PART_SIZE:
            raise ValueError(f"part_size must be at least {MIN_PART_SIZE} bytes")
        return value

    @field_validator("write_chunk_size")
    @classmethod
    def _check_write_chunk_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("write_chunk_size must be positive")
        return value

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: str) -> str:
        # iTunes only accepts jpg/png artwork
        if not value.endswith((".jpg", ".png")):
            raise ValueError("image_url must end with .jpg or .png")
        return value

    def storage_client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.client('s3', ...)``."""
        kwargs: Dict[str, Any] = {}
        if self.region:
            kwargs["region_name"] = self.region
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if self.access_key_id and self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
            if self.session_token:
                kwargs["aws_session_token"] = self.session_token
        return kwargs


def get_config(search_dir: Optional[Path] = None) -> Config:
    """
    Get the application configuration instance.

    Merges settings from environment variables, .env file,
    and the ``settings`` section of feed.yaml (if present).
    Environment variables win over feed.yaml.

    Returns:
        Config: Application configuration
    """
    yaml_settings = load_feed_yaml(search_dir).get("settings") or {}
    env_config = Config()
    # Only carry over yaml keys the environment did not set explicitly
    overrides = {
        key: value
        for key, value in yaml_settings.items()
        if key in Config.model_fields and key not in env_config.model_fields_set
    }
    if not overrides:
        return env_config
    return Config(**{**env_config.model_dump(exclude_unset=True), **overrides})
