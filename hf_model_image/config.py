"""Configuration settings for hf_model_image.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DOWNLOADER_IMAGE = (
    "quay.io/trustyai_testing/llm-downloader-bootstrap"
    "@sha256:d3211cc581fe69ca9a1cb75f84e5d08cacd1854cb2d63591439910323b0cbb57"
)
DEFAULT_FINAL_IMAGE = (
    "quay.io/trustyai_testing/modelmesh-minio-examples"
    "@sha256:d2ccbe92abf9aa5085b594b2cae6c65de2bf06306c30ff5207956eb949bb49da"
)


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the HF_MODEL_IMAGE_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="HF_MODEL_IMAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Container engine
    engine: str = Field(
        default="podman",
        description="Container engine executable (podman or docker)",
    )

    # Base images, pinned by digest
    downloader_image: str = Field(
        default=DEFAULT_DOWNLOADER_IMAGE,
        description="Base image of the download stage",
    )
    final_image: str = Field(
        default=DEFAULT_FINAL_IMAGE,
        description="Base image of the packaging stage",
    )

    # Layout inside the images
    downloader_cli: str = Field(
        default="/tmp/venv/bin/huggingface-cli",
        description="Hugging Face CLI inside the download stage",
    )
    download_dir: str = Field(
        default="/tmp/models/llms",
        description="Directory models are fetched into in the download stage",
    )
    model_dir: str = Field(
        default="/data1/llms",
        description="Directory models are copied to in the final image",
    )
    label_prefix: str = Field(
        default="huggingface.model.",
        description="Prefix of the per-model image labels",
    )

    # Local files
    descriptor_name: str = Field(
        default="Dockerfile",
        description="File name of the generated build descriptor",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )

    # Timeouts (in seconds, None = wait forever)
    build_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for the image build",
    )
    run_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for each sanity check container",
    )
    push_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for the image push",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = [
    "DEFAULT_DOWNLOADER_IMAGE",
    "DEFAULT_FINAL_IMAGE",
    "Settings",
    "get_settings",
    "print_settings_json",
]
