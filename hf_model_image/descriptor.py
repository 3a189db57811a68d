"""Build descriptor generation.

This module handles:
- Parsing the comma-separated model list
- Deriving per-model folder names and label keys
- Rendering the two-stage build descriptor (download stage + final stage)
- Writing the descriptor and removing it again on every exit path
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hf_model_image.config import Settings

logger = logging.getLogger(__name__)

DOWNLOADER_STAGE = "downloader"


def parse_model_list(value: str) -> list[str]:
    """Split a comma-separated model list the way ``IFS=, read -ra`` does.

    Entries are neither trimmed nor validated, and empty entries are kept,
    so malformed input passes through to the build unchanged. A single
    trailing separator does not start a new entry.

    Args:
        value: Comma-separated model references.

    Returns:
        Model references in input order. An empty string yields no models;
        ``"a,"`` yields ``["a"]`` and ``"a,,"`` yields ``["a", ""]``.
    """
    if not value:
        return []
    models = value.split(",")
    if models[-1] == "":
        models.pop()
    return models


def model_folder_name(model: str) -> str:
    """Return the folder a model is downloaded into (its last path segment).

    Args:
        model: Model reference, e.g. ``Qwen/Qwen2.5-0.5B-Instruct``.

    Returns:
        Last path segment, e.g. ``Qwen2.5-0.5B-Instruct``.
    """
    stripped = model.rstrip("/")
    if not stripped:
        # basename semantics: "/" stays "/", "" stays ""
        return "/" if model else ""
    return stripped.rsplit("/", 1)[-1]


def model_label_key(model: str, prefix: str = "huggingface.model.") -> str:
    """Return the image label key for a model.

    Slashes are replaced with dots so the key stays a plain dotted name.
    """
    return prefix + model.replace("/", ".")


def compose_download_instruction(
    model: str,
    downloader_cli: str,
    download_dir: str,
) -> str:
    """Compose the RUN instruction that fetches one model."""
    target = f"{download_dir}/{model_folder_name(model)}"
    return (
        f'RUN echo "Downloading model: {model}" && \\\n'
        f"    {downloader_cli} download {model} --local-dir {target}"
    )


def compose_label_instruction(model: str, prefix: str) -> str:
    """Compose the LABEL instruction that records one model."""
    return f'LABEL "{model_label_key(model, prefix)}"="{model}"'


def render_descriptor(
    models: Sequence[str],
    settings: Settings | None = None,
) -> str:
    """Render the multi-stage build descriptor for a list of models.

    The first stage downloads every model into its own folder. The second
    stage copies the folders into the final image, opens up their
    permissions and attaches one label per model.

    Args:
        models: Model references, in the order they should appear.
        settings: Base images and paths; uses default settings if not given.

    Returns:
        Descriptor text, ending with a newline.
    """
    if settings is None:
        from hf_model_image.config import get_settings

        settings = get_settings()

    download_dir = settings.download_dir.rstrip("/")
    model_dir = settings.model_dir.rstrip("/")

    lines: list[str] = [
        "# Stage 1: Downloader",
        "# Uses a bootstrap image containing Python and huggingface-cli",
        f"FROM {settings.downloader_image} AS {DOWNLOADER_STAGE}",
        "",
        "# Create the target directory within the build stage",
        f"RUN mkdir -p {download_dir}",
        "",
        "# Download all models",
    ]
    lines.extend(
        compose_download_instruction(model, settings.downloader_cli, download_dir)
        for model in models
    )
    lines.extend(
        [
            "",
            "# Stage 2: Final Image",
            "# Uses the Minio base image for serving",
            f"FROM {settings.final_image}",
            "",
            "# Copy the downloaded models from the downloader stage",
            f"COPY --from={DOWNLOADER_STAGE} {download_dir}/ {model_dir}/",
            f"RUN chmod -R 777 {model_dir}",
            "",
            "# Labels identifying the models in the image",
        ]
    )
    lines.extend(
        compose_label_instruction(model, settings.label_prefix) for model in models
    )
    return "\n".join(lines) + "\n"


def write_descriptor(path: Path, content: str) -> Path:
    """Write the descriptor, replacing any file left at the same path."""
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote build descriptor: %s", path)
    return path


def remove_descriptor(path: Path) -> bool:
    """Remove the descriptor file.

    Returns:
        True if a file was removed, False if there was nothing to remove.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        logger.debug("Build descriptor already gone: %s", path)
        return False
    logger.info("Removed build descriptor: %s", path)
    return True


@contextmanager
def descriptor_file(path: Path, content: str) -> Iterator[Path]:
    """Write a descriptor for the duration of the block.

    The file is removed when the block exits, whether it returns normally
    or raises.

    Args:
        path: Where to write the descriptor.
        content: Descriptor text.

    Yields:
        Path of the written descriptor.
    """
    write_descriptor(path, content)
    try:
        yield path
    finally:
        remove_descriptor(path)


__all__ = [
    "DOWNLOADER_STAGE",
    "compose_download_instruction",
    "compose_label_instruction",
    "descriptor_file",
    "model_folder_name",
    "model_label_key",
    "parse_model_list",
    "remove_descriptor",
    "render_descriptor",
    "write_descriptor",
]
