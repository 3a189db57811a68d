"""Image build orchestration.

This module provides the high-level build API:
- build_model_image(): render, build, verify and push a model image
- verify_model_folders(): post-build sanity check
- SanityCheckError for images missing an expected model folder

The generated build descriptor only exists while the run is in progress;
it is removed on every exit path once written.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from hf_model_image.descriptor import (
    descriptor_file,
    model_folder_name,
    render_descriptor,
)
from hf_model_image.types import BuildReport, RunOutcome

if TYPE_CHECKING:
    from hf_model_image.config import Settings
    from hf_model_image.engine import ContainerEngine

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]


class SanityCheckError(Exception):
    """Raised when a built image lacks an expected model folder."""

    def __init__(
        self,
        model: str,
        folder: str,
        image: str,
        model_dir: str,
        code: str = "sanity_check_failed",
    ) -> None:
        super().__init__(
            f"Model folder '{folder}' for {model} not found in '{model_dir}' "
            f"inside {image}"
        )
        self.model = model
        self.folder = folder
        self.image = image
        self.model_dir = model_dir
        self.code = code


def is_affirmative(answer: str) -> bool:
    """Return True only for a plain ``y`` answer, in either case."""
    return answer.strip().lower() == "y"


def show_configuration(console: Console, models: Sequence[str], image: str) -> None:
    """Print the parsed models and target image."""
    console.print("--- Configuration ---")
    console.print("Hugging Face Models:")
    for model in models:
        console.print(f"  - {escape(model)}")
    console.print(f"Full Image Name:      {escape(image)}")
    console.print("---------------------")
    console.print()


def verify_model_folders(
    engine: ContainerEngine,
    image: str,
    models: Sequence[str],
    model_dir: str,
    console: Console | None = None,
) -> list[str]:
    """Check that every model folder exists inside the built image.

    Args:
        engine: Container engine used to inspect the image.
        image: Image to inspect.
        models: Model references, checked in order.
        model_dir: Directory holding the model folders inside the image.
        console: Optional console for progress output.

    Returns:
        Folder names that were found, in model order.

    Raises:
        SanityCheckError: On the first model whose folder is missing.
    """
    base = model_dir.rstrip("/")
    found: list[str] = []
    for model in models:
        folder = model_folder_name(model)
        if not engine.run_list(image, f"{base}/{folder}"):
            logger.error("Model folder %s missing from %s", folder, image)
            raise SanityCheckError(model, folder, image, base)
        if console is not None:
            console.print(
                f"[green]✓[/green] Model folder '{escape(folder)}' "
                "found inside the image."
            )
        found.append(folder)
    return found


def build_model_image(
    models: Sequence[str],
    image: str,
    engine: ContainerEngine,
    confirm: ConfirmCallback,
    work_dir: Path | None = None,
    settings: Settings | None = None,
    console: Console | None = None,
) -> BuildReport:
    """Build, verify and optionally push an image holding the given models.

    Args:
        models: Model references, in input order.
        image: Full image reference (registry/name:tag).
        engine: Container engine to build, inspect and push with.
        confirm: Called with a question; returns True to go ahead.
        work_dir: Build context and descriptor location (default: cwd).
        settings: Base images and paths; uses default settings if not given.
        console: Console for operator output.

    Returns:
        BuildReport describing how the run ended.

    Raises:
        EngineCommandError: If the build or push fails.
        SanityCheckError: If a model folder is missing from the image.
    """
    if settings is None:
        from hf_model_image.config import get_settings

        settings = get_settings()
    if console is None:
        console = Console(emoji=False)
    if work_dir is None:
        work_dir = Path.cwd()

    models = list(models)
    report = BuildReport(image=image, models=models, outcome=RunOutcome.ABORTED)

    show_configuration(console, models, image)
    if not confirm("Do you want to continue with this configuration? (y/N)"):
        console.print("[yellow]Aborted by user.[/yellow]")
        return report
    console.print()

    console.print("-> Generating dynamic Dockerfile...")
    content = render_descriptor(models, settings)
    descriptor_path = work_dir / settings.descriptor_name

    with descriptor_file(descriptor_path, content) as descriptor:
        console.print("Dockerfile generated successfully.")
        console.print()

        console.print(f"-> Building container image: {escape(image)}")
        engine.build(image, descriptor, work_dir)
        console.print("Build complete.")
        console.print()

        console.print("-> Performing sanity check on the built image...")
        report.verified_folders = verify_model_folders(
            engine, image, models, settings.model_dir, console
        )
        console.print(
            "[green]Sanity check PASSED: All model folders found inside the image.[/green]"
        )
        console.print()

        console.print("Image built and verified successfully.")
        if not confirm(f"Push to registry? Registry: {image}. Confirmation: (y/N)"):
            console.print("[yellow]Push aborted by user.[/yellow]")
            console.print(
                f"The local image '{escape(image)}' is available for inspection."
            )
            report.outcome = RunOutcome.PUSH_DECLINED
            return report
        console.print()

        console.print(f"-> Pushing image with {escape(settings.engine)}...")
        engine.push(image)
        console.print("Push complete.")
        console.print()

        console.print("-> Cleaning up temporary Dockerfile...")

    report.outcome = RunOutcome.PUSHED
    return report


__all__ = [
    "ConfirmCallback",
    "SanityCheckError",
    "build_model_image",
    "is_affirmative",
    "show_configuration",
    "verify_model_folders",
]
