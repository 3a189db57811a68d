"""Thin CLI wrapper for hf_model_image.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.

Two entry points share the build command:
- ``hf-model-image build MODELS IMAGE`` (plus ``render`` and ``config``)
- ``build-hf-model-image MODELS IMAGE``
"""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from hf_model_image import __version__
from hf_model_image.config import Settings, get_settings, print_settings_json

app = typer.Typer(
    name="hf-model-image",
    help="HF Model Image - build container images pre-loaded with Hugging Face models",
    no_args_is_help=True,
)
build_app = typer.Typer(
    name="build-hf-model-image",
    help="Build an image with Hugging Face models and push it to a registry",
    add_completion=False,
)
console = Console(emoji=False)

USAGE_EXAMPLE = '"model1,model2,model3" "quay.io/my_org/my-models-minio:v1"'


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"hf-model-image version {__version__}")
        raise typer.Exit()


def configure_logging(settings: Settings) -> None:
    """Route library logging to stderr at the configured level."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _auto_confirm(question: str) -> bool:
    console.print(f"{escape(question)} y")
    return True


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """HF Model Image - build container images pre-loaded with Hugging Face models."""


def build(
    ctx: typer.Context,
    models: Annotated[
        str | None,
        typer.Argument(
            help="Comma-separated Hugging Face models, e.g. 'org/a,org/b'",
            show_default=False,
        ),
    ] = None,
    image: Annotated[
        str | None,
        typer.Argument(
            help="Full image name with tag, e.g. quay.io/org/models:v1",
            show_default=False,
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Answer yes to all confirmation prompts"),
    ] = False,
    engine: Annotated[
        str | None,
        typer.Option("--engine", "-e", help="Container engine executable"),
    ] = None,
) -> None:
    """Build an image with the given models, verify it and push it.

    Generates a Dockerfile in the current directory, builds it, checks every
    model folder exists inside the image and, after confirmation, pushes the
    image. The Dockerfile is removed before exiting.
    """
    if models is None or image is None or ctx.args:
        console.print("[red]Error: Invalid number of arguments.[/red]")
        console.print(
            f"Usage: {ctx.command_path} <model_names> <full_image_name:tag>",
            markup=False,
        )
        console.print(f"Example: {ctx.command_path} {USAGE_EXAMPLE}", markup=False)
        raise typer.Exit(code=1)

    from hf_model_image.descriptor import parse_model_list
    from hf_model_image.engine import CLIEngine, EngineCommandError
    from hf_model_image.orchestrator import (
        SanityCheckError,
        build_model_image,
        is_affirmative,
    )
    from hf_model_image.types import RunOutcome

    settings = get_settings()
    if engine:
        settings = settings.model_copy(update={"engine": engine})
    configure_logging(settings)

    def prompt_confirm(question: str) -> bool:
        answer = typer.prompt(question, default="", show_default=False)
        return is_affirmative(answer)

    container_engine = CLIEngine(
        settings.engine,
        build_timeout=settings.build_timeout,
        run_timeout=settings.run_timeout,
        push_timeout=settings.push_timeout,
    )

    try:
        report = build_model_image(
            parse_model_list(models),
            image,
            container_engine,
            confirm=_auto_confirm if yes else prompt_confirm,
            settings=settings,
            console=console,
        )
    except SanityCheckError as e:
        console.print("[red]Error: Sanity check FAILED.[/red]")
        console.print(
            f"      The model folder '{escape(e.folder)}' ({escape(e.model)}) "
            f"was not found in '{escape(e.model_dir)}/' inside the image."
        )
        console.print(
            f"      The image '{escape(e.image)}' was built but may be invalid."
        )
        raise typer.Exit(code=1) from None
    except EngineCommandError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if e.command:
            console.print(f"  Command: {e.command}", markup=False)
        code = e.exit_code if e.exit_code and e.exit_code > 0 else 1
        raise typer.Exit(code=code) from None

    if report.outcome == RunOutcome.PUSHED:
        console.print("[green]✅ Success! Image has been built and pushed to:[/green]")
        console.print(image, markup=False)


_BUILD_CONTEXT = {"allow_extra_args": True}

app.command("build", context_settings=_BUILD_CONTEXT)(build)
build_app.command(context_settings=_BUILD_CONTEXT)(build)


@app.command()
def render(
    models: Annotated[
        str,
        typer.Argument(help="Comma-separated Hugging Face models"),
    ],
) -> None:
    """Print the Dockerfile that would be generated, without building."""
    from hf_model_image.descriptor import parse_model_list, render_descriptor

    typer.echo(render_descriptor(parse_model_list(models), get_settings()), nl=False)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        typer.echo(print_settings_json(settings))
        return

    def _timeout(value: int | None) -> str:
        return str(value) if value is not None else "(none)"

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Engine:[/bold]")
    console.print(f"  Executable:          {settings.engine}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print()
    console.print("[bold]Base images:[/bold]")
    console.print(f"  Downloader:          {settings.downloader_image}")
    console.print(f"  Final:               {settings.final_image}")
    console.print()
    console.print("[bold]Layout:[/bold]")
    console.print(f"  Downloader CLI:      {settings.downloader_cli}")
    console.print(f"  Download directory:  {settings.download_dir}")
    console.print(f"  Model directory:     {settings.model_dir}")
    console.print(f"  Label prefix:        {settings.label_prefix}")
    console.print(f"  Descriptor file:     {settings.descriptor_name}")
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Build timeout:       {_timeout(settings.build_timeout)}")
    console.print(f"  Run timeout:         {_timeout(settings.run_timeout)}")
    console.print(f"  Push timeout:        {_timeout(settings.push_timeout)}")


if __name__ == "__main__":
    app()
