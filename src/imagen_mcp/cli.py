from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import anyio
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import ConfigError, Settings, load_settings
from .gen.backend import ImageBackend
from .gen.backends.gemini import GeminiBackend
from .gen.errors import ImageToolError
from .gen.models import MODELS
from .gen.translate import RequestTranslator
from .server import serve as serve_stdio
from .tools import TOOLS, ImageTools

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()
# stdout carries the MCP protocol while serving
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    handler = RichHandler(console=err_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def make_backend(settings: Settings) -> ImageBackend:
    return GeminiBackend(api_key=settings.api_key)


def build_tools(config_path: Optional[Path] = None) -> ImageTools:
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        err_console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    setup_logging(settings.log_level)
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Writing images to %s", settings.output_dir)
    translator = RequestTranslator(make_backend(settings), settings.output_dir)
    return ImageTools(translator)


def _run_tool(name: str, arguments: dict[str, Any], config: Optional[Path]) -> None:
    tools = build_tools(config)
    try:
        text = tools.call(name, arguments)
    except ImageToolError as e:
        err_console.print(f"[bold red]{e.kind}:[/bold red] {escape(e.message)}")
        raise typer.Exit(code=2) from e
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _drop_unset(arguments: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in arguments.items() if v is not None}


@app.command()
def serve(
    config: Optional[Path] = typer.Option(None, "--config", "-c", dir_okay=False, help="Path to imagen.toml"),
):
    """Run the MCP server on stdio."""
    tools = build_tools(config)
    anyio.run(serve_stdio, tools)


@app.command("tools")
def list_tools(schema: bool = typer.Option(False, "--schema", help="Print the JSON input schemas")):
    """Show the tools exposed to MCP clients."""
    if schema:
        payload = {spec.name: spec.input_schema() for spec in TOOLS}
        console.print_json(json.dumps(payload))
        return

    table = Table(title="Tools")
    table.add_column("Name", style="bold")
    table.add_column("Summary")
    for spec in TOOLS:
        table.add_row(spec.name, spec.description.splitlines()[0])
    console.print(table)

    models = Table(title="Models")
    models.add_column("Name", style="bold")
    models.add_column("Model ID")
    models.add_column("Max inputs", justify="right")
    models.add_column("Resolution option")
    for spec in MODELS.values():
        models.add_row(
            spec.name,
            spec.model_id,
            str(spec.max_input_images),
            "1K / 2K / 4K" if spec.supports_image_size else "-",
        )
    console.print(models)
    for spec in MODELS.values():
        console.print(f"[bold]{spec.name}[/bold]: {spec.summary}")


@app.command()
def generate(
    prompt: str = typer.Argument(...),
    model: Optional[str] = typer.Option(None, "--model", "-m"),
    aspect_ratio: Optional[str] = typer.Option(None, "--aspect-ratio", "-a"),
    image_size: Optional[str] = typer.Option(None, "--image-size", "-s"),
    filename: Optional[str] = typer.Option(None, "--filename", "-o"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", dir_okay=False),
):
    """Generate an image from a text prompt."""
    arguments = _drop_unset(
        {
            "prompt": prompt,
            "model": model,
            "aspect_ratio": aspect_ratio,
            "image_size": image_size,
            "filename": filename,
        }
    )
    _run_tool("generate_image", arguments, config)


@app.command()
def edit(
    image_path: Path = typer.Argument(..., dir_okay=False),
    prompt: str = typer.Argument(...),
    model: Optional[str] = typer.Option(None, "--model", "-m"),
    aspect_ratio: Optional[str] = typer.Option(None, "--aspect-ratio", "-a"),
    image_size: Optional[str] = typer.Option(None, "--image-size", "-s"),
    filename: Optional[str] = typer.Option(None, "--filename", "-o"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", dir_okay=False),
):
    """Edit an existing image with a text instruction."""
    arguments = _drop_unset(
        {
            "prompt": prompt,
            "image_path": str(image_path),
            "model": model,
            "aspect_ratio": aspect_ratio,
            "image_size": image_size,
            "filename": filename,
        }
    )
    _run_tool("edit_image", arguments, config)


@app.command()
def compose(
    image_paths: list[Path] = typer.Argument(..., dir_okay=False),
    prompt: str = typer.Option(..., "--prompt", "-p"),
    model: Optional[str] = typer.Option(None, "--model", "-m"),
    aspect_ratio: Optional[str] = typer.Option(None, "--aspect-ratio", "-a"),
    image_size: Optional[str] = typer.Option(None, "--image-size", "-s"),
    filename: Optional[str] = typer.Option(None, "--filename", "-o"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", dir_okay=False),
):
    """Combine several images into a new composition."""
    arguments = _drop_unset(
        {
            "prompt": prompt,
            "image_paths": [str(p) for p in image_paths],
            "model": model,
            "aspect_ratio": aspect_ratio,
            "image_size": image_size,
            "filename": filename,
        }
    )
    _run_tool("compose_images", arguments, config)
