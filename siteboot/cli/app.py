"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from ..core.errors import BootstrapError
from ..core.models import RenderTask, ScheduledTask
from ..fetching.fetcher import RemoteAssetFetcher
from ..orchestrator import BootstrapOrchestrator, default_task_command
from ..rendering import engine
from ..scheduling.crontab import render_crontab
from ..settings import Settings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="siteboot",
    help="Bootstrap a static site container: fetch, schedule, forward logs, render.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        logger.error(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc


@app.callback()
def options(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Configure logging for every command."""
    _configure_logging(verbose)


@app.command()
def fetch() -> None:
    """Download a random collection item to the asset path."""
    settings = _load_settings()
    fetcher = RemoteAssetFetcher.from_settings(settings)
    try:
        fetcher.fetch()
    except BootstrapError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc
    finally:
        fetcher.close()


@app.command()
def render(
    template: Annotated[
        Optional[Path],
        typer.Option(
            "--template",
            help="Served document to render in place (default: SITEBOOT_TEMPLATE_PATH).",
            metavar="PATH",
        ),
    ] = None,
) -> None:
    """Inject environment variables into the served document."""
    settings = _load_settings()
    task = RenderTask(
        template_path=template or settings.template_path,
        file_mode=settings.file_mode,
    )
    try:
        engine.render_task(task)
    except BootstrapError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


@app.command()
def crontab() -> None:
    """Print the crontab line equivalent of the scheduled refresh."""
    settings = _load_settings()
    task = ScheduledTask(
        command=default_task_command(),
        interval=settings.interval_seconds,
        log_path=settings.log_path,
    )
    try:
        typer.echo(render_crontab(task), nl=False)
    except ValueError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc


@app.command()
def start(
    command: Annotated[
        Optional[list[str]],
        typer.Argument(
            help="Main server command, given after '--' (e.g. -- nginx -g 'daemon off;').",
            metavar="-- SERVER_CMD...",
        ),
    ] = None,
) -> None:
    """Run the bootstrap steps, then hand off to the main server process."""
    settings = _load_settings()
    orchestrator = BootstrapOrchestrator(settings)
    orchestrator.run()

    if command:
        raise typer.Exit(code=orchestrator.serve(command))
    orchestrator.wait()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
