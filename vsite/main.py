import logging
import typer
from pathlib import Path
from typing import Optional

from vsite import __version__
from vsite.config.loader import load_config
from vsite.domain.errors import RootDirectoryError, VsiteError
from vsite.infrastructure.logging import setup_logging
from vsite.infrastructure.event_bus import EventBus
from vsite.infrastructure.file_scanner import FileScanner
from vsite.infrastructure.ffmpeg import FFmpegAdapter
from vsite.infrastructure.housekeeping import HousekeepingService
from vsite.pipeline.generator import GalleryGenerator
from vsite.pipeline.orchestrator import ConversionOrchestrator
from vsite.ui.reporter import ConsoleReporter

app = typer.Typer(help="vsite - Static HTML video gallery generator")


def _version_callback(value: bool):
    if value:
        typer.echo(f"vsite v{__version__}")
        raise typer.Exit()


def validate_root(root_dir: Path) -> Path:
    if not root_dir.exists():
        raise RootDirectoryError(f"directory '{root_dir}' does not exist")
    if not root_dir.is_dir():
        raise RootDirectoryError(f"'{root_dir}' is not a directory")
    return root_dir.resolve()


@app.command()
def generate(
    root_dir: Path = typer.Argument(..., help="Root directory containing video files"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title of the main page (default: \"Videos\")"),
    convert: bool = typer.Option(False, "--convert", help="Convert incompatible videos (avi, mkv, ...) to MP4 first"),
    gpu: bool = typer.Option(False, "--gpu", help="Use NVIDIA NVENC for --convert (needs nvidia-smi and ffmpeg with NVENC)"),
    clean: bool = typer.Option(False, "--clean", "-c", help="Remove all generated HTML files from the directory and exit"),
    clean_converted: bool = typer.Option(False, "--clean-converted", help="Remove converted MP4 files (keeps originals) and exit"),
    clean_originals: bool = typer.Option(False, "--clean-originals", help="Remove originals that have a converted MP4 and exit"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Write a log file here (overrides config)"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Scan a directory for videos and generate listing and player pages."""
    if sum([clean, clean_converted, clean_originals]) > 1:
        typer.secho(
            "Error: --clean, --clean-converted and --clean-originals cannot be combined.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        config = load_config(config_path)
        # Apply CLI overrides
        if title is not None: config.general.title = title
        if log_path is not None: config.general.log_path = str(log_path)
        if debug: config.general.debug = True

        root = validate_root(root_dir)
        log_path_value = Path(config.general.log_path) if config.general.log_path else None
        logger = setup_logging(debug=config.general.debug, log_path=log_path_value)
        logger.info(f"vsite started: root={root}, convert={convert}, gpu={gpu}")

        bus = EventBus()
        ConsoleReporter(bus)
        scanner = FileScanner.from_config(config.general)
        housekeeper = HousekeepingService(scanner, bus)

        if clean:
            removed = housekeeper.remove_generated(root)
            typer.echo(f"Done! {len(removed)} files removed.")
            return

        if clean_converted:
            typer.echo("Searching for converted files...")
            removed = housekeeper.remove_converted(root)
            typer.echo(f"Done! {len(removed)} converted files removed.")
            return

        if clean_originals:
            typer.echo("Searching for original files that have been converted...")
            removed = housekeeper.remove_originals(root)
            typer.echo(f"Done! {len(removed)} original files removed.")
            return

        if gpu and not convert:
            typer.secho("Warning: --gpu has no effect without --convert.", fg=typer.colors.YELLOW, err=True)

        if convert:
            typer.echo("Searching for videos to convert...")
            ffmpeg = FFmpegAdapter(event_bus=bus, ffmpeg_path=config.conversion.ffmpeg_path)
            orchestrator = ConversionOrchestrator(
                config=config,
                event_bus=bus,
                file_scanner=scanner,
                ffmpeg_adapter=ffmpeg,
                housekeeper=housekeeper,
            )
            orchestrator.run(root, use_gpu=gpu)

        generator = GalleryGenerator(config=config, event_bus=bus, file_scanner=scanner)
        generator.generate(root, title=config.general.title)
        typer.echo("Done! HTML files generated successfully.")

    except KeyboardInterrupt:
        typer.secho("\nInterrupted by user (Ctrl+C)", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)

    except typer.Exit:
        raise

    except VsiteError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except (FileNotFoundError, ValueError) as e:
        # Missing --config file, invalid config values, files vanishing mid-scan
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except Exception as e:
        logging.getLogger(__name__).exception("Fatal error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

if __name__ == "__main__":
    app()
