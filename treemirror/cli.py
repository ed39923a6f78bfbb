"""Click-based CLI for TreeMirror - periodic one-way directory mirroring."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from treemirror import __version__
from treemirror.config import ConfigError, load_configs, validate_config_file, write_default_config
from treemirror.mirror import MirrorError, MirrorService
from treemirror.output import Console, create_console


@click.group()
@click.version_option(version=__version__, prog_name="treemirror")
def cli() -> None:
    """TreeMirror - periodic one-way directory mirroring.

    Every interval the source tree is rescanned and the destination tree
    is updated to match it: stale files are copied, orphans removed.

    \b
    Quick start:
      treemirror config init mirror.yml
      treemirror run mirror.yml
    """
    pass


@cli.command()
@click.argument("config_files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--once", is_flag=True, help="Run a single cycle per configuration and exit")
@click.option("--verbose", "-v", is_flag=True, help="Print a summary after every cycle")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def run(config_files: tuple[Path, ...], once: bool, verbose: bool, no_color: bool) -> None:
    """Mirror source into destination for every configuration file.

    Each file starts an independent loop. Loops run until interrupted
    with Ctrl+C; any error stops all of them.

    \b
    Examples:
      treemirror run photos.yml
      treemirror run photos.yml music.yml --verbose
      treemirror run photos.yml --once
    """
    console = create_console(verbose=verbose, colored=not no_color)

    try:
        configs = load_configs(config_files)
    except (FileNotFoundError, ConfigError) as e:
        _abort(console, str(e))

    service = MirrorService(configs, console)

    if once:
        try:
            service.run_once()
        except MirrorError as e:
            _abort(console, e.message)
        return

    console.print("Running, press Ctrl+C to terminate")
    service.start()

    try:
        service.wait()
    except KeyboardInterrupt:
        service.stop()
        console.print_info("Stopped")
    except MirrorError as e:
        _abort(console, e.message)


@cli.group()
def config() -> None:
    """Create and validate configuration files."""
    pass


@config.command("init")
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--source", "-s", default=None, help="Source directory to write into the file")
@click.option("--destination", "-d", default=None, help="Destination directory to write into the file")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
def config_init(file: Path, source: Optional[str], destination: Optional[str], force: bool) -> None:
    """Write a commented default configuration file.

    \b
    Example:
      treemirror config init mirror.yml -s ~/photos -d /mnt/backup/photos
    """
    console = create_console()

    try:
        path = write_default_config(file, source=source, destination=destination, force=force)
    except FileExistsError as e:
        _abort(console, f"{e} (use --force to overwrite)")

    console.print_success(f"Created {path}")


@config.command("check")
@click.argument("config_files", nargs=-1, required=True, type=click.Path(path_type=Path))
def config_check(config_files: tuple[Path, ...]) -> None:
    """Validate configuration files without running them."""
    console = create_console()
    all_valid = True

    for config_file in config_files:
        valid, errors = validate_config_file(config_file)
        console.print_config_check(str(config_file), valid, errors)
        all_valid = all_valid and valid

    if not all_valid:
        sys.exit(1)


def _abort(console: Console, message: str) -> NoReturn:
    console.print_error(message)
    sys.exit(1)


if __name__ == "__main__":
    cli()
