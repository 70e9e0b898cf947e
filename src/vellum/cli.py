"""Command-line interface for vellum."""

import importlib.resources
from pathlib import Path

import click

from .config import CONFIG_FILENAME, Config
from .paths import COLLECTIONS


def get_default_config_content() -> str:
    """Get the default vellum.toml content from bundled defaults."""
    config_file = importlib.resources.files("vellum.defaults").joinpath(CONFIG_FILENAME)
    return config_file.read_text(encoding="utf-8")


def _load_config() -> Config:
    try:
        return Config.find_and_load()
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"Error: invalid {CONFIG_FILENAME}: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(package_name="vellum")
def main():
    """Vellum - publish an Obsidian vault as a static blog and docs site."""
    pass


@main.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing vellum.toml")
def init(force: bool):
    """Initialize a new vellum project in the current directory."""
    config_file = Path.cwd() / CONFIG_FILENAME

    if config_file.exists() and not force:
        click.echo(f"Error: {CONFIG_FILENAME} already exists", err=True)
        click.echo("Use --force to overwrite", err=True)
        raise SystemExit(1)

    config_file.write_text(get_default_config_content(), encoding="utf-8")
    click.echo(f"Created {config_file}")

    config = Config.load(config_file)
    content_dir = config.get_content_dir()
    for collection in COLLECTIONS:
        (content_dir / collection).mkdir(parents=True, exist_ok=True)
    click.echo(f"Created {content_dir}/ ({len(COLLECTIONS)} collections)")

    click.echo("\nRun 'vellum build' to build your site")


@main.command()
@click.option("--drafts", "-d", is_flag=True, help="Include draft entries")
@click.option("--force", "-f", is_flag=True, help="Copy every asset again")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors")
def build(drafts: bool, force: bool, verbose: bool, quiet: bool):
    """Build the static site."""
    from .build import build as do_build
    from .logging import setup_logging

    setup_logging(verbose=verbose, quiet=quiet)
    config = _load_config()

    result = do_build(config, include_drafts=drafts or None, force=force)

    if result == 0:
        click.echo("No entries found to build", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def render(file: Path):
    """Render one markdown FILE to HTML on stdout."""
    from .build import render_file
    from .logging import setup_logging

    setup_logging(quiet=True)
    config_path = Config.find_config(file.parent)
    config = Config.load(config_path) if config_path else Config()
    click.echo(render_file(file, config))


@main.command("sync-attachments")
@click.option("--force", "-f", is_flag=True, help="Copy even when up to date")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def sync_attachments_command(force: bool, verbose: bool):
    """Copy non-image attachments into the output directory."""
    from .assets import sync_attachments
    from .logging import setup_logging

    setup_logging(verbose=verbose)
    config = _load_config()

    copied = sync_attachments(config.get_content_dir(), config.get_output_dir(), force)
    click.echo(f"Synced {copied} attachments")


@main.command()
def clean():
    """Remove build artifacts."""
    from .assets import robust_rmtree

    config = _load_config()
    output_dir = config.get_output_dir()

    if output_dir.exists():
        robust_rmtree(output_dir)
        click.echo(f"Removed {output_dir}")
    else:
        click.echo("Nothing to clean")


if __name__ == "__main__":
    main()
