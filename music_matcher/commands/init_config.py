"""Write a starter configuration for music-matcher."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from music_matcher.cli import Context, pass_context
from music_matcher.config import get_default_config_path, load_config
from music_matcher.utils.output import error, info, success, warning


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("music_matcher").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Replace an existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Where to write the config (default: ~/.config/music-matcher/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Write a config file with the default catalog and matching settings.

    The file has three sections: [display] for terminal colors, [catalog]
    for the MusicBrainz endpoint, User-Agent, request spacing and search
    size, and [matching] for the score floors and the number of groups
    matched in parallel.

    Examples:

    \b
      # Write the default config
      music-matcher init-config

    \b
      # Start a per-library config next to the music
      music-matcher init-config -o ~/Music/matcher.toml --force
      music-matcher --config ~/Music/matcher.toml match ~/Music
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to replace it",
        )
        raise SystemExit(1)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_load_example_config())
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    config, warnings = load_config(config_path)
    for message in warnings:
        warning(message)

    success(f"Created config file: {config_path}")
    info(
        f"Catalog: {config.catalog_base_url}, one request every "
        f"{config.request_interval:g}s, {config.search_limit} results per search"
    )
    info(
        f"Matching: floors {config.low_relevance_floor:g}/{config.high_confidence_floor:g}, "
        f"{config.workers} workers"
    )
    info("Set catalog.user_agent to a contact address before matching large libraries.")
