"""Command-line interface for music-matcher."""

from __future__ import annotations

import os
from pathlib import Path

import click

from music_matcher import __version__
from music_matcher.catalog import AlbumCache, MusicBrainzClient, MusicBrainzGateway, RateLimiter
from music_matcher.config import Config, load_config
from music_matcher.exceptions import ConfigError
from music_matcher.utils.output import (
    error,
    set_color,
    set_verbosity,
    setup_logging,
    warning,
)


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False

    def create_gateway(self) -> MusicBrainzGateway:
        """Build the catalog gateway described by the loaded configuration.

        Every gateway owns one rate limiter, so all matchers of a run must
        share the gateway returned here.
        """
        config = self.config or Config()
        limiter = RateLimiter(config.request_interval)
        client = MusicBrainzClient(
            limiter,
            base_url=config.catalog_base_url,
            user_agent=config.catalog_user_agent,
            timeout=config.request_timeout,
        )
        return MusicBrainzGateway(client, AlbumCache(), search_limit=config.search_limit)


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/music-matcher/config.toml)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.version_option(version=__version__, prog_name="music-matcher")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
) -> None:
    """music-matcher: Identify local audio files against MusicBrainz.

    Files are grouped by release id, album tag or directory, and every
    group is matched against the MusicBrainz album it most likely belongs
    to. Each file is then assigned the track it represents.

    Configuration is loaded from ~/.config/music-matcher/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Match a directory of files
        music-matcher match ~/Music/incoming

        # Match against a known release
        music-matcher match ./album --album-id 0b8e9b7e-...
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet

    set_verbosity(verbose=verbose, debug=debug)
    setup_logging(verbose=verbose, debug=debug, quiet=quiet)

    # Color is disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None
    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except ConfigError as e:
        error(str(e))
        ctx.exit(1)
        return

    app_ctx.config = loaded_config
    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from music_matcher.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
