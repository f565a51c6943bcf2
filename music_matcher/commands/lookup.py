"""Show a MusicBrainz release as the matcher sees it."""

from __future__ import annotations

import click
from rich.markup import escape

from music_matcher.cli import Context, pass_context
from music_matcher.utils.output import console, create_table, error, format_length

EXIT_NOT_FOUND = 1


@click.command("lookup")
@click.argument("album_id")
@pass_context
def cli(ctx: Context, album_id: str) -> None:
    """Fetch the release ALBUM_ID and list its tracks.

    Useful to check which release id to pass to ``match --album-id``.
    """
    gateway = ctx.create_gateway()
    try:
        album = gateway.fetch_album(album_id)
    finally:
        gateway.client.close()

    if album is None:
        error(f"Release not found: {album_id}", hint="Run with --verbose for details")
        raise SystemExit(EXIT_NOT_FOUND)

    artist = album.artist.name if album.artist else "?"
    details = ", ".join(str(v) for v in (album.type, album.released) if v)
    title = f"{artist} - {album.title}" + (f" ({details})" if details else "")

    table = create_table(title=escape(title))
    table.add_column("#", justify="right")
    table.add_column("Artist", style="track.artist")
    table.add_column("Title", style="track.title")
    table.add_column("Length", justify="right")
    table.add_column("Recording", style="dim")
    for track in album.tracks:
        table.add_row(
            str(track.number),
            escape(track.artist.name) if track.artist else "",
            escape(track.title),
            format_length(track.length_ms),
            track.id,
        )
    console.print(table)
