"""Match local audio files against MusicBrainz albums."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.markup import escape

from music_matcher.cli import Context, pass_context
from music_matcher.config import Config
from music_matcher.matching import MatchCoordinator
from music_matcher.metadata.loader import load_files
from music_matcher.utils.output import (
    console,
    create_progress,
    create_table,
    error,
    format_length,
    info,
    success,
    verbose,
    warning,
)

if TYPE_CHECKING:
    from music_matcher.matching import GroupMatchResult
    from music_matcher.metadata.models import FileRecord, Group

EXIT_NO_FILES = 1
EXIT_INTERRUPTED = 130


def _file_order(file: FileRecord) -> tuple:
    # assigned files in track order first, then the rest by path
    if file.track is None:
        return (1, 0, str(file.path))
    return (0, file.track.number, str(file.path))


def _print_group(group: Group, result: GroupMatchResult | None) -> None:
    """Show the files of one group with the tracks they were assigned."""
    if result is None or result.album is None:
        title = f"{escape(group.name)}: no album found"
    else:
        artist = result.album.artist.name if result.album.artist else "?"
        title = escape(f"{group.name}: {artist} - {result.album.title}")
        title += f" (score {result.score:.2f})"

    table = create_table(title=title, show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Artist", style="track.artist")
    table.add_column("Title", style="track.title")
    table.add_column("Length", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("File", style="path")

    for file in sorted(group.files, key=_file_order):
        track = file.track
        if track is None:
            table.add_row("", "", "", format_length(file.length_ms), "", escape(file.path.name))
        else:
            table.add_row(
                str(track.number),
                escape(track.artist.name) if track.artist else "",
                escape(track.title),
                format_length(track.length_ms),
                f"{file.score:.2f}",
                escape(file.path.name),
            )
    console.print(table)


def _result_to_dict(group: Group, result: GroupMatchResult | None) -> dict[str, Any]:
    album = result.album if result is not None else None
    data: dict[str, Any] = {
        "group": group.name,
        "album": None,
        "score": result.score if result is not None else 0.0,
        "files": [],
    }
    if album is not None:
        data["album"] = {
            "id": album.id,
            "title": album.title,
            "artist": album.artist.name if album.artist else None,
            "released": album.released,
            "type": album.type,
        }
    for file in group.files:
        entry: dict[str, Any] = {"path": str(file.path), "track": None, "score": file.score}
        if file.track is not None:
            entry["track"] = {
                "id": file.track.id,
                "number": file.track.number,
                "title": file.track.title,
                "artist": file.track.artist.name if file.track.artist else None,
            }
        data["files"].append(entry)
    return data


@click.command("match")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--album-id",
    "-a",
    "album_ids",
    multiple=True,
    help="Only compare with this MusicBrainz release id (repeatable)",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=None,
    help="Groups matched in parallel (default: matching.workers from config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the results as JSON to this file",
)
@pass_context
def cli(
    ctx: Context,
    paths: tuple[Path, ...],
    album_ids: tuple[str, ...],
    workers: int | None,
    output: Path | None,
) -> None:
    """Identify audio files below PATHS.

    Files are grouped by release id tag, album tag or directory. Each group
    is matched against the MusicBrainz album that fits its files best, and
    every file is assigned the track it represents.

    Examples:

    \b
      # Match everything below a directory
      music-matcher match ~/Music/incoming

    \b
      # Match against known releases only and save the result
      music-matcher match ./album -a 0b8e9b7e-... -o result.json
    """
    config = ctx.config or Config()

    gateway = ctx.create_gateway()
    coordinator = MatchCoordinator(
        gateway,
        workers=workers or config.workers,
        album_ids=list(album_ids),
        low_floor=config.low_relevance_floor,
        high_floor=config.high_confidence_floor,
    )

    try:
        with coordinator:
            file_count = 0
            for record in load_files(paths):
                coordinator.file_loaded(record)
                file_count += 1

            if file_count == 0:
                error("No audio files found", hint="Check the given paths")
                raise SystemExit(EXIT_NO_FILES)

            info(f"Loaded {file_count} files in {len(coordinator.groups)} groups")

            if ctx.quiet:
                coordinator.all_files_loaded()
                coordinator.wait()
            else:
                with create_progress() as progress:
                    task = progress.add_task("Matching groups", total=len(coordinator.groups))
                    coordinator.on_group_matched = lambda group, result: progress.advance(task)
                    coordinator.all_files_loaded()
                    coordinator.wait()
    except KeyboardInterrupt:
        coordinator.stop()
        warning("Interrupted, partial results are not shown")
        raise SystemExit(EXIT_INTERRUPTED)
    finally:
        gateway.client.close()

    matched = 0
    for group in coordinator.groups:
        result = coordinator.results.get(group.name)
        if result is not None and result.matched:
            matched += 1
        if result is not None:
            for album, value in result.album_scores.items():
                verbose(escape(f"{group.name}: {album} ({album.id}) scored {value:.3f}"))
        if not ctx.quiet:
            _print_group(group, result)

    if output is not None:
        data = [
            _result_to_dict(group, coordinator.results.get(group.name))
            for group in coordinator.groups
        ]
        try:
            output.write_text(json.dumps(data, indent=2))
        except OSError as e:
            error(f"Failed to write {output}: {e}")
            raise SystemExit(1)
        info(f"Results written to {output}")

    success(f"Matched {matched} of {len(coordinator.groups)} groups")
