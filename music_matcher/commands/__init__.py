"""Command discovery and registration."""

from __future__ import annotations

import importlib
import pkgutil
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from collections.abc import Iterator


def discover_commands() -> Iterator[click.Command]:
    """Yield the click command of every public module in this package.

    A module contributes a command by defining a ``cli`` attribute.
    """
    import music_matcher.commands as commands_pkg

    for module_info in pkgutil.iter_modules(commands_pkg.__path__):
        if module_info.name.startswith("_"):
            continue

        module = importlib.import_module(f"music_matcher.commands.{module_info.name}")
        cmd = getattr(module, "cli", None)
        if isinstance(cmd, click.Command):
            yield cmd
