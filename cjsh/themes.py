"""The theme built-in and the theme line kept in the interactive source file."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol

from cjsh.state import ShellSettings

THEME_LINE_PREFIX = "theme "


class ThemeManager(Protocol):
    """What the theme command needs from whatever loads themes."""

    def load_theme(self, name: str) -> bool: ...

    def list_themes(self) -> Iterable[str]: ...


def _read_lines(path: str | os.PathLike[str]) -> list[str]:
    try:
        with open(path, encoding="utf-8") as handle:
            content = handle.read()
    except OSError:
        return []
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def update_theme_in_rc_file(path: str | os.PathLike[str], theme_name: str) -> None:
    """Replace the last ``theme`` line with ``theme load NAME``, or append one.

    Raises OSError when the file cannot be written.
    """
    lines = _read_lines(path)
    new_line = f"theme load {theme_name}"
    theme_indices = [i for i, line in enumerate(lines) if line.startswith(THEME_LINE_PREFIX)]
    if theme_indices:
        lines[theme_indices[-1]] = new_line
    else:
        lines.append(new_line)
    with open(path, "w", encoding="utf-8") as handle:
        handle.writelines(f"{line}\n" for line in lines)


def _load(
    name: str,
    theme_manager: ThemeManager,
    settings: ShellSettings,
    source_path: str | os.PathLike[str],
) -> int:
    if theme_manager.load_theme(name):
        settings.current_theme = name
        try:
            update_theme_in_rc_file(source_path, name)
        except OSError:
            print(
                f"Error: Unable to open .cjshrc file for writing at {Path(source_path)}",
                file=sys.stderr,
            )
            return 0
        if settings.debug_mode:
            print(f"Theme setting updated in {Path(source_path)}")
        return 0
    print(f"Error: Theme '{name}' not found or could not be loaded.", file=sys.stderr)
    print(f"Staying with current theme: '{settings.current_theme}'")
    return 0


def theme_command(
    args: Sequence[str],
    theme_manager: ThemeManager | None,
    settings: ShellSettings,
    source_path: str | os.PathLike[str],
) -> int:
    """Show the current and available themes, or switch to a named theme."""
    if theme_manager is None:
        print("Theme manager not initialized", file=sys.stderr)
        return 1

    if len(args) < 2:
        print(f"Current theme: {settings.current_theme}")
        print("Available themes: ")
        for theme in theme_manager.list_themes():
            print(f"  {theme}")
        return 0

    name = args[2] if args[1] == "load" and len(args) > 2 else args[1]
    return _load(name, theme_manager, settings, source_path)