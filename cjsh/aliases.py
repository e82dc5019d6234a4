"""The alias and unalias commands and their record in the source file."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from pathlib import Path

from cjsh.state import Session


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


def _write_lines(path: str | os.PathLike[str], lines: list[str]) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        handle.writelines(f"{line}\n" for line in lines)


def parse_assignment(arg: str) -> tuple[str, str]:
    """Split ``name=value``, dropping one pair of matching outer quotes.

    Raises ValueError when there is no ``=`` or the name is empty.
    """
    name, sep, value = arg.partition("=")
    if not sep or not name:
        raise ValueError(f"invalid assignment: {arg}")
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return name, value


def save_alias_to_file(path: str | os.PathLike[str], name: str, value: str) -> None:
    """Write or replace the alias line for ``name``; raises OSError on failure."""
    prefix = f"alias {name}="
    new_line = f"alias {name}='{value}'"
    lines = _read_lines(path)
    found = False
    for index, line in enumerate(lines):
        if line.startswith(prefix):
            lines[index] = new_line
            found = True
    if not found:
        lines.append(new_line)
    _write_lines(path, lines)


def remove_alias_from_file(path: str | os.PathLike[str], name: str) -> None:
    """Drop every alias line for ``name``; raises OSError on failure."""
    prefix = f"alias {name}="
    _write_lines(path, [line for line in _read_lines(path) if not line.startswith(prefix)])


def _report_write_failure(path: str | os.PathLike[str]) -> None:
    print(
        f"Error: Unable to open source file for writing at {Path(path)}",
        file=sys.stderr,
    )


def alias_command(
    args: Sequence[str], session: Session, source_path: str | os.PathLike[str]
) -> int:
    """List aliases, or define each ``name=value`` given."""
    if len(args) == 1:
        if not session.aliases:
            print("No aliases defined.")
        else:
            for name, value in sorted(session.aliases.items()):
                print(f"alias {name}='{value}'")
        return 0

    all_successful = True
    for arg in args[1:]:
        try:
            name, value = parse_assignment(arg)
        except ValueError:
            print(f"alias: invalid assignment: {arg}", file=sys.stderr)
            all_successful = False
            continue
        session.aliases[name] = value
        try:
            save_alias_to_file(source_path, name, value)
        except OSError:
            _report_write_failure(source_path)
        if session.settings.debug_mode:
            print(f"Added alias: {name}='{value}'")
    return 0 if all_successful else 1


def unalias_command(
    args: Sequence[str], session: Session, source_path: str | os.PathLike[str]
) -> int:
    """Remove each named alias."""
    if len(args) < 2:
        print("unalias: not enough arguments", file=sys.stderr)
        return 1

    success = True
    for name in args[1:]:
        if name not in session.aliases:
            print(f"unalias: {name}: not found", file=sys.stderr)
            success = False
            continue
        del session.aliases[name]
        try:
            remove_alias_from_file(source_path, name)
        except OSError:
            _report_write_failure(source_path)
        if session.settings.debug_mode:
            print(f"Removed alias: {name}")
    return 0 if success else 1