"""The export and unset commands and their record in the profile file."""

from __future__ import annotations

import errno
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


def parse_env_assignment(arg: str) -> tuple[str, str]:
    """Split ``NAME=value``, dropping one pair of matching outer quotes.

    Raises ValueError when there is no ``=`` or the name is empty.
    """
    name, sep, value = arg.partition("=")
    if not sep or not name:
        raise ValueError(f"invalid assignment: {arg}")
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return name, value


def save_env_var_to_file(
    path: str | os.PathLike[str], name: str, value: str, login_mode: bool
) -> bool:
    """Write or replace the export line for ``name``.

    Nothing is written outside login mode; returns whether the file was changed.
    Raises OSError when the file cannot be written.
    """
    if not login_mode:
        return False
    prefix = f"export {name}="
    new_line = f"export {name}='{value}'"
    lines = _read_lines(path)
    found = False
    for index, line in enumerate(lines):
        if line.startswith(prefix):
            lines[index] = new_line
            found = True
    if not found:
        lines.append(new_line)
    _write_lines(path, lines)
    return True


def remove_env_var_from_file(
    path: str | os.PathLike[str], name: str, login_mode: bool
) -> bool:
    """Drop every export line for ``name``; only in login mode."""
    if not login_mode:
        return False
    prefix = f"export {name}="
    _write_lines(path, [line for line in _read_lines(path) if not line.startswith(prefix)])
    return True


def _report_write_failure(path: str | os.PathLike[str]) -> None:
    print(
        f"Error: Unable to open config file for writing at {Path(path)}",
        file=sys.stderr,
    )


def export_command(
    args: Sequence[str], session: Session, profile_path: str | os.PathLike[str]
) -> int:
    """Show the environment, set ``NAME=value`` pairs, or show named variables."""
    if len(args) == 1:
        for name, value in os.environ.items():
            print(f"export {name}={value}")
        return 0

    all_successful = True
    for arg in args[1:]:
        try:
            name, value = parse_env_assignment(arg)
        except ValueError:
            current = os.environ.get(arg)
            if current is not None:
                print(f"export {arg}='{current}'")
            else:
                print(f"export: {arg}: not found", file=sys.stderr)
                all_successful = False
            continue

        session.env_vars[name] = value
        try:
            os.environ[name] = value
        except ValueError as exc:
            print(f"export: {name}: {exc}", file=sys.stderr)
            all_successful = False
            continue
        if session.login_mode:
            try:
                save_env_var_to_file(profile_path, name, value, True)
            except OSError:
                _report_write_failure(profile_path)
        elif session.settings.debug_mode:
            print("Note: Environment variable set for this session only (not in login mode)")
        if session.settings.debug_mode:
            print(f"Set environment variable: {name}='{value}'")
    return 0 if all_successful else 1


def unset_command(
    args: Sequence[str], session: Session, profile_path: str | os.PathLike[str]
) -> int:
    """Remove each named variable from the environment."""
    if len(args) < 2:
        print("unset: not enough arguments", file=sys.stderr)
        return 1

    success = True
    for name in args[1:]:
        session.env_vars.pop(name, None)
        try:
            os.unsetenv(name)
        except (ValueError, OSError):
            reason = os.strerror(errno.EINVAL)
            print(f"unset: error unsetting {name}: {reason}", file=sys.stderr)
            success = False
            continue
        os.environ.pop(name, None)
        if session.login_mode:
            try:
                remove_env_var_from_file(profile_path, name, True)
            except OSError:
                _report_write_failure(profile_path)
        if session.settings.debug_mode:
            print(f"Unset environment variable: {name}")
    return 0 if success else 1