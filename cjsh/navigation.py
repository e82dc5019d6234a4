"""Changing the shell's working directory."""

from __future__ import annotations

import os
from pathlib import Path

from cjsh.paths import ShellPaths
from cjsh.state import Session


def change_directory(session: Session, target: str) -> int:
    """Move to ``target`` (home when empty, the previous directory for ``-``).

    Returns the command's exit status; failures are recorded on the session.
    """
    target_dir = target or ""

    if not target_dir:
        home = os.environ.get("HOME")
        if home is None:
            session.set_error("cjsh: HOME environment variable is not set")
            return 1
        target_dir = home

    if target_dir == "-":
        if not session.previous_directory:
            session.set_error("cjsh: No previous directory")
            return 1
        target_dir = session.previous_directory

    if target_dir.startswith("~"):
        home = os.environ.get("HOME")
        if home is None:
            session.set_error(
                "cjsh: Cannot expand '~' - HOME environment variable is not set"
            )
            return 1
        target_dir = home + target_dir[1:]

    if os.path.isabs(target_dir):
        dir_path = Path(target_dir)
    else:
        dir_path = Path(session.current_directory) / target_dir

    try:
        if not dir_path.exists():
            session.set_error(f"cd: {target_dir}: No such file or directory")
            return 1
        if not dir_path.is_dir():
            session.set_error(f"cd: {target_dir}: Not a directory")
            return 1
        old_directory = session.current_directory
        resolved = str(dir_path.resolve(strict=True))
        os.chdir(resolved)
    except OSError as exc:
        session.set_error(f"cd: {exc.strerror or exc}")
        return 1

    session.current_directory = resolved
    os.environ["PWD"] = resolved
    session.previous_directory = old_directory
    return 0


def change_to_approot(session: Session, paths: ShellPaths) -> int:
    """Move to the shell's data directory."""
    return change_directory(session, str(paths.data_path))