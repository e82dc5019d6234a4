"""Commands that act on the shell session itself: exit, eval, version, restart."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from cjsh.state import VERSION, ShellSettings

REMOVE_FLAG = "--remove"
REMOVE_PREFIX = "--remove="


def exit_command(args: Sequence[str], settings: ShellSettings) -> int:
    """Ask the main loop to finish."""
    settings.exit_flag = True
    return 0


def eval_command(args: Sequence[str], execute: Callable[[str], int] | None) -> int:
    """Join the arguments into one command line and run it."""
    if len(args) < 2:
        print("eval: missing arguments", file=sys.stderr)
        return 1
    command = " ".join(args[1:])
    if execute is None:
        print("eval: shell not initialized", file=sys.stderr)
        return 1
    return execute(command)


def version_command(args: Sequence[str]) -> int:
    print(f"CJ's Shell v{VERSION}")
    return 0


def uninstall_command(data_path: str | os.PathLike[str]) -> int:
    """Explain how to remove the shell and its data."""
    print("To uninstall CJ's Shell run the following brew command:")
    print("brew uninstall cjsh")
    print("To remove the application data, run:")
    print(f"rm -rf {Path(data_path)}")
    return 0


def _flags_to_remove(args: Sequence[str]) -> set[str]:
    flags: set[str] = set()
    expecting_flag = False
    for arg in args[1:]:
        if arg == REMOVE_FLAG:
            expecting_flag = True
            continue
        if expecting_flag:
            flags.add(arg)
            expecting_flag = False
            continue
        if arg.startswith(REMOVE_PREFIX):
            flags.add(arg[len(REMOVE_PREFIX):])
    return flags


def _extra_args(args: Sequence[str]):
    rest = iter(args[1:])
    for arg in rest:
        if arg == REMOVE_FLAG:
            next(rest, None)
            continue
        if arg.startswith(REMOVE_PREFIX):
            continue
        yield arg


def build_restart_argv(
    args: Sequence[str], shell_path: str | os.PathLike[str], startup_args: Sequence[str]
) -> list[str]:
    """Argument vector for the restarted shell.

    The startup arguments are kept except those named by ``--remove FLAG`` or
    ``--remove=FLAG``; the other restart arguments are appended.
    """
    removed = _flags_to_remove(args)
    argv = [str(shell_path)]
    argv.extend(arg for arg in startup_args if arg not in removed)
    argv.extend(_extra_args(args))
    return argv


def restart_command(
    args: Sequence[str], shell_path: str | os.PathLike[str], startup_args: Sequence[str]
) -> int:
    """Replace the running process with a fresh shell; returns only on failure."""
    print("Restarting shell...")
    path = str(shell_path)
    if not os.path.exists(path):
        print(f"Error: Could not find shell executable at {path}", file=sys.stderr)
        return 1

    argv = build_restart_argv(args, path, startup_args)

    if not os.access(path, os.X_OK):
        print(
            f"Error: Shell executable at {path} is not accessible or executable: "
            "Permission denied",
            file=sys.stderr,
        )
        return 1

    try:
        os.execv(path, argv)
    except OSError as exc:
        print(f"Error restarting shell: {exc.strerror or exc}", file=sys.stderr)
        return 1
    print("Unexpected error: exec call returned", file=sys.stderr)
    return 1