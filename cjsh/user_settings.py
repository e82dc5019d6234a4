"""The user built-in: view and change per-user shell settings."""

from __future__ import annotations

import re
import sys
import time
from collections.abc import Callable, Sequence

from cjsh.state import ShellSettings

_LEADING_INT = re.compile(r"\s*[+-]?\d+")
_INT_MAX = 2**31 - 1
_INT_MIN = -(2**31)
SECONDS_PER_HOUR = 3600

_HELP_LINES = (
    "User settings commands:",
    " testing: Toggle debug mode (enable/disable)",
    " checkforupdates: Control whether updates are checked",
    " silentupdatecheck: Toggle silent update checking (enable/disable)",
    " titleline: Toggle title line display (enable/disable)",
    " update: Manage update settings and perform manual update checks",
)

_UPDATE_HELP_LINES = (
    "Update commands:",
    " check: Manually check for updates now",
    " interval [HOURS]: Set update check interval in hours",
    " help: Show this help message",
)


def _parse_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"not a number: {text!r}")
    value = int(match.group())
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"number out of range: {text!r}")
    return value


def _toggle(
    args: Sequence[str],
    settings: ShellSettings,
    attribute: str,
    label: str,
    unknown_message: str,
) -> int:
    if len(args) < 3:
        state = "enabled." if getattr(settings, attribute) else "disabled."
        print(f"{label} is currently {state}")
        return 0
    if args[2] == "enable":
        setattr(settings, attribute, True)
        print(f"{label} enabled.")
        return 0
    if args[2] == "disable":
        setattr(settings, attribute, False)
        print(f"{label} disabled.")
        return 0
    print(unknown_message, file=sys.stderr)
    return 1


def _show_update_settings(settings: ShellSettings) -> None:
    def word(flag: bool) -> str:
        return "Enabled" if flag else "Disabled"

    last_check = (
        time.ctime(settings.last_update_check) if settings.last_update_check > 0 else "Never"
    )
    print("Update settings:")
    print(f" Auto-check for updates: {word(settings.check_updates)}")
    print(f" Silent update check: {word(settings.silent_update_check)}")
    print(f" Update check interval: {settings.update_check_interval // SECONDS_PER_HOUR} hours")
    print(f" Last update check: {last_check}")
    if settings.cached_update:
        print(f" Update available: {settings.cached_version}")


def _update_command(
    args: Sequence[str],
    settings: ShellSettings,
    check_for_update: Callable[[], bool] | None,
    execute_update: Callable[[bool], object] | None,
) -> int:
    if len(args) < 3:
        _show_update_settings(settings)
        return 0

    action = args[2]
    if action == "check":
        print("Checking for updates from GitHub...")
        if check_for_update is None:
            print("Update checking is not available.", file=sys.stderr)
            return 1
        available = check_for_update()
        if available:
            print("An update is available!")
            if execute_update is not None:
                execute_update(available)
        else:
            print("You are up to date.")
        return 0

    if action == "interval" and len(args) > 3:
        try:
            hours = _parse_int(args[3])
        except ValueError:
            print("Invalid interval value. Please specify hours as a number", file=sys.stderr)
            return 1
        if hours < 1:
            print("Interval must be at least 1 hour", file=sys.stderr)
            return 1
        settings.update_check_interval = hours * SECONDS_PER_HOUR
        print(f"Update check interval set to {hours} hours")
        return 0

    if action == "help":
        print("\n".join(_UPDATE_HELP_LINES))
        return 0

    print("Unknown update command. Try 'help' for available commands.", file=sys.stderr)
    return 1


def user_command(
    args: Sequence[str],
    settings: ShellSettings,
    check_for_update: Callable[[], bool] | None = None,
    execute_update: Callable[[bool], object] | None = None,
) -> int:
    """Run a ``user`` subcommand against ``settings``; returns the exit status."""
    if settings.debug_mode:
        print(f"DEBUG: user_commands called with {len(args)} arguments", file=sys.stderr)
        if len(args) > 1:
            print(f"DEBUG: user subcommand: {args[1]}", file=sys.stderr)

    if len(args) < 2:
        print("Unknown command. No given ARGS. Try 'help'", file=sys.stderr)
        return 1

    command = args[1]
    generic_unknown = "Unknown command. Use 'enable' or 'disable'."

    if command == "testing":
        return _toggle(
            args, settings, "debug_mode", "Debug mode",
            "Unknown testing command. Use 'enable' or 'disable'.",
        )
    if command == "checkforupdates":
        if settings.debug_mode:
            print("DEBUG: Processing checkforupdates command", file=sys.stderr)
        return _toggle(args, settings, "check_updates", "Check for updates", generic_unknown)
    if command == "silentupdatecheck":
        return _toggle(
            args, settings, "silent_update_check", "Silent update check", generic_unknown
        )
    if command == "titleline":
        return _toggle(args, settings, "title_line", "Title line", generic_unknown)
    if command == "update":
        return _update_command(args, settings, check_for_update, execute_update)
    if command == "help":
        print("\n".join(_HELP_LINES))
        return 0

    print("Unknown command. Try 'user help' for available commands.", file=sys.stderr)
    return 1