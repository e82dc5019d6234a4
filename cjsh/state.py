"""Settings and per-session state shared by the shell's commands."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

from cjsh.colors import RESET

VERSION = "2.1.13"
TITLE_COLOR = "\033[1;35m"
DEFAULT_UPDATE_CHECK_INTERVAL = 86400


@dataclass
class ShellSettings:
    """Flags that change how the shell starts, updates and reports."""

    debug_mode: bool = False
    first_boot: bool = False
    cached_update: bool = False
    check_updates: bool = True
    title_line: bool = True
    silent_update_check: bool = True
    job_control_enabled: bool = False
    exit_flag: bool = False
    startup_active: bool = True
    last_update_check: float = 0.0
    update_check_interval: int = DEFAULT_UPDATE_CHECK_INTERVAL
    cached_version: str = ""
    last_updated: str = ""
    current_theme: str = ""
    startup_args: list[str] = field(default_factory=list)


@dataclass
class Session:
    """What one running shell remembers between commands."""

    settings: ShellSettings = field(default_factory=ShellSettings)
    current_directory: str = field(default_factory=os.getcwd)
    previous_directory: str = ""
    last_error: str = ""
    last_command: str = ""
    aliases: dict[str, str] = field(default_factory=dict)
    env_vars: dict[str, str] = field(default_factory=dict)
    login_mode: bool = False
    interactive: bool = False
    menu_active: bool = True

    def set_error(self, message: str) -> None:
        """Remember ``message`` as the last error and report it on stderr."""
        self.last_error = message
        print(message, file=sys.stderr)


def title_line() -> str:
    """The line shown above the first prompt."""
    return f" CJ's Shell v{VERSION}"


def created_line() -> str:
    """The line shown below the title line."""
    return f" Created 2025 @ {TITLE_COLOR}Abilene Christian University{RESET}"