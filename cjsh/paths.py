"""Locations of the shell's configuration, cache and data files."""

from __future__ import annotations

import os
import shutil
import stat
import sys
import time
from dataclasses import dataclass
from pathlib import Path

CACHE_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_EXECUTABLE_PATH = Path("/usr/local/bin/cjsh")


@dataclass(frozen=True)
class ShellPaths:
    """Every file and directory the shell reads or writes, rooted at a home directory."""

    home: Path
    config_path: Path
    cache_path: Path
    data_path: Path
    cjsh_cache_path: Path
    plugin_path: Path
    theme_path: Path
    colors_path: Path
    history_path: Path
    profile_path: Path
    source_path: Path
    found_executables_path: Path

    @classmethod
    def from_home(cls, home: str | os.PathLike[str]) -> ShellPaths:
        """Build the standard layout below ``home``."""
        home = Path(home)
        config = home / ".config"
        cache = home / ".cache"
        data = config / "cjsh"
        cjsh_cache = cache / "cjsh"
        return cls(
            home=home,
            config_path=config,
            cache_path=cache,
            data_path=data,
            cjsh_cache_path=cjsh_cache,
            plugin_path=data / "plugins",
            theme_path=data / "themes",
            colors_path=data / "colors",
            history_path=data / "history.txt",
            profile_path=home / ".cjprofile",
            source_path=home / ".cjshrc",
            found_executables_path=cjsh_cache / "cached_executables.cache",
        )

    @classmethod
    def default(cls) -> ShellPaths:
        """Layout for the current user's home directory."""
        home = os.environ.get("HOME")
        return cls.from_home(home if home else Path.home())

    @property
    def directories(self) -> tuple[Path, ...]:
        """Directories that must exist for the shell to run."""
        return (
            self.config_path,
            self.cache_path,
            self.data_path,
            self.cjsh_cache_path,
            self.plugin_path,
            self.theme_path,
            self.colors_path,
        )

    def initialize_directories(self) -> None:
        """Create any missing shell directory; raises OSError on failure."""
        for directory in self.directories:
            directory.mkdir(parents=True, exist_ok=True)

    def should_refresh_executable_cache(self) -> bool:
        """True when the executable cache is missing or older than a day."""
        try:
            modified = self.found_executables_path.stat().st_mtime
        except OSError:
            return True
        return time.time() - modified > CACHE_MAX_AGE_SECONDS

    def build_executable_cache(self, path_env: str | None = None) -> bool:
        """Scan the search path and write the names of executables found.

        Returns False when there is no search path or the cache cannot be written.
        """
        if path_env is None:
            path_env = os.environ.get("PATH")
        if path_env is None:
            return False

        names: list[str] = []
        for directory in path_env.split(":"):
            if not directory or not os.path.isdir(directory):
                continue
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if _is_owner_executable_file(entry):
                            names.append(entry.name)
            except OSError:
                continue

        try:
            with open(self.found_executables_path, "w", encoding="utf-8") as cache:
                cache.writelines(f"{name}\n" for name in names)
        except OSError:
            return False
        return True

    def read_cached_executables(self) -> list[Path]:
        """Names stored in the executable cache, or an empty list."""
        try:
            with open(self.found_executables_path, encoding="utf-8") as cache:
                return [Path(line) for line in cache.read().splitlines()]
        except OSError:
            return []


def _is_owner_executable_file(entry: os.DirEntry[str]) -> bool:
    try:
        if not entry.is_file():
            return False
        return bool(os.stat(entry.path).st_mode & stat.S_IXUSR)
    except OSError:
        return False


def resolve_executable_path() -> Path:
    """Absolute path of the running shell program, or the usual install location."""
    invoked = sys.argv[0] if sys.argv else ""
    if invoked:
        found = invoked if os.sep in invoked else shutil.which(invoked)
        if found and os.path.exists(found):
            return Path(os.path.realpath(found))
    return DEFAULT_EXECUTABLE_PATH