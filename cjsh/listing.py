"""The ls built-in: a coloured directory listing with sorting options."""

from __future__ import annotations

import functools
import grp
import os
import pwd
import stat
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass

COLOR_RESET = "\033[0m"
COLOR_BLUE = "\033[34m"
COLOR_GREEN = "\033[32m"
COLOR_RED = "\033[31m"
COLOR_CYAN = "\033[36m"
COLOR_YELLOW = "\033[33m"

SOURCE_EXTENSIONS = frozenset(
    {
        ".cpp", ".h", ".hpp", ".py", ".js", ".java", ".cs", ".rb",
        ".php", ".go", ".swift", ".ts", ".rs", ".html", ".css",
    }
)
BINARY_EXTENSIONS = frozenset({".so", ".dylib", ".exe"})

_UNITS = ("B", "K", "M", "G", "T", "P", "E")
_KIB = 1024
_MIB = 1024 * 1024
_GIB = 1024 * 1024 * 1024

_HELP_TEXT = """\
Usage: ls [OPTION]... [FILE]...
List information about files.

  -a             show all files, including hidden files
  -l             use long listing format
  -S             sort by file size, largest first
  -r             reverse order while sorting
  -t             sort by modification time, newest first
  -h             print sizes in human readable format
  -R             list subdirectories recursively
  -1             list one file per line
  -i             print the inode number
"""


@dataclass
class ListOptions:
    """How a directory listing is filtered, sorted and laid out."""

    show_hidden: bool = False
    long_format: bool = False
    sort_by_size: bool = False
    reverse_order: bool = False
    sort_by_time: bool = False
    human_readable: bool = False
    recursive: bool = False
    one_per_line: bool = False
    show_inode: bool = False


_FLAG_FIELDS = {
    "a": "show_hidden",
    "l": "long_format",
    "S": "sort_by_size",
    "r": "reverse_order",
    "t": "sort_by_time",
    "h": "human_readable",
    "R": "recursive",
    "1": "one_per_line",
    "i": "show_inode",
}


def format_size_human_readable(size: int) -> str:
    """Size with a one-letter binary unit, e.g. ``1.5K`` or ``12M``."""
    value = float(size)
    unit_index = 0
    while value >= 1024.0 and unit_index < len(_UNITS) - 1:
        value /= 1024.0
        unit_index += 1
    if unit_index == 0:
        return str(size)
    if value < 10:
        return f"{value:.1f}{_UNITS[unit_index]}"
    return f"{value:.0f}{_UNITS[unit_index]}"


def format_size(size: int, human_readable: bool) -> str:
    """Size for the listing: human-readable, or whole B/KB/MB/GB."""
    if human_readable:
        return format_size_human_readable(size)
    if size < _KIB:
        return f"{size} B"
    if size < _MIB:
        return f"{size // _KIB} KB"
    if size < _GIB:
        return f"{size // _MIB} MB"
    return f"{size // _GIB} GB"


def ls_command(args: Sequence[str]) -> int:
    """Parse ``ls`` options and list the requested directory."""
    path = "."
    flags: dict[str, bool] = {}
    for arg in args[1:]:
        if len(arg) > 1 and arg[0] == "-" and arg[1] != "-":
            for letter in arg[1:]:
                field_name = _FLAG_FIELDS.get(letter)
                if field_name is None:
                    print(f"Unknown option: -{letter}", file=sys.stderr)
                    return 1
                flags[field_name] = True
        elif arg == "--help":
            print(_HELP_TEXT, end="")
            return 0
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}", file=sys.stderr)
            return 1
        else:
            path = arg
    return list_directory(path, ListOptions(**flags), 0)


def _is_dir(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _is_file(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


def _is_symlink(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_symlink()
    except OSError:
        return False


def _mtime(entry: os.DirEntry[str]) -> int:
    try:
        return int(os.stat(entry.path).st_mtime)
    except OSError:
        return 0


def _stat(entry: os.DirEntry[str]) -> os.stat_result:
    try:
        return os.stat(entry.path)
    except OSError:
        return os.lstat(entry.path)


def _comes_before(a: os.DirEntry[str], b: os.DirEntry[str], options: ListOptions) -> bool:
    reverse = options.reverse_order
    a_dir = _is_dir(a)
    b_dir = _is_dir(b)

    if not reverse:
        if a_dir and not b_dir:
            return True
        if b_dir and not a_dir:
            return False

    if options.sort_by_time:
        a_time, b_time = _mtime(a), _mtime(b)
        if a_time != b_time:
            return a_time < b_time if reverse else a_time > b_time
    elif options.sort_by_size and not a_dir and not b_dir:
        try:
            a_size = os.path.getsize(a.path)
            b_size = os.path.getsize(b.path)
        except OSError:
            pass
        else:
            if a_size != b_size:
                return a_size < b_size if reverse else a_size > b_size

    return a.name > b.name if reverse else a.name < b.name


def _sorted_entries(entries: list[os.DirEntry[str]], options: ListOptions) -> list[os.DirEntry[str]]:
    def compare(a: os.DirEntry[str], b: os.DirEntry[str]) -> int:
        if _comes_before(a, b, options):
            return -1
        if _comes_before(b, a, options):
            return 1
        return 0

    return sorted(entries, key=functools.cmp_to_key(compare))


def _classify(entry: os.DirEntry[str]) -> tuple[str, str]:
    extension = os.path.splitext(entry.name)[1]
    if _is_dir(entry):
        return "Directory", COLOR_BLUE
    if _is_symlink(entry):
        return "Symlink", COLOR_CYAN
    if extension in SOURCE_EXTENSIONS:
        return "Source", COLOR_GREEN
    if _is_file(entry):
        if extension in BINARY_EXTENSIONS:
            return "Executable", COLOR_RED
        try:
            if os.stat(entry.path).st_mode & stat.S_IXUSR:
                return "Executable", COLOR_RED
        except OSError:
            pass
    return "File", COLOR_RESET


def _size_text(entry: os.DirEntry[str], human_readable: bool) -> str:
    if not _is_file(entry):
        return "-"
    try:
        return format_size(os.path.getsize(entry.path), human_readable)
    except OSError:
        return "???"


def _permissions(mode: int) -> str:
    bits = (
        (stat.S_IRUSR, "r"), (stat.S_IWUSR, "w"), (stat.S_IXUSR, "x"),
        (stat.S_IRGRP, "r"), (stat.S_IWGRP, "w"), (stat.S_IXGRP, "x"),
        (stat.S_IROTH, "r"), (stat.S_IWOTH, "w"), (stat.S_IXOTH, "x"),
    )
    kind = "d" if stat.S_ISDIR(mode) else "-"
    return kind + "".join(letter if mode & bit else "-" for bit, letter in bits)


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def _print_header(options: ListOptions) -> None:
    inode = f"{'Inode':<10}" if options.show_inode else ""
    if options.long_format:
        print(
            f"{inode}{'Permissions':<12}{'Lnk':<3}{'Owner':<10}{'Group':<10}"
            f"{'Size':>12}{'Modified':>20}  Name"
        )
        print("-" * 80)
    elif not options.one_per_line:
        print(f"{inode}{'Name':<40}{'Size':<15}Type")
        print("-" * 60)


def _print_entry(entry: os.DirEntry[str], options: ListOptions) -> None:
    name = entry.name
    kind, color = _classify(entry)
    size_str = _size_text(entry, options.human_readable)
    info = _stat(entry)

    if options.long_format:
        owner = _owner_name(info.st_uid)[:9]
        group = _group_name(info.st_gid)[:9]
        mod_time = time.strftime("%Y-%m-%d %H:%M", time.localtime(info.st_mtime))
        inode = f"{info.st_ino:<10}" if options.show_inode else ""
        line = (
            f"{inode}{_permissions(info.st_mode):<12}{info.st_nlink:>3}"
            f"{owner:<10}{group:<10}{size_str:>12}{mod_time:>20}"
            f"  {color}{name}{COLOR_RESET}"
        )
        if _is_symlink(entry):
            try:
                line += f" -> {os.readlink(entry.path)}"
            except OSError:
                line += " -> [broken link]"
        print(line)
    elif options.one_per_line:
        inode = f"{info.st_ino:<10} " if options.show_inode else ""
        print(f"{inode}{color}{name}{COLOR_RESET}")
    else:
        inode = f"{info.st_ino:<10}" if options.show_inode else ""
        print(f"{inode}{color}{name[:39]:<40}{COLOR_RESET}{size_str:<15}{kind}")


def list_directory(
    path: str | os.PathLike[str], options: ListOptions | None = None, level: int = 0
) -> int:
    """Print the entries of ``path``; returns 0, or 1 if it cannot be read."""
    if options is None:
        options = ListOptions()
    path = os.fspath(path)
    try:
        with os.scandir(path) as iterator:
            entries = [
                entry
                for entry in iterator
                if options.show_hidden or not entry.name.startswith(".")
            ]
        entries = _sorted_entries(entries, options)

        if options.recursive and level > 0:
            print(f"\n{' ' * level}{path}:")
        elif options.recursive:
            print(f"{path}:")

        _print_header(options)
        for entry in entries:
            _print_entry(entry, options)

        if options.recursive:
            for entry in entries:
                if _is_dir(entry) and not _is_symlink(entry):
                    list_directory(entry.path, options, level + 1)
        return 0
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1