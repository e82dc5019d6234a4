# cjsh

`cjsh` is a Python library holding the working parts of an interactive
command shell: built-in commands, job control for external programs and
pipelines, terminal colour handling, and the layout of the shell's
configuration files. Each built-in is a plain function that takes its
argument list (with the command name first), prints what it has to say and
returns an exit status.

## Installing

```
pip install .
```

The package needs nothing beyond the standard library and runs on POSIX
systems (it uses process groups, `pwd` and `grp`).

## Modules

### `cjsh.paths`

`ShellPaths` names every file and directory the shell uses below a home
directory: `~/.config/cjsh` for data, with `plugins`, `themes` and `colors`
subdirectories and `history.txt`; `~/.cache/cjsh` for the executable cache;
`~/.cjprofile` and `~/.cjshrc`.

```python
from cjsh.paths import ShellPaths

paths = ShellPaths.from_home("/home/someone")
paths.initialize_directories()          # creates any missing directory
if paths.should_refresh_executable_cache():   # missing or older than a day
    paths.build_executable_cache()      # scans $PATH for owner-executable files
names = paths.read_cached_executables()
```

`resolve_executable_path()` returns the absolute path of the running program,
or `/usr/local/bin/cjsh` when it cannot be found.

### `cjsh.colors`

- `detect_color_capability(environ)` picks a `ColorCapability` from
  `NO_COLOR`, `FORCE_COLOR`, `COLORTERM` and `TERM`.
- `RGB`, `HSL`, `rgb_to_hsl`, `hsl_to_rgb`, `rgb_to_xterm256`,
  `xterm256_to_rgb`, `closest_ansi_color`, `blend` and `gradient` convert and
  mix colours.
- `style_bold`, `style_italic`, `style_underline`, `style_blink`,
  `style_reverse` and `style_hidden` wrap text in an attribute and a reset.
- `ColorSystem` produces escape sequences for one terminal (`fg_color`,
  `bg_color`, `style`, `gradient_text`) and keeps user-defined named colours
  read from `.txt` files in its colours directory.

```python
from pathlib import Path
from cjsh.colors import ColorSystem, ColorCapability, RGB

colors = ColorSystem(Path("colors"), capability=ColorCapability.TRUE_COLOR)
print(colors.gradient_text("hello", RGB(255, 0, 127), RGB(0, 255, 255)))
```

Colour files hold `NAME = VALUE` lines, where the value is `#RGB`,
`#RRGGBB`, `rgb(r, g, b)` or the name of another colour; lines starting with
`#` or `/` are skipped. `ColorSystem.initialize(True)` writes
`default_colors.txt` with the basic ANSI palette if it is missing and loads
every colour file.

### `cjsh.jobs`

`JobManager` starts external commands as jobs:

- `execute_sync(args)` runs a command in the foreground and returns its exit
  code; leading `NAME=value` words are set in the child's environment, or in
  the shell's own when no command follows them.
- `execute_async(args)` starts a background job and prints `[id] pid`.
- `execute_pipeline(commands)` runs a list of `Command` stages joined by
  pipes, honouring `input_file`, `output_file` and `append_file`.
- `reap()` collects finished children without blocking, `terminate_all()`
  sends SIGTERM to every unfinished job, and `jobs()` returns a snapshot of
  the recorded `Job` objects.

`split_env_assignments(args)` separates the leading assignments from the
command on its own.

### `cjsh.state`

`ShellSettings` holds the flags that change the shell's behaviour (debug
mode, update checks, title line, exit flag, current theme, startup
arguments). `Session` holds the working and previous directory, aliases,
exported variables and the last error. `title_line()` and `created_line()`
give the start-up banner lines.

### Built-in commands

| Function | Command |
| --- | --- |
| `navigation.change_directory(session, target)` | `cd`: empty target is `$HOME`, `-` is the previous directory, `~` expands to `$HOME` |
| `navigation.change_to_approot(session, paths)` | change to the data directory |
| `aliases.alias_command`, `aliases.unalias_command` | define, list and remove aliases, kept in the source file |
| `environment.export_command`, `environment.unset_command` | set, show and remove environment variables, kept in the profile in login mode |
| `history.history_command(args, history_path)` | print numbered history lines, all or the first N |
| `listing.ls_command(args)` | coloured listing with `-a -l -S -r -t -h -R -1 -i` and `--help` |
| `user_settings.user_command(args, settings, ...)` | `testing`, `checkforupdates`, `silentupdatecheck`, `titleline`, `update`, `help` |
| `themes.theme_command(args, theme_manager, settings, source_path)` | show the themes or switch to one, recording `theme load NAME` in the source file |
| `session_commands.exit_command`, `eval_command`, `version_command`, `uninstall_command`, `restart_command` | leave, evaluate a line, print the version, explain removal, restart |

`listing.format_size` and `listing.format_size_human_readable` format sizes:

```python
from cjsh.listing import format_size

format_size(2048, False)   # '2 KB'
format_size(1536, True)    # '1.5K'
```

`session_commands.build_restart_argv(args, shell_path, startup_args)` gives
the argument vector a restart would use: the startup arguments less those
named by `--remove FLAG` or `--remove=FLAG`, followed by the remaining restart
arguments.

`theme_command` works with any object that has `load_theme(name)` and
`list_themes()`; `user_command` takes the update check and the update itself
as callables.

## What the package does not do

There is no `cjsh` program to run: the package has no prompt or line editor,
no parser that splits a typed line into commands and pipelines, no table
that dispatches command names to the built-in functions, no `help` command
and no processing of start-up files or arguments. It does not load themes
or plugins itself, and has no update checker of its own. These pieces are
left to the program that uses the library.