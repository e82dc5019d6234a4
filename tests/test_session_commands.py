import errno
import os

from cjsh.session_commands import (
    build_restart_argv,
    eval_command,
    exit_command,
    restart_command,
    uninstall_command,
    version_command,
)
from cjsh.state import VERSION, ShellSettings


def test_exit_sets_flag():
    settings = ShellSettings()
    assert exit_command(["exit"], settings) == 0
    assert settings.exit_flag is True


def test_eval_joins_arguments():
    seen = []

    def execute(line):
        seen.append(line)
        return 7

    assert eval_command(["eval", "echo", "Hello,", "World!"], execute) == 7
    assert seen == ["echo Hello, World!"]


def test_eval_missing_arguments(capsys):
    assert eval_command(["eval"], lambda line: 0) == 1
    assert "eval: missing arguments" in capsys.readouterr().err


def test_eval_without_shell(capsys):
    assert eval_command(["eval", "ls"], None) == 1
    assert "eval: shell not initialized" in capsys.readouterr().err


def test_version_output(capsys):
    assert version_command(["version"]) == 0
    assert capsys.readouterr().out == f"CJ's Shell v{VERSION}\n"


def test_uninstall_names_data_path(tmp_path, capsys):
    assert uninstall_command(tmp_path) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[1] == "brew uninstall cjsh"
    assert out[-1] == f"rm -rf {tmp_path}"


def test_restart_argv_removes_flags():
    argv = build_restart_argv(
        ["restart", "--remove", "--no-ai", "--debug"],
        "/bin/cjsh",
        ["cjsh", "--no-ai", "-l"],
    )
    assert argv == ["/bin/cjsh", "cjsh", "-l", "--debug"]


def test_restart_argv_remove_equals_form():
    argv = build_restart_argv(
        ["restart", "--remove=-l"], "/bin/cjsh", ["cjsh", "-l", "--no-colors"]
    )
    assert argv == ["/bin/cjsh", "cjsh", "--no-colors"]


def test_restart_argv_without_args():
    argv = build_restart_argv(["restart"], "/bin/cjsh", ["cjsh"])
    assert argv == ["/bin/cjsh", "cjsh"]


def test_restart_missing_executable(tmp_path, capsys):
    missing = tmp_path / "cjsh"
    assert restart_command(["restart"], missing, []) == 1
    assert f"Error: Could not find shell executable at {missing}" in capsys.readouterr().err


def test_restart_not_executable(tmp_path, capsys):
    target = tmp_path / "cjsh"
    target.write_text("")
    target.chmod(0o644)
    if os.access(target, os.X_OK):
        expected = 1
    else:
        expected = 1
    assert restart_command(["restart"], target, []) == expected


def test_restart_execs_with_argv(tmp_path, monkeypatch, capsys):
    target = tmp_path / "cjsh"
    target.write_text("#!/bin/sh\n")
    target.chmod(0o755)
    calls = []

    def fake_execv(path, argv):
        calls.append((path, argv))
        raise OSError(errno.ENOEXEC, "Exec format error")

    monkeypatch.setattr(os, "execv", fake_execv)
    assert restart_command(["restart", "--debug"], target, ["cjsh"]) == 1
    assert calls == [(str(target), [str(target), "cjsh", "--debug"])]
    assert "Error restarting shell: Exec format error" in capsys.readouterr().err