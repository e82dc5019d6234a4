import os

import pytest

from cjsh.environment import (
    export_command,
    parse_env_assignment,
    remove_env_var_from_file,
    save_env_var_to_file,
    unset_command,
)
from cjsh.state import Session

VAR = "CJSH_TEST_VARIABLE"


@pytest.fixture
def session(tmp_path, monkeypatch):
    monkeypatch.delenv(VAR, raising=False)
    return Session(current_directory=str(tmp_path))


@pytest.mark.parametrize(
    "arg, expected",
    [
        ("A=1", ("A", "1")),
        ("PATH=\"/bin:/usr/bin\"", ("PATH", "/bin:/usr/bin")),
        ("B='x y'", ("B", "x y")),
        ("C=", ("C", "")),
    ],
)
def test_parse_env_assignment(arg, expected):
    assert parse_env_assignment(arg) == expected


@pytest.mark.parametrize("arg", ["NOVALUE", "=x"])
def test_parse_env_assignment_rejects(arg):
    with pytest.raises(ValueError):
        parse_env_assignment(arg)


def test_export_sets_environment(session, tmp_path):
    profile = tmp_path / ".cjprofile"
    assert export_command(["export", f"{VAR}=hello"], session, profile) == 0
    assert os.environ[VAR] == "hello"
    assert session.env_vars[VAR] == "hello"
    assert not profile.exists()


def test_export_in_login_mode_saves(session, tmp_path):
    session.login_mode = True
    profile = tmp_path / ".cjprofile"
    export_command(["export", f"{VAR}=one"], session, profile)
    export_command(["export", f"{VAR}=two"], session, profile)
    assert profile.read_text().splitlines() == [f"export {VAR}='two'"]


def test_export_shows_existing(session, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv(VAR, "shown")
    assert export_command(["export", VAR], session, tmp_path / "p") == 0
    assert capsys.readouterr().out == f"export {VAR}='shown'\n"


def test_export_missing_variable(session, tmp_path, capsys):
    assert export_command(["export", VAR], session, tmp_path / "p") == 1
    assert f"export: {VAR}: not found" in capsys.readouterr().err


def test_export_lists_environment(session, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv(VAR, "listed")
    assert export_command(["export"], session, tmp_path / "p") == 0
    assert f"export {VAR}=listed" in capsys.readouterr().out.splitlines()


def test_unset_removes(session, tmp_path, monkeypatch):
    monkeypatch.setenv(VAR, "gone")
    session.env_vars[VAR] = "gone"
    assert unset_command(["unset", VAR], session, tmp_path / "p") == 0
    assert VAR not in os.environ
    assert VAR not in session.env_vars


def test_unset_login_mode_edits_profile(session, tmp_path, monkeypatch):
    monkeypatch.setenv(VAR, "x")
    session.login_mode = True
    profile = tmp_path / ".cjprofile"
    profile.write_text(f"export {VAR}='x'\nexport OTHER='y'\n")
    unset_command(["unset", VAR], session, profile)
    assert profile.read_text().splitlines() == ["export OTHER='y'"]


def test_unset_invalid_name(session, tmp_path, capsys):
    assert unset_command(["unset", "BAD=NAME"], session, tmp_path / "p") == 1
    assert "unset: error unsetting BAD=NAME" in capsys.readouterr().err


def test_unset_without_arguments(session, tmp_path, capsys):
    assert unset_command(["unset"], session, tmp_path / "p") == 1
    assert "unset: not enough arguments" in capsys.readouterr().err


def test_file_helpers_skip_outside_login_mode(tmp_path):
    profile = tmp_path / ".cjprofile"
    assert save_env_var_to_file(profile, VAR, "v", False) is False
    assert remove_env_var_from_file(profile, VAR, False) is False
    assert not profile.exists()