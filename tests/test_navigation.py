import os

import pytest

from cjsh.navigation import change_directory, change_to_approot
from cjsh.paths import ShellPaths
from cjsh.state import Session


@pytest.fixture
def session(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return Session(current_directory=str(tmp_path))


def test_change_into_subdirectory(session, tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    assert change_directory(session, "sub") == 0
    expected = str(sub.resolve())
    assert session.current_directory == expected
    assert os.getcwd() == expected
    assert os.environ["PWD"] == expected
    assert session.previous_directory == str(tmp_path)


def test_dash_returns_to_previous(session, tmp_path):
    (tmp_path / "a").mkdir()
    change_directory(session, "a")
    assert change_directory(session, "-") == 0
    assert session.current_directory == str(tmp_path.resolve())


def test_dash_without_previous_fails(session, capsys):
    assert change_directory(session, "-") == 1
    assert session.last_error == "cjsh: No previous directory"
    assert "cjsh: No previous directory" in capsys.readouterr().err


def test_missing_directory(session):
    assert change_directory(session, "nowhere") == 1
    assert session.last_error == "cd: nowhere: No such file or directory"


def test_not_a_directory(session, tmp_path):
    (tmp_path / "file.txt").write_text("x")
    before = session.current_directory
    assert change_directory(session, "file.txt") == 1
    assert session.last_error == "cd: file.txt: Not a directory"
    assert session.current_directory == before


def test_empty_target_goes_home(session, tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    assert change_directory(session, "") == 0
    assert session.current_directory == str(home.resolve())


def test_empty_target_without_home(session, monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    assert change_directory(session, "") == 1
    assert session.last_error == "cjsh: HOME environment variable is not set"


def test_tilde_expands_to_home(session, tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / "docs").mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    assert change_directory(session, "~/docs") == 0
    assert session.current_directory == str((home / "docs").resolve())


def test_tilde_without_home(session, monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    assert change_directory(session, "~/docs") == 1
    assert session.last_error == (
        "cjsh: Cannot expand '~' - HOME environment variable is not set"
    )


def test_absolute_path(session, tmp_path):
    target = tmp_path / "abs"
    target.mkdir()
    assert change_directory(session, str(target)) == 0
    assert session.current_directory == str(target.resolve())


def test_change_to_approot(session, tmp_path):
    paths = ShellPaths.from_home(tmp_path)
    paths.data_path.mkdir(parents=True)
    assert change_to_approot(session, paths) == 0
    assert session.current_directory == str(paths.data_path.resolve())