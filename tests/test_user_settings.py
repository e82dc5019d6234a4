import pytest

from cjsh.state import ShellSettings
from cjsh.user_settings import user_command


@pytest.fixture
def settings():
    return ShellSettings()


def test_no_subcommand_fails(settings, capsys):
    assert user_command(["user"], settings) == 1
    assert "No given ARGS" in capsys.readouterr().err


def test_testing_enable_and_disable(settings, capsys):
    assert user_command(["user", "testing", "enable"], settings) == 0
    assert settings.debug_mode is True
    assert "Debug mode enabled." in capsys.readouterr().out
    assert user_command(["user", "testing", "disable"], settings) == 0
    assert settings.debug_mode is False
    assert "Debug mode disabled." in capsys.readouterr().out


def test_testing_status(settings, capsys):
    assert user_command(["user", "testing"], settings) == 0
    assert capsys.readouterr().out.strip() == "Debug mode is currently disabled."


def test_testing_unknown_action(settings, capsys):
    assert user_command(["user", "testing", "maybe"], settings) == 1
    assert "Unknown testing command" in capsys.readouterr().err


@pytest.mark.parametrize(
    "command, attribute",
    [
        ("checkforupdates", "check_updates"),
        ("silentupdatecheck", "silent_update_check"),
        ("titleline", "title_line"),
    ],
)
def test_toggles_round_trip(settings, command, attribute):
    assert user_command(["user", command, "disable"], settings) == 0
    assert getattr(settings, attribute) is False
    assert user_command(["user", command, "enable"], settings) == 0
    assert getattr(settings, attribute) is True
    assert user_command(["user", command, "bogus"], settings) == 1
    assert getattr(settings, attribute) is True


def test_update_interval_sets_seconds(settings, capsys):
    assert user_command(["user", "update", "interval", "2"], settings) == 0
    assert settings.update_check_interval == 2 * 3600
    assert "Update check interval set to 2 hours" in capsys.readouterr().out


def test_update_interval_too_small(settings, capsys):
    before = settings.update_check_interval
    assert user_command(["user", "update", "interval", "0"], settings) == 1
    assert settings.update_check_interval == before
    assert "Interval must be at least 1 hour" in capsys.readouterr().err


def test_update_interval_not_a_number(settings, capsys):
    before = settings.update_check_interval
    assert user_command(["user", "update", "interval", "abc"], settings) == 1
    assert settings.update_check_interval == before
    assert "Invalid interval value" in capsys.readouterr().err


def test_update_interval_missing_value(settings, capsys):
    assert user_command(["user", "update", "interval"], settings) == 1
    assert "Unknown update command" in capsys.readouterr().err


def test_update_settings_display(settings, capsys):
    settings.cached_update = True
    settings.cached_version = "9.9.9"
    assert user_command(["user", "update"], settings) == 0
    out = capsys.readouterr().out
    assert " Last update check: Never" in out
    assert " Update available: 9.9.9" in out
    assert " Auto-check for updates: Enabled" in out


def test_update_check_runs_update_when_available(settings, capsys):
    calls = []
    assert user_command(
        ["user", "update", "check"], settings, lambda: True, calls.append
    ) == 0
    assert calls == [True]
    assert "An update is available!" in capsys.readouterr().out


def test_update_check_when_current(settings, capsys):
    calls = []
    assert user_command(
        ["user", "update", "check"], settings, lambda: False, calls.append
    ) == 0
    assert calls == []
    assert "You are up to date." in capsys.readouterr().out


def test_update_help(settings, capsys):
    assert user_command(["user", "update", "help"], settings) == 0
    assert capsys.readouterr().out.startswith("Update commands:")


def test_help(settings, capsys):
    assert user_command(["user", "help"], settings) == 0
    assert capsys.readouterr().out.startswith("User settings commands:")


def test_unknown_subcommand(settings, capsys):
    assert user_command(["user", "nonsense"], settings) == 1
    assert "Try 'user help'" in capsys.readouterr().err