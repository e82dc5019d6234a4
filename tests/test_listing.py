import os
import re

import pytest

from cjsh.listing import (
    ListOptions,
    format_size,
    format_size_human_readable,
    list_directory,
    ls_command,
)

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _lines(text):
    return [ANSI.sub("", line) for line in text.splitlines()]


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "alpha.txt").write_text("a")
    (tmp_path / "beta.txt").write_text("bb")
    (tmp_path / "adir").mkdir()
    (tmp_path / "adir" / "inner.txt").write_text("x")
    (tmp_path / ".hidden").write_text("h")
    return tmp_path


def test_human_readable_small_sizes_are_plain_numbers():
    assert format_size_human_readable(0) == "0"
    assert format_size_human_readable(1023) == "1023"


def test_human_readable_kilobyte():
    assert format_size_human_readable(1024) == "1.0K"


def test_human_readable_units_progress():
    assert format_size_human_readable(5 * 1024 * 1024).endswith("M")
    assert format_size_human_readable(50 * 1024 * 1024 * 1024).endswith("G")


def test_format_size_plain():
    assert format_size(500, False) == "500 B"
    assert format_size(2048, False) == "2 KB"
    assert format_size(3 * 1024**3, False) == "3 GB"


@pytest.mark.parametrize("size", [0, 100, 4096, 10**7])
def test_format_size_human_delegates(size):
    assert format_size(size, True) == format_size_human_readable(size)


def test_one_per_line_lists_directories_first(tree, capsys):
    assert ls_command(["ls", "-1", str(tree)]) == 0
    assert _lines(capsys.readouterr().out) == ["adir", "alpha.txt", "beta.txt"]


def test_hidden_shown_with_a(tree, capsys):
    assert ls_command(["ls", "-1a", str(tree)]) == 0
    assert ".hidden" in _lines(capsys.readouterr().out)


def test_reverse_order_drops_directories_first(tree, capsys):
    assert ls_command(["ls", "-1r", str(tree)]) == 0
    assert _lines(capsys.readouterr().out) == ["beta.txt", "alpha.txt", "adir"]


def test_sort_by_size(tmp_path, capsys):
    (tmp_path / "a_small").write_text("x")
    (tmp_path / "z_big").write_text("x" * 100)
    assert ls_command(["ls", "-1S", str(tmp_path)]) == 0
    assert _lines(capsys.readouterr().out) == ["z_big", "a_small"]


def test_sort_by_time(tmp_path, capsys):
    old = tmp_path / "a_old"
    new = tmp_path / "b_new"
    old.write_text("o")
    new.write_text("n")
    os.utime(old, (1_000_000, 1_000_000))
    os.utime(new, (2_000_000, 2_000_000))
    assert ls_command(["ls", "-1t", str(tmp_path)]) == 0
    assert _lines(capsys.readouterr().out) == ["b_new", "a_old"]


def test_unknown_short_option(capsys):
    assert ls_command(["ls", "-z"]) == 1
    assert "Unknown option: -z" in capsys.readouterr().err


def test_unknown_long_option(capsys):
    assert ls_command(["ls", "--bogus"]) == 1
    assert "Unknown option: --bogus" in capsys.readouterr().err


def test_help(capsys):
    assert ls_command(["ls", "--help"]) == 0
    assert capsys.readouterr().out.startswith("Usage: ls [OPTION]... [FILE]...")


def test_missing_directory(tmp_path, capsys):
    assert list_directory(tmp_path / "missing", ListOptions(), 0) == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_recursive_headers(tree, capsys):
    assert ls_command(["ls", "-1R", str(tree)]) == 0
    lines = _lines(capsys.readouterr().out)
    assert lines[0] == f"{tree}:"
    assert f" {tree / 'adir'}:" in lines
    assert "inner.txt" in lines


def test_default_format_types(tmp_path, capsys):
    (tmp_path / "code.py").write_text("pass")
    run = tmp_path / "run"
    run.write_text("#!/bin/sh\n")
    run.chmod(0o755)
    plain = tmp_path / "notes"
    plain.write_text("n")
    plain.chmod(0o644)
    (tmp_path / "sub").mkdir()
    assert ls_command(["ls", str(tmp_path)]) == 0
    rows = {line.split()[0]: line for line in _lines(capsys.readouterr().out)[2:]}
    assert rows["code.py"].endswith("Source")
    assert rows["run"].endswith("Executable")
    assert rows["notes"].endswith("File")
    assert rows["sub"].split() == ["sub", "-", "Directory"]


def test_symlink_type_and_target(tmp_path, capsys):
    target = tmp_path / "target.txt"
    target.write_text("t")
    (tmp_path / "link").symlink_to(target)
    assert ls_command(["ls", str(tmp_path)]) == 0
    rows = {line.split()[0]: line for line in _lines(capsys.readouterr().out)[2:]}
    assert rows["link"].endswith("Symlink")

    assert ls_command(["ls", "-l", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert f"link -> {target}" in ANSI.sub("", out)


def test_long_format_permissions(tmp_path, capsys):
    f = tmp_path / "file.txt"
    f.write_text("abc")
    f.chmod(0o644)
    (tmp_path / "dir").mkdir()
    assert ls_command(["ls", "-l", str(tmp_path)]) == 0
    lines = _lines(capsys.readouterr().out)
    assert lines[0].startswith("Permissions")
    assert lines[1] == "-" * 80
    assert lines[2].startswith("d")
    assert lines[3].startswith("-rw-r--r--")
    assert lines[3].endswith("file.txt")


def test_inode_one_per_line(tmp_path, capsys):
    f = tmp_path / "only"
    f.write_text("x")
    assert ls_command(["ls", "-1i", str(tmp_path)]) == 0
    line = _lines(capsys.readouterr().out)[0]
    assert line.split() == [str(os.stat(f).st_ino), "only"]