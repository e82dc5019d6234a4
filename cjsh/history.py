"""The history command."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Sequence
from itertools import islice
from pathlib import Path

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def _parse_index(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"not a number: {text!r}")
    return int(match.group())


def history_command(args: Sequence[str], history_path: str | os.PathLike[str]) -> int:
    """Print numbered history lines, all of them or the first N."""
    try:
        handle = open(history_path, encoding="utf-8")
    except OSError:
        print(f"Error: Could not open history file at {Path(history_path)}", file=sys.stderr)
        return 1

    with handle:
        lines = (line.rstrip("\n") for line in handle)
        if len(args) > 1:
            try:
                limit = _parse_index(args[1])
            except ValueError:
                print(f"Invalid index: {args[1]}", file=sys.stderr)
                return 1
            lines = islice(lines, max(limit, 0))
        for number, line in enumerate(lines):
            print(f"{number:>5}  {line}")
    return 0