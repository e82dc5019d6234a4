"""Terminal colour handling: capability detection, conversion and custom colour files."""

from __future__ import annotations

import enum
import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

RESET = "\033[0m"
BOLD = "\033[1m"
ITALIC = "\033[3m"
UNDERLINE = "\033[4m"
BLINK = "\033[5m"
REVERSE = "\033[7m"
HIDDEN = "\033[8m"

DEFAULT_COLORS_FILE = "default_colors.txt"

_INT_MAX = 2**31 - 1
_WHITESPACE = " \t\n\r\f\v"
_RGB_PATTERN = re.compile(
    r"rgb\s*\(\s*([0-9]+)\s*,\s*([0-9]+)\s*,\s*([0-9]+)\s*\)", re.IGNORECASE
)
_DEFINITION_PATTERN = re.compile(r"\s*([A-Za-z0-9_]+)\s*=\s*(.+)")
_LEADING_HEX = re.compile(r"[0-9a-fA-F]+")

_DEFAULT_COLORS_TEXT = """\
# CJSH Default Colors
# This file contains the basic ANSI colors in CJSH.
# Format: COLOR_NAME = #RRGGBB
# To create your own colors, you can edit this file or create a new .txt file in this directory.

# Basic ANSI Colors
BLACK = #000000
RED = #AA0000
GREEN = #00AA00
YELLOW = #AA5500
BLUE = #0000AA
MAGENTA = #AA00AA
CYAN = #00AAAA
WHITE = #AAAAAA
BLACK_BRIGHT = #555555
RED_BRIGHT = #FF5555
GREEN_BRIGHT = #55FF55
YELLOW_BRIGHT = #FFFF55
BLUE_BRIGHT = #5555FF
MAGENTA_BRIGHT = #FF55FF
CYAN_BRIGHT = #55FFFF
WHITE_BRIGHT = #FFFFFF
"""


class ColorCapability(enum.Enum):
    NO_COLOR = "none"
    BASIC_COLOR = "basic"
    XTERM_256_COLOR = "xterm256"
    TRUE_COLOR = "truecolor"


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"colour channel out of range: {channel}")


@dataclass(frozen=True)
class HSL:
    h: float
    s: float
    l: float  # noqa: E741


WHITE = RGB(255, 255, 255)
BLACK = RGB(0, 0, 0)

_BASIC_PALETTE = (
    RGB(0, 0, 0),
    RGB(170, 0, 0),
    RGB(0, 170, 0),
    RGB(170, 85, 0),
    RGB(0, 0, 170),
    RGB(170, 0, 170),
    RGB(0, 170, 170),
    RGB(170, 170, 170),
    RGB(85, 85, 85),
    RGB(255, 85, 85),
    RGB(85, 255, 85),
    RGB(255, 255, 85),
    RGB(85, 85, 255),
    RGB(255, 85, 255),
    RGB(85, 255, 255),
    RGB(255, 255, 255),
)


def detect_color_capability(environ: Mapping[str, str] | None = None) -> ColorCapability:
    """Work out what the terminal supports from its environment variables."""
    env = os.environ if environ is None else environ
    if env.get("NO_COLOR"):
        return ColorCapability.NO_COLOR
    if env.get("FORCE_COLOR") == "true":
        return ColorCapability.TRUE_COLOR
    colorterm = env.get("COLORTERM")
    if colorterm is not None:
        lowered = colorterm.lower()
        if "truecolor" in lowered or "24bit" in lowered:
            return ColorCapability.TRUE_COLOR
    term = env.get("TERM")
    if term is not None and ("256" in term or "xterm" in term):
        return ColorCapability.XTERM_256_COLOR
    return ColorCapability.BASIC_COLOR


def closest_ansi_color(color: RGB) -> int:
    """Index (0-15) of the nearest colour in the basic ANSI palette."""
    return min(
        range(len(_BASIC_PALETTE)),
        key=lambda i: (
            (_BASIC_PALETTE[i].r - color.r) ** 2
            + (_BASIC_PALETTE[i].g - color.g) ** 2
            + (_BASIC_PALETTE[i].b - color.b) ** 2
        ),
    )


def rgb_to_hsl(rgb: RGB) -> HSL:
    r, g, b = rgb.r / 255.0, rgb.g / 255.0, rgb.b / 255.0
    high = max(r, g, b)
    low = min(r, g, b)
    h = s = 0.0
    lightness = (high + low) / 2.0
    if high != low:
        d = high - low
        s = d / (2.0 - high - low) if lightness > 0.5 else d / (high + low)
        if high == r:
            h = (g - b) / d + (6.0 if g < b else 0.0)
        elif high == g:
            h = (b - r) / d + 2.0
        else:
            h = (r - g) / d + 4.0
        h /= 6.0
    return HSL(h * 360.0, s, lightness)


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 1.0 / 2.0:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(hsl: HSL) -> RGB:
    h = hsl.h / 360.0
    s = hsl.s
    lightness = hsl.l
    if s == 0:
        gray = int(lightness * 255)
        return RGB(gray, gray, gray)
    q = lightness * (1 + s) if lightness < 0.5 else lightness + s - lightness * s
    p = 2 * lightness - q
    return RGB(
        int(_hue_to_rgb(p, q, h + 1.0 / 3.0) * 255),
        int(_hue_to_rgb(p, q, h) * 255),
        int(_hue_to_rgb(p, q, h - 1.0 / 3.0) * 255),
    )


def rgb_to_xterm256(color: RGB) -> int:
    """Nearest entry in the 6x6x6 colour cube of the xterm palette."""

    def level(channel: int) -> int:
        return math.floor(channel / 255.0 * 5.0 + 0.5)

    return 16 + 36 * level(color.r) + 6 * level(color.g) + level(color.b)


def xterm256_to_rgb(index: int) -> RGB:
    if not 0 <= index <= 255:
        raise ValueError(f"xterm colour index out of range: {index}")
    if index < 16:
        return _BASIC_PALETTE[index]
    if index <= 231:
        cube = index - 16
        return RGB((cube // 36) * 51, ((cube % 36) // 6) * 51, (cube % 6) * 51)
    gray = (index - 232) * 10 + 8
    return RGB(gray, gray, gray)


def blend(color1: RGB, color2: RGB, factor: float) -> RGB:
    def mix(a: int, b: int) -> int:
        return int(a * (1 - factor) + b * factor)

    return RGB(mix(color1.r, color2.r), mix(color1.g, color2.g), mix(color1.b, color2.b))


def gradient(start: RGB, end: RGB, steps: int) -> list[RGB]:
    """``steps`` colours running evenly from ``start`` to ``end``."""
    if steps == 1:
        return [start]
    return [blend(start, end, i / (steps - 1)) for i in range(steps)]


def style_bold(text: str) -> str:
    return BOLD + text + RESET


def style_italic(text: str) -> str:
    return ITALIC + text + RESET


def style_underline(text: str) -> str:
    return UNDERLINE + text + RESET


def style_blink(text: str) -> str:
    return BLINK + text + RESET


def style_reverse(text: str) -> str:
    return REVERSE + text + RESET


def style_hidden(text: str) -> str:
    return HIDDEN + text + RESET


def _leading_hex(text: str) -> int:
    match = _LEADING_HEX.match(text)
    if match is None:
        raise ValueError(f"not a hexadecimal value: {text!r}")
    return int(match.group(), 16)


@dataclass
class ColorSystem:
    """Colour output for one terminal, together with user-defined named colours."""

    colors_path: Path
    capability: ColorCapability = ColorCapability.BASIC_COLOR
    environ: Mapping[str, str] | None = None
    custom_colors: dict[str, RGB] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.colors_path = Path(self.colors_path)

    def initialize(self, enabled: bool) -> None:
        if not enabled:
            self.capability = ColorCapability.NO_COLOR
            return
        self.capability = detect_color_capability(self.environ)
        self.ensure_default_colors_file()
        self.load_all_custom_colors()

    def _sequence(self, color: RGB | int, background: bool) -> str:
        if self.capability is ColorCapability.NO_COLOR:
            return ""
        layer = 48 if background else 38
        if isinstance(color, int):
            if not 0 <= color <= 255:
                raise ValueError(f"xterm colour index out of range: {color}")
            if self.capability is not ColorCapability.BASIC_COLOR or color < 16:
                return f"\033[{layer};5;{color}m"
            color = xterm256_to_rgb(color)
        if self.capability is ColorCapability.BASIC_COLOR:
            index = closest_ansi_color(color)
            if index < 8:
                return f"\033[{'4' if background else '3'}{index}m"
            return f"\033[{'10' if background else '9'}{index - 8}m"
        if self.capability is ColorCapability.XTERM_256_COLOR:
            return f"\033[{layer};5;{rgb_to_xterm256(color)}m"
        return f"\033[{layer};2;{color.r};{color.g};{color.b}m"

    def fg_color(self, color: RGB | int) -> str:
        """Escape sequence setting the foreground to an RGB colour or xterm index."""
        return self._sequence(color, background=False)

    def bg_color(self, color: RGB | int) -> str:
        """Escape sequence setting the background to an RGB colour or xterm index."""
        return self._sequence(color, background=True)

    def style(self, text: str, fg: RGB, bg: RGB | None = None) -> str:
        prefix = self.fg_color(fg)
        if bg is not None:
            prefix += self.bg_color(bg)
        return prefix + text + RESET

    def gradient_text(self, text: str, start: RGB, end: RGB) -> str:
        if not text:
            return ""
        if self.capability is ColorCapability.NO_COLOR:
            return text
        if len(text) == 1:
            return self.fg_color(start) + text + RESET
        if self.capability is ColorCapability.BASIC_COLOR:
            halfway = len(text) // 2
            pieces = (
                self.fg_color(start if i < halfway else end) + char
                for i, char in enumerate(text)
            )
        else:
            colors = gradient(start, end, len(text))
            pieces = (self.fg_color(c) + char for c, char in zip(colors, text))
        return "".join(pieces) + RESET

    def parse_color_value(self, value: str) -> RGB:
        """Read ``#RGB``, ``#RRGGBB``, ``rgb(r, g, b)`` or a colour name."""
        trimmed = value.strip(_WHITESPACE)
        if trimmed.startswith("#"):
            digits = trimmed[1:]
            if len(digits) == 3:
                digits = "".join(c * 2 for c in digits)
            if len(digits) == 6:
                try:
                    return RGB(*(_leading_hex(digits[i : i + 2]) for i in (0, 2, 4)))
                except ValueError:
                    return WHITE
        match = _RGB_PATTERN.fullmatch(trimmed)
        if match:
            parts = [int(group) for group in match.groups()]
            if any(part > _INT_MAX for part in parts):
                return WHITE
            return RGB(*(min(max(part, 0), 255) for part in parts))
        return self.color_by_name(trimmed.upper())

    def load_custom_colors(self, filename: str) -> bool:
        """Add the definitions in one colour file; True if any were read."""
        color_file = self.colors_path / filename
        try:
            with open(color_file, encoding="utf-8") as handle:
                lines = handle.read().split("\n")
        except OSError:
            return False

        loaded = False
        for line in lines:
            if not line or line[0] in "#/":
                continue
            match = _DEFINITION_PATTERN.fullmatch(line)
            if match:
                name, color_value = match.groups()
                self.custom_colors[name.upper()] = self.parse_color_value(color_value)
                loaded = True
        return loaded

    def export_predefined_colors(self, filename: str) -> Path:
        """Write the basic ANSI palette to a colour file; raises OSError on failure."""
        self.colors_path.mkdir(parents=True, exist_ok=True)
        color_file = self.colors_path / filename
        color_file.write_text(_DEFAULT_COLORS_TEXT, encoding="utf-8")
        return color_file

    def ensure_default_colors_file(self) -> Path:
        color_file = self.colors_path / DEFAULT_COLORS_FILE
        if not color_file.exists():
            self.export_predefined_colors(DEFAULT_COLORS_FILE)
        return color_file

    def load_all_custom_colors(self) -> bool:
        """Reload every ``.txt`` colour file; True if any colour was read."""
        self.custom_colors.clear()
        self.colors_path.mkdir(parents=True, exist_ok=True)
        self.ensure_default_colors_file()
        color_files = sorted(
            entry for entry in self.colors_path.iterdir()
            if entry.is_file() and entry.suffix == ".txt"
        )
        results = [self.load_custom_colors(entry.name) for entry in color_files]
        return any(results)

    def color_by_name(self, name: str) -> RGB:
        if self.capability is ColorCapability.NO_COLOR:
            return WHITE
        return self.custom_colors.get(name.upper(), BLACK)

    def color_map(self) -> dict[str, str]:
        """Escape sequences by name: text styles plus every custom colour."""
        mapping = {
            "BOLD": BOLD,
            "ITALIC": ITALIC,
            "UNDERLINE": UNDERLINE,
            "BLINK": BLINK,
            "REVERSE": REVERSE,
            "HIDDEN": HIDDEN,
            "RESET": RESET,
        }
        colored = self.capability is not ColorCapability.NO_COLOR
        for name, rgb in self.custom_colors.items():
            mapping[name] = self.fg_color(rgb) if colored else RESET
        return mapping