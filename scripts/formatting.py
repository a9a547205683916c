"""
Text helpers shared by the table renderer and the detail view.

Box drawing characters, ANSI color codes, and the two wrapping helpers:
word wrap for prose and fixed-width chunking for identifiers.
"""

import re

# Box drawing characters
BOX_H = "─"
BOX_V = "│"
BOX_TL = "┌"
BOX_TR = "┐"
BOX_BL = "└"
BOX_BR = "┘"
BOX_T = "┬"
BOX_B = "┴"
BOX_L = "├"
BOX_R = "┤"
BOX_X = "┼"

COLORS = {
    "blue": "\033[94m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "red": "\033[91m",
    "magenta": "\033[95m",
    "cyan": "\033[96m",
    "white": "\033[97m",
    "gray": "\033[90m",
}
RESET = "\033[0m"
BOLD = "\033[1m"

PLACEHOLDER = "-"

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def colorize(text: str, color: str | None, use_color: bool = True, bold: bool = False) -> str:
    """Wrap text in the ANSI code for a color tag.

    Unknown tags and disabled color return the text unchanged.
    """
    if not use_color:
        return text
    code = COLORS.get(color or "", "")
    if bold:
        code = BOLD + code
    if not code:
        return text
    return f"{code}{text}{RESET}"


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def visible_len(text: str) -> int:
    """Length of text as displayed (ANSI codes excluded)."""
    return len(strip_ansi(text))


def wrap_text(text: str | None, width: int) -> str:
    """Greedy word wrap.

    A word longer than width goes on its own line unsplit.
    """
    if not text:
        return PLACEHOLDER
    width = max(width, 1)
    lines = []
    current = ""

    for word in text.split():
        needs_space = 1 if current else 0
        if len(current) + needs_space + len(word) > width:
            if current:
                lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word

    if current:
        lines.append(current)
    if not lines:
        return PLACEHOLDER
    return "\n".join(lines)


def chunk_fixed_width(text: str | None, width: int) -> str:
    """Split a flat token into slices of exactly width characters."""
    if not text:
        return PLACEHOLDER
    width = max(width, 1)
    return "\n".join(text[i:i + width] for i in range(0, len(text), width))


def truncate(text: str, width: int) -> str:
    """Cut text to width, marking the cut with an ellipsis."""
    if len(text) <= width:
        return text
    if width <= 1:
        return text[:width]
    return text[:width - 1] + "…"


def pad(text: str, width: int, align: str = "left") -> str:
    """Pad possibly-colored text to a visible width."""
    fill = max(width - visible_len(text), 0)
    if align == "right":
        return " " * fill + text
    if align == "center":
        left = fill // 2
        return " " * left + text + " " * (fill - left)
    return text + " " * fill
