"""ANSI color codes for CLI output."""

import os
import sys
from typing import TextIO


class Colors:
    """ANSI escape codes for terminal coloring."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"


def supports_color(stream: TextIO = sys.stdout) -> bool:
    """True unless NO_COLOR is set or the stream is not a terminal."""
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def paint(text: str, color: str, stream: TextIO = sys.stdout) -> str:
    """Wrap ``text`` in ``color`` when ``stream`` can show it."""
    if not supports_color(stream):
        return text
    return f"{color}{text}{Colors.RESET}"
