"""Display helpers for CLI output."""

from .colors import Colors, paint, supports_color

__all__ = ["Colors", "paint", "supports_color"]
