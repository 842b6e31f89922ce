"""Formatting utilities for game messages."""

from collections.abc import Iterable


def separator(width: int = 40) -> str:
    """Create a visual separator line."""
    return "=" * width


def night_header(round_number: int) -> str:
    """Format a night phase header."""
    return f"🌙 Night {round_number}: the town is asleep."


def day_header(round_number: int) -> str:
    """Format a day phase header."""
    return f"☀️ Day {round_number}: everyone to the town square."


def bullet_list(names: Iterable[str], empty: str = "-") -> str:
    """One name per line, or a placeholder."""
    lines = [f"• {name}" for name in names]
    return "\n".join(lines) if lines else empty


def numbered(lines: Iterable[str]) -> str:
    """Number lines starting at 1."""
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))
