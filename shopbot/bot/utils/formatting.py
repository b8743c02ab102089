"""Human-readable prices, durations and command arguments."""

from __future__ import annotations


def format_price(price_in_cents: int) -> str:
    return f"${price_in_cents / 100:.2f}"


def _pluralize(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(days: int) -> str:
    if days and days % 365 == 0:
        return _pluralize(days // 365, "year")
    if days and days % 30 == 0:
        return _pluralize(days // 30, "month")
    if days and days % 7 == 0:
        return _pluralize(days // 7, "week")
    return _pluralize(days, "day")


def extract_command_argument(text: str | None) -> str | None:
    """Return the first argument of ``/command arg ...`` or ``None``."""

    if not text:
        return None
    parts = text.split()
    if len(parts) < 2:
        return None
    return parts[1]


__all__ = ["extract_command_argument", "format_duration", "format_price"]
