"""
Helper functions for formatting data into human-readable strings.
"""

from datetime import datetime


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_timestamp(value: datetime | None) -> str:
    """Formats a catalog timestamp as 'YYYY-MM-DD HH:MM', or '-' if unknown."""
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")
