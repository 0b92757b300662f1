"""
Common utility functions.
"""

from datetime import datetime, timezone


def utc_timestamp() -> str:
    """
    Current time as an ISO-8601 UTC string.

    Returns:
        Timestamp like 2026-01-01T12:00:00.000Z
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def preview(text: str, limit: int = 500) -> str:
    """
    Shorten text for log lines.

    Args:
        text: Text to shorten
        limit: Maximum characters kept

    Returns:
        The text, truncated with a marker when longer than limit
    """
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [{len(text) - limit} more chars]"
