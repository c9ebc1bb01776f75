"""Naive UTC timestamps, the form every stored date takes"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, comparable with normalized front matter dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
