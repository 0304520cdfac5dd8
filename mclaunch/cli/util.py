"""Formatting utilities for the CLI.
"""

from datetime import datetime

from typing import Union


def format_locale_date(raw: Union[str, float]) -> str:
    """Format an ISO date as found in the manifest, or a timestamp, with the locale's
    date and time representation.
    """
    if isinstance(raw, float):
        return datetime.fromtimestamp(raw).strftime("%c")
    else:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).strftime("%c")


def format_number(n: float) -> str:
    """Return a number with suffix k, M, G or nothing.
    The string is at most 7 chars unless the size exceed 1 T.
    """
    if n < 1000:
        return f"{int(n)} "
    elif n < 1000000:
        return f"{(int(n / 100) / 10):.1f} k"
    elif n < 1000000000:
        return f"{(int(n / 100000) / 10):.1f} M"
    else:
        return f"{(int(n / 100000000) / 10):.1f} G"
