"""
Utility/helper functions.
"""

import datetime


def utcnow() -> datetime.datetime:
    """
    Return current (UTC) timestamp, timezone aware.
    """
    return datetime.datetime.now(datetime.timezone.utc)


def now_str():
    """
    Return current (UTC) timestamp as string.
    """
    return utcnow().isoformat()
