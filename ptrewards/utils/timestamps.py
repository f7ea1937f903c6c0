"""
Timestamp helpers for PT Rewards
Records store epoch milliseconds; reports render them in a local timezone
"""

from datetime import datetime
import time

import pytz

def now_ms():
    """Current time as integer epoch milliseconds"""
    return int(time.time() * 1000)

def format_timestamp(ms, timezone='UTC'):
    """
    Render epoch milliseconds as an ISO 8601 string in the given timezone.
    Returns None for missing or non-numeric values.
    """
    if isinstance(ms, bool) or not isinstance(ms, (int, float)):
        return None
    moment = datetime.fromtimestamp(ms / 1000.0, tz=pytz.utc)
    return moment.astimezone(pytz.timezone(timezone)).isoformat()
