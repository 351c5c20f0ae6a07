from datetime import datetime, timedelta
from zoneinfo import ZoneInfo


def get_utc_now() -> datetime:
    """
    Get the current date and time in UTC.

    This function returns the current time with timezone information set to UTC,
    ensuring that the returned datetime object is offset-aware.

    Returns:
        datetime: The current date and time in UTC with tzinfo set to ZoneInfo("UTC").
    """
    return datetime.now(ZoneInfo("UTC"))


def timestamp_after(moment: datetime, seconds: int) -> int:
    """Unix timestamp (whole seconds) of `moment` shifted by `seconds`."""
    return int((moment + timedelta(seconds=seconds)).timestamp())
