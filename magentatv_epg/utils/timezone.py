"""
Date and Time utilities

This module handles all date/time conversions for the MagentaTV API: parsing
listing timestamps, formatting request windows and parsing request dates.
"""
from datetime import date, datetime, time, timedelta, timezone
import logging


logger = logging.getLogger(__name__)

UPSTREAM_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
UPSTREAM_WINDOW_FORMAT = "%Y%m%d000000"


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def parse_upstream_timestamp(value: str | None) -> datetime | None:
    """
    Parse a MagentaTV listing timestamp as UTC

    Listing times look like '2024-01-10 20:15:00'. Anything after the first
    19 characters (e.g. a ' UTC+00:00' suffix) is ignored.

    Args:
        value: Timestamp string from `starttime`/`endtime`

    Returns:
        Timezone-aware datetime in UTC, or None if absent or malformed
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.strptime(value.strip()[:19], UPSTREAM_TIMESTAMP_FORMAT)
    except ValueError:
        logger.debug("Unparseable listing timestamp: %r", value)
        return None
    return dt.replace(tzinfo=timezone.utc)


def day_window(day: date) -> tuple[str, str]:
    """
    Calculate the PlayBillList request window for one day

    Args:
        day: Day to fetch

    Returns:
        Tuple of (begintime, endtime) covering [day 00:00:00, day+1 00:00:00)
        in 'YYYYMMDD000000' format
    """
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)
    return start.strftime(UPSTREAM_WINDOW_FORMAT), end.strftime(UPSTREAM_WINDOW_FORMAT)


def parse_request_date(date_str: str) -> date:
    """
    Parse an ISO date ('2024-01-10') from a request

    Raises:
        DateFormatError: If the date string format is invalid
    """
    try:
        return date.fromisoformat(date_str)
    except (ValueError, TypeError) as e:
        raise DateFormatError(f"Invalid ISO date format: '{date_str}'") from e


def utc_now_iso() -> str:
    """Current UTC time as ISO8601 string"""
    return datetime.now(timezone.utc).isoformat()
