"""Converting epoch seconds to local broken-down time with a cached timezone."""

from __future__ import annotations

import time
from dataclasses import dataclass

_SECS_MIN = 60
_SECS_HOUR = 3600
_SECS_DAY = 3600 * 24

_daylight_active = 0
_current_timezone = 0


@dataclass
class BrokenDownTime:
    """Calendar fields laid out like C's ``struct tm``."""

    tm_sec: int
    tm_min: int
    tm_hour: int
    tm_mday: int
    tm_mon: int
    tm_year: int
    tm_wday: int
    tm_yday: int
    tm_isdst: int
    tm_gmtoff: int


def is_leap_year(year: int) -> bool:
    """Return whether ``year`` is a Gregorian leap year."""
    if year % 4:
        return False
    if year % 100:
        return True
    return year % 400 == 0


def local_time_init() -> None:
    """Read the timezone offset and daylight-saving state from the system."""
    global _current_timezone, _daylight_active
    if hasattr(time, "tzset"):
        time.tzset()
    _current_timezone = time.timezone
    _daylight_active = 1 if time.localtime().tm_isdst > 0 else 0


def get_daylight_active() -> int:
    """Return 1 if daylight saving was in effect at the last init, else 0."""
    return _daylight_active


def get_current_timezone() -> int:
    """Return the cached timezone as seconds west of UTC."""
    return _current_timezone


def no_locks_localtime(t: int) -> BrokenDownTime:
    """Break ``t`` (seconds since the epoch, not earlier than 1970) into local time fields."""
    dst = get_daylight_active()
    t = int(t) - _current_timezone + _SECS_HOUR * dst
    days, seconds = divmod(t, _SECS_DAY)

    hour, rest = divmod(seconds, _SECS_HOUR)
    minute, sec = divmod(rest, _SECS_MIN)
    # 1970-01-01 was a Thursday, day 4 counting from Sunday.
    wday = (days + 4) % 7

    year = 1970
    while True:
        days_this_year = 366 if is_leap_year(year) else 365
        if days_this_year > days:
            break
        days -= days_this_year
        year += 1
    yday = days

    mdays = [31, 29 if is_leap_year(year) else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
    month = 0
    for length in mdays:
        if days < length:
            break
        days -= length
        month += 1

    return BrokenDownTime(
        tm_sec=sec,
        tm_min=minute,
        tm_hour=hour,
        tm_mday=days + 1,
        tm_mon=month,
        tm_year=year - 1900,
        tm_wday=wday,
        tm_yday=yday,
        tm_isdst=dst,
        tm_gmtoff=-_current_timezone,
    )