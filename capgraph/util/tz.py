# capgraph/util/tz.py
"""Timezone and calendar-key helpers.

Day keys are local calendar dates (YYYY-MM-DD); week keys are the day key
of that week's Monday. Both are what the routine state is stored under.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional
from zoneinfo import ZoneInfo

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_YMD_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

_LOCAL_ALIASES = frozenset({"", "local", "system"})
_UTC_ALIASES = frozenset({"utc", "z", "gmt"})


def normalize_tz_name(name: Optional[str]) -> str:
    """Canonical tz setting: "local", "UTC", a fixed offset or an IANA name."""
    s = "" if name is None else str(name).strip()
    low = s.lower()
    if low in _LOCAL_ALIASES:
        return "local"
    if low in _UTC_ALIASES:
        return "UTC"
    return s


def _fixed_offset(tz_name: str) -> Optional[dt.tzinfo]:
    m = _OFFSET_RE.match(tz_name)
    if not m:
        return None
    sign, hh, mm = m.group(1), int(m.group(2)), int(m.group(3))
    if hh > 23 or mm > 59:
        raise ValueError(f"Invalid timezone offset: {tz_name!r}")
    minutes = hh * 60 + mm
    return dt.timezone(dt.timedelta(minutes=minutes if sign == "+" else -minutes))


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """tzinfo for a tz setting; ValueError when it names no known zone."""
    tz_name = normalize_tz_name(name)
    if tz_name == "UTC":
        return dt.timezone.utc
    if tz_name == "local":
        return dt.datetime.now().astimezone().tzinfo or dt.timezone.utc

    fixed = _fixed_offset(tz_name)
    if fixed is not None:
        return fixed
    try:
        return ZoneInfo(tz_name)
    except Exception as ex:
        raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex


def today_date(tz: dt.tzinfo) -> dt.date:
    return dt.datetime.now(tz=tz).date()


def day_key(d: dt.date) -> str:
    return d.isoformat()


def week_start(d: dt.date) -> dt.date:
    return d - dt.timedelta(days=d.weekday())


def week_key(d: dt.date) -> str:
    return week_start(d).isoformat()


def parse_day_key(s: object) -> Optional[dt.date]:
    """Parse a stored YYYY-MM-DD key; None for anything else."""
    if not isinstance(s, str):
        return None
    m = _YMD_RE.match(s.strip())
    if not m:
        return None
    try:
        return dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def epoch_ms(now: Optional[dt.datetime] = None) -> int:
    t = now or dt.datetime.now(tz=dt.timezone.utc)
    return int(t.timestamp() * 1000)
