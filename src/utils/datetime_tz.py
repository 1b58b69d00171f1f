from __future__ import annotations

from datetime import date, datetime, time, timezone

from zoneinfo import ZoneInfo

# Default application timezone aligned with frontend
DEFAULT_TIMEZONE_NAME = "Asia/Bangkok"
DEFAULT_TZ = ZoneInfo(DEFAULT_TIMEZONE_NAME)


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive values (SQLite hands timestamps back without tzinfo)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC, assuming UTC for naive values."""
    return ensure_aware(dt).astimezone(timezone.utc)


def start_of_day(dt: datetime, tz: ZoneInfo | None = DEFAULT_TZ) -> datetime:
    """Midnight of `dt`'s calendar day in `tz`, returned in UTC."""
    local = ensure_aware(dt).astimezone(tz or timezone.utc)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def parse_hhmm(value: str | time | None) -> time | None:
    """Parse 'HH:MM' into a time; accepts an existing time or None."""
    if value is None or isinstance(value, time):
        return value
    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes or 0))


def format_hhmm(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


_DOW = {
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    "th": ["จ.", "อ.", "พ.", "พฤ.", "ศ.", "ส.", "อา."],
}
_MON = {
    "en": ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
    "th": [
        "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
        "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
    ],
}


def format_day_date(
    d: date | datetime | str | None,
    *,
    locale: str = "th",
    include_time: bool = False,
    tz: ZoneInfo | None = DEFAULT_TZ,
) -> str:
    """Return 'Fri 05 Oct' (or the Thai equivalent), optionally with 'HH:MM'.

    Accepts ISO date/datetime strings (with optional trailing 'Z').
    Normalizes to `tz` (assumes UTC if tzinfo missing).
    """
    if d is None:
        return ""
    if isinstance(d, str):
        s = d.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return str(d)
    elif isinstance(d, datetime):
        dt = d
    else:
        dt = datetime.combine(d, time(0, 0))

    if tz is not None:
        dt = ensure_aware(dt).astimezone(tz)

    lang = locale if locale in _DOW else "en"
    dow = _DOW[lang][dt.weekday()]
    mon = _MON[lang][dt.month - 1]
    label = f"{dow} {dt.day:02d} {mon}"
    if include_time:
        return f"{label} {dt.strftime('%H:%M')}"
    return label
