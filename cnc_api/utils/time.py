from datetime import date, datetime, timedelta, timezone

def parse_iso(s: str) -> datetime:
    """Parses an ISO 8601 string, handling 'Z' for UTC."""
    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)

def to_utc(dt: datetime) -> datetime:
    """Converts a naive datetime to a timezone-aware UTC datetime."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)

def parse_day(value) -> date:
    """Accepts 'YYYY-MM-DD', a full ISO timestamp, a date or a datetime and returns the UTC calendar day."""
    if isinstance(value, datetime):
        return to_utc(value).astimezone(timezone.utc).date()
    if isinstance(value, date):
        return value
    return to_utc(parse_iso(str(value))).astimezone(timezone.utc).date()

def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) range covering one calendar day, for DB range matching."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)

def hhmm_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)

def api_iso_z(dt: datetime) -> str:
    """Formats a datetime into an ISO 8601 string ending in 'Z' for API responses."""
    return to_utc(dt).astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")

def today_utc() -> date:
    return datetime.now(tz=timezone.utc).date()
