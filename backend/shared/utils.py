import re
from datetime import date, datetime, time, timezone
from dateutil import parser as date_parser

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date_string(date_str: str, fuzzy: bool = True) -> str | None:
    """Parse various date formats into ISO format."""
    if not date_str:
        return None
    try:
        dt = date_parser.parse(date_str, fuzzy=fuzzy)
        return str(dt.isoformat())
    except (ValueError, OverflowError, TypeError):
        return None


def to_utc_datetime(value, end_of_day: bool = False) -> datetime | None:
    """
    Coerce a datetime, date or date string into an aware UTC datetime.

    Naive values are assumed to already be UTC. Date-only values resolve to the
    start of the day, or to its last microsecond when end_of_day is set.

    Raises:
        ValueError: If a string cannot be parsed as a date
    """
    if value is None or value == "":
        return None

    date_only = False
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
        date_only = True
    elif isinstance(value, str):
        parsed = parse_date_string(value, fuzzy=False)
        if parsed is None:
            raise ValueError(f"Unrecognised date: {value!r}")
        dt = datetime.fromisoformat(parsed)
        date_only = bool(_DATE_ONLY.match(value.strip()))
    else:
        raise ValueError(f"Unsupported date value: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    if date_only and end_of_day:
        dt = datetime.combine(dt.date(), time.max, tzinfo=timezone.utc)

    return dt


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def print_summary(title: str, stats: dict[str, int]) -> None:
    """Print processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] {title}")
    print(f"{'=' * 60}")
    print(f"✓ Sent:    {stats.get('sent', 0)}")
    print(f"⊘ Skipped: {stats.get('skipped', 0)}")
    print(f"✗ Failed:  {stats.get('failed', 0)}")
    print(f"{'=' * 60}\n")
