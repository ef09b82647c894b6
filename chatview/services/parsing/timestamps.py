import re
from datetime import datetime

_MERIDIEM_RE = re.compile(r"\s?(am|pm)", re.IGNORECASE)


def _split_date(date_token: str) -> tuple[int, int, int]:
    parts = date_token.strip().split("/")
    if len(parts) != 3:
        raise ValueError(f"Unrecognized date token: {date_token!r}")
    first, second, year = (int(part) for part in parts)
    if year < 100:
        year += 2000
    # Ambiguous dates default to day/month.
    if first > 12:
        return first, second, year
    if second > 12:
        return second, first, year
    return first, second, year


def _split_time(time_token: str) -> tuple[int, int, int]:
    clean = time_token.strip()
    meridiem = _MERIDIEM_RE.search(clean)
    fields = _MERIDIEM_RE.sub("", clean, count=1).strip().split(":")
    if len(fields) not in (2, 3):
        raise ValueError(f"Unrecognized time token: {time_token!r}")
    hour, minute = int(fields[0]), int(fields[1])
    second = int(fields[2]) if len(fields) == 3 else 0
    if meridiem:
        suffix = meridiem.group(1).lower()
        if suffix == "pm" and hour != 12:
            hour += 12
        elif suffix == "am" and hour == 12:
            hour = 0
    return hour, minute, second


def resolve_timestamp(date_token: str, time_token: str) -> datetime:
    """Turn an export's date and time tokens into a naive local datetime.

    Raises ValueError when the tokens do not form a real calendar instant.
    """
    day, month, year = _split_date(date_token)
    hour, minute, second = _split_time(time_token)
    return datetime(year, month, day, hour, minute, second)
