from datetime import datetime, timezone

from dateutil.parser import isoparse


def utcnow():
    return datetime.now(timezone.utc)


def ensure_utc(value):
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(date_str):
    try:
        return ensure_utc(isoparse(date_str))
    except (ValueError, TypeError):
        raise ValueError("Invalid date format. Use ISO format (YYYY-MM-DDTHH:MM:SSZ)")
