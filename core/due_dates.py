"""Due-date expressions used inside ``(@...)`` tokens.

Supported expressions: ``today``, ``tomorrow``, ``next week``, a weekday
name (next occurrence, today counts), ``next <weekday>`` (today does not
count, so the same weekday lands a week out), and literal calendar dates.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from .task import DueDate

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_LITERAL_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

BUCKET_PAST = "past"
BUCKET_TODAY = "today"
BUCKET_TOMORROW = "tomorrow"
BUCKET_WITHIN_WEEK = "within_week"
BUCKET_FUTURE = "future"


def humanize(day: date) -> str:
    return f"{MONTHS[day.month - 1]} {day.day:02d}"


def make_due(day: date) -> DueDate:
    return DueDate(date=day.isoformat(), string=humanize(day))


def _parse_literal(expr: str) -> Optional[date]:
    text = " ".join(expr.replace(",", " ").split())
    for fmt in _LITERAL_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def resolve_day(expr: str, today: Optional[date] = None) -> Optional[date]:
    today = today or date.today()
    word = " ".join(expr.strip().lower().split())
    if not word:
        return None
    if word == "today":
        return today
    if word == "tomorrow":
        return today + timedelta(days=1)
    if word == "next week":
        return today + timedelta(days=7)
    if word in WEEKDAYS:
        return today + timedelta(days=(WEEKDAYS.index(word) - today.weekday()) % 7)
    if word.startswith("next ") and word[5:] in WEEKDAYS:
        delta = (WEEKDAYS.index(word[5:]) - today.weekday()) % 7
        return today + timedelta(days=delta or 7)
    return _parse_literal(expr.strip())


def resolve_due(expr: str, today: Optional[date] = None) -> Optional[DueDate]:
    """Turn an expression into a DueDate, or None when it is not a date."""
    day = resolve_day(expr, today)
    return make_due(day) if day else None


def parse_day(value: str) -> Optional[date]:
    try:
        return date.fromisoformat((value or "")[:10])
    except ValueError:
        return None


def date_bucket(day: date, today: Optional[date] = None) -> str:
    today = today or date.today()
    delta = (day - today).days
    if delta < 0:
        return BUCKET_PAST
    if delta == 0:
        return BUCKET_TODAY
    if delta == 1:
        return BUCKET_TOMORROW
    if delta < 7:
        return BUCKET_WITHIN_WEEK
    return BUCKET_FUTURE


def relative_label(day: date, today: Optional[date] = None) -> str:
    """Label that ``resolve_day`` maps back to the same day."""
    bucket = date_bucket(day, today)
    if bucket == BUCKET_TODAY:
        return "today"
    if bucket == BUCKET_TOMORROW:
        return "tomorrow"
    if bucket == BUCKET_WITHIN_WEEK:
        return WEEKDAYS[day.weekday()]
    return day.isoformat()
