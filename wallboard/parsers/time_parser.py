"""
wallboard/parsers/time_parser.py
Parses the loosely formatted UTROP / OPPMØTE text into datetimes.

Shapes are tried in order; the first regex that matches decides the result.
A match that names an impossible date (month 13, hour 25) yields None rather
than falling through to the next shape.

Append to TIME_SHAPES to support another format — parse_time() never changes.
"""

import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple

Builder = Callable[[re.Match, datetime], datetime]


def _ymd(m: re.Match, now: datetime) -> datetime:
    return datetime(
        int(m.group(1)), int(m.group(2)), int(m.group(3)),
        int(m.group(4)), int(m.group(5)), int(m.group(6) or 0),
    )


def _dmy(m: re.Match, now: datetime) -> datetime:
    year = int(m.group(3))
    if year < 100:
        year += 2000
    return datetime(
        year, int(m.group(2)), int(m.group(1)),
        int(m.group(4)), int(m.group(5)), int(m.group(6) or 0),
    )


def _clock(m: re.Match, now: datetime) -> datetime:
    return now.replace(
        hour=int(m.group(1)), minute=int(m.group(2)),
        second=int(m.group(3) or 0), microsecond=0,
    )


# ── SHAPES ───────────────────────────────────────────────────
# (name, pattern, builder); first match wins.

TIME_SHAPES: List[Tuple[str, re.Pattern, Builder]] = [
    ('iso',
     re.compile(r'(\d{4})[./-](\d{1,2})[./-](\d{1,2})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?'),
     _ymd),
    ('european',
     re.compile(r'(\d{1,2})[./-](\d{1,2})[./-](\d{2,4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?'),
     _dmy),
    ('clock',
     re.compile(r'(\d{1,2}):(\d{2})(?::(\d{2}))?'),
     _clock),
]


def parse_time(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse free text into a naive local datetime.
    Bare HH:MM resolves against the date of `now` (default: current time).
    Returns None when nothing matches — callers treat that as "unknown".
    """
    if not text or not isinstance(text, str):
        return None
    text = text.strip()
    if not text:
        return None

    reference = now or datetime.now()
    for _name, pattern, build in TIME_SHAPES:
        m = pattern.search(text)
        if not m:
            continue
        try:
            return build(m, reference)
        except ValueError:
            return None
    return None


def minute_bucket(moment: datetime, size: int = 5) -> int:
    """Quantize minute-of-day into fixed-width buckets."""
    minutes = moment.hour * 60 + moment.minute
    return (minutes // size) * size
