"""
wallboard/aggregators/filters.py
Status-class filter followed by free-text search.

Search is case-insensitive on every field except phone, which is matched
as a raw substring (numbers only in practice).
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from wallboard.models.record import Record
from wallboard.models.status import is_completed, is_sending

DEFAULT_UPCOMING_MINUTES = 5

FILTER_ALL       = 'all'
FILTER_ACTIVE    = 'active'
FILTER_SENDING   = 'sending'
FILTER_UPCOMING  = 'upcoming'
FILTER_COMPLETED = 'completed'

FILTERS = (FILTER_ALL, FILTER_ACTIVE, FILTER_SENDING, FILTER_UPCOMING, FILTER_COMPLETED)

# Searched case-insensitively
FOLDED_SEARCH_FIELDS = (
    'vehicle_id', 'name', 'origin', 'destination', 'status',
    'message_to_vehicle', 'linked_trip_id', 'invoice_ref',
)


def is_upcoming(
    announce_time: Optional[datetime],
    now:           datetime,
    minutes:       int = DEFAULT_UPCOMING_MINUTES,
) -> bool:
    """True if announce time is in the future and at most `minutes` away."""
    if announce_time is None:
        return False
    diff = announce_time - now
    return timedelta(0) < diff <= timedelta(minutes=minutes)


def _status_predicate(
    name:     str,
    now:      datetime,
    minutes:  int,
) -> Optional[Callable[[Record], bool]]:
    predicates: Dict[str, Optional[Callable[[Record], bool]]] = {
        FILTER_ALL:       None,
        FILTER_ACTIVE:    lambda r: not is_completed(r.status),
        FILTER_SENDING:   lambda r: is_sending(r.status),
        FILTER_UPCOMING:  lambda r: is_upcoming(r.announce_time, now, minutes),
        FILTER_COMPLETED: lambda r: is_completed(r.status),
    }
    if name not in predicates:
        raise ValueError(f"Unknown filter: {name}")
    return predicates[name]


def matches_search(record: Record, query: str) -> bool:
    if not query:
        return True
    q = query.lower()
    for name in FOLDED_SEARCH_FIELDS:
        value = getattr(record, name)
        if value and q in value.lower():
            return True
    return bool(record.phone) and q in record.phone


def filter_records(
    records:          List[Record],
    status_filter:    str                = FILTER_ALL,
    search:           str                = '',
    now:              Optional[datetime] = None,
    upcoming_minutes: int                = DEFAULT_UPCOMING_MINUTES,
) -> List[Record]:
    now = now or datetime.now()
    predicate = _status_predicate(status_filter, now, upcoming_minutes)
    filtered = records if predicate is None else [r for r in records if predicate(r)]
    if search:
        filtered = [r for r in filtered if matches_search(r, search)]
    return filtered
