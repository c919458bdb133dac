"""
wallboard/aggregators/stats.py
Aggregate counters over a record list, and the badge an external
indicator shows for them.

Badge priority: UNDER SENDING (red) > upcoming (yellow) > total (blue) > blank.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List

from wallboard.aggregators.filters import DEFAULT_UPCOMING_MINUTES, is_upcoming
from wallboard.models.record import Record
from wallboard.models.status import is_completed, is_sending

SENDING_COLOUR  = '#ef4444'
UPCOMING_COLOUR = '#fbbf24'
TOTAL_COLOUR    = '#3b82f6'


@dataclass
class Stats:
    total:      int = 0
    sending:    int = 0
    upcoming:   int = 0
    completed:  int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class ViewCounters:
    total:      int = 0
    sending:    int = 0
    upcoming:   int = 0
    active:     int = 0     # neither completed nor UNDER SENDING
    completed:  int = 0


@dataclass
class BadgeUpdate:
    sending_count:   int
    upcoming_count:  int
    total_count:     int


@dataclass
class Badge:
    text:    str
    colour:  str = ''


def compute_stats(
    records:          List[Record],
    now:              datetime,
    upcoming_minutes: int = DEFAULT_UPCOMING_MINUTES,
) -> Stats:
    return Stats(
        total     = len(records),
        sending   = sum(1 for r in records if is_sending(r.status)),
        upcoming  = sum(1 for r in records if is_upcoming(r.announce_time, now, upcoming_minutes)),
        completed = sum(1 for r in records if is_completed(r.status)),
    )


def compute_view_counters(
    records:          List[Record],
    now:              datetime,
    upcoming_minutes: int = DEFAULT_UPCOMING_MINUTES,
) -> ViewCounters:
    stats = compute_stats(records, now, upcoming_minutes)
    return ViewCounters(
        total     = stats.total,
        sending   = stats.sending,
        upcoming  = stats.upcoming,
        active    = sum(
            1 for r in records
            if not is_completed(r.status) and not is_sending(r.status)
        ),
        completed = stats.completed,
    )


def badge_update(
    records:          List[Record],
    now:              datetime,
    upcoming_minutes: int = DEFAULT_UPCOMING_MINUTES,
) -> BadgeUpdate:
    stats = compute_stats(records, now, upcoming_minutes)
    return BadgeUpdate(
        sending_count  = stats.sending,
        upcoming_count = stats.upcoming,
        total_count    = stats.total,
    )


def badge_for(update: BadgeUpdate) -> Badge:
    if update.sending_count > 0:
        return Badge(str(update.sending_count), SENDING_COLOUR)
    if update.upcoming_count > 0:
        return Badge(str(update.upcoming_count), UPCOMING_COLOUR)
    if update.total_count > 0:
        return Badge(str(update.total_count), TOTAL_COLOUR)
    return Badge('')


def badge_payload(update: BadgeUpdate) -> Dict[str, Any]:
    badge = badge_for(update)
    return {**asdict(update), 'text': badge.text, 'colour': badge.colour}
