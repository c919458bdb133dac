"""
wallboard/aggregators/presentation.py
Presentation state for whatever draws the wallboard: the ordered, filtered
row list with per-row classes, group markers and countdowns, plus the
status line, clock text and auto-scroll target.

Nothing here renders markup — consumers decide how a row looks.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from wallboard.aggregators.filters import (
    DEFAULT_UPCOMING_MINUTES,
    FILTER_ALL,
    filter_records,
    is_upcoming,
)
from wallboard.aggregators.grouping import ASCENDING, sort_and_group
from wallboard.aggregators.stats import ViewCounters, compute_view_counters
from wallboard.models.record import Record
from wallboard.models.status import (
    CHANGED_STATUS,
    INVOICE_READY,
    MANUAL_STATUS,
    is_completed,
    is_sending,
    status_slug,
)

WEEKDAYS_NO = ['Mandag', 'Tirsdag', 'Onsdag', 'Torsdag', 'Fredag', 'Lordag', 'Sondag']
MONTHS_NO   = ['jan', 'feb', 'mar', 'apr', 'mai', 'jun', 'jul', 'aug', 'sep', 'okt', 'nov', 'des']

VEHICLE_COLOURS = [
    '#60a5fa', '#f87171', '#34d399', '#fbbf24', '#a78bfa',
    '#fb923c', '#38bdf8', '#f472b6', '#4ade80', '#e879f9',
    '#22d3ee', '#facc15', '#818cf8', '#fb7185', '#2dd4bf',
]

ROW_SENDING   = 'sending'
ROW_UPCOMING  = 'upcoming'
ROW_CHANGED   = 'changed'
ROW_MANUAL    = 'manual'
ROW_COMPLETED = 'completed'
ROW_ACTIVE    = 'active'


@dataclass
class UIState:
    sort_key:        str = 'announce_time'
    sort_direction:  str = ASCENDING
    status_filter:   str = FILTER_ALL
    search:          str = ''


@dataclass
class ViewRow:
    record:          Record
    row_class:       str
    status_slug:     str
    grouped:         bool = False
    group_start:     bool = False
    group_end:       bool = False
    is_new:          bool = False
    countdown:       str  = ''
    vehicle_colour:  str  = ''


@dataclass
class View:
    rows:      List[ViewRow]  = field(default_factory=list)
    counters:  ViewCounters   = field(default_factory=ViewCounters)

    @property
    def records(self) -> List[Record]:
        return [row.record for row in self.rows]


# ── ROW HELPERS ──────────────────────────────────────────────

def is_future_trip(record: Record, now: datetime) -> bool:
    if record.announce_time and record.announce_time > now:
        return True
    if record.meet_time and record.meet_time > now:
        return True
    return False


def row_class(
    record:           Record,
    now:              datetime,
    upcoming_minutes: int = DEFAULT_UPCOMING_MINUTES,
) -> str:
    if is_sending(record.status):
        return ROW_SENDING
    if is_upcoming(record.announce_time, now, upcoming_minutes):
        return ROW_UPCOMING
    if record.status == CHANGED_STATUS:
        return ROW_CHANGED
    if record.status == MANUAL_STATUS:
        return ROW_MANUAL
    # A settled booking that has not happened yet still counts as active
    if is_completed(record.status) and not is_future_trip(record, now):
        return ROW_COMPLETED
    return ROW_ACTIVE


def countdown(
    announce_time:    Optional[datetime],
    now:              datetime,
    upcoming_minutes: int = DEFAULT_UPCOMING_MINUTES,
) -> str:
    """m:ss until announce time, only while upcoming."""
    if not is_upcoming(announce_time, now, upcoming_minutes):
        return ''
    secs = int((announce_time - now).total_seconds())
    return f"{secs // 60}:{secs % 60:02d}"


_colour_cache: Dict[str, str] = {}


def vehicle_colour(vehicle_id: str) -> str:
    if not vehicle_id:
        return ''
    cached = _colour_cache.get(vehicle_id)
    if cached:
        return cached
    h = 0
    for ch in vehicle_id:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    colour = VEHICLE_COLOURS[abs(h) % len(VEHICLE_COLOURS)]
    _colour_cache[vehicle_id] = colour
    return colour


# ── VIEW ─────────────────────────────────────────────────────

def build_view(
    records:          List[Record],
    ui:               UIState,
    now:              datetime,
    new_ids:          FrozenSet[str] = frozenset(),
    upcoming_minutes: int            = DEFAULT_UPCOMING_MINUTES,
) -> View:
    ordered   = sort_and_group(records, ui.sort_key, ui.sort_direction)
    displayed = filter_records(ordered, ui.status_filter, ui.search, now, upcoming_minutes)

    group_ids: Dict[str, List[str]] = {}
    for record in displayed:
        if record.linked_trip_id:
            group_ids.setdefault(record.linked_trip_id, []).append(record.id)

    group_active: Dict[str, bool] = {}
    for linked, ids in group_ids.items():
        if len(ids) > 1:
            group_active[linked] = any(
                r.linked_trip_id == linked and not is_completed(r.status)
                for r in displayed
            )

    rows: List[ViewRow] = []
    for record in displayed:
        ids     = group_ids.get(record.linked_trip_id, []) if record.linked_trip_id else []
        grouped = len(ids) > 1
        klass   = row_class(record, now, upcoming_minutes)
        if grouped and group_active.get(record.linked_trip_id) and klass == ROW_COMPLETED:
            klass = ROW_ACTIVE

        rows.append(ViewRow(
            record         = record,
            row_class      = klass,
            status_slug    = status_slug(record.status),
            grouped        = grouped,
            group_start    = grouped and ids.index(record.id) == 0,
            group_end      = grouped and ids.index(record.id) == len(ids) - 1,
            is_new         = record.id in new_ids,
            countdown      = countdown(record.announce_time, now, upcoming_minutes),
            vehicle_colour = vehicle_colour(record.vehicle_id),
        ))

    return View(rows=rows, counters=compute_view_counters(displayed, now, upcoming_minutes))


# ── STATUS LINE / CLOCK ──────────────────────────────────────

def status_indicator(table_found: bool, record_count: int) -> Tuple[str, str]:
    if not table_found:
        return ('searching', 'Searching for table...')
    if record_count == 0:
        return ('empty', 'Table found, no data')
    return ('connected', f'Live — {record_count} bookings')


def time_since(last: Optional[datetime], now: datetime) -> str:
    if last is None:
        return 'never'
    secs = int((now - last).total_seconds())
    if secs < 5:
        return 'just now'
    if secs < 60:
        return f'{secs}s ago'
    return f'{secs // 60}m ago'


def format_time(moment: Optional[datetime]) -> str:
    return moment.strftime('%H:%M') if moment else '—'


def clock_text(now: datetime) -> Tuple[str, str]:
    """('14:05:09', 'Fredag 16. okt 2026')"""
    date = f"{WEEKDAYS_NO[now.weekday()]} {now.day}. {MONTHS_NO[now.month - 1]} {now.year}"
    return now.strftime('%H:%M:%S'), date


# ── AUTO-SCROLL ──────────────────────────────────────────────

DEFAULT_IDLE_SECONDS = 45.0


class ActivityTracker:
    """Remembers the last user interaction; idle after `idle_seconds`."""

    def __init__(self, idle_seconds: float = DEFAULT_IDLE_SECONDS, clock: Optional[Callable[[], float]] = None):
        self.idle_seconds = idle_seconds
        self._clock       = clock or time.monotonic
        self.last_activity = self._clock()

    def touch(self) -> None:
        self.last_activity = self._clock()

    def is_idle(self) -> bool:
        return self._clock() - self.last_activity > self.idle_seconds


def auto_scroll_target(view: View) -> Optional[str]:
    """First displayed booking that is not already invoice-ready."""
    for row in view.rows:
        if row.record.status != INVOICE_READY:
            return row.record.id
    return None
