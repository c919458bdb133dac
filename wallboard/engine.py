"""
wallboard/engine.py
The wallboard engine: one instance owns every piece of mutable state —
current snapshot, chime memory, reminder timer, UI selection — and
run_pass() is the single pipeline entry point.

Consumers never touch that state directly. They register sinks
(on_view / on_badge / on_scroll / on_clock) and read derived snapshots
through the query methods.

USAGE:
  engine = Engine(source, loop)
  engine.on_view(lambda view: ...)
  engine.run_pass()
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from wallboard.aggregators.filters import FILTERS
from wallboard.aggregators.grouping import ASCENDING, DESCENDING, SORT_KEYS
from wallboard.aggregators.presentation import (
    ActivityTracker,
    UIState,
    View,
    auto_scroll_target,
    build_view,
    clock_text,
    status_indicator,
    time_since,
)
from wallboard.aggregators.stats import BadgeUpdate, Stats, badge_update, compute_stats
from wallboard.audio import LoggingSounder, Sounder
from wallboard.config import EngineSettings
from wallboard.detectors.alert_scheduler import AlertScheduler
from wallboard.detectors.change_detector import ChangeReport, RecordRegistry
from wallboard.models.record import ParseDiagnostics, Record, RecordSet
from wallboard.parsers.row_normalizer import extract_record_set
from wallboard.parsers.table_locator import (
    TableSummary,
    collect_documents,
    locate_table,
    survey_tables,
)
from wallboard.sources.base import Document, DocumentSource, DocumentUnavailable

logger = logging.getLogger(__name__)

ViewSink   = Callable[[View], None]
BadgeSink  = Callable[[BadgeUpdate], None]
ScrollSink = Callable[[str], None]
ClockSink  = Callable[[Dict[str, str]], None]


class Engine:

    def __init__(
        self,
        source:   DocumentSource,
        loop:     Any,
        sounder:  Optional[Sounder]                  = None,
        settings: Optional[EngineSettings]           = None,
        ui:       Optional[UIState]                  = None,
        now:      Optional[Callable[[], datetime]]   = None,
    ):
        self.source   = source
        self.loop     = loop
        self.settings = settings or EngineSettings()
        self.sounder  = sounder or LoggingSounder()
        self.ui       = ui or UIState()
        self._now     = now or datetime.now

        self.registry = RecordRegistry()
        self.alerts   = AlertScheduler(
            sounder           = self.sounder,
            loop              = loop,
            records           = lambda: self.registry.records,
            bucket_minutes    = self.settings.bucket_minutes,
            reminder_interval = self.settings.reminder_interval,
            prune_chimed      = self.settings.prune_chimed,
        )
        self.activity = ActivityTracker(self.settings.idle_seconds, clock=loop.time)

        self.view:          View                     = View()
        self.new_ids                                 = frozenset()
        self.parse_count:   int                      = 0
        self.last_parse_at: Optional[datetime]       = None
        self._documents:    List[Document]           = []
        self._table_found:  bool                     = False

        self._view_sinks:   List[ViewSink]   = []
        self._badge_sinks:  List[BadgeSink]  = []
        self._scroll_sinks: List[ScrollSink] = []
        self._clock_sinks:  List[ClockSink]  = []

    # ── SINKS ────────────────────────────────────────────────
    def on_view(self, sink: ViewSink) -> None:
        self._view_sinks.append(sink)

    def on_badge(self, sink: BadgeSink) -> None:
        self._badge_sinks.append(sink)

    def on_scroll(self, sink: ScrollSink) -> None:
        self._scroll_sinks.append(sink)

    def on_clock(self, sink: ClockSink) -> None:
        self._clock_sinks.append(sink)

    # ── PIPELINE ─────────────────────────────────────────────
    def _read(self, now: datetime) -> RecordSet:
        try:
            documents = collect_documents(self.source)
        except DocumentUnavailable as e:
            logger.debug(f"Source unavailable: {e}")
            self._documents = []
            return RecordSet(diagnostics=ParseDiagnostics(current_time=now.isoformat()))
        self._documents = documents
        return extract_record_set(documents, now, self.settings.window_hours)

    def locate(self) -> bool:
        """True if the booking table can be found right now."""
        try:
            documents = collect_documents(self.source)
        except DocumentUnavailable as e:
            logger.debug(f"Source unavailable: {e}")
            return False
        return locate_table(documents) is not None

    def run_pass(self) -> ChangeReport:
        now = self._now()
        record_set = self._read(now)

        if record_set.table_found:
            self.parse_count  += 1
            self.last_parse_at = now
        if record_set.table_found != self._table_found:
            self._table_found = record_set.table_found
            if record_set.table_found:
                logger.info(f"Booking table found ({len(record_set)} records)")
            else:
                logger.info("Booking table lost, searching again")

        report = self.registry.update(record_set)
        if report.changed:
            self.new_ids = report.new_ids
            self.refresh_view(now)
            self.push_badge(now)
            self.alerts.on_change(report)

        # Per-cycle checks run whether or not the snapshot changed
        self.alerts.check_announce_chime(now)
        self.alerts.check_sending_reminder()
        self.check_auto_scroll()
        return report

    # ── VIEW ─────────────────────────────────────────────────
    def refresh_view(self, now: Optional[datetime] = None) -> View:
        now = now or self._now()
        self.view = build_view(
            self.registry.records,
            self.ui,
            now,
            new_ids          = self.new_ids,
            upcoming_minutes = self.settings.upcoming_minutes,
        )
        for sink in list(self._view_sinks):
            sink(self.view)
        return self.view

    def push_badge(self, now: Optional[datetime] = None) -> BadgeUpdate:
        update = badge_update(
            self.registry.records,
            now or self._now(),
            self.settings.upcoming_minutes,
        )
        for sink in list(self._badge_sinks):
            sink(update)
        return update

    def check_auto_scroll(self) -> Optional[str]:
        if not self.activity.is_idle():
            return None
        target = auto_scroll_target(self.view)
        if target is not None:
            for sink in list(self._scroll_sinks):
                sink(target)
        return target

    def tick_clock(self) -> Dict[str, str]:
        now = self._now()
        clock, date = clock_text(now)
        state = {
            'clock':   clock,
            'date':    date,
            'updated': time_since(self.last_parse_at, now),
        }
        for sink in list(self._clock_sinks):
            sink(state)
        return state

    # ── UI STATE ─────────────────────────────────────────────
    def set_filter(self, status_filter: str) -> View:
        if status_filter not in FILTERS:
            raise ValueError(f"Unknown filter: {status_filter}")
        self.ui.status_filter = status_filter
        return self.refresh_view()

    def set_search(self, search: str) -> View:
        self.ui.search = (search or '').strip()
        return self.refresh_view()

    def set_sort(self, key: str, direction: Optional[str] = None) -> View:
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        if direction is not None and direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"Unknown sort direction: {direction}")
        self.ui.sort_key = key
        if direction is not None:
            self.ui.sort_direction = direction
        return self.refresh_view()

    def toggle_sort_direction(self) -> View:
        self.ui.sort_direction = DESCENDING if self.ui.sort_direction == ASCENDING else ASCENDING
        return self.refresh_view()

    @property
    def muted(self) -> bool:
        return self.sounder.muted

    def set_muted(self, muted: bool) -> None:
        self.sounder.muted = bool(muted)
        logger.info(f"Sound {'muted' if muted else 'on'}")

    def touch(self) -> None:
        self.activity.touch()

    # ── QUERIES ──────────────────────────────────────────────
    @property
    def records(self) -> List[Record]:
        return self.registry.records

    @property
    def table_found(self) -> bool:
        return self.registry.current.table_found

    def get_stats(self, filtered: bool = False) -> Stats:
        records = self.view.records if filtered else self.registry.records
        return compute_stats(records, self._now(), self.settings.upcoming_minutes)

    def get_badge(self) -> BadgeUpdate:
        return badge_update(self.registry.records, self._now(), self.settings.upcoming_minutes)

    def status(self) -> Dict[str, str]:
        state, text = status_indicator(self.table_found, len(self.registry.records))
        return {
            'state':   state,
            'text':    text,
            'updated': time_since(self.last_parse_at, self._now()),
        }

    def survey(self) -> List[TableSummary]:
        return survey_tables(self._documents)

    def get_diagnostics(self) -> Dict[str, Any]:
        diagnostics: ParseDiagnostics = self.registry.current.diagnostics
        return {
            'diagnostics':       diagnostics,
            'tables':            self.survey(),
            'parse_count':       self.parse_count,
            'table_found':       self.table_found,
            'documents_scanned': diagnostics.documents_scanned,
            'last_parse_at':     self.last_parse_at,
        }

    def shutdown(self) -> None:
        self.alerts.cancel_reminder()
