"""
wallboard/detectors/alert_scheduler.py
Decides when to make noise. Three independent policies:

  - announce chime: once per booking when the current 5-minute bucket of
    the day equals the bucket of its UTROP time; at most one chime per
    cycle so bursts of equal times do not overlap
  - sending reminder: immediate chime when any booking is UNDER SENDING,
    repeated every 30s while that holds; cancelled the moment it stops
  - new-record sound: when the registry reports new ids, from the second
    successful pass onward

Chime memory is append-only unless prune_chimed is set.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional, Set

from wallboard.audio import ANNOUNCE_CHIME, NEW_RECORD, SENDING_CHIME, Sounder
from wallboard.detectors.change_detector import ChangeReport
from wallboard.models.record import Record
from wallboard.models.status import is_sending
from wallboard.parsers.time_parser import minute_bucket

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_MINUTES    = 5
DEFAULT_REMINDER_INTERVAL = 30.0


@dataclass
class AlertState:
    chimed:           Set[str]       = field(default_factory=set)
    reminder_handle:  Optional[Any]  = None


def any_sending(records: List[Record]) -> bool:
    return any(is_sending(r.status) for r in records)


class AlertScheduler:

    def __init__(
        self,
        sounder:           Sounder,
        loop:              Any,
        records:           Callable[[], List[Record]],
        bucket_minutes:    int   = DEFAULT_BUCKET_MINUTES,
        reminder_interval: float = DEFAULT_REMINDER_INTERVAL,
        prune_chimed:      bool  = False,
    ):
        self.sounder           = sounder
        self.loop              = loop
        self.records           = records
        self.bucket_minutes    = bucket_minutes
        self.reminder_interval = reminder_interval
        self.prune_chimed      = prune_chimed
        self.state             = AlertState()

    @property
    def reminder_active(self) -> bool:
        return self.state.reminder_handle is not None

    # ── ANNOUNCE BUCKET ──────────────────────────────────────
    def check_announce_chime(self, now: datetime) -> Optional[str]:
        """Fire at most one bucket chime. Returns the id that chimed."""
        records = self.records()
        if self.prune_chimed:
            self.state.chimed &= {r.id for r in records}

        current = minute_bucket(now, self.bucket_minutes)
        for record in records:
            if record.announce_time is None:
                continue
            if minute_bucket(record.announce_time, self.bucket_minutes) != current:
                continue
            if record.id in self.state.chimed:
                continue
            self.state.chimed.add(record.id)
            logger.info(f"UTROP chime for {record.id} (bucket {current})")
            self.sounder.play(ANNOUNCE_CHIME)
            return record.id
        return None

    # ── SENDING REMINDER ─────────────────────────────────────
    def check_sending_reminder(self) -> None:
        sending = any_sending(self.records())
        if sending and self.state.reminder_handle is None:
            logger.info("UNDER SENDING present — starting reminder")
            self.sounder.play(SENDING_CHIME)
            self._schedule_reminder()
        elif not sending and self.state.reminder_handle is not None:
            logger.info("UNDER SENDING cleared — stopping reminder")
            self.cancel_reminder()

    def _schedule_reminder(self) -> None:
        self.state.reminder_handle = self.loop.call_later(
            self.reminder_interval, self._reminder_tick
        )

    def _reminder_tick(self) -> None:
        self.state.reminder_handle = None
        if any_sending(self.records()):
            self.sounder.play(SENDING_CHIME)
            self._schedule_reminder()
        else:
            logger.info("UNDER SENDING cleared — reminder stopped")

    def cancel_reminder(self) -> None:
        if self.state.reminder_handle is not None:
            self.state.reminder_handle.cancel()
            self.state.reminder_handle = None

    # ── NEW RECORDS ──────────────────────────────────────────
    def on_change(self, report: ChangeReport) -> bool:
        if report.new_ids and report.successful_passes > 1:
            logger.info(f"{len(report.new_ids)} new booking(s)")
            self.sounder.play(NEW_RECORD)
            return True
        return False
