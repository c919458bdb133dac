"""
tests/test_alerts.py
Announce-bucket chime, UNDER SENDING reminder, new-record sound, sounders.
"""

import io
from datetime import datetime, timedelta

from conftest import NOW
from wallboard.audio import (
    ANNOUNCE_CHIME,
    CHIMES,
    NEW_RECORD,
    SENDING_CHIME,
    BellSounder,
    RecordingSounder,
    Sounder,
)
from wallboard.detectors.alert_scheduler import AlertScheduler
from wallboard.detectors.change_detector import ChangeReport
from wallboard.models.record import Record


class _Holder:
    """Stands in for the registry: alerts read records through a callable."""

    def __init__(self, *records):
        self.records = list(records)

    def __call__(self):
        return self.records


def _alerts(loop, holder, **kwargs):
    sounder = RecordingSounder()
    return AlertScheduler(sounder, loop, holder, **kwargs), sounder


class TestAnnounceChime:

    def test_one_chime_per_cycle(self, loop):
        holder = _Holder(
            Record(trip_id='a', announce_time=NOW + timedelta(minutes=1)),
            Record(trip_id='b', announce_time=NOW + timedelta(minutes=2)),
        )
        alerts, sounder = _alerts(loop, holder)
        assert alerts.check_announce_chime(NOW) == 'a'
        assert sounder.played == [ANNOUNCE_CHIME]
        assert alerts.check_announce_chime(NOW) == 'b'
        assert alerts.check_announce_chime(NOW) is None
        assert sounder.played == [ANNOUNCE_CHIME, ANNOUNCE_CHIME]

    def test_chime_deduplicated_across_passes(self, loop):
        holder = _Holder(Record(trip_id='a', announce_time=NOW))
        alerts, sounder = _alerts(loop, holder)
        for second in range(0, 240, 4):
            alerts.check_announce_chime(NOW + timedelta(seconds=second))
        assert sounder.played == [ANNOUNCE_CHIME]

    def test_other_bucket_does_not_chime(self, loop):
        holder = _Holder(
            Record(trip_id='a', announce_time=NOW + timedelta(minutes=5)),
            Record(trip_id='b'),
        )
        alerts, sounder = _alerts(loop, holder)
        assert alerts.check_announce_chime(NOW) is None
        assert sounder.played == []

    def test_bucket_uses_minute_of_day_only(self, loop):
        holder = _Holder(Record(trip_id='a', announce_time=NOW - timedelta(days=1)))
        alerts, _ = _alerts(loop, holder)
        assert alerts.check_announce_chime(NOW) == 'a'

    def test_chime_memory_kept_by_default(self, loop):
        holder = _Holder(Record(trip_id='a', announce_time=NOW))
        alerts, _ = _alerts(loop, holder)
        alerts.check_announce_chime(NOW)
        holder.records = []
        alerts.check_announce_chime(NOW)
        assert alerts.state.chimed == {'a'}

    def test_prune_chimed_drops_absent_ids(self, loop):
        holder = _Holder(Record(trip_id='a', announce_time=NOW))
        alerts, _ = _alerts(loop, holder, prune_chimed=True)
        alerts.check_announce_chime(NOW)
        holder.records = []
        alerts.check_announce_chime(NOW)
        assert alerts.state.chimed == set()


class TestSendingReminder:

    def test_immediate_chime_then_every_30s(self, loop):
        holder = _Holder(Record(trip_id='a', status='UNDER SENDING'))
        alerts, sounder = _alerts(loop, holder)
        alerts.check_sending_reminder()
        assert sounder.played == [SENDING_CHIME]
        assert alerts.reminder_active

        alerts.check_sending_reminder()
        assert sounder.played == [SENDING_CHIME]

        loop.advance(30)
        assert sounder.played == [SENDING_CHIME, SENDING_CHIME]
        loop.advance(30)
        assert len(sounder.played) == 3

    def test_cancelled_when_condition_clears(self, loop):
        holder = _Holder(Record(trip_id='a', status='UNDER SENDING'))
        alerts, sounder = _alerts(loop, holder)
        alerts.check_sending_reminder()
        holder.records = [Record(trip_id='a', status='KONTANT')]
        alerts.check_sending_reminder()
        assert not alerts.reminder_active
        assert loop.pending == []
        loop.advance(60)
        assert sounder.played == [SENDING_CHIME]

    def test_tick_self_cancels(self, loop):
        holder = _Holder(Record(trip_id='a', status='UNDER SENDING'))
        alerts, sounder = _alerts(loop, holder)
        alerts.check_sending_reminder()
        holder.records = []
        loop.advance(30)
        assert not alerts.reminder_active
        assert sounder.played == [SENDING_CHIME]

    def test_custom_interval(self, loop):
        holder = _Holder(Record(trip_id='a', status='UNDER SENDING'))
        alerts, sounder = _alerts(loop, holder, reminder_interval=10)
        alerts.check_sending_reminder()
        loop.advance(10)
        assert len(sounder.played) == 2


class TestNewRecordSound:

    def test_not_on_first_pass(self, loop):
        alerts, sounder = _alerts(loop, _Holder())
        report = ChangeReport(changed=True, new_ids=frozenset({'x'}), successful_passes=1)
        assert not alerts.on_change(report)
        assert sounder.played == []

    def test_from_second_pass(self, loop):
        alerts, sounder = _alerts(loop, _Holder())
        report = ChangeReport(changed=True, new_ids=frozenset({'x'}), successful_passes=2)
        assert alerts.on_change(report)
        assert sounder.played == [NEW_RECORD]

    def test_no_new_ids_no_sound(self, loop):
        alerts, sounder = _alerts(loop, _Holder())
        assert not alerts.on_change(ChangeReport(changed=True, successful_passes=5))


class TestSounders:

    def test_muted_plays_nothing(self):
        sounder = RecordingSounder(muted=True)
        assert not sounder.play(ANNOUNCE_CHIME)
        assert sounder.played == []

    def test_unknown_chime(self):
        assert not RecordingSounder().play('fanfare')

    def test_backend_failure_is_swallowed(self):
        class Broken(Sounder):
            def _emit(self, name, tones):
                raise OSError('no audio device')

        assert Broken().play(SENDING_CHIME) is False

    def test_bell_rings_once_per_tone(self):
        stream = io.StringIO()
        BellSounder(stream=stream).play(SENDING_CHIME)
        assert stream.getvalue() == '\a' * len(CHIMES[SENDING_CHIME])

    def test_chime_definitions(self):
        assert [t.freq_hz for t in CHIMES[ANNOUNCE_CHIME]] == [880, 1100]
        assert [t.freq_hz for t in CHIMES[NEW_RECORD]] == [700, 900]
        assert all(t.wave == 'triangle' for t in CHIMES[SENDING_CHIME])
