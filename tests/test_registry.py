"""
tests/test_registry.py
Record registry: signature comparison and new/removed id diffing.
"""

from wallboard.detectors.change_detector import RecordRegistry, signature_of
from wallboard.models.record import ParseDiagnostics, Record, RecordSet


def _found(*records: Record) -> RecordSet:
    return RecordSet(records=list(records), diagnostics=ParseDiagnostics(table_found=True))


def _lost() -> RecordSet:
    return RecordSet(diagnostics=ParseDiagnostics(table_found=False))


A = Record(trip_id='A', status='KONTANT')
B = Record(trip_id='B', status='ENDRET')
C = Record(trip_id='C', status='UNDER SENDING')


class TestRecordIdentity:

    def test_trip_id_first(self):
        assert Record(trip_id='T1', invoice_ref='F1').id == 'T1'

    def test_invoice_ref_second(self):
        assert Record(invoice_ref='F1', vehicle_id='3').id == 'F1'

    def test_composite_skips_empty_parts(self):
        assert Record(announce_raw='14:00', name='Olsen').id == '14:00|Olsen'


class TestRecordRegistry:

    def test_first_population_has_no_new_ids(self):
        registry = RecordRegistry()
        report = registry.update(_found(A, B))
        assert report.changed
        assert report.new_ids == frozenset()
        assert report.successful_passes == 1

    def test_identical_set_is_unchanged(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        report = registry.update(_found(Record(trip_id='A', status='KONTANT'), B))
        assert not report.changed
        assert report.new_ids == frozenset()
        assert report.successful_passes == 2

    def test_unchanged_pass_keeps_latest_diagnostics(self):
        registry = RecordRegistry()
        registry.update(_found(A))
        fresh = _found(A)
        fresh.diagnostics.total_rows = 7
        registry.update(fresh)
        assert registry.current.diagnostics.total_rows == 7

    def test_added_record_reported_as_new(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        report = registry.update(_found(A, B, C))
        assert report.changed
        assert report.new_ids == frozenset({'C'})
        assert report.removed_ids == frozenset()

    def test_removed_record(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        report = registry.update(_found(A))
        assert report.removed_ids == frozenset({'B'})

    def test_status_flip_is_a_change_without_new_ids(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        report = registry.update(_found(A, Record(trip_id='B', status='KONTANT')))
        assert report.changed
        assert report.new_ids == frozenset()

    def test_reorder_is_a_change(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        assert registry.update(_found(B, A)).changed

    def test_non_status_edit_is_not_a_change(self):
        registry = RecordRegistry()
        registry.update(_found(A))
        edited = Record(trip_id='A', status='KONTANT', phone='99887766')
        assert not registry.update(_found(edited)).changed

    def test_lost_table_keeps_id_baseline(self):
        registry = RecordRegistry()
        registry.update(_found(A, B))
        lost = registry.update(_lost())
        assert lost.changed
        assert registry.records == []
        back = registry.update(_found(A, B))
        assert back.new_ids == frozenset()

    def test_not_found_passes_do_not_count(self):
        registry = RecordRegistry()
        registry.update(_lost())
        report = registry.update(_found(A))
        assert report.successful_passes == 1
        assert report.new_ids == frozenset()

    def test_signature_is_order_sensitive(self):
        assert signature_of([A, B]) != signature_of([B, A])
