"""
tests/test_parsers.py
Unit tests for the table locator, header mapper and row normalizer.
Synthetic booking pages only — no real data needed.
"""

from datetime import datetime

import pytest
from bs4 import BeautifulSoup

from conftest import NOW, ROOT, booking_table, page
from wallboard.parsers.header_mapper import map_headers
from wallboard.parsers.row_normalizer import extract_record_set, is_within_window
from wallboard.parsers.table_locator import (
    RESERVED_TABLE_ID,
    collect_documents,
    data_rows,
    find_header_row,
    locate_table,
    survey_tables,
)
from wallboard.models.status import classify_status, is_completed
from wallboard.sources.static_source import StaticDocumentSource


def _table(html: str):
    return BeautifulSoup(html, 'html.parser').find('table')


def _records(html: str, now: datetime = NOW, **pages):
    source = StaticDocumentSource(ROOT, {ROOT: html, **pages})
    return extract_record_set(collect_documents(source), now)


# ── LOCATOR ──────────────────────────────────────────────────

class TestTableLocator:

    def test_finds_table_by_header_keywords(self):
        html = page(
            '<table><tr><td>Meny</td></tr></table>',
            booking_table([{'vehicle_id': '12'}]),
        )
        source = StaticDocumentSource(ROOT, {ROOT: html})
        located = locate_table(collect_documents(source))
        assert located is not None
        assert 'TAXI' in located.table.get_text()

    def test_requires_time_or_origin_keyword(self):
        html = page(booking_table([], headers=['TAXI', 'STATUS', 'NAVN']))
        source = StaticDocumentSource(ROOT, {ROOT: html})
        assert locate_table(collect_documents(source)) is None

    def test_reserved_table_is_skipped(self):
        html = page(booking_table([{'vehicle_id': '1'}], table_id=RESERVED_TABLE_ID))
        source = StaticDocumentSource(ROOT, {ROOT: html})
        assert locate_table(collect_documents(source)) is None

    def test_same_origin_frame_is_searched(self):
        frame = 'http://portal.local/bookings.html'
        source = StaticDocumentSource(ROOT, {
            ROOT:  page('<iframe src="bookings.html"></iframe>'),
            frame: page(booking_table([{'vehicle_id': '7'}])),
        })
        documents = collect_documents(source)
        assert [d.location for d in documents] == [ROOT, frame]
        located = locate_table(documents)
        assert located.document.location == frame

    def test_cross_origin_frame_is_skipped(self):
        other = 'http://other.example/bookings.html'
        source = StaticDocumentSource(ROOT, {
            ROOT:  page(f'<iframe src="{other}"></iframe>'),
            other: page(booking_table([{'vehicle_id': '7'}])),
        })
        documents = collect_documents(source)
        assert len(documents) == 1
        assert locate_table(documents) is None

    def test_script_and_blank_frames_ignored(self):
        source = StaticDocumentSource(ROOT, {
            ROOT: page('<iframe src="about:blank"></iframe><frame src="javascript:void(0)">'),
        })
        assert len(collect_documents(source)) == 1

    def test_embedded_root_searches_only_itself(self):
        frame = 'http://portal.local/bookings.html'
        source = StaticDocumentSource(ROOT, {
            ROOT:  page('<iframe src="bookings.html"></iframe>'),
            frame: page(booking_table([{'vehicle_id': '7'}])),
        }, embedded=True)
        documents = collect_documents(source)
        assert len(documents) == 1
        assert documents[0].embedded is True

    def test_first_document_wins(self):
        frame = 'http://portal.local/bookings.html'
        source = StaticDocumentSource(ROOT, {
            ROOT:  page(booking_table([{'vehicle_id': 'root'}]), '<iframe src="bookings.html"></iframe>'),
            frame: page(booking_table([{'vehicle_id': 'frame'}])),
        })
        located = locate_table(collect_documents(source))
        assert located.document.location == ROOT

    def test_survey_lists_every_table(self):
        html = page('<table><tr><td>Meny</td></tr></table>', booking_table([{'vehicle_id': '1'}]))
        source = StaticDocumentSource(ROOT, {ROOT: html})
        summaries = survey_tables(collect_documents(source))
        assert len(summaries) == 2
        assert summaries[0].header_text == 'Meny'
        assert summaries[1].has_thead and summaries[1].row_count == 2


class TestHeaderRow:

    def test_thead_row_preferred(self):
        table = _table(booking_table([{'vehicle_id': '1'}]))
        assert find_header_row(table).parent.name == 'thead'

    def test_th_row_after_title_row(self):
        table = _table(
            '<table><tr><td colspan="3">Dagens turer</td></tr>'
            '<tr><th>TAXI</th><th>STATUS</th><th>FRA</th></tr>'
            '<tr><td>1</td><td>KONTANT</td><td>Vangen</td></tr></table>'
        )
        row = find_header_row(table)
        assert 'TAXI' in row.get_text()
        assert len(data_rows(table, row)) == 1

    def test_keyword_row_without_th(self):
        table = _table(
            '<table><tr><td>Oversikt</td></tr>'
            '<tr><td>TAXI</td><td>UTROP</td></tr>'
            '<tr><td>1</td><td>14:00</td></tr></table>'
        )
        assert find_header_row(table).get_text() == 'TAXIUTROP'

    def test_falls_back_to_first_row(self):
        table = _table('<table><tr><td>A</td><td>B</td></tr><tr><td>1</td><td>2</td></tr></table>')
        assert find_header_row(table).get_text() == 'AB'

    def test_empty_table_has_no_header(self):
        assert find_header_row(_table('<table></table>')) is None


# ── HEADER MAPPER ────────────────────────────────────────────

class TestHeaderMapper:

    def test_exact_match(self):
        hm = map_headers(['TAXI', 'STATUS', 'UTROP', 'FRA'])
        assert hm.columns == {'vehicle_id': 0, 'status': 1, 'announce_raw': 2, 'origin': 3}

    def test_headers_are_trimmed_and_upper_cased(self):
        hm = map_headers([' navn ', 'Oppmøte'])
        assert hm.raw_headers == ['NAVN', 'OPPMØTE']
        assert hm.columns == {'name': 0, 'meet_raw': 1}

    def test_unaccented_spelling(self):
        assert map_headers(['OPPMOTE']).columns == {'meet_raw': 0}

    def test_substring_match(self):
        hm = map_headers(['TAXI NR', 'BETALING'])
        assert hm.columns == {'vehicle_id': 0, 'payment_method': 1}

    def test_exact_match_never_overwritten_by_substring(self):
        # TURID is exact at 1; ALTTURID (exact at 0) must not feed trip_id
        hm = map_headers(['ALTTURID', 'TURID'])
        assert hm.columns == {'linked_trip_id': 0, 'trip_id': 1}

    def test_claimed_column_not_reused_by_substring(self):
        hm = map_headers(['ALTTURID'])
        assert hm.columns == {'linked_trip_id': 0}

    def test_exact_pass_runs_before_substring(self):
        hm = map_headers(['STATUS KODE', 'STATUS'])
        assert hm.index_of('status') == 1

    def test_unmapped_headers_ignored(self):
        hm = map_headers(['XYZ', 'TAXI'])
        assert hm.columns == {'vehicle_id': 1}
        assert hm.raw_headers == ['XYZ', 'TAXI']


# ── ROW NORMALIZER ───────────────────────────────────────────

class TestRowNormalizer:

    def test_dispatch_scenario(self):
        html = page(
            '<table><tr><th>TAXI</th><th>STATUS</th><th>UTROP</th><th>FRA</th></tr>'
            '<tr><td>12</td><td>UNDER SENDING</td><td>14:05</td><td>Main St</td></tr></table>'
        )
        rs = _records(html)
        assert rs.table_found
        assert len(rs) == 1
        r = rs.records[0]
        assert (r.vehicle_id, r.status, r.announce_raw, r.origin) == ('12', 'UNDER SENDING', '14:05', 'Main St')
        assert r.announce_time == datetime(2026, 10, 16, 14, 5)
        assert classify_status(r.status) == 'sending'
        assert not is_completed(r.status)

    def test_status_upper_cased(self):
        rs = _records(page(booking_table([{'vehicle_id': '1', 'status': 'kontant'}])))
        assert rs.records[0].status == 'KONTANT'

    def test_window_excludes_25h_old_meet_time(self):
        rows = [
            {'vehicle_id': 'old',     'meet_raw': '2026-10-15 13:00'},   # now - 25h
            {'vehicle_id': 'recent',  'meet_raw': '2026-10-15 15:00'},   # now - 23h
            {'vehicle_id': 'unknown', 'meet_raw': 'snart'},
        ]
        rs = _records(page(booking_table(rows)))
        assert [r.vehicle_id for r in rs] == ['recent', 'unknown']
        assert rs.diagnostics.filtered_by_window == 1

    def test_window_is_symmetric(self):
        rows = [{'vehicle_id': 'far', 'meet_raw': '2026-10-17 15:00'}]   # now + 25h
        assert len(_records(page(booking_table(rows)))) == 0

    def test_is_within_window_bounds(self):
        assert is_within_window(None, NOW)
        assert is_within_window(datetime(2026, 10, 15, 14, 0), NOW)
        assert not is_within_window(datetime(2026, 10, 15, 13, 59), NOW)

    def test_empty_and_short_rows_are_counted(self):
        html = page(
            '<table><thead><tr><th>TAXI</th><th>STATUS</th><th>UTROP</th><th>TLF</th></tr></thead><tbody>'
            '<tr><td>1</td><td>KONTANT</td><td>14:00</td><td></td></tr>'
            '<tr><td colspan="4">Ingen flere</td></tr>'
            '<tr><td></td><td></td><td></td><td>99887766</td></tr>'
            '</tbody></table>'
        )
        d = _records(html).diagnostics
        assert d.total_rows == 3
        assert d.parsed_rows == 1
        assert d.skipped_few_cells == 1
        assert d.skipped_empty == 1

    def test_missing_cells_default_to_empty(self):
        html = page(
            '<table><tr><th>TAXI</th><th>STATUS</th><th>FRA</th><th>NAVN</th></tr>'
            '<tr><td>5</td><td>ENDRET</td></tr></table>'
        )
        r = _records(html).records[0]
        assert r.origin == '' and r.name == ''

    def test_diagnostics_keep_three_samples(self):
        rows = [{'vehicle_id': str(i), 'announce_raw': '14:0%d' % i} for i in range(5)]
        d = _records(page(booking_table(rows))).diagnostics
        assert len(d.sample_rows) == 3
        assert d.sample_rows[0].announce_time == datetime(2026, 10, 16, 14, 0)
        assert d.sample_rows[0].in_window is None
        assert d.header_cols == len(d.mapped_columns) == 10

    def test_not_found_is_empty_record_set(self):
        rs = _records(page('<p>Laster...</p>'))
        assert not rs.table_found
        assert len(rs) == 0
        assert rs.diagnostics.documents_scanned == 1

    def test_ids_are_stable_across_passes(self):
        html = page(booking_table([
            {'vehicle_id': '3', 'announce_raw': '14:10', 'origin': 'Vangen', 'name': 'Olsen'},
            {'trip_id': 'T-9', 'vehicle_id': '4'},
        ]))
        first = [r.id for r in _records(html)]
        second = [r.id for r in _records(html)]
        assert first == second == ['14:10|3|Vangen|Olsen', 'T-9']
