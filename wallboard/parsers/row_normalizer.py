"""
wallboard/parsers/row_normalizer.py
Turns the located booking table into a RecordSet.

Rows are dropped, not fatal:
  - fewer than 2 <td> cells                  → skipped_few_cells
  - UTROP, OPPMØTE, STATUS, TAXI, FRA, NAVN all empty → skipped_empty
  - OPPMØTE parsed but outside ±window hours → filtered_by_window
An OPPMØTE that does not parse keeps the row (fail open).
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from bs4.element import Tag

from wallboard.models.record import ParseDiagnostics, Record, RecordSet, SampleRow
from wallboard.parsers.header_mapper import CANONICAL_FIELDS, HeaderMap, map_header_row
from wallboard.parsers.table_locator import data_rows, find_header_row, locate_table
from wallboard.parsers.time_parser import parse_time
from wallboard.sources.base import Document

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_HOURS = 24
SAMPLE_ROW_LIMIT     = 3


def is_within_window(
    moment:       Optional[datetime],
    now:          datetime,
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> bool:
    if moment is None:
        return True
    span = timedelta(hours=window_hours)
    return now - span <= moment <= now + span


def _cell_reader(cells: List[Tag], header_map: HeaderMap):
    def get(field_name: str) -> str:
        index = header_map.index_of(field_name)
        if index is None or index >= len(cells):
            return ''
        return cells[index].get_text().strip()
    return get


def normalize_table(
    table:        Tag,
    now:          datetime,
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> RecordSet:
    diagnostics = ParseDiagnostics(table_found=True, current_time=now.isoformat())

    header_row = find_header_row(table)
    if header_row is None:
        return RecordSet(diagnostics=diagnostics)

    rows = data_rows(table, header_row)
    header_map = map_header_row(header_row)
    diagnostics.mapped_columns = dict(header_map.columns)
    diagnostics.raw_headers    = list(header_map.raw_headers)
    diagnostics.total_rows     = len(rows)

    records: List[Record] = []
    for row in rows:
        cells = row.find_all('td')
        if len(cells) < 2:
            diagnostics.skipped_few_cells += 1
            continue

        get = _cell_reader(cells, header_map)
        values = {name: get(name) for name in CANONICAL_FIELDS}

        announce_time = parse_time(values['announce_raw'], now)
        meet_time     = parse_time(values['meet_raw'], now)

        if len(diagnostics.sample_rows) < SAMPLE_ROW_LIMIT:
            diagnostics.sample_rows.append(SampleRow(
                cell_count    = len(cells),
                announce_raw  = values['announce_raw'],
                meet_raw      = values['meet_raw'],
                status        = values['status'],
                vehicle_id    = values['vehicle_id'],
                origin        = values['origin'],
                name          = values['name'],
                announce_time = announce_time,
                meet_time     = meet_time,
                in_window     = (
                    is_within_window(meet_time, now, window_hours)
                    if meet_time else None
                ),
            ))

        if not any(values[k] for k in (
            'announce_raw', 'meet_raw', 'status', 'vehicle_id', 'origin', 'name',
        )):
            diagnostics.skipped_empty += 1
            continue

        if meet_time is not None and not is_within_window(meet_time, now, window_hours):
            diagnostics.filtered_by_window += 1
            continue

        values['status'] = values['status'].upper()
        records.append(Record(
            announce_time = announce_time,
            meet_time     = meet_time,
            **values,
        ))

    diagnostics.parsed_rows = len(records)
    return RecordSet(records=records, diagnostics=diagnostics)


def extract_record_set(
    documents:    List[Document],
    now:          datetime,
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> RecordSet:
    """Locate the booking table in `documents` and normalize it."""
    located = locate_table(documents)
    if located is None:
        return RecordSet(diagnostics=ParseDiagnostics(
            table_found       = False,
            documents_scanned = len(documents),
            current_time      = now.isoformat(),
        ))

    record_set = normalize_table(located.table, now, window_hours)
    record_set.diagnostics.documents_scanned = len(documents)
    d = record_set.diagnostics
    logger.debug(
        f"Parsed {d.parsed_rows}/{d.total_rows} rows from {located.document.location} "
        f"({d.header_cols} mapped cols, {d.skipped_few_cells} few-cells, "
        f"{d.skipped_empty} empty, {d.filtered_by_window} filtered-by-window)"
    )
    return record_set
