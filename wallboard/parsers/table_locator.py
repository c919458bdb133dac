"""
wallboard/parsers/table_locator.py
Finds the booking table across the root document and its frames.

The portal renders its booking list inside a frame on some pages and
directly on others, and never marks the table with a stable id — so the
table is picked by header text: it must mention TAXI and STATUS, plus
UTROP or FRA. First document, first matching table wins.

"Not found" is a normal state (page still loading, user on another tab);
callers retry on the next cycle.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from bs4.element import Tag

from wallboard.sources.base import Document, DocumentSource

logger = logging.getLogger(__name__)

# The engine's own rendered table is never a candidate.
RESERVED_TABLE_ID = 'wallboard-table'

VEHICLE_KEYWORD  = 'TAXI'
STATUS_KEYWORD   = 'STATUS'
TIME_KEYWORD     = 'UTROP'
ORIGIN_KEYWORD   = 'FRA'


@dataclass
class LocatedTable:
    table:     Tag
    document:  Document


@dataclass
class TableSummary:
    """One table as seen during a survey — for the diagnostics panel."""
    document:     str
    embedded:     bool
    row_count:    int
    cell_count:   int
    has_thead:    bool
    has_tbody:    bool
    header_text:  str


def _text(node: Tag) -> str:
    return node.get_text().upper()


def is_booking_header(text: str) -> bool:
    return (
        VEHICLE_KEYWORD in text
        and STATUS_KEYWORD in text
        and (TIME_KEYWORD in text or ORIGIN_KEYWORD in text)
    )


# ── DOCUMENTS ────────────────────────────────────────────────

def collect_documents(source: DocumentSource) -> List[Document]:
    """
    Root document plus every same-origin frame reachable from it.
    A root that is itself embedded searches only itself.
    Raises DocumentUnavailable if the root cannot be read.
    """
    root = source.load_root()
    documents = [root]
    if root.embedded:
        return documents

    for frame in root.soup.find_all(['iframe', 'frame']):
        src = (frame.get('src') or '').strip()
        if not src or src.startswith(('about:', 'javascript:', 'data:')):
            continue
        doc = source.load_embedded(root, src)
        if doc is not None:
            documents.append(doc)
    return documents


# ── TABLE ────────────────────────────────────────────────────

def find_table_in_document(document: Document) -> Optional[Tag]:
    for table in document.soup.find_all('table'):
        if table.get('id') == RESERVED_TABLE_ID:
            continue
        thead = table.find('thead')
        header_row = thead.find('tr') if thead else table.find('tr')
        if header_row is None:
            continue
        if is_booking_header(_text(header_row)):
            return table
    return None


def locate_table(documents: List[Document]) -> Optional[LocatedTable]:
    for document in documents:
        table = find_table_in_document(document)
        if table is not None:
            return LocatedTable(table=table, document=document)
    return None


# ── HEADER ROW ───────────────────────────────────────────────
# Each strategy returns a row or None. Tried in order; first hit wins.

HeaderStrategy = Callable[[Tag, List[Tag]], Optional[Tag]]


def _from_thead(table: Tag, rows: List[Tag]) -> Optional[Tag]:
    thead = table.find('thead')
    if thead is None:
        return None
    row = thead.find('tr')
    if row is not None:
        text = _text(row)
        if VEHICLE_KEYWORD in text or STATUS_KEYWORD in text:
            return row
    return None


def _from_th_cells(table: Tag, rows: List[Tag]) -> Optional[Tag]:
    for row in rows:
        if row.find('th') is not None:
            text = _text(row)
            if VEHICLE_KEYWORD in text or STATUS_KEYWORD in text:
                return row
    return None


def _from_keywords(table: Tag, rows: List[Tag]) -> Optional[Tag]:
    for row in rows:
        text = _text(row)
        if VEHICLE_KEYWORD in text and (
            STATUS_KEYWORD in text or TIME_KEYWORD in text or ORIGIN_KEYWORD in text
        ):
            return row
    return None


def _first_row(table: Tag, rows: List[Tag]) -> Optional[Tag]:
    return rows[0] if rows else None


HEADER_ROW_STRATEGIES: List[HeaderStrategy] = [
    _from_thead,
    _from_th_cells,
    _from_keywords,
    _first_row,
]


def find_header_row(table: Tag) -> Optional[Tag]:
    rows = table.find_all('tr')
    for strategy in HEADER_ROW_STRATEGIES:
        row = strategy(table, rows)
        if row is not None:
            return row
    return None


def data_rows(table: Tag, header_row: Tag) -> List[Tag]:
    """Every row after the header; falls back to <tbody> rows, then rows[1:]."""
    rows = table.find_all('tr')
    for index, row in enumerate(rows):
        if row is header_row:
            return rows[index + 1:]
    tbody = table.find('tbody')
    if tbody is not None:
        return tbody.find_all('tr')
    return rows[1:]


# ── SURVEY ───────────────────────────────────────────────────

def survey_tables(documents: List[Document]) -> List[TableSummary]:
    summaries: List[TableSummary] = []
    for document in documents:
        for table in document.soup.find_all('table'):
            first = table.find('tr')
            summaries.append(TableSummary(
                document    = document.location,
                embedded    = document.embedded,
                row_count   = len(table.find_all('tr')),
                cell_count  = len(first.find_all(['th', 'td'])) if first else 0,
                has_thead   = table.find('thead') is not None,
                has_tbody   = table.find('tbody') is not None,
                header_text = first.get_text().strip()[:100] if first else '(empty)',
            ))
    return summaries
