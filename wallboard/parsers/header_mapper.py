"""
wallboard/parsers/header_mapper.py
Maps raw column headers to canonical Record field names.

Two passes:
  1. exact  — upper-cased, trimmed header text equals a synonym
  2. substring — header text contains a synonym; only fills fields the
     exact pass left empty, and only from columns it left unclaimed

Extend COLUMN_SYNONYMS freely. Several spellings may point at one field.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from bs4.element import Tag

# ── SYNONYMS ─────────────────────────────────────────────────
# Order matters for the substring pass: first synonym that fits wins.

COLUMN_SYNONYMS: Dict[str, str] = {
    'FAKTURNR':         'invoice_ref',
    'REKVIRENT':        'requester',
    'TAXI':             'vehicle_id',
    'STATUS':           'status',
    'UTROP':            'announce_raw',
    'OPPMØTE':          'meet_raw',
    'OPPMOTE':          'meet_raw',
    'BEHANDLINGSTID':   'processing_duration',
    'FRA':              'origin',
    'TIL':              'destination',
    'NAVN':             'name',
    'MELDING TIL BIL':  'message_to_vehicle',
    'MELDINGTILBIL':    'message_to_vehicle',
    'BET':              'payment_method',
    'REF':              'reference',
    'ALTTURID':         'linked_trip_id',
    'TLF':              'phone',
    'EGENSKAP':         'attribute',
    'TURID':            'trip_id',
    'INTERNNR':         'internal_number',
}

CANONICAL_FIELDS: List[str] = list(dict.fromkeys(COLUMN_SYNONYMS.values()))


@dataclass
class HeaderMap:
    columns:      Dict[str, int] = field(default_factory=dict)   # field -> column index
    raw_headers:  List[str]      = field(default_factory=list)

    def index_of(self, field_name: str):
        return self.columns.get(field_name)


def normalize_header(text: str) -> str:
    return (text or '').strip().upper()


def map_headers(raw_headers: Sequence[str]) -> HeaderMap:
    headers = [normalize_header(h) for h in raw_headers]
    columns: Dict[str, int] = {}
    claimed = set()

    # Exact pass over every cell first
    for index, raw in enumerate(headers):
        target = COLUMN_SYNONYMS.get(raw)
        if target is not None:
            columns[target] = index
            claimed.add(index)

    # Substring pass never overrides an exact match
    for index, raw in enumerate(headers):
        if index in claimed or not raw:
            continue
        for synonym, target in COLUMN_SYNONYMS.items():
            if target in columns:
                continue
            if synonym in raw:
                columns[target] = index

    return HeaderMap(columns=columns, raw_headers=headers)


def map_header_row(row: Tag) -> HeaderMap:
    cells = row.find_all(['th', 'td'])
    return map_headers([cell.get_text() for cell in cells])
