"""
wallboard/models/record.py
Shared dataclass schema. Parsers, detectors, aggregators and the engine
all use these types. Do not add logic here — data only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class Record:
    """One normalized dispatch entry (one data row of the source table)."""
    invoice_ref:          str                = ''
    requester:            str                = ''
    vehicle_id:           str                = ''
    status:               str                = ''     # upper-cased free text
    announce_raw:         str                = ''     # UTROP as shown in the source
    announce_time:        Optional[datetime] = None
    meet_raw:             str                = ''     # OPPMØTE as shown in the source
    meet_time:            Optional[datetime] = None
    processing_duration:  str                = ''
    origin:               str                = ''     # FRA
    destination:          str                = ''     # TIL
    name:                 str                = ''
    message_to_vehicle:   str                = ''
    payment_method:       str                = ''
    reference:            str                = ''
    linked_trip_id:       str                = ''     # ALTTURID
    phone:                str                = ''
    attribute:            str                = ''
    trip_id:              str                = ''
    internal_number:      str                = ''

    @property
    def id(self) -> str:
        """Identity key: trip id, else invoice ref, else a composite of raw fields."""
        if self.trip_id:
            return self.trip_id
        if self.invoice_ref:
            return self.invoice_ref
        parts = (self.announce_raw, self.vehicle_id, self.origin, self.name)
        return '|'.join(p for p in parts if p)


@dataclass
class SampleRow:
    """First few data rows of a pass, kept for diagnostics."""
    cell_count:     int
    announce_raw:   str
    meet_raw:       str
    status:         str
    vehicle_id:     str
    origin:         str
    name:           str
    announce_time:  Optional[datetime]
    meet_time:      Optional[datetime]
    in_window:      Optional[bool]        # None when meet time did not parse


@dataclass
class ParseDiagnostics:
    """Side-channel returned with every RecordSet."""
    table_found:        bool             = False
    mapped_columns:     Dict[str, int]   = field(default_factory=dict)
    raw_headers:        List[str]        = field(default_factory=list)
    total_rows:         int              = 0
    parsed_rows:        int              = 0
    skipped_empty:      int              = 0
    skipped_few_cells:  int              = 0
    filtered_by_window: int              = 0
    sample_rows:        List[SampleRow]  = field(default_factory=list)
    documents_scanned:  int              = 0
    current_time:       str              = ''

    @property
    def header_cols(self) -> int:
        return len(self.mapped_columns)


@dataclass
class RecordSet:
    """Authoritative snapshot produced by one normalization pass."""
    records:      List[Record]      = field(default_factory=list)
    diagnostics:  ParseDiagnostics  = field(default_factory=ParseDiagnostics)

    @property
    def table_found(self) -> bool:
        return self.diagnostics.table_found

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)
