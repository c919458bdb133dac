"""
wallboard/detectors/change_detector.py
Record registry: holds the current snapshot and decides whether a fresh
RecordSet is worth acting on.

The signature is the ordered (id, status) sequence — cheap to build and
enough to catch additions, removals, reorders and status flips. Other
field edits (a new phone number, say) do not count as a change.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from wallboard.models.record import Record, RecordSet

logger = logging.getLogger(__name__)

Signature = Tuple[Tuple[str, str], ...]


def signature_of(records: List[Record]) -> Signature:
    return tuple((r.id, r.status) for r in records)


@dataclass
class ChangeReport:
    changed:            bool
    new_ids:            FrozenSet[str] = frozenset()
    removed_ids:        FrozenSet[str] = frozenset()
    successful_passes:  int            = 0


class RecordRegistry:
    """
    Owns the current RecordSet. update() is the only mutator.

    New ids are reported only once a previous id set has been established
    by an earlier pass that found the table; the first population never
    reports "everything is new".
    """

    def __init__(self):
        self.current:            RecordSet           = RecordSet()
        self._signature:         Optional[Signature] = None
        self._ids:               FrozenSet[str]      = frozenset()
        self._established:       bool                = False
        self.successful_passes:  int                 = 0

    @property
    def records(self) -> List[Record]:
        return self.current.records

    @property
    def ids(self) -> FrozenSet[str]:
        return self._ids

    def update(self, record_set: RecordSet) -> ChangeReport:
        if record_set.table_found:
            self.successful_passes += 1

        signature = signature_of(record_set.records)
        if signature == self._signature:
            # Keep the latest diagnostics even when the data is unchanged
            self.current.diagnostics = record_set.diagnostics
            return ChangeReport(changed=False, successful_passes=self.successful_passes)

        ids = frozenset(r.id for r in record_set.records)
        new_ids: FrozenSet[str] = frozenset()
        removed: FrozenSet[str] = frozenset()
        if self._established and record_set.table_found:
            new_ids = ids - self._ids
            removed = self._ids - ids

        self.current    = record_set
        self._signature = signature
        if record_set.table_found:
            # A pass that lost the table leaves the id baseline alone
            self._ids         = ids
            self._established = True

        logger.info(
            f"Snapshot changed: {len(record_set)} records "
            f"(+{len(new_ids)} / -{len(removed)})"
        )
        return ChangeReport(
            changed           = True,
            new_ids           = new_ids,
            removed_ids       = removed,
            successful_passes = self.successful_passes,
        )
