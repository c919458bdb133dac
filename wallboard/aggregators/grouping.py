"""
wallboard/aggregators/grouping.py
Sort bookings by a selectable column, then pull ALTTURID siblings together.

A linked group (2+ bookings sharing linked_trip_id) is emitted as a block
at the position of its first member in sort order; members keep their
relative sorted order. Everything else keeps its sorted position.
"""

from datetime import datetime
from typing import Callable, Dict, List

from wallboard.models.record import Record
from wallboard.parsers.header_mapper import CANONICAL_FIELDS

TIME_SORT_KEYS = ('announce_time', 'meet_time')
TEXT_SORT_KEYS = tuple(f for f in CANONICAL_FIELDS if f not in ('announce_raw', 'meet_raw'))
SORT_KEYS      = TIME_SORT_KEYS + TEXT_SORT_KEYS

ASCENDING  = 'asc'
DESCENDING = 'desc'


def _sort_key(key: str) -> Callable[[Record], tuple]:
    if key in TIME_SORT_KEYS:
        def by_time(record: Record) -> tuple:
            moment = getattr(record, key)
            # missing times behave as +infinity
            return (moment is None, moment or datetime.min)
        return by_time
    if key in TEXT_SORT_KEYS:
        return lambda record: ((getattr(record, key) or '').lower(),)
    raise ValueError(f"Unknown sort key: {key}")


def sort_records(
    records:   List[Record],
    key:       str = 'announce_time',
    direction: str = ASCENDING,
) -> List[Record]:
    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"Unknown sort direction: {direction}")
    return sorted(records, key=_sort_key(key), reverse=(direction == DESCENDING))


def linked_groups(records: List[Record]) -> Dict[str, List[Record]]:
    groups: Dict[str, List[Record]] = {}
    for record in records:
        if record.linked_trip_id:
            groups.setdefault(record.linked_trip_id, []).append(record)
    return groups


def group_linked(records: List[Record]) -> List[Record]:
    groups = linked_groups(records)
    placed = set()
    grouped: List[Record] = []

    for record in records:
        if record.id in placed:
            continue
        members = groups.get(record.linked_trip_id) if record.linked_trip_id else None
        if members and len(members) > 1:
            for member in members:
                if member.id not in placed:
                    grouped.append(member)
                    placed.add(member.id)
        else:
            grouped.append(record)
            placed.add(record.id)
    return grouped


def sort_and_group(
    records:   List[Record],
    key:       str = 'announce_time',
    direction: str = ASCENDING,
) -> List[Record]:
    return group_linked(sort_records(records, key, direction))
