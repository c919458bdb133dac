"""
tests/conftest.py
Shared fixtures: a manual event loop, a fixed clock and synthetic
booking-page HTML. No real booking data.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import pytest

NOW = datetime(2026, 10, 16, 14, 0, 0)   # a Friday

ROOT = 'http://portal.local/index.html'

DEFAULT_HEADERS = ['TURID', 'TAXI', 'STATUS', 'UTROP', 'OPPMØTE', 'FRA', 'TIL', 'NAVN', 'ALTTURID', 'TLF']

HEADER_FIELDS = {
    'TURID':    'trip_id',
    'TAXI':     'vehicle_id',
    'STATUS':   'status',
    'UTROP':    'announce_raw',
    'OPPMØTE':  'meet_raw',
    'FRA':      'origin',
    'TIL':      'destination',
    'NAVN':     'name',
    'ALTTURID': 'linked_trip_id',
    'TLF':      'phone',
}


# ── FAKE LOOP ────────────────────────────────────────────────

class FakeHandle:

    def __init__(self, when: float, callback, args):
        self.when      = when
        self.callback  = callback
        self.args      = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """call_later()/time() only; advance() fires due callbacks in order."""

    def __init__(self):
        self.now = 0.0
        self._handles: List[FakeHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback, *args) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target


class Clock:
    """Mutable "now" for the engine."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ── HTML ─────────────────────────────────────────────────────

def booking_row(**values) -> Dict[str, str]:
    return values


def booking_table(
    rows:       Sequence[Dict[str, str]],
    headers:    Sequence[str] = DEFAULT_HEADERS,
    thead:      bool          = True,
    table_id:   Optional[str] = None,
) -> str:
    id_attr = f' id="{table_id}"' if table_id else ''
    head = '<tr>' + ''.join(f'<th>{h}</th>' for h in headers) + '</tr>'
    body = ''
    for row in rows:
        cells = ''.join(f'<td>{row.get(HEADER_FIELDS.get(h, h), "")}</td>' for h in headers)
        body += f'<tr>{cells}</tr>'
    if thead:
        return f'<table{id_attr}><thead>{head}</thead><tbody>{body}</tbody></table>'
    return f'<table{id_attr}>{head}{body}</table>'


def page(*parts: str) -> str:
    return '<html><body>' + ''.join(parts) + '</body></html>'


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def clock():
    return Clock()
