"""
wallboard/audio.py
Alert sounds. Chimes are plain tone lists so any backend can render them.

Playback is best-effort: a failing backend is logged at DEBUG and ignored —
sound must never interrupt the update loop.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, TextIO, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tone:
    freq_hz:   float
    duration:  float            # seconds
    wave:      str   = 'sine'
    delay:     float = 0.0      # offset from chime start


ANNOUNCE_CHIME = 'announce'     # an UTROP time bucket has arrived
SENDING_CHIME  = 'sending'      # UNDER SENDING reminder
NEW_RECORD     = 'new-record'   # bookings appeared since last snapshot

CHIMES: Dict[str, Tuple[Tone, ...]] = {
    ANNOUNCE_CHIME: (
        Tone(880,  0.15),
        Tone(1100, 0.22, delay=0.16),
    ),
    SENDING_CHIME: (
        Tone(520, 0.2, 'triangle'),
        Tone(520, 0.2, 'triangle', delay=0.28),
        Tone(660, 0.3, 'triangle', delay=0.56),
    ),
    NEW_RECORD: (
        Tone(700, 0.08),
        Tone(900, 0.12, delay=0.1),
    ),
}


class Sounder:
    """Base sounder — subclasses implement _emit()."""

    def __init__(self, muted: bool = False):
        self.muted = muted

    def play(self, name: str) -> bool:
        """Returns True if the chime was handed to the backend."""
        if self.muted:
            return False
        tones = CHIMES.get(name)
        if tones is None:
            logger.debug(f"Unknown chime: {name}")
            return False
        try:
            self._emit(name, tones)
        except Exception as e:
            logger.debug(f"Sound playback failed ({name}): {e}")
            return False
        return True

    def _emit(self, name: str, tones: Tuple[Tone, ...]) -> None:
        raise NotImplementedError


class LoggingSounder(Sounder):

    def _emit(self, name: str, tones: Tuple[Tone, ...]) -> None:
        logger.info(f"♪ {name}")


class BellSounder(Sounder):
    """Terminal bell — one BEL per tone."""

    def __init__(self, muted: bool = False, stream: Optional[TextIO] = None):
        super().__init__(muted=muted)
        self.stream = stream or sys.stdout

    def _emit(self, name: str, tones: Tuple[Tone, ...]) -> None:
        self.stream.write('\a' * len(tones))
        self.stream.flush()


class RecordingSounder(Sounder):
    """Keeps every played chime name in order."""

    def __init__(self, muted: bool = False):
        super().__init__(muted=muted)
        self.played: List[str] = []

    def _emit(self, name: str, tones: Tuple[Tone, ...]) -> None:
        self.played.append(name)
