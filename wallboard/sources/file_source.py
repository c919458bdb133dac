"""
wallboard/sources/file_source.py
Local HTML file (e.g. a saved Taxiportalen page, or one a sync job keeps
overwriting). Frames resolve relative to the file that embeds them;
http(s) frame sources count as cross-origin and are skipped.

Change notification polls the modification stamp of the root file and
every frame file read so far, on the caller's event loop.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

from wallboard.sources.base import Document, DocumentSource, DocumentUnavailable, parse_html

logger = logging.getLogger(__name__)

Stamp = Tuple[int, int]


def _read_html(path: Path) -> str:
    raw = path.read_bytes()
    try:
        return raw.decode('utf-8-sig')
    except UnicodeDecodeError:
        return raw.decode('latin-1')


def _stamp(path: Path) -> Optional[Stamp]:
    try:
        st = path.stat()
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


class FileDocumentSource(DocumentSource):

    def __init__(
        self,
        path:           Path,
        embedded:       bool          = False,
        loop:           Optional[Any] = None,
        watch_interval: float         = 0.5,
    ):
        super().__init__(embedded=embedded)
        self.path           = Path(path)
        self.loop           = loop
        self.watch_interval = watch_interval
        self._stamps: Dict[Path, Optional[Stamp]] = {}
        self._watch_handle  = None

    @property
    def can_notify(self) -> bool:
        return self.loop is not None

    def load_root(self) -> Document:
        try:
            html = _read_html(self.path)
        except OSError as e:
            raise DocumentUnavailable(f"Cannot read {self.path}: {e}") from e
        self._stamps[self.path] = _stamp(self.path)
        return parse_html(str(self.path), html, embedded=self.embedded)

    def load_embedded(self, parent: Document, src: str) -> Optional[Document]:
        if urlsplit(src).scheme in ('http', 'https'):
            logger.debug(f"Skipping remote frame {src}")
            return None
        target = (Path(parent.location).parent / src.split('#')[0].split('?')[0]).resolve()
        try:
            html = _read_html(target)
        except OSError as e:
            logger.debug(f"Frame not readable {target}: {e}")
            return None
        self._stamps[target] = _stamp(target)
        return parse_html(str(target), html, embedded=True)

    # ── WATCH ────────────────────────────────────────────────
    def _on_first_listener(self) -> None:
        if self._watch_handle is None:
            self._watch_handle = self.loop.call_later(self.watch_interval, self._check)

    def _on_last_listener(self) -> None:
        if self._watch_handle is not None:
            self._watch_handle.cancel()
            self._watch_handle = None

    def _check(self) -> None:
        changed = False
        for path, seen in list(self._stamps.items()):
            current = _stamp(path)
            if current != seen:
                self._stamps[path] = current
                changed = True
        if changed:
            logger.debug(f"Change detected under {self.path.parent}")
            self._notify()
        if self._listeners:
            self._watch_handle = self.loop.call_later(self.watch_interval, self._check)
        else:
            self._watch_handle = None
