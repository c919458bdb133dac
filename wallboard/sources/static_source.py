"""
wallboard/sources/static_source.py
In-memory documents keyed by location. update() swaps the HTML and
pushes a change notification to subscribers immediately.
"""

import logging
from typing import Dict, Optional

from wallboard.sources.base import (
    Document,
    DocumentSource,
    DocumentUnavailable,
    parse_html,
    resolve,
    same_origin,
)

logger = logging.getLogger(__name__)


class StaticDocumentSource(DocumentSource):

    def __init__(
        self,
        root_location: str,
        pages:         Dict[str, str],
        embedded:      bool = False,
    ):
        super().__init__(embedded=embedded)
        self.root_location = root_location
        self.pages         = dict(pages)

    @property
    def can_notify(self) -> bool:
        return True

    def load_root(self) -> Document:
        html = self.pages.get(self.root_location)
        if html is None:
            raise DocumentUnavailable(f"No page at {self.root_location}")
        return parse_html(self.root_location, html, embedded=self.embedded)

    def load_embedded(self, parent: Document, src: str) -> Optional[Document]:
        location = resolve(parent.location, src)
        if not same_origin(parent.location, location):
            logger.debug(f"Skipping cross-origin frame {location}")
            return None
        html = self.pages.get(location)
        if html is None:
            logger.debug(f"Frame not available: {location}")
            return None
        return parse_html(location, html, embedded=True)

    def update(self, location: str, html: str) -> None:
        """Replace one page and notify subscribers."""
        self.pages[location] = html
        self._notify()
