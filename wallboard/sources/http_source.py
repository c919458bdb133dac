"""
wallboard/sources/http_source.py
Fetches the booking page (and same-origin frames) over HTTP.
No push notifications — the scheduler's poll keeps it live.

Uses urllib only; a session cookie, if the portal needs one, goes in
`headers`.
"""

import http.client
import logging
import urllib.error
import urllib.request
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

USER_AGENT = 'taxi-wallboard/1.4'

# LookupError: unknown Content-Type charset. HTTPException: e.g. IncompleteRead.
FETCH_ERRORS = (urllib.error.URLError, http.client.HTTPException, OSError, LookupError, ValueError)


class HttpDocumentSource(DocumentSource):

    def __init__(
        self,
        url:         str,
        embedded:    bool                     = False,
        timeout_sec: int                      = 10,
        headers:     Optional[Dict[str, str]] = None,
    ):
        super().__init__(embedded=embedded)
        self.url         = url
        self.timeout_sec = timeout_sec
        self.headers     = {'User-Agent': USER_AGENT, **(headers or {})}

    def _fetch(self, url: str) -> str:
        req = urllib.request.Request(url, headers=self.headers, method='GET')
        with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
            charset = resp.headers.get_content_charset() or 'utf-8'
            return resp.read().decode(charset, errors='replace')

    def load_root(self) -> Document:
        try:
            html = self._fetch(self.url)
        except FETCH_ERRORS as e:
            raise DocumentUnavailable(f"GET {self.url} failed: {e}") from e
        return parse_html(self.url, html, embedded=self.embedded)

    def load_embedded(self, parent: Document, src: str) -> Optional[Document]:
        location = resolve(parent.location, src)
        if not same_origin(parent.location, location):
            logger.debug(f"Skipping cross-origin frame {location}")
            return None
        try:
            html = self._fetch(location)
        except FETCH_ERRORS as e:
            logger.debug(f"Frame fetch failed {location}: {e}")
            return None
        return parse_html(location, html, embedded=True)
