"""
wallboard/sources/base.py
Abstract base class for document providers.
To add a new provider: subclass DocumentSource and implement
load_root() and load_embedded().

The engine only ever sees Document objects — it never knows whether the
HTML came from memory, a file on disk or an HTTP fetch.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class DocumentUnavailable(Exception):
    """Raised by load_root() when the root document cannot be read."""


@dataclass
class Document:
    location:  str
    soup:      BeautifulSoup
    embedded:  bool = False       # True for iframe/frame content


def parse_html(location: str, html: str, embedded: bool = False) -> Document:
    return Document(
        location = location,
        soup     = BeautifulSoup(html or '', 'html.parser'),
        embedded = embedded,
    )


def origin_of(location: str) -> tuple:
    parts = urlsplit(location)
    return (parts.scheme.lower(), parts.netloc.lower())


def same_origin(a: str, b: str) -> bool:
    """Locations without a scheme (plain keys, file paths) share one origin."""
    return origin_of(a) == origin_of(b)


def resolve(parent: str, src: str) -> str:
    return urljoin(parent, src)


class DocumentSource(ABC):
    """
    Provides the root document and its embedded sub-documents.
    `embedded=True` marks the root itself as a sub-document, which limits
    table search to that one document.
    """

    def __init__(self, embedded: bool = False):
        self.embedded   = embedded
        self._listeners: List[Listener] = []

    @abstractmethod
    def load_root(self) -> Document:
        """
        Return the root document.
        Raises DocumentUnavailable when it cannot be read.
        """
        ...

    @abstractmethod
    def load_embedded(self, parent: Document, src: str) -> Optional[Document]:
        """
        Return the document behind an iframe/frame src.
        Returns None for cross-origin or unreadable documents — never raises.
        """
        ...

    # ── CHANGE NOTIFICATION ──────────────────────────────────
    @property
    def can_notify(self) -> bool:
        return False

    def subscribe(self, listener: Listener) -> Optional[Callable[[], None]]:
        """
        Register for change notifications.
        Returns an unsubscribe callable, or None if this source cannot push.
        """
        if not self.can_notify:
            return None
        self._listeners.append(listener)
        self._on_first_listener()

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
            if not self._listeners:
                self._on_last_listener()

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _on_first_listener(self) -> None:
        pass

    def _on_last_listener(self) -> None:
        pass
